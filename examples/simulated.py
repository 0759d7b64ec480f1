"""
Simulated Session Example
Drives the engine with scripted gestures and prints what the glasses would show

No hardware needed.
"""

import asyncio
from stillness import MemoryStore, PracticeConfig, StillnessEngine


class ConsoleRenderer:
    """Prints pages and text updates instead of drawing them"""

    async def create_page(self, page):
        print(f"[create] {', '.join(r.name for r in page.regions)}")
        return 0

    async def rebuild_page(self, page):
        print(f"[rebuild] {', '.join(r.name for r in page.regions)}")

    async def update_text(self, region_id, region_name, content):
        print(f"[{region_name}]")
        for line in content.splitlines():
            if line.strip():
                print(f"    {line.strip()}")

    async def shutdown(self):
        print("[shutdown]")


async def main():
    # Fast fades so the whole hierarchy is visible in a short run
    config = PracticeConfig(header_fade_after_cycles=1, frame_fade_after_cycles=2)
    engine = StillnessEngine(ConsoleRenderer(), MemoryStore(), config)
    await engine.start()

    print("\n-- tap --")
    engine.feed({"listEvent": {"eventType": 0}})
    await asyncio.sleep(5)

    print("\n-- swipe down --")
    engine.feed({"textEvent": {"eventType": 1}})
    await asyncio.sleep(10)

    print("\n-- tap --")
    engine.feed({"textEvent": {"eventType": 0}})
    await engine.drain()

    await engine.stop()
    print(f"\nPracticed {engine.state.accumulated_seconds_today}s today")


if __name__ == "__main__":
    asyncio.run(main())
