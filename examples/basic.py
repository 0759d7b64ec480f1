"""
Basic Stillness Example
Runs the overlay on the nearest glasses until Ctrl+C
"""

import asyncio
from stillness import Glasses, JsonFileStore, StillnessEngine


async def main():
    print("Scanning for glasses...")
    devices = await Glasses.scan(timeout=5.0)

    if not devices:
        print("No devices found!")
        return

    print(f"Found: {devices[0]}")

    async with Glasses(devices[0].address) as glasses:
        print("Connected!")
        engine = StillnessEngine(glasses, JsonFileStore())
        await engine.start()
        engine.attach(glasses)
        engine.stop_on_signals()

        print("Tap the glasses to begin. Ctrl+C to exit.")
        try:
            await engine.wait_stopped()
        finally:
            await engine.stop()
            print(f"Practiced {engine.state.accumulated_seconds_today}s today")


if __name__ == "__main__":
    asyncio.run(main())
