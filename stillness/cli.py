#!/usr/bin/env python3
"""
Stillness CLI
Breathing-practice overlay for display glasses

Usage:
    stillness scan                 # Find glasses
    stillness run                  # Run the overlay on the nearest glasses
    stillness run AA:BB:CC:DD:EE   # Run on a specific device
    stillness sessions             # List breathing sessions
    stillness today                # Show today's practice time
    stillness reset-today          # Zero today's practice time
"""

import asyncio
import logging
import sys

from stillness import DEFAULT_SESSIONS, Glasses, JsonFileStore, StillnessEngine
from stillness.accumulator import DailyAccumulator, PracticeStore, today_key
from stillness.breath import fmt_mmss


def _practice_store() -> PracticeStore:
    return PracticeStore(JsonFileStore())


async def cmd_scan():
    """Scan for devices"""
    print("Scanning for glasses...")
    devices = await Glasses.scan(timeout=5.0)

    if not devices:
        print("No devices found.")
        return

    print(f"Found {len(devices)} device(s):")
    for i, d in enumerate(devices):
        print(f"  {i+1}. {d.name} [{d.address}] RSSI: {d.rssi}")


async def cmd_run(address=None):
    """Run the overlay until interrupted"""
    store = JsonFileStore()
    async with Glasses(address) as glasses:
        print(f"Connected to {glasses.address}")
        engine = StillnessEngine(glasses, store)
        await engine.start()
        engine.attach(glasses)
        engine.stop_on_signals()
        print("Tap to begin, swipe to change session. Ctrl+C to exit.")
        try:
            await engine.wait_stopped()
        finally:
            await engine.stop()
            print(f"Today: {fmt_mmss(engine.state.accumulated_seconds_today)}")


def cmd_sessions():
    """List sessions"""
    current = _practice_store().load_session_index(len(DEFAULT_SESSIONS))
    for i, s in enumerate(DEFAULT_SESSIONS):
        marker = "*" if i == current else " "
        print(f" {marker} {i+1}. {s.name:<10} inhale {s.inhale}s, hold {s.hold}s, exhale {s.exhale}s")


def cmd_today():
    """Show today's total"""
    daily = _practice_store().load_daily()
    print(f"{daily.date}: {fmt_mmss(daily.total_seconds)}")


def cmd_reset_today():
    """Zero today's total"""
    store = _practice_store()
    if store.save_daily(DailyAccumulator(today_key(), 0)):
        print("Today's practice time reset")
    else:
        print("Could not write practice time")


def print_help():
    print(__doc__)
    print("Commands:")
    print("  scan                     Scan for devices")
    print("  run [address]            Run the overlay")
    print("  sessions                 List breathing sessions")
    print("  today                    Show today's practice time")
    print("  reset-today              Zero today's practice time")
    print()
    print("Options:")
    print("  -v                       Debug logging")


async def main():
    args = [a for a in sys.argv[1:] if a != "-v"]
    logging.basicConfig(
        level=logging.DEBUG if "-v" in sys.argv[1:] else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args:
        print_help()
        return

    cmd = args[0].lower()

    try:
        if cmd == "scan":
            await cmd_scan()

        elif cmd == "run":
            await cmd_run(args[1] if len(args) > 1 else None)

        elif cmd == "sessions":
            cmd_sessions()

        elif cmd == "today":
            cmd_today()

        elif cmd == "reset-today":
            cmd_reset_today()

        elif cmd in ("help", "-h", "--help"):
            print_help()

        else:
            print(f"Unknown command: {cmd}")
            print_help()

    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


def cli_main():
    """Synchronous entry point for CLI"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nStopped")


if __name__ == "__main__":
    cli_main()
