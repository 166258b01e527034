"""Connect to a Furby, print what it reports, optionally send commands.

Usage:
    uv run python examples/furby_console.py --duration 30
    uv run python examples/furby_console.py --action 39 4 2 0
    uv run python examples/furby_console.py --upload dlc/halloween.dlc --slot 2
    uv run python examples/furby_console.py --catalog dlc/index.json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections import Counter
from datetime import datetime
from pathlib import Path

from furble import (
    ActionArity,
    Connected,
    ConnectionSupervisor,
    Disconnected,
    FurbyState,
    Sensor,
    SlotStatusChanged,
    StateChanged,
    SupervisorEvent,
    TransferCompleted,
    TransferFailed,
    TransferProgress,
    load_catalog,
)


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _format_state(state: FurbyState) -> str:
    sensors = [flag.name.lower() for flag in Sensor if flag and flag in state.sensors]
    return (
        f"antenna={state.antenna.value} orientation={state.orientation.value} "
        f"sensors={','.join(sensors) or '-'}"
    )


def _print_event(event: SupervisorEvent) -> None:
    if isinstance(event, StateChanged):
        print(f"[{_timestamp()}] STATE {_format_state(event.state)}")
    elif isinstance(event, TransferProgress):
        print(
            f"[{_timestamp()}] UPLOAD {event.bytes_sent}/{event.total} "
            f"({event.bytes_sent / event.total * 100:.1f}%)"
        )
    elif isinstance(event, SlotStatusChanged):
        print(f"[{_timestamp()}] SLOTS {' '.join(s.name[0] for s in event.slots)}")
    elif isinstance(event, (Connected, Disconnected)):
        print(f"[{_timestamp()}] {type(event).__name__.upper()} {event.address}")
    else:
        print(f"[{_timestamp()}] {event}")


def _print_catalog(path: str) -> None:
    for entry in load_catalog(path):
        print(f"{entry.device_filename}  {entry.title} ({entry.file})")
        for button in entry.buttons:
            print(f"    {button.title}: {list(button.action.params)}")


async def run(args: argparse.Namespace) -> None:
    """Connect, issue the requested commands and print events."""
    supervisor = ConnectionSupervisor(args.address)
    counts: Counter[str] = Counter()

    print(f"Connecting to {args.address or 'first device named Furby'}...")
    await supervisor.connect()

    try:
        print(f"Firmware version: {await supervisor.read_firmware_version()}")
        await supervisor.request_slot_info()

        if args.antenna:
            await supervisor.set_antenna_color(*args.antenna)
        if args.action:
            await supervisor.send_action(ActionArity.from_sequence(args.action))
        if args.upload:
            payload = Path(args.upload).read_bytes()
            await supervisor.begin_upload(args.slot, args.upload, payload)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + args.duration if args.duration > 0 else None
        while True:
            timeout = None if deadline is None else deadline - loop.time()
            if timeout is not None and timeout <= 0:
                break
            try:
                event = await asyncio.wait_for(supervisor.events.get(), timeout=timeout)
            except asyncio.TimeoutError:
                break

            counts[type(event).__name__] += 1
            _print_event(event)
            if args.upload and isinstance(event, (TransferCompleted, TransferFailed)):
                break
    finally:
        await supervisor.disconnect()

    print("\nSummary:")
    print(f"  events_seen={dict(counts)}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Connect to a Furby Connect, print state changes and send commands."
    )
    parser.add_argument("--address", help="Device MAC address (default: scan by name)")
    parser.add_argument(
        "--duration",
        type=float,
        default=30.0,
        help="Listen duration in seconds (0 = run until Ctrl+C). Default: 30",
    )
    parser.add_argument(
        "--action",
        type=int,
        nargs="+",
        metavar="N",
        help="Trigger an action with 1-4 parameters, e.g. --action 39 4 2 0",
    )
    parser.add_argument(
        "--antenna",
        type=int,
        nargs=3,
        metavar=("R", "G", "B"),
        help="Set antenna colour",
    )
    parser.add_argument("--upload", metavar="FILE", help="Upload a DLC file")
    parser.add_argument("--slot", type=int, default=0, help="Target slot for --upload. Default: 0")
    parser.add_argument("--catalog", metavar="JSON", help="List a DLC catalog and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    if args.catalog:
        _print_catalog(args.catalog)
        return
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
