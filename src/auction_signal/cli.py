"""Command-line interface for replaying event logs and serving the ingest API."""

from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Iterator

import uvicorn

from auction_signal.adapter import AuctionSignalAdapter
from auction_signal.api import build_adapter, create_app
from auction_signal.config_loader import AdapterOptionsFile
from auction_signal.dispatch import DispatchResult, HttpSender, VendorDispatcher


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Auction signal analytics tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay = subparsers.add_parser("replay", help="Replay a JSON-lines event log through the adapter")
    replay.add_argument("events", type=Path, help="Path to events file, one {eventType, args} per line")
    replay.add_argument("--config", type=Path, required=True, help="Adapter options JSON")
    replay.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Optional path to write per-vendor delivery results JSON",
    )

    serve = subparsers.add_parser("serve", help="Run the HTTP ingest service")
    serve.add_argument("--config", type=Path, default=None, help="Adapter options JSON")
    serve.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    serve.add_argument("--port", type=int, default=8000, help="Port to bind")
    return parser.parse_args(argv)


def iter_events(path: Path) -> Iterator[tuple[str, dict[str, Any]]]:
    with path.open("r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError as exc:
                raise SystemExit(f"Invalid event JSON on line {line_number}: {exc}") from exc
            if not isinstance(entry, dict) or "eventType" not in entry:
                raise SystemExit(f"Line {line_number} is not an {{eventType, args}} object")
            yield entry["eventType"], entry.get("args") or {}


async def _track_all(
    adapter: AuctionSignalAdapter,
    sender: HttpSender,
    events: list[tuple[str, dict[str, Any]]],
) -> None:
    try:
        for event_type, args in events:
            adapter.track(event_type, args)
    finally:
        await sender.aclose()


def replay_events(options_file: AdapterOptionsFile, events_path: Path) -> list[DispatchResult]:
    """Run every event in ``events_path`` and wait for all vendor deliveries."""

    events = list(iter_events(events_path))
    results: list[DispatchResult] = []
    sender = HttpSender()
    adapter = AuctionSignalAdapter(
        environment=options_file.environment(),
        dispatcher=VendorDispatcher(sender, on_result=results.append),
        global_ortb2=options_file.ortb2,
    )
    if not adapter.enable(options_file.options):
        raise SystemExit("Adapter configuration was rejected; see log for details")
    asyncio.run(_track_all(adapter, sender, events))
    return results


def _serve(args: argparse.Namespace) -> None:
    options_file = AdapterOptionsFile.load(args.config) if args.config else AdapterOptionsFile.from_env()
    app = create_app(build_adapter(options_file))
    uvicorn.run(app, host=args.host, port=args.port)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    if args.command == "serve":
        _serve(args)
        return

    options_file = AdapterOptionsFile.load(args.config)
    results = replay_events(options_file, args.events)

    delivered = sum(1 for result in results if result.ok)
    print(f"Delivered {delivered}/{len(results)} vendor payloads")
    for result in results:
        if not result.ok:
            print(f"Failed delivery to {result.vendor}: {result.error}")
    if args.report:
        args.report.write_text(
            json.dumps([asdict(result) for result in results], indent=2),
            encoding="utf-8",
        )
        print(f"Wrote delivery report to {args.report}")


if __name__ == "__main__":
    main()
