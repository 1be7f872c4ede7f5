"""Lightweight REST client for the auction signal ingest API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def load_events(path: Path) -> list[dict]:
    events = []
    for line_number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            events.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise SystemExit(f"Invalid event JSON on line {line_number}: {exc}") from exc
    return events


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the auction signal REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("events", type=Path, nargs="?", help="JSON-lines events file to post")
    parser.add_argument("--batch-size", type=int, default=100, help="Events per POST")
    parser.add_argument("--ortb2", type=Path, help="JSON file replacing the global ortb2 config")
    parser.add_argument("--health", action="store_true", help="Print service health and exit")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url) as client:
        if args.health:
            resp = client.get("/health")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        if args.ortb2:
            resp = client.put("/ortb2", json=json.loads(args.ortb2.read_text(encoding="utf-8")))
            resp.raise_for_status()
            print(f"Global ortb2 replaced from {args.ortb2}")

        if args.events is None:
            if args.ortb2:
                return
            raise SystemExit("an events file is required unless using --health/--ortb2")

        events = load_events(args.events)
        batch_size = max(1, args.batch_size)
        accepted = 0
        for start in range(0, len(events), batch_size):
            resp = client.post("/events", json=events[start:start + batch_size])
            if resp.status_code == 503:
                raise SystemExit("adapter is not enabled on the server")
            resp.raise_for_status()
            accepted += resp.json()["accepted"]
        print(f"Posted {accepted} events")


if __name__ == "__main__":
    main()
