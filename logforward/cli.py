#!/usr/bin/env python3
"""
logforward CLI
Ships newline-delimited JSON log files to the ingestion endpoint
"""

import argparse
import json
import logging
import sys
from collections.abc import Iterator
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .config import from_env
from .errors import ConfigurationError
from .forwarder import LogForwarder

logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console(stderr=True)

DEFAULT_BATCH_SIZE = 5000


def read_events(path: Path) -> Iterator[dict]:
    """Yield one event per non-blank NDJSON line, skipping lines that are not objects."""
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError as e:
                console.print(f"[yellow]![/yellow] {path}:{line_no}: invalid JSON ({e.msg})")
                continue
            if not isinstance(event, dict):
                console.print(f"[yellow]![/yellow] {path}:{line_no}: not a JSON object")
                continue
            yield event


def ship_files(forwarder: LogForwarder, paths: list[Path], batch_size: int) -> int:
    """Submit every event from ``paths`` in batches. Returns the number of events read."""
    total = 0
    batch: list[dict] = []
    for path in paths:
        for event in read_events(path):
            batch.append(event)
            if len(batch) >= batch_size:
                forwarder.submit(batch)
                total += len(batch)
                batch = []
    if batch:
        forwarder.submit(batch)
        total += len(batch)
    return total


def render_stats(stats: dict) -> Table:
    table = Table(title="Forwarding summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key in (
        "submitted_records",
        "records_delivered",
        "records_dropped_oversized",
        "payloads_queued",
        "payloads_delivered",
        "payloads_rejected",
        "payloads_exhausted",
        "retries",
    ):
        table.add_row(key, str(stats[key]))
    if stats["last_error"]:
        table.add_row("last_error", stats["last_error"])
    return table


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logforward",
        description="Forward log events to an HTTP log ingestion API",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ship = subparsers.add_parser("ship", help="Ship NDJSON files")
    ship.add_argument("files", nargs="+", type=Path, help="NDJSON files, one event per line")
    ship.add_argument("--endpoint", help="Ingestion endpoint (default: LOGFORWARD_ENDPOINT)")
    ship.add_argument("--max-retries", type=int, help="Retries after the first attempt")
    ship.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Events per submitted batch (default: {DEFAULT_BATCH_SIZE})",
    )
    ship.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.batch_size < 1:
        console.print("[red]✗[/red] --batch-size must be at least 1")
        return 2

    try:
        config = from_env(endpoint=args.endpoint, max_retries=args.max_retries)
        forwarder = LogForwarder(config)
        forwarder.start()
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] Configuration error: {e}")
        return 2

    try:
        total = ship_files(forwarder, args.files, args.batch_size)
    except OSError as e:
        console.print(f"[red]✗[/red] Could not read input: {e}")
        return 1
    finally:
        forwarder.drain()

    stats = forwarder.get_stats()
    console.print(render_stats(stats))

    failed = stats["payloads_rejected"] + stats["payloads_exhausted"]
    if failed or stats["records_dropped_oversized"]:
        console.print(f"[red]✗[/red] {total} events read, some were not delivered")
        return 1

    console.print(f"[green]✓[/green] {total} events delivered")
    return 0


if __name__ == "__main__":
    sys.exit(main())
