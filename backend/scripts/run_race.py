"""CLI helper that replays a race event file and prints the log and final report."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from biathlon_core import EventParseError, Processor, load_config, parse_events
from biathlon_core.config import data_dir


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay biathlon competition events.")
    parser.add_argument("--config", type=Path, default=None, help="race config JSON (default: BIATHLON_CONFIG or data/config.json)")
    parser.add_argument("--events", type=Path, default=None, help="events file (default: BIATHLON_EVENTS or data/events)")
    parser.add_argument("--log-level", default="WARNING", help="diagnostic logging level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    events_path = args.events or Path(os.getenv("BIATHLON_EVENTS") or (data_dir() / "events"))
    try:
        config = load_config(args.config)
        events = parse_events(events_path)
    except (FileNotFoundError, EventParseError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    results = Processor(config).process(events)

    print("==== EVENT LOG ====")
    for line in results.log_lines:
        print(line)
    print()
    print("==== FINAL REPORT ====")
    for line in results.report_lines:
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
