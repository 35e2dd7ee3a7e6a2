from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Iterable, List

from .timefmt import parse_clock

logger = logging.getLogger(__name__)


class EventKind(IntEnum):
    REGISTERED = 1
    START_TIME_DRAWN = 2
    ON_START_LINE = 3
    STARTED = 4
    ON_FIRING_RANGE = 5
    TARGET_HIT = 6
    LEFT_FIRING_RANGE = 7
    ENTERED_PENALTY = 8
    LEFT_PENALTY = 9
    ENDED_MAIN_LAP = 10
    CANNOT_CONTINUE = 11


class EventParseError(ValueError):
    """Raised when an incoming event line cannot be decoded."""


@dataclass(frozen=True)
class Event:
    time: dt.datetime
    kind: EventKind
    competitor_id: int
    extra: str = ""
    raw: str = ""  # original line, diagnostics only

    @classmethod
    def from_line(cls, line: str) -> "Event":
        """Decode ``[HH:MM:SS.mmm] <kind> <competitor> [extra...]``."""

        raw = line.rstrip("\r\n")
        parts = raw.split()
        if len(parts) < 3:
            raise EventParseError(f"event line needs time, kind and competitor: '{raw}'")

        try:
            time = parse_clock(parts[0])
        except ValueError as exc:
            raise EventParseError(f"failed to parse time: {exc}") from exc

        try:
            code = int(parts[1])
            competitor_id = int(parts[2])
        except ValueError as exc:
            raise EventParseError(f"event kind and competitor must be integers: '{raw}'") from exc

        try:
            kind = EventKind(code)
        except ValueError as exc:
            raise EventParseError(f"unknown event kind {code}") from exc
        if competitor_id < 1:
            raise EventParseError(f"invalid competitor id {competitor_id}")

        extra = " ".join(parts[3:])
        _validate_extra(kind, extra)

        return cls(time=time, kind=kind, competitor_id=competitor_id, extra=extra, raw=raw)

    @property
    def extra_int(self) -> int:
        return int(self.extra)


def _validate_extra(kind: EventKind, extra: str) -> None:
    if kind == EventKind.START_TIME_DRAWN:
        try:
            parse_clock(extra)
        except ValueError as exc:
            raise EventParseError(f"invalid draw time: {exc}") from exc
    elif kind in (EventKind.ON_FIRING_RANGE, EventKind.TARGET_HIT):
        try:
            int(extra)
        except ValueError as exc:
            label = "firing range" if kind == EventKind.ON_FIRING_RANGE else "target"
            raise EventParseError(f"{label} must be an integer, got '{extra}'") from exc


def parse_events(source: Path | str | Iterable[str]) -> List[Event]:
    """Decode every event of a file path or an iterable of lines.

    Blank lines and lines with fewer than three fields are skipped. The first
    malformed line aborts ingestion.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Events file not found: {path}")
        lines: Iterable[str] = path.read_text(encoding="utf-8").splitlines()
    else:
        lines = source

    events: List[Event] = []
    for lineno, line in enumerate(lines, start=1):
        if len(line.split()) < 3:
            continue
        try:
            events.append(Event.from_line(line))
        except EventParseError as exc:
            raise EventParseError(f"line {lineno}: {exc}") from exc

    logger.debug("Parsed %d events", len(events))
    return events
