"""Biathlon race domain: event replay, competitor state and final report."""

from .competitor import Competitor, CompetitorStatus
from .config import RaceConfig, load_config
from .event import Event, EventKind, EventParseError, parse_events
from .processor import Processor, ProcessResults, ResultRow, process

__all__ = [
    "Competitor",
    "CompetitorStatus",
    "Event",
    "EventKind",
    "EventParseError",
    "ProcessResults",
    "Processor",
    "RaceConfig",
    "ResultRow",
    "load_config",
    "parse_events",
    "process",
]
