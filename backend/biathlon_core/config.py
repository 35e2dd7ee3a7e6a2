from __future__ import annotations

import datetime as dt
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from .timefmt import format_clock, parse_clock, parse_delta

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def data_dir() -> Path:
    return Path(os.getenv("BIATHLON_DATA_DIR") or DEFAULT_DATA_DIR)


@dataclass(frozen=True)
class RaceConfig:
    """Race parameters shared by every competitor of one run."""

    laps: int
    lap_len: float  # metres per main lap
    penalty_len: float  # metres per penalty loop
    firing_lines: int
    start: dt.datetime  # scheduled start, clock time
    start_delta: dt.timedelta  # grace period before a non-starter is disqualified

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RaceConfig":
        """Build a config from the ``config.json`` key layout."""

        missing = [key for key in ("laps", "lapLen", "penaltyLen", "firingLines", "start", "startDelta") if key not in data]
        if missing:
            raise ValueError(f"config is missing required keys: {', '.join(missing)}")

        try:
            laps = int(data["laps"])
            lap_len = float(data["lapLen"])
            penalty_len = float(data["penaltyLen"])
            firing_lines = int(data["firingLines"])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"config contains a non-numeric value: {exc}") from exc

        if laps < 1:
            raise ValueError("laps must be at least 1")
        if lap_len <= 0 or penalty_len <= 0:
            raise ValueError("lapLen and penaltyLen must be positive")
        if firing_lines < 0:
            raise ValueError("firingLines must not be negative")

        return cls(
            laps=laps,
            lap_len=lap_len,
            penalty_len=penalty_len,
            firing_lines=firing_lines,
            start=parse_clock(data["start"]),
            start_delta=parse_delta(data["startDelta"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        seconds = int(self.start_delta.total_seconds())
        hours, rest = divmod(seconds, 3600)
        minutes, secs = divmod(rest, 60)
        return {
            "laps": self.laps,
            "lapLen": self.lap_len,
            "penaltyLen": self.penalty_len,
            "firingLines": self.firing_lines,
            "start": format_clock(self.start),
            "startDelta": f"{hours:02d}:{minutes:02d}:{secs:02d}",
        }


def load_config(path: Path | str | None = None) -> RaceConfig:
    """Load race parameters from JSON.

    Args:
        path: Config file. Defaults to ``BIATHLON_CONFIG`` or ``data/config.json``.
    """
    if path is None:
        path = os.getenv("BIATHLON_CONFIG") or (data_dir() / "config.json")
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Config file {config_path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")

    config = RaceConfig.from_dict(data)
    logger.debug("Loaded race config from %s: %s", config_path, config)
    return config
