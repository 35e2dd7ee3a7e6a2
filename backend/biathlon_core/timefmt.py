from __future__ import annotations

import datetime as dt
import re

CLOCK_FORMAT = "%H:%M:%S.%f"
DELTA_RE = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})$")

# Clock times share one reference date so subtracting them yields a timedelta.
CLOCK_ZERO = dt.datetime(1900, 1, 1)


def parse_clock(text: str) -> dt.datetime:
    raw = str(text or "").strip().strip("[]")
    if len(raw.rsplit(".", 1)[-1]) != 3:
        raise ValueError(f"invalid time '{text}', expected HH:MM:SS.mmm")
    try:
        return dt.datetime.strptime(raw, CLOCK_FORMAT)
    except ValueError as exc:
        raise ValueError(f"invalid time '{text}', expected HH:MM:SS.mmm") from exc


def parse_delta(text: str) -> dt.timedelta:
    match = DELTA_RE.match(str(text or "").strip())
    if not match:
        raise ValueError(f"invalid duration '{text}', expected HH:MM:SS")
    hours, minutes, seconds = (int(part) for part in match.groups())
    if minutes > 59 or seconds > 59:
        raise ValueError(f"invalid duration '{text}', expected HH:MM:SS")
    return dt.timedelta(hours=hours, minutes=minutes, seconds=seconds)


def format_clock(value: dt.datetime) -> str:
    return value.strftime(CLOCK_FORMAT)[:-3]


def format_duration(value: dt.timedelta) -> str:
    """Render a duration the way report readers expect, e.g. ``9m30s`` or ``1m52.476s``.

    Units below a second switch to ``ms``/``µs``; zero is ``0s``.
    """
    micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    if micros < 1000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        whole, frac = divmod(micros, 1000)
        return f"{sign}{whole}{_fraction(frac, 3)}ms"

    total_seconds, frac = divmod(micros, 1_000_000)
    minutes, seconds = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)
    text = f"{seconds}{_fraction(frac, 6)}s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return sign + text


def _fraction(value: int, width: int) -> str:
    if not value:
        return ""
    return "." + f"{value:0{width}d}".rstrip("0")
