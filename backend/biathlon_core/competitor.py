from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set

from .timefmt import CLOCK_ZERO, format_duration


class CompetitorStatus(str, Enum):
    NOT_STARTED = "NotStarted"
    NOT_FINISHED = "NotFinished"
    FINISHED = "Finished"


@dataclass
class LapRecord:
    duration: dt.timedelta
    speed: float


@dataclass
class PenaltyRecord:
    duration: dt.timedelta
    speed: float


def _speed(distance: float, duration: dt.timedelta) -> float:
    seconds = duration.total_seconds()
    if seconds == 0:
        return 0.0
    return distance / seconds


@dataclass
class Competitor:
    """Race state of one competitor, rebuilt from the event stream.

    Status stays ``None`` until one of the terminal statuses is reached;
    once set it is never replaced by a later transition.
    """

    competitor_id: int
    registered: bool = False
    start_planned: dt.datetime = CLOCK_ZERO
    start_actual: Optional[dt.datetime] = None
    start_delta: dt.timedelta = dt.timedelta(0)

    lap_starts: List[dt.datetime] = field(default_factory=list)
    laps: List[LapRecord] = field(default_factory=list)
    penalty_starts: List[dt.datetime] = field(default_factory=list)
    penalties: List[PenaltyRecord] = field(default_factory=list)

    hit_count: int = 0
    shot_count: int = 0
    range_hits: Set[int] = field(default_factory=set)  # targets already counted on this range visit

    status: Optional[CompetitorStatus] = None
    total_time: dt.timedelta = dt.timedelta(0)
    comment: str = ""

    @property
    def started(self) -> bool:
        return self.start_actual is not None

    @property
    def is_terminal(self) -> bool:
        return self.status is not None

    def mark_started(self, at: dt.datetime) -> None:
        self.start_actual = at
        self.start_delta = at - self.start_planned

    def enter_firing_range(self) -> None:
        self.range_hits = set()

    def record_hit(self, target: int) -> None:
        if target not in self.range_hits:
            self.hit_count += 1
            self.range_hits.add(target)
        self.shot_count += 1

    def record_lap(self, end: dt.datetime, lap_len: float) -> Optional[LapRecord]:
        """Close the current main lap at ``end``.

        The first lap implicitly begins at the actual start. Returns ``None``
        when there is no lap to close.
        """
        if not self.lap_starts:
            if self.start_actual is None:
                return None
            self.lap_starts.append(self.start_actual)
        duration = end - self.lap_starts[-1]
        lap = LapRecord(duration=duration, speed=_speed(lap_len, duration))
        self.laps.append(lap)
        self.lap_starts.append(end)
        return lap

    def record_penalty(self, end: dt.datetime, penalty_len: float) -> Optional[PenaltyRecord]:
        # The distance is scaled by the hits counted on the latest range visit.
        if not self.penalty_starts:
            return None
        start = self.penalty_starts.pop()
        duration = end - start
        penalty = PenaltyRecord(duration=duration, speed=_speed(penalty_len * len(self.range_hits), duration))
        self.penalties.append(penalty)
        return penalty

    def mark_finished(self, end: dt.datetime) -> bool:
        if self.is_terminal:
            return False
        self.total_time = (end - self.start_planned) + self.start_delta
        self.status = CompetitorStatus.FINISHED
        return True

    def mark_not_finished(self, comment: str) -> bool:
        if self.is_terminal:
            return False
        self.status = CompetitorStatus.NOT_FINISHED
        self.comment = comment
        return True

    def mark_not_started(self) -> None:
        # A non-starter is reported as such even after a "can't continue" event.
        self.status = CompetitorStatus.NOT_STARTED

    @property
    def penalty_time(self) -> dt.timedelta:
        return sum((penalty.duration for penalty in self.penalties), dt.timedelta(0))

    @property
    def penalty_speed(self) -> float:
        distance = sum(penalty.speed * penalty.duration.total_seconds() for penalty in self.penalties)
        return _speed(distance, self.penalty_time)

    def status_tag(self) -> str:
        if self.status == CompetitorStatus.NOT_STARTED:
            return "[NotStarted]"
        if self.status == CompetitorStatus.NOT_FINISHED:
            return "[NotFinished]"
        # Finished, or still without a final status (total time is zero then).
        return f"[{format_duration(self.total_time)}]"

    def result_summary(self) -> str:
        parts = [self.status_tag(), str(self.competitor_id)]
        parts.extend(f"[{format_duration(lap.duration)}, {lap.speed:.3f}]" for lap in self.laps)
        parts.append(f"{{{format_duration(self.penalty_time)}, {self.penalty_speed:.3f}}}")
        parts.append(f"{self.hit_count}/{self.shot_count}")
        return " ".join(parts)
