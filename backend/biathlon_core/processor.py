from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .competitor import Competitor, CompetitorStatus, LapRecord
from .config import RaceConfig
from .event import Event, EventKind
from .timefmt import format_clock, parse_clock

logger = logging.getLogger(__name__)

FINISH_ANNOUNCE_OFFSET = dt.timedelta(seconds=1)


@dataclass
class ResultRow:
    competitor_id: int
    status: Optional[str]  # None while the competitor has no final status
    total_time: Optional[dt.timedelta]
    laps: List[LapRecord]
    penalty_time: dt.timedelta
    penalty_speed: float
    hits: int
    shots: int
    comment: str = ""
    summary: str = ""


@dataclass
class ProcessResults:
    log_lines: List[str] = field(default_factory=list)
    report_lines: List[str] = field(default_factory=list)
    rows: List[ResultRow] = field(default_factory=list)


class Processor:
    """Replays one race worth of events against per-competitor state.

    Every call to :meth:`process` starts from an empty registry and log.
    """

    def __init__(self, config: RaceConfig) -> None:
        self.config = config
        self.competitors: Dict[int, Competitor] = {}
        self.log_lines: List[str] = []

    def reset(self) -> None:
        self.competitors = {}
        self.log_lines = []

    def process(self, events: Iterable[Event]) -> ProcessResults:
        self.reset()
        for event in events:
            self.apply(event)
        self.disqualify_non_starters()

        ordered = self.ordered_competitors()
        return ProcessResults(
            log_lines=list(self.log_lines),
            report_lines=[competitor.result_summary() for competitor in ordered],
            rows=[self._result_row(competitor) for competitor in ordered],
        )

    def competitor(self, competitor_id: int) -> Competitor:
        if competitor_id not in self.competitors:
            self.competitors[competitor_id] = Competitor(competitor_id=competitor_id)
        return self.competitors[competitor_id]

    def ordered_competitors(self) -> List[Competitor]:
        return [self.competitors[key] for key in sorted(self.competitors)]

    def apply(self, event: Event) -> None:
        competitor = self.competitor(event.competitor_id)
        competitor_id = competitor.competitor_id
        kind = event.kind
        logger.debug("Applying %s to competitor %d", kind.name, competitor_id)

        if kind == EventKind.REGISTERED:
            competitor.registered = True
            self._log(event.time, f"The competitor({competitor_id}) registered")

        elif kind == EventKind.START_TIME_DRAWN:
            competitor.start_planned = parse_clock(event.extra)
            self._log(
                event.time,
                f"The start time for the competitor({competitor_id}) was set by a draw to {event.extra}",
            )

        elif kind == EventKind.ON_START_LINE:
            self._log(event.time, f"The competitor({competitor_id}) is on the start line")

        elif kind == EventKind.STARTED:
            competitor.mark_started(event.time)
            self._log(event.time, f"The competitor({competitor_id}) has started")

        elif kind == EventKind.ON_FIRING_RANGE:
            competitor.enter_firing_range()
            self._log(event.time, f"The competitor({competitor_id}) is on the firing range({event.extra_int})")

        elif kind == EventKind.TARGET_HIT:
            target = event.extra_int
            competitor.record_hit(target)
            self._log(event.time, f"The target({target}) has been hit by competitor({competitor_id})")

        elif kind == EventKind.LEFT_FIRING_RANGE:
            self._log(event.time, f"The competitor({competitor_id}) left the firing range")

        elif kind == EventKind.ENTERED_PENALTY:
            competitor.penalty_starts.append(event.time)
            self._log(event.time, f"The competitor({competitor_id}) entered the penalty laps")

        elif kind == EventKind.LEFT_PENALTY:
            if competitor.record_penalty(event.time, self.config.penalty_len) is None:
                logger.warning("Competitor %d left the penalty laps without entering them", competitor_id)
            self._log(event.time, f"The competitor({competitor_id}) left the penalty laps")

        elif kind == EventKind.ENDED_MAIN_LAP:
            self._end_lap(competitor, event)

        elif kind == EventKind.CANNOT_CONTINUE:
            if not competitor.mark_not_finished(event.extra):
                logger.warning(
                    "Competitor %d already has status %s; ignoring retirement",
                    competitor_id,
                    competitor.status.value,
                )
            self._log(event.time, f"The competitor({competitor_id}) can't continue: {event.extra}")

    def _end_lap(self, competitor: Competitor, event: Event) -> None:
        competitor_id = competitor.competitor_id
        if len(competitor.laps) >= self.config.laps:
            logger.warning(
                "Competitor %d already completed %d laps; ignoring extra lap", competitor_id, self.config.laps
            )
            recorded = None
        else:
            recorded = competitor.record_lap(event.time, self.config.lap_len)
            if recorded is None:
                logger.warning("Competitor %d ended a lap without having started", competitor_id)
        self._log(event.time, f"The competitor({competitor_id}) ended the main lap")

        if recorded is not None and len(competitor.laps) == self.config.laps:
            if competitor.mark_finished(event.time):
                self._log(event.time + FINISH_ANNOUNCE_OFFSET, f"The competitor({competitor_id}) has finished")
            else:
                logger.warning(
                    "Competitor %d completed all laps with status %s", competitor_id, competitor.status.value
                )

    def disqualify_non_starters(self) -> None:
        for competitor in self.ordered_competitors():
            if competitor.registered and not competitor.started:
                competitor.mark_not_started()
                self._log(
                    competitor.start_planned + self.config.start_delta,
                    f"The competitor({competitor.competitor_id}) is disqualified",
                )

    def _log(self, at: dt.datetime, message: str) -> None:
        self.log_lines.append(f"[{format_clock(at)}] {message}")

    @staticmethod
    def _result_row(competitor: Competitor) -> ResultRow:
        finished = competitor.status == CompetitorStatus.FINISHED
        return ResultRow(
            competitor_id=competitor.competitor_id,
            status=competitor.status.value if competitor.status is not None else None,
            total_time=competitor.total_time if finished else None,
            laps=list(competitor.laps),
            penalty_time=competitor.penalty_time,
            penalty_speed=competitor.penalty_speed,
            hits=competitor.hit_count,
            shots=competitor.shot_count,
            comment=competitor.comment,
            summary=competitor.result_summary(),
        )


def process(events: Iterable[Event], config: RaceConfig) -> Tuple[List[str], List[str]]:
    """Run one race and return ``(log_lines, report_lines)``."""

    results = Processor(config).process(events)
    return results.log_lines, results.report_lines
