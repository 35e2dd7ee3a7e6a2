from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from biathlon_core import EventParseError, Processor, RaceConfig, load_config, parse_events
from biathlon_core.timefmt import format_duration

app = FastAPI(title="Biathlon Race Processor API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)


class RaceConfigPayload(BaseModel):
    laps: int = Field(ge=1)
    lap_len: float = Field(alias="lapLen", gt=0)
    penalty_len: float = Field(alias="penaltyLen", gt=0)
    firing_lines: int = Field(alias="firingLines", ge=0)
    start: str
    start_delta: str = Field(alias="startDelta")

    model_config = ConfigDict(populate_by_name=True)


class ProcessRequest(BaseModel):
    config: Optional[RaceConfigPayload] = None
    events: List[str]


class LapModel(BaseModel):
    duration: str
    speed: float


class ResultRowModel(BaseModel):
    competitor_id: int = Field(alias="competitorId")
    status: Optional[str] = None
    total_time: Optional[str] = Field(default=None, alias="totalTime")
    laps: List[LapModel]
    penalty_time: str = Field(alias="penaltyTime")
    penalty_speed: float = Field(alias="penaltySpeed")
    hits: int
    shots: int
    comment: str = ""
    summary: str

    model_config = ConfigDict(populate_by_name=True)


class ProcessResponse(BaseModel):
    log: List[str]
    report: List[str]
    results: List[ResultRowModel]


@lru_cache(maxsize=1)
def default_config() -> RaceConfig:
    return load_config()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/config", response_model=RaceConfigPayload)
def race_config():
    try:
        config = default_config()
    except (FileNotFoundError, ValueError) as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return RaceConfigPayload(**config.to_dict())


@app.post("/process", response_model=ProcessResponse)
def process_race(payload: ProcessRequest):
    if payload.config is not None:
        try:
            config = RaceConfig.from_dict(payload.config.model_dump(by_alias=True))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    else:
        try:
            config = default_config()
        except (FileNotFoundError, ValueError) as exc:
            logger.exception("Default race configuration is unavailable")
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    try:
        events = parse_events(payload.events)
    except EventParseError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    results = Processor(config).process(events)
    logger.info("Processed %d events for %d competitors", len(events), len(results.rows))

    return ProcessResponse(
        log=results.log_lines,
        report=results.report_lines,
        results=[
            ResultRowModel(
                competitorId=row.competitor_id,
                status=row.status,
                totalTime=format_duration(row.total_time) if row.total_time is not None else None,
                laps=[LapModel(duration=format_duration(lap.duration), speed=round(lap.speed, 3)) for lap in row.laps],
                penaltyTime=format_duration(row.penalty_time),
                penaltySpeed=round(row.penalty_speed, 3),
                hits=row.hits,
                shots=row.shots,
                comment=row.comment,
                summary=row.summary,
            )
            for row in results.rows
        ],
    )
