from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TelemetryResponse(BaseModel):
    """Advisory diagnostics for the overlay; best-effort accuracy only."""
    area: int
    circularity: float
    velocity: int
    matched_band: str


class DetectorStateModel(BaseModel):
    consecutive_hits: int
    last_trigger_timestamp: Optional[float]
    warmup_active: bool
    stream_start: Optional[float]
    phase: str


class SessionStatsModel(BaseModel):
    frames_processed: int
    events_emitted: int
    analysis_errors: int
    calibrations: int
    last_frame_timestamp: Optional[float]
    last_event_timestamp: Optional[float]
    last_frame_wall_time: Optional[float]


class StatusResponse(BaseModel):
    session_id: str
    strategy: str
    running: bool = Field(..., description="True while frames are arriving")
    calibrating: bool
    last_frame_age: Optional[float]
    uptime_seconds: int
    state: DetectorStateModel
    stats: SessionStatsModel
    pending_requests: List[str]
    warnings: List[str] = Field(default_factory=list)


class BandModel(BaseModel):
    key: str
    name: str
    low: List[int]
    high: List[int]
    low2: List[int]
    high2: List[int]


class BandsResponse(BaseModel):
    bands: List[BandModel]
    last_calibration: Optional[Dict[str, object]] = None


class AckResponse(BaseModel):
    ok: bool = True
    detail: str = ""
