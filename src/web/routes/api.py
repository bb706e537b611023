from __future__ import annotations

import time
from typing import List, Optional

from fastapi import APIRouter, HTTPException

from ..api_models import AckResponse, BandsResponse, StatusResponse, TelemetryResponse
from ..state import state

router = APIRouter()


def _require_session():
    session = state.get_session()
    if session is None:
        raise HTTPException(status_code=503, detail="No active detection session")
    return session


def _compute_warnings(
    last_frame_age_s: Optional[float],
    warmup_active: bool,
    analysis_errors: int,
    frames_processed: int,
) -> List[str]:
    """
    Warning flags for the status endpoint.

    Thresholds:
    - camera_offline: no frame yet, or last frame older than 10s
    - camera_stale: last frame older than 2s
    - warming_up: detection output still suppressed after stream start
    - analysis_errors_high: more than 10% of frames failed analysis
    """
    warnings = []

    if last_frame_age_s is None or last_frame_age_s > 10:
        warnings.append("camera_offline")
    elif last_frame_age_s > 2:
        warnings.append("camera_stale")

    if warmup_active:
        warnings.append("warming_up")

    if frames_processed > 0 and analysis_errors / frames_processed > 0.1:
        warnings.append("analysis_errors_high")

    return warnings


@router.get("/telemetry", response_model=TelemetryResponse)
def telemetry():
    return _require_session().telemetry.to_dict()


@router.get("/status", response_model=StatusResponse)
def status():
    """
    Session status for polling:
    - running: frames are arriving (no camera_offline warning)
    - calibrating: calibration mode on, detection suppressed
    - state: debouncer state (hits, phase, last trigger, warmup)
    - stats: frame, event, error and calibration counters
    - pending_requests: calibration/reset requests waiting for the next frame
    """
    session = _require_session()
    info = session.status(now=time.time())
    warnings = _compute_warnings(
        info["last_frame_age"],
        info["state"]["warmup_active"],
        info["stats"]["analysis_errors"],
        info["stats"]["frames_processed"],
    )
    return StatusResponse(
        session_id=info["session_id"],
        strategy=info["strategy"],
        running="camera_offline" not in warnings,
        calibrating=info["calibrating"],
        last_frame_age=info["last_frame_age"],
        uptime_seconds=int(state.uptime_seconds()),
        state=info["state"],
        stats=info["stats"],
        pending_requests=session.pending_requests,
        warnings=warnings,
    )


@router.get("/bands", response_model=BandsResponse)
def bands():
    session = _require_session()
    last = session.last_calibration
    return BandsResponse(
        bands=list(session.registry.snapshot().values()),
        last_calibration=last.to_dict() if last is not None else None,
    )


@router.post("/calibration/start", response_model=AckResponse)
def calibration_start():
    _require_session().begin_calibration()
    return AckResponse(detail="Calibration mode on; place the ball in the centre box")


@router.post("/calibration/capture", response_model=AckResponse)
def calibration_capture():
    session = _require_session()
    if not session.is_calibrating:
        raise HTTPException(status_code=409, detail="Calibration mode is not active")
    session.request_calibration()
    return AckResponse(detail="Calibration queued for the next frame")


@router.post("/calibration/cancel", response_model=AckResponse)
def calibration_cancel():
    _require_session().cancel_calibration()
    return AckResponse(detail="Calibration cancelled")


@router.post("/reset", response_model=AckResponse)
def reset():
    _require_session().request_reset()
    return AckResponse(detail="Reset queued for the next frame")
