"""
Pipeline module for the ball pass detector.

The pipeline orchestrates the processing flow:
- Frame acquisition from observation sources
- Per-frame detection through a DetectionSession
- Debounced onMotionDetected() callbacks to the scoring collaborator
"""

from .session import DetectionSession, SessionStats, create_session_from_config
from .engine import (
    AcquisitionError,
    PipelineEngine,
    PipelineConfig,
    PipelineStats,
    create_engine_from_config,
)

__all__ = [
    "DetectionSession",
    "SessionStats",
    "create_session_from_config",
    "AcquisitionError",
    "PipelineEngine",
    "PipelineConfig",
    "PipelineStats",
    "create_engine_from_config",
]
