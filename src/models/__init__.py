"""
Typed models for the ball pass detector.

Frames, colour bands, candidates and per-session state are plain dataclasses;
the detection modules own all behaviour.
"""

from .frame import FrameData
from .color_band import ColorBand, DEFAULT_BANDS, EMPTY_RANGE
from .candidate import Candidate
from .track import TrackedPosition
from .status import DetectorState, DetectionResult, DebugInfo, Telemetry, TriggerPhase
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    FrameDiffConfig,
    ColorShapeConfig,
    DebounceConfig,
    CalibrationConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Colour bands
    "ColorBand",
    "DEFAULT_BANDS",
    "EMPTY_RANGE",
    # Detection
    "Candidate",
    "TrackedPosition",
    # State
    "DetectorState",
    "DetectionResult",
    "DebugInfo",
    "Telemetry",
    "TriggerPhase",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "FrameDiffConfig",
    "ColorShapeConfig",
    "DebounceConfig",
    "CalibrationConfig",
    "WebConfig",
]
