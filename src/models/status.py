"""
Per-session detector state and per-frame detection results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

NO_BAND = "None"


class TriggerPhase(str, Enum):
    """Debouncer phase: Idle -> Accumulating -> Triggered -> Idle."""
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    TRIGGERED = "triggered"


@dataclass
class DetectorState:
    """
    State that survives across frames for one camera session.

    Attributes:
        consecutive_hits: Saturating hit counter.
        last_trigger_timestamp: Time of the last emitted event (None before the first).
        warmup_active: True while detection output is suppressed after stream start.
        stream_start: Timestamp of the first frame since the last reset.
        phase: Current debouncer phase.
    """
    consecutive_hits: int = 0
    last_trigger_timestamp: Optional[float] = None
    warmup_active: bool = True
    stream_start: Optional[float] = None
    phase: TriggerPhase = TriggerPhase.IDLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "consecutive_hits": self.consecutive_hits,
            "last_trigger_timestamp": self.last_trigger_timestamp,
            "warmup_active": self.warmup_active,
            "stream_start": self.stream_start,
            "phase": self.phase.value,
        }


@dataclass(frozen=True)
class DebugInfo:
    score: float = 0.0
    velocity: float = 0.0
    matched_band: Optional[str] = None


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of processing one frame."""
    triggered: bool = False
    debug_info: DebugInfo = field(default_factory=DebugInfo)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "triggered": self.triggered,
            "debug_info": {
                "score": self.debug_info.score,
                "velocity": self.debug_info.velocity,
                "matched_band": self.debug_info.matched_band,
            },
        }


@dataclass(frozen=True)
class Telemetry:
    """
    Advisory diagnostics for display.

    Values are rounded the way the overlay shows them: area and velocity to
    integers, circularity to two decimals.
    """
    area: int = 0
    circularity: float = 0.0
    velocity: int = 0
    matched_band: str = NO_BAND

    def to_dict(self) -> Dict[str, Any]:
        return {
            "area": self.area,
            "circularity": self.circularity,
            "velocity": self.velocity,
            "matched_band": self.matched_band,
        }
