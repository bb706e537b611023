"""
Detection interfaces.

Two strategies share one trigger:
- frame differencing (coarse, colour-agnostic)
- colour segmentation + shape scoring with velocity estimation

Each strategy reduces a frame to a FrameSignal; the EventDebouncer turns the
stream of signals into events.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from models.candidate import Candidate
from models.frame import FrameData


@dataclass(frozen=True)
class FrameSignal:
    """
    Per-frame output of a detection strategy.

    strong is the "motion strong enough" boolean fed to the debouncer.
    present is False when the strategy found nothing to follow (no candidate),
    which resets the hit counter instead of decaying it.
    """

    strong: bool = False
    present: bool = True
    score: float = 0.0
    velocity: float = 0.0
    candidate: Optional[Candidate] = None

    @classmethod
    def absent(cls) -> "FrameSignal":
        return cls(strong=False, present=False)


class SignalDetector(ABC):
    """Strategy interface: one analyze() call per frame, in arrival order."""

    name: str = "detector"

    @abstractmethod
    def analyze(self, frame_data: FrameData) -> FrameSignal:
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Drop all cross-frame state (previous frame, position history)."""
        raise NotImplementedError

    def clear_motion(self) -> None:
        """Called when a frame's analysis failed; default is a no-op."""
