"""
Colour/shape tracking strategy.

Extracts candidates for every registered band, keeps the best one, and
reports a strong signal when the ball is moving faster than a speed floor.
"""

from __future__ import annotations

from typing import Optional

from models.candidate import Candidate
from models.config import ColorShapeConfig
from models.frame import FrameData
from .base import FrameSignal, SignalDetector
from .candidates import CandidateExtractor, select_best_candidate
from .color_bands import ColorRangeRegistry
from .velocity import VelocityTracker


class ColorShapeDetector(SignalDetector):
    """Multi-colour ball tracker with velocity gating."""

    name = "color_shape"

    def __init__(
        self,
        registry: ColorRangeRegistry,
        extractor: Optional[CandidateExtractor] = None,
        velocity: Optional[VelocityTracker] = None,
        speed_floor: float = 20.0,
    ):
        if speed_floor < 0:
            raise ValueError("speed_floor must be non-negative")
        self.registry = registry
        self.extractor = extractor or CandidateExtractor()
        self.velocity = velocity or VelocityTracker()
        self.speed_floor = speed_floor
        self.last_candidate: Optional[Candidate] = None

    def analyze(self, frame_data: FrameData) -> FrameSignal:
        bands = list(self.registry)
        candidates = self.extractor.extract(frame_data.frame, bands)
        best = select_best_candidate(candidates, [b.key for b in bands])
        self.last_candidate = best

        if best is None:
            self.velocity.clear_velocity()
            return FrameSignal.absent()

        speed = self.velocity.update(best.x, best.y, frame_data.timestamp)
        return FrameSignal(
            strong=speed > self.speed_floor,
            present=True,
            score=best.score,
            velocity=speed,
            candidate=best,
        )

    def clear_motion(self) -> None:
        self.last_candidate = None
        self.velocity.clear_velocity()

    def reset(self) -> None:
        self.last_candidate = None
        self.velocity.reset()

    @classmethod
    def from_config(cls, cfg: ColorShapeConfig, registry: ColorRangeRegistry) -> "ColorShapeDetector":
        return cls(
            registry=registry,
            extractor=CandidateExtractor.from_config(cfg),
            velocity=VelocityTracker(history_size=cfg.history_size),
            speed_floor=cfg.speed_floor,
        )
