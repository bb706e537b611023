"""
Frame-differencing motion detector.

Cheap, colour-agnostic: downsample to a small square, compare against the
previous downsampled frame at strided sample positions, count the positions
that changed by more than a noise threshold.
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from models.config import FrameDiffConfig
from models.frame import FrameData
from .base import FrameSignal, SignalDetector


class FrameDifferencer:
    """
    Scores motion between consecutive frames.

    Only the previous downsampled frame is kept between calls.
    """

    def __init__(self, size: int = 100, sample_stride: int = 4, pixel_threshold: int = 100):
        if size <= 0:
            raise ValueError("size must be positive")
        if sample_stride <= 0:
            raise ValueError("sample_stride must be positive")
        if pixel_threshold < 0:
            raise ValueError("pixel_threshold must be non-negative")
        self.size = size
        self.sample_stride = sample_stride
        self.pixel_threshold = pixel_threshold
        self._previous: Optional[np.ndarray] = None

    @property
    def has_previous(self) -> bool:
        return self._previous is not None

    def downsample(self, frame: np.ndarray) -> np.ndarray:
        if frame.ndim == 2:
            frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        small = cv2.resize(frame[..., :3], (self.size, self.size), interpolation=cv2.INTER_AREA)
        # Flattened pixel list, subsampled; int16 so differences don't wrap
        return small.reshape(-1, 3)[:: self.sample_stride].astype(np.int16)

    def score(self, frame: np.ndarray) -> int:
        """
        Number of sampled pixels whose summed |dB|+|dG|+|dR| exceeds the
        noise threshold. The first frame after a reset scores 0.
        """
        current = self.downsample(frame)
        previous = self._previous
        self._previous = current
        if previous is None or previous.shape != current.shape:
            return 0
        diff = np.abs(current - previous).sum(axis=1)
        return int(np.count_nonzero(diff > self.pixel_threshold))

    def reset(self) -> None:
        self._previous = None


class FrameDiffDetector(SignalDetector):
    """Strong signal when the motion score exceeds the configured sensitivity."""

    name = "frame_diff"

    def __init__(self, differencer: FrameDifferencer, sensitivity: int = 400):
        if sensitivity < 0:
            raise ValueError("sensitivity must be non-negative")
        self.differencer = differencer
        self.sensitivity = sensitivity

    def analyze(self, frame_data: FrameData) -> FrameSignal:
        score = self.differencer.score(frame_data.frame)
        return FrameSignal(strong=score > self.sensitivity, present=True, score=float(score))

    def reset(self) -> None:
        self.differencer.reset()

    @classmethod
    def from_config(cls, cfg: FrameDiffConfig) -> "FrameDiffDetector":
        differencer = FrameDifferencer(
            size=cfg.size,
            sample_stride=cfg.sample_stride,
            pixel_threshold=cfg.pixel_threshold,
        )
        return cls(differencer, sensitivity=cfg.sensitivity)
