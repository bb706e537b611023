"""
Position history models for velocity estimation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class TrackedPosition:
    """
    A selected candidate's centre at one capture time.

    Attributes:
        x: Centre x in pixels.
        y: Centre y in pixels.
        timestamp: Capture time in seconds.
    """
    x: float
    y: float
    timestamp: float

    def distance_to(self, other: "TrackedPosition") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)
