"""
Candidate model for per-frame, per-band ball detections.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class Candidate:
    """
    One contour that survived the geometry filters for one colour band.

    Candidates live for a single frame; the selector keeps at most one of
    them and the rest are dropped with the frame.

    Attributes:
        center: Centre of the minimum enclosing circle (x, y).
        radius: Radius of the minimum enclosing circle.
        area: Contour area in pixels.
        perimeter: Closed contour arc length in pixels.
        circularity: 4*pi*area / perimeter^2, in 0..1.
        aspect_ratio: max(w, h) / min(w, h) of the bounding box, >= 1.
        band: Registry key of the colour band that produced the mask.
        score: area * circularity * (2 - aspect_ratio).
    """
    center: Tuple[float, float]
    radius: float
    area: float
    perimeter: float
    circularity: float
    aspect_ratio: float
    band: str
    score: float

    @property
    def x(self) -> float:
        return self.center[0]

    @property
    def y(self) -> float:
        return self.center[1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": [self.center[0], self.center[1]],
            "radius": self.radius,
            "area": self.area,
            "perimeter": self.perimeter,
            "circularity": self.circularity,
            "aspect_ratio": self.aspect_ratio,
            "band": self.band,
            "score": self.score,
        }
