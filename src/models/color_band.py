"""
ColorBand model: a named HSV range for one class of trackable ball.

HSV triples use the OpenCV scale: hue 0-180, saturation and value 0-255.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

HSV = Tuple[int, int, int]

HUE_MAX = 180
CHANNEL_MAX = (HUE_MAX, 255, 255)

# Secondary bounds for bands that do not wrap around the hue axis
EMPTY_RANGE: HSV = (0, 0, 0)


def _as_hsv(values: Sequence[float]) -> HSV:
    if len(values) < 3:
        raise ValueError(f"HSV bound needs 3 components, got {list(values)}")
    return (int(round(values[0])), int(round(values[1])), int(round(values[2])))


def _check_range(name: str, low: HSV, high: HSV) -> None:
    for i, (lo, hi, top) in enumerate(zip(low, high, CHANNEL_MAX)):
        if lo < 0 or hi > top:
            raise ValueError(f"{name}: channel {i} bounds {lo}..{hi} outside 0..{top}")
        if lo > hi:
            raise ValueError(f"{name}: channel {i} low {lo} is above high {hi}")


@dataclass(frozen=True)
class ColorBand:
    """
    HSV thresholds for one ball colour.

    Attributes:
        key: Registry identifier (e.g. "cricket_red").
        name: Display name (e.g. "Cricket Red").
        low: Lower bound of the primary range.
        high: Upper bound of the primary range.
        low2: Lower bound of the secondary (hue wraparound) range.
        high2: Upper bound of the secondary range.
    """
    key: str
    name: str
    low: HSV
    high: HSV
    low2: HSV = EMPTY_RANGE
    high2: HSV = EMPTY_RANGE

    def __post_init__(self) -> None:
        # Normalise list/float input so equality and hashing behave
        object.__setattr__(self, "low", _as_hsv(self.low))
        object.__setattr__(self, "high", _as_hsv(self.high))
        object.__setattr__(self, "low2", _as_hsv(self.low2))
        object.__setattr__(self, "high2", _as_hsv(self.high2))

        _check_range(f"{self.key} primary", self.low, self.high)
        if self.wraps:
            _check_range(f"{self.key} secondary", self.low2, self.high2)
        elif self.low2 != EMPTY_RANGE or self.high2 != EMPTY_RANGE:
            raise ValueError(
                f"{self.key}: secondary range must be well-formed or the empty marker"
            )

    @property
    def wraps(self) -> bool:
        """True when the band carries a non-empty secondary range."""
        return self.high2 != EMPTY_RANGE

    def with_bounds(
        self,
        low: Sequence[float],
        high: Sequence[float],
        low2: Sequence[float] = EMPTY_RANGE,
        high2: Sequence[float] = EMPTY_RANGE,
    ) -> "ColorBand":
        """Return a copy with new thresholds and the same identity."""
        return ColorBand(
            key=self.key,
            name=self.name,
            low=_as_hsv(low),
            high=_as_hsv(high),
            low2=_as_hsv(low2),
            high2=_as_hsv(high2),
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ColorBand":
        return cls(
            key=d["key"],
            name=d.get("name", d["key"]),
            low=d["low"],
            high=d["high"],
            low2=d.get("low2", EMPTY_RANGE),
            high2=d.get("high2", EMPTY_RANGE),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "low": list(self.low),
            "high": list(self.high),
            "low2": list(self.low2),
            "high2": list(self.high2),
        }


# Default bands, in registry (tie-break) order
DEFAULT_BANDS: Tuple[ColorBand, ...] = (
    ColorBand(
        key="tennis_ball",
        name="Tennis Ball",
        low=(20, 80, 80),
        high=(40, 255, 255),
    ),
    ColorBand(
        key="cricket_red",
        name="Cricket Red",
        low=(0, 120, 100),
        high=(10, 255, 255),
        low2=(170, 120, 100),
        high2=(180, 255, 255),
    ),
    ColorBand(
        key="cricket_white",
        name="Cricket White",
        low=(0, 0, 180),
        high=(180, 30, 255),
    ),
)
