"""
Colour calibration from a centre sample.

The user holds the ball in a box at the middle of the frame and taps. The
mean HSV of that box is classified against a small decision table to pick
which band to rewrite, and that band's thresholds are rebuilt around the
sampled colour. Classification never fails: a colour that matches no rule
updates the tennis-ball band.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Tuple

import numpy as np

from models.color_band import EMPTY_RANGE, HSV, HUE_MAX
from models.config import CalibrationConfig
from models.frame import FrameData
from .candidates import to_hsv
from .color_bands import ColorRangeRegistry

HsvPredicate = Callable[[float, float, float], bool]

FALLBACK_BAND = "tennis_ball"
MIN_HUE_SATURATION = 50

# Disjoint: the hue rules need saturation, white needs its absence.
# Greys have hue 0 and would otherwise read as red.
CLASSIFICATION_RULES: List[Tuple[str, HsvPredicate]] = [
    ("tennis_ball", lambda h, s, v: 20 <= h <= 40 and s >= MIN_HUE_SATURATION),
    ("cricket_red", lambda h, s, v: (h < 15 or h > 165) and s >= MIN_HUE_SATURATION),
    ("cricket_white", lambda h, s, v: s < MIN_HUE_SATURATION and v > 150),
]


@dataclass(frozen=True)
class CalibrationResult:
    band: str
    mean_hsv: Tuple[float, float, float]
    low: HSV
    high: HSV
    low2: HSV
    high2: HSV

    @property
    def wraps(self) -> bool:
        return self.high2 != EMPTY_RANGE

    def to_dict(self) -> dict:
        return {
            "band": self.band,
            "mean_hsv": list(self.mean_hsv),
            "low": list(self.low),
            "high": list(self.high),
            "low2": list(self.low2),
            "high2": list(self.high2),
        }


def classify_color(h: float, s: float, v: float, rules=None) -> str:
    for band, predicate in (CLASSIFICATION_RULES if rules is None else rules):
        if predicate(h, s, v):
            return band
    return FALLBACK_BAND


def sample_region_mean(hsv: np.ndarray, size: int = 80) -> Tuple[float, float, float]:
    """Mean HSV over a size x size square at the frame centre, clipped to the frame."""
    height, width = hsv.shape[:2]
    cx, cy = width // 2, height // 2
    half = size // 2
    x0, x1 = max(0, cx - half), min(width, cx - half + size)
    y0, y1 = max(0, cy - half), min(height, cy - half + size)
    region = hsv[y0:y1, x0:x1].reshape(-1, hsv.shape[2])
    mean = region[:, :3].astype(np.float64).mean(axis=0)
    return (float(mean[0]), float(mean[1]), float(mean[2]))


def _clamp(value: float, top: int) -> int:
    return int(round(min(top, max(0, value))))


def build_calibrated_bounds(
    h: float,
    s: float,
    v: float,
    hue_tolerance: int = 25,
    saturation_tolerance: int = 100,
    value_tolerance: int = 100,
) -> Tuple[HSV, HSV, HSV, HSV]:
    """
    Thresholds centred on a sampled colour.

    Each channel gets mean +/- tolerance clamped to its valid range and the
    result is returned as (low, high, low2, high2). A hue closer than the
    tolerance to either end of the hue axis is split into a primary range
    starting at 0 and a secondary range ending at HUE_MAX; otherwise the
    secondary range is empty.
    """
    s_low, s_high = _clamp(s - saturation_tolerance, 255), _clamp(s + saturation_tolerance, 255)
    v_low, v_high = _clamp(v - value_tolerance, 255), _clamp(v + value_tolerance, 255)

    if h < hue_tolerance:
        low: HSV = (0, s_low, v_low)
        high: HSV = (_clamp(h + hue_tolerance, HUE_MAX), s_high, v_high)
        low2: HSV = (_clamp(h - hue_tolerance + HUE_MAX, HUE_MAX), s_low, v_low)
        return low, high, low2, (HUE_MAX, s_high, v_high)

    if h > HUE_MAX - hue_tolerance:
        low = (0, s_low, v_low)
        high = (_clamp(h + hue_tolerance - HUE_MAX, HUE_MAX), s_high, v_high)
        low2 = (_clamp(h - hue_tolerance, HUE_MAX), s_low, v_low)
        return low, high, low2, (HUE_MAX, s_high, v_high)

    low = (_clamp(h - hue_tolerance, HUE_MAX), s_low, v_low)
    high = (_clamp(h + hue_tolerance, HUE_MAX), s_high, v_high)
    return low, high, EMPTY_RANGE, EMPTY_RANGE


class Calibrator:
    """Samples a frame and rewrites exactly one band in the registry."""

    def __init__(
        self,
        sample_size: int = 80,
        hue_tolerance: int = 25,
        saturation_tolerance: int = 100,
        value_tolerance: int = 100,
        blur_kernel: int = 5,
    ):
        if sample_size <= 0:
            raise ValueError("sample_size must be positive")
        if not 0 <= hue_tolerance < HUE_MAX // 2:
            raise ValueError("hue_tolerance must be in [0, 90)")
        self.sample_size = sample_size
        self.hue_tolerance = hue_tolerance
        self.saturation_tolerance = saturation_tolerance
        self.value_tolerance = value_tolerance
        self.blur_kernel = blur_kernel

    def calibrate(self, frame_data: FrameData, registry: ColorRangeRegistry) -> CalibrationResult:
        hsv = to_hsv(frame_data.frame, self.blur_kernel)
        h, s, v = sample_region_mean(hsv, self.sample_size)
        band = classify_color(h, s, v)
        if band not in registry:
            # Custom band sets may not carry the default keys
            band = registry.names()[0]
        low, high, low2, high2 = build_calibrated_bounds(
            h, s, v,
            hue_tolerance=self.hue_tolerance,
            saturation_tolerance=self.saturation_tolerance,
            value_tolerance=self.value_tolerance,
        )
        registry.update(band, low, high, low2, high2)
        logging.info(
            f"Calibrated band {band}: mean HSV=({h:.1f}, {s:.1f}, {v:.1f}) "
            f"low={low} high={high}" + (f" low2={low2} high2={high2}" if high2 != EMPTY_RANGE else "")
        )
        return CalibrationResult(
            band=band, mean_hsv=(h, s, v), low=low, high=high, low2=low2, high2=high2
        )

    @classmethod
    def from_config(cls, cfg: CalibrationConfig, blur_kernel: int = 5) -> "Calibrator":
        return cls(
            sample_size=cfg.sample_size,
            hue_tolerance=cfg.hue_tolerance,
            saturation_tolerance=cfg.saturation_tolerance,
            value_tolerance=cfg.value_tolerance,
            blur_kernel=blur_kernel,
        )
