"""
Colour/shape candidate extraction and cross-band selection.

For every registered band the frame is thresholded independently, so one
band's mask never leaks into another's. Each cleaned mask is reduced to
external contours, which are filtered on area, circularity and bounding-box
aspect ratio and scored as area * circularity * (2 - aspect_ratio).
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Sequence

import cv2
import numpy as np

from models.candidate import Candidate
from models.color_band import ColorBand
from models.config import ColorShapeConfig


class FrameBuffers:
    """
    Per-frame masks and contour lists.

    Used as a context manager around one frame's extraction; everything it
    holds is dropped on exit, including when a contour is rejected early or
    an OpenCV call raises.
    """

    def __init__(self) -> None:
        self.masks: Dict[str, np.ndarray] = {}
        self.contours: Dict[str, Sequence[np.ndarray]] = {}

    def __enter__(self) -> "FrameBuffers":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def release(self) -> None:
        self.masks.clear()
        self.contours.clear()

    @property
    def empty(self) -> bool:
        return not self.masks and not self.contours


def to_hsv(frame: np.ndarray, blur_kernel: int = 5) -> np.ndarray:
    """BGR frame -> blurred HSV (OpenCV scale)."""
    if frame.ndim == 2:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    elif frame.shape[2] == 4:
        frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)
    if blur_kernel > 1:
        hsv = cv2.GaussianBlur(hsv, (blur_kernel, blur_kernel), 0)
    return hsv


def band_mask(hsv: np.ndarray, band: ColorBand, kernel: np.ndarray) -> np.ndarray:
    """Primary OR secondary range, then one opening and one closing pass."""
    mask = cv2.inRange(hsv, np.array(band.low, dtype=np.uint8), np.array(band.high, dtype=np.uint8))
    if band.wraps:
        mask2 = cv2.inRange(
            hsv, np.array(band.low2, dtype=np.uint8), np.array(band.high2, dtype=np.uint8)
        )
        mask = cv2.bitwise_or(mask, mask2)
    mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, kernel)
    mask = cv2.morphologyEx(mask, cv2.MORPH_CLOSE, kernel)
    return mask


def circularity(area: float, perimeter: float) -> float:
    if perimeter <= 0:
        return 0.0
    return (4.0 * math.pi * area) / (perimeter * perimeter)


class CandidateExtractor:
    """
    Finds ball-like regions for every colour band in a frame.

    Args:
        min_area_floor: Absolute minimum contour area in pixels.
        min_area_ratio: Minimum area as a fraction of the frame area.
        max_area_ratio: Maximum area as a fraction of the frame area; keeps
            a colour cast over most of the frame from matching.
        min_circularity: Contours less round than this are dropped.
        max_aspect_ratio: Contours more elongated than this are dropped.
        blur_kernel: Gaussian blur size applied in HSV space.
        morph_kernel: Side of the square structuring element.
    """

    def __init__(
        self,
        min_area_floor: float = 300.0,
        min_area_ratio: float = 0.0002,
        max_area_ratio: float = 0.15,
        min_circularity: float = 0.4,
        max_aspect_ratio: float = 1.8,
        blur_kernel: int = 5,
        morph_kernel: int = 5,
    ):
        if not 0 < max_area_ratio <= 1:
            raise ValueError("max_area_ratio must be in (0, 1]")
        if not 0 <= min_circularity <= 1:
            raise ValueError("min_circularity must be in [0, 1]")
        if not 1 <= max_aspect_ratio < 2:
            raise ValueError("max_aspect_ratio must be in [1, 2)")
        if blur_kernel < 1 or blur_kernel % 2 == 0:
            raise ValueError("blur_kernel must be a positive odd integer")
        self.min_area_floor = min_area_floor
        self.min_area_ratio = min_area_ratio
        self.max_area_ratio = max_area_ratio
        self.min_circularity = min_circularity
        self.max_aspect_ratio = max_aspect_ratio
        self.blur_kernel = blur_kernel
        self.kernel = np.ones((morph_kernel, morph_kernel), dtype=np.uint8)

    def area_limits(self, width: int, height: int):
        frame_area = width * height
        min_area = max(self.min_area_floor, frame_area * self.min_area_ratio)
        max_area = frame_area * self.max_area_ratio
        return min_area, max_area

    def extract(self, frame: np.ndarray, bands: Iterable[ColorBand]) -> List[Candidate]:
        """Candidates for all bands, grouped in band order."""
        height, width = frame.shape[:2]
        min_area, max_area = self.area_limits(width, height)
        hsv = to_hsv(frame, self.blur_kernel)

        candidates: List[Candidate] = []
        with FrameBuffers() as buffers:
            for band in bands:
                buffers.masks[band.key] = band_mask(hsv, band, self.kernel)
                contours, _ = cv2.findContours(
                    buffers.masks[band.key], cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE
                )
                buffers.contours[band.key] = contours
                for contour in contours:
                    candidate = self.evaluate_contour(contour, band.key, min_area, max_area)
                    if candidate is not None:
                        candidates.append(candidate)
        return candidates

    def evaluate_contour(
        self, contour: np.ndarray, band_key: str, min_area: float, max_area: float
    ) -> Optional[Candidate]:
        """Apply the geometry filters to one contour; None when rejected."""
        area = float(cv2.contourArea(contour))
        if area < min_area or area > max_area:
            return None

        perimeter = float(cv2.arcLength(contour, True))
        if perimeter <= 0:
            return None
        circ = circularity(area, perimeter)
        if circ < self.min_circularity:
            return None

        (cx, cy), radius = cv2.minEnclosingCircle(contour)
        _, _, w, h = cv2.boundingRect(contour)
        aspect_ratio = max(w, h) / max(1, min(w, h))
        if aspect_ratio > self.max_aspect_ratio:
            return None

        return Candidate(
            center=(float(cx), float(cy)),
            radius=float(radius),
            area=area,
            perimeter=perimeter,
            circularity=circ,
            aspect_ratio=float(aspect_ratio),
            band=band_key,
            score=area * circ * (2.0 - aspect_ratio),
        )

    @classmethod
    def from_config(cls, cfg: ColorShapeConfig) -> "CandidateExtractor":
        return cls(
            min_area_floor=cfg.min_area_floor,
            min_area_ratio=cfg.min_area_ratio,
            max_area_ratio=cfg.max_area_ratio,
            min_circularity=cfg.min_circularity,
            max_aspect_ratio=cfg.max_aspect_ratio,
            blur_kernel=cfg.blur_kernel,
            morph_kernel=cfg.morph_kernel,
        )


def select_best_candidate(
    candidates: Sequence[Candidate], band_order: Sequence[str]
) -> Optional[Candidate]:
    """
    Highest-scoring candidate across all bands.

    Ties go to the band registered first, then to the candidate extracted
    first. Returns None when there are no candidates.
    """
    if not candidates:
        return None
    rank = {key: i for i, key in enumerate(band_order)}
    best_index = min(
        range(len(candidates)),
        key=lambda i: (-candidates[i].score, rank.get(candidates[i].band, len(rank)), i),
    )
    return candidates[best_index]
