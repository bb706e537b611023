"""
OpenCV capture adapter: camera indexes and recorded video files.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import FrameData
from .base import ObservationConfig, ObservationSource

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}

# (horizontal, vertical) -> cv2.flip code
_FLIP_CODES = {
    (True, False): 1,
    (False, True): 0,
    (True, True): -1,
}


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based observation sources.

    Attributes:
        device_id: Camera index (int) or video file path (str).
        buffer_size: OpenCV capture buffer size (reduces latency for live feeds).
        settle_seconds: Pause after opening a camera before the first read.
        rotate: Rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Flip frame horizontally.
        flip_vertical: Flip frame vertically.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    settle_seconds: float = 0.5
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Adapter: Create OpenCVSourceConfig from the camera config dict."""
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            buffer_size=camera_cfg.get("buffer_size", 1),
            settle_seconds=camera_cfg.get("settle_seconds", 0.5),
            rotate=camera_cfg.get("rotate", 0) or 0,
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
            flip_vertical=camera_cfg.get("flip_vertical", False),
        )


class OpenCVSource(ObservationSource):
    """
    Wraps cv2.VideoCapture to provide frames as FrameData objects.

    Frames are stamped with time.monotonic() for cameras. Video files are
    stamped from the container position so replays keep their recorded
    timing regardless of how fast they are decoded.
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return

        self._cap = cv2.VideoCapture(self.device_id)
        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            raise RuntimeError(f"Failed to open video source {self.device_id!r}")

        if self.is_file:
            kind = "file"
        else:
            kind = "camera"
            if isinstance(self.device_id, int):
                self._request_capture_hints()
            # Auto exposure needs a moment before frames are usable
            if self._opencv_config.settle_seconds > 0:
                time.sleep(self._opencv_config.settle_seconds)

        self._is_open = True
        self._frame_index = 0
        logging.info(f"Frame source ready: source_id={self.source_id} {kind}={self.device_id!r}")

    def read(self) -> Optional[FrameData]:
        if self._cap is None or not self._is_open:
            return None

        ok, raw = self._cap.read()
        if not ok or raw is None:
            if self.is_file:
                logging.info(f"Video file exhausted after {self._frame_index} frames")
            return None

        captured_at = (
            self._cap.get(cv2.CAP_PROP_POS_MSEC) / 1000.0 if self.is_file else time.monotonic()
        )
        self._frame_index += 1
        return FrameData.from_numpy(
            self._apply_transforms(raw),
            timestamp=captured_at,
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def _request_capture_hints(self) -> None:
        """Resolution, fps and buffer hints; only cameras honour them."""
        cfg = self._opencv_config
        hints = [(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)]
        if cfg.resolution:
            hints += [(cv2.CAP_PROP_FRAME_WIDTH, cfg.resolution[0]), (cv2.CAP_PROP_FRAME_HEIGHT, cfg.resolution[1])]
        if cfg.fps:
            hints.append((cv2.CAP_PROP_FPS, cfg.fps))
        for prop, value in hints:
            self._cap.set(prop, value)

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        """Mount correction: rotate first, then mirror."""
        cfg = self._opencv_config
        rotation = _ROTATIONS.get(cfg.rotate)
        if rotation is not None:
            frame = cv2.rotate(frame, rotation)

        flip_code = _FLIP_CODES.get((cfg.flip_horizontal, cfg.flip_vertical))
        if flip_code is not None:
            frame = cv2.flip(frame, flip_code)
        return frame

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logging.info(f"Frame source released: source_id={self.source_id}")
        self._is_open = False
