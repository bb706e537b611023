"""
In-memory observation source.

Replays a fixed list of frames with explicit timestamps, so a frame sequence
can be pushed through the same engine loop as a live camera.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from models.frame import FrameData
from .base import ObservationConfig, ObservationSource


class FrameSequenceSource(ObservationSource):
    """
    Args:
        config: Source configuration.
        frames: BGR frames to replay, in order.
        timestamps: One capture time per frame; defaults to frame_index / fps
            (fps from the config, 30 when unset).
    """

    def __init__(
        self,
        config: ObservationConfig,
        frames: Sequence[np.ndarray],
        timestamps: Optional[Sequence[float]] = None,
    ):
        super().__init__(config)
        if timestamps is not None and len(timestamps) != len(frames):
            raise ValueError("timestamps must match frames one-to-one")
        self._frames = list(frames)
        fps = config.fps or 30
        self._timestamps = (
            list(timestamps) if timestamps is not None else [i / fps for i in range(len(frames))]
        )
        self._pos = 0

    def open(self) -> None:
        self._is_open = True
        self._pos = 0
        self._frame_index = 0

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._pos >= len(self._frames):
            return None
        frame = self._frames[self._pos]
        timestamp = self._timestamps[self._pos]
        self._pos += 1
        self._frame_index += 1
        return FrameData.from_numpy(
            frame,
            timestamp=timestamp,
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        self._is_open = False
