"""
Observation layer for pluggable frame sources.

This layer keeps frame acquisition (camera, video file, in-memory replay)
out of the detection core. Each source implements the ObservationSource
interface and returns FrameData objects.
"""

from typing import Any, Dict

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig
from .sequence_source import FrameSequenceSource


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "camera") -> ObservationSource:
    """Build the capture source described by the `camera` config section."""
    backend = camera_cfg.get("backend", "opencv")
    if backend != "opencv":
        raise ValueError(f"Unsupported camera backend: {backend}")
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))


__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "FrameSequenceSource",
    "create_source_from_config",
]
