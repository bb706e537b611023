"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import cv2
import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

RED_BGR = (0, 0, 255)


def hsv_to_bgr(h, s, v):
    """BGR colour for an OpenCV-scale HSV triple."""
    pixel = cv2.cvtColor(np.uint8([[[h, s, v]]]), cv2.COLOR_HSV2BGR)[0, 0]
    return tuple(int(c) for c in pixel)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  strategy: "color_shape"
  frame_diff:
    sensitivity: 400
    cooldown_seconds: 3.0
  color_shape:
    cooldown_seconds: 1.5
  debounce:
    hit_threshold: 3
    warmup_seconds: 2.0

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detection": {
            "strategy": "color_shape",
            "frame_diff": {
                "sensitivity": 400,
                "cooldown_seconds": 3.0,
            },
            "color_shape": {
                "min_circularity": 0.4,
                "max_aspect_ratio": 1.8,
                "cooldown_seconds": 1.5,
            },
            "debounce": {
                "hit_threshold": 3,
                "warmup_seconds": 2.0,
                "policy": "decay",
            },
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def ball_frame():
    """Factory: black 640x480 frame with one filled circle."""
    def _make(center=(320, 240), radius=25, color=RED_BGR, size=(640, 480)):
        width, height = size
        frame = np.zeros((height, width, 3), dtype=np.uint8)
        if center is not None:
            cv2.circle(frame, center, radius, color, -1)
        return frame
    return _make


@pytest.fixture
def pass_sequence(ball_frame):
    """
    Five frames at 30 fps: two empty frames, then a red ball moving
    30 px/frame left to right.
    """
    frames = [
        ball_frame(center=None),
        ball_frame(center=None),
        ball_frame(center=(200, 240)),
        ball_frame(center=(230, 240)),
        ball_frame(center=(260, 240)),
    ]
    timestamps = [i / 30.0 for i in range(len(frames))]
    return frames, timestamps


@pytest.fixture
def hsv_color():
    return hsv_to_bgr
