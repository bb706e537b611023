"""
Tests for data models.
"""

import numpy as np
import pytest

from models.frame import FrameData
from models.color_band import ColorBand, DEFAULT_BANDS, EMPTY_RANGE
from models.candidate import Candidate
from models.track import TrackedPosition
from models.status import DetectorState, DetectionResult, Telemetry, TriggerPhase


class TestFrameData:
    def test_from_numpy(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        fd = FrameData.from_numpy(frame, timestamp=1.25, frame_index=7, source="cam")

        assert fd.width == 640
        assert fd.height == 480
        assert fd.size == (640, 480)
        assert fd.shape == (480, 640, 3)
        assert fd.area == 640 * 480
        assert fd.timestamp == 1.25
        assert fd.frame_index == 7
        assert fd.source == "cam"

    def test_frozen(self):
        fd = FrameData.from_numpy(np.zeros((2, 2, 3), dtype=np.uint8), timestamp=0.0)
        with pytest.raises(Exception):
            fd.timestamp = 5.0


class TestColorBand:
    def test_single_range_band(self):
        band = ColorBand(key="tennis_ball", name="Tennis Ball", low=(20, 80, 80), high=(40, 255, 255))

        assert band.wraps is False
        assert band.low2 == EMPTY_RANGE
        assert band.high2 == EMPTY_RANGE

    def test_wrapping_band(self):
        band = ColorBand(
            key="cricket_red", name="Cricket Red",
            low=(0, 120, 100), high=(10, 255, 255),
            low2=(170, 120, 100), high2=(180, 255, 255),
        )
        assert band.wraps is True

    def test_list_input_normalised(self):
        band = ColorBand(key="k", name="K", low=[20.4, 80, 80], high=[40, 255, 255])

        assert band.low == (20, 80, 80)
        assert isinstance(band.low, tuple)

    def test_low_above_high_rejected(self):
        with pytest.raises(ValueError):
            ColorBand(key="k", name="K", low=(50, 0, 0), high=(40, 255, 255))

    def test_hue_above_180_rejected(self):
        with pytest.raises(ValueError):
            ColorBand(key="k", name="K", low=(0, 0, 0), high=(200, 255, 255))

    def test_half_empty_secondary_rejected(self):
        """Secondary range is either well-formed or the (0,0,0) marker on both ends."""
        with pytest.raises(ValueError):
            ColorBand(key="k", name="K", low=(0, 0, 0), high=(10, 255, 255), low2=(170, 0, 0))

    def test_with_bounds_keeps_identity(self):
        band = DEFAULT_BANDS[0]
        updated = band.with_bounds((25, 100, 100), (35, 255, 255))

        assert updated.key == band.key
        assert updated.name == band.name
        assert updated.low == (25, 100, 100)
        assert band.low == (20, 80, 80)

    def test_dict_round_trip(self):
        band = DEFAULT_BANDS[1]
        assert ColorBand.from_dict(band.to_dict()) == band

    def test_default_band_order(self):
        assert [b.key for b in DEFAULT_BANDS] == ["tennis_ball", "cricket_red", "cricket_white"]


class TestCandidate:
    def test_center_accessors(self):
        c = Candidate(
            center=(12.5, 40.0), radius=10.0, area=300.0, perimeter=63.0,
            circularity=0.95, aspect_ratio=1.0, band="tennis_ball", score=285.0,
        )
        assert c.x == 12.5
        assert c.y == 40.0
        assert c.to_dict()["band"] == "tennis_ball"


class TestTrackedPosition:
    def test_distance(self):
        a = TrackedPosition(x=0.0, y=0.0, timestamp=0.0)
        b = TrackedPosition(x=3.0, y=4.0, timestamp=1.0)
        assert a.distance_to(b) == pytest.approx(5.0)


class TestStatusModels:
    def test_detector_state_defaults(self):
        state = DetectorState()

        assert state.consecutive_hits == 0
        assert state.last_trigger_timestamp is None
        assert state.warmup_active is True
        assert state.phase == TriggerPhase.IDLE
        assert state.to_dict()["phase"] == "idle"

    def test_detection_result_to_dict(self):
        result = DetectionResult()
        d = result.to_dict()

        assert d["triggered"] is False
        assert d["debug_info"]["matched_band"] is None

    def test_telemetry_defaults(self):
        t = Telemetry()
        assert t.to_dict() == {"area": 0, "circularity": 0.0, "velocity": 0, "matched_band": "None"}
