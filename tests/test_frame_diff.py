"""
Tests for the frame-differencing strategy.
"""

import numpy as np
import pytest

from detection.frame_diff import FrameDifferencer, FrameDiffDetector
from models.config import FrameDiffConfig
from models.frame import FrameData


def _frame(value, size=(480, 640)):
    return np.full((size[0], size[1], 3), value, dtype=np.uint8)


class TestFrameDifferencer:
    def test_first_frame_scores_zero(self):
        diff = FrameDifferencer()
        assert diff.has_previous is False
        assert diff.score(_frame(200)) == 0
        assert diff.has_previous is True

    def test_identical_frames_score_zero(self):
        diff = FrameDifferencer()
        diff.score(_frame(50))
        assert diff.score(_frame(50)) == 0

    def test_full_change_counts_every_sample(self):
        """100x100 downsample, every 4th pixel -> 2500 samples."""
        diff = FrameDifferencer(size=100, sample_stride=4, pixel_threshold=100)
        diff.score(_frame(0))
        assert diff.score(_frame(255)) == 2500

    def test_change_below_noise_threshold_ignored(self):
        """+30 per channel sums to 90, under the threshold of 100."""
        diff = FrameDifferencer()
        diff.score(_frame(100))
        assert diff.score(_frame(130)) == 0

    def test_darkening_counts_as_change(self):
        diff = FrameDifferencer()
        diff.score(_frame(200))
        assert diff.score(_frame(100)) == 2500

    def test_partial_change(self):
        """A change over a quarter of the frame scores about a quarter of the samples."""
        diff = FrameDifferencer()
        before = _frame(0, size=(400, 400))
        after = before.copy()
        after[:200, :200] = 255

        diff.score(before)
        score = diff.score(after)

        assert 550 <= score <= 700

    def test_reset_drops_previous(self):
        diff = FrameDifferencer()
        diff.score(_frame(0))
        diff.reset()
        assert diff.has_previous is False
        assert diff.score(_frame(255)) == 0

    def test_grayscale_input(self):
        diff = FrameDifferencer()
        diff.score(np.zeros((120, 160), dtype=np.uint8))
        assert diff.score(np.full((120, 160), 255, dtype=np.uint8)) == 2500

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            FrameDifferencer(size=0)
        with pytest.raises(ValueError):
            FrameDifferencer(sample_stride=0)


class TestFrameDiffDetector:
    def test_strong_only_above_sensitivity(self):
        detector = FrameDiffDetector(FrameDifferencer(), sensitivity=400)

        first = detector.analyze(FrameData.from_numpy(_frame(0), timestamp=0.0))
        second = detector.analyze(FrameData.from_numpy(_frame(255), timestamp=0.1))
        third = detector.analyze(FrameData.from_numpy(_frame(255), timestamp=0.2))

        assert first.strong is False
        assert first.present is True
        assert second.strong is True
        assert second.score == 2500
        assert third.strong is False

    def test_score_equal_to_sensitivity_is_not_strong(self):
        detector = FrameDiffDetector(FrameDifferencer(), sensitivity=2500)
        detector.analyze(FrameData.from_numpy(_frame(0), timestamp=0.0))
        signal = detector.analyze(FrameData.from_numpy(_frame(255), timestamp=0.1))
        assert signal.strong is False

    def test_from_config(self):
        detector = FrameDiffDetector.from_config(FrameDiffConfig(sensitivity=250, size=50))

        assert detector.name == "frame_diff"
        assert detector.sensitivity == 250
        assert detector.differencer.size == 50

    def test_negative_sensitivity_rejected(self):
        with pytest.raises(ValueError):
            FrameDiffDetector(FrameDifferencer(), sensitivity=-1)
