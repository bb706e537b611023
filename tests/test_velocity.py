"""
Tests for velocity estimation.
"""

import pytest

from detection.velocity import VelocityTracker


class TestVelocityTracker:
    def test_first_position_has_no_speed(self):
        tracker = VelocityTracker()
        assert tracker.update(100, 100, 0.0) == 0.0

    def test_ten_pixels_in_half_a_second(self):
        tracker = VelocityTracker()
        tracker.update(0, 0, 0.0)
        assert tracker.update(6, 8, 0.5) == pytest.approx(20.0)

    def test_uses_immediately_preceding_position(self):
        tracker = VelocityTracker()
        tracker.update(0, 0, 0.0)
        tracker.update(100, 0, 1.0)
        assert tracker.update(110, 0, 2.0) == pytest.approx(10.0)

    def test_non_positive_dt_keeps_previous_speed(self):
        tracker = VelocityTracker()
        tracker.update(0, 0, 0.0)
        tracker.update(30, 0, 1.0)
        assert tracker.update(500, 0, 1.0) == pytest.approx(30.0)
        assert tracker.update(600, 0, 0.5) == pytest.approx(30.0)

    def test_history_is_bounded(self):
        tracker = VelocityTracker(history_size=20)
        for i in range(50):
            tracker.update(i, 0, i * 0.1)

        history = tracker.history
        assert len(history) == 20
        assert history[0].x == 30.0
        assert tracker.last_position.x == 49.0

    def test_clear_velocity_keeps_history(self):
        tracker = VelocityTracker()
        tracker.update(0, 0, 0.0)
        tracker.update(10, 0, 0.1)

        tracker.clear_velocity()

        assert tracker.velocity == 0.0
        assert len(tracker.history) == 2

    def test_reset(self):
        tracker = VelocityTracker()
        tracker.update(0, 0, 0.0)
        tracker.update(10, 0, 0.1)

        tracker.reset()

        assert tracker.velocity == 0.0
        assert tracker.history == []
        assert tracker.update(500, 500, 0.2) == 0.0

    def test_history_size_validation(self):
        with pytest.raises(ValueError):
            VelocityTracker(history_size=1)
