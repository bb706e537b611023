"""
Tests for centre-sample colour calibration.
"""

import numpy as np
import pytest

from detection.calibration import (
    CLASSIFICATION_RULES,
    Calibrator,
    build_calibrated_bounds,
    classify_color,
    sample_region_mean,
)
from detection.color_bands import ColorRangeRegistry
from models.color_band import ColorBand, EMPTY_RANGE
from models.config import CalibrationConfig
from models.frame import FrameData


def _solid(bgr, size=(480, 640)):
    frame = np.zeros((size[0], size[1], 3), dtype=np.uint8)
    frame[:] = bgr
    return FrameData.from_numpy(frame, timestamp=0.0)


class TestClassifyColor:
    """The rules are disjoint; a colour matching none falls back to tennis_ball."""

    @pytest.mark.parametrize("hsv, expected", [
        ((30, 200, 200), "tennis_ball"),
        ((20, 10, 250), "cricket_white"),
        ((0, 0, 255), "cricket_white"),
        ((5, 49, 200), "cricket_white"),
        ((40, 255, 255), "tennis_ball"),
        ((5, 200, 200), "cricket_red"),
        ((170, 200, 200), "cricket_red"),
        ((90, 20, 220), "cricket_white"),
        ((100, 200, 200), "tennis_ball"),
        ((90, 20, 100), "tennis_ball"),
        ((0, 20, 100), "tennis_ball"),
    ])
    def test_table(self, hsv, expected):
        assert classify_color(*hsv) == expected

    def test_rules_are_disjoint(self):
        samples = [(h, s, v) for h in range(0, 181, 5) for s in range(0, 256, 15) for v in range(0, 256, 15)]
        for hsv in samples:
            matches = [band for band, predicate in CLASSIFICATION_RULES if predicate(*hsv)]
            assert len(matches) <= 1, (hsv, matches)

    def test_hue_boundaries(self):
        assert classify_color(15, 200, 200) == "tennis_ball"
        assert classify_color(14.9, 200, 200) == "cricket_red"
        assert classify_color(165, 200, 200) == "tennis_ball"
        assert classify_color(165.1, 200, 200) == "cricket_red"

    def test_rule_order(self):
        assert [band for band, _ in CLASSIFICATION_RULES] == [
            "tennis_ball", "cricket_red", "cricket_white",
        ]

    def test_custom_rules(self):
        rules = [("pink_ball", lambda h, s, v: 150 <= h <= 170)]
        assert classify_color(160, 200, 200, rules=rules) == "pink_ball"


class TestBuildCalibratedBounds:
    def test_mid_hue(self):
        low, high, low2, high2 = build_calibrated_bounds(30, 200, 200)

        assert low == (5, 100, 100)
        assert high == (55, 255, 255)
        assert low2 == EMPTY_RANGE
        assert high2 == EMPTY_RANGE

    def test_saturation_and_value_clamped_at_zero(self):
        low, high, _, _ = build_calibrated_bounds(90, 40, 60)

        assert low == (65, 0, 0)
        assert high == (115, 140, 160)

    def test_low_hue_wraps(self):
        low, high, low2, high2 = build_calibrated_bounds(0, 255, 255)

        assert low == (0, 155, 155)
        assert high == (25, 255, 255)
        assert low2 == (155, 155, 155)
        assert high2 == (180, 255, 255)

    def test_high_hue_wraps(self):
        low, high, low2, high2 = build_calibrated_bounds(170, 100, 100)

        assert low == (0, 0, 0)
        assert high == (15, 200, 200)
        assert low2 == (145, 0, 0)
        assert high2 == (180, 200, 200)

    def test_bounds_form_a_valid_band(self):
        for h in (0, 10, 24, 25, 90, 155, 156, 179):
            low, high, low2, high2 = build_calibrated_bounds(h, 128, 128)
            ColorBand(key="k", name="K", low=low, high=high, low2=low2, high2=high2)


class TestSampleRegionMean:
    def test_centre_box_only(self):
        hsv = np.zeros((200, 200, 3), dtype=np.uint8)
        hsv[60:140, 60:140] = (30, 200, 200)

        assert sample_region_mean(hsv, 80) == pytest.approx((30.0, 200.0, 200.0))

    def test_box_clipped_to_small_frame(self):
        hsv = np.full((40, 40, 3), 50, dtype=np.uint8)
        assert sample_region_mean(hsv, 80) == pytest.approx((50.0, 50.0, 50.0))


class TestCalibrator:
    def test_updates_exactly_one_band(self, hsv_color):
        registry = ColorRangeRegistry()
        before = registry.snapshot()

        result = Calibrator().calibrate(_solid(hsv_color(30, 200, 200)), registry)

        after = registry.snapshot()
        changed = [k for k in before if before[k] != after[k]]
        assert result.band == "tennis_ball"
        assert changed == ["tennis_ball"]
        assert result.mean_hsv[0] == pytest.approx(30, abs=1.5)

    def test_red_sample_splits_across_hue_wrap(self):
        registry = ColorRangeRegistry()

        result = Calibrator().calibrate(_solid((0, 0, 255)), registry)

        band = registry.get("cricket_red")
        assert result.band == "cricket_red"
        assert result.wraps is True
        assert band.low == (0, 155, 155)
        assert band.high == (25, 255, 255)
        assert band.low2 == (155, 155, 155)
        assert band.high2 == (180, 255, 255)

    def test_white_sample_updates_white_band(self):
        registry = ColorRangeRegistry()
        before = registry.snapshot()

        result = Calibrator().calibrate(_solid((255, 255, 255)), registry)

        after = registry.snapshot()
        changed = [k for k in before if before[k] != after[k]]
        assert result.band == "cricket_white"
        assert changed == ["cricket_white"]
        assert registry.get("cricket_red") == ColorRangeRegistry().get("cricket_red")

    def test_unmatched_colour_falls_back_to_tennis_ball(self, hsv_color):
        registry = ColorRangeRegistry()

        result = Calibrator().calibrate(_solid(hsv_color(100, 200, 200)), registry)

        assert result.band == "tennis_ball"

    def test_custom_registry_falls_back_to_first_band(self, hsv_color):
        registry = ColorRangeRegistry([
            ColorBand(key="pink_ball", name="Pink Ball", low=(150, 80, 80), high=(170, 255, 255)),
        ])

        result = Calibrator().calibrate(_solid(hsv_color(30, 200, 200)), registry)

        assert result.band == "pink_ball"
        assert registry.get("pink_ball").low[0] == pytest.approx(5, abs=2)

    def test_result_to_dict(self):
        result = Calibrator().calibrate(_solid((0, 0, 255)), ColorRangeRegistry())
        d = result.to_dict()
        assert d["band"] == "cricket_red"
        assert d["high2"] == [180, 255, 255]

    def test_from_config(self):
        calibrator = Calibrator.from_config(CalibrationConfig(hue_tolerance=10), blur_kernel=3)
        assert calibrator.hue_tolerance == 10
        assert calibrator.blur_kernel == 3

    def test_tolerance_validation(self):
        with pytest.raises(ValueError):
            Calibrator(hue_tolerance=90)
        with pytest.raises(ValueError):
            Calibrator(sample_size=0)
