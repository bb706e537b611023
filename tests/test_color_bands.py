"""
Tests for the colour range registry.
"""

import pytest

from detection.color_bands import ColorRangeRegistry
from models.color_band import ColorBand, DEFAULT_BANDS


class TestColorRangeRegistry:
    def test_defaults_in_order(self):
        registry = ColorRangeRegistry()

        assert registry.names() == ["tennis_ball", "cricket_red", "cricket_white"]
        assert len(registry) == 3
        assert "cricket_red" in registry

    def test_get_unknown_band(self):
        registry = ColorRangeRegistry()
        with pytest.raises(KeyError):
            registry.get("pink_ball")

    def test_register_duplicate(self):
        registry = ColorRangeRegistry()
        with pytest.raises(ValueError):
            registry.register(DEFAULT_BANDS[0])

    def test_update_touches_one_band(self):
        registry = ColorRangeRegistry()
        before = registry.snapshot()

        registry.update("tennis_ball", (25, 100, 100), (35, 255, 255))
        after = registry.snapshot()

        assert after["tennis_ball"]["low"] == [25, 100, 100]
        assert after["cricket_red"] == before["cricket_red"]
        assert after["cricket_white"] == before["cricket_white"]
        assert registry.names() == list(before.keys())

    def test_update_can_drop_wrap(self):
        registry = ColorRangeRegistry()
        band = registry.update("cricket_red", (0, 100, 100), (20, 255, 255))
        assert band.wraps is False

    def test_update_rejects_bad_bounds(self):
        registry = ColorRangeRegistry()
        with pytest.raises(ValueError):
            registry.update("tennis_ball", (40, 0, 0), (20, 255, 255))
        assert registry.get("tennis_ball") == DEFAULT_BANDS[0]

    def test_snapshot_is_a_copy(self):
        registry = ColorRangeRegistry()
        snap = registry.snapshot()
        snap["tennis_ball"]["low"][0] = 99

        assert registry.get("tennis_ball").low == (20, 80, 80)

    def test_from_config_none_uses_defaults(self):
        assert ColorRangeRegistry.from_config(None).names() == [b.key for b in DEFAULT_BANDS]
        assert len(ColorRangeRegistry.from_config([])) == 3

    def test_from_config_custom(self):
        registry = ColorRangeRegistry.from_config([
            {"key": "pink_ball", "name": "Pink Ball", "low": [150, 80, 80], "high": [170, 255, 255]},
            {"key": "orange_ball", "low": [5, 150, 150], "high": [18, 255, 255]},
        ])

        assert registry.names() == ["pink_ball", "orange_ball"]
        assert registry.get("orange_ball").name == "orange_ball"

    def test_iteration_yields_bands(self):
        registry = ColorRangeRegistry()
        assert all(isinstance(b, ColorBand) for b in registry)
