"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

STRATEGY_COLOR_SHAPE = "color_shape"
STRATEGY_FRAME_DIFF = "frame_diff"
STRATEGIES = (STRATEGY_COLOR_SHAPE, STRATEGY_FRAME_DIFF)


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            rotate=d.get("rotate", 0),
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }


@dataclass
class FrameDiffConfig:
    """Frame differencing strategy configuration."""
    size: int = 100
    sample_stride: int = 4
    pixel_threshold: int = 100
    sensitivity: int = 400
    cooldown_seconds: float = 3.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FrameDiffConfig":
        return cls(
            size=d.get("size", 100),
            sample_stride=d.get("sample_stride", 4),
            pixel_threshold=d.get("pixel_threshold", 100),
            sensitivity=d.get("sensitivity", 400),
            cooldown_seconds=d.get("cooldown_seconds", 3.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "sample_stride": self.sample_stride,
            "pixel_threshold": self.pixel_threshold,
            "sensitivity": self.sensitivity,
            "cooldown_seconds": self.cooldown_seconds,
        }


@dataclass
class ColorShapeConfig:
    """Colour segmentation + shape scoring strategy configuration."""
    blur_kernel: int = 5
    morph_kernel: int = 5
    min_area_floor: float = 300.0
    min_area_ratio: float = 0.0002
    max_area_ratio: float = 0.15
    min_circularity: float = 0.4
    max_aspect_ratio: float = 1.8
    speed_floor: float = 20.0
    history_size: int = 20
    cooldown_seconds: float = 1.5
    bands: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ColorShapeConfig":
        return cls(
            blur_kernel=d.get("blur_kernel", 5),
            morph_kernel=d.get("morph_kernel", 5),
            min_area_floor=d.get("min_area_floor", 300.0),
            min_area_ratio=d.get("min_area_ratio", 0.0002),
            max_area_ratio=d.get("max_area_ratio", 0.15),
            min_circularity=d.get("min_circularity", 0.4),
            max_aspect_ratio=d.get("max_aspect_ratio", 1.8),
            speed_floor=d.get("speed_floor", 20.0),
            history_size=d.get("history_size", 20),
            cooldown_seconds=d.get("cooldown_seconds", 1.5),
            bands=d.get("bands"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "blur_kernel": self.blur_kernel,
            "morph_kernel": self.morph_kernel,
            "min_area_floor": self.min_area_floor,
            "min_area_ratio": self.min_area_ratio,
            "max_area_ratio": self.max_area_ratio,
            "min_circularity": self.min_circularity,
            "max_aspect_ratio": self.max_aspect_ratio,
            "speed_floor": self.speed_floor,
            "history_size": self.history_size,
            "cooldown_seconds": self.cooldown_seconds,
        }
        if self.bands is not None:
            d["bands"] = self.bands
        return d


@dataclass
class DebounceConfig:
    """Hit-counter hysteresis shared by both strategies."""
    hit_threshold: int = 3
    warmup_seconds: float = 2.0
    policy: str = "decay"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DebounceConfig":
        return cls(
            hit_threshold=d.get("hit_threshold", 3),
            warmup_seconds=d.get("warmup_seconds", 2.0),
            policy=d.get("policy", "decay"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hit_threshold": self.hit_threshold,
            "warmup_seconds": self.warmup_seconds,
            "policy": self.policy,
        }


@dataclass
class CalibrationConfig:
    """Centre-sample calibration configuration."""
    sample_size: int = 80
    hue_tolerance: int = 25
    saturation_tolerance: int = 100
    value_tolerance: int = 100

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CalibrationConfig":
        return cls(
            sample_size=d.get("sample_size", 80),
            hue_tolerance=d.get("hue_tolerance", 25),
            saturation_tolerance=d.get("saturation_tolerance", 100),
            value_tolerance=d.get("value_tolerance", 100),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sample_size": self.sample_size,
            "hue_tolerance": self.hue_tolerance,
            "saturation_tolerance": self.saturation_tolerance,
            "value_tolerance": self.value_tolerance,
        }


@dataclass
class DetectionConfig:
    """Detection configuration."""
    strategy: str = STRATEGY_COLOR_SHAPE
    frame_diff: FrameDiffConfig = field(default_factory=FrameDiffConfig)
    color_shape: ColorShapeConfig = field(default_factory=ColorShapeConfig)
    debounce: DebounceConfig = field(default_factory=DebounceConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            strategy=d.get("strategy", STRATEGY_COLOR_SHAPE),
            frame_diff=FrameDiffConfig.from_dict(d.get("frame_diff") or {}),
            color_shape=ColorShapeConfig.from_dict(d.get("color_shape") or {}),
            debounce=DebounceConfig.from_dict(d.get("debounce") or {}),
            calibration=CalibrationConfig.from_dict(d.get("calibration") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "frame_diff": self.frame_diff.to_dict(),
            "color_shape": self.color_shape.to_dict(),
            "debounce": self.debounce.to_dict(),
            "calibration": self.calibration.to_dict(),
        }

    @property
    def cooldown_seconds(self) -> float:
        """Cooldown of the selected strategy."""
        if self.strategy == STRATEGY_FRAME_DIFF:
            return self.frame_diff.cooldown_seconds
        return self.color_shape.cooldown_seconds


@dataclass
class WebConfig:
    """Diagnostics API configuration."""
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", False),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/ball_pass_detector.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            detection=DetectionConfig.from_dict(d.get("detection") or {}),
            web=WebConfig.from_dict(d.get("web") or {}),
            log_path=d.get("log_path", "logs/ball_pass_detector.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
