"""
Ball pass detector: watch a camera and announce every ball that crosses the frame.

Each debounced detection is handed to the scoring collaborator through the
session's onMotionDetected() callbacks; run standalone, the detections are
logged.

Usage:
    python src/main.py --config config/config.yaml
    python src/main.py --video samples/over_3.mp4 --strategy frame_diff

Arguments:
    --config: Path to configuration file
    --video: Read from a video file instead of the configured camera
    --strategy: Override detection.strategy (color_shape or frame_diff)
    --web: Serve the diagnostics API
"""

import os
import sys
import argparse
import logging
import threading
from typing import Any, Dict, Optional, Tuple

import uvicorn
import yaml

from models.color_band import ColorBand
from models.config import STRATEGIES
from detection.debounce import POLICIES
from ops.logging import setup_logging
from pipeline.engine import AcquisitionError, create_engine_from_config
from pipeline.session import create_session_from_config
from web.app import create_app
from web.state import state as web_state


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Out-of-range detection settings are rejected here, before any frame is
    processed.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['camera', 'detection', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Validate camera settings
    camera = config.get('camera', {})
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)):
        return False, "camera.device_id must be an integer (index) or string (file path)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"

    if 'resolution' in camera:
        if not isinstance(camera['resolution'], list) or len(camera['resolution']) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in camera['resolution']):
            return False, "camera.resolution values must be positive integers"

    if 'fps' in camera:
        if not isinstance(camera['fps'], int) or camera['fps'] <= 0:
            return False, "camera.fps must be a positive integer"

    if camera.get('backend', 'opencv') != 'opencv':
        return False, "camera.backend must be: opencv"

    if camera.get('rotate', 0) not in (0, 90, 180, 270):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    # Validate detection settings
    detection = config.get('detection', {}) or {}
    strategy = detection.get('strategy', 'color_shape')
    if strategy not in STRATEGIES:
        return False, f"detection.strategy must be one of: {', '.join(STRATEGIES)}"

    frame_diff = detection.get('frame_diff', {}) or {}
    if 'sensitivity' in frame_diff:
        if not isinstance(frame_diff['sensitivity'], int) or frame_diff['sensitivity'] < 0:
            return False, "detection.frame_diff.sensitivity must be a non-negative integer"
    for key in ('size', 'sample_stride'):
        if key in frame_diff and (not isinstance(frame_diff[key], int) or frame_diff[key] <= 0):
            return False, f"detection.frame_diff.{key} must be a positive integer"
    if 'pixel_threshold' in frame_diff:
        if not _is_number(frame_diff['pixel_threshold']) or frame_diff['pixel_threshold'] < 0:
            return False, "detection.frame_diff.pixel_threshold must be a non-negative number"

    color_shape = detection.get('color_shape', {}) or {}
    for section_name, section in (('frame_diff', frame_diff), ('color_shape', color_shape)):
        if 'cooldown_seconds' in section:
            cooldown = section['cooldown_seconds']
            if not _is_number(cooldown) or cooldown <= 0:
                return False, f"detection.{section_name}.cooldown_seconds must be a positive number"

    if 'min_circularity' in color_shape:
        circ = color_shape['min_circularity']
        if not _is_number(circ) or not (0 <= circ <= 1):
            return False, "detection.color_shape.min_circularity must be between 0 and 1"
    if 'max_aspect_ratio' in color_shape:
        aspect = color_shape['max_aspect_ratio']
        if not _is_number(aspect) or not (1 <= aspect < 2):
            return False, "detection.color_shape.max_aspect_ratio must be at least 1 and below 2"
    if 'max_area_ratio' in color_shape:
        ratio = color_shape['max_area_ratio']
        if not _is_number(ratio) or not (0 < ratio <= 1):
            return False, "detection.color_shape.max_area_ratio must be between 0 and 1"
    if 'speed_floor' in color_shape:
        if not _is_number(color_shape['speed_floor']) or color_shape['speed_floor'] < 0:
            return False, "detection.color_shape.speed_floor must be a non-negative number"

    bands = color_shape.get('bands')
    if bands is not None:
        if not isinstance(bands, list) or not bands:
            return False, "detection.color_shape.bands must be a non-empty list"
        seen = set()
        for band in bands:
            try:
                parsed = ColorBand.from_dict(band)
            except (KeyError, TypeError, ValueError) as e:
                return False, f"Invalid colour band {band!r}: {e}"
            if parsed.key in seen:
                return False, f"Duplicate colour band: {parsed.key}"
            seen.add(parsed.key)

    debounce = detection.get('debounce', {}) or {}
    if 'hit_threshold' in debounce:
        hits = debounce['hit_threshold']
        if not isinstance(hits, int) or isinstance(hits, bool) or hits <= 0:
            return False, "detection.debounce.hit_threshold must be a positive integer"
    if 'warmup_seconds' in debounce:
        if not _is_number(debounce['warmup_seconds']) or debounce['warmup_seconds'] < 0:
            return False, "detection.debounce.warmup_seconds must be a non-negative number"
    if debounce.get('policy', 'decay') not in POLICIES:
        return False, f"detection.debounce.policy must be one of: {', '.join(POLICIES)}"

    # Validate log settings
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Ball pass detector')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--video', type=str, default=None,
                        help='Read frames from a video file instead of the camera')
    parser.add_argument('--strategy', choices=STRATEGIES, default=None,
                        help='Override detection.strategy')
    parser.add_argument('--web', action='store_true',
                        help='Serve the diagnostics API')
    args = parser.parse_args()

    config = load_config(args.config)
    if args.video:
        config.setdefault('camera', {})['device_id'] = args.video
    if args.strategy:
        config.setdefault('detection', {})['strategy'] = args.strategy

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    logging.info("Starting ball pass detector")

    session = create_session_from_config(config)
    session.add_callback(lambda: logging.info("Ball passed through frame; awaiting score entry"))

    web_cfg = config.get('web', {}) or {}
    if args.web or web_cfg.get('enabled', False):
        web_state.set_session(session)
        host = web_cfg.get('host', '0.0.0.0')
        port = web_cfg.get('port', 5000)

        def run_web_app():
            uvicorn.run(create_app(), host=host, port=port, log_level="info")

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"Diagnostics API started on {host}:{port}")

    engine = create_engine_from_config(config, session=session)
    try:
        engine.run()
    except AcquisitionError:
        sys.exit(1)
    finally:
        logging.info(
            f"Ball pass detector stopped: frames={engine.stats.frame_count}, "
            f"events={engine.stats.event_count}"
        )


if __name__ == "__main__":
    main()
