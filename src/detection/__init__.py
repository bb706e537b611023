"""
Ball Pass Detector - Detection Module

Frame-level analysis (frame differencing, colour/shape candidates, velocity,
calibration) and the shared event debouncer.
"""

from .base import FrameSignal, SignalDetector
from .color_bands import ColorRangeRegistry
from .frame_diff import FrameDifferencer, FrameDiffDetector
from .candidates import CandidateExtractor, select_best_candidate
from .velocity import VelocityTracker
from .calibration import Calibrator, CalibrationResult, classify_color, build_calibrated_bounds
from .debounce import EventDebouncer
from .color_tracker import ColorShapeDetector

__all__ = [
    'FrameSignal',
    'SignalDetector',
    'ColorRangeRegistry',
    'FrameDifferencer',
    'FrameDiffDetector',
    'CandidateExtractor',
    'select_best_candidate',
    'VelocityTracker',
    'Calibrator',
    'CalibrationResult',
    'classify_color',
    'build_calibrated_bounds',
    'EventDebouncer',
    'ColorShapeDetector',
]
