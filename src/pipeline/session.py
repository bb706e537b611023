"""
Detection session: the per-camera object that owns all cross-frame state.

One session per active camera. Everything that survives between frames
(debouncer state, position history, previous frame, colour registry) hangs
off the session, so independent cameras never share anything.

Requests from other threads (the web API) are queued and applied at the
start of the next process_frame() call, keeping every registry and state
write on the frame loop.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from detection.base import FrameSignal, SignalDetector
from detection.calibration import CalibrationResult, Calibrator
from detection.color_bands import ColorRangeRegistry
from detection.color_tracker import ColorShapeDetector
from detection.debounce import EventDebouncer
from detection.frame_diff import FrameDiffDetector
from models.config import STRATEGY_FRAME_DIFF, Config, DetectionConfig
from models.frame import FrameData
from models.status import NO_BAND, DebugInfo, DetectionResult, DetectorState, Telemetry

MotionCallback = Callable[[], None]

REQUEST_RESET = "reset"
REQUEST_CALIBRATE = "calibrate"


@dataclass
class SessionStats:
    """Runtime counters for diagnostics."""
    frames_processed: int = 0
    events_emitted: int = 0
    analysis_errors: int = 0
    calibrations: int = 0
    last_frame_timestamp: Optional[float] = None
    last_event_timestamp: Optional[float] = None
    last_frame_wall_time: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frames_processed": self.frames_processed,
            "events_emitted": self.events_emitted,
            "analysis_errors": self.analysis_errors,
            "calibrations": self.calibrations,
            "last_frame_timestamp": self.last_frame_timestamp,
            "last_event_timestamp": self.last_event_timestamp,
            "last_frame_wall_time": self.last_frame_wall_time,
        }


class DetectionSession:
    """
    Runs one detection strategy and the shared debouncer over a frame stream.

    Example:
        session = create_session_from_config(config)
        session.add_callback(scoreboard.prompt_for_runs)
        for frame_data in source:
            session.process_frame(frame_data, is_active=match_in_progress)
    """

    def __init__(
        self,
        detector: SignalDetector,
        debouncer: EventDebouncer,
        registry: Optional[ColorRangeRegistry] = None,
        calibrator: Optional[Calibrator] = None,
        session_id: str = "main-camera",
    ):
        self.detector = detector
        self.debouncer = debouncer
        self.registry = registry if registry is not None else ColorRangeRegistry()
        self.calibrator = calibrator or Calibrator()
        self.session_id = session_id
        self.stats = SessionStats()
        self._callbacks: List[MotionCallback] = []
        self._calibrating = False
        self._telemetry = Telemetry()
        self._last_calibration: Optional[CalibrationResult] = None
        self._pending: List[str] = []
        self._pending_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Collaborator wiring
    # ------------------------------------------------------------------

    def add_callback(self, callback: MotionCallback) -> None:
        """Register an onMotionDetected() callback (no arguments)."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: MotionCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    # ------------------------------------------------------------------
    # Per-frame step
    # ------------------------------------------------------------------

    def process_frame(self, frame_data: FrameData, is_active: bool = True) -> DetectionResult:
        """
        Analyse one frame. Call once per frame, in arrival order.

        With is_active False, or while calibrating, the frame is still
        analysed for preview but never triggers.
        """
        self._apply_pending(frame_data)
        self.stats.frames_processed += 1
        self.stats.last_frame_timestamp = frame_data.timestamp
        self.stats.last_frame_wall_time = time.time()

        signal = self._analyze(frame_data)
        armed = is_active and not self._calibrating
        triggered = self.debouncer.update(
            signal.strong,
            frame_data.timestamp,
            present=signal.present,
            armed=armed,
        )
        self._update_telemetry(signal)

        if triggered:
            self.stats.events_emitted += 1
            self.stats.last_event_timestamp = frame_data.timestamp
            logging.info(
                f"Ball pass detected: session={self.session_id} frame={frame_data.frame_index} "
                f"score={signal.score:.1f} velocity={signal.velocity:.1f} "
                f"band={self._band_label(signal)}"
            )
            self._notify()

        return DetectionResult(
            triggered=triggered,
            debug_info=DebugInfo(
                score=signal.score,
                velocity=signal.velocity,
                matched_band=signal.candidate.band if signal.candidate else None,
            ),
        )

    def _analyze(self, frame_data: FrameData) -> FrameSignal:
        try:
            return self.detector.analyze(frame_data)
        except Exception as e:
            # A bad frame counts as "nothing found" and the stream carries on
            self.stats.analysis_errors += 1
            logging.warning(f"Frame {frame_data.frame_index} analysis failed: {e}")
            self.detector.clear_motion()
            return FrameSignal.absent()

    def _notify(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception as e:
                logging.warning(f"Motion callback error: {e}")

    def _band_label(self, signal: FrameSignal) -> str:
        if signal.candidate is None:
            return NO_BAND
        key = signal.candidate.band
        return self.registry.get(key).name if key in self.registry else key

    def _update_telemetry(self, signal: FrameSignal) -> None:
        candidate = signal.candidate
        if candidate is None:
            # Keep the last shape readings; only speed and band drop out
            self._telemetry = Telemetry(
                area=self._telemetry.area,
                circularity=self._telemetry.circularity,
                velocity=0,
                matched_band=NO_BAND,
            )
            return
        self._telemetry = Telemetry(
            area=int(round(candidate.area)),
            circularity=round(candidate.circularity, 2),
            velocity=int(round(signal.velocity)),
            matched_band=self._band_label(signal),
        )

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------

    @property
    def is_calibrating(self) -> bool:
        return self._calibrating

    def begin_calibration(self) -> None:
        """Enter calibration mode: preview keeps running, detection is suppressed."""
        self._calibrating = True
        logging.info(f"Calibration mode started: session={self.session_id}")

    def cancel_calibration(self) -> None:
        """Leave calibration mode and drop any capture still waiting for a frame."""
        with self._pending_lock:
            if REQUEST_CALIBRATE in self._pending:
                self._pending.remove(REQUEST_CALIBRATE)
        self._calibrating = False
        logging.info(f"Calibration mode cancelled: session={self.session_id}")

    def calibrate(self, frame_data: FrameData) -> CalibrationResult:
        """
        Sample the centre of this frame and rewrite the matching band.

        Ends calibration mode. The position history is dropped so the next
        velocity is not measured against a pre-calibration position.
        """
        result = self.calibrator.calibrate(frame_data, self.registry)
        self._calibrating = False
        self._last_calibration = result
        self.stats.calibrations += 1
        self.detector.reset()
        self.debouncer.clear_hits()
        return result

    @property
    def last_calibration(self) -> Optional[CalibrationResult]:
        return self._last_calibration

    # ------------------------------------------------------------------
    # Thread-safe requests, applied on the next frame
    # ------------------------------------------------------------------

    def request_calibration(self) -> None:
        """Queue a calibration to run on the next frame."""
        self._queue(REQUEST_CALIBRATE)

    def request_reset(self) -> None:
        """Queue a reset to run before the next frame."""
        self._queue(REQUEST_RESET)

    def _queue(self, request: str) -> None:
        with self._pending_lock:
            if request not in self._pending:
                self._pending.append(request)

    def _apply_pending(self, frame_data: FrameData) -> None:
        with self._pending_lock:
            pending, self._pending = self._pending, []
        for request in pending:
            if request == REQUEST_RESET:
                self.reset()
            elif request == REQUEST_CALIBRATE:
                self._calibrate_queued(frame_data)

    def _calibrate_queued(self, frame_data: FrameData) -> None:
        try:
            self.calibrate(frame_data)
        except Exception as e:
            # Calibration mode stays on so the user can capture again
            self.stats.analysis_errors += 1
            logging.warning(f"Frame {frame_data.frame_index} calibration failed: {e}")

    @property
    def pending_requests(self) -> List[str]:
        with self._pending_lock:
            return list(self._pending)

    # ------------------------------------------------------------------
    # Lifecycle and read-only views
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Clear debouncer state, position history and the previous frame."""
        self.debouncer.reset()
        self.detector.reset()
        self._telemetry = Telemetry()
        logging.info(f"Detection session reset: session={self.session_id}")

    @property
    def telemetry(self) -> Telemetry:
        return self._telemetry

    @property
    def state(self) -> DetectorState:
        """Copy of the debouncer state."""
        s = self.debouncer.state
        return DetectorState(
            consecutive_hits=s.consecutive_hits,
            last_trigger_timestamp=s.last_trigger_timestamp,
            warmup_active=s.warmup_active,
            stream_start=s.stream_start,
            phase=s.phase,
        )

    def status(self, now: Optional[float] = None) -> Dict[str, Any]:
        now = time.time() if now is None else now
        last = self.stats.last_frame_wall_time
        return {
            "session_id": self.session_id,
            "strategy": self.detector.name,
            "calibrating": self._calibrating,
            "last_frame_age": (now - last) if last is not None else None,
            "state": self.state.to_dict(),
            "stats": self.stats.to_dict(),
        }


def create_session_from_config(
    config: Union[Config, DetectionConfig, Dict[str, Any]],
    session_id: str = "main-camera",
) -> DetectionSession:
    """
    Factory: build a session from the full config dict, a Config, or a DetectionConfig.

    Raises ValueError for out-of-range settings so bad configuration is
    rejected before the first frame.
    """
    if isinstance(config, dict):
        config = Config.from_dict(config)
    det_cfg = config.detection if isinstance(config, Config) else config

    registry = ColorRangeRegistry.from_config(det_cfg.color_shape.bands)
    if det_cfg.strategy == STRATEGY_FRAME_DIFF:
        detector: SignalDetector = FrameDiffDetector.from_config(det_cfg.frame_diff)
    else:
        detector = ColorShapeDetector.from_config(det_cfg.color_shape, registry)

    debouncer = EventDebouncer(
        hit_threshold=det_cfg.debounce.hit_threshold,
        cooldown_seconds=det_cfg.cooldown_seconds,
        warmup_seconds=det_cfg.debounce.warmup_seconds,
        policy=det_cfg.debounce.policy,
    )
    calibrator = Calibrator.from_config(det_cfg.calibration, blur_kernel=det_cfg.color_shape.blur_kernel)
    logging.info(
        f"Detection session created: session={session_id} strategy={det_cfg.strategy} "
        f"bands={registry.names()} hit_threshold={debouncer.hit_threshold} "
        f"cooldown={debouncer.cooldown_seconds}s policy={debouncer.policy}"
    )
    return DetectionSession(
        detector=detector,
        debouncer=debouncer,
        registry=registry,
        calibrator=calibrator,
        session_id=session_id,
    )
