"""
Pipeline engine for the ball pass detector.

Pull loop over an ObservationSource: read a frame, hand it to the
DetectionSession, run callbacks, repeat. Frames are processed one at a time
in arrival order; stop() takes effect at the next frame boundary.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from models.frame import FrameData
from models.status import DetectionResult
from observation import ObservationSource, create_source_from_config
from pipeline.session import DetectionSession, create_session_from_config


class AcquisitionError(RuntimeError):
    """The frame source could not be opened. Fatal to the session."""


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        max_consecutive_failures: Max frame read failures before stopping.
        stats_log_interval: Seconds between status log messages.
        failure_backoff: Seconds to wait after a failed read.
    """
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0
    failure_backoff: float = 0.5


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    frame_count: int = 0
    event_count: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    consecutive_failures: int = 0


class PipelineEngine:
    """
    Main processing engine using ObservationSource for frame input.

    Example:
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        session = create_session_from_config(config)
        engine = PipelineEngine(source, session, PipelineConfig())
        engine.run()
    """

    def __init__(
        self,
        source: ObservationSource,
        session: DetectionSession,
        config: Optional[PipelineConfig] = None,
        is_active: Optional[Callable[[], bool]] = None,
    ):
        self.source = source
        self.session = session
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()
        self._is_active = is_active or (lambda: True)
        self._running = False
        self._callbacks: List[Callable[[FrameData, DetectionResult], None]] = []

    @property
    def running(self) -> bool:
        return self._running

    def add_callback(self, callback: Callable[[FrameData, DetectionResult], None]) -> None:
        """
        Add a callback to be called after each frame is processed.

        Args:
            callback: Function taking (frame_data, result) as arguments.
        """
        self._callbacks.append(callback)

    def run(self) -> None:
        """
        Run the main processing loop.

        Opens the observation source, processes frames until stopped or
        exhausted, then closes resources.

        Raises:
            AcquisitionError: If the source cannot be opened.
        """
        self._running = True
        self.stats = PipelineStats()

        try:
            self.source.open()
        except Exception as e:
            self._running = False
            logging.error(f"Frame source unavailable: source={self.source.source_id}: {e}")
            raise AcquisitionError(str(e)) from e

        logging.info(f"Pipeline started: source={self.source.source_id}")
        try:
            while self._running:
                frame_data = self.source.read()

                if frame_data is None:
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    logging.warning(
                        f"Frame read failed ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    time.sleep(self.config.failure_backoff)
                    continue

                self.stats.consecutive_failures = 0
                self.step(frame_data)
                self._handle_periodic_tasks()
        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        finally:
            self._cleanup()

    def step(self, frame_data: FrameData) -> DetectionResult:
        """Process one frame and run the per-frame callbacks."""
        self.stats.frame_count += 1
        result = self.session.process_frame(frame_data, is_active=self._is_active())
        if result.triggered:
            self.stats.event_count += 1

        for callback in self._callbacks:
            try:
                callback(frame_data, result)
            except Exception as e:
                logging.warning(f"Callback error: {e}")
        return result

    def stop(self) -> None:
        """Signal the pipeline to stop after the current frame."""
        self._running = False

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            elapsed = max(now - self.stats.start_time, 1e-6)
            logging.info(
                f"Pipeline stats: frames={self.stats.frame_count}, "
                f"events={self.stats.event_count}, "
                f"fps={self.stats.frame_count / elapsed:.1f}, "
                f"telemetry={self.session.telemetry.to_dict()}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        self._running = False
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")
        logging.info("Pipeline stopped")


def create_engine_from_config(
    config: Dict[str, Any],
    session: Optional[DetectionSession] = None,
    is_active: Optional[Callable[[], bool]] = None,
) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from a config dict.

    Args:
        config: Full application config dict.
        session: Existing session to drive; built from config when omitted.
        is_active: Callable polled once per frame; events only fire while it returns True.
    """
    camera_cfg = config.get("camera", {})
    source = create_source_from_config(camera_cfg, source_id="main-camera")
    if session is None:
        session = create_session_from_config(config, session_id=source.source_id)
    pipeline_cfg = config.get("pipeline", {}) or {}
    pipeline_config = PipelineConfig(
        max_consecutive_failures=pipeline_cfg.get("max_consecutive_failures", 10),
        stats_log_interval=pipeline_cfg.get("stats_log_interval", 60.0),
        failure_backoff=pipeline_cfg.get("failure_backoff", 0.5),
    )
    return PipelineEngine(source, session, pipeline_config, is_active=is_active)
