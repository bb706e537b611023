"""
Tests for the pipeline engine.
"""

import pytest
from unittest.mock import MagicMock, patch

from observation.base import ObservationConfig, ObservationSource
from observation.sequence_source import FrameSequenceSource
from pipeline.engine import (
    AcquisitionError,
    PipelineConfig,
    PipelineEngine,
    create_engine_from_config,
)
from pipeline.session import create_session_from_config


class UnavailableSource(ObservationSource):
    """Source whose camera cannot be opened."""

    def __init__(self):
        super().__init__(ObservationConfig(source_id="broken-cam"))
        self.closed = False

    def open(self):
        raise RuntimeError("camera permission denied")

    def read(self):
        return None

    def close(self):
        self.closed = True


def _session():
    return create_session_from_config({
        "detection": {"debounce": {"hit_threshold": 2, "warmup_seconds": 0.0}},
    })


def _engine(source, session, **kwargs):
    config = PipelineConfig(max_consecutive_failures=1, failure_backoff=0.0)
    return PipelineEngine(source, session, config, **kwargs)


class TestPipelineEngine:
    def test_runs_sequence_to_exhaustion(self, pass_sequence):
        frames, timestamps = pass_sequence
        source = FrameSequenceSource(ObservationConfig(source_id="replay"), frames, timestamps)
        session = _session()
        motion = MagicMock()
        session.add_callback(motion)

        engine = _engine(source, session)
        engine.run()

        assert engine.stats.frame_count == 5
        assert engine.stats.event_count == 1
        motion.assert_called_once_with()
        assert engine.running is False
        assert source.is_open is False

    def test_frame_callbacks_see_every_result(self, pass_sequence):
        frames, timestamps = pass_sequence
        source = FrameSequenceSource(ObservationConfig(), frames, timestamps)
        engine = _engine(source, _session())
        seen = []
        engine.add_callback(lambda fd, result: seen.append((fd.frame_index, result.triggered)))

        engine.run()

        assert seen == [(1, False), (2, False), (3, False), (4, False), (5, True)]

    def test_callback_error_does_not_stop_loop(self, pass_sequence):
        frames, timestamps = pass_sequence
        source = FrameSequenceSource(ObservationConfig(), frames, timestamps)
        engine = _engine(source, _session())
        engine.add_callback(MagicMock(side_effect=ValueError("overlay failed")))

        engine.run()

        assert engine.stats.frame_count == 5

    def test_is_active_gate(self, pass_sequence):
        frames, timestamps = pass_sequence
        source = FrameSequenceSource(ObservationConfig(), frames, timestamps)
        engine = _engine(source, _session(), is_active=lambda: False)

        engine.run()

        assert engine.stats.frame_count == 5
        assert engine.stats.event_count == 0

    def test_unavailable_source_raises(self):
        source = UnavailableSource()
        engine = _engine(source, _session())

        with pytest.raises(AcquisitionError, match="permission denied"):
            engine.run()

        assert engine.running is False
        assert engine.stats.frame_count == 0

    def test_stop_ends_loop(self, pass_sequence):
        frames, timestamps = pass_sequence
        source = FrameSequenceSource(ObservationConfig(), frames * 4, timestamps * 4)
        engine = _engine(source, _session())
        engine.add_callback(lambda fd, result: engine.stop() if fd.frame_index == 3 else None)

        engine.run()

        assert engine.stats.frame_count == 3

    def test_read_failures_tolerated_until_limit(self):
        source = MagicMock(spec=ObservationSource)
        source.source_id = "flaky"
        source.read.return_value = None
        engine = PipelineEngine(
            source, _session(), PipelineConfig(max_consecutive_failures=3, failure_backoff=0.0)
        )

        engine.run()

        assert source.read.call_count == 3
        source.close.assert_called_once()


class TestCreateEngineFromConfig:
    def test_builds_opencv_source_and_session(self, valid_config):
        engine = create_engine_from_config(valid_config)

        assert engine.source.source_id == "main-camera"
        assert engine.session.session_id == "main-camera"
        assert engine.session.detector.name == "color_shape"

    def test_uses_given_session(self, valid_config):
        session = _session()
        engine = create_engine_from_config(valid_config, session=session)
        assert engine.session is session

    def test_open_failure_from_config(self, valid_config):
        valid_config["camera"]["device_id"] = "/nonexistent/over_3.mp4"
        engine = create_engine_from_config(valid_config)

        with patch("observation.opencv_source.cv2.VideoCapture") as capture:
            capture.return_value.isOpened.return_value = False
            with pytest.raises(AcquisitionError):
                engine.run()
