"""Live impact detection on a streaming audio source."""

import asyncio
import logging
import threading
import time
from typing import Callable, Optional

import numpy as np

from ..audio.analyser import AnalyserGraph, peak_amplitude
from ..models.detection import DetectorConfig, DetectorState, ImpactDetectionResult
from .errors import DetectorStateError, NotListeningError

logger = logging.getLogger(__name__)


class StreamImpactDetector:
    """Detects the bat/ball contact transient on a live audio stream.

    A tick reads the current analyser frame and compares its peak amplitude
    against both the absolute ``impact_threshold`` and ``noise_factor`` times
    the running mean of every peak seen since ``start_listening``. Both must
    be exceeded, so steady loud background never triggers.

    Confidence is the hit amplitude relative to the loudest peak of the
    session so far. It is 1.0 whenever the hit is the loudest sound yet.

    Lifecycle: IDLE -> LISTENING -> STOPPED, and STOPPED -> LISTENING again
    with fresh statistics. Calling ``start_listening`` while LISTENING raises
    ``DetectorStateError``.
    """

    def __init__(self, config: Optional[DetectorConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config or DetectorConfig()
        self.state = DetectorState.IDLE
        self._clock = clock

        self._graph: Optional[AnalyserGraph] = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._session = 0

        self._reset_session_stats()

    def _reset_session_stats(self) -> None:
        self.start_time = 0.0
        self.tick_count = 0
        self.background_noise = 0.0
        self.max_amplitude = 0.0

    @property
    def impact_threshold(self) -> float:
        return self.config.impact_threshold

    @property
    def is_listening(self) -> bool:
        return self.state is DetectorState.LISTENING

    def start_listening(self, audio_stream) -> None:
        """Attach to ``audio_stream`` (anything with a pub/sub ``topic``)."""
        with self._lock:
            if self.state is DetectorState.LISTENING:
                raise DetectorStateError("Already listening; call stop_listening() first")

            graph = AnalyserGraph(
                topic=audio_stream.topic,
                fft_size=self.config.fft_size,
                smoothing_time_constant=self.config.smoothing_time_constant,
                sample_rate=self.config.sample_rate,
            )
            try:
                graph.connect()
            except Exception as e:
                graph.close()
                logger.error(f"Failed to attach to audio stream {audio_stream.topic}: {e}")
                raise

            self._graph = graph
            self._session += 1
            self._stop_event.clear()
            self._reset_session_stats()
            self.start_time = self._clock()
            self.state = DetectorState.LISTENING

        logger.info(f"Listening for impacts on {audio_stream.topic} "
                    f"(threshold={self.impact_threshold}, session={self._session})")

    def stop_listening(self) -> None:
        """Release the analyser graph and cancel pending detections."""
        with self._lock:
            if self.state is not DetectorState.LISTENING:
                return
            self._stop_event.set()
            graph, self._graph = self._graph, None
            self.state = DetectorState.STOPPED

        if graph is not None:
            graph.close()
        logger.info(f"Stopped listening (session={self._session}, ticks={self.tick_count})")

    async def detect_impact(self) -> ImpactDetectionResult:
        """Wait until an impact is heard or the detector is stopped.

        Raises:
            NotListeningError: if no stream is attached
        """
        if self.state is not DetectorState.LISTENING or self._graph is None:
            raise NotListeningError("Not listening to audio stream")

        session = self._session
        interval = self.config.tick_interval

        while True:
            if self._cancelled(session):
                logger.debug("Impact detection cancelled by stop_listening()")
                return ImpactDetectionResult.not_detected()

            result = self.check_for_impact()
            if result is not None:
                return result

            await asyncio.sleep(interval)

    def _cancelled(self, session: int) -> bool:
        return self._stop_event.is_set() or session != self._session or self._graph is None

    def check_for_impact(self) -> Optional[ImpactDetectionResult]:
        """Run one detection tick; returns a result only on a hit."""
        graph = self._graph
        if graph is None:
            return None

        amplitude = peak_amplitude(graph.get_time_domain_data())

        self.tick_count += 1
        n = self.tick_count
        self.background_noise = (self.background_noise * (n - 1) + amplitude) / n
        self.max_amplitude = max(self.max_amplitude, amplitude)

        is_spike = amplitude > self.impact_threshold
        is_significant = amplitude > self.background_noise * self.config.noise_factor
        if not (is_spike and is_significant):
            return None

        timestamp_ms = (self._clock() - self.start_time) * 1000.0
        confidence = min(amplitude / self.max_amplitude, 1.0)
        logger.info(f"Impact detected at {timestamp_ms:.1f}ms: amplitude={amplitude:.3f}, "
                    f"background={self.background_noise:.3f}, confidence={confidence:.2f}")
        return ImpactDetectionResult(detected=True, timestamp_ms=timestamp_ms, confidence=confidence)

    def get_current_level(self) -> float:
        """Peak amplitude of the current frame, 0.0 when not listening."""
        graph = self._graph
        if graph is None:
            return 0.0
        return peak_amplitude(graph.get_time_domain_data())

    def get_frequency_data(self) -> np.ndarray:
        """Smoothed spectrum in dB, empty when not listening."""
        graph = self._graph
        if graph is None:
            return np.zeros(0)
        return graph.get_float_frequency_data()

    def get_peak_frequency(self) -> Optional[float]:
        graph = self._graph
        if graph is None:
            return None
        return graph.peak_frequency()

    def __del__(self):
        if getattr(self, "state", None) is DetectorState.LISTENING:
            self.stop_listening()
