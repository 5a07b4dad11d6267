"""Recording service that captures a swing and locates its impact."""

import asyncio
import time
import logging
from datetime import datetime
from typing import Optional, List

from ..audio.audio_pub import AudioPublisher
from ..audio.audio_saver import encode_wav
from ..audio.capture import AudioCapture
from ..config import ImpactSyncConfig
from ..detection.offline import OfflineImpactAnalyzer
from ..detection.stream_detector import StreamImpactDetector
from ..models.audio import AudioStats
from ..models.detection import ImpactDetectionResult
from ..models.session import ImpactSyncRecording, frame_index_for
from ..storage.file_manager import FileManager
from .level_monitor import LevelMonitor

logger = logging.getLogger(__name__)


class ImpactRecordingService:
    """Runs one recording: capture, live detection, offline re-sync, storage.

    The impact time on the video timeline comes from the offline peak of the
    captured audio when one is found, else from the live detection, else from
    the moment recording was stopped.
    """

    def __init__(self, config: ImpactSyncConfig, file_manager: Optional[FileManager] = None,
                 detector: Optional[StreamImpactDetector] = None):
        """Initialize recording service.

        Args:
            config: Application configuration
            file_manager: Where finished recordings are stored, if anywhere
            detector: Live detector to use; built from config when omitted
        """
        self.config = config
        self.file_manager = file_manager
        self.detector = detector or StreamImpactDetector(config.detector_config())

        self.audio_publisher: Optional[AudioPublisher] = None
        self.audio_capture: Optional[AudioCapture] = None
        self.level_monitor: Optional[LevelMonitor] = None

        # Recording state
        self.is_recording = False
        self.current_session_id: Optional[str] = None
        self.live_result = ImpactDetectionResult.not_detected()
        self._recording_started = 0.0
        self._listen_offset_ms = 0.0

    def start_recording(self, session_id: Optional[str] = None) -> str:
        """Start capture and live detection.

        Returns:
            The session ID of the new recording
        """
        if self.is_recording:
            raise RuntimeError(f"Already recording session {self.current_session_id}")

        if session_id is None:
            if self.file_manager:
                session_id = self.file_manager.create_session_directory()
            else:
                session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

        sample_rate = self.config.get('audio.sample_rate', 48000)
        channels = self.config.get('audio.channels', 1)

        self.audio_publisher = AudioPublisher(
            topic=self.config.get('audio.topic', 'audio_frames'),
            sample_rate=sample_rate,
            channels=channels,
        )
        self.audio_capture = AudioCapture(
            callback=self.audio_publisher.publish_audio_event,
            sample_rate=sample_rate,
            chunk_size=self.config.get('audio.chunk_size', 1024),
            channels=channels,
        )

        self.audio_capture.start_recording()
        self._recording_started = time.monotonic()
        try:
            self.detector.start_listening(self.audio_publisher)
            self._listen_offset_ms = (time.monotonic() - self._recording_started) * 1000.0

            self.level_monitor = LevelMonitor(
                self.detector,
                interval_ms=self.config.get('detection.level_interval_ms', 50),
            )
            self.level_monitor.start()
        except Exception as e:
            logger.error(f"Could not start impact detection: {e}")
            self._abort_start()
            raise

        self.current_session_id = session_id
        self.live_result = ImpactDetectionResult.not_detected()
        self.is_recording = True
        logger.info(f"Started recording for session: {session_id}")
        return session_id

    def _abort_start(self) -> None:
        """Undo a partially started recording."""
        if self.level_monitor:
            self.level_monitor.stop()
            self.level_monitor = None
        self.detector.stop_listening()
        self.audio_capture.stop_recording()

    def wait_for_impact(self, timeout: Optional[float] = None) -> ImpactDetectionResult:
        """Block until the live detector hears an impact or ``timeout`` expires.

        On timeout the detector is stopped and a negative result returned;
        capture keeps running until stop_recording().
        """
        if timeout is None:
            timeout = self.config.get('recording.max_wait_seconds') or None
        self.live_result = asyncio.run(self._wait_for_impact(timeout))
        return self.live_result

    async def _wait_for_impact(self, timeout: Optional[float]) -> ImpactDetectionResult:
        try:
            return await asyncio.wait_for(self.detector.detect_impact(), timeout)
        except asyncio.TimeoutError:
            logger.info(f"No impact detected within {timeout}s")
            self.detector.stop_listening()
            return ImpactDetectionResult.not_detected()

    def stop_recording(self, live_result: Optional[ImpactDetectionResult] = None) -> ImpactSyncRecording:
        """Stop recording and place the impact on the video timeline."""
        if not self.is_recording:
            raise RuntimeError("Not recording")

        live_result = live_result or self.live_result
        manual_mark_ms = (time.monotonic() - self._recording_started) * 1000.0

        post_impact_ms = self.config.get('recording.post_impact_ms', 500)
        if post_impact_ms > 0:
            # Keep capturing the follow-through after the impact mark
            time.sleep(post_impact_ms / 1000.0)

        self.level_monitor.stop()
        self.detector.stop_listening()
        self.audio_capture.stop_recording()
        self.is_recording = False

        chunks = self.audio_capture.get_audio_chunks()
        if not any(chunks):
            raise RuntimeError(f"No audio captured for session {self.current_session_id}")
        recording = self._build_recording(chunks, live_result, manual_mark_ms)

        logger.info(f"Session stopped: {recording.session_id}, impact at "
                    f"{recording.impact_timestamp_ms:.1f}ms ({recording.impact_source}), "
                    f"frame {recording.impact_frame_index}/{recording.total_frames}")
        return recording

    def _build_recording(self, chunks: List[bytes], live_result: ImpactDetectionResult,
                         manual_mark_ms: float) -> ImpactSyncRecording:
        sample_rate = self.audio_capture.sample_rate
        channels = self.audio_capture.channels
        frame_rate = float(self.config.get('recording.frame_rate', 120.0))

        pcm_bytes = sum(len(chunk) for chunk in chunks)
        duration_ms = pcm_bytes / (2 * channels * sample_rate) * 1000.0
        wav_blob = encode_wav(chunks, sample_rate, channels)

        offline_result = OfflineImpactAnalyzer.analyze_recorded_audio(
            wav_blob, self.detector.impact_threshold)

        if offline_result.detected:
            impact_ms, source = offline_result.timestamp_ms, "offline"
        elif live_result.detected:
            impact_ms, source = live_result.timestamp_ms + self._listen_offset_ms, "live"
        else:
            impact_ms, source = manual_mark_ms, "manual"
        impact_ms = min(impact_ms, duration_ms)

        audio_file = None
        if self.file_manager:
            audio_file = self.file_manager.save_audio_file(
                wav_blob, self.current_session_id, "recording.wav")

        recording = ImpactSyncRecording(
            session_id=self.current_session_id,
            audio_file=audio_file,
            sample_rate=sample_rate,
            duration_ms=duration_ms,
            live_result=live_result,
            offline_result=offline_result,
            impact_timestamp_ms=impact_ms,
            impact_source=source,
            impact_frame_index=frame_index_for(impact_ms, frame_rate),
            total_frames=frame_index_for(duration_ms, frame_rate),
            frame_rate=frame_rate,
            pre_impact_seconds=impact_ms / 1000.0,
            post_impact_seconds=max(duration_ms - impact_ms, 0.0) / 1000.0,
        )

        if self.file_manager:
            self.file_manager.save_recording(recording)
        return recording

    def get_recording_stats(self) -> Optional[AudioStats]:
        """Get current recording statistics."""
        if self.audio_capture:
            return self.audio_capture.get_recording_stats()
        return None

    def get_current_level(self) -> float:
        if self.level_monitor:
            return self.level_monitor.latest_level
        return 0.0

    def cleanup(self) -> None:
        """Stop everything without building a recording."""
        if self.level_monitor:
            self.level_monitor.stop()
        self.detector.stop_listening()
        if self.audio_capture and self.audio_capture.is_recording:
            self.audio_capture.stop_recording()

        self.is_recording = False
        self.current_session_id = None
        logger.info("ImpactRecordingService cleaned up")
