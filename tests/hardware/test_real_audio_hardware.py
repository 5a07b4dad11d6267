"""Real hardware tests for impact recording.

These tests require an actual microphone and verify that the system works
with a real audio device by checking the saved recording.

Run with: IMPACTSYNC_HARDWARE=1 pytest tests/hardware/ -v -s -m hardware
"""

import time
import wave

import pytest

pytest.importorskip("pyaudio")

from impactsync.audio.audio_pub import AudioPublisher
from impactsync.audio.capture import AudioCapture
from impactsync.config import ImpactSyncConfig
from impactsync.detection import OfflineImpactAnalyzer
from impactsync.services.recording_service import ImpactRecordingService
from impactsync.storage.file_manager import FileManager


@pytest.mark.hardware
class TestRealAudioHardware:
    """Tests that require real audio hardware to run."""

    def test_real_microphone_capture_3s(self):
        """Capture three seconds and check the retained PCM size."""
        publisher = AudioPublisher(topic="hw_audio_frames")
        capture = AudioCapture(callback=publisher.publish_audio_event, sample_rate=48000)

        capture.start_recording()
        time.sleep(3.0)
        capture.stop_recording()

        stats = capture.get_recording_stats()
        print(f"\nCaptured {stats.total_chunks} chunks, {stats.retained_bytes} bytes")

        # 3s of 16-bit mono at 48kHz, allow for startup latency
        assert stats.retained_bytes > 0.8 * 3 * 48000 * 2
        assert publisher.events_published == stats.total_chunks

    def test_real_impact_recording(self, temp_data_dir):
        """Clap or hit something near the microphone within 10 seconds."""
        config = ImpactSyncConfig.from_dict({"storage": {"data_directory": temp_data_dir}})
        file_manager = FileManager(config.get_data_directory())
        service = ImpactRecordingService(config, file_manager)

        print("\n" + "=" * 60)
        print("HARDWARE TEST: make a sharp sound within 10 seconds")
        print("=" * 60)

        service.start_recording()
        try:
            result = service.wait_for_impact(10.0)
            recording = service.stop_recording(result)
        finally:
            service.cleanup()

        print(f"Live: {result}, impact at {recording.impact_timestamp_ms:.1f}ms "
              f"({recording.impact_source}), frame {recording.impact_frame_index}")

        assert recording.audio_file is not None
        with wave.open(recording.audio_file, 'rb') as wf:
            assert wf.getframerate() == 48000
            assert wf.getnframes() > 0

        offline = OfflineImpactAnalyzer.analyze_recorded_audio(recording.audio_file)
        assert offline == recording.offline_result
        assert file_manager.load_recording(recording.session_id) == recording
