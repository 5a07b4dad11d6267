"""Microphone capture for a swing recording.

Every chunk read from the input device becomes an ``AudioEvent`` handed to
the callback (normally ``AudioPublisher.publish_audio_event``), and the raw
PCM is retained so the finished take can be re-analysed offline.
"""

import logging
import time
from threading import Event, Lock, Thread
from typing import Callable, List, Optional

import pyaudio

from ..models.audio import AudioStats
from ..models.events import AudioEvent

logger = logging.getLogger(__name__)


class AudioCapture:
    """Reads the microphone on a daemon thread until stopped."""

    def __init__(
        self,
        callback: Callable[[AudioEvent], None],
        sample_rate: int = 48000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
        keep_audio: bool = True,
    ):
        """Initialize audio capture.

        Args:
            callback: Receives every captured AudioEvent
            sample_rate: Input rate in Hz, should match the detector's
            chunk_size: Frames per read
            channels: Interleaved input channels
            format: PyAudio sample format
            keep_audio: Retain PCM for the offline pass and WAV export
        """
        self.audio_event_callback = callback
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format
        self.keep_audio = keep_audio

        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        self.start_time: Optional[float] = None
        self.stop_time: Optional[float] = None
        self.total_chunks = 0

        self.audio_data: List[bytes] = []
        self.audio_lock = Lock()

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self._stream: Optional[pyaudio.Stream] = None
        self._stream_lock = Lock()

    def start_recording(self) -> None:
        """Open the input device and start the read thread.

        Raises:
            OSError: if PyAudio cannot open the input device
        """
        if self.is_recording:
            logger.warning("Capture already running")
            return

        self.stop_event.clear()
        self.clear_audio_data()
        self.total_chunks = 0
        self._stream = self._open_stream()
        self.start_time = time.monotonic()
        self.stop_time = None

        self.recording_thread = Thread(target=self._record_continuously,
                                       name="AudioCaptureThread", daemon=True)
        self.recording_thread.start()
        self.is_recording = True
        logger.info(f"Capture started: {self.sample_rate}Hz x{self.channels}, "
                    f"{self.chunk_size} frames/chunk")

    def stop_recording(self) -> None:
        """Signal the capture thread and wait for it to drain."""
        if not self.is_recording:
            logger.warning("Capture is not running")
            return

        self.stop_event.set()
        thread = self.recording_thread
        if thread is not None and thread.is_alive():
            thread.join(timeout=2.0)
        if thread is not None and thread.is_alive():
            logger.warning("Capture thread did not stop within 2s")
        else:
            self._close_stream()

        self.stop_time = time.monotonic()
        self.is_recording = False
        logger.info(f"Capture stopped after {self.total_chunks} chunks")

    def _open_stream(self) -> pyaudio.Stream:
        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            return self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
            )
        except Exception as e:
            logger.error(f"Could not open audio input device: {e}")
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
            raise

    def _close_stream(self) -> None:
        """Release the stream and PyAudio. Safe to call more than once."""
        with self._stream_lock:
            stream, self._stream = self._stream, None
            instance, self.pyaudio_instance = self.pyaudio_instance, None
        if stream is not None:
            stream.stop_stream()
            stream.close()
        if instance is not None:
            instance.terminate()

    def _capture_chunk(self, stream: pyaudio.Stream, final: bool) -> None:
        pcm = stream.read(self.chunk_size, exception_on_overflow=False)
        self.total_chunks += 1
        if self.keep_audio:
            with self.audio_lock:
                self.audio_data.append(pcm)

        self.audio_event_callback(AudioEvent(
            chunk_id=f"chunk_{self.total_chunks}",
            audio_data=pcm,
            timestamp=time.time(),
            sequence_number=self.total_chunks,
            sample_rate=self.sample_rate,
            channels=self.channels,
            final=final,
        ))

    def _record_continuously(self) -> None:
        stream = self._stream
        try:
            while not self.stop_event.is_set():
                self._capture_chunk(stream, final=False)
            # One last chunk flagged final so subscribers see the end
            self._capture_chunk(stream, final=True)
        except Exception as e:
            logger.error(f"Audio capture failed: {e}", exc_info=True)
            raise
        finally:
            self._close_stream()

    def get_audio_chunks(self) -> List[bytes]:
        with self.audio_lock:
            return list(self.audio_data)

    def get_audio_bytes(self) -> bytes:
        return b"".join(self.get_audio_chunks())

    def clear_audio_data(self) -> None:
        with self.audio_lock:
            self.audio_data = []

    def get_recording_stats(self) -> AudioStats:
        duration = 0.0
        if self.start_time is not None:
            end = self.stop_time if self.stop_time is not None else time.monotonic()
            duration = end - self.start_time

        with self.audio_lock:
            retained = sum(len(chunk) for chunk in self.audio_data)

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            retained_bytes=retained,
        )

    def __del__(self):
        if getattr(self, "is_recording", False):
            self.stop_recording()
