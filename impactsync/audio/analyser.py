"""Analyser graph: the audio-processing graph a live detector owns.

The graph subscribes to an audio topic, keeps the most recent ``fft_size``
samples and offers the time-domain frame and a smoothed spectrum of it.
It only ever reads from the stream; closing it unsubscribes and leaves the
capture feeding the topic untouched.
"""

import logging
import threading
from typing import Optional

import numpy as np
from pubsub import pub
from scipy.signal import get_window

from .buffer import RollingSampleBuffer
from ..models.events import AudioEvent

logger = logging.getLogger(__name__)

# dB floor reported for empty frequency bins
MIN_DECIBELS = -240.0


def peak_amplitude(samples: np.ndarray) -> float:
    """Largest absolute sample value, 0.0 for an empty frame."""
    if len(samples) == 0:
        return 0.0
    return float(np.max(np.abs(samples)))


class AnalyserGraph:
    """Time-domain window plus smoothed spectrum over one audio topic."""

    def __init__(self, topic: str, fft_size: int = 2048,
                 smoothing_time_constant: float = 0.3, sample_rate: int = 48000):
        if not topic:
            raise ValueError("Audio stream has no topic to listen on")
        self.topic = topic
        self.fft_size = fft_size
        self.smoothing_time_constant = smoothing_time_constant
        self.sample_rate = sample_rate

        self.buffer = RollingSampleBuffer(fft_size)
        self.frames_received = 0
        self.connected = False
        self.closed = False

        self._window = get_window("blackman", fft_size, fftbins=False)
        self._smoothed = np.zeros(self.frequency_bin_count, dtype=np.float64)
        self._spectrum_lock = threading.Lock()
        self._rate_warned = False

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    def connect(self) -> None:
        """Start receiving audio events from the topic."""
        if self.closed:
            raise RuntimeError("Analyser graph already closed")
        if self.connected:
            return
        pub.subscribe(self._on_audio_event, self.topic)
        self.connected = True
        logger.info(f"Analyser graph connected to {self.topic} "
                    f"(fft_size={self.fft_size}, smoothing={self.smoothing_time_constant})")

    def close(self) -> None:
        """Stop receiving audio. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        if self.connected:
            pub.unsubscribe(self._on_audio_event, self.topic)
            self.connected = False
        logger.info(f"Analyser graph on {self.topic} closed after {self.frames_received} frames")

    def __enter__(self) -> "AnalyserGraph":
        try:
            self.connect()
        except Exception:
            self.close()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _on_audio_event(self, event: AudioEvent) -> None:
        if event.sample_rate != self.sample_rate and not self._rate_warned:
            logger.warning(f"Audio on {self.topic} is {event.sample_rate}Hz, "
                           f"analyser configured for {self.sample_rate}Hz")
            self._rate_warned = True
        self.buffer.add_samples(event.samples())
        self.frames_received += 1

    def get_time_domain_data(self) -> np.ndarray:
        """Most recent ``fft_size`` samples, normalised to [-1, 1]."""
        return self.buffer.get_samples()

    def get_float_frequency_data(self) -> np.ndarray:
        """Smoothed magnitude spectrum of the current frame in dB."""
        frame = self.buffer.get_samples() * self._window
        magnitudes = np.abs(np.fft.rfft(frame))[:self.frequency_bin_count] / self.fft_size

        with self._spectrum_lock:
            tau = self.smoothing_time_constant
            self._smoothed = tau * self._smoothed + (1.0 - tau) * magnitudes
            smoothed = self._smoothed.copy()

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(smoothed)
        return np.maximum(decibels, MIN_DECIBELS)

    def bin_frequency(self, index: int) -> float:
        """Centre frequency in Hz of a frequency bin."""
        return index * self.sample_rate / self.fft_size

    def peak_frequency(self) -> Optional[float]:
        """Frequency of the loudest bin, None while the frame is silent."""
        spectrum = self.get_float_frequency_data()
        index = int(np.argmax(spectrum))
        if spectrum[index] <= MIN_DECIBELS:
            return None
        return self.bin_frequency(index)
