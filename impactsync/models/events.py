"""Event models for pub/sub audio processing architecture."""

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class AudioEvent:
    """Audio chunk event with metadata."""
    chunk_id: str
    audio_data: bytes  # Interleaved 16-bit signed PCM
    timestamp: float  # Unix timestamp when chunk was captured
    sequence_number: int
    sample_rate: int = 48000
    channels: int = 1
    chunk_duration_ms: Optional[int] = None  # Duration of this chunk in milliseconds
    final: bool = False  # True if this is the final chunk for the session

    def __post_init__(self):
        """Calculate chunk duration if not provided."""
        if self.chunk_duration_ms is None and self.audio_data:
            bytes_per_second = self.sample_rate * self.channels * 2
            duration_seconds = len(self.audio_data) / bytes_per_second
            self.chunk_duration_ms = int(duration_seconds * 1000)

    def samples(self) -> np.ndarray:
        """Decode the first channel to float samples in [-1, 1]."""
        usable = len(self.audio_data) - len(self.audio_data) % 2
        pcm = np.frombuffer(self.audio_data[:usable], dtype="<i2")
        if self.channels > 1:
            frames = len(pcm) // self.channels
            pcm = pcm[:frames * self.channels].reshape(frames, self.channels)[:, 0]
        return pcm.astype(np.float32) / 32768.0


@dataclass
class LevelEvent:
    """Instantaneous input level published for metering."""
    level: float  # Peak amplitude of the current frame, 0-1
    peak_frequency_hz: Optional[float]
    timestamp: float
