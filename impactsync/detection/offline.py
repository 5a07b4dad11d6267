"""Offline impact analysis of a finished recording."""

import io
import logging
import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, Union

import numpy as np
from scipy.io import wavfile

from ..models.detection import (
    DEFAULT_IMPACT_THRESHOLD,
    ImpactDetectionResult,
    validate_threshold,
)
from .errors import AudioDecodeError

logger = logging.getLogger(__name__)

AudioBlob = Union[bytes, bytearray, memoryview, str, os.PathLike, BinaryIO]


@dataclass
class DecodedAudio:
    """First channel of a decoded clip."""
    samples: np.ndarray  # float64, integer PCM scaled to [-1, 1]
    sample_rate: int

    @property
    def duration_ms(self) -> float:
        return len(self.samples) / self.sample_rate * 1000.0


def _to_float(data: np.ndarray) -> np.ndarray:
    if data.dtype == np.uint8:
        return (data.astype(np.float64) - 128.0) / 128.0
    if data.dtype == np.int16:
        return data.astype(np.float64) / 32768.0
    if data.dtype == np.int32:
        return data.astype(np.float64) / 2147483648.0
    if np.issubdtype(data.dtype, np.floating):
        return data.astype(np.float64)
    raise AudioDecodeError(f"Unsupported sample format: {data.dtype}")


def decode_audio(audio_blob: AudioBlob) -> DecodedAudio:
    """Decode a WAV blob, path or file object into mono float samples.

    Raises:
        AudioDecodeError: if the input is not decodable audio
    """
    if isinstance(audio_blob, (bytes, bytearray, memoryview)):
        source = io.BytesIO(bytes(audio_blob))
    else:
        source = audio_blob

    try:
        sample_rate, data = wavfile.read(source)
    except (ValueError, EOFError, struct.error) as e:
        logger.error(f"Could not decode recorded audio: {e}")
        raise AudioDecodeError(f"Could not decode recorded audio: {e}") from e

    if data.ndim > 1:
        data = data[:, 0]
    if sample_rate <= 0:
        raise AudioDecodeError(f"Invalid sample rate in recording: {sample_rate}")

    decoded = DecodedAudio(samples=_to_float(data), sample_rate=int(sample_rate))
    logger.debug(f"Decoded {len(decoded.samples)} samples at {decoded.sample_rate}Hz")
    return decoded


class OfflineImpactAnalyzer:
    """Finds the impact in a complete recording by global peak search.

    The loudest sample of the whole clip is taken as the impact. Unlike the
    live detector, confidence here is the raw peak amplitude clamped to 1.0,
    not a ratio.
    """

    @staticmethod
    def analyze_samples(samples, sample_rate: int,
                        impact_threshold: float = DEFAULT_IMPACT_THRESHOLD) -> ImpactDetectionResult:
        threshold = validate_threshold(impact_threshold)
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")

        samples = np.asarray(samples, dtype=np.float64)
        if samples.ndim > 1:
            samples = samples[:, 0]
        if samples.size == 0:
            return ImpactDetectionResult.not_detected()

        magnitudes = np.nan_to_num(np.abs(samples), nan=0.0)
        peak_index = int(np.argmax(magnitudes))
        max_amplitude = float(magnitudes[peak_index])

        if max_amplitude > threshold:
            timestamp_ms = (peak_index / sample_rate) * 1000.0
            confidence = min(max_amplitude, 1.0)
            logger.info(f"Offline impact at sample {peak_index} ({timestamp_ms:.1f}ms), "
                        f"amplitude={max_amplitude:.3f}")
            return ImpactDetectionResult(detected=True, timestamp_ms=timestamp_ms, confidence=confidence)

        logger.info(f"No offline impact: peak {max_amplitude:.3f} <= threshold {threshold}")
        return ImpactDetectionResult.not_detected()

    @staticmethod
    def analyze_recorded_audio(audio_blob: AudioBlob,
                               impact_threshold: float = DEFAULT_IMPACT_THRESHOLD) -> ImpactDetectionResult:
        """Decode ``audio_blob`` and locate its impact.

        Raises:
            AudioDecodeError: if the blob cannot be decoded
            ValueError: if the threshold is outside (0, 1)
        """
        validate_threshold(impact_threshold)
        decoded = decode_audio(audio_blob)
        return OfflineImpactAnalyzer.analyze_samples(
            decoded.samples, decoded.sample_rate, impact_threshold)


analyze_samples = OfflineImpactAnalyzer.analyze_samples
analyze_recorded_audio = OfflineImpactAnalyzer.analyze_recorded_audio
