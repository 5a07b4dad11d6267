"""WAV encoding for captured PCM chunks."""

import io
import logging
import wave
from typing import Iterable

logger = logging.getLogger(__name__)


def _write_wav(target, chunks: Iterable[bytes], sample_rate: int, channels: int,
               sample_width: int) -> int:
    written = 0
    with wave.open(target, 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        
        for chunk in chunks:
            wf.writeframes(chunk)
            written += len(chunk)
    return written


def encode_wav(chunks: Iterable[bytes], sample_rate: int, channels: int = 1,
               sample_width: int = 2) -> bytes:
    """Encode raw PCM chunks as an in-memory WAV blob."""
    buffer = io.BytesIO()
    written = _write_wav(buffer, chunks, sample_rate, channels, sample_width)
    logger.debug(f"Encoded {written} bytes of PCM as WAV")
    return buffer.getvalue()


def save_wav(filepath: str, chunks: Iterable[bytes], sample_rate: int, channels: int = 1,
             sample_width: int = 2) -> None:
    """Save raw PCM chunks to a WAV file.
    
    Args:
        filepath: Path to save the WAV file
        chunks: Raw PCM chunks in capture order
        sample_rate: Sample rate in Hz
        channels: Number of interleaved channels
        sample_width: Bytes per sample
    """
    try:
        written = _write_wav(str(filepath), chunks, sample_rate, channels, sample_width)
        logger.info(f"Audio saved to {filepath} ({written} bytes of PCM)")
    except Exception as e:
        logger.error(f"Error saving audio file: {e}")
        raise
