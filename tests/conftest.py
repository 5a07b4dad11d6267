"""Pytest configuration and fixtures for impactsync tests."""

import io
import logging
import os
import tempfile
from unittest.mock import Mock, patch

import numpy as np
import pytest
from pubsub import pub
from scipy.io import wavfile


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_RATE = 48000
FRAME_SIZE = 2048


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without audio hardware")
    config.addinivalue_line("markers", "integration: multi-component workflows with mocked hardware")
    config.addinivalue_line("markers", "slow: tests that sleep or spin threads for a while")
    config.addinivalue_line("markers", "hardware: needs a real microphone (set IMPACTSYNC_HARDWARE=1)")


def pytest_collection_modifyitems(config, items):
    if os.environ.get("IMPACTSYNC_HARDWARE") == "1":
        return
    skip_hardware = pytest.mark.skip(reason="set IMPACTSYNC_HARDWARE=1 to run hardware tests")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


def to_pcm16(samples) -> bytes:
    """Float samples in [-1, 1] to little-endian 16-bit PCM."""
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 32767 / 32768)
    return (clipped * 32768).astype("<i2").tobytes()


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop every pub/sub listener a test left behind."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def audio_stream():
    """Audio publisher standing in for a live microphone stream."""
    from impactsync.audio.audio_pub import AudioPublisher
    return AudioPublisher(topic="test_audio_frames", sample_rate=SAMPLE_RATE)


@pytest.fixture
def make_event():
    """Build an AudioEvent whose samples all have the given amplitude."""
    from impactsync.models.events import AudioEvent

    counter = {"n": 0}

    def build(amplitude=0.0, samples=None, sample_rate=SAMPLE_RATE, channels=1):
        if samples is None:
            samples = np.full(FRAME_SIZE * channels, amplitude)
        counter["n"] += 1
        return AudioEvent(
            chunk_id=f"chunk_{counter['n']}",
            audio_data=to_pcm16(samples),
            timestamp=0.0,
            sequence_number=counter["n"],
            sample_rate=sample_rate,
            channels=channels,
        )

    return build


@pytest.fixture
def publish(audio_stream, make_event):
    """Publish one constant-amplitude frame on the test stream."""
    def send(amplitude=0.0, samples=None):
        audio_stream.publish_audio_event(make_event(amplitude, samples))
    return send


@pytest.fixture
def wav_bytes():
    """Encode float samples as WAV bytes with scipy."""
    def encode(samples, sample_rate=SAMPLE_RATE, dtype="int16"):
        samples = np.asarray(samples, dtype=np.float64)
        if dtype == "int16":
            data = (np.clip(samples, -1.0, 32767 / 32768) * 32768).astype(np.int16)
        elif dtype == "uint8":
            data = (np.clip(samples, -1.0, 127 / 128) * 128 + 128).astype(np.uint8)
        else:
            data = samples.astype(dtype)
        buffer = io.BytesIO()
        wavfile.write(buffer, sample_rate, data)
        return buffer.getvalue()
    return encode


@pytest.fixture
def spike_buffer():
    """Silent buffer with a single spike."""
    def build(length=SAMPLE_RATE, index=12345, amplitude=0.9):
        samples = np.zeros(length)
        samples[index] = amplitude
        return samples
    return build


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def restore_root_logging():
    """Put back root logger handlers replaced by setup_logging()."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
