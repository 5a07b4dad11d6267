"""Unit tests for WAV encoding helpers."""

import io
import wave

import numpy as np
import pytest

from impactsync.audio.audio_saver import encode_wav, save_wav
from impactsync.detection import decode_audio


@pytest.mark.unit
class TestAudioSaver:

    def test_encode_wav_parameters(self):
        pcm = np.array([0, 1000, -1000, 32767], dtype="<i2").tobytes()

        blob = encode_wav([pcm[:4], pcm[4:]], sample_rate=44100)

        with wave.open(io.BytesIO(blob), 'rb') as wf:
            assert wf.getnchannels() == 1
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == 44100
            assert wf.getnframes() == 4
            assert wf.readframes(4) == pcm

    def test_encode_empty(self):
        blob = encode_wav([], sample_rate=48000)

        with wave.open(io.BytesIO(blob), 'rb') as wf:
            assert wf.getnframes() == 0

    def test_encoded_blob_decodes(self):
        pcm = np.array([0, 16384, -16384], dtype="<i2").tobytes()

        decoded = decode_audio(encode_wav([pcm], sample_rate=48000))

        assert decoded.sample_rate == 48000
        np.testing.assert_allclose(decoded.samples, [0.0, 0.5, -0.5])

    def test_save_wav(self, temp_data_dir):
        path = f"{temp_data_dir}/take.wav"
        pcm = b'\x00\x00' * 480

        save_wav(path, [pcm], sample_rate=48000)

        with wave.open(path, 'rb') as wf:
            assert wf.getnframes() == 480
            assert wf.getframerate() == 48000

    def test_save_wav_bad_directory(self, temp_data_dir):
        with pytest.raises(OSError):
            save_wav(f"{temp_data_dir}/missing/take.wav", [b'\x00\x00'], sample_rate=48000)
