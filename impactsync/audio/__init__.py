"""Audio plumbing: publishing, buffering, analysis and WAV encoding.

``AudioCapture`` lives in ``impactsync.audio.capture`` and needs PyAudio.
"""

from .audio_pub import AudioPublisher
from .buffer import RollingSampleBuffer
from .analyser import AnalyserGraph, peak_amplitude
from .audio_saver import encode_wav, save_wav

__all__ = [
    'AudioPublisher',
    'RollingSampleBuffer',
    'AnalyserGraph',
    'peak_amplitude',
    'encode_wav',
    'save_wav',
]
