"""Impact detection: live stream detector and offline analyzer."""

from .errors import (
    AudioDecodeError,
    DetectorStateError,
    ImpactSyncError,
    NotListeningError,
)
from .offline import (
    DecodedAudio,
    OfflineImpactAnalyzer,
    analyze_recorded_audio,
    analyze_samples,
    decode_audio,
)
from .stream_detector import StreamImpactDetector

__all__ = [
    "AudioDecodeError",
    "DetectorStateError",
    "ImpactSyncError",
    "NotListeningError",
    "DecodedAudio",
    "OfflineImpactAnalyzer",
    "analyze_recorded_audio",
    "analyze_samples",
    "decode_audio",
    "StreamImpactDetector",
]
