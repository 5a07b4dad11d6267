"""Bat/ball impact detection and video sync for swing recordings."""

from .detection import (
    AudioDecodeError,
    DetectorStateError,
    NotListeningError,
    OfflineImpactAnalyzer,
    StreamImpactDetector,
    analyze_recorded_audio,
)
from .models import DetectorConfig, ImpactDetectionResult

__version__ = "0.1.0"

__all__ = [
    "AudioDecodeError",
    "DetectorStateError",
    "NotListeningError",
    "OfflineImpactAnalyzer",
    "StreamImpactDetector",
    "analyze_recorded_audio",
    "DetectorConfig",
    "ImpactDetectionResult",
]
