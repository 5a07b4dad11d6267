"""Data models for the impactsync package."""

from .audio import AudioStats
from .detection import (
    DEFAULT_IMPACT_THRESHOLD,
    DetectorConfig,
    DetectorState,
    ImpactDetectionResult,
)
from .events import AudioEvent, LevelEvent
from .session import ImpactSyncRecording, frame_index_for

__all__ = [
    "AudioStats",
    "AudioEvent",
    "LevelEvent",
    "DEFAULT_IMPACT_THRESHOLD",
    "DetectorConfig",
    "DetectorState",
    "ImpactDetectionResult",
    "ImpactSyncRecording",
    "frame_index_for",
]
