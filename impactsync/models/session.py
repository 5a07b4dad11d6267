"""Recording session data models."""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .detection import ImpactDetectionResult


def frame_index_for(timestamp_ms: float, frame_rate: float) -> int:
    """Video frame index that contains the given offset."""
    return int(math.floor((timestamp_ms / 1000.0) * frame_rate))


@dataclass
class ImpactSyncRecording:
    """A finished recording with its impact located on the video timeline."""
    session_id: str
    audio_file: Optional[str]
    sample_rate: int
    duration_ms: float
    live_result: ImpactDetectionResult
    offline_result: Optional[ImpactDetectionResult]
    impact_timestamp_ms: float
    impact_source: str  # "offline" | "live" | "manual"
    impact_frame_index: int
    total_frames: int
    frame_rate: float
    pre_impact_seconds: float
    post_impact_seconds: float

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["live_result"] = self.live_result.to_dict()
        data["offline_result"] = self.offline_result.to_dict() if self.offline_result else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImpactSyncRecording":
        data = dict(data)
        data["live_result"] = ImpactDetectionResult.from_dict(data["live_result"])
        if data.get("offline_result") is not None:
            data["offline_result"] = ImpactDetectionResult.from_dict(data["offline_result"])
        return cls(**data)
