"""Impact detection data models."""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict


DEFAULT_IMPACT_THRESHOLD = 0.75
DEFAULT_SAMPLE_RATE = 48000
DEFAULT_FFT_SIZE = 2048
DEFAULT_SMOOTHING_TIME_CONSTANT = 0.3
DEFAULT_NOISE_FACTOR = 3.0
DEFAULT_TICK_RATE_HZ = 60.0


def validate_threshold(impact_threshold: float) -> float:
    """Return the threshold as a float, raising ValueError outside (0, 1)."""
    value = float(impact_threshold)
    if not 0.0 < value < 1.0:
        raise ValueError(f"impact_threshold must be in (0, 1), got {impact_threshold}")
    return value


@dataclass(frozen=True)
class ImpactDetectionResult:
    """Outcome of one live detection or one offline analysis."""
    detected: bool
    timestamp_ms: float = 0.0  # From session start (live) or buffer start (offline)
    confidence: float = 0.0    # 0-1, see StreamImpactDetector / OfflineImpactAnalyzer

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")

    @classmethod
    def not_detected(cls) -> "ImpactDetectionResult":
        return cls(detected=False, timestamp_ms=0.0, confidence=0.0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImpactDetectionResult":
        return cls(
            detected=bool(data["detected"]),
            timestamp_ms=float(data.get("timestamp_ms", 0.0)),
            confidence=float(data.get("confidence", 0.0)),
        )


@dataclass(frozen=True)
class DetectorConfig:
    """Live detector settings, fixed for the lifetime of a detector."""
    impact_threshold: float = DEFAULT_IMPACT_THRESHOLD
    sample_rate: int = DEFAULT_SAMPLE_RATE
    fft_size: int = DEFAULT_FFT_SIZE
    smoothing_time_constant: float = DEFAULT_SMOOTHING_TIME_CONSTANT
    # Spike must exceed background noise by this factor
    noise_factor: float = DEFAULT_NOISE_FACTOR
    tick_rate_hz: float = DEFAULT_TICK_RATE_HZ

    def __post_init__(self):
        validate_threshold(self.impact_threshold)
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.fft_size < 32 or self.fft_size > 32768 or self.fft_size & (self.fft_size - 1):
            raise ValueError(f"fft_size must be a power of two in [32, 32768], got {self.fft_size}")
        if not 0.0 <= self.smoothing_time_constant <= 1.0:
            raise ValueError(
                f"smoothing_time_constant must be in [0, 1], got {self.smoothing_time_constant}")
        if self.noise_factor <= 0:
            raise ValueError(f"noise_factor must be positive, got {self.noise_factor}")
        if self.tick_rate_hz <= 0:
            raise ValueError(f"tick_rate_hz must be positive, got {self.tick_rate_hz}")

    @property
    def tick_interval(self) -> float:
        """Seconds between two detection ticks."""
        return 1.0 / self.tick_rate_hz


class DetectorState(Enum):
    """Live detector lifecycle."""
    IDLE = "idle"
    LISTENING = "listening"
    STOPPED = "stopped"
