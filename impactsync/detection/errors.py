"""Exceptions raised by the impact detectors."""


class ImpactSyncError(Exception):
    """Base class for impactsync errors."""


class DetectorStateError(ImpactSyncError, RuntimeError):
    """A detector operation was called in the wrong lifecycle state."""


class NotListeningError(DetectorStateError):
    """Impact detection was requested without an active audio stream."""


class AudioDecodeError(ImpactSyncError, ValueError):
    """A recorded audio clip could not be decoded."""
