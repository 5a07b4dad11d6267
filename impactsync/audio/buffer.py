"""Rolling sample buffer backing the analyser's time-domain window."""

import logging
import threading

import numpy as np

logger = logging.getLogger(__name__)


class RollingSampleBuffer:
    """Fixed-size window over the most recent audio samples.

    The window is zero-filled until enough audio has arrived, so readers always
    get exactly ``capacity`` samples.
    """
    
    def __init__(self, capacity: int):
        """Initialize rolling sample buffer.
        
        Args:
            capacity: Number of most recent samples to keep
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.samples = np.zeros(capacity, dtype=np.float32)
        self.lock = threading.Lock()
        self.total_samples = 0
        
        logger.debug(f"RollingSampleBuffer initialized: {capacity} samples")
    
    def add_samples(self, samples: np.ndarray) -> None:
        """Append samples, dropping the oldest ones beyond capacity."""
        count = len(samples)
        if count == 0:
            return
        
        with self.lock:
            if count >= self.capacity:
                self.samples = np.array(samples[-self.capacity:], dtype=np.float32)
            else:
                self.samples = np.concatenate(
                    (self.samples[count:], np.asarray(samples, dtype=np.float32)))
            self.total_samples += count
    
    def get_samples(self) -> np.ndarray:
        """Get a copy of the current window, oldest sample first."""
        with self.lock:
            return self.samples.copy()
    
    def clear(self) -> None:
        """Clear the buffer."""
        with self.lock:
            self.samples = np.zeros(self.capacity, dtype=np.float32)
            self.total_samples = 0
            logger.debug("Sample buffer cleared")
