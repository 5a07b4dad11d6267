"""Periodic input level publishing for a live meter."""

import logging
import threading
import time
from typing import Optional

from pubsub import pub

from ..detection.stream_detector import StreamImpactDetector
from ..models.events import LevelEvent

logger = logging.getLogger(__name__)


def _level_event_listener(event: LevelEvent) -> None:
    """Prototype listener defining the message signature of level topics."""


class LevelMonitor:
    """Polls a detector's current level and publishes LevelEvents."""

    def __init__(self, detector: StreamImpactDetector, interval_ms: float = 50,
                 topic: str = "audio_levels"):
        """Initialize level monitor.

        Args:
            detector: Detector whose level is sampled
            interval_ms: Polling period in milliseconds
            topic: Pub/sub topic for LevelEvents
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.detector = detector
        self.interval_seconds = interval_ms / 1000.0
        self.topic = topic

        self.latest_level = 0.0
        self.events_published = 0
        self.shutdown_event = threading.Event()
        self.monitor_thread: Optional[threading.Thread] = None

        pub.getDefaultTopicMgr().getOrCreateTopic(topic, _level_event_listener)

    @property
    def is_running(self) -> bool:
        return self.monitor_thread is not None and self.monitor_thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            logger.warning("Level monitor already running")
            return
        self.shutdown_event.clear()
        self.monitor_thread = threading.Thread(target=self._monitor_loop, daemon=True)
        self.monitor_thread.name = "LevelMonitorThread"
        self.monitor_thread.start()
        logger.info(f"Level monitor started on {self.topic} every {self.interval_seconds * 1000:.0f}ms")

    def stop(self) -> None:
        self.shutdown_event.set()
        if self.monitor_thread and self.monitor_thread.is_alive():
            self.monitor_thread.join(timeout=2.0)
            if self.monitor_thread.is_alive():
                logger.warning("Level monitor thread did not stop cleanly")
        self.monitor_thread = None
        self.latest_level = 0.0

    def sample(self) -> LevelEvent:
        """Read the level once and publish it."""
        event = LevelEvent(
            level=self.detector.get_current_level(),
            peak_frequency_hz=self.detector.get_peak_frequency(),
            timestamp=time.time(),
        )
        self.latest_level = event.level
        pub.sendMessage(self.topic, event=event)
        self.events_published += 1
        return event

    def _monitor_loop(self) -> None:
        while not self.shutdown_event.is_set():
            self.sample()
            self.shutdown_event.wait(self.interval_seconds)
        logger.debug(f"Level monitor exiting after {self.events_published} events")
