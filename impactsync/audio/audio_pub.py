"""Audio publisher module for pub/sub event publishing."""

import logging
from pubsub import pub
from ..models.events import AudioEvent

logger = logging.getLogger(__name__)


def _audio_event_listener(event: AudioEvent) -> None:
    """Prototype listener defining the message signature of audio topics."""


class AudioPublisher:
    """Publishes audio events using pubsub.pub for pub/sub architecture.

    The publisher doubles as the handle of a live audio stream: detectors
    subscribe to ``topic`` and never touch the capture that feeds it.
    """
    
    def __init__(self, topic: str = "audio_frames", sample_rate: int = 48000, channels: int = 1):
        """Initialize audio publisher.
        
        Args:
            topic: Pub/sub topic name for audio events
            sample_rate: Sample rate of the published audio
            channels: Channel count of the published audio
        """
        self.topic = topic
        self.sample_rate = sample_rate
        self.channels = channels
        self.events_published = 0
        pub.getDefaultTopicMgr().getOrCreateTopic(topic, _audio_event_listener)
        logger.info(f"AudioPublisher initialized with topic: {topic}")
    
    def publish_audio_event(self, audio_event: AudioEvent) -> None:
        """Publish an audio event to the pub/sub topic.
        
        Args:
            audio_event: AudioEvent to publish
        """
        pub.sendMessage(self.topic, event=audio_event)
        self.events_published += 1
