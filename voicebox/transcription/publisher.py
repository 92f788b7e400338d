"""Capture signal publisher for pub/sub event publishing."""

import logging
from typing import Callable
from pubsub import pub
from ..models.capture import CaptureSignal

logger = logging.getLogger(__name__)

CAPTURE_SIGNAL_TOPIC = "capture_signal"


class SignalPublisher:
    """Publishes capture signals using pubsub.pub."""

    def __init__(self, topic: str = CAPTURE_SIGNAL_TOPIC):
        """Initialize signal publisher.

        Args:
            topic: Pub/sub topic name for capture signals
        """
        self.topic = topic
        logger.info(f"SignalPublisher initialized with topic: {topic}")

    def publish_signal(self, signal: CaptureSignal) -> None:
        """Publish a capture signal to the pub/sub topic.

        Args:
            signal: CaptureSignal to publish
        """
        pub.sendMessage(self.topic, signal=signal)

    def get_callback(self) -> Callable[[CaptureSignal], None]:
        """Get callback function for the transcription source to use."""
        return self.publish_signal
