"""Transcription module for VoiceBox."""

from .base import AbstractRecognitionBackend, RecognitionSession
from .google_backend import GoogleStreamingBackend
from .publisher import SignalPublisher, CAPTURE_SIGNAL_TOPIC
from .source import TranscriptionSource

__all__ = [
    "AbstractRecognitionBackend",
    "RecognitionSession",
    "GoogleStreamingBackend",
    "SignalPublisher",
    "CAPTURE_SIGNAL_TOPIC",
    "TranscriptionSource",
]
