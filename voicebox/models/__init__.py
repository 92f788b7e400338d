"""Data models for the VoiceBox application."""

from .capture import CaptureSignal
from .composer import ComposerState, ComposerPhase, LISTENING_PLACEHOLDER
from .events import AudioEvent
from .transcription import RecognitionResult
from .chat import ChatReply

__all__ = [
    "CaptureSignal",
    "ComposerState",
    "ComposerPhase",
    "LISTENING_PLACEHOLDER",
    "AudioEvent",
    "RecognitionResult",
    "ChatReply",
]
