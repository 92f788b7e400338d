"""Chat hand-off for messages sent from the composer."""

from .engine import ChatEngine
from .service import ChatService, CHAT_REPLY_TOPIC
from .errors import GenerationError, describe_generation_error

__all__ = [
    "ChatEngine",
    "ChatService",
    "CHAT_REPLY_TOPIC",
    "GenerationError",
    "describe_generation_error",
]
