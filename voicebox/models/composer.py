"""Composer-related data models."""

from dataclasses import dataclass
from enum import Enum


LISTENING_PLACEHOLDER = "Listening..."


class ComposerPhase(Enum):
    """Coarse phase of the voice composer, derived from its state."""
    IDLE = "idle"
    LISTENING = "listening"
    READY = "ready"


@dataclass(frozen=True)
class ComposerState:
    """UI-facing snapshot of the chat composer.

    Only the composer state machine produces these; the UI reads them.
    """
    display_text: str = ""
    word_count: int = 0
    show_progress: bool = False
    show_send_button: bool = False
