"""Terminal user interface for VoiceBox."""

from .composer_screen import ComposerScreen
from .keyboard_input import KeyboardInputHandler

__all__ = [
    "ComposerScreen",
    "KeyboardInputHandler",
]
