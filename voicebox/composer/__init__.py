"""Voice composer state machine and reducers."""

from .reducer import count_words, initial_state, is_sendable
from .state_machine import (
    ComposerStateMachine,
    COMPOSER_STATE_TOPIC,
    COMPOSER_MESSAGE_TOPIC,
    COMPOSER_ERROR_TOPIC,
)

__all__ = [
    "count_words",
    "initial_state",
    "is_sendable",
    "ComposerStateMachine",
    "COMPOSER_STATE_TOPIC",
    "COMPOSER_MESSAGE_TOPIC",
    "COMPOSER_ERROR_TOPIC",
]
