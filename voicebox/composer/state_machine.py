"""Composer state machine driving the voice chat input.

Reduces CaptureSignals from the transcription source into ComposerState
snapshots, applying a debounce before the send button may appear. All
methods must be called on the owning event loop.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Optional

from pubsub import pub

from ..exceptions import (
    VoiceBoxError,
    PermissionDenied,
    AudioConfigurationFailure,
    RecognitionFailure,
)
from ..models.capture import CaptureSignal
from ..models.composer import ComposerState, ComposerPhase, LISTENING_PLACEHOLDER
from ..transcription.publisher import CAPTURE_SIGNAL_TOPIC
from ..transcription.source import TranscriptionSource
from . import reducer

logger = logging.getLogger(__name__)

COMPOSER_STATE_TOPIC = "composer_state"
COMPOSER_MESSAGE_TOPIC = "composer_message"
COMPOSER_ERROR_TOPIC = "composer_error"

DEFAULT_DEBOUNCE_SECONDS = 0.3


class ComposerStateMachine:
    """Single owner of the composer state and of the active capture session."""

    def __init__(self,
                 source: TranscriptionSource,
                 loop: asyncio.AbstractEventLoop,
                 debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
                 min_words: int = reducer.MIN_WORDS_TO_SEND,
                 placeholder: str = LISTENING_PLACEHOLDER,
                 signal_topic: str = CAPTURE_SIGNAL_TOPIC):
        """Initialize the state machine and subscribe to capture signals.

        Args:
            source: Transcription source this composer controls
            loop: Owning event loop, used to schedule the debounce
            debounce_seconds: Delay between capture stopping and the readiness check
            min_words: Words needed before a transcript can be sent
            placeholder: Text displayed while listening with too few words
            signal_topic: Pub/sub topic the source publishes CaptureSignals on
        """
        self.source = source
        self.loop = loop
        self.debounce_seconds = debounce_seconds
        self.min_words = min_words
        self.placeholder = placeholder
        self.signal_topic = signal_topic

        self._state = reducer.initial_state()
        self._capturing = False
        self._transcript = ""
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self.last_error: Optional[VoiceBoxError] = None

        pub.subscribe(self._on_signal, signal_topic)
        logger.info(f"ComposerStateMachine subscribed to {signal_topic} "
                    f"(debounce={debounce_seconds}s, min_words={min_words})")

    @property
    def state(self) -> ComposerState:
        return self._state

    @property
    def phase(self) -> ComposerPhase:
        if self._capturing:
            if self._state.word_count >= self.min_words:
                return ComposerPhase.READY
            return ComposerPhase.LISTENING
        if self._state.show_send_button:
            return ComposerPhase.READY
        if self._debounce_handle is not None and self._state.word_count >= self.min_words:
            return ComposerPhase.READY
        return ComposerPhase.IDLE

    def toggle(self) -> None:
        """Start capture when idle, stop it while capturing."""
        if self.source.is_capturing:
            logger.info("Toggle: stopping capture")
            self.source.stop()
            return

        logger.info("Toggle: starting capture")
        self._cancel_debounce()
        self.last_error = None
        self._set_state(reducer.initial_state())
        self.source.clear()
        try:
            self.source.start()
        except PermissionDenied as e:
            logger.warning(f"Capture permission denied: {e.detail}")
            self._report(e)
        except (AudioConfigurationFailure, RecognitionFailure) as e:
            logger.error(f"Capture failed to start: {e.detail}")
            self.source.stop()
            self._cancel_debounce()
            self._set_state(reducer.initial_state())
            self._report(e)

    def send(self) -> Optional[str]:
        """Emit the composed text and reset the composer.

        Returns:
            The sent message, or None when the send button was not visible
        """
        message = self._state.display_text if self._state.show_send_button else None
        if message is None:
            logger.warning("send() called while composer is not ready; resetting only")

        if self.source.is_capturing:
            self.source.stop()
        self._cancel_debounce()
        self.source.clear()
        self._set_state(reducer.initial_state())

        if message:
            logger.info(f"Sending composed message ({len(message)} chars)")
            pub.sendMessage(COMPOSER_MESSAGE_TOPIC, message=message)
        return message

    def close(self) -> None:
        """Cancel pending work, release the microphone and unsubscribe."""
        self.source.stop()
        self._cancel_debounce()
        try:
            pub.unsubscribe(self._on_signal, self.signal_topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        logger.info("ComposerStateMachine closed")

    def _on_signal(self, signal: CaptureSignal) -> None:
        state = self._state

        if signal.is_capturing != self._capturing:
            self._capturing = signal.is_capturing
            if signal.is_capturing:
                self._cancel_debounce()
                state = reducer.on_capture_started(state, self.min_words, self.placeholder)
            else:
                state = reducer.on_capture_stopped(state)
                self._schedule_debounce()

        if signal.transcript_text != self._transcript:
            self._transcript = signal.transcript_text
            state = reducer.on_transcript(
                state, signal.transcript_text, signal.is_capturing,
                self.min_words, self.placeholder,
            )

        self._set_state(state)

    def _schedule_debounce(self) -> None:
        self._cancel_debounce()
        self._debounce_handle = self.loop.call_later(self.debounce_seconds, self._on_debounce_elapsed)

    def _cancel_debounce(self) -> None:
        handle, self._debounce_handle = self._debounce_handle, None
        if handle is not None:
            handle.cancel()

    def _on_debounce_elapsed(self) -> None:
        self._debounce_handle = None
        # Capture may have restarted since this was scheduled
        self._set_state(reducer.on_debounce_elapsed(
            self._state, self.source.is_capturing, self.min_words, self.placeholder,
        ))

    def _set_state(self, state: ComposerState) -> None:
        if state.show_send_button and state.show_progress:
            logger.error(f"Send button and progress shown together, hiding send: {state}")
            state = replace(state, show_send_button=False)
        if state == self._state:
            return
        self._state = state
        logger.debug(f"Composer state: {state}")
        pub.sendMessage(COMPOSER_STATE_TOPIC, state=state)

    def _report(self, error: VoiceBoxError) -> None:
        self.last_error = error
        pub.sendMessage(COMPOSER_ERROR_TOPIC, error=error)
