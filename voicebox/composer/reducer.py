"""Pure reducers from capture events to ComposerState.

Each function takes the current snapshot and returns the next one. None of
them mutate their input or touch the transcription source.
"""

from dataclasses import replace

from ..models.composer import ComposerState, LISTENING_PLACEHOLDER

MIN_WORDS_TO_SEND = 4


def count_words(text: str) -> int:
    """Number of non-empty whitespace-separated tokens in text."""
    return len(text.split())


def initial_state() -> ComposerState:
    return ComposerState()


def is_sendable(state: ComposerState,
                min_words: int = MIN_WORDS_TO_SEND,
                placeholder: str = LISTENING_PLACEHOLDER) -> bool:
    """Whether the snapshot may expose the send button."""
    return (
        not state.show_progress
        and state.word_count >= min_words
        and bool(state.display_text)
        and state.display_text != placeholder
    )


def on_capture_started(state: ComposerState,
                       min_words: int = MIN_WORDS_TO_SEND,
                       placeholder: str = LISTENING_PLACEHOLDER) -> ComposerState:
    if state.word_count >= min_words:
        return replace(state, show_progress=False, show_send_button=False)
    return ComposerState(
        display_text=placeholder,
        word_count=state.word_count,
        show_progress=True,
        show_send_button=False,
    )


def on_capture_stopped(state: ComposerState) -> ComposerState:
    # Send visibility is decided after the debounce, not here
    return replace(state, show_progress=False)


def on_transcript(state: ComposerState,
                  transcript: str,
                  is_capturing: bool,
                  min_words: int = MIN_WORDS_TO_SEND,
                  placeholder: str = LISTENING_PLACEHOLDER) -> ComposerState:
    """Apply a new cumulative transcript."""
    words = count_words(transcript)

    if not is_capturing:
        if not transcript or words < min_words:
            return initial_state()
        return replace(state, display_text=transcript, word_count=words, show_progress=False)

    if words >= min_words:
        # While capturing the send button stays hidden until capture ends
        return replace(state, display_text=transcript, word_count=words, show_progress=False)

    return ComposerState(
        display_text=placeholder,
        word_count=words,
        show_progress=True,
        show_send_button=False,
    )


def on_debounce_elapsed(state: ComposerState,
                        is_capturing: bool,
                        min_words: int = MIN_WORDS_TO_SEND,
                        placeholder: str = LISTENING_PLACEHOLDER) -> ComposerState:
    """Re-evaluate readiness once capture has stayed stopped for the debounce delay."""
    if is_capturing:
        return state
    if is_sendable(state, min_words, placeholder):
        return replace(state, show_send_button=True)
    return initial_state()
