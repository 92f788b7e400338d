"""Unit tests for the composer reducers."""

import random

import pytest

from voicebox.composer import reducer
from voicebox.models.composer import ComposerState, LISTENING_PLACEHOLDER


@pytest.mark.unit
class TestCountWords:
    """Word counting over whitespace-separated tokens."""

    @pytest.mark.parametrize("text,expected", [
        ("", 0),
        ("   ", 0),
        ("Hello", 1),
        ("Hello there", 2),
        ("  Hello   there \n how\tare  ", 4),
        ("one, two; three.", 3),
    ])
    def test_count_words(self, text, expected):
        assert reducer.count_words(text) == expected

    def test_count_matches_non_empty_tokens(self):
        rng = random.Random(7)
        alphabet = ["a", "bc", "def", " ", "  ", "\t", "\n"]
        for _ in range(200):
            text = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 30)))
            tokens = [token for token in text.split() if token]
            assert reducer.count_words(text) == len(tokens)


@pytest.mark.unit
class TestTranscriptReducer:
    """Transcript updates while capturing and while stopped."""

    def test_short_transcript_shows_placeholder_and_progress(self):
        state = reducer.on_transcript(reducer.initial_state(), "Hello there", is_capturing=True)

        assert state == ComposerState(
            display_text=LISTENING_PLACEHOLDER,
            word_count=2,
            show_progress=True,
            show_send_button=False,
        )

    def test_four_words_while_capturing_shows_text_but_not_send(self):
        state = reducer.on_transcript(reducer.initial_state(), "Hello there how are", is_capturing=True)

        assert state.display_text == "Hello there how are"
        assert state.word_count == 4
        assert state.show_progress is False
        assert state.show_send_button is False

    def test_empty_transcript_while_stopped_resets(self):
        ready = ComposerState("Hello there how are", 4, False, True)

        assert reducer.on_transcript(ready, "", is_capturing=False) == reducer.initial_state()

    def test_custom_placeholder_and_threshold(self):
        state = reducer.on_transcript(reducer.initial_state(), "one two", is_capturing=True,
                                      min_words=2, placeholder="...")
        assert state.display_text == "one two"

        state = reducer.on_transcript(reducer.initial_state(), "one", is_capturing=True,
                                      min_words=2, placeholder="...")
        assert state.display_text == "..."


@pytest.mark.unit
class TestCaptureReducers:
    """Capture start/stop and debounce evaluation."""

    def test_capture_started_from_idle(self):
        state = reducer.on_capture_started(reducer.initial_state())

        assert state.display_text == LISTENING_PLACEHOLDER
        assert state.show_progress is True
        assert state.show_send_button is False

    def test_capture_stopped_hides_progress_only(self):
        listening = ComposerState(LISTENING_PLACEHOLDER, 2, True, False)

        state = reducer.on_capture_stopped(listening)

        assert state == ComposerState(LISTENING_PLACEHOLDER, 2, False, False)

    def test_debounce_shows_send_when_sendable(self):
        stopped = ComposerState("Hello there how are", 4, False, False)

        state = reducer.on_debounce_elapsed(stopped, is_capturing=False)

        assert state.show_send_button is True
        assert state.display_text == "Hello there how are"

    def test_debounce_ignored_while_capturing(self):
        stopped = ComposerState("Hello there how are", 4, False, False)

        assert reducer.on_debounce_elapsed(stopped, is_capturing=True) == stopped

    def test_debounce_resets_short_transcript(self):
        stopped = ComposerState(LISTENING_PLACEHOLDER, 2, False, False)

        assert reducer.on_debounce_elapsed(stopped, is_capturing=False) == reducer.initial_state()

    @pytest.mark.parametrize("state", [
        ComposerState("", 4, False, False),
        ComposerState(LISTENING_PLACEHOLDER, 4, False, False),
        ComposerState("Hello there how", 3, False, False),
        ComposerState("Hello there how are", 4, True, False),
    ])
    def test_not_sendable(self, state):
        assert reducer.is_sendable(state) is False


@pytest.mark.unit
def test_send_and_progress_never_shown_together():
    """Random event sequences never expose send while progress is visible."""
    rng = random.Random(42)
    transcripts = ["", "Hello", "Hello there", "Hello there how are", "Hello there how are you today"]

    for _ in range(100):
        state = reducer.initial_state()
        capturing = False
        for _ in range(30):
            event = rng.choice(["start", "stop", "transcript", "debounce"])
            if event == "start":
                capturing = True
                state = reducer.on_capture_started(state)
            elif event == "stop":
                capturing = False
                state = reducer.on_capture_stopped(state)
            elif event == "transcript":
                state = reducer.on_transcript(state, rng.choice(transcripts), capturing)
            else:
                state = reducer.on_debounce_elapsed(state, capturing)

            assert not (state.show_send_button and state.show_progress)
            if state.show_send_button:
                assert reducer.is_sendable(state)
