"""Unit tests for the terminal composer screen."""

import pytest
from pubsub import pub
from rich.console import Console

from voicebox.chat import CHAT_REPLY_TOPIC
from voicebox.composer import ComposerStateMachine
from voicebox.models.chat import ChatReply
from voicebox.ui import ComposerScreen


@pytest.fixture
def composer(pubsub_source, fake_loop):
    machine = ComposerStateMachine(pubsub_source, fake_loop)
    yield machine
    machine.close()


@pytest.fixture
def screen(composer, pubsub_source):
    composer_screen = ComposerScreen(composer, pubsub_source)
    yield composer_screen
    composer_screen.close()


def render_text(screen) -> str:
    console = Console(record=True, width=80, color_system=None)
    console.print(screen.render())
    return console.export_text()


@pytest.mark.unit
class TestComposerScreen:
    """Rendering composer snapshots to text."""

    def test_idle_shows_hint(self, screen):
        text = render_text(screen)

        assert "Ask me anything" in text
        assert "idle" in text
        assert "SPACE talk" in text

    def test_listening_shows_placeholder_and_level(self, screen, composer, capture_factory, fake_loop):
        composer.toggle()
        capture_factory.capture.feed(b"\x00\x00", 0.5)
        fake_loop.run_pending()

        text = render_text(screen)

        assert "Listening..." in text
        assert "REC" in text
        assert "transcribing" in text
        assert "█" * 10 in text
        assert "listening" in text

    def test_ready_shows_send(self, screen, composer, fake_backend, fake_loop):
        composer.toggle()
        fake_backend.session.emit("Hello there how are you")
        fake_loop.run_pending()
        composer.toggle()
        fake_loop.advance(0.5)

        text = render_text(screen)

        assert screen.state.show_send_button is True
        assert "Hello there how are you" in text
        assert "ENTER send" in text
        assert "ready" in text

    def test_error_shown_until_next_capture(self, screen, composer, fake_backend):
        fake_backend.authorized = False
        composer.toggle()

        assert "access not granted" in render_text(screen)

        fake_backend.authorized = True
        composer.toggle()

        assert screen.error is None

    def test_reply_rendered(self, screen):
        screen.mark_sent()
        assert "waiting for reply" in render_text(screen)

        pub.sendMessage(CHAT_REPLY_TOPIC, reply=ChatReply(prompt="Hi there", text="General Kenobi"))

        text = render_text(screen)
        assert screen.awaiting_reply is False
        assert "General Kenobi" in text
        assert "Reply" in text

    def test_close_stops_updates(self, screen, composer, pubsub_source):
        screen.close()
        composer.toggle()

        assert screen.state.show_progress is False
