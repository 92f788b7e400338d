"""Terminal rendering of the voice chat composer."""

import logging
from typing import Optional

from pubsub import pub
from rich.console import Group
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from ..chat.service import CHAT_REPLY_TOPIC
from ..composer.state_machine import (
    ComposerStateMachine,
    COMPOSER_STATE_TOPIC,
    COMPOSER_ERROR_TOPIC,
)
from ..exceptions import VoiceBoxError
from ..models.chat import ChatReply
from ..models.composer import ComposerPhase, ComposerState
from ..transcription.source import TranscriptionSource

logger = logging.getLogger(__name__)

FIELD_HINT = "Ask me anything"
LEVEL_WIDTH = 20


class ComposerScreen:
    """Renders the composer state, loudness meter, errors and chat replies."""

    def __init__(self, composer: ComposerStateMachine, source: TranscriptionSource):
        self.composer = composer
        self.source = source
        self.state: ComposerState = composer.state
        self.error: Optional[VoiceBoxError] = None
        self.reply: Optional[ChatReply] = None
        self.awaiting_reply = False

        pub.subscribe(self._on_state, COMPOSER_STATE_TOPIC)
        pub.subscribe(self._on_error, COMPOSER_ERROR_TOPIC)
        pub.subscribe(self._on_reply, CHAT_REPLY_TOPIC)

    def _on_state(self, state: ComposerState) -> None:
        self.state = state
        if state.show_progress:
            self.error = None

    def _on_error(self, error: VoiceBoxError) -> None:
        self.error = error

    def _on_reply(self, reply: ChatReply) -> None:
        self.reply = reply
        self.awaiting_reply = False

    def mark_sent(self) -> None:
        self.awaiting_reply = True

    def render_field(self) -> Text:
        if self.state.display_text:
            return Text(self.state.display_text, style="white")
        return Text(FIELD_HINT, style="dim white italic")

    def render_controls(self) -> Table:
        controls = Table.grid(padding=(0, 2))
        controls.add_column()
        controls.add_column()
        controls.add_column(justify="right")

        if self.source.is_capturing:
            level = int(self.source.loudness * LEVEL_WIDTH)
            mic = Text.assemble(("● REC ", "bold red"), ("█" * level).ljust(LEVEL_WIDTH, "·"))
        else:
            mic = Text("🎙  mic", style="grey50")

        progress = Spinner("dots", text="transcribing") if self.state.show_progress else Text("")

        if self.state.show_send_button:
            action = Text.assemble(("ENTER", "bold green"), " send")
        else:
            action = Text.assemble(("SPACE", "bold blue"), " talk")

        controls.add_row(mic, progress, action)
        return controls

    def render(self) -> Panel:
        """Build the whole composer panel from the latest snapshots."""
        parts = [self.render_field(), Text(""), self.render_controls()]

        if self.error is not None:
            parts.append(Text(f"⚠ {self.error.detail}", style="bold yellow"))

        if self.awaiting_reply:
            parts.append(Spinner("dots", text="waiting for reply"))
        elif self.reply is not None:
            style = "red" if self.reply.failed else "cyan"
            parts.append(Panel(Text(self.reply.text, style=style), title="Reply", border_style=style))

        phase = self.composer.phase
        title_style = "bold red" if phase is ComposerPhase.LISTENING else "bold blue"
        footer = Text.assemble(("SPACE", "bold"), " talk/stop  ", ("ENTER", "bold"), " send  ",
                               ("Q", "bold red"), " quit")
        return Panel(
            Group(*parts),
            title=Text(f"VoiceBox · {phase.value}", style=title_style),
            subtitle=footer,
            border_style="bright_blue",
        )

    def close(self) -> None:
        for listener, topic in ((self._on_state, COMPOSER_STATE_TOPIC),
                                (self._on_error, COMPOSER_ERROR_TOPIC),
                                (self._on_reply, CHAT_REPLY_TOPIC)):
            try:
                pub.unsubscribe(listener, topic)
            except Exception as e:
                logger.warning(f"Error during unsubscribe from {topic}: {e}")
