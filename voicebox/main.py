"""Main application entry point for VoiceBox."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.live import Live

from voicebox import __version__
from voicebox.chat import ChatEngine, ChatService
from voicebox.composer import ComposerStateMachine
from voicebox.transcription import GoogleStreamingBackend, SignalPublisher, TranscriptionSource
from voicebox.ui import ComposerScreen, KeyboardInputHandler

from .config import VoiceBoxConfig

logger = logging.getLogger(__name__)

REFRESH_SECONDS = 0.1


class App:
    """Wires the composer, transcription source, chat service and terminal UI onto one event loop."""

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None, enable_chat: bool = True):
        self.config = VoiceBoxConfig(config_path)
        # Command line overrides config
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.enable_chat = enable_chat and self.config.get('chat.enabled', True)

        self.loop = asyncio.new_event_loop()
        self.console = Console()
        self.live: Optional[Live] = None
        self.chat_service: Optional[ChatService] = None

    def init(self) -> None:
        logger.info("Initializing services...")

        self.backend = GoogleStreamingBackend(
            credentials_path=self.config.get_google_credentials_path(),
            language=self.config.get('google_cloud.language', 'en-US'),
            model=self.config.get('google_cloud.model', 'latest_long'),
            enable_automatic_punctuation=self.config.get('google_cloud.enable_automatic_punctuation', True),
        )
        self.backend.request_authorization()

        sample_rate = self.config.get('audio.sample_rate', 16000)
        chunk_size = self.config.get('audio.chunk_size', 1024)
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk")

        self.source = TranscriptionSource(
            backend=self.backend,
            loop=self.loop,
            publish=SignalPublisher().get_callback(),
            sample_rate=sample_rate,
            chunk_size=chunk_size,
            channels=self.config.get('audio.channels', 1),
            loudness_gain=self.config.get('audio.loudness_gain', 10.0),
        )
        self.composer = ComposerStateMachine(
            source=self.source,
            loop=self.loop,
            debounce_seconds=self.config.get('composer.debounce_seconds'),
            min_words=self.config.get('composer.min_words', 4),
            placeholder=self.config.get('composer.placeholder', 'Listening...'),
        )

        if self.enable_chat:
            self._init_chat()

        self.screen = ComposerScreen(self.composer, self.source)
        self.input_handler = KeyboardInputHandler(self._on_key)

    def _init_chat(self) -> None:
        api_key = self.config.get_chat_api_key()
        if not api_key:
            logger.warning(f"Chat disabled: ${self.config.get('chat.api_key_env')} is not set")
            return

        engine = ChatEngine(
            api_key=api_key,
            model=self.config.get('chat.model'),
            base_url=self.config.get('chat.base_url'),
        )
        self.chat_service = ChatService(
            engine=engine,
            loop=self.loop,
            instructions=self.config.get('chat.instructions'),
            temperature=self.config.get('chat.temperature'),
            max_tokens=self.config.get('chat.max_tokens'),
            language=self.config.get('google_cloud.language', 'en-US'),
            supported_languages=self.config.get('chat.supported_languages'),
        )

    def _on_key(self, key: str) -> bool:
        """Keyboard thread: forward intents to the owning loop."""
        if key == 'q' or key == '\x03':
            self.loop.call_soon_threadsafe(self.loop.stop)
            return False
        if key == ' ':
            self.loop.call_soon_threadsafe(self.composer.toggle)
        elif key in ('\r', '\n'):
            self.loop.call_soon_threadsafe(self._send)
        return True

    def _send(self) -> None:
        message = self.composer.send()
        if message and self.chat_service is not None:
            self.screen.mark_sent()

    def _refresh(self) -> None:
        if self.live is not None:
            self.live.update(self.screen.render())
        self.loop.call_later(REFRESH_SECONDS, self._refresh)

    def run(self) -> None:
        try:
            with Live(self.screen.render(), console=self.console, refresh_per_second=10, transient=False) as live:
                self.live = live
                self.loop.call_soon(self._refresh)
                self.input_handler.start()
                self.loop.run_forever()
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        logger.info("Shutting down...")
        self.input_handler.stop()
        self.composer.close()
        if self.chat_service is not None:
            self.chat_service.close()
            pending = [task for task in asyncio.all_tasks(self.loop) if not task.done()]
            if pending:
                self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        self.screen.close()
        self.backend.cleanup()
        self.loop.close()
        logger.info("Shutdown complete")


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/voicebox.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info("=" * 50)
    logger.info("VoiceBox application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for VoiceBox."""
    parser = argparse.ArgumentParser(
        description="VoiceBox - voice-to-text chat composer",
        epilog="Keys: SPACE=talk/stop, ENTER=send, q=quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: voicebox.yaml if present)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, INFO)"
    )

    parser.add_argument(
        "--no-chat",
        action="store_true",
        help="Do not forward sent messages to the chat model"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"VoiceBox v{__version__}"
    )

    args = parser.parse_args()

    try:
        app = App(args.config, log_level=args.log_level, enable_chat=not args.no_chat)
        app.init()
        app.run()
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
