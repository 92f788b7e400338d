"""Cross-platform keyboard input handling for the terminal composer."""

import sys
import threading
import time
from typing import Optional, Callable
import logging

logger = logging.getLogger(__name__)


class KeyboardInputHandler:
    """Read single key presses on a background thread."""

    def __init__(self, callback: Callable[[str], bool]):
        """Initialize keyboard handler.

        Args:
            callback: Function that takes a key and returns True to continue, False to quit.
                      Called on the input thread.
        """
        self.callback = callback
        self.running = False
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the keyboard input handler."""
        if self.running:
            return

        self.running = True
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.name = "KeyboardInputThread"
        self.thread.start()
        logger.info("Keyboard input handler started")

    def stop(self) -> None:
        """Stop the keyboard input handler."""
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info("Keyboard input handler stopped")

    def _input_loop(self) -> None:
        """Main input handling loop."""
        while self.running:
            key = self._get_key()
            if key:
                logger.debug(f"Key detected: {key!r}")
                if not self.callback(key):
                    logger.info("Callback returned False, breaking input loop")
                    break
            # Small delay to prevent busy waiting
            time.sleep(0.02)
        self.running = False
        logger.info("Keyboard input loop ended")

    def _get_key(self) -> Optional[str]:
        """Get a single keypress in a cross-platform way."""
        if sys.platform == "win32":
            return self._get_key_windows()
        return self._get_key_unix()

    def _get_key_windows(self) -> Optional[str]:
        import msvcrt
        if msvcrt.kbhit():
            return msvcrt.getwch().lower()
        return None

    def _get_key_unix(self) -> Optional[str]:
        import select
        import tty
        import termios

        try:
            if not select.select([sys.stdin], [], [], 0.1)[0]:
                return None
            # Raw mode for single characters
            old_settings = termios.tcgetattr(sys.stdin)
        except (OSError, termios.error, ValueError) as e:
            logger.error(f"Terminal input unavailable: {e}")
            self.running = False
            return None

        try:
            tty.setraw(sys.stdin.fileno())
            return sys.stdin.read(1).lower()
        finally:
            termios.tcsetattr(sys.stdin, termios.TCSADRAIN, old_settings)
