"""Abstract base classes for streaming recognition backends."""

from abc import ABC, abstractmethod
from typing import Callable
import logging

from ..models.transcription import RecognitionResult

logger = logging.getLogger(__name__)

ResultCallback = Callable[[RecognitionResult], None]
ErrorCallback = Callable[[Exception], None]
CompleteCallback = Callable[[], None]


class RecognitionSession(ABC):
    """One streaming recognition request fed with microphone audio.

    Callbacks registered when the session was started may fire on any
    thread; receivers are responsible for marshalling.
    """

    @abstractmethod
    def append_audio(self, audio_chunk: bytes) -> None:
        """Feed a chunk of 16-bit PCM audio to the recognizer."""
        pass

    @abstractmethod
    def end_audio(self) -> None:
        """Signal that no more audio will arrive; pending results may still fire."""
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Abort recognition. No callback fires after this returns."""
        pass


class AbstractRecognitionBackend(ABC):
    """Abstract base class for streaming speech recognition backends."""

    def __init__(self, language: str = "en-US"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    def is_authorized(self) -> bool:
        """Return True if the recognizer may be used right now."""
        pass

    @abstractmethod
    def request_authorization(self) -> None:
        """Ask for recognizer access. The outcome is observed via is_authorized()."""
        pass

    @abstractmethod
    def start_session(
        self,
        sample_rate: int,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        on_complete: CompleteCallback,
    ) -> RecognitionSession:
        """Open a streaming recognition session.

        Args:
            sample_rate: Sample rate of the audio that will be appended
            on_result: Receives each cumulative transcript update
            on_error: Receives a terminal recognition error
            on_complete: Called once the recognizer has delivered its final result

        Raises:
            RecognitionFailure: If the session cannot be opened
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
