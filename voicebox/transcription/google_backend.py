"""Google Speech-to-Text streaming recognition backend."""

import queue
import logging
import threading
from typing import Optional, List

from .base import (
    AbstractRecognitionBackend,
    RecognitionSession,
    ResultCallback,
    ErrorCallback,
    CompleteCallback,
)
from ..exceptions import RecognitionFailure
from ..models.transcription import RecognitionResult

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

SERVICE_NAME = "Google Speech-to-Text"


class GoogleStreamingSession(RecognitionSession):
    """A single streaming_recognize call driven from a background thread."""

    def __init__(self,
                 client: speech.SpeechClient,
                 streaming_config: speech.StreamingRecognitionConfig,
                 language: str,
                 on_result: ResultCallback,
                 on_error: ErrorCallback,
                 on_complete: CompleteCallback):
        self.client = client
        self.streaming_config = streaming_config
        self.language = language
        self.on_result = on_result
        self.on_error = on_error
        self.on_complete = on_complete

        self.audio_queue: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self.cancelled = threading.Event()
        self.audio_ended = False
        # Transcripts of segments the recognizer has already finalized
        self.finalized_segments: List[str] = []

        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.name = "GoogleRecognitionThread"

    def start(self) -> None:
        self.thread.start()

    def append_audio(self, audio_chunk: bytes) -> None:
        if self.audio_ended or self.cancelled.is_set():
            return
        self.audio_queue.put(audio_chunk)

    def end_audio(self) -> None:
        if self.audio_ended:
            return
        self.audio_ended = True
        self.audio_queue.put(None)

    def cancel(self) -> None:
        if self.cancelled.is_set():
            return
        logger.debug("Cancelling Google recognition session")
        self.cancelled.set()
        self.end_audio()

    def _requests(self):
        """Yield streaming requests until the audio ends or the session is cancelled."""
        while True:
            chunk = self.audio_queue.get()
            if chunk is None or self.cancelled.is_set():
                return
            yield speech.StreamingRecognizeRequest(audio_content=chunk)

    def _run(self) -> None:
        try:
            responses = self.client.streaming_recognize(
                config=self.streaming_config,
                requests=self._requests(),
            )
            for response in responses:
                if self.cancelled.is_set():
                    return
                self._handle_response(response)
        except gax_exceptions.GoogleAPIError as e:
            if self.cancelled.is_set():
                return
            logger.error(f"Google STT streaming error: {e}")
            self.on_error(RecognitionFailure(f"Google Speech streaming error: {e}"))
            return
        except Exception as e:
            if self.cancelled.is_set():
                return
            logger.error(f"Google STT recognition thread failed: {e}")
            self.on_error(RecognitionFailure(f"Recognition stopped unexpectedly: {e}"))
            return

        if not self.cancelled.is_set():
            logger.debug("Google recognition stream completed")
            self.on_complete()

    def _handle_response(self, response) -> None:
        interim_parts = []
        confidence = 0.0
        is_final = False
        for result in response.results:
            if not result.alternatives:
                continue
            alternative = result.alternatives[0]
            transcript = alternative.transcript.strip()
            if result.is_final:
                if transcript:
                    self.finalized_segments.append(transcript)
                confidence = alternative.confidence
                is_final = True
            elif transcript:
                interim_parts.append(transcript)

        if not is_final and not interim_parts:
            return

        text = " ".join(self.finalized_segments + interim_parts)
        logger.debug(f"Transcript='{text}' (final={is_final}, conf={confidence:.2f})")
        self.on_result(RecognitionResult(
            text=text,
            confidence=confidence,
            is_final=is_final,
            service=SERVICE_NAME,
            language=self.language,
        ))


class GoogleStreamingBackend(AbstractRecognitionBackend):
    """Google Speech-to-Text streaming backend with interim results."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 language: str = "en-US",
                 model: str = "latest_long",
                 enable_automatic_punctuation: bool = True):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            language: Language code (e.g., 'en-US', 'es-ES')
            model: Recognition model name
            enable_automatic_punctuation: Enable automatic punctuation
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        self.model = model
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.client: Optional[speech.SpeechClient] = None
        self.project_id = None

    def initialize(self) -> bool:
        """Load credentials and create the Speech client.

        Returns:
            True if the client is ready, False if credentials are missing or invalid
        """
        if not self.credentials_path:
            logger.warning("Google credentials path is not configured")
            return False

        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        try:
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        except (OSError, ValueError) as e:
            logger.warning(f"Unable to load Google credentials: {e}")
            return False

        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")
        logger.info("Google Speech-to-Text backend initialized successfully")
        return True

    def is_authorized(self) -> bool:
        return self.client is not None

    def request_authorization(self) -> None:
        if self.is_authorized():
            return
        if not self.initialize():
            logger.warning("Speech recognition is not authorized; check google_cloud.credentials_path")

    def _build_streaming_config(self, sample_rate: int) -> speech.StreamingRecognitionConfig:
        config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            language_code=self.language,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            model=self.model,
        )
        return speech.StreamingRecognitionConfig(config=config, interim_results=True)

    def start_session(self,
                      sample_rate: int,
                      on_result: ResultCallback,
                      on_error: ErrorCallback,
                      on_complete: CompleteCallback) -> GoogleStreamingSession:
        if self.client is None:
            raise RecognitionFailure("Google Speech client is not initialized")

        session = GoogleStreamingSession(
            client=self.client,
            streaming_config=self._build_streaming_config(sample_rate),
            language=self.language,
            on_result=on_result,
            on_error=on_error,
            on_complete=on_complete,
        )
        try:
            session.start()
        except RuntimeError as e:
            raise RecognitionFailure(f"Unable to start recognition thread: {e}") from e
        logger.info(f"Google recognition session started "
                    f"({self.language}, {sample_rate}Hz, project {self.project_id})")
        return session

    def cleanup(self) -> None:
        """Close the Speech client transport."""
        if self.client is not None:
            self.client.transport.close()
            self.client = None
