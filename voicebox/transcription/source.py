"""Transcription source: microphone capture bridged into a running transcript.

The source owns at most one capture session (an AudioCapture plus a
RecognitionSession). Audio and recognizer callbacks arrive on background
threads; every observable change is marshalled onto the owning event loop
before it is applied and published as a CaptureSignal.
"""

import asyncio
import logging
from functools import partial
from typing import Callable, Optional

from ..audio.capture import AudioCapture, has_input_device
from ..exceptions import VoiceBoxError, PermissionDenied, AudioConfigurationFailure
from ..models.capture import CaptureSignal
from ..models.events import AudioEvent
from ..models.transcription import RecognitionResult
from .base import AbstractRecognitionBackend, RecognitionSession
from .publisher import SignalPublisher

logger = logging.getLogger(__name__)


class TranscriptionSource:
    """Start/stop microphone transcription and expose its latest signal."""

    def __init__(self,
                 backend: AbstractRecognitionBackend,
                 loop: asyncio.AbstractEventLoop,
                 publish: Optional[Callable[[CaptureSignal], None]] = None,
                 capture_factory: Callable[..., AudioCapture] = AudioCapture,
                 input_available: Callable[[], bool] = has_input_device,
                 sample_rate: int = 16000,
                 chunk_size: int = 1024,
                 channels: int = 1,
                 loudness_gain: float = 10.0):
        """Initialize the transcription source.

        Args:
            backend: Streaming recognizer used for every capture session
            loop: Owning event loop; all state changes happen on it
            publish: Receives every CaptureSignal (defaults to a SignalPublisher)
            capture_factory: Builds the AudioCapture for a session
            input_available: Microphone access probe
            sample_rate: Capture sample rate in Hz
            chunk_size: Samples per captured chunk
            channels: Number of capture channels
            loudness_gain: Multiplier applied to chunk RMS for the loudness value
        """
        self.backend = backend
        self.loop = loop
        self.publish = publish or SignalPublisher().get_callback()
        self.capture_factory = capture_factory
        self.input_available = input_available
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.loudness_gain = loudness_gain

        self._transcript = ""
        self._is_capturing = False
        self._loudness = 0.0

        # Bumped on every start and stop; callbacks carrying an older number are stale
        self._session_number = 0
        self._capture: Optional[AudioCapture] = None
        self._recognition: Optional[RecognitionSession] = None

    @property
    def transcript(self) -> str:
        return self._transcript

    @property
    def is_capturing(self) -> bool:
        return self._is_capturing

    @property
    def loudness(self) -> float:
        return self._loudness

    @property
    def signal(self) -> CaptureSignal:
        return CaptureSignal(
            transcript_text=self._transcript,
            is_capturing=self._is_capturing,
            loudness=self._loudness,
        )

    def is_authorized(self) -> bool:
        """True when both the recognizer and the microphone are usable."""
        return self.backend.is_authorized() and self.input_available()

    def start(self) -> None:
        """Start a capture session, replacing any session already running.

        Raises:
            PermissionDenied: Recognizer or microphone access is missing; access
                has been requested and nothing was started
            RecognitionFailure: The recognizer could not be started
            AudioConfigurationFailure: The microphone stream could not be opened
        """
        if not self.is_authorized():
            logger.warning("Capture not authorized, requesting access")
            self.backend.request_authorization()
            raise PermissionDenied()

        restarted = False
        if self._capture is not None or self._recognition is not None:
            logger.info("Capture already active, restarting session")
            self._release(publish=False)
            restarted = True

        self._session_number += 1
        number = self._session_number

        try:
            recognition = self.backend.start_session(
                sample_rate=self.sample_rate,
                on_result=partial(self._marshal, self._apply_result, number),
                on_error=partial(self._marshal, self._finish, number),
                on_complete=partial(self._marshal, self._finish, number, None),
            )

            capture = self.capture_factory(
                callback=partial(self._on_audio_event, number, recognition),
                error_callback=partial(self._marshal, self._finish, number),
                sample_rate=self.sample_rate,
                chunk_size=self.chunk_size,
                channels=self.channels,
                loudness_gain=self.loudness_gain,
            )
            try:
                capture.start_recording()
            except AudioConfigurationFailure:
                logger.error("Microphone failed to start, cancelling recognition")
                recognition.cancel()
                raise
        except VoiceBoxError:
            # The replaced session is gone; observers must see capture end
            if restarted:
                self._publish()
            raise

        self._capture = capture
        self._recognition = recognition
        self._is_capturing = True
        logger.info(f"Capture session {number} started")
        self._publish()

    def stop(self) -> None:
        """End capture and release every session resource. Idempotent."""
        if self._capture is None and self._recognition is None and not self._is_capturing:
            logger.debug("stop() called with no active capture")
            return
        self._release(publish=True)

    def clear(self) -> None:
        """Reset the exposed transcript without touching capture state."""
        self._transcript = ""
        self._publish()

    def _release(self, publish: bool) -> None:
        capture, self._capture = self._capture, None
        recognition, self._recognition = self._recognition, None
        self._session_number += 1
        try:
            if capture is not None:
                capture.stop_recording()
        finally:
            try:
                if recognition is not None:
                    recognition.end_audio()
                    recognition.cancel()
            finally:
                self._is_capturing = False
                self._loudness = 0.0
                logger.info("Capture session released")
                if publish:
                    self._publish()

    def _publish(self) -> None:
        self.publish(self.signal)

    def _marshal(self, handler: Callable, *args) -> None:
        """Run handler on the owning loop; safe to call from any thread."""
        try:
            self.loop.call_soon_threadsafe(handler, *args)
        except RuntimeError:
            logger.debug("Event loop closed, dropping capture update")

    def _on_audio_event(self, number: int, recognition: RecognitionSession, event: AudioEvent) -> None:
        # Capture thread
        recognition.append_audio(event.audio_data)
        self._marshal(self._apply_loudness, number, event.loudness)

    def _apply_loudness(self, number: int, loudness: float) -> None:
        if number != self._session_number or not self._is_capturing:
            return
        if loudness == self._loudness:
            return
        self._loudness = loudness
        self._publish()

    def _apply_result(self, number: int, result: RecognitionResult) -> None:
        if number != self._session_number or not self._is_capturing:
            return
        if result.text == self._transcript:
            return
        self._transcript = result.text
        self._publish()

    def _finish(self, number: int, error: Optional[Exception]) -> None:
        """Stop on a terminal recognition error or a final result."""
        if number != self._session_number:
            return
        if error is not None:
            logger.warning(f"Capture session {number} ended by error: {error}")
        else:
            logger.info(f"Capture session {number} finished with final transcript")
        self.stop()
