"""Pytest configuration and fixtures for VoiceBox tests."""

import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional
from unittest.mock import Mock, patch

import numpy as np
import pytest
from pubsub import pub

from voicebox.exceptions import AudioConfigurationFailure, RecognitionFailure
from voicebox.models.events import AudioEvent
from voicebox.models.transcription import RecognitionResult
from voicebox.transcription.base import AbstractRecognitionBackend, RecognitionSession
from voicebox.transcription.source import TranscriptionSource


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeTimerHandle:
    """Stand-in for asyncio.TimerHandle."""

    def __init__(self, when: float, callback: Callable, args: tuple):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Deterministic event loop double with virtual time.

    call_soon_threadsafe only queues; tests drain the queue with
    run_pending(), mimicking the hop onto the owning thread.
    """

    def __init__(self):
        self.time = 0.0
        self.ready: List[tuple] = []
        self._timers: List[tuple] = []
        self._counter = itertools.count()

    def call_soon(self, callback: Callable, *args) -> None:
        self.ready.append((callback, args))

    def call_soon_threadsafe(self, callback: Callable, *args) -> None:
        self.ready.append((callback, args))

    def call_later(self, delay: float, callback: Callable, *args) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.time + delay, callback, args)
        heapq.heappush(self._timers, (handle.when, next(self._counter), handle))
        return handle

    def run_pending(self) -> None:
        while self.ready:
            callback, args = self.ready.pop(0)
            callback(*args)

    def advance(self, seconds: float) -> None:
        """Move virtual time forward, firing due timers in order."""
        target = self.time + seconds
        self.run_pending()
        while self._timers and self._timers[0][0] <= target:
            when, _, handle = heapq.heappop(self._timers)
            self.time = when
            if not handle.cancelled:
                handle.callback(*handle.args)
            self.run_pending()
        self.time = target

    @property
    def pending_timers(self) -> int:
        return sum(1 for _, _, handle in self._timers if not handle.cancelled)


class FakeRecognitionSession(RecognitionSession):
    """Recognition session driven by the test instead of a recognizer."""

    def __init__(self, on_result, on_error, on_complete, language="en-US"):
        self.on_result = on_result
        self.on_error = on_error
        self.on_complete = on_complete
        self.language = language
        self.audio: List[bytes] = []
        self.ended = False
        self.cancelled = False

    def append_audio(self, audio_chunk: bytes) -> None:
        self.audio.append(audio_chunk)

    def end_audio(self) -> None:
        self.ended = True

    def cancel(self) -> None:
        self.cancelled = True

    def emit(self, text: str, is_final: bool = False) -> None:
        """Deliver a cumulative transcript, as the recognizer thread would."""
        self.on_result(RecognitionResult(
            text=text,
            confidence=0.9 if is_final else 0.0,
            is_final=is_final,
            service="fake",
            language=self.language,
        ))

    def fail(self, message: str = "recognizer crashed") -> None:
        self.on_error(RecognitionFailure(message))

    def complete(self) -> None:
        self.on_complete()


class FakeRecognitionBackend(AbstractRecognitionBackend):
    """Recognition backend recording every session it opens."""

    def __init__(self, authorized: bool = True):
        super().__init__("en-US")
        self.authorized = authorized
        self.authorization_requests = 0
        self.fail_start = False
        self.sessions: List[FakeRecognitionSession] = []
        self.cleaned_up = False

    def is_authorized(self) -> bool:
        return self.authorized

    def request_authorization(self) -> None:
        self.authorization_requests += 1

    def start_session(self, sample_rate, on_result, on_error, on_complete) -> FakeRecognitionSession:
        if self.fail_start:
            raise RecognitionFailure("recognizer unavailable")
        session = FakeRecognitionSession(on_result, on_error, on_complete, self.language)
        self.sessions.append(session)
        return session

    def cleanup(self) -> None:
        self.cleaned_up = True

    @property
    def session(self) -> Optional[FakeRecognitionSession]:
        return self.sessions[-1] if self.sessions else None


class FakeAudioCapture:
    """AudioCapture double; the test feeds chunks instead of a microphone."""

    fail_start = False

    def __init__(self, callback, error_callback=None, **kwargs):
        self.callback = callback
        self.error_callback = error_callback
        self.kwargs = kwargs
        self.is_recording = False
        self.stop_calls = 0
        self.sequence = 0

    def start_recording(self) -> None:
        if self.fail_start:
            raise AudioConfigurationFailure("no microphone")
        self.is_recording = True

    def stop_recording(self) -> None:
        self.stop_calls += 1
        self.is_recording = False

    def feed(self, audio_chunk: bytes, loudness: float) -> None:
        self.sequence += 1
        self.callback(AudioEvent(
            chunk_id=f"chunk_{self.sequence}",
            audio_data=audio_chunk,
            timestamp=time.time(),
            sequence_number=self.sequence,
            loudness=loudness,
        ))


class CaptureFactory:
    """Callable passed as capture_factory; keeps every capture it built."""

    def __init__(self):
        self.captures: List[FakeAudioCapture] = []
        self.fail_start = False

    def __call__(self, callback, error_callback=None, **kwargs) -> FakeAudioCapture:
        capture = FakeAudioCapture(callback, error_callback, **kwargs)
        capture.fail_start = self.fail_start
        self.captures.append(capture)
        return capture

    @property
    def capture(self) -> Optional[FakeAudioCapture]:
        return self.captures[-1] if self.captures else None


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Drop every pub/sub listener registered during a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def fake_loop():
    return FakeLoop()


@pytest.fixture
def fake_backend():
    return FakeRecognitionBackend()


@pytest.fixture
def capture_factory():
    return CaptureFactory()


@pytest.fixture
def published_signals():
    return []


@pytest.fixture
def source(fake_backend, fake_loop, capture_factory, published_signals):
    """TranscriptionSource wired to fakes, recording published signals in a list."""
    return TranscriptionSource(
        backend=fake_backend,
        loop=fake_loop,
        publish=published_signals.append,
        capture_factory=capture_factory,
        input_available=lambda: True,
    )


@pytest.fixture
def pubsub_source(fake_backend, fake_loop, capture_factory):
    """TranscriptionSource publishing on the default pub/sub topic."""
    return TranscriptionSource(
        backend=fake_backend,
        loop=fake_loop,
        capture_factory=capture_factory,
        input_available=lambda: True,
    )


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }
