"""Microphone capture with per-chunk event publishing."""

import pyaudio
import time
import logging
from threading import Thread, Event
from typing import Optional, Callable

from ..exceptions import AudioConfigurationFailure
from ..models.events import AudioEvent
from .levels import calculate_loudness


logger = logging.getLogger(__name__)


def has_input_device() -> bool:
    """Check whether a default microphone is reachable."""
    instance = pyaudio.PyAudio()
    try:
        instance.get_default_input_device_info()
        return True
    except (IOError, OSError) as e:
        logger.warning(f"No audio input device available: {e}")
        return False
    finally:
        instance.terminate()


class AudioCapture:
    """Continuous microphone capture on a background thread."""

    def __init__(
        self,
        callback: Callable[[AudioEvent], None],
        error_callback: Optional[Callable[[Exception], None]] = None,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        loudness_gain: float = 10.0,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            callback: Receives every captured AudioEvent, on the capture thread
            error_callback: Receives a read failure that ended capture early
            sample_rate: Audio sample rate (16kHz suits speech recognition)
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            loudness_gain: Multiplier applied to chunk RMS before clamping
            format: Audio format (16-bit signed int)
        """
        self.audio_event_callback = callback
        self.error_callback = error_callback
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.loudness_gain = loudness_gain
        self.format = format

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        self.total_chunks = 0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream: Optional[pyaudio.Stream] = None

    def start_recording(self) -> None:
        """Open the input stream and start reading in a background thread.

        Raises:
            AudioConfigurationFailure: If the input stream cannot be opened
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        logger.info("Starting audio recording")
        self.stop_event.clear()
        self.total_chunks = 0

        try:
            self.stream = self.__open_audio_stream()
        except (IOError, OSError) as e:
            self._release_stream()
            raise AudioConfigurationFailure(f"Unable to open audio input: {e}") from e

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.is_recording = True
        self.recording_thread.start()

    def stop_recording(self) -> None:
        """Stop recording and release the audio stream. Safe to call twice."""
        if not self.is_recording:
            logger.debug("No recording in progress")
            self._release_stream()
            return

        logger.info("Stopping audio recording")
        self.stop_event.set()

        try:
            if self.recording_thread and self.recording_thread.is_alive():
                self.recording_thread.join(timeout=2.0)
                if self.recording_thread.is_alive():
                    logger.warning("Recording thread did not stop cleanly")
        finally:
            self._release_stream()
            self.is_recording = False
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}")

    def __open_audio_stream(self) -> pyaudio.Stream:
        self.pyaudio_instance = pyaudio.PyAudio()
        stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def _release_stream(self) -> None:
        stream, self.stream = self.stream, None
        instance, self.pyaudio_instance = self.pyaudio_instance, None
        try:
            if stream is not None:
                stream.stop_stream()
                stream.close()
        except (IOError, OSError) as e:
            logger.warning(f"Error closing audio stream: {e}")
        finally:
            if instance is not None:
                instance.terminate()

    def __publish_audio_event(self, audio_chunk: bytes) -> None:
        audio_event = AudioEvent(
            chunk_id=f"chunk_{self.total_chunks}",
            audio_data=audio_chunk,
            timestamp=time.time(),
            sequence_number=self.total_chunks,
            sample_rate=self.sample_rate,
            channels=self.channels,
            loudness=calculate_loudness(audio_chunk, self.loudness_gain),
        )
        self.audio_event_callback(audio_event)

    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        stream = self.stream
        while not self.stop_event.is_set() and stream is not None:
            try:
                audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
            except (IOError, OSError) as e:
                if self.stop_event.is_set():
                    break
                logger.error(f"Audio read failed: {e}")
                if self.error_callback:
                    self.error_callback(AudioConfigurationFailure(f"Audio read failed: {e}"))
                break

            self.total_chunks += 1
            self.__publish_audio_event(audio_chunk)
