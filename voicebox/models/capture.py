"""Capture-side data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CaptureSignal:
    """Observable snapshot published by the transcription source.

    Superseded by every new signal; never persisted.
    """
    transcript_text: str = ""
    is_capturing: bool = False
    loudness: float = 0.0  # Normalized to [0, 1]
