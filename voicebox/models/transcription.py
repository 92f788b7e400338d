"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class RecognitionResult:
    """One update from a streaming recognizer.

    `text` is the cumulative best hypothesis for the whole session, not the
    newly recognized fragment.
    """
    text: str
    confidence: float
    is_final: bool
    service: str
    language: str = "en-US"
    timestamp: datetime = field(default_factory=datetime.now)
