"""Event models for the capture pipeline."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class AudioEvent:
    """Audio chunk event with metadata."""
    chunk_id: str
    audio_data: bytes
    timestamp: float  # Unix timestamp when chunk was captured
    sequence_number: int
    sample_rate: int = 16000
    channels: int = 1
    loudness: float = 0.0
    chunk_duration_ms: Optional[int] = None  # Duration of this chunk in milliseconds

    def __post_init__(self):
        """Calculate chunk duration if not provided."""
        if self.chunk_duration_ms is None and self.audio_data:
            # Calculate based on 16-bit audio (2 bytes per sample)
            bytes_per_second = self.sample_rate * self.channels * 2
            self.chunk_duration_ms = len(self.audio_data) * 1000 // bytes_per_second
