"""Audio capture module."""

from .capture import AudioCapture, has_input_device
from .levels import calculate_loudness

__all__ = [
    'AudioCapture',
    'has_input_device',
    'calculate_loudness',
]
