"""VoiceBox: a voice-to-text chat composer."""

__version__ = "0.1.0"
