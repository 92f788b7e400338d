"""VoiceBox exception hierarchy.

Every capture-side failure inherits from VoiceBoxError so the composer can
handle them in one place and fall back to idle.
"""


class VoiceBoxError(Exception):
    """Base exception for all VoiceBox errors."""

    def __init__(self, detail: str = "An unexpected error occurred", code: str = "VOICEBOX_ERROR"):
        self.detail = detail
        self.code = code
        super().__init__(detail)


class PermissionDenied(VoiceBoxError):
    """Raised when microphone or speech recognition access is not granted."""

    def __init__(self, detail: str = "Microphone or speech recognition access not granted"):
        super().__init__(detail=detail, code="PERMISSION_DENIED")


class AudioConfigurationFailure(VoiceBoxError):
    """Raised when the microphone stream cannot be opened."""

    def __init__(self, detail: str = "Audio input could not be configured"):
        super().__init__(detail=detail, code="AUDIO_CONFIGURATION_FAILURE")


class RecognitionFailure(VoiceBoxError):
    """Raised when the speech recognizer fails to start or terminates."""

    def __init__(self, detail: str = "Speech recognition failed"):
        super().__init__(detail=detail, code="RECOGNITION_FAILURE")
