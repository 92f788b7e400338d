"""Failure taxonomy for the language-generation hand-off."""

from typing import Optional


class GenerationError(Exception):
    """Base class for chat generation failures."""
    code = "GENERATION_ERROR"
    user_message = "Something went wrong while generating a response"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.user_message
        super().__init__(self.detail)


class ContextWindowExceeded(GenerationError):
    code = "CONTEXT_WINDOW_EXCEEDED"
    user_message = "This conversation is too long. Please start a new session"


class GuardrailViolation(GenerationError):
    code = "GUARDRAIL_VIOLATION"
    user_message = "I cannot respond to that request"


class AssetsUnavailable(GenerationError):
    code = "ASSETS_UNAVAILABLE"
    user_message = "The language model is temporarily unavailable. Please try again"


class ConcurrentRequests(GenerationError):
    code = "CONCURRENT_REQUESTS"
    user_message = "Please wait for the current request to finish before starting a new one."


class RateLimited(GenerationError):
    code = "RATE_LIMITED"
    user_message = "Too many requests. Please try again later"


class UnsupportedLanguageOrLocale(GenerationError):
    code = "UNSUPPORTED_LANGUAGE_OR_LOCALE"
    user_message = "This language is not supported. Please try English or another supported language"


class DecodingFailure(GenerationError):
    code = "DECODING_FAILURE"
    user_message = "Unable to process the response. Please try again"


class UnsupportedGuide(GenerationError):
    code = "UNSUPPORTED_GUIDE"
    user_message = "Invalid generation parameters. Please check your request format"


class Refusal(GenerationError):
    """The model declined to answer, optionally explaining why."""
    code = "REFUSAL"
    user_message = "The model declined this request"

    def __init__(self, explanation: Optional[str] = None):
        self.explanation = explanation
        super().__init__(explanation)


def describe_generation_error(error: Exception) -> str:
    """User-facing text for a failed generation."""
    if isinstance(error, Refusal):
        if error.explanation:
            return f"The model declined to respond: {error.explanation}"
        return error.user_message
    if isinstance(error, GenerationError):
        return error.user_message
    return f"Error: {error}"
