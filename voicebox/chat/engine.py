"""Chat completion engine for sending composed messages to a hosted model."""

import json
import logging
from typing import List, Optional

import aiohttp
from pydantic import BaseModel, ValidationError

from .errors import (
    GenerationError,
    AssetsUnavailable,
    ContextWindowExceeded,
    DecodingFailure,
    GuardrailViolation,
    RateLimited,
    Refusal,
    UnsupportedGuide,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1/chat/completions"


class ChatMessage(BaseModel):
    role: str
    content: Optional[str] = None
    refusal: Optional[str] = None


class ChatChoice(BaseModel):
    message: ChatMessage
    finish_reason: Optional[str] = None


class ChatCompletion(BaseModel):
    choices: List[ChatChoice]


class APIErrorBody(BaseModel):
    message: str = ""
    type: Optional[str] = None
    code: Optional[str] = None


class APIErrorEnvelope(BaseModel):
    error: APIErrorBody


def raise_for_error(status: int, body: str) -> None:
    """Translate a non-200 chat completions response into a GenerationError."""
    try:
        envelope = APIErrorEnvelope.model_validate_json(body)
        code = envelope.error.code or envelope.error.type or ""
        message = envelope.error.message or body
    except ValidationError:
        code = ""
        message = body

    detail = f"Chat API error {status}: {message}"
    if status == 429:
        raise RateLimited(detail)
    if status == 400:
        if code == "context_length_exceeded":
            raise ContextWindowExceeded(detail)
        if code in ("content_filter", "content_policy_violation"):
            raise GuardrailViolation(detail)
        raise UnsupportedGuide(detail)
    if status in (401, 403, 404) or status >= 500:
        raise AssetsUnavailable(detail)
    raise GenerationError(detail)


def parse_completion(payload: dict) -> str:
    """Extract the reply text from a chat completions payload."""
    try:
        completion = ChatCompletion.model_validate(payload)
    except ValidationError as e:
        raise DecodingFailure(f"Unexpected chat completion payload: {e}") from e

    if not completion.choices:
        raise DecodingFailure("Chat completion contained no choices")

    choice = completion.choices[0]
    if choice.message.refusal:
        raise Refusal(choice.message.refusal)
    if choice.finish_reason == "content_filter":
        raise GuardrailViolation("Response blocked by content filter")
    if not choice.message.content:
        raise DecodingFailure("Chat completion contained no content")
    return choice.message.content.strip()


class ChatEngine:
    """Simple engine for sending prompts to a chat completions endpoint."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", base_url: str = DEFAULT_BASE_URL):
        """Initialize chat engine.

        Args:
            api_key: API key for the chat completions endpoint
            model: Model to use for replies
            base_url: Chat completions URL
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url

        logger.info(f"ChatEngine initialized with model: {model}")

    async def send_prompt(self,
                          prompt: str,
                          instructions: Optional[str] = None,
                          temperature: float = 0.7,
                          max_tokens: int = 400) -> str:
        """Send a prompt and get the response.

        Args:
            prompt: User message
            instructions: Optional system instructions
            temperature: Temperature for response generation
            max_tokens: Maximum tokens in response

        Returns:
            Response text

        Raises:
            GenerationError: Any failure, mapped onto the generation failure taxonomy
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        messages = []
        if instructions:
            messages.append({"role": "system", "content": instructions})
        messages.append({"role": "user", "content": prompt})

        data = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.base_url, headers=headers, json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise_for_error(response.status, error_text)

                    try:
                        payload = await response.json(content_type=None)
                    except json.JSONDecodeError as e:
                        raise DecodingFailure(f"Chat response was not JSON: {e}") from e
        except aiohttp.ClientError as e:
            raise AssetsUnavailable(f"Chat endpoint unreachable: {e}") from e

        return parse_completion(payload)
