"""Chat service answering messages sent from the composer."""

import asyncio
import logging
from typing import Optional, Protocol, Sequence, Set

from pubsub import pub

from ..composer.state_machine import COMPOSER_MESSAGE_TOPIC
from ..models.chat import ChatReply
from .errors import (
    GenerationError,
    ConcurrentRequests,
    UnsupportedGuide,
    UnsupportedLanguageOrLocale,
    describe_generation_error,
)

logger = logging.getLogger(__name__)

CHAT_REPLY_TOPIC = "chat_reply"


class PromptEngine(Protocol):
    """Protocol for engines that can answer a prompt."""

    async def send_prompt(self, prompt: str, **kwargs) -> str:
        ...


class ChatService:
    """Forwards composed messages to a chat engine, one request at a time."""

    def __init__(self,
                 engine: PromptEngine,
                 loop: asyncio.AbstractEventLoop,
                 instructions: Optional[str] = None,
                 temperature: float = 0.7,
                 max_tokens: int = 400,
                 language: str = "en-US",
                 supported_languages: Sequence[str] = ("en",),
                 message_topic: str = COMPOSER_MESSAGE_TOPIC,
                 reply_topic: str = CHAT_REPLY_TOPIC):
        self.engine = engine
        self.loop = loop
        self.instructions = instructions
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.language = language
        self.supported_languages = [code.lower() for code in supported_languages]
        self.message_topic = message_topic
        self.reply_topic = reply_topic

        self._busy = False
        self._tasks: Set[asyncio.Task] = set()

        pub.subscribe(self._on_message, message_topic)
        logger.info(f"ChatService subscribed to {message_topic}")

    def _on_message(self, message: str) -> None:
        task = self.loop.create_task(self.respond(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _validate_request(self) -> None:
        if not 0.0 <= self.temperature <= 2.0:
            raise UnsupportedGuide(f"temperature {self.temperature} is outside [0, 2]")
        if self.max_tokens <= 0:
            raise UnsupportedGuide(f"max_tokens must be positive, got {self.max_tokens}")
        language_code = self.language.split("-")[0].lower()
        if language_code not in self.supported_languages:
            raise UnsupportedLanguageOrLocale(f"Language '{self.language}' is not supported")

    async def respond(self, prompt: str) -> ChatReply:
        """Generate and publish a reply. Failures become the reply text."""
        if self._busy:
            error = ConcurrentRequests()
            logger.warning("Chat request rejected: another request is in flight")
            return self._publish(ChatReply(prompt=prompt, text=describe_generation_error(error), error=error.code))

        self._busy = True
        try:
            self._validate_request()
            text = await self.engine.send_prompt(
                prompt,
                instructions=self.instructions,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            reply = ChatReply(prompt=prompt, text=text)
            logger.info(f"Chat reply received ({len(text)} chars)")
        except GenerationError as e:
            logger.warning(f"Chat generation failed [{e.code}]: {e.detail}")
            reply = ChatReply(prompt=prompt, text=describe_generation_error(e), error=e.code)
        except Exception as e:
            logger.error(f"Chat request failed unexpectedly: {e!r}")
            reply = ChatReply(prompt=prompt, text=describe_generation_error(e), error=GenerationError.code)
        finally:
            self._busy = False

        return self._publish(reply)

    def _publish(self, reply: ChatReply) -> ChatReply:
        pub.sendMessage(self.reply_topic, reply=reply)
        return reply

    def close(self) -> None:
        """Unsubscribe and cancel outstanding requests."""
        try:
            pub.unsubscribe(self._on_message, self.message_topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        for task in list(self._tasks):
            task.cancel()
        logger.info("ChatService closed")
