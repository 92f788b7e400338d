"""Chat hand-off data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class ChatReply:
    """Reply to a message sent from the composer."""
    prompt: str
    text: str
    error: Optional[str] = None  # Error code when the text describes a failure
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def failed(self) -> bool:
        return self.error is not None
