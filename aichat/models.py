"""
Core chat dataclasses shared by the config resolver and the responders.

This module provides:
- Supported provider identifiers
- The message model sent to the backend
- The resolved AI configuration
- The explicit result type of a backend call
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

# Common roles are system, user, assistant and tool; providers may add more
Role = str


class ProviderType(Enum):
    """AI services the backend can route a multimodal chat to."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    AZURE = "azure"


class Message(BaseModel):
    """One entry of the conversation history."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str | list[dict[str, Any]]


def normalize_messages(messages: Iterable[Message | dict[str, Any]]) -> list[Message]:
    """Validate caller-supplied history into a fresh list of messages."""
    return [
        message if isinstance(message, Message) else Message.model_validate(message)
        for message in messages
    ]


@dataclass(frozen=True)
class AIConfig:
    """Provider settings resolved for a single backend call."""
    api_key: str
    service: ProviderType
    model: str
    endpoint: str | None = None


@dataclass(frozen=True)
class ChatResponse:
    """Non-streaming result handed back to the caller."""
    text: str


@dataclass(frozen=True)
class BackendSuccess:
    """Parsed JSON body of a 2xx backend response."""
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BackendFailure:
    """Structured failure of a backend call."""
    error_code: str
    status: int
    message: str = ""


BackendResult = BackendSuccess | BackendFailure
