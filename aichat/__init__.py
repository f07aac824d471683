"""
Client adapter for a backend AI chat endpoint.

This package provides:
- Provider selection and credential resolution from a settings store
- Non-streaming chat responses with localized error text
- Streaming chat responses decoded from a line-delimited protocol, with
  tool-result continuation calls spliced into the stream
"""

from __future__ import annotations

from .client import AIChatClient
from .config import Configuration, Settings, SettingsStore, resolve_ai_config
from .exceptions import (
    BackendStatusError,
    ChatError,
    DecodeError,
    EmptyBodyError,
    InvalidServiceError,
    NestingDepthError,
)
from .localization import Translator, handle_api_error
from .models import AIConfig, ChatResponse, Message, ProviderType

__all__ = [
    # Client
    "AIChatClient",
    # Core models
    "AIConfig",
    # Exceptions
    "BackendStatusError",
    "ChatError",
    "ChatResponse",
    # Configuration
    "Configuration",
    "DecodeError",
    "EmptyBodyError",
    "InvalidServiceError",
    "Message",
    "NestingDepthError",
    "ProviderType",
    "Settings",
    "SettingsStore",
    "Translator",
    "handle_api_error",
    "resolve_ai_config",
]
