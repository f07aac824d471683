"""Configuration management for the AI chat client."""

from __future__ import annotations

import os
from typing import Any, Protocol

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from .exceptions import InvalidServiceError
from .models import AIConfig, ProviderType

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_TOOL_DEPTH = 3


class Settings(BaseModel):
    """Snapshot of the user-selectable chat settings."""
    model_config = ConfigDict(frozen=True)

    select_ai_service: str = ProviderType.OPENAI.value
    select_ai_model: str = ""
    azure_endpoint: str = ""
    select_language: str = "ja"

    openai_key: str = ""
    anthropic_key: str = ""
    google_key: str = ""
    azure_key: str = ""


class SettingsSource(Protocol):
    """Anything that can hand out the current settings snapshot."""

    def get_state(self) -> Settings: ...


# Credential field for each provider
CREDENTIAL_FIELDS: dict[ProviderType, str] = {
    ProviderType.OPENAI: "openai_key",
    ProviderType.ANTHROPIC: "anthropic_key",
    ProviderType.GOOGLE: "google_key",
    ProviderType.AZURE: "azure_key",
}

# Environment variable holding each provider's API key
PROVIDER_ENV_KEYS: dict[ProviderType, str] = {
    ProviderType.OPENAI: "OPENAI_API_KEY",
    ProviderType.ANTHROPIC: "ANTHROPIC_API_KEY",
    ProviderType.GOOGLE: "GOOGLE_API_KEY",
    ProviderType.AZURE: "AZURE_OPENAI_API_KEY",
}


def resolve_ai_config(store: SettingsSource) -> AIConfig:
    """Resolve the provider, model and credential for the next backend call.

    Args:
        store: Settings source read fresh on every call.

    Returns:
        The resolved AIConfig.

    Raises:
        InvalidServiceError: If the selected service is not supported.
    """
    settings = store.get_state()
    try:
        service = ProviderType(settings.select_ai_service)
    except ValueError as e:
        raise InvalidServiceError(
            settings.select_ai_service, model=settings.select_ai_model
        ) from e

    return AIConfig(
        api_key=getattr(settings, CREDENTIAL_FIELDS[service]),
        service=service,
        model=settings.select_ai_model,
        endpoint=settings.azure_endpoint or None,
    )


class SettingsStore:
    """In-memory settings store for embedding the client in another app."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()

    def get_state(self) -> Settings:
        return self._settings

    def set_state(self, **changes: Any) -> Settings:
        """Replace the snapshot with a copy carrying the given changes."""
        self._settings = Settings.model_validate(
            {**self._settings.model_dump(), **changes}
        )
        return self._settings


class Configuration:
    """Manages configuration and environment variables for the chat client."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for API keys
        self._config_path = config_path or os.path.join(
            os.path.dirname(__file__), "config.yaml"
        )
        self._config = self._load_yaml_config()

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self._config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary."""
        return self._config

    def get_ai_config(self) -> dict[str, Any]:
        """Get the AI selection section from YAML.

        Returns:
            AI configuration dictionary.
        """
        return self._config.get("ai", {})

    def get_state(self) -> Settings:
        """Build a fresh settings snapshot from YAML and environment variables.

        Returns:
            Settings with credentials read from the environment.
        """
        ai_config = self.get_ai_config()
        credentials = {
            CREDENTIAL_FIELDS[provider]: os.getenv(env_key, "")
            for provider, env_key in PROVIDER_ENV_KEYS.items()
        }

        return Settings(
            select_ai_service=ai_config.get("service", ProviderType.OPENAI.value),
            select_ai_model=ai_config.get("model", ""),
            azure_endpoint=ai_config.get("azure_endpoint") or "",
            select_language=ai_config.get("language", "ja"),
            **credentials,
        )

    def get_client_config(self) -> dict[str, Any]:
        """Get HTTP client configuration for the backend endpoint.

        Returns:
            Client configuration dictionary with validated values.

        Raises:
            ValueError: If a client parameter is missing or invalid.
        """
        client_config = self._config.get("client", {})

        base_url = client_config.get("base_url", DEFAULT_BASE_URL)
        timeout = client_config.get("timeout", DEFAULT_TIMEOUT)
        max_tool_depth = client_config.get("max_tool_depth", DEFAULT_MAX_TOOL_DEPTH)

        if not base_url:
            raise ValueError("client.base_url must not be empty")
        if timeout <= 0:
            raise ValueError("client.timeout must be positive")
        if not isinstance(max_tool_depth, int) or max_tool_depth < 0:
            raise ValueError("client.max_tool_depth must be a non-negative integer")

        return {
            "base_url": base_url,
            "timeout": float(timeout),
            "max_tool_depth": max_tool_depth,
        }

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML.

        Returns:
            Logging configuration dictionary.
        """
        return self._config.get("logging", {})
