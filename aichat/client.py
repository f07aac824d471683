"""
HTTP client for the backend AI chat endpoint.

Forwards the conversation to ``POST /api/aiChat`` and relays either a single
text response or a lazily decoded stream of text chunks. When the stream
carries a tool result, the backend is called again with that result appended
to the history and the new response is spliced into the output in place.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from typing import Any

import httpx
import structlog

from .config import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_TOOL_DEPTH,
    DEFAULT_TIMEOUT,
    Configuration,
    SettingsSource,
    resolve_ai_config,
)
from .exceptions import (
    DEFAULT_ERROR_CODE,
    BackendStatusError,
    DecodeError,
    InvalidServiceError,
    NestingDepthError,
)
from .localization import Translator, handle_api_error
from .logging_utils import classify_error, log_operation, operation_context
from .models import (
    AIConfig,
    BackendFailure,
    BackendResult,
    BackendSuccess,
    ChatResponse,
    Message,
    normalize_messages,
)
from .streaming.models import WireLineKind
from .streaming.parser import StreamingParser

CHAT_ENDPOINT = "/api/aiChat"
TOOL_CALL_SENTIMENT = "[neutral]"

logger = structlog.get_logger(__name__)


class AIChatClient:
    """Client for the backend chat endpoint with streaming tool continuation."""

    def __init__(
        self,
        settings: SettingsSource,
        translator: Translator | None = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_tool_depth: int = DEFAULT_MAX_TOOL_DEPTH,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.translator = translator or Translator()
        self.max_tool_depth = max_tool_depth
        self.client: httpx.AsyncClient = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_configuration(
        cls,
        configuration: Configuration,
        translator: Translator | None = None,
        **kwargs: Any,
    ) -> AIChatClient:
        """Build a client whose settings and endpoint come from config.yaml."""
        options = {**configuration.get_client_config(), **kwargs}
        return cls(configuration, translator, **options)

    async def call_ai_chat(
        self,
        messages: Sequence[Message | dict[str, Any]],
        stream: bool,
        tool_required: bool = True,
    ) -> httpx.Response:
        """Send one chat request and return the unvalidated response.

        With ``stream=True`` the body is left unread and the caller must close
        the response.
        """
        ai_config = resolve_ai_config(self.settings)
        payload = {
            "messages": [message.model_dump() for message in normalize_messages(messages)],
            "apiKey": ai_config.api_key,
            "aiService": ai_config.service.value,
            "model": ai_config.model,
            "azureEndpoint": ai_config.endpoint,
            "stream": stream,
            "toolRequired": tool_required,
        }

        async with operation_context(
            "ai_chat_request",
            context={
                "service": ai_config.service.value,
                "model": ai_config.model,
                "stream": stream,
                "tool_required": tool_required,
            },
        ):
            request = self.client.build_request("POST", CHAT_ENDPOINT, json=payload)
            return await self.client.send(request, stream=stream)

    @log_operation("get_chat_response")
    async def get_chat_response(
        self, messages: Sequence[Message | dict[str, Any]]
    ) -> ChatResponse:
        """Get a complete response; failures come back as localized text."""
        ai_config = resolve_ai_config(self.settings)

        try:
            history = normalize_messages(messages)
            response = await self.call_ai_chat(history, stream=False)
            result = await self._read_result(response)
        except InvalidServiceError:
            raise
        except Exception as e:
            error_code, error_category = classify_error(e)
            logger.error(
                f"Error fetching {ai_config.service.value} API response",
                error_type=type(e).__name__,
                error_category=error_category,
                error_message=str(e),
            )
            return ChatResponse(text=self._handle_api_error(error_code))

        if isinstance(result, BackendFailure):
            logger.error(
                f"API request to {ai_config.service.value} failed",
                status=result.status,
                error_code=result.error_code,
                body_error=result.message,
            )
            return ChatResponse(text=self._handle_api_error(result.error_code))

        return ChatResponse(text=result.data.get("text", ""))

    async def get_chat_response_stream(
        self, messages: Sequence[Message | dict[str, Any]]
    ) -> AsyncIterator[str]:
        """
        Start a streaming response and return its text chunks.

        The provider selection is validated before this returns, so an
        unsupported service raises InvalidServiceError here. Every later
        failure, including a malformed message or an error status, ends the
        returned iterator with one generic localized error chunk.
        Consume it under ``contextlib.aclosing`` to release the response on
        an early break.
        """
        ai_config = resolve_ai_config(self.settings)
        return self._stream_chunks(messages, ai_config)

    async def _stream_chunks(
        self, history: Sequence[Message | dict[str, Any]], ai_config: AIConfig
    ) -> AsyncIterator[str]:
        try:
            messages = normalize_messages(history)
            response = await self.call_ai_chat(messages, stream=True)
            async with aclosing(
                self._process_response(response, messages, ai_config, depth=0)
            ) as chunks:
                async for chunk in chunks:
                    yield chunk
        except Exception as e:
            error_code, error_category = classify_error(e)
            logger.error(
                f"Error fetching {ai_config.service.value} API response",
                error_type=type(e).__name__,
                error_category=error_category,
                error_code=error_code,
                error_message=str(e),
            )
            # Only a provider selection that turned invalid keeps its own code
            if not isinstance(e, InvalidServiceError):
                error_code = DEFAULT_ERROR_CODE
            yield self._handle_api_error(error_code)

    async def _process_response(
        self,
        response: httpx.Response,
        messages: list[Message],
        ai_config: AIConfig,
        depth: int,
    ) -> AsyncIterator[str]:
        """Decode one streaming body, descending into tool-result continuations."""
        parser = StreamingParser()
        try:
            failure = await self._read_failure(response)
            if failure is not None:
                raise BackendStatusError.from_failure(
                    failure, service=ai_config.service.value, model=ai_config.model
                )

            async with aclosing(parser.parse_lines(response)) as lines:
                async for line in lines:
                    if line.kind is WireLineKind.TEXT:
                        yield line.payload
                    elif line.kind is WireLineKind.TOOL_CALL:
                        yield TOOL_CALL_SENTIMENT + self._translate("Chat.PleaseWait")
                    elif line.kind is WireLineKind.TOOL_RESULT:
                        async with aclosing(
                            self._continue_with_tool_result(
                                line.payload, messages, ai_config, depth
                            )
                        ) as chunks:
                            async for chunk in chunks:
                                yield chunk
        finally:
            await response.aclose()
            logger.debug("Stream response closed", depth=depth, **parser.get_stats())

    async def _continue_with_tool_result(
        self,
        result: str,
        messages: list[Message],
        ai_config: AIConfig,
        depth: int,
    ) -> AsyncIterator[str]:
        if depth >= self.max_tool_depth:
            raise NestingDepthError(
                f"Tool result continuation exceeded depth {self.max_tool_depth}",
                service=ai_config.service.value,
                model=ai_config.model,
            )

        continued = [
            *messages,
            Message(
                role="user",
                content=self._translate("Chat.ToolResultPrompt", result=result),
            ),
        ]
        logger.info("Continuing with tool result", depth=depth + 1)
        response = await self.call_ai_chat(continued, stream=True, tool_required=False)
        async with aclosing(
            self._process_response(response, continued, ai_config, depth + 1)
        ) as chunks:
            async for chunk in chunks:
                yield chunk

    async def _read_failure(self, response: httpx.Response) -> BackendFailure | None:
        """Turn a non-2xx response into a BackendFailure, reading its error body."""
        if response.is_success:
            return None

        await response.aread()
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        return BackendFailure(
            error_code=body.get("errorCode") or DEFAULT_ERROR_CODE,
            status=response.status_code,
            message=str(body.get("error", "")),
        )

    async def _read_result(self, response: httpx.Response) -> BackendResult:
        failure = await self._read_failure(response)
        if failure is not None:
            return failure

        data = response.json()
        if not isinstance(data, dict):
            raise DecodeError(
                f"Expected a JSON object, got {type(data).__name__}",
                status_code=response.status_code,
            )
        return BackendSuccess(data)

    def _translate(self, key: str, **params: Any) -> str:
        self.translator.change_language(self.settings.get_state().select_language)
        return self.translator.t(key, **params)

    def _handle_api_error(self, error_code: str | None) -> str:
        return handle_api_error(error_code, self.settings, self.translator)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> AIChatClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
