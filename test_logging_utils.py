#!/usr/bin/env python3
"""
Test script for logging utilities.

This validates that error classification and the logging helpers behave
consistently.
"""

import json
import logging

import httpx
import pytest

from aichat.exceptions import (
    BackendStatusError,
    DecodeError,
    EmptyBodyError,
    InvalidServiceError,
)
from aichat.logging_utils import (
    classify_error,
    configure_logging,
    log_operation,
    operation_context,
)
from aichat.models import BackendFailure


class TestClassifyError:
    """Test the classify_error helper."""

    def test_backend_status_error_keeps_code(self):
        error = BackendStatusError.from_failure(
            BackendFailure(error_code="Quota", status=500, message="boom"),
            service="openai",
        )
        assert classify_error(error) == ("Quota", "chat_error")
        assert error.status_code == 500
        assert "failed with status 500 and body boom" in str(error)

    def test_invalid_service_code(self):
        assert classify_error(InvalidServiceError("x")) == ("InvalidAIService", "chat_error")

    @pytest.mark.parametrize("error", [DecodeError("bad"), EmptyBodyError("empty")])
    def test_other_chat_errors_are_generic(self, error):
        assert classify_error(error) == ("AIAPIError", "chat_error")

    def test_timeout(self):
        assert classify_error(httpx.ReadTimeout("slow")) == ("AIAPIError", "timeout_error")

    def test_connection(self):
        request = httpx.Request("POST", "http://backend.test/api/aiChat")
        error = httpx.ConnectError("refused", request=request)
        assert classify_error(error) == ("AIAPIError", "connection_error")
        assert classify_error(ConnectionError("reset")) == ("AIAPIError", "connection_error")

    def test_json_decode(self):
        error = json.JSONDecodeError("Expecting value", "x", 0)
        assert classify_error(error) == ("AIAPIError", "decode_error")

    def test_parameter_and_unknown(self):
        assert classify_error(KeyError("text")) == ("AIAPIError", "parameter_error")
        assert classify_error(RuntimeError("?")) == ("AIAPIError", "unknown_error")


class TestDecorators:
    """Test logging decorators and context manager."""

    @pytest.mark.asyncio
    async def test_log_operation_success(self):

        @log_operation("test_operation")
        async def successful_function(value):
            return value * 2

        assert await successful_function(21) == 42
        assert successful_function.__name__ == "successful_function"

    @pytest.mark.asyncio
    async def test_log_operation_with_error(self):

        @log_operation("test_operation")
        async def failing_function():
            raise DecodeError("Test error")

        with pytest.raises(DecodeError, match="Test error"):
            await failing_function()

    @pytest.mark.asyncio
    async def test_operation_context_success(self):
        async with operation_context("test_operation", context={"k": "v"}) as logger:
            assert logger is not None

    @pytest.mark.asyncio
    async def test_operation_context_with_error(self):
        with pytest.raises(ValueError, match="Test error"):
            async with operation_context("test_operation"):
                raise ValueError("Test error")


def test_configure_logging_sets_root_level():
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging("debug")
        assert root.level == logging.DEBUG
        configure_logging(logging.WARNING)
        assert root.level == logging.WARNING
    finally:
        root.setLevel(previous)
