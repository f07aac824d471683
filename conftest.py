"""
Shared fixtures: an in-memory settings store and a scripted fake backend
served through httpx.MockTransport.
"""

import json

import httpx
import pytest
import pytest_asyncio

from aichat.client import AIChatClient
from aichat.config import Settings, SettingsStore
from aichat.localization import Translator


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in exactly the given reads; counts closes."""

    def __init__(self, chunks):
        self.chunks = [c.encode("utf-8") if isinstance(c, str) else c for c in chunks]
        self.close_count = 0

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk

    async def aclose(self):
        self.close_count += 1


class FakeBackend:
    """Answers each request with the next scripted response."""

    def __init__(self):
        self.requests = []
        self.streams = []
        self._queue = []

    def add_stream(self, *chunks, status=200):
        def respond(request):
            stream = ChunkedStream(chunks)
            self.streams.append(stream)
            return httpx.Response(status, stream=stream)

        self._queue.append(respond)
        return self

    def add_json(self, status, body):
        self._queue.append(lambda request: httpx.Response(status, json=body))
        return self

    def add_transport_error(self):
        def respond(request):
            raise httpx.ConnectError("Connection refused", request=request)

        self._queue.append(respond)
        return self

    def __call__(self, request):
        self.requests.append(json.loads(request.content))
        return self._queue.pop(0)(request)


@pytest.fixture
def store():
    return SettingsStore(
        Settings(
            select_ai_service="openai",
            select_ai_model="gpt-4o-mini",
            openai_key="sk-test",
            select_language="en",
        )
    )


@pytest.fixture
def translator():
    return Translator()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest_asyncio.fixture
async def client(store, translator, backend):
    chat_client = AIChatClient(
        store, translator, transport=httpx.MockTransport(backend)
    )
    yield chat_client
    await chat_client.close()
