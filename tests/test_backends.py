"""Tests for the response-generation backends."""

import asyncio
import json

import httpx
import pytest

from chatpane.backends import get_service
from chatpane.backends.echo import EchoService
from chatpane.backends.openai_chat import OpenAIService
from chatpane.core import Role, SubmissionError, Turn


TURNS = [
    Turn(index=0, role=Role.ASSISTANT, content="Hello! How can I assist you today?"),
    Turn(index=1, role=Role.USER, content="Say hello"),
]


def sse_event(piece: str) -> str:
    chunk = {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 1736935200,
        "model": "test-model",
        "choices": [{"index": 0, "delta": {"content": piece}, "finish_reason": None}],
    }
    return f"data: {json.dumps(chunk)}\n\n"


def sse_body(*pieces: str) -> bytes:
    lines = [sse_event(piece) for piece in pieces]
    lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


async def wait_done(handle, timeout: float = 1.0):
    async def _wait():
        while not handle.done:
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_wait(), timeout)


class TestRegistry:
    def test_known_backends(self):
        assert isinstance(get_service("echo"), EchoService)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            get_service("nope")


class TestEchoService:
    @pytest.mark.asyncio
    async def test_reveals_reply_progressively(self):
        service = EchoService(chunk_size=3, delay=0.001)
        handle = await service.submit(TURNS)
        seen = set()

        async def _watch():
            while not handle.done:
                seen.add(handle.output)
                await asyncio.sleep(0)
        await asyncio.wait_for(_watch(), 1.0)

        assert handle.output == "You said: Say hello"
        assert len(seen) > 1

    @pytest.mark.asyncio
    async def test_requires_user_turn(self):
        with pytest.raises(SubmissionError):
            await EchoService().submit(TURNS[:1])


SSE_HEADERS = {"content-type": "text/event-stream"}


def make_service(handler) -> OpenAIService:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAIService(
        api_base="http://llm.test/v1",
        api_key="sk-test",
        model="test-model",
        http_client=http_client,
    )


class TestOpenAIService:
    @pytest.mark.asyncio
    async def test_streams_deltas_into_handle(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, headers=SSE_HEADERS, content=sse_body("Hel", "lo", "!"))

        service = make_service(handler)
        handle = await service.submit(TURNS)
        await wait_done(handle)

        assert handle.output == "Hello!"
        assert str(requests[0].url) == "http://llm.test/v1/chat/completions"
        assert requests[0].headers["Authorization"] == "Bearer sk-test"
        payload = json.loads(requests[0].content)
        assert payload["model"] == "test-model"
        assert payload["stream"] is True
        assert payload["messages"][0]["role"] == "system"
        assert payload["messages"][-1] == {"role": "user", "content": "Say hello"}
        await service.aclose()

    @pytest.mark.asyncio
    async def test_error_status_raises_submission_error(self):
        service = make_service(lambda r: httpx.Response(401, json={"error": {"message": "bad key"}}))

        with pytest.raises(SubmissionError, match="401"):
            await service.submit(TURNS)
        await service.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_raises_submission_error_without_retry(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        service = make_service(handler)

        with pytest.raises(SubmissionError):
            await service.submit(TURNS)
        assert len(attempts) == 1
        await service.aclose()

    @pytest.mark.asyncio
    async def test_error_event_ends_stream(self):
        body = (sse_event("Hel") + 'data: {"error": {"message": "overloaded"}}\n\n').encode()
        service = make_service(lambda r: httpx.Response(200, headers=SSE_HEADERS, content=body))

        handle = await service.submit(TURNS)
        await wait_done(handle)

        assert handle.output == "Hel"
        await service.aclose()

    @pytest.mark.asyncio
    async def test_cancelling_handle_stops_stream(self):
        async def never_ending():
            yield sse_event("partial").encode()
            await asyncio.Event().wait()

        service = make_service(lambda r: httpx.Response(200, headers=SSE_HEADERS, content=never_ending()))
        handle = await service.submit(TURNS)

        async def _wait_partial():
            while handle.output != "partial":
                await asyncio.sleep(0.005)
        await asyncio.wait_for(_wait_partial(), 1.0)

        handle.cancel()
        await wait_done(handle)

        assert handle.task.cancelled()
        await service.aclose()
