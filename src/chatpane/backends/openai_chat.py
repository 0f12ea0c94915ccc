"""OpenAI-compatible chat completions backend.

Streams a chat completion through the ``openai`` SDK and folds each
``delta.content`` chunk into the response handle as it arrives. The handle
is marked done when the stream ends.
"""

import asyncio
import logging

import httpx
from openai import APIError, AsyncOpenAI

from ..config import get_api_base, get_api_key, get_model
from ..core import SubmissionError, Turn
from ..provider import ResponseHandle, ResponseService

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant."


class OpenAIService(ResponseService):
    """Provider for any endpoint speaking the OpenAI chat completions API."""

    name = "openai"

    def __init__(
        self,
        api_base: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_base = (api_base or get_api_base()).rstrip("/")
        self.model = model or get_model()
        self._client = AsyncOpenAI(
            base_url=self.api_base,
            # Local OpenAI-compatible servers accept any key.
            api_key=api_key or get_api_key() or "unused",
            max_retries=0,
            http_client=http_client,
        )
        self._tasks: set[asyncio.Task] = set()

    def _messages(self, turns: list[Turn]) -> list[dict]:
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend({"role": t.role.value, "content": t.content} for t in turns)
        return messages

    async def submit(self, turns: list[Turn]) -> ResponseHandle:
        try:
            stream = await self._client.chat.completions.create(
                model=self.model,
                messages=self._messages(turns),
                stream=True,
            )
        except APIError as e:
            raise SubmissionError(f"Request to {self.api_base} failed: {e}") from e

        handle = ResponseHandle()
        handle.task = asyncio.create_task(self._consume(stream, handle))
        self._tasks.add(handle.task)
        handle.task.add_done_callback(self._tasks.discard)
        return handle

    async def _consume(self, stream, handle: ResponseHandle) -> None:
        text = ""
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                piece = chunk.choices[0].delta.content
                if piece:
                    text += piece
                    handle.output = text
        except APIError as e:
            logger.error("Response stream broke off after %d chars: %s", len(text), e)
        finally:
            await stream.close()
            handle.done = True

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self._client.close()
