"""Offline response service.

Replies to the last user turn by revealing a canned answer a few characters
at a time, the way a streaming model would fill in its output.
"""

import asyncio
import logging

from ..core import Role, SubmissionError, Turn
from ..provider import ResponseHandle, ResponseService

logger = logging.getLogger(__name__)


class EchoService(ResponseService):
    """Service that echoes the user's last message back."""

    name = "echo"

    def __init__(self, chunk_size: int = 4, delay: float = 0.02):
        self.chunk_size = chunk_size
        self.delay = delay
        self._tasks: set[asyncio.Task] = set()

    async def submit(self, turns: list[Turn]) -> ResponseHandle:
        last_user = next((t for t in reversed(turns) if t.role == Role.USER), None)
        if last_user is None:
            raise SubmissionError("No user turn to respond to")

        handle = ResponseHandle()
        reply = f"You said: {last_user.content}"
        handle.task = asyncio.create_task(self._generate(handle, reply))
        self._tasks.add(handle.task)
        handle.task.add_done_callback(self._tasks.discard)
        return handle

    async def _generate(self, handle: ResponseHandle, reply: str) -> None:
        for end in range(self.chunk_size, len(reply) + self.chunk_size, self.chunk_size):
            await asyncio.sleep(self.delay)
            handle.output = reply[:end]
        handle.done = True
        logger.debug("Echo reply finished (%d chars)", len(reply))

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
