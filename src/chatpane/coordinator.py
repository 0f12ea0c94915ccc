"""Streaming coordinator: drives one response generation at a time.

A request moves through IDLE -> REQUESTING -> STREAMING and ends in one of
COMPLETED, TIMED_OUT, FAILED or CANCELLED before dropping back to IDLE.
While STREAMING a single poll task reads the service handle at a fixed
interval and mirrors its output into the assistant placeholder, replacing
the whole content each time. A timeout task started at submit time bounds
the request no matter what the handle does.

Every request remembers the session and message it writes to. Tasks hold a
reference to their request and stop as soon as it is no longer the current
one. The poll task also gives up once its session stops being the active
session, so a late callback can never write into another conversation.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from . import config
from .core import APOLOGY, Message, Role, make_preview
from .provider import ResponseHandle, ResponseService
from .store import SessionStore

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
    CANCELLED = "cancelled"


BUSY_STATES = (StreamState.REQUESTING, StreamState.STREAMING)


@dataclass(eq=False)
class _Request:
    session_id: str
    message_id: str
    handle: ResponseHandle | None = None
    last_output: str = ""
    tasks: list[asyncio.Task] = field(default_factory=list)


class StreamingCoordinator:
    """Submits user turns and reconciles the response into the session log."""

    def __init__(
        self,
        store: SessionStore,
        service: ResponseService,
        poll_interval: float | None = None,
        timeout: float | None = None,
    ):
        self.store = store
        self.service = service
        self.poll_interval = poll_interval if poll_interval is not None else config.get_poll_interval()
        self.timeout = timeout if timeout is not None else config.get_timeout()
        self.state = StreamState.IDLE
        self.last_outcome: StreamState | None = None
        self.state_history: list[StreamState] = [StreamState.IDLE]
        self._request: _Request | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def is_busy(self) -> bool:
        return self.state in BUSY_STATES

    @property
    def session_id(self) -> str | None:
        """Session targeted by the outstanding request, if any."""
        return self._request.session_id if self._request else None

    async def submit(self, text: str) -> bool:
        """Send ``text`` as a new user turn of the active session.

        Returns False without touching any state when the text is blank or a
        request is already outstanding.
        """
        if not text or not text.strip() or self.is_busy:
            return False

        session_id = self.store.active_id
        log = self.store.log(session_id)
        log.append(Message.create(text.strip(), Role.USER))
        placeholder = Message.create("", Role.ASSISTANT)
        log.append(placeholder)

        request = _Request(session_id=session_id, message_id=placeholder.id)
        self._request = request
        self._idle.clear()
        self.state_history = []
        self._transition(StreamState.REQUESTING)
        request.tasks.append(asyncio.create_task(self._expire(request)))

        try:
            handle = await self.service.submit(log.turns(exclude=placeholder.id))
        except Exception as e:
            if request is self._request:
                logger.error("Error submitting message for %s: %s", session_id, e)
                self._patch(request, APOLOGY)
                self._finish(request, StreamState.FAILED)
            return True

        if request is not self._request:
            # Timed out or cancelled while the service was accepting.
            logger.info("Discarding late handle for session %s", session_id)
            handle.cancel()
            return True

        request.handle = handle
        self._transition(StreamState.STREAMING)
        request.tasks.append(asyncio.create_task(self._poll(request)))
        return True

    def cancel(self) -> None:
        """Abandon the outstanding request, keeping whatever content arrived."""
        if self._request is not None:
            self._finish(self._request, StreamState.CANCELLED)

    async def wait_idle(self) -> None:
        await self._idle.wait()

    async def _poll(self, request: _Request) -> None:
        while request is self._request and self.state is StreamState.STREAMING:
            if request.session_id != self.store.active_id:
                logger.info("Session %s is no longer active, dropping its request", request.session_id)
                self._finish(request, StreamState.CANCELLED)
                return
            self._reconcile(request)
            if request.handle.done:
                self._finish(request, StreamState.COMPLETED)
                return
            await asyncio.sleep(self.poll_interval)

    def _reconcile(self, request: _Request) -> None:
        output = str(request.handle.output or "")
        if output == request.last_output:
            return
        request.last_output = output
        logger.debug("Patching %s with %d chars", request.message_id, len(output))
        self._patch(request, output)
        self.store.set_preview(request.session_id, make_preview(output))

    async def _expire(self, request: _Request) -> None:
        await asyncio.sleep(self.timeout)
        if request is self._request:
            logger.info("Request for session %s timed out after %.1fs", request.session_id, self.timeout)
            self._finish(request, StreamState.TIMED_OUT)

    def _patch(self, request: _Request, content: str) -> None:
        if request.session_id in self.store:
            self.store.log(request.session_id).patch_content(request.message_id, content)

    def _finish(self, request: _Request, outcome: StreamState) -> None:
        try:
            current = asyncio.current_task()
        except RuntimeError:  # no running loop
            current = None
        for task in request.tasks:
            if task is not current and not task.done():
                task.cancel()
        if request.handle is not None:
            request.handle.cancel()
        self._request = None
        self.last_outcome = outcome
        self._transition(outcome)
        self._transition(StreamState.IDLE)
        self._idle.set()

    def _transition(self, state: StreamState) -> None:
        logger.info("Coordinator %s -> %s", self.state.value, state.value)
        self.state = state
        self.state_history.append(state)
