"""ChatClient: the single mutable store behind the chat UI."""

import dataclasses
import logging

from .coordinator import StreamingCoordinator
from .core import Snapshot
from .provider import ResponseService
from .store import SessionStore

logger = logging.getLogger(__name__)


class ChatClient:
    """Holds sessions, their logs and the coordinator.

    The four UI intents below are the only way to change client state; each
    is followed by ``snapshot()`` to get something to render.
    """

    def __init__(
        self,
        service: ResponseService,
        store: SessionStore | None = None,
        poll_interval: float | None = None,
        timeout: float | None = None,
    ):
        self.store = store or SessionStore()
        self.coordinator = StreamingCoordinator(
            self.store, service, poll_interval=poll_interval, timeout=timeout
        )

    @property
    def service(self) -> ResponseService:
        return self.coordinator.service

    async def send_message(self, text: str) -> Snapshot:
        await self.coordinator.submit(text)
        return self.snapshot()

    def new_chat(self) -> Snapshot:
        self.coordinator.cancel()
        self.store.create_session()
        return self.snapshot()

    def switch_chat(self, session_id: str) -> Snapshot:
        """Activate ``session_id``; raises NotFoundError for unknown ids."""
        if session_id != self.store.active_id:
            self.store.get(session_id)
            self.coordinator.cancel()
            self.store.switch_session(session_id)
        return self.snapshot()

    def delete_chat(self, session_id: str) -> Snapshot:
        if session_id in self.store:
            if self.coordinator.session_id == session_id or session_id == self.store.active_id:
                self.coordinator.cancel()
            self.store.delete_session(session_id)
        else:
            logger.info("Ignoring delete of unknown session %s", session_id)
        return self.snapshot()

    async def wait_idle(self) -> None:
        await self.coordinator.wait_idle()

    def snapshot(self) -> Snapshot:
        return Snapshot(
            sessions=tuple(dataclasses.replace(s) for s in self.store.sessions),
            active_messages=tuple(dataclasses.replace(m) for m in self.store.log()),
            is_streaming=self.coordinator.is_busy,
        )

    async def aclose(self) -> None:
        self.coordinator.cancel()
        await self.service.aclose()
