"""In-memory collection of chat sessions and their message logs."""

import logging
from typing import Iterable

from .core import (
    DELETE_SWITCH_NOTICE,
    GREETING,
    NEW_CHAT_PREVIEW,
    SWITCH_NOTICE,
    ChatSession,
    Message,
    NotFoundError,
    Role,
    new_id,
)
from .message_log import MessageLog

logger = logging.getLogger(__name__)


def _greeting_log() -> MessageLog:
    return MessageLog([Message.create(GREETING, Role.ASSISTANT)])


class SessionStore:
    """Sessions (newest first) plus one MessageLog per session.

    Exactly one session is active and the collection is never empty. Every
    lifecycle operation computes the new session list before assigning it,
    so a failing call leaves the store untouched.
    """

    def __init__(self, history: Iterable[ChatSession] = ()):
        initial = ChatSession(
            id="current",
            title="Current Chat",
            preview=GREETING,
            is_active=True,
        )
        # Earlier sessions are known by metadata only; their logs are loaded
        # lazily on switch.
        self._sessions: list[ChatSession] = [initial]
        for session in history:
            if session.id in self:
                raise ValueError(f"Duplicate session id in history: {session.id!r}")
            session.is_active = False
            self._sessions.append(session)
        self._logs: dict[str, MessageLog] = {initial.id: _greeting_log()}

    @property
    def sessions(self) -> tuple[ChatSession, ...]:
        return tuple(self._sessions)

    @property
    def active_session(self) -> ChatSession:
        return next(s for s in self._sessions if s.is_active)

    @property
    def active_id(self) -> str:
        return self.active_session.id

    def get(self, session_id: str) -> ChatSession:
        for session in self._sessions:
            if session.id == session_id:
                return session
        raise NotFoundError(session_id)

    def log(self, session_id: str | None = None) -> MessageLog:
        """Return the log of ``session_id`` (the active session by default)."""
        if session_id is None:
            session_id = self.active_id
        try:
            return self._logs[session_id]
        except KeyError:
            raise NotFoundError(session_id) from None

    def set_preview(self, session_id: str, preview: str) -> None:
        self.get(session_id).preview = preview

    def create_session(self, title: str | None = None) -> ChatSession:
        session = ChatSession(
            id=f"chat-{new_id()}",
            title=title or f"New Chat {len(self._sessions)}",
            preview=NEW_CHAT_PREVIEW,
            is_active=True,
        )
        for existing in self._sessions:
            existing.is_active = False
        self._sessions = [session, *self._sessions]
        self._logs[session.id] = _greeting_log()
        logger.info("Created session %s (%s)", session.id, session.title)
        return session

    def switch_session(self, session_id: str) -> ChatSession:
        target = self.get(session_id)
        for session in self._sessions:
            session.is_active = session is target
        self._load_log(target.id, SWITCH_NOTICE)
        logger.info("Switched to session %s", target.id)
        return target

    def delete_session(self, session_id: str) -> None:
        removed = next((s for s in self._sessions if s.id == session_id), None)
        if removed is None:
            return

        remaining = [s for s in self._sessions if s is not removed]
        self._sessions = remaining
        self._logs.pop(session_id, None)
        logger.info("Deleted session %s", session_id)

        if not remaining:
            self.create_session(title="New Chat")
        elif removed.is_active:
            remaining[0].is_active = True
            self._load_log(remaining[0].id, DELETE_SWITCH_NOTICE)

    def _load_log(self, session_id: str, notice: str) -> None:
        # History loading is out of scope; sessions without a log in this
        # process get a single assistant notice instead.
        if session_id not in self._logs:
            self._logs[session_id] = MessageLog([Message.create(notice, Role.ASSISTANT)])

    def __contains__(self, session_id: object) -> bool:
        return any(s.id == session_id for s in self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)
