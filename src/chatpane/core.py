"""Core data models for chatpane."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

GREETING = "Hello! How can I assist you today?"
NEW_CHAT_PREVIEW = "Start a new conversation..."
APOLOGY = "Sorry, I encountered an error while responding."
SWITCH_NOTICE = "You've switched to a previous conversation. Messages would load here."
DELETE_SWITCH_NOTICE = "You've switched to a different conversation after deleting the previous one."

PREVIEW_CHARS = 40
ELLIPSIS = "..."


class ChatError(Exception):
    """Base class for chatpane errors."""


class DuplicateIdError(ChatError):
    """A message with this id is already in the log."""


class NotFoundError(ChatError, KeyError):
    """No message or session with the given id."""


class SubmissionError(ChatError):
    """The response-generation service rejected a request."""


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Message:
    """A single turn within a chat session."""

    id: str
    content: str
    role: Role
    timestamp: datetime = field(default_factory=utc_now)

    @classmethod
    def create(cls, content: str, role: Role) -> "Message":
        return cls(id=new_id(), content=content, role=role)


@dataclass
class ChatSession:
    """An independent conversation thread."""

    id: str  # "current" for the initial session, "chat-<hex>" afterwards
    title: str
    preview: str
    timestamp: datetime = field(default_factory=utc_now)
    is_active: bool = False


@dataclass(frozen=True)
class Turn:
    """One entry of the conversation history sent to a response service."""

    index: int
    role: Role
    content: str


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of client state handed to the UI after every intent."""

    sessions: tuple[ChatSession, ...]
    active_messages: tuple[Message, ...]
    is_streaming: bool

    @property
    def active_session_id(self) -> str:
        return next(s.id for s in self.sessions if s.is_active)


def make_preview(text: str) -> str:
    """Return the sidebar preview for a piece of assistant content.

    At most PREVIEW_CHARS characters of the source are kept; an ellipsis is
    appended only when something was cut off.
    """
    if len(text) > PREVIEW_CHARS:
        return text[:PREVIEW_CHARS] + ELLIPSIS
    return text
