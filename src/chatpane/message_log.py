"""Ordered, append-only record of the turns in one chat session."""

from typing import Iterable, Iterator

from .core import DuplicateIdError, Message, NotFoundError, Turn


class MessageLog:
    """Messages in creation order.

    Entries are never removed or reordered; the only in-place mutation is a
    full replacement of a message's content.
    """

    def __init__(self, messages: Iterable[Message] = ()):
        self._messages: list[Message] = []
        self._index: dict[str, Message] = {}
        for message in messages:
            self.append(message)

    def append(self, message: Message) -> None:
        if message.id in self._index:
            raise DuplicateIdError(message.id)
        self._messages.append(message)
        self._index[message.id] = message

    def patch_content(self, message_id: str, content: str) -> None:
        """Replace the whole content of a message. Safe to repeat."""
        try:
            self._index[message_id].content = content
        except KeyError:
            raise NotFoundError(message_id) from None

    def get(self, message_id: str) -> Message:
        try:
            return self._index[message_id]
        except KeyError:
            raise NotFoundError(message_id) from None

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def turns(self, exclude: str | None = None) -> list[Turn]:
        """Return the log as service input, skipping the message ``exclude``."""
        return [
            Turn(index=i, role=m.role, content=m.content)
            for i, m in enumerate(m for m in self._messages if m.id != exclude)
        ]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._index
