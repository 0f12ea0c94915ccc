"""Abstract base class for response-generation services."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .core import Turn


@dataclass
class ResponseHandle:
    """Progress object returned by a service.

    The service rewrites ``output`` in place with the full response so far.
    ``done`` is an optional completion signal; services that cannot tell
    when they are finished leave it False and callers rely on a timeout.
    Backends that generate in the background attach their task so an
    abandoned handle can be cancelled.
    """

    output: str = ""
    done: bool = False
    task: asyncio.Task | None = field(default=None, repr=False, compare=False)

    def cancel(self) -> None:
        """Stop the generation feeding this handle, if it is still running."""
        if self.task is not None and not self.task.done():
            self.task.cancel()


class ResponseService(ABC):
    """Base class for response-generation backends.

    Each backend (echo, OpenAI-compatible HTTP) implements this interface so
    the coordinator can drive any of them the same way.
    """

    name: str  # "echo", "openai"

    @abstractmethod
    async def submit(self, turns: list[Turn]) -> ResponseHandle:
        """Start generating a reply to ``turns``.

        Raises SubmissionError if the request could not be started.
        """
        ...

    async def aclose(self) -> None:
        """Release any resources held by the service."""
        return None
