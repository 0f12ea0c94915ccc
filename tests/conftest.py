"""Shared test fixtures for chatpane."""

import asyncio

import pytest

from chatpane.client import ChatClient
from chatpane.core import SubmissionError, Turn
from chatpane.provider import ResponseHandle, ResponseService
from chatpane.store import SessionStore


class FakeService(ResponseService):
    """Service whose handle the test drives by hand."""

    name = "fake"

    def __init__(self, fail: bool = False, delay: float = 0.0, background: bool = False):
        self.fail = fail
        self.delay = delay
        self.background = background
        self.calls: list[list[Turn]] = []
        self.handles: list[ResponseHandle] = []
        self.closed = False

    async def submit(self, turns: list[Turn]) -> ResponseHandle:
        self.calls.append(list(turns))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise SubmissionError("service unavailable")
        handle = ResponseHandle()
        if self.background:
            # Stands in for a generation that never finishes on its own.
            handle.task = asyncio.create_task(asyncio.Event().wait())
        self.handles.append(handle)
        return handle

    @property
    def handle(self) -> ResponseHandle:
        return self.handles[-1]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def service():
    return FakeService()


@pytest.fixture
def failing_service():
    return FakeService(fail=True)


@pytest.fixture
def slow_service():
    return FakeService(delay=0.2, background=True)


@pytest.fixture
def client(store, service):
    return ChatClient(service, store=store, poll_interval=0.01, timeout=5.0)
