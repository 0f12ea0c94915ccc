"""Small assertions shared by the test modules."""

import asyncio


def active_count(sessions) -> int:
    return sum(1 for s in sessions if s.is_active)


async def eventually(predicate, timeout: float = 1.0):
    """Wait until ``predicate()`` is true, failing after ``timeout`` seconds."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)
