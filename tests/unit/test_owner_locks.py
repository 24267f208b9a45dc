"""Unit tests for per-owner mutual exclusion."""

import asyncio

import pytest

from docvault.domains.quota.locks import OwnerLocks


@pytest.mark.asyncio
async def test_same_owner_is_serialized() -> None:
    locks = OwnerLocks()
    events = []

    async def worker(name: str) -> None:
        async with locks.hold("owner"):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(worker("a"), worker("b"))

    assert events == ["a-start", "a-end", "b-start", "b-end"]


@pytest.mark.asyncio
async def test_different_owners_do_not_block() -> None:
    locks = OwnerLocks()
    entered = asyncio.Event()

    async def holder() -> None:
        async with locks.hold("a"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def other() -> None:
        async with locks.hold("b"):
            entered.set()

    await asyncio.gather(holder(), other())


@pytest.mark.asyncio
async def test_released_locks_are_dropped() -> None:
    locks = OwnerLocks()

    async with locks.hold("owner"):
        assert locks.is_locked("owner")
        assert len(locks) == 1

    assert not locks.is_locked("owner")
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_released_on_error() -> None:
    locks = OwnerLocks()

    with pytest.raises(RuntimeError):
        async with locks.hold("owner"):
            raise RuntimeError("boom")

    assert len(locks) == 0
