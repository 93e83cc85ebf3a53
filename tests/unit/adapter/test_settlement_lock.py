"""Unit tests for InProcessSettlementLock"""

import asyncio
import pytest

from src.adapter.services.settlement_lock import InProcessSettlementLock
from src.app.services.settlement_lock import ledger_lock_key


def test_ledger_lock_key():
    assert ledger_lock_key("client_1", "true_identity") == "client_1:true_identity"


@pytest.mark.asyncio
class TestInProcessSettlementLock:
    async def test_same_key_is_serialized(self):
        """
        Given: Two tasks holding the same key
        When: They run concurrently
        Then: Their critical sections never overlap
        """
        # Arrange
        lock = InProcessSettlementLock()
        events = []

        async def critical(name):
            async with lock.hold("client_1:true_identity"):
                events.append(f"{name}:enter")
                await asyncio.sleep(0.01)
                events.append(f"{name}:exit")

        # Act
        await asyncio.gather(critical("a"), critical("b"))

        # Assert
        assert events in (
            ["a:enter", "a:exit", "b:enter", "b:exit"],
            ["b:enter", "b:exit", "a:enter", "a:exit"],
        )

    async def test_different_keys_do_not_wait(self):
        lock = InProcessSettlementLock()
        inside = asyncio.Event()

        async def first():
            async with lock.hold("client_1:true_identity"):
                await asyncio.wait_for(inside.wait(), timeout=1)

        async def second():
            async with lock.hold("client_2:true_identity"):
                inside.set()

        await asyncio.gather(first(), second())

    async def test_keys_are_released(self):
        lock = InProcessSettlementLock()

        async with lock.hold("client_1:true_identity"):
            assert lock.active_keys() == 1

        assert lock.active_keys() == 0

    async def test_released_on_error(self):
        lock = InProcessSettlementLock()

        with pytest.raises(RuntimeError):
            async with lock.hold("client_1:true_identity"):
                raise RuntimeError("boom")

        assert lock.active_keys() == 0
        async with lock.hold("client_1:true_identity"):
            pass
