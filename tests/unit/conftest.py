from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock
import pytest


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_lock():
    """SettlementLock whose hold() records the keys it was asked for"""
    lock = MagicMock()
    lock.keys = []

    @asynccontextmanager
    async def hold(key):
        lock.keys.append(key)
        yield

    lock.hold = hold
    return lock
