"""Shared fixtures: a fresh SQLite-backed store and a few registered users."""

import pytest
import pytest_asyncio

from slotswap.auth import UserCreate, create_user
from slotswap.lifecycle import SlotManager
from slotswap.store import RecordStore
from slotswap.swaps import SwapExchange


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'slotswap.db'}"


@pytest_asyncio.fixture
async def store(database_url):
    store = RecordStore(database_url)
    await store.connect()
    yield store
    await store.disconnect()


@pytest_asyncio.fixture
async def users(store):
    """Registered user ids keyed by first name."""
    registered = {}
    for name in ("alice", "bob", "carol"):
        user = await create_user(store, UserCreate(name=name.title(), email=f"{name}@example.com"))
        registered[name] = user.id
    return registered


@pytest.fixture
def slot_manager(store):
    return SlotManager(store)


@pytest.fixture
def exchange(store):
    return SwapExchange(store)
