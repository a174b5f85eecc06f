# store.py
"""
Transaction-scoped access to the users, slots and swaps collections.

Every read-modify-write goes through ``RecordStore.transact``: a store-wide
lock serializes transactions and the database transaction rolls back any
partial writes when the callback fails. Records cross this boundary as plain
dicts keyed by column name.
"""

import asyncio
import logging
import secrets
import sqlite3
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import sqlalchemy
from databases import Database
from sqlalchemy.exc import SQLAlchemyError

from slotswap.config import DATABASE_URL
from slotswap.database import create_database, create_tables
from slotswap.data_models import SlotStatus, SwapStatus
from slotswap.errors import DuplicateIdError, InvalidRequestError, NotFoundError, StoreUnavailableError
from slotswap.models import COLLECTIONS

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures of the persistence layer itself, as opposed to core errors
PERSISTENCE_ERRORS = (SQLAlchemyError, sqlite3.Error, OSError)

STATUS_ENUMS = {"slots": SlotStatus, "swaps": SwapStatus}


def new_id() -> str:
    return secrets.token_urlsafe(12)


def _table(collection: str) -> sqlalchemy.Table:
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None


def _as_dict(table: sqlalchemy.Table, row) -> Dict[str, Any]:
    return {column.name: row[column.name] for column in table.columns if column.name != "seq"}


def _checked(collection: str, values: Dict[str, Any]) -> Dict[str, Any]:
    enum = STATUS_ENUMS.get(collection)
    if enum is None or "status" not in values:
        return values
    try:
        status = enum(values["status"])
    except ValueError:
        raise InvalidRequestError(f"Unknown {collection} status: {values['status']}") from None
    return {**values, "status": status.value}


class Transaction:
    """Handle passed to a ``transact`` callback; valid only while it runs."""

    def __init__(self, database: Database):
        self._database = database
        self._closed = False

    def close(self) -> None:
        self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Transaction is closed")

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        self._ensure_open()
        table = _table(collection)
        record_id = new_id()
        if await self.get(collection, record_id) is not None:
            raise DuplicateIdError(f"{collection} record {record_id} already exists")
        values = {**_checked(collection, record), "id": record_id}
        await self._database.execute(table.insert().values(**values))
        return await self.get(collection, record_id)

    async def find(self, collection: str, *criteria) -> List[Dict[str, Any]]:
        self._ensure_open()
        table = _table(collection)
        query = table.select()
        if criteria:
            query = query.where(sqlalchemy.and_(*criteria))
        rows = await self._database.fetch_all(query.order_by(table.c.seq))
        return [_as_dict(table, row) for row in rows]

    async def find_one(self, collection: str, *criteria) -> Optional[Dict[str, Any]]:
        self._ensure_open()
        records = await self.find(collection, *criteria)
        return records[0] if records else None

    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        self._ensure_open()
        table = _table(collection)
        return await self.find_one(collection, table.c.id == record_id)

    async def update(self, collection: str, record_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        self._ensure_open()
        table = _table(collection)
        values = _checked(collection, values)
        if await self.get(collection, record_id) is None:
            raise NotFoundError(f"{collection} record {record_id} not found")
        if values:
            await self._database.execute(
                table.update().where(table.c.id == record_id).values(**values)
            )
        return await self.get(collection, record_id)

    async def remove(self, collection: str, record_id: str) -> None:
        self._ensure_open()
        table = _table(collection)
        if await self.get(collection, record_id) is None:
            raise NotFoundError(f"{collection} record {record_id} not found")
        await self._database.execute(table.delete().where(table.c.id == record_id))


class RecordStore:
    """Durable collections with serialized, all-or-nothing transactions."""

    def __init__(self, url: str = DATABASE_URL):
        self.url = url
        self.database = create_database(url)
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        try:
            create_tables(self.url)
            await self.database.connect()
        except PERSISTENCE_ERRORS as exc:
            logger.warning("Could not open record store at %s: %s", self.url, exc)
            raise StoreUnavailableError("Record store unavailable") from exc
        logger.info("Record store connected: %s", self.url)

    async def disconnect(self) -> None:
        await self.database.disconnect()

    async def transact(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        """
        Run ``fn`` exclusively against the collections.

        Commits when ``fn`` returns and rolls back when it raises. Core errors
        propagate unchanged; persistence failures surface as
        ``StoreUnavailableError``.
        """
        async with self._lock:
            try:
                async with self.database.transaction():
                    tx = Transaction(self.database)
                    try:
                        return await fn(tx)
                    finally:
                        tx.close()
            except PERSISTENCE_ERRORS as exc:
                logger.warning("Transaction rolled back after store failure: %s", exc)
                raise StoreUnavailableError("Record store unavailable, nothing was saved") from exc
