# models.py
from datetime import datetime

import sqlalchemy
from slotswap.database import metadata


class IsoDateTime(sqlalchemy.types.TypeDecorator):
    """Datetime kept as ISO-8601 text so the UTC offset survives any backend."""
    impl = sqlalchemy.String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return value.isoformat() if value is not None else None

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, datetime):
            return value
        return datetime.fromisoformat(value)


# 'seq' keeps the natural insertion order; 'id' is the public record id.

users = sqlalchemy.Table(
    "users",
    metadata,
    sqlalchemy.Column("seq", sqlalchemy.Integer, primary_key=True, autoincrement=True),
    sqlalchemy.Column("id", sqlalchemy.String, unique=True, index=True, nullable=False),
    sqlalchemy.Column("name", sqlalchemy.String),
    sqlalchemy.Column("email", sqlalchemy.String, unique=True, index=True),
    sqlalchemy.Column("created_at", IsoDateTime()),
)

slots = sqlalchemy.Table(
    "slots",
    metadata,
    sqlalchemy.Column("seq", sqlalchemy.Integer, primary_key=True, autoincrement=True),
    sqlalchemy.Column("id", sqlalchemy.String, unique=True, index=True, nullable=False),
    sqlalchemy.Column("owner_id", sqlalchemy.String, sqlalchemy.ForeignKey("users.id"), index=True),
    sqlalchemy.Column("title", sqlalchemy.String),
    sqlalchemy.Column("start_time", IsoDateTime()),
    sqlalchemy.Column("end_time", IsoDateTime()),
    sqlalchemy.Column("status", sqlalchemy.String, default="BUSY", nullable=False),
    sqlalchemy.Column("created_at", IsoDateTime()),
    sqlalchemy.Column("updated_at", IsoDateTime(), nullable=True),
)

# Swaps are an append-only log and outlive the slots they reference,
# so the slot columns carry no foreign key.
swaps = sqlalchemy.Table(
    "swaps",
    metadata,
    sqlalchemy.Column("seq", sqlalchemy.Integer, primary_key=True, autoincrement=True),
    sqlalchemy.Column("id", sqlalchemy.String, unique=True, index=True, nullable=False),
    sqlalchemy.Column("requester_slot_id", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("counterparty_slot_id", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("requester_id", sqlalchemy.String, sqlalchemy.ForeignKey("users.id"), index=True),
    sqlalchemy.Column("counterparty_id", sqlalchemy.String, sqlalchemy.ForeignKey("users.id"), index=True),
    sqlalchemy.Column("status", sqlalchemy.String, default="PENDING", nullable=False),
    sqlalchemy.Column("created_at", IsoDateTime()),
    sqlalchemy.Column("responded_at", IsoDateTime(), nullable=True),
)

COLLECTIONS = {
    "users": users,
    "slots": slots,
    "swaps": swaps,
}
