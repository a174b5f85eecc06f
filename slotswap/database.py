# database.py
from databases import Database
from sqlalchemy import create_engine, MetaData

from slotswap.config import DATABASE_URL

# Shared table registry; tables are declared in slotswap.models
metadata = MetaData()


def create_database(url: str = DATABASE_URL) -> Database:
    return Database(url)


def create_tables(url: str = DATABASE_URL) -> None:
    """Create any missing tables using a short-lived synchronous engine."""
    engine = create_engine(url)
    try:
        metadata.create_all(bind=engine)
    finally:
        engine.dispose()
