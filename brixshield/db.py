# db.py
"""
Key/value storage backends for the scan history.

Every backend offers the same three calls, modelled on browser local storage:
    get_item(key) -> Optional[str]
    set_item(key, value) -> None
    remove_item(key) -> None

Driver errors are re-raised as ``PersistenceFailure``.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

import redis as redis_lib
from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from brixshield.config import DATABASE_URL, REDIS_URL, STORAGE_BACKEND
from brixshield.errors import PersistenceFailure

logger = logging.getLogger("db")

Base = declarative_base()


class KVItem(Base):
    __tablename__ = "kv_items"
    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SqlStorage:
    """SQLAlchemy table holding one row per key (SQLite by default)."""

    def __init__(self, database_url: str = DATABASE_URL):
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, connect_args=connect_args)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(bind=self.engine)

    def get_item(self, key: str) -> Optional[str]:
        session = self.SessionLocal()
        try:
            item = session.get(KVItem, key)
            return item.value if item else None
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"read of {key!r} failed: {e}") from e
        finally:
            session.close()

    def set_item(self, key: str, value: str) -> None:
        session = self.SessionLocal()
        try:
            session.merge(KVItem(key=key, value=value, updated_at=datetime.utcnow()))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceFailure(f"write of {key!r} failed: {e}") from e
        finally:
            session.close()

    def remove_item(self, key: str) -> None:
        session = self.SessionLocal()
        try:
            session.query(KVItem).filter(KVItem.key == key).delete()
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceFailure(f"delete of {key!r} failed: {e}") from e
        finally:
            session.close()


class RedisStorage:
    """Keys stored as plain Redis strings."""

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisStorage":
        return cls(redis_lib.from_url(url, decode_responses=True))

    def get_item(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
        except redis_lib.RedisError as e:
            raise PersistenceFailure(f"read of {key!r} failed: {e}") from e
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set_item(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except redis_lib.RedisError as e:
            raise PersistenceFailure(f"write of {key!r} failed: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis_lib.RedisError as e:
            raise PersistenceFailure(f"delete of {key!r} failed: {e}") from e


class MemoryStorage:
    """Process-local dict; nothing survives a restart."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


def storage_from_env():
    """Pick the backend named by BRIXSHIELD_STORAGE (sql, redis or memory)."""
    if STORAGE_BACKEND == "memory":
        logger.warning("Using in-memory scan storage; history is lost on restart")
        return MemoryStorage()
    if STORAGE_BACKEND == "redis":
        if not REDIS_URL:
            raise RuntimeError("BRIXSHIELD_STORAGE=redis requires REDIS_URL")
        logger.info("Using Redis at %s for scan storage", REDIS_URL)
        return RedisStorage.from_url(REDIS_URL)
    if STORAGE_BACKEND != "sql":
        logger.warning("Unknown BRIXSHIELD_STORAGE %r, falling back to sql", STORAGE_BACKEND)
    logger.info("Using %s for scan storage", DATABASE_URL)
    return SqlStorage(DATABASE_URL)
