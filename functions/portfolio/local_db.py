"""
Local database for cached/draft collections, plus the legacy JSON storage
it replaced.

The local database is a plain key -> JSON list store. Each collection is
read and written whole; there is no versioning or locking.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Dict, Optional, Protocol

from sqlalchemy import JSON, Column, Float, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

PROJECTS_KEY = "projects"
CATEGORIES_KEY = "categories"

LEGACY_PROJECTS_KEY = "objxdesign_projects"
LEGACY_CATEGORIES_KEY = "objxdesign_categories"


class LocalStoreError(Exception):
    """Raised when the local database cannot be read or written."""


class LocalStore(Protocol):
    """Interface for the local per-client database."""

    def get(self, key: str) -> Optional[list]:
        ...

    def put(self, key: str, value: list) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemoryLocalStore:
    """Simple in-memory local database for development and tests."""

    def __init__(self):
        self.records: Dict[str, list] = {}

    def get(self, key: str) -> Optional[list]:
        value = self.records.get(key)
        return json.loads(json.dumps(value)) if value is not None else None

    def put(self, key: str, value: list) -> None:
        self.records[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> None:
        self.records.pop(key, None)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.records.clear()


Base = declarative_base()


class LocalRecordRow(Base):
    __tablename__ = "local_records"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(Float, nullable=False)


class SqlLocalStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL; SQLite by default.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("A database URL is required for SqlLocalStore")
        self.engine = create_engine(database_url, future=True)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def get(self, key: str) -> Optional[list]:
        try:
            with self.Session() as session:
                row = session.get(LocalRecordRow, key)
                return row.value if row else None
        except SQLAlchemyError as exc:
            raise LocalStoreError(f"Could not read {key}: {exc}") from exc

    def put(self, key: str, value: list) -> None:
        try:
            with self.Session() as session:
                row = session.get(LocalRecordRow, key)
                if row:
                    row.value = value
                    row.updated_at = time.time()
                else:
                    session.add(
                        LocalRecordRow(key=key, value=value, updated_at=time.time())
                    )
                session.commit()
        except SQLAlchemyError as exc:
            raise LocalStoreError(f"Could not save {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self.Session() as session:
                row = session.get(LocalRecordRow, key)
                if row:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as exc:
            raise LocalStoreError(f"Could not delete {key}: {exc}") from exc


class LegacyJsonStore:
    """
    The storage format used before the local database: one JSON object on disk
    mapping storage keys to JSON-encoded collections.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable legacy store at %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def read(self, key: str) -> Optional[list]:
        value = self._load().get(key)
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                logger.warning("Ignoring corrupt legacy entry %s", key)
                return None
        return value if isinstance(value, list) else None

    def remove(self, key: str) -> None:
        data = self._load()
        if key not in data:
            return
        del data[key]
        self.path.write_text(json.dumps(data), encoding="utf-8")
