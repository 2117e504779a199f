"""SQLite-backed key-value store for cache entries that survive restarts."""
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import DateTime, String, Text, create_engine, delete, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from geocurrency.storage.base import KeyValueStore
from geocurrency.utils.errors import CacheError
from geocurrency.utils.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class CacheRecord(Base):
    """One persisted key/value pair."""
    __tablename__ = "kv_cache"

    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqlStore(KeyValueStore):
    """Key-value store on a SQLAlchemy engine (SQLite by default)."""

    def __init__(self, path: str = "data/geocurrency_cache.db", url: Optional[str] = None, echo: bool = False):
        if url is None:
            if path != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            url = f"sqlite:///{path}"
        self.engine = create_engine(url, connect_args={"check_same_thread": False}, echo=echo)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Cache store ready: {url}")

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, key: str) -> Optional[str]:
        try:
            with self._session() as db:
                record = db.get(CacheRecord, key)
                if record is None:
                    return None
                if record.expires_at is not None and _utcnow() >= record.expires_at:
                    db.delete(record)
                    return None
                return record.value
        except Exception as e:
            raise CacheError(f"Failed to read cache key {key}: {e}") from e

    def set(self, key: str, value: str, ttl_seconds: Optional[float] = None) -> None:
        now = _utcnow()
        expires_at = now + timedelta(seconds=ttl_seconds) if ttl_seconds else None
        try:
            with self._session() as db:
                db.merge(CacheRecord(key=key, value=value, updated_at=now, expires_at=expires_at))
        except Exception as e:
            raise CacheError(f"Failed to write cache key {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with self._session() as db:
                db.execute(delete(CacheRecord).where(CacheRecord.key == key))
        except Exception as e:
            raise CacheError(f"Failed to delete cache key {key}: {e}") from e

    def clear(self) -> None:
        try:
            with self._session() as db:
                db.execute(delete(CacheRecord))
        except Exception as e:
            raise CacheError(f"Failed to clear cache: {e}") from e

    def keys(self) -> list:
        with self._session() as db:
            return list(db.scalars(select(CacheRecord.key)))

    def close(self) -> None:
        self.engine.dispose()
