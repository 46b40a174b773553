"""
Storage layer for pastes.

Two interchangeable backends implement the same four operations: a relational
store (SQLAlchemy, PostgreSQL in production) and a JSON file fallback for
environments without a database. The backend is chosen once per process by
get_store().
"""
import json
import logging
import os
import secrets
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from pastedrop.clock import wall_clock_ms
from pastedrop.config import settings
from pastedrop.models import Paste

logger = logging.getLogger(__name__)

metadata = sa.MetaData()

pastes_table = sa.Table(
    "pastes",
    metadata,
    sa.Column("id", sa.String(50), primary_key=True),
    sa.Column("content", sa.Text, nullable=False),
    sa.Column("max_views", sa.Integer, nullable=True),
    sa.Column("views", sa.Integer, nullable=False, default=0, server_default=sa.text("0")),
    sa.Column("created_at", sa.BigInteger, nullable=False),
    sa.Column("expires_at", sa.BigInteger, nullable=True),
)


class PasteStoreError(Exception):
    """Raised when the storage backend cannot complete an operation."""


def new_paste_id() -> str:
    """Short URL-safe identifier used as key and URL path segment."""
    return secrets.token_urlsafe(8)


def _expiry_for(created_at: int, ttl_seconds: Optional[int]) -> Optional[int]:
    if ttl_seconds is None:
        return None
    return created_at + ttl_seconds * 1000


class PasteStore(ABC):
    """Contract shared by every storage backend."""

    @abstractmethod
    def create_paste(
        self,
        content: str,
        ttl_seconds: Optional[int] = None,
        max_views: Optional[int] = None,
    ) -> str:
        """Persist a new paste with views=0 and return its id."""

    @abstractmethod
    def get_paste(self, paste_id: str) -> Optional[Paste]:
        """Return the stored record, or None if there is no such paste."""

    @abstractmethod
    def increment_view(self, paste_id: str) -> None:
        """Atomically add one view; unknown ids are ignored."""

    @abstractmethod
    def health_check(self) -> bool:
        """Report whether the backend is reachable. Never raises."""


class SQLPasteStore(PasteStore):
    """Relational backend on a single `pastes` table."""

    def __init__(self, database_url: str):
        database_url = _normalize_url(database_url)
        logger.info(f"Connecting to database: {database_url[:30]}...")
        self.engine = sa.create_engine(
            database_url,
            pool_pre_ping=True,
            connect_args=_connect_args(database_url),
        )
        self.schema_ready = False
        self._init_schema()

    def _init_schema(self) -> None:
        try:
            metadata.create_all(self.engine, checkfirst=True)
            self.schema_ready = True
            logger.info("✓ pastes table ready")
        except SQLAlchemyError as e:
            # Not fatal: retried before the next operation
            logger.error(f"Failed to initialize pastes table: {type(e).__name__}: {e}")

    def _ensure_schema(self) -> None:
        if not self.schema_ready:
            self._init_schema()

    def create_paste(
        self,
        content: str,
        ttl_seconds: Optional[int] = None,
        max_views: Optional[int] = None,
    ) -> str:
        """
        Save a paste to the database.

        Args:
            content: Text content of the paste
            ttl_seconds: Optional time-to-live in seconds
            max_views: Optional maximum view count

        Returns:
            The new paste id

        Raises:
            PasteStoreError: If the insert fails
        """
        paste_id = new_paste_id()
        now = wall_clock_ms()
        self._ensure_schema()
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    pastes_table.insert().values(
                        id=paste_id,
                        content=content,
                        max_views=max_views,
                        views=0,
                        created_at=now,
                        expires_at=_expiry_for(now, ttl_seconds),
                    )
                )
        except (SQLAlchemyError, OverflowError) as e:
            # sqlite3 raises a bare OverflowError for integers past 64 bits
            logger.error(f"Error saving paste {paste_id}: {e}")
            raise PasteStoreError(f"Failed to save paste {paste_id}") from e

        logger.info(f"Paste {paste_id} saved successfully")
        return paste_id

    def get_paste(self, paste_id: str) -> Optional[Paste]:
        # Expired rows are returned as-is; liveness is decided by the caller's clock
        self._ensure_schema()
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    sa.select(pastes_table).where(pastes_table.c.id == paste_id)
                ).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching paste {paste_id}: {e}")
            raise PasteStoreError(f"Failed to fetch paste {paste_id}") from e

        if row is None:
            logger.warning(f"Paste {paste_id} not found")
            return None
        return Paste.model_validate(dict(row._mapping))

    def increment_view(self, paste_id: str) -> None:
        self._ensure_schema()
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    pastes_table.update()
                    .where(pastes_table.c.id == paste_id)
                    .values(views=pastes_table.c.views + 1)
                )
        except SQLAlchemyError as e:
            logger.error(f"Error incrementing views for {paste_id}: {e}")
            raise PasteStoreError(f"Failed to count view for {paste_id}") from e
        logger.info(f"View count incremented for paste {paste_id}")

    def health_check(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(sa.text("SELECT 1"))
            self._ensure_schema()
            return self.schema_ready
        except Exception as e:
            logger.error(f"Health check failed: {e}")
        return False


class FilePasteStore(PasteStore):
    """
    JSON file fallback, keyed by paste id.

    Unlike the relational backend this one drops rows whose expires_at has
    passed by wall-clock time as soon as they are read, whatever "now" the
    caller is simulating.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()
        try:
            if not self.path.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._write({})
            logger.info(f"✓ Using paste file {self.path}")
        except (OSError, PasteStoreError):
            logger.warning("Paste file could not be created; health checks will fail")

    def _read(self) -> Dict[str, Dict[str, Any]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.error(f"Error reading {self.path}: {e}")
            raise PasteStoreError(f"Cannot read {self.path}") from e

        try:
            return json.loads(raw or "{}")
        except json.JSONDecodeError as e:
            # Refuse to touch it; a write here would drop every stored paste
            logger.error(f"Paste file {self.path} is corrupt: {e}")
            raise PasteStoreError(f"Corrupt paste file {self.path}") from e

    def _write(self, data: Dict[str, Dict[str, Any]]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error writing {self.path}: {e}")
            raise PasteStoreError(f"Cannot write {self.path}") from e

    def create_paste(
        self,
        content: str,
        ttl_seconds: Optional[int] = None,
        max_views: Optional[int] = None,
    ) -> str:
        paste_id = new_paste_id()
        now = wall_clock_ms()
        paste = Paste(
            id=paste_id,
            content=content,
            max_views=max_views,
            views=0,
            created_at=now,
            expires_at=_expiry_for(now, ttl_seconds),
        )

        with self._lock:
            data = self._read()
            data[paste_id] = paste.model_dump(exclude_none=True)
            self._write(data)

        logger.info(f"Paste {paste_id} saved successfully")
        return paste_id

    def get_paste(self, paste_id: str) -> Optional[Paste]:
        with self._lock:
            data = self._read()
            row = data.get(paste_id)
            if row is None:
                logger.warning(f"Paste {paste_id} not found")
                return None

            paste = Paste.model_validate(row)
            if paste.expires_at is not None and wall_clock_ms() > paste.expires_at:
                del data[paste_id]
                self._write(data)
                logger.warning(f"Paste {paste_id} has expired, deleted")
                return None

        return paste

    def increment_view(self, paste_id: str) -> None:
        with self._lock:
            data = self._read()
            row = data.get(paste_id)
            if row is None:
                return
            row["views"] = int(row.get("views", 0)) + 1
            self._write(data)
        logger.info(f"View count incremented for paste {paste_id}")

    def health_check(self) -> bool:
        try:
            with self._lock:
                self._read()
            return self.path.exists()
        except PasteStoreError as e:
            logger.error(f"Health check failed: {e}")
        return False


def _normalize_url(database_url: str) -> str:
    # Hosted Postgres providers hand out postgres:// which SQLAlchemy rejects
    if database_url.startswith("postgres://"):
        return "postgresql://" + database_url[len("postgres://"):]
    return database_url


def _connect_args(database_url: str) -> Dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    is_local = "localhost" in database_url or "127.0.0.1" in database_url
    if database_url.startswith("postgresql") and not is_local and "sslmode" not in database_url:
        return {"sslmode": "require"}
    return {}


def build_store() -> PasteStore:
    """Create the backend selected by configuration."""
    if settings.DATABASE_URL:
        return SQLPasteStore(settings.DATABASE_URL)
    logger.warning("DATABASE_URL not set, using file storage fallback")
    return FilePasteStore(settings.PASTES_FILE)


# Global store instance, created on first use
_store: Optional[PasteStore] = None


def get_store() -> PasteStore:
    """Return the process-wide store, building it on the first call."""
    global _store
    if _store is None:
        _store = build_store()
    return _store
