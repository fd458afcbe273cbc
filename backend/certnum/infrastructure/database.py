"""Database Session Manager — async connection pool with automatic rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - All SQLAlchemy exceptions mapped to the core error hierarchy (core/errors.py)
    - A UNIQUE violation on certificate_number maps to InvariantViolationError,
      a lock_timeout expiry (SQLSTATE 55P03) to StorageTimeoutError,
      every other driver failure to StorageUnavailableError

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
    - expire_on_commit=False: prevents lazy-load issues in async context
    - ensure_sequence seeds the sequence row during provisioning, so the request
      path never creates storage shape on the fly
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import select, text

from certnum.core.errors import (
    CertnumError, InvariantViolationError, StorageTimeoutError,
    StorageUnavailableError,
)
from certnum.models.certificate_sequence import CertificateSequence

logger = logging.getLogger(__name__)

_NUMBER_COLUMN = "certificate_number"
_LOCK_NOT_AVAILABLE = "55P03"


def _is_lock_timeout(error: DBAPIError) -> bool:
    """PostgreSQL lock_not_available, raised when lock_timeout expires."""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code == _LOCK_NOT_AVAILABLE


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        kwargs: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "DatabaseSessionManager":
        """Wrap an existing engine (test fixtures, scripts)."""
        manager = cls.__new__(cls)
        manager.engine = engine
        manager._session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False,
        )
        return manager

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except CertnumError:
            await session.rollback()
            raise
        except IntegrityError as e:
            await session.rollback()
            if _NUMBER_COLUMN in str(e.orig):
                logger.critical(f"DB rejected duplicate certificate number: {e}")
                raise InvariantViolationError(
                    "Certificate number already held by another record",
                ) from e
            logger.error(f"DB integrity error: {e}")
            raise StorageUnavailableError(
                "Integrity constraint violated", "commit",
            ) from e
        except DBAPIError as e:
            await session.rollback()
            if _is_lock_timeout(e):
                logger.warning(f"DB lock wait timed out: {e}")
                raise StorageTimeoutError("lock") from e
            if isinstance(e, OperationalError):
                logger.error(f"DB operational error: {e}")
                raise StorageUnavailableError(
                    "Connection or operational error", "execute",
                ) from e
            logger.error(f"DB driver error: {e}")
            raise StorageUnavailableError("Database driver error", "query") from e
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise StorageUnavailableError(
                "Database operation failed", "unknown",
            ) from e
        except asyncio.TimeoutError as e:
            await session.rollback()
            logger.error("DB call timed out")
            raise StorageTimeoutError("execute") from e
        finally:
            await session.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Session inside one transaction: commit on clean exit, rollback otherwise."""
        async with self.session() as session:
            async with session.begin():
                yield session

    async def ensure_sequence(self, key: str) -> None:
        """Provision the sequence row for key if it does not exist yet."""
        async with self.transaction() as db:
            result = await db.execute(
                select(CertificateSequence).where(CertificateSequence.key == key),
            )
            if result.scalar_one_or_none() is None:
                db.add(CertificateSequence(
                    key=key, revision=0, updated_at=datetime.now(timezone.utc),
                ))
                logger.info(
                    f"Provisioned certificate sequence '{key}'",
                    extra={"sequence_key": key},
                )

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager
