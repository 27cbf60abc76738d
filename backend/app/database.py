"""
Voyage Teams Backend: Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, FastAPI session dependency,
       startup readiness wait, and unique-constraint translation.
How:   One AsyncSession per request; it is the storage handle every service
       call receives as `db`. Write handlers commit before returning, so a
       failed commit becomes an error response; the dependency rolls back
       on any error, so each request is one transaction.
Who:   Used by route handlers via Depends(get_db_session) and by services.

Transaction Model:
    All cross-request coordination is pushed onto the database:
    - unique constraints reject duplicate votes and duplicate proposals
    - row locks on team_tech_stack_items serialise the zero-vote cascade
      against concurrent vote inserts for the same item
    No in-process locks are held anywhere in the application.
"""

import logging
from contextlib import contextmanager
from typing import Any, AsyncGenerator, Dict, Iterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import ConflictError

logger = logging.getLogger(__name__)


# ── Engine Configuration ──────────────────────────────────────────────────
def _engine_options() -> Dict[str, Any]:
    """
    Build keyword arguments for create_async_engine from settings.

    SQLite (tests, local experiments) does not use a queue pool, so pool
    sizing is only passed for server databases.
    """
    options: Dict[str, Any] = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
        )
    if settings.db_isolation_level:
        options["isolation_level"] = settings.db_isolation_level
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

# expire_on_commit=False: response models are built from ORM objects after
# the handler commits, outside any lazy-load context
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""

    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler, which passes it to a service
        3. The handler commits before it returns. Exit code of a yield
           dependency may run after the response is sent, so a commit here
           could fail after the client already saw a 2xx
        4. On error (including a failed commit): rolls back, so no partial
           selection update, no item without its first vote, no
           half-applied cascade
        5. Always: closes the session (returns connection to pool); an
           uncommitted read-only transaction simply ends
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Constraint Translation ────────────────────────────────────────────────
# SQLSTATE for unique_violation on PostgreSQL (asyncpg exposes it as both
# `sqlstate` and `pgcode` on the adapted DBAPI error)
UNIQUE_VIOLATION_SQLSTATE = "23505"
SQLITE_UNIQUE_MESSAGE = "UNIQUE constraint failed"


def is_unique_violation(exc: IntegrityError) -> bool:
    """
    Decide whether an IntegrityError was raised by a unique constraint.

    This is the only place that looks at driver-specific error details.
    Foreign-key, not-null and check violations return False.
    """
    orig = getattr(exc, "orig", None)
    if orig is None:
        return False
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code == UNIQUE_VIOLATION_SQLSTATE
    return SQLITE_UNIQUE_MESSAGE in str(orig)


@contextmanager
def unique_violation_as_conflict(
    message: str,
    context: Optional[Dict[str, Any]] = None,
) -> Iterator[None]:
    """
    Wrap a constrained write and turn a unique violation into ConflictError.

    Usage:
        with unique_violation_as_conflict("Member already voted"):
            await db.flush()

    Any other IntegrityError propagates unchanged. The session is left in its
    failed state; the request dependency rolls it back.
    """
    try:
        yield
    except IntegrityError as exc:
        if not is_unique_violation(exc):
            raise
        logger.warning("Unique constraint rejected write: %s", message)
        raise ConflictError(message=message, context=context) from exc


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def ping_database() -> None:
    """Run a trivial query; raises if the database cannot be reached."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def wait_for_database(
    max_attempts: Optional[int] = None,
    min_wait: Optional[float] = None,
    max_wait: Optional[float] = None,
) -> None:
    """
    What:  Block startup until the database answers, with backoff.
    When:  Called from the application lifespan before serving traffic.
    How:   Tenacity retries `ping_database` with exponential backoff and
           jitter; the last error is re-raised when attempts run out.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts or settings.db_connect_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.db_connect_min_wait if min_wait is None else min_wait,
            max=settings.db_connect_max_wait if max_wait is None else max_wait,
        ),
        retry=retry_if_exception_type((OSError, SQLAlchemyError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            await ping_database()


async def dispose_engine() -> None:
    """Close all pooled connections; called during application shutdown."""
    await engine.dispose()
