"""
failsafe.database.engine — Database Connection, Async Bridge & Retry
=====================================================================

**Why this file exists:**
FastAPI handlers run on an ``asyncio`` event loop.  SQLAlchemy + psycopg2
is **synchronous** — calling the DB directly from an ``async def`` route
would stall every other request and WebSocket until the query returns.

The bridge pattern:

    1. A request arrives in an ``async def`` route.
    2. The route calls ``await run_db(some_function, engine, arg1)``.
    3. ``run_db`` ships the synchronous function to a **thread pool** via
       ``asyncio.to_thread()``.
    4. The DB work happens on a background thread — the event loop stays free.
    5. The result is awaited back in the route, which can then call the
       content service or build the response.

List-valued columns (badges, reveal opt-ins, encouraged-by, completed-by)
are updated with an optimistic compare-and-swap on each row's
``version`` column.  :func:`run_with_retry` re-runs the whole unit of
work when a concurrent writer wins the race.

Usage::

    from failsafe.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    user = await run_db(run_with_retry, engine, grant_badge, user_id, "courage")
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import Concatenate, ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from failsafe.database.models import Base
from failsafe.errors import ConcurrentUpdateError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

OPTIMISTIC_ATTEMPTS = 3


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine() -> Engine:
    """Build a SQLAlchemy :class:`Engine` from the ``DATABASE_URL`` env var.

    The connection pool is sized for a single-process web app:
    * ``pool_size=5`` — five persistent connections.
    * ``max_overflow=10`` — up to 10 extra connections under load.
    * ``pool_timeout=10`` — fail after 10 s if no connection is available.
    * ``pool_recycle=3600`` — recycle connections after 1 hour.

    Raises
    ------
    RuntimeError
        If ``DATABASE_URL`` is not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid PostgreSQL URL."
        )

    engine = create_engine(
        url,
        echo=False,        # Set True for SQL debugging
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Database engine created → %s", engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine, *, seed: bool = False) -> None:
    """Create all tables defined in :mod:`failsafe.database.models`.

    Safe to call on every startup — ``CREATE TABLE IF NOT EXISTS`` under
    the hood.  With ``seed=True`` an empty database is filled with a
    small sample community so the feed isn't blank on first launch.

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` is retained as a safety net for dev/test
        environments where Alembic may not have run.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")

    if seed:
        from failsafe.database.seed import seed_sample_community

        seed_sample_community(engine)


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.

    Objects stay usable after the block (``expire_on_commit=False``) so
    they can be serialized once the session is gone.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Optimistic retry
# ---------------------------------------------------------------------------
def run_with_retry(
    engine: Engine,
    func: Callable[Concatenate[Session, P], T],
    *args: P.args,
    **kwargs: P.kwargs,
) -> T:
    """Run ``func(session, *args, **kwargs)`` in its own transaction,
    retrying when a versioned row was changed underneath it.

    Raises
    ------
    ConcurrentUpdateError
        After :data:`OPTIMISTIC_ATTEMPTS` lost races.
    """
    for attempt in range(1, OPTIMISTIC_ATTEMPTS + 1):
        try:
            with get_session(engine) as session:
                return func(session, *args, **kwargs)
        except StaleDataError:
            logger.warning(
                "Concurrent update in %s (attempt %d/%d) — retrying",
                getattr(func, "__name__", func), attempt, OPTIMISTIC_ATTEMPTS,
            )
    raise ConcurrentUpdateError(
        f"{getattr(func, '__name__', func)} lost {OPTIMISTIC_ATTEMPTS} update races"
    )


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread.

    Every DB call in a route should go through this wrapper::

        result = await run_db(my_sync_db_function, engine, user_id)

    Under the hood it calls :func:`asyncio.to_thread`, which schedules
    *func* on the default ``ThreadPoolExecutor`` so the event loop is
    never blocked.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
