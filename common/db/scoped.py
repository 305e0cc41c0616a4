"""
Operation-scoped database sessions.

Sessions are acquired lazily and released right after each operation so a
webhook handler never holds a connection while it talks to Instagram or an
AI provider.

Usage:
    # Single operation - acquires and releases immediately
    async with get_session() as session:
        result = await session.execute(query)

    # Several operations that must commit together
    async with transaction():
        await subscription_repo.upsert_plan(...)
        await counter_repo.upsert_increment(...)

See also:
    - common/db/context.py: ContextVar bookkeeping and the @readonly decorator
    - common/db/session.py: Engine and session factories
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from common.core.otel_axiom_exporter import get_logger
from common.db.session import AsyncSessionLocal, AsyncSessionLocalReadonly
from common.db.context import (
    get_current_session,
    set_current_session,
    reset_current_session,
    is_readonly_forced,
)

logger = get_logger(__name__)


@asynccontextmanager
async def _owned_session(
    effective_readonly: bool, label: str
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session, commit on success unless readonly, roll back on error."""
    session_factory = (
        AsyncSessionLocalReadonly if effective_readonly else AsyncSessionLocal
    )

    start = time.perf_counter()
    async with session_factory() as session:
        acquire_time = time.perf_counter() - start
        logger.debug(
            f"{label} session acquire: {acquire_time * 1000:.2f}ms, readonly={effective_readonly}"
        )

        try:
            yield session
            if not effective_readonly:
                commit_start = time.perf_counter()
                await session.commit()
                commit_time = time.perf_counter() - commit_start
                logger.debug(f"{label} commit: {commit_time * 1000:.2f}ms")
        except Exception as e:
            logger.error(f"{label} rollback due to: {e}")
            await session.rollback()
            raise


@asynccontextmanager
async def transaction(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Explicit transaction boundary.

    All DB operations inside share one session/connection.
    Commits on success (unless readonly), rolls back on exception.

    Args:
        readonly: If True, uses readonly session and skips commit.
                  Also respects @readonly decorator if applied to caller.
    """
    effective_readonly = readonly or is_readonly_forced()

    async with _owned_session(effective_readonly, "Transaction") as session:
        token = set_current_session(session, readonly=effective_readonly)
        try:
            yield session
        finally:
            reset_current_session(token, readonly=effective_readonly)


@asynccontextmanager
async def get_session(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a session for a single DB operation.

    Reuses the session of an enclosing transaction() block; otherwise
    acquires a new session, auto-commits, and releases immediately.

    Args:
        readonly: If True, uses readonly session (for read replicas).
                  Also respects @readonly decorator if applied to caller.
    """
    effective_readonly = readonly or is_readonly_forced()
    existing = get_current_session(readonly=effective_readonly)

    if existing:
        # Inside a transaction - reuse session, the transaction commits
        logger.debug("Reusing existing transaction session")
        yield existing
    else:
        async with _owned_session(effective_readonly, "Operation") as session:
            yield session
