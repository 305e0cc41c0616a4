"""
Database session context management.

Tracks the session of the enclosing transaction (if any) so that repository
calls made inside `transaction()` share one connection, while one-off calls
acquire and release their own.

Usage:
    # Explicit transaction - counter upsert and plan lookup share one session
    async with transaction():
        tier = await subscription_repo.get_plan_tier(subject_id)
        await counter_repo.upsert_increment(...)

    # Force readonly for entire call chain (dashboards, analytics)
    @readonly
    async def get_usage_totals(subject_id: str):
        ...
"""

from contextvars import ContextVar
from functools import wraps
from typing import Optional, Callable, TypeVar, ParamSpec

from sqlalchemy.ext.asyncio import AsyncSession


# Holds the current write session (if inside a write transaction)
_write_session: ContextVar[Optional[AsyncSession]] = ContextVar(
    "db_write_session", default=None
)

# Holds the current read session (if inside a read transaction)
_read_session: ContextVar[Optional[AsyncSession]] = ContextVar(
    "db_read_session", default=None
)

# Forces all operations in this context to use readonly
_force_readonly: ContextVar[bool] = ContextVar("db_force_readonly", default=False)


def is_readonly_forced() -> bool:
    """Check if current context is forced to readonly."""
    return _force_readonly.get()


def get_current_session(readonly: bool = False) -> Optional[AsyncSession]:
    """
    Get the current session from context, if any.

    Args:
        readonly: If True, get read session. If False, get write session.
                  If readonly is forced via decorator, always returns read session.
    """
    if readonly or is_readonly_forced():
        return _read_session.get()
    return _write_session.get()


def set_current_session(session: AsyncSession, readonly: bool = False) -> object:
    """Set session in context and return the reset token."""
    if readonly:
        return _read_session.set(session)
    return _write_session.set(session)


def reset_current_session(token: object, readonly: bool = False) -> None:
    """Reset session context using token from set_current_session."""
    if readonly:
        _read_session.reset(token)
    else:
        _write_session.reset(token)


P = ParamSpec("P")
T = TypeVar("T")


def readonly(func: Callable[P, T]) -> Callable[P, T]:
    """
    Decorator that forces all DB operations in this call chain to use readonly sessions.

    Usage:
        @readonly
        async def get_daily_history(subject_id: str, metric: str, start_key: str):
            # All repo calls here will use read session
            return await counter_repo.get_counters(subject_id, metric, start_key)
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        token = _force_readonly.set(True)
        try:
            return await func(*args, **kwargs)
        finally:
            _force_readonly.reset(token)

    return wrapper
