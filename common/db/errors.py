"""
Classification of database failures.
"""

import asyncio

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

# Failures that mean "could not talk to the database", as opposed to bugs
UNAVAILABLE_ERRORS = (
    OperationalError,
    InterfaceError,
    ConnectionError,
    OSError,
    asyncio.TimeoutError,
)


def is_unavailable_error(error: Exception) -> bool:
    """True when the error means the database could not be reached."""
    if isinstance(error, UNAVAILABLE_ERRORS):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated
