"""
Dialect-specific INSERT constructs for atomic upserts.
"""

from sqlalchemy.dialects import postgresql, sqlite

from common.core.exceptions import StorageError

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def insert_for(session):
    """Get the INSERT .. ON CONFLICT construct for the session's database."""
    dialect = session.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
        raise StorageError(f"Atomic upsert not supported on {dialect}")
    return insert
