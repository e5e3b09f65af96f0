# FlagDeck/flagdeck/repositories/db.py
"""Database connection utilities for FlagDeck.

This module exposes a small helper to obtain PostgreSQL connections
using psycopg with dict-style rows, and the id parser shared by the
PostgreSQL repositories.
"""


from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional
from uuid import UUID

import psycopg
from psycopg.rows import dict_row

from flagdeck.errors.exceptions import StorageError


@contextmanager
def get_connection(database_url: str) -> Iterator[psycopg.Connection]:
    """Yield a psycopg connection configured with dict-style rows.

    The connection uses `dict_row` as row factory so that queries
    return dictionaries instead of tuples. The block runs in a transaction
    that is committed on success and rolled back on error; the connection
    is always closed.

    Args:
        database_url: PostgreSQL connection string.

    Yields:
        psycopg.Connection: An open database connection.

    Raises:
        StorageError: If the database cannot be reached.
    """
    try:
        conn = psycopg.connect(database_url, row_factory=dict_row)
    except psycopg.OperationalError as exc:
        raise StorageError("Database connection failed.") from exc

    with conn:
        yield conn


def as_uuid(value: str) -> Optional[UUID]:
    """Parse an id path parameter; ``None`` when it is not a valid UUID."""
    try:
        return UUID(value)
    except (TypeError, ValueError):
        return None
