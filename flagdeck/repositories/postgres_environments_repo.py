# FlagDeck/flagdeck/repositories/postgres_environments_repo.py
"""PostgreSQL-backed environment registry for FlagDeck."""


from __future__ import annotations

from typing import List, Optional
from uuid import uuid4

from psycopg import DatabaseError
from psycopg.errors import UniqueViolation

from flagdeck.errors.exceptions import DuplicateKey, NotFound, StorageError
from flagdeck.models.environment import Environment

from .db import as_uuid, get_connection


def _row_to_environment(row: dict) -> Environment:
    """Convert a row from the ``environments`` table into an Environment."""
    return Environment(
        id=str(row["id"]),
        key=row["key"],
        name=row["name"],
        description=row["description"],
        created_at=row["created_at"],
    )


class PostgresEnvironmentRepository:
    """Environment registry stored in the ``environments`` table."""

    def __init__(self, database_url: str) -> None:
        self._database_url = database_url

    def list_all(self) -> List[Environment]:
        sql = "SELECT * FROM environments ORDER BY created_at, key;"
        with get_connection(self._database_url) as conn:
            with conn.cursor() as cur:
                cur.execute(sql)
                return [_row_to_environment(r) for r in cur.fetchall()]

    def get_by_id(self, env_id: str) -> Optional[Environment]:
        env_uuid = as_uuid(env_id)
        if env_uuid is None:
            return None

        sql = "SELECT * FROM environments WHERE id = %(id)s;"
        with get_connection(self._database_url) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, {"id": env_uuid})
                row = cur.fetchone()
                return _row_to_environment(row) if row else None

    def get_by_key(self, key: str) -> Optional[Environment]:
        sql = "SELECT * FROM environments WHERE key = %(key)s;"
        with get_connection(self._database_url) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, {"key": key})
                row = cur.fetchone()
                return _row_to_environment(row) if row else None

    def exists(self, key: str) -> bool:
        return bool(key) and self.get_by_key(key) is not None

    def create(self, key: str, name: str, description: str = "") -> Environment:
        """Insert a new environment.

        Raises:
            DuplicateKey: If ``key`` is already taken.
            StorageError: If the database operation fails.
        """
        sql = """
            INSERT INTO environments (id, key, name, description)
            VALUES (%(id)s, %(key)s, %(name)s, %(description)s)
            RETURNING *;
        """
        params = {
            "id": uuid4(),
            "key": key,
            "name": name,
            "description": description,
        }

        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    return _row_to_environment(cur.fetchone())
        except UniqueViolation as exc:
            raise DuplicateKey("Environment key must be unique") from exc
        except DatabaseError as exc:
            raise StorageError("Failed to create environment.") from exc

    def delete(self, env_id: str) -> None:
        env_uuid = as_uuid(env_id)
        if env_uuid is None:
            raise NotFound("Environment not found")

        sql = "DELETE FROM environments WHERE id = %(id)s;"
        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, {"id": env_uuid})
                    deleted = cur.rowcount
        except DatabaseError as exc:
            raise StorageError("Failed to delete environment.") from exc

        if not deleted:
            raise NotFound("Environment not found")
