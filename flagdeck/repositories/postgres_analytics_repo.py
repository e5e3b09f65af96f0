# FlagDeck/flagdeck/repositories/postgres_analytics_repo.py
"""PostgreSQL-backed exposure log for FlagDeck."""


from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import uuid4

from psycopg import DatabaseError

from flagdeck.errors.exceptions import StorageError
from flagdeck.models.exposure import Exposure

from .db import get_connection


def _row_to_exposure(row: dict) -> Exposure:
    return Exposure(
        id=str(row["id"]),
        flag_key=row["flag_key"],
        environment=row["environment"],
        user_id=row["user_id"],
        timestamp=row["occurred_at"],
        client_id=row["client_id"],
    )


class PostgresExposureRepository:
    """Exposure events stored in the ``exposures`` table."""

    def __init__(self, database_url: str) -> None:
        self._database_url = database_url

    def record(self, exposure: Exposure) -> Exposure:
        """Insert one exposure event.

        Raises:
            StorageError: If the database operation fails.
        """
        sql = """
            INSERT INTO exposures (
                id,
                flag_key,
                environment,
                user_id,
                occurred_at,
                client_id
            )
            VALUES (
                %(id)s,
                %(flag_key)s,
                %(environment)s,
                %(user_id)s,
                %(occurred_at)s,
                %(client_id)s
            )
            RETURNING *;
        """
        params = {
            "id": uuid4(),
            "flag_key": exposure.flag_key,
            "environment": exposure.environment,
            "user_id": exposure.user_id,
            "occurred_at": exposure.timestamp,
            "client_id": exposure.client_id,
        }

        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    return _row_to_exposure(cur.fetchone())
        except DatabaseError as exc:
            raise StorageError("Failed to record exposure.") from exc

    def list_for_flag(
        self, flag_key: str, environment: str, since: datetime
    ) -> List[Exposure]:
        sql = """
            SELECT *
            FROM exposures
            WHERE flag_key = %(flag_key)s
              AND environment = %(environment)s
              AND occurred_at >= %(since)s
            ORDER BY occurred_at;
        """
        with get_connection(self._database_url) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    sql,
                    {
                        "flag_key": flag_key,
                        "environment": environment,
                        "since": since,
                    },
                )
                return [_row_to_exposure(r) for r in cur.fetchall()]
