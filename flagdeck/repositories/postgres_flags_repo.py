# FlagDeck/flagdeck/repositories/postgres_flags_repo.py
"""PostgreSQL-backed feature flag repository for FlagDeck.

Flags live in the ``flags`` table (per-environment state as JSONB, tags as
TEXT[]); their targeting rules live in ``targeting_rules`` and are deleted
with the flag (``ON DELETE CASCADE``). Rule order is the insertion order
recorded in ``targeting_rules.position``.
"""


from __future__ import annotations

from typing import Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from psycopg import Cursor, DatabaseError
from psycopg.errors import UniqueViolation
from psycopg.types.json import Jsonb

from flagdeck.errors.exceptions import (
    DuplicateKey,
    InvalidEnvironment,
    NotFound,
    StorageError,
)
from flagdeck.models.flag import FeatureFlag, TargetingRule, normalize_tags

from .db import as_uuid, get_connection


def _row_to_rule(row: dict) -> TargetingRule:
    """Convert a ``targeting_rules`` row into a TargetingRule."""
    return TargetingRule(
        id=str(row["id"]),
        type=row["type"],
        attribute=row["attribute"],
        operator=row["operator"],
        values=tuple(row["rule_values"] or ()),
        environment=row["environment"],
        created_at=row["created_at"],
    )


def _row_to_flag(row: dict, rules: Sequence[TargetingRule] = ()) -> FeatureFlag:
    """Convert a ``flags`` row (plus its ordered rules) into a FeatureFlag."""
    return FeatureFlag(
        id=str(row["id"]),
        key=row["key"],
        name=row["name"],
        description=row["description"],
        state={k: bool(v) for k, v in (row["state"] or {}).items()},
        tags=list(row["tags"] or []),
        rules=list(rules),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


_SELECT_RULES = """
    SELECT *
    FROM targeting_rules
    WHERE flag_id = ANY(%(flag_ids)s)
    ORDER BY position;
"""


def _with_rules(cur: Cursor, rows: List[dict]) -> List[FeatureFlag]:
    """Attach targeting rules to flag rows using the same cursor."""
    if not rows:
        return []

    cur.execute(_SELECT_RULES, {"flag_ids": [r["id"] for r in rows]})
    rules: Dict[UUID, List[TargetingRule]] = {}
    for rule_row in cur.fetchall():
        rules.setdefault(rule_row["flag_id"], []).append(_row_to_rule(rule_row))

    return [_row_to_flag(r, rules.get(r["id"], ())) for r in rows]


def _require_environments(cur: Cursor, keys: Sequence[str]) -> None:
    """Raise InvalidEnvironment for the first key not in ``environments``."""
    if not keys:
        return

    cur.execute(
        "SELECT key FROM environments WHERE key = ANY(%(keys)s);",
        {"keys": list(keys)},
    )
    known = {row["key"] for row in cur.fetchall()}
    for key in keys:
        if key not in known:
            raise InvalidEnvironment(key)


def _lock_flag(cur: Cursor, flag_uuid: Optional[UUID]) -> dict:
    """Lock a flag row for the current transaction or raise NotFound."""
    if flag_uuid is None:
        raise NotFound("Feature flag not found")

    cur.execute(
        "SELECT * FROM flags WHERE id = %(id)s FOR UPDATE;", {"id": flag_uuid}
    )
    row = cur.fetchone()
    if row is None:
        raise NotFound("Feature flag not found")
    return row


class PostgresFlagRepository:
    """Feature flag store backed by PostgreSQL."""

    def __init__(self, database_url: str) -> None:
        self._database_url = database_url

    def _query_flags(self, sql: str, params: Optional[dict] = None) -> List[FeatureFlag]:
        with get_connection(self._database_url) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params or {})
                return _with_rules(cur, cur.fetchall())

    # ---------- reads ----------

    def list_all(self) -> List[FeatureFlag]:
        return self._query_flags("SELECT * FROM flags ORDER BY key;")

    def list_page(
        self,
        environment: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[FeatureFlag]:
        sql = """
            SELECT *
            FROM flags
            WHERE %(environment)s::text IS NULL OR state ? %(environment)s
            ORDER BY key
            LIMIT %(limit)s
            OFFSET %(offset)s;
        """
        return self._query_flags(
            sql,
            {"environment": environment or None, "limit": limit, "offset": offset},
        )

    def count(self, environment: Optional[str] = None) -> int:
        sql = """
            SELECT COUNT(*) AS total
            FROM flags
            WHERE %(environment)s::text IS NULL OR state ? %(environment)s;
        """
        with get_connection(self._database_url) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, {"environment": environment or None})
                return int(cur.fetchone()["total"])

    def get_by_id(self, flag_id: str) -> Optional[FeatureFlag]:
        flag_uuid = as_uuid(flag_id)
        if flag_uuid is None:
            return None
        flags = self._query_flags(
            "SELECT * FROM flags WHERE id = %(id)s;", {"id": flag_uuid}
        )
        return flags[0] if flags else None

    def get_by_key(self, key: str) -> Optional[FeatureFlag]:
        flags = self._query_flags(
            "SELECT * FROM flags WHERE key = %(key)s;", {"key": key}
        )
        return flags[0] if flags else None

    def list_referencing(self, environment: str) -> List[FeatureFlag]:
        sql = """
            SELECT *
            FROM flags f
            WHERE f.state ? %(environment)s
               OR EXISTS (
                    SELECT 1
                    FROM targeting_rules r
                    WHERE r.flag_id = f.id
                      AND r.environment = %(environment)s
               )
            ORDER BY f.key;
        """
        return self._query_flags(sql, {"environment": environment})

    # ---------- mutations ----------

    def create(
        self,
        key: str,
        name: str,
        description: str = "",
        state: Optional[Dict[str, bool]] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> FeatureFlag:
        """Insert a new flag.

        Raises:
            DuplicateKey: If ``key`` is already taken.
            InvalidEnvironment: If a ``state`` key is not a known environment.
            StorageError: If the database operation fails.
        """
        state = dict(state or {})
        sql = """
            INSERT INTO flags (id, key, name, description, state, tags)
            VALUES (
                %(id)s,
                %(key)s,
                %(name)s,
                %(description)s,
                %(state)s,
                %(tags)s
            )
            RETURNING *;
        """
        params = {
            "id": uuid4(),
            "key": key,
            "name": name,
            "description": description,
            # IMPORTANT: explicit conversion to JSON for PostgreSQL JSONB columns.
            "state": Jsonb(state),
            "tags": normalize_tags(tags),
        }

        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT 1 FROM flags WHERE key = %(key)s;", {"key": key}
                    )
                    if cur.fetchone() is not None:
                        raise DuplicateKey("Flag key must be unique")
                    _require_environments(cur, list(state))
                    cur.execute(sql, params)
                    return _row_to_flag(cur.fetchone())
        except UniqueViolation as exc:
            raise DuplicateKey("Flag key must be unique") from exc
        except DatabaseError as exc:
            raise StorageError("Failed to create flag.") from exc

    def update_metadata(
        self,
        flag_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> FeatureFlag:
        sql = """
            UPDATE flags
            SET name = COALESCE(%(name)s, name),
                description = COALESCE(%(description)s, description),
                tags = COALESCE(%(tags)s, tags),
                updated_at = NOW()
            WHERE id = %(id)s
            RETURNING *;
        """
        params = {
            "id": as_uuid(flag_id),
            "name": name,
            "description": description,
            "tags": normalize_tags(tags) if tags is not None else None,
        }
        return self._mutate_flag(flag_id, sql, params, "update flag")

    def update_state(
        self, flag_id: str, environment: str, enabled: bool
    ) -> FeatureFlag:
        sql = """
            UPDATE flags
            SET state = state || jsonb_build_object(
                    %(environment)s::text, %(enabled)s::boolean
                ),
                updated_at = NOW()
            WHERE id = %(id)s
            RETURNING *;
        """
        params = {
            "id": as_uuid(flag_id),
            "environment": environment,
            "enabled": enabled,
        }
        return self._mutate_flag(
            flag_id, sql, params, "update flag state", environment=environment
        )

    def _mutate_flag(
        self,
        flag_id: str,
        sql: str,
        params: dict,
        action: str,
        environment: Optional[str] = None,
    ) -> FeatureFlag:
        """Run a single-row UPDATE on a locked flag and return it with rules."""
        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    _lock_flag(cur, as_uuid(flag_id))
                    if environment is not None:
                        _require_environments(cur, [environment])
                    cur.execute(sql, params)
                    return _with_rules(cur, [cur.fetchone()])[0]
        except DatabaseError as exc:
            raise StorageError(f"Failed to {action}.") from exc

    def add_rule(
        self,
        flag_id: str,
        rule_type: str,
        attribute: str,
        operator: str,
        values: Sequence[str],
        environment: str,
    ) -> TargetingRule:
        sql = """
            INSERT INTO targeting_rules (
                id,
                flag_id,
                type,
                attribute,
                operator,
                rule_values,
                environment
            )
            VALUES (
                %(id)s,
                %(flag_id)s,
                %(type)s,
                %(attribute)s,
                %(operator)s,
                %(rule_values)s,
                %(environment)s
            )
            RETURNING *;
        """
        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    flag_row = _lock_flag(cur, as_uuid(flag_id))
                    _require_environments(cur, [environment])
                    cur.execute(
                        sql,
                        {
                            "id": uuid4(),
                            "flag_id": flag_row["id"],
                            "type": rule_type,
                            "attribute": attribute,
                            "operator": operator,
                            "rule_values": list(values),
                            "environment": environment,
                        },
                    )
                    rule = _row_to_rule(cur.fetchone())
                    cur.execute(
                        "UPDATE flags SET updated_at = NOW() WHERE id = %(id)s;",
                        {"id": flag_row["id"]},
                    )
                    return rule
        except DatabaseError as exc:
            raise StorageError("Failed to add targeting rule.") from exc

    def delete_rule(self, flag_id: str, rule_id: str) -> None:
        rule_uuid = as_uuid(rule_id)
        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    flag_row = _lock_flag(cur, as_uuid(flag_id))
                    if rule_uuid is None:
                        raise NotFound("Targeting rule not found")
                    cur.execute(
                        """
                        DELETE FROM targeting_rules
                        WHERE id = %(id)s AND flag_id = %(flag_id)s;
                        """,
                        {"id": rule_uuid, "flag_id": flag_row["id"]},
                    )
                    if not cur.rowcount:
                        raise NotFound("Targeting rule not found")
                    cur.execute(
                        "UPDATE flags SET updated_at = NOW() WHERE id = %(id)s;",
                        {"id": flag_row["id"]},
                    )
        except DatabaseError as exc:
            raise StorageError("Failed to delete targeting rule.") from exc

    def delete(self, flag_id: str) -> None:
        """Delete a flag and, through the foreign key, all of its rules."""
        flag_uuid = as_uuid(flag_id)
        if flag_uuid is None:
            raise NotFound("Feature flag not found")

        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "DELETE FROM flags WHERE id = %(id)s;", {"id": flag_uuid}
                    )
                    deleted = cur.rowcount
        except DatabaseError as exc:
            raise StorageError("Failed to delete flag.") from exc

        if not deleted:
            raise NotFound("Feature flag not found")
