# FlagDeck/flagdeck/repositories/memory_repo.py
"""In-memory repositories for FlagDeck.

These stores keep environments, flags (with their targeting rules) and
exposures in process memory. They are used for local development, the
example data seeder and tests, and are not persisted.

Each store owns its own dictionaries and lock; nothing is module-global.
Readers always receive deep copies so that a concurrent mutation can never be
observed half-applied.
"""


from __future__ import annotations

import copy
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from flagdeck.errors.exceptions import DuplicateKey, InvalidEnvironment, NotFound
from flagdeck.models.environment import Environment
from flagdeck.models.exposure import Exposure
from flagdeck.models.flag import FeatureFlag, TargetingRule, normalize_tags
from flagdeck.repositories.interfaces import EnvironmentRepository


Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryEnvironmentRepository:
    """Environment registry keyed by environment id."""

    def __init__(self, clock: Clock = _utcnow) -> None:
        self._environments: Dict[str, Environment] = {}
        self._lock = threading.RLock()
        self._clock = clock

    def list_all(self) -> List[Environment]:
        with self._lock:
            return list(self._environments.values())

    def get_by_id(self, env_id: str) -> Optional[Environment]:
        with self._lock:
            return self._environments.get(env_id)

    def get_by_key(self, key: str) -> Optional[Environment]:
        with self._lock:
            for env in self._environments.values():
                if env.key == key:
                    return env
            return None

    def exists(self, key: str) -> bool:
        return bool(key) and self.get_by_key(key) is not None

    def create(self, key: str, name: str, description: str = "") -> Environment:
        """Create an environment.

        Raises:
            DuplicateKey: If an environment with ``key`` already exists.
        """
        with self._lock:
            if self.get_by_key(key) is not None:
                raise DuplicateKey("Environment key must be unique")

            env = Environment(
                id=str(uuid4()),
                key=key,
                name=name,
                description=description,
                created_at=self._clock(),
            )
            self._environments[env.id] = env
            return env

    def delete(self, env_id: str) -> None:
        """Delete an environment by id.

        Raises:
            NotFound: If ``env_id`` is unknown.
        """
        with self._lock:
            if env_id not in self._environments:
                raise NotFound("Environment not found")
            del self._environments[env_id]


class InMemoryFlagRepository:
    """Feature flag store; owns each flag's targeting rules.

    Environment references are validated against ``environments`` at the
    moment of each mutation.
    """

    def __init__(
        self, environments: EnvironmentRepository, clock: Clock = _utcnow
    ) -> None:
        self._flags: Dict[str, FeatureFlag] = {}
        self._environments = environments
        self._lock = threading.RLock()
        self._clock = clock

    # ---------- reads ----------

    def list_all(self) -> List[FeatureFlag]:
        with self._lock:
            return copy.deepcopy(list(self._flags.values()))

    def list_page(
        self,
        environment: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[FeatureFlag]:
        with self._lock:
            flags = self._filtered(environment)
            return copy.deepcopy(flags[offset:offset + limit])

    def count(self, environment: Optional[str] = None) -> int:
        with self._lock:
            return len(self._filtered(environment))

    def get_by_id(self, flag_id: str) -> Optional[FeatureFlag]:
        with self._lock:
            flag = self._flags.get(flag_id)
            return copy.deepcopy(flag) if flag is not None else None

    def get_by_key(self, key: str) -> Optional[FeatureFlag]:
        with self._lock:
            flag = self._find_by_key(key)
            return copy.deepcopy(flag) if flag is not None else None

    def list_referencing(self, environment: str) -> List[FeatureFlag]:
        with self._lock:
            return copy.deepcopy(
                [f for f in self._flags.values() if f.references(environment)]
            )

    # ---------- mutations ----------

    def create(
        self,
        key: str,
        name: str,
        description: str = "",
        state: Optional[Dict[str, bool]] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> FeatureFlag:
        """Create a flag with no targeting rules.

        Raises:
            DuplicateKey: If a flag with ``key`` already exists.
            InvalidEnvironment: If a ``state`` key is not a known environment.
        """
        state = dict(state or {})
        with self._lock:
            if self._find_by_key(key) is not None:
                raise DuplicateKey("Flag key must be unique")

            for env_key in state:
                if not self._environments.exists(env_key):
                    raise InvalidEnvironment(env_key)

            now = self._clock()
            flag = FeatureFlag(
                id=str(uuid4()),
                key=key,
                name=name,
                description=description,
                state=state,
                tags=normalize_tags(tags),
                rules=[],
                created_at=now,
                updated_at=now,
            )
            self._flags[flag.id] = flag
            return copy.deepcopy(flag)

    def update_metadata(
        self,
        flag_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> FeatureFlag:
        """Apply the non-``None`` fields and refresh ``updated_at``."""
        with self._lock:
            flag = self._require(flag_id)
            if name is not None:
                flag.name = name
            if description is not None:
                flag.description = description
            if tags is not None:
                flag.tags = normalize_tags(tags)
            flag.updated_at = self._clock()
            return copy.deepcopy(flag)

    def update_state(
        self, flag_id: str, environment: str, enabled: bool
    ) -> FeatureFlag:
        """Set (or add) the default state of a flag in ``environment``."""
        with self._lock:
            flag = self._require(flag_id)
            if not self._environments.exists(environment):
                raise InvalidEnvironment(environment)

            flag.state[environment] = enabled
            flag.updated_at = self._clock()
            return copy.deepcopy(flag)

    def add_rule(
        self,
        flag_id: str,
        rule_type: str,
        attribute: str,
        operator: str,
        values: Sequence[str],
        environment: str,
    ) -> TargetingRule:
        """Append a targeting rule; it is evaluated after existing rules."""
        with self._lock:
            flag = self._require(flag_id)
            if not self._environments.exists(environment):
                raise InvalidEnvironment(environment)

            now = self._clock()
            rule = TargetingRule(
                id=str(uuid4()),
                type=rule_type,
                attribute=attribute,
                operator=operator,
                values=tuple(values),
                environment=environment,
                created_at=now,
            )
            # Swap in a new list so a reader holding the old one is unaffected.
            flag.rules = [*flag.rules, rule]
            flag.updated_at = now
            return rule

    def delete_rule(self, flag_id: str, rule_id: str) -> None:
        with self._lock:
            flag = self._require(flag_id)
            remaining = [r for r in flag.rules if r.id != rule_id]
            if len(remaining) == len(flag.rules):
                raise NotFound("Targeting rule not found")

            flag.rules = remaining
            flag.updated_at = self._clock()

    def delete(self, flag_id: str) -> None:
        with self._lock:
            self._require(flag_id)
            del self._flags[flag_id]

    # ---------- helpers ----------

    def _require(self, flag_id: str) -> FeatureFlag:
        flag = self._flags.get(flag_id)
        if flag is None:
            raise NotFound("Feature flag not found")
        return flag

    def _find_by_key(self, key: str) -> Optional[FeatureFlag]:
        for flag in self._flags.values():
            if flag.key == key:
                return flag
        return None

    def _filtered(self, environment: Optional[str]) -> List[FeatureFlag]:
        flags = list(self._flags.values())
        if environment:
            flags = [f for f in flags if environment in f.state]
        return flags


class InMemoryExposureRepository:
    """Append-only exposure log."""

    def __init__(self) -> None:
        self._exposures: List[Exposure] = []
        self._lock = threading.Lock()

    def record(self, exposure: Exposure) -> Exposure:
        if not exposure.id:
            exposure = replace(exposure, id=str(uuid4()))
        with self._lock:
            self._exposures.append(exposure)
        return exposure

    def list_for_flag(
        self, flag_key: str, environment: str, since: datetime
    ) -> List[Exposure]:
        with self._lock:
            return [
                e
                for e in self._exposures
                if e.flag_key == flag_key
                and e.environment == environment
                and e.timestamp >= since
            ]
