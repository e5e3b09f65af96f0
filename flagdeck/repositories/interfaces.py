# FlagDeck/flagdeck/repositories/interfaces.py
"""Storage contracts shared by the in-memory and PostgreSQL backends.

Services and the evaluation engine depend only on these protocols. Every
backend enforces the same store invariants and raises the same
:mod:`flagdeck.errors.exceptions`.
"""


from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from flagdeck.models.environment import Environment
from flagdeck.models.exposure import Exposure
from flagdeck.models.flag import FeatureFlag, TargetingRule


class EnvironmentRepository(Protocol):
    def list_all(self) -> List[Environment]: ...

    def get_by_id(self, env_id: str) -> Optional[Environment]: ...

    def get_by_key(self, key: str) -> Optional[Environment]: ...

    def exists(self, key: str) -> bool: ...

    def create(self, key: str, name: str, description: str) -> Environment:
        """Raises ``DuplicateKey`` if ``key`` is taken."""
        ...

    def delete(self, env_id: str) -> None:
        """Raises ``NotFound`` if ``env_id`` is unknown."""
        ...


class FlagRepository(Protocol):
    def list_all(self) -> List[FeatureFlag]: ...

    def list_page(
        self,
        environment: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[FeatureFlag]: ...

    def count(self, environment: Optional[str] = None) -> int: ...

    def get_by_id(self, flag_id: str) -> Optional[FeatureFlag]: ...

    def get_by_key(self, key: str) -> Optional[FeatureFlag]: ...

    def list_referencing(self, environment: str) -> List[FeatureFlag]: ...

    def create(
        self,
        key: str,
        name: str,
        description: str = "",
        state: Optional[Dict[str, bool]] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> FeatureFlag:
        """Raises ``DuplicateKey`` or ``InvalidEnvironment``."""
        ...

    def update_metadata(
        self,
        flag_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> FeatureFlag:
        """Raises ``NotFound``."""
        ...

    def update_state(
        self, flag_id: str, environment: str, enabled: bool
    ) -> FeatureFlag:
        """Raises ``NotFound`` or ``InvalidEnvironment``."""
        ...

    def add_rule(
        self,
        flag_id: str,
        rule_type: str,
        attribute: str,
        operator: str,
        values: Sequence[str],
        environment: str,
    ) -> TargetingRule:
        """Raises ``NotFound`` or ``InvalidEnvironment``."""
        ...

    def delete_rule(self, flag_id: str, rule_id: str) -> None:
        """Raises ``NotFound`` for an unknown flag or rule."""
        ...

    def delete(self, flag_id: str) -> None:
        """Raises ``NotFound``."""
        ...


class ExposureRepository(Protocol):
    def record(self, exposure: Exposure) -> Exposure: ...

    def list_for_flag(
        self, flag_key: str, environment: str, since: datetime
    ) -> List[Exposure]: ...
