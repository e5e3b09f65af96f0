# FlagDeck/flagdeck/models/flag.py
"""Feature flag, targeting rule and evaluation data models.

These dataclasses are the internal representation shared by repositories,
services and blueprints. Wire serialization lives in the blueprints.
"""


from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class TargetingRule:
    """A condition, scoped to one environment, that can force a flag on.

    ``type`` is ``"user"`` or ``"group"``; ``operator`` is one of the
    operators understood by :mod:`flagdeck.services.targeting_service`.
    Unknown values are stored as-is and simply never match.
    """
    id: str
    type: str
    attribute: str
    operator: str
    values: Tuple[str, ...]
    environment: str
    created_at: datetime


@dataclass
class FeatureFlag:
    """A named boolean toggle with an independent default per environment.

    ``rules`` is ordered: earlier rules are evaluated first.
    """
    id: str
    key: str
    name: str
    description: str
    state: Dict[str, bool]
    tags: List[str]
    rules: List[TargetingRule]
    created_at: datetime
    updated_at: datetime

    def rules_for(self, environment: str) -> List[TargetingRule]:
        """Return the rules scoped to ``environment``, in stored order."""
        return [r for r in self.rules if r.environment == environment]

    def references(self, environment: str) -> bool:
        """Whether the flag's state or any rule points at ``environment``."""
        if environment in self.state:
            return True
        return any(r.environment == environment for r in self.rules)


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Drop duplicate tags while keeping first-seen order."""
    return list(dict.fromkeys(tags or ()))


@dataclass(frozen=True)
class EvaluationContext:
    """Caller-supplied user attributes a targeting rule is matched against."""
    id: str = ""
    email: str = ""
    groups: Tuple[str, ...] = ()
    country: str = ""

    @classmethod
    def from_dict(cls, user: Optional[Mapping[str, Any]]) -> "EvaluationContext":
        """Build a context from the ``user`` object of an evaluate request.

        Missing or ``null`` fields become empty values.
        """
        user = user or {}
        return cls(
            id=user.get("id") or "",
            email=user.get("email") or "",
            groups=tuple(user.get("groups") or ()),
            country=user.get("country") or "",
        )


@dataclass(frozen=True)
class EvaluationResult:
    """Effective per-flag booleans for one environment and context."""
    environment: str
    flags: Dict[str, bool]
    evaluated_at: datetime


@dataclass(frozen=True)
class SdkConfiguration:
    """Raw per-flag defaults for one environment (no rule evaluation)."""
    environment: str
    flags: Dict[str, bool]
    updated_at: datetime
