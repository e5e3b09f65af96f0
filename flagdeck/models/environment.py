# FlagDeck/flagdeck/models/environment.py
"""Environment domain model."""


from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Environment:
    """A named deployment context (``dev``, ``staging``, ``production``...).

    Flags and targeting rules reference environments by ``key``, never by
    ``id``. Environments are never mutated after creation.
    """
    id: str
    key: str
    name: str
    description: str
    created_at: datetime
