# FlagDeck/flagdeck/services/flag_service.py
"""Flag evaluation service for FlagDeck.

Resolves the effective boolean of every flag for one environment and one
evaluation context, by combining the flag's per-environment default with its
environment-scoped targeting rules.

Rules only ever turn a flag ON: the first matching rule forces ``True`` and
stops evaluation for that flag; a flag whose default is already ``True``
stays ``True``.
"""


from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable

from flagdeck.errors.exceptions import InvalidEnvironment
from flagdeck.logging_config import get_logger
from flagdeck.models.flag import (
    EvaluationContext,
    EvaluationResult,
    FeatureFlag,
    SdkConfiguration,
)
from flagdeck.repositories.interfaces import EnvironmentRepository, FlagRepository
from flagdeck.services.targeting_service import rule_matches


logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def evaluate_flag(
    flag: FeatureFlag, environment: str, ctx: EvaluationContext
) -> bool:
    """Pure evaluation of a single flag in ``environment``.

    The caller must ensure ``environment`` is present in ``flag.state``.

    Args:
        flag: The flag to evaluate.
        environment: Environment key.
        ctx: Requesting user context.

    Returns:
        bool: The default state, or ``True`` if any rule scoped to
        ``environment`` matches ``ctx``.
    """
    if flag.state[environment]:
        return True

    for rule in flag.rules_for(environment):
        if rule_matches(rule, ctx):
            return True

    return False


def _defaults_for(
    flags: Iterable[FeatureFlag], environment: str
) -> Dict[str, FeatureFlag]:
    """Keep only flags that define a state for ``environment``."""
    return {f.key: f for f in flags if environment in f.state}


class FlagEvaluationEngine:
    """Computes per-environment flag maps for SDK clients.

    The engine keeps no state of its own; it reads the environment registry
    and the flag store on every call.
    """

    def __init__(
        self,
        environments: EnvironmentRepository,
        flags: FlagRepository,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._environments = environments
        self._flags = flags
        self._clock = clock

    def _require_environment(self, environment: str) -> None:
        if not environment or not self._environments.exists(environment):
            raise InvalidEnvironment(environment)

    def evaluate(
        self, environment: str, ctx: EvaluationContext
    ) -> EvaluationResult:
        """Evaluate every flag for ``ctx`` in ``environment``.

        Flags without a state entry for the environment are omitted.

        Raises:
            InvalidEnvironment: If ``environment`` is empty or unknown.
        """
        self._require_environment(environment)

        flags = _defaults_for(self._flags.list_all(), environment)
        result = {
            key: evaluate_flag(flag, environment, ctx)
            for key, flag in flags.items()
        }

        logger.debug(
            "flags_evaluated",
            environment=environment,
            user_id=ctx.id,
            flag_count=len(result),
        )
        return EvaluationResult(
            environment=environment,
            flags=result,
            evaluated_at=self._clock(),
        )

    def get_config(self, environment: str) -> SdkConfiguration:
        """Return the raw default of every flag in ``environment``.

        No targeting rule is evaluated.

        Raises:
            InvalidEnvironment: If ``environment`` is empty or unknown.
        """
        self._require_environment(environment)

        flags = _defaults_for(self._flags.list_all(), environment)
        return SdkConfiguration(
            environment=environment,
            flags={key: flag.state[environment] for key, flag in flags.items()},
            updated_at=self._clock(),
        )
