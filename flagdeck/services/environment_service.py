# FlagDeck/flagdeck/services/environment_service.py
"""Environment lifecycle rules that span the registry and the flag store."""


from __future__ import annotations

from flagdeck.errors.exceptions import EnvironmentInUse, NotFound
from flagdeck.logging_config import get_logger
from flagdeck.repositories.interfaces import EnvironmentRepository, FlagRepository


logger = get_logger(__name__)


def delete_environment(
    environments: EnvironmentRepository,
    flags: FlagRepository,
    env_id: str,
) -> None:
    """Delete an environment that no flag or rule references any more.

    The reference check and the delete are separate store calls with no lock
    spanning both: a flag state or targeting rule added concurrently for the
    same key can still leave a dangling reference after a successful delete.

    Args:
        environments: Environment registry.
        flags: Flag store, queried for references to the environment key.
        env_id: Id of the environment to delete.

    Raises:
        NotFound: If ``env_id`` is unknown.
        EnvironmentInUse: If a flag state entry or targeting rule still
            points at the environment's key.
    """
    env = environments.get_by_id(env_id)
    if env is None:
        raise NotFound("Environment not found")

    referencing = flags.list_referencing(env.key)
    if referencing:
        raise EnvironmentInUse(
            f"Environment '{env.key}' is still referenced by feature flags",
            {"environment": env.key, "flags": sorted(f.key for f in referencing)},
        )

    environments.delete(env_id)
    logger.info("environment_deleted", environment=env.key, id=env_id)
