# FlagDeck/flagdeck/services/auth_service.py

"""
API key authentication for the FlagDeck API.

Callers (SDKs, admin tooling) authenticate with the header::

    Authorization: ApiKey <key>

Accepted keys are configured through the ``API_KEYS`` setting. Only their
SHA-256 digests are kept in memory after startup.
"""

from __future__ import annotations

import hashlib
import hmac
from functools import wraps
from typing import Callable, FrozenSet, Iterable, TypeVar, cast

from flask import current_app, g, request

from flagdeck.errors.exceptions import Unauthorized


F = TypeVar("F", bound=Callable[..., object])

AUTH_SCHEME = "ApiKey"
CONFIG_KEY = "API_KEY_HASHES"

# Length of the digest prefix used as a stable, non-secret client id.
CLIENT_ID_LENGTH = 16


def hash_api_key(api_key: str) -> str:
    """Hash an API key using SHA-256.

    Args:
        api_key: The plaintext API key.

    Returns:
        str: Hex digest of the SHA-256 hash of the API key.
    """
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def hash_api_keys(api_keys: Iterable[str]) -> FrozenSet[str]:
    """Hash every configured API key."""
    return frozenset(hash_api_key(k) for k in api_keys)


def resolve_client_id(header_value: str, key_hashes: FrozenSet[str]) -> str:
    """Validate an ``Authorization`` header value.

    Args:
        header_value: Raw header value, e.g. ``"ApiKey abc123"``.
        key_hashes: Digests of the accepted API keys.

    Returns:
        str: A client id derived from the key digest.

    Raises:
        Unauthorized: If the header is missing, malformed or carries an
            unknown key.
    """
    if not header_value:
        raise Unauthorized("Missing Authorization header")

    scheme, _, api_key = header_value.strip().partition(" ")
    api_key = api_key.strip()
    if scheme != AUTH_SCHEME or not api_key:
        raise Unauthorized("Invalid Authorization header format")

    digest = hash_api_key(api_key)
    if not any(hmac.compare_digest(digest, known) for known in key_hashes):
        raise Unauthorized("Invalid API key")

    return digest[:CLIENT_ID_LENGTH]


def require_api_key(func: F) -> F:
    """Flask view decorator that enforces API key authentication.

    Behaviour:
        - Reads the ``Authorization`` header from the request.
        - Checks it against ``current_app.config["API_KEY_HASHES"]``.
        - If invalid or missing -> raises :class:`Unauthorized` (401).
        - If valid -> stores ``client_id`` on ``flask.g`` and calls the
            wrapped view.

    Usage example:

        @bp.get("/v1/flags")
        @require_api_key
        def list_flags():
            client_id = g.client_id
            ...

    Args:
        func: The view function to wrap.

    Returns:
        F: The wrapped view function.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        key_hashes = current_app.config.get(CONFIG_KEY, frozenset())
        g.client_id = resolve_client_id(
            request.headers.get("Authorization", ""), key_hashes
        )
        return func(*args, **kwargs)

    return cast(F, wrapper)
