"""
Key secret selection for sealrotate.

Picks the active key secret by name prefix, the latest key secret by
creation time, and the set of secrets to demote.
"""

from __future__ import annotations

from sealrotate.errors import NotFoundError
from sealrotate.models import SealedKeySecret

# Only inspect the first returned secret
PREFIX_MATCH_FIRST = "first"
# Scan every returned secret for the first prefix match
PREFIX_MATCH_SCAN = "scan"

PREFIX_MATCH_MODES = (PREFIX_MATCH_FIRST, PREFIX_MATCH_SCAN)


def select_active_by_prefix(
    secrets: list[SealedKeySecret],
    prefix: str,
    mode: str = PREFIX_MATCH_SCAN,
) -> SealedKeySecret:
    """
    Select the active key secret by name prefix.

    Secrets are examined in the order the cluster returned them. In "first"
    mode only the first secret is considered, so a match further down the
    list is reported as not found. In "scan" mode the first match anywhere
    in the list wins.

    Args:
        secrets: Secrets in return order
        prefix: Name prefix of the active key secret
        mode: "first" or "scan"

    Returns:
        The first secret whose name starts with prefix

    Raises:
        NotFoundError: If no secret matches
        ValueError: If mode is unknown
    """
    if mode not in PREFIX_MATCH_MODES:
        raise ValueError(
            f"Unknown prefix match mode: {mode}. "
            f"Supported modes: {', '.join(PREFIX_MATCH_MODES)}"
        )

    if not secrets:
        raise NotFoundError(
            f"No secret with prefix {prefix} was found: no candidate secrets",
            resource=prefix,
        )

    candidates = secrets[:1] if mode == PREFIX_MATCH_FIRST else secrets
    for secret in candidates:
        if secret.name.startswith(prefix):
            return secret

    raise NotFoundError(f"No secret with prefix {prefix} was found", resource=prefix)


def creation_order_key(secret: SealedKeySecret) -> tuple[int, str]:
    """Sort key: creation time in seconds, then name to break ties."""
    return (secret.creation_seconds, secret.name)


def sort_by_creation_time(secrets: list[SealedKeySecret]) -> list[SealedKeySecret]:
    """Return secrets sorted oldest first."""
    return sorted(secrets, key=creation_order_key)


def select_latest_by_creation_time(secrets: list[SealedKeySecret]) -> SealedKeySecret:
    """
    Select the most recently created key secret.

    Timestamps are compared at seconds resolution. Secrets created in the
    same second are ordered by name, so the lexically greatest name wins.

    Args:
        secrets: Secrets in any order

    Returns:
        The latest secret

    Raises:
        NotFoundError: If secrets is empty
    """
    if not secrets:
        raise NotFoundError("Cannot determine latest key secret: no secrets given")

    return sort_by_creation_time(secrets)[-1]


def partition_for_demotion(
    secrets: list[SealedKeySecret],
    latest: SealedKeySecret,
) -> list[SealedKeySecret]:
    """
    Return every secret other than latest, in original order.

    Identity is by name.
    """
    return [secret for secret in secrets if secret.name != latest.name]
