"""
Metadata sanitization for exported key secrets.

The cluster assigns fields that make an exported manifest non-reproducible
and break re-import (resource version, UID, self link, creation time), and
omits the type descriptor on read. sanitize() strips the former
and restores the latter without touching the live object.
"""

from __future__ import annotations

from dataclasses import replace

from sealrotate.models import SECRET_API_VERSION, SECRET_KIND, SealedKeySecret


def sanitize(secret: SealedKeySecret) -> SealedKeySecret:
    """
    Return a copy of secret without cluster-assigned metadata.

    The copy has a zero creation timestamp, empty resource version, self
    link and UID, and the v1/Secret type descriptor. Applying it twice gives
    the same result as applying it once.
    """
    return replace(
        secret,
        creation_timestamp=None,
        resource_version="",
        self_link="",
        uid="",
        api_version=SECRET_API_VERSION,
        kind=SECRET_KIND,
        labels=dict(secret.labels),
        annotations=dict(secret.annotations),
        data=dict(secret.data),
    )
