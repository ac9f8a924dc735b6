"""
Key rotation for sealrotate.

- selector: Active and latest key selection
- sanitizer: Removal of cluster-assigned metadata
- controller: The rotation state machine
"""

from sealrotate.rotation.controller import (
    RotationContext,
    RotationController,
    build_context,
)
from sealrotate.rotation.sanitizer import sanitize
from sealrotate.rotation.selector import (
    PREFIX_MATCH_FIRST,
    PREFIX_MATCH_SCAN,
    partition_for_demotion,
    select_active_by_prefix,
    select_latest_by_creation_time,
    sort_by_creation_time,
)

__all__ = [
    "RotationContext",
    "RotationController",
    "build_context",
    "sanitize",
    "PREFIX_MATCH_FIRST",
    "PREFIX_MATCH_SCAN",
    "partition_for_demotion",
    "select_active_by_prefix",
    "select_latest_by_creation_time",
    "sort_by_creation_time",
]
