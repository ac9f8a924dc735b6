"""
Observability for sealrotate.

Provides structured logging for rotation runs.
"""

from sealrotate.observability.logging import (
    ROOT_LOGGER_NAME,
    HumanReadableFormatter,
    RotationLogger,
    StructuredFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    "ROOT_LOGGER_NAME",
    "HumanReadableFormatter",
    "RotationLogger",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
]
