"""
Configuration management for sealrotate.

Provides the RotationConfig value and its environment loader.
"""

from sealrotate.config.settings import (
    CONFIG_FILE_ENV,
    ENV_VARS,
    RotationConfig,
    load_config_from_env,
)

__all__ = [
    "CONFIG_FILE_ENV",
    "ENV_VARS",
    "RotationConfig",
    "load_config_from_env",
]
