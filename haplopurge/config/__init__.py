"""
HaploPurge v0.1.0

Configuration management for HaploPurge.

Author: HaploPurge Development Team
License: MIT
"""

from .schema import (
    DEFAULT_CONFIG,
    READ_TYPE_PRESETS,
    load_config,
    save_config_template,
    validate_config,
)
from .parser import ConfigParser

__all__ = [
    "DEFAULT_CONFIG",
    "READ_TYPE_PRESETS",
    "ConfigParser",
    "load_config",
    "save_config_template",
    "validate_config",
]
