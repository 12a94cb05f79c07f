#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HaploPurge v0.1.0

Package initialization and version metadata.

Author: HaploPurge Development Team
License: MIT
"""

from .version import __version__
from .errors import (
    HaploPurgeError,
    ConfigValidationError,
    InputFileError,
    ToolNotFoundError,
    StepFailedError,
    EmptyOutputError,
)

__all__ = [
    "__version__",
    "HaploPurgeError",
    "ConfigValidationError",
    "InputFileError",
    "ToolNotFoundError",
    "StepFailedError",
    "EmptyOutputError",
]

# HaploPurge v0.1.0
# Any usage is subject to this software's license.
