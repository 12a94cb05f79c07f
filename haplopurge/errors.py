#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HaploPurge v0.1.0

Exception hierarchy for the purging pipeline.

Author: HaploPurge Development Team
License: MIT
"""


class HaploPurgeError(Exception):
    """Base class for all pipeline errors."""
    pass


class ConfigValidationError(HaploPurgeError):
    """Raised when configuration loading or validation fails."""
    pass


class InputFileError(HaploPurgeError):
    """Raised when an input file is missing, unreadable or empty."""
    pass


class ToolNotFoundError(HaploPurgeError):
    """Raised when one or more external tools cannot be resolved."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(
            "External tool(s) not found or not executable: "
            + ", ".join(self.missing)
        )


class StepFailedError(HaploPurgeError):
    """
    Raised when a pipeline step exits non-zero.

    Attributes:
        result: The StepResult of the failing step
    """

    def __init__(self, result):
        self.result = result
        failure = result.failure
        message = (
            f"Step '{failure.step}' failed with exit code {failure.exit_code}: "
            f"{failure.command}"
        )
        if failure.stderr_tail:
            message += "\n" + "\n".join(failure.stderr_tail)
        super().__init__(message)


class EmptyOutputError(HaploPurgeError):
    """Raised when a step exits cleanly but a declared output is missing or empty."""

    def __init__(self, step: str, path):
        self.step = step
        self.path = path
        super().__init__(f"Step '{step}' produced no usable output: {path}")

# HaploPurge v0.1.0
# Any usage is subject to this software's license.
