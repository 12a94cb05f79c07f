"""
Utilities module for HaploPurge.

This module provides the core of the purging pipeline:
- Pipeline orchestration (two refinement passes plus haplotig merge)
- Step descriptors and process execution
- External tool resolution
- Checkpoint management
"""

from .tools import TOOL_NAMES, ToolPaths, find_tool, check_tools, resolve_tools
from .steps import PipelineStep, StepResult, StepFailure, StepRunner
from .checkpoints import CheckpointManager
from .pipeline import PipelineOrchestrator, PassResult, PipelineResult

__all__ = [
    # Tools
    "TOOL_NAMES",
    "ToolPaths",
    "find_tool",
    "check_tools",
    "resolve_tools",
    # Steps
    "PipelineStep",
    "StepResult",
    "StepFailure",
    "StepRunner",
    # Checkpoints
    "CheckpointManager",
    # Pipeline
    "PipelineOrchestrator",
    "PassResult",
    "PipelineResult",
]
