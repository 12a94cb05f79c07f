"""
External tool resolution for HaploPurge.

The pipeline runs six third-party binaries. Each one is resolved, in order, from
an explicit path in the ``tools`` config section, from ``tools.bin_dir``, and
finally from ``PATH``.
"""

import logging
import os
import shutil
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ToolNotFoundError

logger = logging.getLogger(__name__)


TOOL_NAMES = ('minimap2', 'pbcstat', 'calcuts', 'split_fa', 'purge_dups', 'get_seqs')


@dataclass(frozen=True)
class ToolPaths:
    """Resolved executable path for every external tool."""
    minimap2: str
    pbcstat: str
    calcuts: str
    split_fa: str
    purge_dups: str
    get_seqs: str

    def as_dict(self) -> Dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def find_tool(name: str, explicit: Optional[str] = None,
              bin_dir: Optional[str] = None) -> Optional[str]:
    """
    Locate a single tool.

    Args:
        name: Executable name
        explicit: Explicit path from configuration (wins if set)
        bin_dir: Directory searched before PATH

    Returns:
        Absolute path to the executable, or None if it cannot be found
    """
    if explicit:
        path = Path(explicit).expanduser()
        if _is_executable(path):
            return str(path.resolve())
        found = shutil.which(explicit)
        return str(Path(found).resolve()) if found else None

    if bin_dir:
        candidate = Path(bin_dir).expanduser() / name
        if _is_executable(candidate):
            return str(candidate.resolve())

    found = shutil.which(name)
    return str(Path(found).resolve()) if found else None


def check_tools(tools_config: Optional[Dict[str, Any]] = None) -> Dict[str, Optional[str]]:
    """
    Look up every tool without raising.

    Args:
        tools_config: The ``tools`` configuration section

    Returns:
        Mapping of tool name to resolved path (None when missing)
    """
    tools_config = tools_config or {}
    bin_dir = tools_config.get('bin_dir')

    return {
        name: find_tool(name, tools_config.get(name), bin_dir)
        for name in TOOL_NAMES
    }


def resolve_tools(tools_config: Optional[Dict[str, Any]] = None) -> ToolPaths:
    """
    Resolve every tool, failing if any is missing.

    Raises:
        ToolNotFoundError: Listing all tools that could not be resolved
    """
    found = check_tools(tools_config)
    missing: List[str] = [name for name, path in found.items() if path is None]

    if missing:
        raise ToolNotFoundError(missing)

    for name, path in found.items():
        logger.debug(f"Resolved {name}: {path}")

    return ToolPaths(**found)
