"""
HaploPurge v0.1.0

Configuration schema for HaploPurge.

Defines all available configuration parameters with defaults and validation.

Author: HaploPurge Development Team
License: MIT
"""

import copy
from typing import Dict, Any, Optional, List
from pathlib import Path
import yaml

from ..utils.tools import TOOL_NAMES


# Default configuration values
DEFAULT_CONFIG = {
    # ========================================================================
    # Inputs
    # ========================================================================
    'input': {
        'primary': None,  # Primary assembly (e.g. hifiasm p_ctg)
        'alternate': None,  # Alternate assembly (e.g. hifiasm a_ctg)
        'reads': None,  # Long reads, FASTA or FASTQ
    },

    # ========================================================================
    # Hardware Settings
    # ========================================================================
    'hardware': {
        'threads': None,  # Auto-detect from system
    },

    # ========================================================================
    # External Tools
    # ========================================================================
    'tools': {
        'bin_dir': None,  # Searched before PATH
        # Explicit per-tool paths override bin_dir and PATH
        **{name: None for name in TOOL_NAMES},
    },

    # ========================================================================
    # Alignment
    # ========================================================================
    'alignment': {
        'read_preset': 'asm20',  # minimap2 -x for reads vs assembly
        'self_preset': 'asm5',  # minimap2 -x for split assembly self-alignment
        'self_flags': ['-D', '-P'],
    },

    # ========================================================================
    # Pipeline Control
    # ========================================================================
    'pipeline': {
        'resume': False,
        'verify_outputs': True,  # Fail on missing/empty declared outputs
        'check_merge_headers': True,  # Warn on shared names before merge
    },

    # ========================================================================
    # Output
    # ========================================================================
    'output': {
        'work_dir': 'purge_dups_run',

        # Logging
        'logging': {
            'level': 'INFO',  # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
            'log_file': 'haplopurge.log',
        },
    },
}

READ_TYPE_PRESETS = {
    'hifi': 'asm20',
    'clr': 'map-pb',
    'ont': 'map-ont',
}

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Path to YAML config file (None = use defaults)

    Returns:
        Configuration dictionary

    Raises:
        ConfigValidationError: If the file is missing or not valid YAML
    """
    from .parser import ConfigParser

    return ConfigParser(config_path).to_dict()


def save_config_template(output_path: Path):
    """
    Save a configuration template to file.

    Args:
        output_path: Output file path
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    config['input'] = {
        'primary': 'primary_assembly.fa',
        'alternate': 'alternate_assembly.fa',
        'reads': 'pacbio_reads.fasta',
    }

    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration dictionary.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    # Required inputs
    for key in ('primary', 'alternate', 'reads'):
        value = config.get('input', {}).get(key)
        if not value:
            errors.append(f"Missing required input: input.{key}")
        elif not Path(value).is_file():
            errors.append(f"Input file not found: {value} (input.{key})")

    # Threads
    threads = config.get('hardware', {}).get('threads')
    if threads is not None:
        if isinstance(threads, bool) or not isinstance(threads, int) or threads < 1:
            errors.append(f"Invalid thread count: {threads} (must be a positive integer)")

    # Presets
    alignment = config.get('alignment', {})
    for key in ('read_preset', 'self_preset'):
        if not alignment.get(key):
            errors.append(f"Missing minimap2 preset: alignment.{key}")
    if not isinstance(alignment.get('self_flags', []), list):
        errors.append("alignment.self_flags must be a list")

    # Tool directory
    bin_dir = config.get('tools', {}).get('bin_dir')
    if bin_dir and not Path(bin_dir).is_dir():
        errors.append(f"Tool directory not found: {bin_dir} (tools.bin_dir)")

    # Logging
    level = config.get('output', {}).get('logging', {}).get('level', 'INFO')
    if str(level).upper() not in LOG_LEVELS:
        errors.append(f"Invalid logging level: {level}")

    if not config.get('output', {}).get('work_dir'):
        errors.append("Missing output.work_dir")

    return errors

# HaploPurge v0.1.0
# Any usage is subject to this software's license.
