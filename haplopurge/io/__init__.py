"""
Sequence file I/O for HaploPurge.

CONSOLIDATED MODULES:
- fasta_io_module.py: FASTA statistics, concatenation and name checks
"""

from .fasta_io_module import (
    is_gzipped,
    open_file,
    iter_fasta_records,
    read_fasta_ids,
    count_fasta_sequences,
    get_fasta_stats,
    concatenate_files,
    find_shared_ids,
)

__all__ = [
    "is_gzipped",
    "open_file",
    "iter_fasta_records",
    "read_fasta_ids",
    "count_fasta_sequences",
    "get_fasta_stats",
    "concatenate_files",
    "find_shared_ids",
]
