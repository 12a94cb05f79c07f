#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
FASTA I/O module for HaploPurge.

Handles the few in-process file operations the pipeline performs itself:
- Reading sequence names and lengths from (optionally gzipped) FASTA files
- Assembly statistics (count, total length, N50) for the run summary
- Plain concatenation of assemblies for the haplotig merge
- Detection of sequence names shared between two assemblies
"""

# =============================================================================
# SECTION 1: IMPORTS AND DEPENDENCIES
# =============================================================================

import gzip
import shutil
from pathlib import Path
from typing import Iterator, List, Sequence, Set, TextIO, Tuple, Union

from Bio import SeqIO


# =============================================================================
# SECTION 2: FILE UTILITIES
# =============================================================================

def is_gzipped(filepath: Union[str, Path]) -> bool:
    """
    Check if file is gzip compressed.

    Args:
        filepath: Path to file

    Returns:
        True if file is gzipped
    """
    return Path(filepath).suffix in ('.gz', '.gzip')


def open_file(filepath: Union[str, Path]) -> TextIO:
    """
    Open file for reading in text mode with automatic gzip detection.

    Args:
        filepath: Path to file

    Returns:
        File handle
    """
    filepath = Path(filepath)

    if is_gzipped(filepath):
        return gzip.open(filepath, 'rt')
    return open(filepath, 'r')


# =============================================================================
# SECTION 3: FASTA READING
# =============================================================================

def iter_fasta_records(filepath: Union[str, Path]) -> Iterator[Tuple[str, int]]:
    """
    Yield (name, length) for each record of a FASTA file.

    Args:
        filepath: Path to FASTA file (can be gzipped)

    Yields:
        Tuples of sequence identifier and sequence length
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"FASTA file not found: {filepath}")

    with open_file(filepath) as handle:
        for record in SeqIO.parse(handle, "fasta"):
            yield record.id, len(record.seq)


def read_fasta_ids(filepath: Union[str, Path]) -> List[str]:
    """Return sequence identifiers in file order."""
    return [name for name, _ in iter_fasta_records(filepath)]


def count_fasta_sequences(filepath: Union[str, Path]) -> int:
    """
    Count number of sequences in FASTA file.

    Args:
        filepath: Path to FASTA file

    Returns:
        Number of sequences
    """
    return sum(1 for _ in iter_fasta_records(filepath))


def get_fasta_stats(filepath: Union[str, Path]) -> dict:
    """
    Get statistics about FASTA file.

    An empty file yields zero counts rather than an empty dictionary so that
    a run with no redundant sequences still reports cleanly.

    Args:
        filepath: Path to FASTA file

    Returns:
        Dictionary with sequence count, total length, min/max length and N50
    """
    lengths = [length for _, length in iter_fasta_records(filepath)]

    if not lengths:
        return {
            'num_sequences': 0,
            'total_length': 0,
            'min_length': 0,
            'max_length': 0,
            'n50': 0,
        }

    sorted_lengths = sorted(lengths, reverse=True)
    total_length = sum(sorted_lengths)
    half_length = total_length / 2

    cumulative = 0
    n50 = 0
    for length in sorted_lengths:
        cumulative += length
        if cumulative >= half_length:
            n50 = length
            break

    return {
        'num_sequences': len(lengths),
        'total_length': total_length,
        'min_length': min(lengths),
        'max_length': max(lengths),
        'n50': n50,
    }


# =============================================================================
# SECTION 4: MERGE HELPERS
# =============================================================================

def concatenate_files(sources: Sequence[Union[str, Path]], destination: Union[str, Path]) -> Path:
    """
    Concatenate files byte-for-byte into destination (``cat a b > dest``).

    No parsing, renaming or de-duplication takes place.

    Args:
        sources: Files to concatenate, in order
        destination: Output path

    Returns:
        Path of the written file
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    with open(destination, 'wb') as out:
        for source in sources:
            with open(source, 'rb') as src:
                shutil.copyfileobj(src, out)

    return destination


def find_shared_ids(first: Union[str, Path], second: Union[str, Path]) -> Set[str]:
    """
    Find sequence identifiers present in both FASTA files.

    Args:
        first: First FASTA file
        second: Second FASTA file

    Returns:
        Set of identifiers found in both files
    """
    return set(read_fasta_ids(first)) & set(read_fasta_ids(second))
