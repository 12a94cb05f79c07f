#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HaploPurge v0.1.0

Pytest configuration and shared fixtures.

The ``fake_bin`` fixture writes stand-ins for minimap2 and the purge_dups
binaries that honour the real tools' file contracts:

- minimap2 prints one PAF line per target sequence
- pbcstat writes PB.stat / PB.base.cov / PB.cov into the working directory
- calcuts prints numeric cutoffs on stdout and diagnostics on stderr
- split_fa echoes the assembly
- purge_dups flags every sequence whose name starts with ``dup_``
- get_seqs writes purged.fa / hap.fa into the working directory

Setting HAPLOPURGE_FAKE_FAIL=<tool> makes that tool exit 3 (optionally only
when HAPLOPURGE_FAKE_FAIL_IN occurs in its cwd or arguments).
HAPLOPURGE_FAKE_LOG=<file> records every invocation.

Author: HaploPurge Development Team
License: MIT
"""

import sys
import stat
from pathlib import Path

import pytest

from haplopurge.config import load_config


FAKE_PRELUDE = '''#!{python}
import gzip
import os
import sys

TOOL = {tool!r}


def read_fasta(path):
    records = []
    name = None
    seq = []
    opener = gzip.open if path.endswith('.gz') else open
    with opener(path, 'rt') as handle:
        for line in handle:
            line = line.rstrip('\\n')
            if line.startswith('>'):
                if name is not None:
                    records.append((name, ''.join(seq)))
                name = line[1:].split()[0]
                seq = []
            elif line:
                seq.append(line)
    if name is not None:
        records.append((name, ''.join(seq)))
    return records


log = os.environ.get('HAPLOPURGE_FAKE_LOG')
if log:
    with open(log, 'a') as f:
        f.write(TOOL + '\\n')

if os.environ.get('HAPLOPURGE_FAKE_FAIL') == TOOL:
    where = os.environ.get('HAPLOPURGE_FAKE_FAIL_IN', '')
    if not where or where in os.getcwd() or any(where in a for a in sys.argv):
        sys.stderr.write('[E::' + TOOL + '] simulated failure\\n')
        sys.exit(3)

args = sys.argv[1:]
'''

FAKE_BODIES = {
    'minimap2': '''
target, query = args[-2], args[-1]
for name, seq in read_fasta(target):
    n = len(seq)
    sys.stdout.write('%s\\t%d\\t0\\t%d\\t+\\t%s\\t%d\\t0\\t%d\\t%d\\t%d\\t60\\n' % (name, n, n, name, n, n, n, n))
sys.stderr.write('[M::main] Real time: 0.001 sec\\n')
''',
    'pbcstat': '''
with gzip.open(args[-1], 'rt') as handle:
    lines = [line for line in handle if line.strip()]
with open('PB.stat', 'w') as f:
    f.write('30\\t%d\\n' % len(lines))
with open('PB.base.cov', 'w') as f:
    for line in lines:
        fields = line.split('\\t')
        f.write('>%s\\t%s\\n0\\t30\\n' % (fields[5], fields[6]))
with open('PB.cov', 'w') as f:
    f.write('')
''',
    'calcuts': '''
with open(args[-1]) as handle:
    handle.read()
sys.stdout.write('5\\t10\\t15\\t20\\t30\\t60\\n')
sys.stderr.write('[M::calcuts] Find 2 peaks\\n[M::calcuts] mean: 30, peak: 30, mean larger than peak, treat as diploid assembly\\n')
''',
    'split_fa': '''
for name, seq in read_fasta(args[-1]):
    sys.stdout.write('>%s\\n%s\\n' % (name, seq))
''',
    'purge_dups': '''
cutoffs = args[args.index('-T') + 1]
base_cov = args[args.index('-c') + 1]
for path in (cutoffs, base_cov):
    if not os.path.exists(path):
        sys.stderr.write('cannot open %s\\n' % path)
        sys.exit(1)
with gzip.open(args[-1], 'rt') as handle:
    for line in handle:
        fields = line.rstrip('\\n').split('\\t')
        if fields[0].startswith('dup_'):
            sys.stdout.write('%s\\t0\\t%s\\tHAPLOTIG\\t%s\\n' % (fields[0], fields[1], fields[0][4:]))
sys.stderr.write('[M::purge_dups] purging done\\n')
''',
    'get_seqs': '''
bed = args[args.index('-e') + 1]
flagged = set()
with open(bed) as handle:
    for line in handle:
        if line.strip():
            flagged.add(line.split('\\t')[0])
with open('purged.fa', 'w') as purged, open('hap.fa', 'w') as hap:
    for name, seq in read_fasta(args[-1]):
        out = hap if name in flagged else purged
        out.write('>%s\\n%s\\n' % (name, seq))
''',
}


def write_fasta_file(path, records):
    """Write (name, sequence) records as FASTA."""
    path = Path(path)
    with open(path, 'w') as f:
        for name, seq in records:
            f.write(f">{name}\n{seq}\n")
    return path


def make_seq(seed, length=120):
    """Deterministic pseudo-random DNA sequence."""
    bases = "ACGT"
    state = seed * 7919 + 17
    out = []
    for _ in range(length):
        state = (state * 1103515245 + 12345) % (2 ** 31)
        out.append(bases[(state >> 16) % 4])
    return ''.join(out)


@pytest.fixture
def fasta_writer():
    """Helper writing (name, sequence) records to a FASTA path."""
    return write_fasta_file


@pytest.fixture
def fake_bin(tmp_path):
    """Directory of executable fake tools."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    for tool, body in FAKE_BODIES.items():
        script = bin_dir / tool
        script.write_text(FAKE_PRELUDE.format(python=sys.executable, tool=tool) + body)
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    return bin_dir


@pytest.fixture
def invocation_log(tmp_path, monkeypatch):
    """File recording each fake tool invocation in order."""
    log = tmp_path / "invocations.txt"
    monkeypatch.setenv("HAPLOPURGE_FAKE_LOG", str(log))

    def read():
        if not log.exists():
            return []
        return log.read_text().split()

    def clear():
        if log.exists():
            log.unlink()

    read.clear = clear
    return read


@pytest.fixture
def primary_assembly(tmp_path):
    """Primary assembly: 10 contigs, 2 of which duplicate others."""
    records = [(f"ctg{i:02d}", make_seq(i)) for i in range(1, 9)]
    records.append(("dup_ctg01", records[0][1]))
    records.append(("dup_ctg05", records[4][1]))
    return write_fasta_file(tmp_path / "primary_assembly.fa", records)


@pytest.fixture
def alternate_assembly(tmp_path):
    """Alternate assembly with three haplotigs."""
    records = [(f"alt{i:02d}", make_seq(100 + i, 90)) for i in range(1, 4)]
    return write_fasta_file(tmp_path / "alternate_assembly.fa", records)


@pytest.fixture
def reads_file(tmp_path):
    """Small long-read FASTA."""
    records = [(f"read{i}", make_seq(200 + i, 60)) for i in range(1, 6)]
    return write_fasta_file(tmp_path / "pacbio_reads.fasta", records)


@pytest.fixture
def pipeline_config(tmp_path, fake_bin, primary_assembly, alternate_assembly, reads_file):
    """Complete configuration pointing at the fixtures and fake tools."""
    config = load_config()
    config['input']['primary'] = str(primary_assembly)
    config['input']['alternate'] = str(alternate_assembly)
    config['input']['reads'] = str(reads_file)
    config['hardware']['threads'] = 2
    config['tools']['bin_dir'] = str(fake_bin)
    config['output']['work_dir'] = str(tmp_path / "run")
    return config

# HaploPurge v0.1.0
# Any usage is subject to this software's license.
