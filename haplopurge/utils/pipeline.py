"""
HaploPurge Pipeline Orchestrator.

Sequences the purge_dups toolchain over two refinement passes:

- Pass "primary": purge the primary assembly
- Merge: concatenate the haplotigs removed in pass one with the alternate assembly
- Pass "merged": purge the merged haplotig set

Each pass is a fixed chain of seven external tool invocations:

    minimap2 (reads) → pbcstat → calcuts → split_fa → minimap2 (self) → purge_dups → get_seqs

Steps run strictly one after another. The first failing step stops the run;
files already written are left in place. Each pass works in its own
subdirectory of the working directory so both passes can use the tools' fixed
output names (PB.stat, purged.fa, hap.fa, ...) without overwriting each other.
"""

from pathlib import Path
from typing import Optional, Dict, Any, List
import logging
import json
import os
from dataclasses import dataclass, field

from ..errors import ConfigValidationError, InputFileError, StepFailedError
from ..io import concatenate_files, find_shared_ids, get_fasta_stats
from .checkpoints import CheckpointManager, step_signature
from .steps import PipelineStep, StepResult, StepRunner
from .tools import ToolPaths, resolve_tools


PASS_STEPS = (
    'align_reads',
    'coverage_stats',
    'calc_cutoffs',
    'split_assembly',
    'self_align',
    'purge_dups',
    'extract_seqs',
)

PRIMARY_LABEL = 'primary'
MERGED_LABEL = 'merged'
MERGE_STEP_KEY = 'merge'
MERGED_ASSEMBLY_NAME = 'merged_hap.fa'
SUMMARY_NAME = 'summary.json'

# Fixed names written by the tools (or chosen for their redirected streams)
READ_PAF = 'pb_reads.paf.gz'
STAT_FILE = 'PB.stat'
BASE_COV_FILE = 'PB.base.cov'
CUTOFFS_FILE = 'cutoffs'
CALCUTS_LOG = 'calcuts.log'
INTERVALS_FILE = 'dups.bed'
PURGE_LOG = 'purge_dups.log'
CLEANED_FILE = 'purged.fa'
REDUNDANT_FILE = 'hap.fa'

MERGE_SHARED_ID_PREVIEW = 10


def resolve_threads(config: Dict[str, Any]) -> int:
    """
    Return the configured thread count, auto-detecting when unset.

    Raises:
        ConfigValidationError: If the configured value is not a positive integer
    """
    threads = config.get('hardware', {}).get('threads')
    if threads is None:
        return os.cpu_count() or 1

    if isinstance(threads, bool) or not isinstance(threads, int) or threads < 1:
        raise ConfigValidationError(
            f"Invalid thread count: {threads} (must be a positive integer)"
        )
    return threads


# ============================================================================
# Data Structures
# ============================================================================

@dataclass
class PassResult:
    """
    Result of one refinement pass.

    Attributes:
        label: Pass label ('primary' or 'merged')
        assembly: Input assembly of the pass
        pass_dir: Directory holding the pass's intermediate files
        cleaned: Purged assembly (get_seqs purged.fa)
        redundant: Removed duplicate sequences (get_seqs hap.fa)
        intervals: Duplicate-interval BED file from purge_dups
        cutoffs: Coverage cutoffs from calcuts
        steps: Per-step results in execution order
    """
    label: str
    assembly: Path
    pass_dir: Path
    cleaned: Path
    redundant: Path
    intervals: Path
    cutoffs: Path
    steps: List[StepResult] = field(default_factory=list)


@dataclass
class PipelineResult:
    """Outcome of the complete two-pass run."""
    primary: PassResult
    merged_assembly: Path
    merged: PassResult
    shared_ids: List[str] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            'primary': {
                'assembly': str(self.primary.assembly),
                'cleaned': str(self.primary.cleaned),
                'redundant': str(self.primary.redundant),
                'intervals': str(self.primary.intervals),
            },
            'merged_assembly': str(self.merged_assembly),
            'merged': {
                'assembly': str(self.merged.assembly),
                'cleaned': str(self.merged.cleaned),
                'redundant': str(self.merged.redundant),
                'intervals': str(self.merged.intervals),
            },
            'shared_ids': list(self.shared_ids),
            'stats': self.summary,
        }


# ============================================================================
# Pipeline Orchestrator
# ============================================================================

class PipelineOrchestrator:
    """
    Orchestrator for the two-pass purge_dups refinement.

    Holds no state between passes other than file paths; every hand-off goes
    through the working directory. Two orchestrators must not share a working
    directory at the same time.
    """

    def __init__(self, config: Dict[str, Any], tools: Optional[ToolPaths] = None,
                 runner: Optional[StepRunner] = None, configure_logging: bool = True):
        """
        Initialize pipeline orchestrator.

        Args:
            config: Pipeline configuration dictionary (see config.schema)
            tools: Pre-resolved tool paths (resolved from config if None)
            runner: Step runner (built from config if None)
            configure_logging: Attach file and console log handlers
        """
        self.config = config
        self.work_dir = Path(config['output']['work_dir']).resolve()
        self.work_dir.mkdir(parents=True, exist_ok=True)

        if configure_logging:
            log_level = getattr(logging, str(config['output']['logging']['level']).upper())
            logging.basicConfig(
                level=log_level,
                format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                handlers=[
                    logging.FileHandler(self.work_dir / config['output']['logging']['log_file']),
                    logging.StreamHandler()
                ]
            )
        self.logger = logging.getLogger(__name__)

        self.threads = resolve_threads(config)
        self.tools = tools or resolve_tools(config.get('tools'))
        self.runner = runner or StepRunner(
            verify_outputs=config['pipeline'].get('verify_outputs', True)
        )
        self.checkpoints = CheckpointManager(self.work_dir)
        self.resume = bool(config['pipeline'].get('resume', False))
        # Set once any step actually runs; later checkpoints are then ignored
        self._invalidated = False

    # ------------------------------------------------------------------ #
    # Step construction
    # ------------------------------------------------------------------ #

    def build_pass_steps(self, label: str, assembly: Path, reads: Path) -> List[PipelineStep]:
        """
        Describe the seven steps of one refinement pass.

        Args:
            label: Pass label, also the name of the pass subdirectory
            assembly: Assembly to purge
            reads: Long reads used for coverage

        Returns:
            Steps in execution order
        """
        assembly = Path(assembly).resolve()
        reads = Path(reads).resolve()
        pass_dir = self.work_dir / label
        alignment = self.config['alignment']
        tools = self.tools

        read_paf = pass_dir / READ_PAF
        stat_file = pass_dir / STAT_FILE
        base_cov = pass_dir / BASE_COV_FILE
        cutoffs = pass_dir / CUTOFFS_FILE
        split_fa = pass_dir / f"{assembly.name}.split"
        self_paf = pass_dir / f"{assembly.name}.split.self.paf.gz"
        intervals = pass_dir / INTERVALS_FILE
        cleaned = pass_dir / CLEANED_FILE
        redundant = pass_dir / REDUNDANT_FILE

        steps = [
            PipelineStep(
                name='align_reads',
                description='Align reads to assembly',
                command=[tools.minimap2, '-t', str(self.threads),
                         '-x', alignment['read_preset'], assembly, reads],
                inputs=[assembly, reads],
                outputs=[read_paf],
                stdout=read_paf,
                compress_stdout=True,
                stderr=pass_dir / 'align_reads.log',
            ),
            PipelineStep(
                name='coverage_stats',
                description='Generate coverage statistics',
                command=[tools.pbcstat, read_paf],
                inputs=[read_paf],
                outputs=[stat_file, base_cov],
                stderr=pass_dir / 'coverage_stats.log',
                cwd=pass_dir,
            ),
            PipelineStep(
                name='calc_cutoffs',
                description='Calculate coverage cutoffs',
                command=[tools.calcuts, stat_file],
                inputs=[stat_file],
                outputs=[cutoffs],
                stdout=cutoffs,
                stderr=pass_dir / CALCUTS_LOG,
            ),
            PipelineStep(
                name='split_assembly',
                description='Split assembly at gaps',
                command=[tools.split_fa, assembly],
                inputs=[assembly],
                outputs=[split_fa],
                stdout=split_fa,
                stderr=pass_dir / 'split_assembly.log',
            ),
            PipelineStep(
                name='self_align',
                description='Self-align split assembly',
                command=[tools.minimap2, '-t', str(self.threads),
                         '-x', alignment['self_preset'],
                         *alignment.get('self_flags', []), split_fa, split_fa],
                inputs=[split_fa],
                outputs=[self_paf],
                stdout=self_paf,
                compress_stdout=True,
                stderr=pass_dir / 'self_align.log',
            ),
            PipelineStep(
                name='purge_dups',
                description='Purge duplicates',
                command=[tools.purge_dups, '-2', '-T', cutoffs, '-c', base_cov, self_paf],
                inputs=[cutoffs, base_cov, self_paf],
                outputs=[intervals],
                stdout=intervals,
                stderr=pass_dir / PURGE_LOG,
                may_be_empty=[intervals],
            ),
            PipelineStep(
                name='extract_seqs',
                description='Extract cleaned and haplotig sequences',
                command=[tools.get_seqs, '-e', intervals, assembly],
                inputs=[intervals, assembly],
                outputs=[cleaned, redundant],
                stderr=pass_dir / 'extract_seqs.log',
                may_be_empty=[redundant],
                cwd=pass_dir,
            ),
        ]

        for step in steps:
            step.pass_label = label

        return steps

    # ------------------------------------------------------------------ #
    # Pipeline operations
    # ------------------------------------------------------------------ #

    def run_refinement_pass(self, assembly: Path, reads: Path, label: str = PRIMARY_LABEL) -> PassResult:
        """
        Run one purge pass over an assembly.

        Args:
            assembly: Assembly to purge (FASTA, non-empty)
            reads: Long reads (FASTA/FASTQ, non-empty)
            label: Pass label and subdirectory name

        Returns:
            PassResult with paths of the cleaned and redundant outputs

        Raises:
            InputFileError: Assembly or reads missing/empty
            StepFailedError: A tool exited non-zero (no later step runs)
            EmptyOutputError: A tool exited 0 without producing its output
        """
        assembly = Path(assembly).resolve()
        reads = Path(reads).resolve()
        self._check_input_file(assembly, 'assembly')
        self._check_input_file(reads, 'reads')

        pass_dir = self.work_dir / label
        pass_dir.mkdir(parents=True, exist_ok=True)

        steps = self.build_pass_steps(label, assembly, reads)
        results: List[StepResult] = []

        self.logger.info(f"Refinement pass '{label}': {assembly.name}")

        for i, step in enumerate(steps, start=1):
            self.logger.info("=" * 60)
            self.logger.info(f"PASS {label.upper()} STEP {i}/{len(steps)}: {step.name.upper()}")
            self.logger.info(f"{step.description}...")
            self.logger.info("=" * 60)

            signature = step_signature(step.command, step.inputs)
            if self._can_skip(step.key, signature):
                self.logger.info(f"Skipping {step.key}: completed in a previous run")
                results.append(StepResult(step, 0, skipped=True))
                continue

            self._invalidated = True
            result = self.runner.run(step)
            results.append(result)

            if not result.ok:
                raise StepFailedError(result)

            self.checkpoints.create(step.key, step.outputs,
                                    {'duration_sec': round(result.duration_sec, 3)},
                                    signature=signature)

        extract = steps[-1]
        return PassResult(
            label=label,
            assembly=assembly,
            pass_dir=pass_dir,
            cleaned=extract.outputs[0],
            redundant=extract.outputs[1],
            intervals=steps[5].outputs[0],
            cutoffs=steps[2].outputs[0],
            steps=results,
        )

    def merge_assemblies(self, redundant: Path, alternate: Path, destination: Path) -> List[str]:
        """
        Concatenate the redundant set of a pass with the alternate assembly.

        Sequence names are not de-duplicated; names present in both inputs are
        only reported.

        Args:
            redundant: Redundant sequences from the first pass
            alternate: User-supplied alternate assembly
            destination: Merged assembly path

        Returns:
            Sorted sequence names found in both inputs
        """
        redundant = Path(redundant)
        alternate = Path(alternate).resolve()

        if not redundant.exists():
            raise InputFileError(f"Redundant sequence file not found: {redundant}")
        self._check_input_file(alternate, 'alternate assembly')

        shared: List[str] = []
        if self.config['pipeline'].get('check_merge_headers', True):
            shared = sorted(find_shared_ids(redundant, alternate))
            if shared:
                preview = ', '.join(shared[:MERGE_SHARED_ID_PREVIEW])
                more = len(shared) - MERGE_SHARED_ID_PREVIEW
                if more > 0:
                    preview += f" ... (+{more} more)"
                self.logger.warning(
                    f"{len(shared)} sequence name(s) occur in both {redundant.name} "
                    f"and {alternate.name}; merged file keeps both copies: {preview}"
                )

        signature = step_signature(['cat', redundant, alternate], [redundant, alternate])
        if self._can_skip(MERGE_STEP_KEY, signature):
            self.logger.info(f"Skipping {MERGE_STEP_KEY}: completed in a previous run")
            return shared

        self._invalidated = True
        self.logger.info(f"Merging {redundant.name} with {alternate.name} → {destination}")
        concatenate_files([redundant, alternate], destination)
        self.checkpoints.create(MERGE_STEP_KEY, [Path(destination)], signature=signature)

        return shared

    def run(self) -> PipelineResult:
        """
        Run the complete two-pass pipeline.

        Returns:
            PipelineResult with all output paths and summary statistics
        """
        inputs = self.config['input']
        primary = Path(inputs['primary'])
        alternate = Path(inputs['alternate'])
        reads = Path(inputs['reads'])

        self.logger.info("=" * 60)
        self.logger.info("Starting purge_dups refinement pipeline")
        self.logger.info("=" * 60)
        self.logger.info(f"  Primary assembly:   {primary}")
        self.logger.info(f"  Alternate assembly: {alternate}")
        self.logger.info(f"  Reads:              {reads}")
        self.logger.info(f"  Threads:            {self.threads}")
        self.logger.info(f"  Working directory:  {self.work_dir}")

        # Fail before any tool runs if the alternate assembly is unusable
        self._check_input_file(alternate.resolve(), 'alternate assembly')

        self._invalidated = False
        if self.resume:
            latest = self.checkpoints.get_latest()
            if latest:
                self.logger.info(f"Resuming; last completed step: {latest['step']}")
            else:
                self.logger.warning("No checkpoints found, starting from beginning")
        else:
            self.checkpoints.reset()

        primary_result = self.run_refinement_pass(primary, reads, PRIMARY_LABEL)

        merged_dir = self.work_dir / MERGED_LABEL
        merged_dir.mkdir(parents=True, exist_ok=True)
        merged_assembly = merged_dir / MERGED_ASSEMBLY_NAME
        shared = self.merge_assemblies(primary_result.redundant, alternate, merged_assembly)

        merged_result = self.run_refinement_pass(merged_assembly, reads, MERGED_LABEL)

        result = PipelineResult(
            primary=primary_result,
            merged_assembly=merged_assembly,
            merged=merged_result,
            shared_ids=shared,
        )
        result.summary = self._summarize(result)

        summary_path = self.work_dir / SUMMARY_NAME
        with open(summary_path, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)

        self.logger.info("=" * 60)
        self.logger.info("Pipeline Complete!")
        self.logger.info("=" * 60)
        self.logger.info(f"  Cleaned primary assembly: {primary_result.cleaned}")
        self.logger.info(f"  Cleaned haplotig set:     {merged_result.cleaned}")
        self.logger.info(f"  Leftover redundant set:   {merged_result.redundant}")
        self.logger.info(f"  Summary:                  {summary_path}")

        return result

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _can_skip(self, step_key: str, signature: Dict[str, Any]) -> bool:
        """
        A step is skipped only on resume, only while no earlier step of this
        run has executed, and only if its checkpoint matches the current
        command and inputs.
        """
        if not self.resume or self._invalidated:
            return False
        return self.checkpoints.is_complete(step_key, signature)

    def _check_input_file(self, path: Path, role: str):
        if not path.exists():
            raise InputFileError(f"Input {role} not found: {path}")
        if not path.is_file() or not os.access(path, os.R_OK):
            raise InputFileError(f"Input {role} is not a readable file: {path}")
        if path.stat().st_size == 0:
            raise InputFileError(f"Input {role} is empty: {path}")

    def _summarize(self, result: PipelineResult) -> Dict[str, Any]:
        """Sequence statistics for the final and intermediate FASTA outputs."""
        files = {
            'primary_cleaned': result.primary.cleaned,
            'primary_redundant': result.primary.redundant,
            'merged_assembly': result.merged_assembly,
            'merged_cleaned': result.merged.cleaned,
            'merged_redundant': result.merged.redundant,
        }

        summary = {}
        for key, path in files.items():
            stats = get_fasta_stats(path)
            summary[key] = stats
            self.logger.info(
                f"  {key}: {stats['num_sequences']:,} sequences, "
                f"{stats['total_length']:,} bp, N50 {stats['n50']:,}"
            )
        return summary


def run_purging_pipeline(config: Dict[str, Any]) -> PipelineResult:
    """
    Convenience function to run the two-pass pipeline.

    Args:
        config: Pipeline configuration

    Returns:
        PipelineResult
    """
    orchestrator = PipelineOrchestrator(config)
    return orchestrator.run()
