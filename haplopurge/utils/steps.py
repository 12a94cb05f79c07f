"""
Step descriptors and execution for HaploPurge.

Every external tool invocation is described by a PipelineStep that declares its
command, input files and output files. StepRunner executes one step as a
blocking child process and reports a StepResult; it never decides whether the
pipeline continues. That is the orchestrator's job.
"""

import gzip
import logging
import shlex
import shutil
import subprocess
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..errors import EmptyOutputError, InputFileError, ToolNotFoundError

logger = logging.getLogger(__name__)


STDERR_TAIL_LINES = 20


@dataclass
class PipelineStep:
    """
    A single external tool invocation with an explicit file contract.

    Attributes:
        name: Step identifier (e.g. 'calc_cutoffs')
        description: Human-readable summary for logs
        command: argv list; the first element is the executable
        inputs: Files that must exist before the step runs
        outputs: Files the step is expected to produce
        stderr: Log file receiving the tool's diagnostics
        stdout: File receiving standard output (None = diagnostics log)
        compress_stdout: gzip standard output on the way to ``stdout``
        may_be_empty: Outputs that are allowed to be empty
        cwd: Working directory for the child process
        pass_label: Refinement pass this step belongs to
    """
    name: str
    description: str
    command: List[str]
    inputs: List[Path]
    outputs: List[Path]
    stderr: Path
    stdout: Optional[Path] = None
    compress_stdout: bool = False
    may_be_empty: List[Path] = field(default_factory=list)
    cwd: Optional[Path] = None
    pass_label: str = ''

    @property
    def key(self) -> str:
        """Unique identifier across passes, used for checkpoints."""
        return f"{self.pass_label}/{self.name}" if self.pass_label else self.name

    def command_line(self) -> str:
        """Shell-equivalent rendering of the invocation, for logging."""
        line = shlex.join(str(part) for part in self.command)
        if self.stdout is not None:
            if self.compress_stdout:
                line += f" | gzip -c - > {self.stdout.name}"
            else:
                line += f" > {self.stdout.name}"
        line += f" 2> {self.stderr.name}"
        return line


@dataclass
class StepFailure:
    """Details of a step that exited non-zero."""
    step: str
    exit_code: int
    stderr_tail: List[str]
    command: str


@dataclass
class StepResult:
    """
    Outcome of running (or skipping) one step.

    ``ok`` is True when the tool exited 0; otherwise ``failure`` describes
    what went wrong.
    """
    step: PipelineStep
    exit_code: int
    duration_sec: float = 0.0
    stderr_tail: List[str] = field(default_factory=list)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def failure(self) -> Optional[StepFailure]:
        if self.ok:
            return None
        return StepFailure(
            step=self.step.key,
            exit_code=self.exit_code,
            stderr_tail=self.stderr_tail,
            command=self.step.command_line(),
        )

    @property
    def outputs(self) -> List[Path]:
        return list(self.step.outputs)


def read_tail(path: Path, max_lines: int = STDERR_TAIL_LINES) -> List[str]:
    """Return the last lines of a text file (empty list if absent)."""
    if not path.exists():
        return []
    with open(path, 'r', errors='replace') as f:
        return [line.rstrip('\n') for line in deque(f, maxlen=max_lines)]


class StepRunner:
    """
    Execute PipelineSteps as blocking child processes.

    No timeout is applied: a hung tool blocks the caller until it exits.
    """

    def __init__(self, verify_outputs: bool = True, tail_lines: int = STDERR_TAIL_LINES):
        """
        Initialize runner.

        Args:
            verify_outputs: Check declared outputs exist (and are non-empty)
                after a successful exit
            tail_lines: Number of diagnostic lines kept on failure
        """
        self.verify_outputs = verify_outputs
        self.tail_lines = tail_lines
        self.logger = logging.getLogger(f"{__name__}.StepRunner")

    def run(self, step: PipelineStep) -> StepResult:
        """
        Run one step.

        Raises:
            InputFileError: A declared input does not exist
            ToolNotFoundError: The executable vanished or is not executable
            EmptyOutputError: A declared output is missing/empty after exit 0

        Returns:
            StepResult; callers must check ``ok``
        """
        self._check_inputs(step)

        step.stderr.parent.mkdir(parents=True, exist_ok=True)
        if step.stdout is not None:
            step.stdout.parent.mkdir(parents=True, exist_ok=True)

        self.logger.info(f"$ {step.command_line()}")
        start = time.time()

        exit_code = self._execute(step)

        duration = time.time() - start

        if exit_code != 0:
            tail = read_tail(step.stderr, self.tail_lines)
            self.logger.error(
                f"{step.key} exited with status {exit_code} after {duration:.1f}s"
            )
            for line in tail:
                self.logger.error(f"  {step.stderr.name}: {line}")
            return StepResult(step, exit_code, duration, tail)

        if self.verify_outputs:
            self._check_outputs(step)

        self.logger.info(f"✓ {step.key} finished in {duration:.1f}s")
        return StepResult(step, exit_code, duration)

    def _execute(self, step: PipelineStep) -> int:
        """Spawn the process with the step's stream redirections and wait."""
        with open(step.stderr, 'wb') as err:
            if step.stdout is None:
                # Tool writes its own files; anything it prints is diagnostic
                with self._start(step, stdout=err, stderr=err) as proc:
                    return proc.wait()

            if not step.compress_stdout:
                with open(step.stdout, 'wb') as out:
                    with self._start(step, stdout=out, stderr=err) as proc:
                        return proc.wait()

            with gzip.open(step.stdout, 'wb') as out:
                with self._start(step, stdout=subprocess.PIPE, stderr=err) as proc:
                    shutil.copyfileobj(proc.stdout, out)
            return proc.returncode

    def _start(self, step: PipelineStep, stdout, stderr) -> subprocess.Popen:
        """
        Launch the step's executable.

        Raises:
            ToolNotFoundError: The executable is missing or not executable
        """
        command = [str(part) for part in step.command]
        try:
            return subprocess.Popen(command, cwd=step.cwd, stdout=stdout, stderr=stderr)
        except (FileNotFoundError, PermissionError) as e:
            raise ToolNotFoundError([command[0]]) from e

    def _check_inputs(self, step: PipelineStep):
        missing = [str(path) for path in step.inputs if not Path(path).is_file()]
        if missing:
            raise InputFileError(
                f"Step '{step.key}' is missing input file(s): {', '.join(missing)}"
            )

    def _check_outputs(self, step: PipelineStep):
        allowed_empty = {Path(p) for p in step.may_be_empty}
        compressed = Path(step.stdout) if step.stdout is not None and step.compress_stdout else None

        for path in step.outputs:
            path = Path(path)
            if not path.exists():
                raise EmptyOutputError(step.key, path)
            if path in allowed_empty:
                continue
            if path == compressed:
                # A gzip stream with no payload still has a header
                with gzip.open(path, 'rb') as f:
                    empty = not f.read(1)
            else:
                empty = path.stat().st_size == 0
            if empty:
                raise EmptyOutputError(step.key, path)
