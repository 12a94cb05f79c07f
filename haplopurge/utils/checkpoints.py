"""
Checkpoint management for HaploPurge pipelines.

Records completed steps in a JSON manifest inside the working directory so an
interrupted run can be resumed at the first incomplete step.
"""

import json
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, List, Optional
import logging


MANIFEST_NAME = 'pipeline_state.json'


def step_signature(command: List[Any], inputs: List[Path]) -> Dict[str, Any]:
    """
    Fingerprint a step invocation for resume checks.

    Captures the argv and, for each input file, its path, size and
    modification time. A missing input is recorded with null size and time.

    Args:
        command: argv of the invocation
        inputs: Files the invocation reads

    Returns:
        JSON-serialisable dictionary
    """
    fingerprints = []
    for path in inputs:
        path = Path(path)
        if path.exists():
            info = path.stat()
            fingerprints.append([str(path), info.st_size, info.st_mtime_ns])
        else:
            fingerprints.append([str(path), None, None])

    return {
        'command': [str(part) for part in command],
        'inputs': fingerprints,
    }


class CheckpointManager:
    """
    Manage the step manifest for resumable execution.

    Features:
    - Mark a step complete together with its output files
    - Query whether a step can be skipped on resume
    - List completed steps in execution order
    - Reset the manifest for a fresh run
    """

    def __init__(self, work_dir: Path):
        """
        Initialize checkpoint manager.

        Args:
            work_dir: Pipeline working directory holding the manifest
        """
        self.work_dir = Path(work_dir)
        self.work_dir.mkdir(parents=True, exist_ok=True)
        self.manifest_path = self.work_dir / MANIFEST_NAME
        self.logger = logging.getLogger(__name__)
        self._state = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.manifest_path.exists():
            return {'steps': {}}

        with open(self.manifest_path, 'r') as f:
            state = json.load(f)

        state.setdefault('steps', {})
        return state

    def _save(self):
        with open(self.manifest_path, 'w') as f:
            json.dump(self._state, f, indent=2)

    def _next_order(self) -> int:
        orders = [entry['order'] for entry in self._state['steps'].values()]
        return max(orders, default=0) + 1

    def reset(self):
        """Forget all completed steps."""
        self._state = {'steps': {}}
        self._save()
        self.logger.debug(f"Checkpoint manifest reset: {self.manifest_path}")

    def create(self, step_key: str, files: List[Path],
               metadata: Optional[Dict[str, Any]] = None,
               signature: Optional[Dict[str, Any]] = None):
        """
        Record a completed step.

        Args:
            step_key: Unique step identifier ('<pass>/<step>')
            files: Output files produced by the step
            metadata: Additional metadata to store
            signature: Command and input fingerprint (see step_signature)
        """
        # Re-recording a step moves it to the end of the completion order
        self._state['steps'].pop(step_key, None)
        self._state['steps'][step_key] = {
            'order': self._next_order(),
            'timestamp': datetime.now().isoformat(),
            'files': [str(p) for p in files],
            'signature': signature,
            'metadata': metadata or {},
        }
        self._save()
        self.logger.debug(f"Checkpoint created: {step_key}")

    def is_complete(self, step_key: str,
                    signature: Optional[Dict[str, Any]] = None) -> bool:
        """
        Check whether a step was completed and its outputs are still present.

        Args:
            step_key: Unique step identifier
            signature: Current command and input fingerprint; a checkpoint
                recorded with a different one is stale

        Returns:
            True if the step may be skipped
        """
        entry = self._state['steps'].get(step_key)
        if entry is None:
            return False

        missing = [f for f in entry['files'] if not Path(f).exists()]
        if missing:
            self.logger.warning(
                f"Checkpoint {step_key} is stale (missing: {', '.join(missing)}); rerunning"
            )
            return False

        if signature is not None and entry.get('signature') != signature:
            self.logger.info(
                f"Checkpoint {step_key} is stale (command or inputs changed); rerunning"
            )
            return False

        return True

    def list_checkpoints(self) -> List[Dict[str, Any]]:
        """
        List completed steps.

        Returns:
            Checkpoint dictionaries sorted by completion order
        """
        entries = [
            {'step': key, **value}
            for key, value in self._state['steps'].items()
        ]
        return sorted(entries, key=lambda e: e['order'])

    def get_latest(self) -> Optional[Dict[str, Any]]:
        """Return the most recently completed step, or None."""
        checkpoints = self.list_checkpoints()
        return checkpoints[-1] if checkpoints else None
