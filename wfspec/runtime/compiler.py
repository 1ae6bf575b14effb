"""
compiler.py - Seam to the markdown -> CI YAML compiler.

The compiler itself lives outside this package. Collection only needs to ask
it to regenerate a workflow's lock file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union

from wfspec.config.runtime_config import get_runtime_config
from wfspec.spec.errors import CollectionError, CommandError

from .commands import run_command

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock.yml"


def lock_file_path(workflow_path: Union[str, Path]) -> Path:
    """`ci.md` -> `ci.lock.yml` in the same directory."""
    path = Path(workflow_path)
    if path.suffix == ".md":
        return path.with_suffix(LOCK_SUFFIX)
    return path.with_name(path.name + LOCK_SUFFIX)


class WorkflowCompiler(Protocol):
    """Regenerates the lock file of a markdown workflow."""

    def compile(self, workflow_path: Path) -> None: ...


class CommandCompiler:
    """Runs an external compile command with the workflow path appended."""

    def __init__(self, command: Optional[Sequence[str]] = None):
        self.command = tuple(command) if command else get_runtime_config().compile_command

    def compile(self, workflow_path: Path) -> None:
        logger.debug("Compiling %s with %s", workflow_path, " ".join(self.command))
        try:
            run_command([*self.command, str(workflow_path)], cwd=workflow_path.parent)
        except CommandError as e:
            raise CollectionError(f"compilation failed for {workflow_path}: {e}") from e
