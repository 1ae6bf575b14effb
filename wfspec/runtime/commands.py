"""
commands.py - Subprocess wrapper for the `git` and `gh` binaries.

Every other module goes through run_command() so that all invocations get a
timeout and all failures carry their captured output.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from wfspec.config.runtime_config import get_runtime_config
from wfspec.spec.errors import CommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured result of a finished command."""
    args: List[str]
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def combined_output(self) -> str:
        out = self.stdout.decode("utf-8", errors="replace")
        err = self.stderr.decode("utf-8", errors="replace")
        return "\n".join(part for part in (out.strip(), err.strip()) if part)


def run_command(
    args: List[str],
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None,
    check: bool = True,
    input_data: Optional[bytes] = None,
) -> CommandResult:
    """Run a command and capture stdout/stderr as bytes.

    Args:
        args: Full argument vector, binary first.
        cwd: Working directory for the command.
        timeout: Seconds before the command is killed; defaults to the
            configured command timeout.
        check: Raise CommandError on a non-zero exit status.
        input_data: Bytes fed to stdin.

    Returns:
        CommandResult with the captured output.

    Raises:
        CommandError: On timeout, missing binary, or (with check) failure.
    """
    if timeout is None:
        timeout = get_runtime_config().command_timeout

    logger.debug("Running: %s", " ".join(args))
    try:
        completed = subprocess.run(
            args,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            timeout=timeout,
            input=input_data,
        )
    except subprocess.TimeoutExpired as e:
        output = (e.stdout or b"").decode("utf-8", errors="replace")
        raise CommandError(args, None, output, reason=f"timed out after {timeout}s") from e
    except FileNotFoundError as e:
        raise CommandError(args, None, reason=f"{args[0]} not found in PATH") from e

    result = CommandResult(
        args=list(args),
        returncode=completed.returncode,
        stdout=completed.stdout or b"",
        stderr=completed.stderr or b"",
    )
    if check and not result.ok:
        logger.debug("Command failed (%d): %s", result.returncode, " ".join(args))
        raise CommandError(args, result.returncode, result.combined_output)
    return result


def run_git(
    args: List[str],
    cwd: Optional[Union[str, Path]] = None,
    check: bool = True,
) -> CommandResult:
    """Run `git <args>` with the configured binary."""
    return run_command([get_runtime_config().git_bin, *args], cwd=cwd, check=check)


def run_gh(args: List[str], check: bool = True) -> CommandResult:
    """Run `gh <args>` with the configured binary."""
    return run_command([get_runtime_config().gh_bin, *args], check=check)
