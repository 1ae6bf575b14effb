"""Runtime configuration for remote access and compilation.

Defaults live in runtime.yaml next to this module. Environment variables take
precedence over YAML config.

Usage:
    from wfspec.config.runtime_config import get_runtime_config

    config = get_runtime_config()
    url = f"{config.github_host}/{repo}.git"

Environment overrides:
    GH_HOST / WFSPEC_GITHUB_HOST   GitHub host (bare host or full URL)
    WFSPEC_COMMAND_TIMEOUT         Subprocess timeout in seconds
    WFSPEC_GH_BIN                  Path to the gh binary
    WFSPEC_GIT_BIN                 Path to the git binary
    WFSPEC_COMPILE_COMMAND         Compile command (shell-style string)
"""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(__file__).parent / "runtime.yaml"
_cached_config: Optional["RuntimeConfig"] = None

DEFAULT_GITHUB_HOST = "https://github.com"
DEFAULT_TIMEOUT_SECONDS = 60.0

# Floor for the subprocess timeout; anything lower is a configuration error
MIN_TIMEOUT_SECONDS = 1.0


@dataclass(frozen=True)
class RuntimeConfig:
    """Resolved runtime configuration (YAML defaults + environment)."""
    github_host: str = DEFAULT_GITHUB_HOST
    gh_bin: str = "gh"
    git_bin: str = "git"
    command_timeout: float = DEFAULT_TIMEOUT_SECONDS
    compile_command: Tuple[str, ...] = ("gh", "aw", "compile")
    temp_prefix: str = "wfspec-git-clone-"

    def repo_url(self, repo_slug: str) -> str:
        """Git remote URL for `owner/repo` on the configured host."""
        return f"{self.github_host}/{repo_slug}.git"


def _load_yaml() -> Dict[str, Any]:
    if not _CONFIG_PATH.exists():
        return {}
    with open(_CONFIG_PATH, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data or {}


def normalize_github_host(host: str) -> str:
    """Return `host` as a scheme-qualified URL without a trailing slash."""
    host = host.strip().rstrip("/")
    if not host:
        return DEFAULT_GITHUB_HOST
    if not host.startswith(("http://", "https://")):
        host = f"https://{host}"
    return host


def _parse_timeout(value: Any, source: str) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.warning(
            "Invalid command timeout %r from %s, using %.0fs",
            value,
            source,
            DEFAULT_TIMEOUT_SECONDS,
        )
        return DEFAULT_TIMEOUT_SECONDS
    if timeout < MIN_TIMEOUT_SECONDS:
        logger.warning(
            "Command timeout %.1fs from %s is below minimum %.0fs. Clamping.",
            timeout,
            source,
            MIN_TIMEOUT_SECONDS,
        )
        return MIN_TIMEOUT_SECONDS
    return timeout


def _build_config() -> RuntimeConfig:
    data = _load_yaml()
    github = data.get("github") or {}
    commands = data.get("commands") or {}
    fetch = data.get("fetch") or {}

    host = github.get("host") or DEFAULT_GITHUB_HOST
    env_host = os.environ.get("WFSPEC_GITHUB_HOST") or os.environ.get("GH_HOST")
    if env_host:
        host = env_host

    timeout = _parse_timeout(commands.get("timeout", DEFAULT_TIMEOUT_SECONDS), "runtime.yaml")
    env_timeout = os.environ.get("WFSPEC_COMMAND_TIMEOUT")
    if env_timeout:
        timeout = _parse_timeout(env_timeout, "WFSPEC_COMMAND_TIMEOUT")

    compile_command = commands.get("compile") or ["gh", "aw", "compile"]
    env_compile = os.environ.get("WFSPEC_COMPILE_COMMAND")
    if env_compile:
        compile_command = shlex.split(env_compile)

    return RuntimeConfig(
        github_host=normalize_github_host(host),
        gh_bin=os.environ.get("WFSPEC_GH_BIN") or commands.get("gh") or "gh",
        git_bin=os.environ.get("WFSPEC_GIT_BIN") or commands.get("git") or "git",
        command_timeout=timeout,
        compile_command=tuple(compile_command),
        temp_prefix=fetch.get("temp_prefix") or "wfspec-git-clone-",
    )


def get_runtime_config() -> RuntimeConfig:
    """Return the runtime configuration, loading it on first use."""
    global _cached_config
    if _cached_config is None:
        _cached_config = _build_config()
        logger.debug("Loaded runtime config: %s", _cached_config)
    return _cached_config


def reset_runtime_config() -> None:
    """Drop the cached configuration so the next call re-reads YAML and env."""
    global _cached_config
    _cached_config = None
