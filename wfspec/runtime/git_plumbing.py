"""
git_plumbing.py - Local repository lookups and `git ls-remote` parsing.

Usage:
    from wfspec.runtime.git_plumbing import find_git_root, get_current_repo_slug

    root = find_git_root()
    slug = get_current_repo_slug()  # "owner/repo" from remote.origin.url
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from wfspec.config.runtime_config import get_runtime_config, normalize_github_host
from wfspec.spec.errors import CommandError, ResolutionError

from .commands import run_git

logger = logging.getLogger(__name__)

PEELED_SUFFIX = "^{}"


def find_git_root(cwd: Optional[Path] = None) -> Path:
    """Return the top-level directory of the git repository containing `cwd`.

    Raises:
        ResolutionError: If `cwd` is not inside a git repository.
    """
    try:
        result = run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    except CommandError as e:
        raise ResolutionError(f"not in a git repository or git command failed: {e}") from e
    root = Path(result.text.strip())
    logger.debug("Found git root: %s", root)
    return root


def parse_github_repo_slug_from_url(url: str, github_host: Optional[str] = None) -> str:
    """Extract `owner/repo` from an HTTPS or SSH remote URL.

    Returns an empty string for URLs that do not point at `github_host`.
    """
    host = normalize_github_host(github_host or get_runtime_config().github_host)
    bare_host = host.split("://", 1)[1]
    url = url.strip()
    if url.endswith(".git"):
        url = url[: -len(".git")]

    for prefix in (f"https://{bare_host}/", f"http://{bare_host}/", f"ssh://git@{bare_host}/"):
        if url.startswith(prefix):
            return url[len(prefix):].strip("/")
    ssh_prefix = f"git@{bare_host}:"
    if url.startswith(ssh_prefix):
        return url[len(ssh_prefix):].strip("/")
    return ""


@functools.lru_cache(maxsize=1)
def get_current_repo_slug() -> str:
    """Return `owner/repo` for the current repository's origin remote.

    The result is memoized for the lifetime of the process.

    Raises:
        ResolutionError: If there is no origin remote or it is not on GitHub.
    """
    try:
        result = run_git(["config", "--get", "remote.origin.url"])
    except CommandError as e:
        raise ResolutionError(f"failed to read remote.origin.url: {e}") from e
    slug = parse_github_repo_slug_from_url(result.text)
    if not slug or slug.count("/") != 1:
        raise ResolutionError(
            f"remote.origin.url does not point at a GitHub repository: {result.text.strip()}"
        )
    logger.debug("Current repository slug: %s", slug)
    return slug


def parse_ls_remote_refs(output: str) -> List[Tuple[str, str]]:
    """Parse `<sha>\\t<ref>` lines from `git ls-remote`."""
    refs: List[Tuple[str, str]] = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2 and not line.startswith("ref:"):
            refs.append((parts[0], parts[1]))
    return refs


def parse_ls_remote_tags(output: str) -> List[str]:
    """Return tag names from `git ls-remote --tags`, without peeled entries."""
    tags: List[str] = []
    for _sha, ref in parse_ls_remote_refs(output):
        if ref.endswith(PEELED_SUFFIX):
            continue
        tags.append(ref[len("refs/tags/"):] if ref.startswith("refs/tags/") else ref)
    return tags


def parse_symref_head(output: str) -> Tuple[str, str]:
    """Parse `git ls-remote --symref <url> HEAD` into (branch, sha).

    Expected output:
        ref: refs/heads/main\\tHEAD
        <sha>\\tHEAD

    Raises:
        ResolutionError: If either the branch or the SHA is missing.
    """
    branch = ""
    sha = ""
    for line in output.splitlines():
        parts = line.split()
        if not parts:
            continue
        if parts[0] == "ref:":
            if len(parts) >= 2:
                ref = parts[1]
                branch = ref[len("refs/heads/"):] if ref.startswith("refs/heads/") else ref
        elif not sha:
            sha = parts[0]
    if not branch or not sha:
        raise ResolutionError(
            "failed to parse default branch or SHA from git ls-remote output"
        )
    return branch, sha
