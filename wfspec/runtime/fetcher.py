"""
fetcher.py - Retrieve workflow file bytes for (repo, path, ref).

The API path, the git archive path and the sparse clone path all return the
same bytes for the same (repo, path, ref).

Usage:
    from wfspec.runtime.fetcher import download_workflow_content, fetch_workflow

    data = download_workflow_content("owner/repo", "workflows/ci.md", "v1.0.0")

    resolved = fetch_workflow(parse_workflow_spec("owner/repo/ci@v1"))
    resolved.ref      # concrete ref the bytes were read at
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from wfspec.spec.errors import FetchError
from wfspec.spec.types import WorkflowSpec

from .remote import RemoteRepository, default_remote
from .resolver import VersionResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedContent:
    """Workflow bytes plus the ref they were fetched at."""
    repo: str
    path: str
    ref: str
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


class ContentFetcher:
    """Fetches file content through a RemoteRepository."""

    def __init__(self, remote: Optional[RemoteRepository] = None):
        self.remote = remote if remote is not None else default_remote()

    def fetch(self, repo: str, path: str, ref: str) -> ResolvedContent:
        logger.debug("Fetching %s/%s@%s", repo, path, ref)
        content = self.remote.fetch(repo, path, ref)
        logger.debug("Fetched %d bytes from %s/%s@%s", len(content), repo, path, ref)
        return ResolvedContent(repo=repo, path=path, ref=ref, content=content)


def download_workflow_content(
    repo: str, path: str, ref: str, remote: Optional[RemoteRepository] = None
) -> bytes:
    """Return the raw bytes of `path` in `repo` at `ref`."""
    return ContentFetcher(remote).fetch(repo, path, ref).content


def fetch_workflow(
    spec: WorkflowSpec,
    resolver: Optional[VersionResolver] = None,
    upgrade: bool = False,
    allow_major: bool = False,
) -> ResolvedContent:
    """Fetch the bytes of a remote workflow spec.

    A pinned spec is fetched at its version. An unpinned spec is fetched at
    the default branch head. With `upgrade`, the version is treated as a hint
    and re-resolved (newest compatible release, branch head, ...).

    Raises:
        FetchError: For local or wildcard specs, or when retrieval fails.
        ResolutionError: When no concrete ref can be determined.
    """
    if spec.is_local:
        raise FetchError(f"{spec} is a local workflow; read it from disk instead")
    if spec.is_wildcard:
        raise FetchError(f"{spec} is a wildcard spec and names no single file")

    resolver = resolver or VersionResolver()
    if spec.version and not upgrade:
        ref = spec.version
    else:
        ref = resolver.resolve_ref(spec.repo_slug, spec.version, allow_major=allow_major)
    if ref != spec.version:
        logger.info("Resolved %s to %s", spec, ref)
    return ContentFetcher(resolver.remote).fetch(spec.repo_slug, spec.workflow_path, ref)
