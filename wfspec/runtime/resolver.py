"""
resolver.py - Decide the concrete ref for a remote workflow spec.

Given a repository and a ref hint, VersionResolver returns:
- the hint itself when it is a full commit SHA,
- the default branch head when the hint is empty,
- the newest compatible release tag when the hint is a semantic version,
- the branch head otherwise.
"""

from __future__ import annotations

import logging
from typing import Optional

from wfspec.spec.versions import is_commit_sha, parse_version, select_latest_release

from .remote import GitPlumbingRemote, RemoteRepository, default_remote

logger = logging.getLogger(__name__)


def resolve_latest_release_via_git(
    repo: str, current_ref: str, allow_major: bool = False
) -> str:
    """Pick the newest compatible tag from `git ls-remote --tags`.

    Raises:
        ResolutionError: "no releases found" / "no compatible release found".
    """
    logger.debug(
        "Fetching latest release for %s via git ls-remote (current: %s, allow major: %s)",
        repo,
        current_ref,
        allow_major,
    )
    tags = GitPlumbingRemote().list_tags(repo)
    return select_latest_release(tags, current_ref, allow_major)


class VersionResolver:
    """Resolves ref hints against a RemoteRepository."""

    def __init__(self, remote: Optional[RemoteRepository] = None):
        self.remote = remote if remote is not None else default_remote()

    def resolve_latest_release(
        self, repo: str, current_ref: str, allow_major: bool = False
    ) -> str:
        tags = self.remote.list_tags(repo)
        release = select_latest_release(tags, current_ref, allow_major)
        logger.info("Latest compatible release of %s for %s: %s", repo, current_ref, release)
        return release

    def resolve_branch_head(self, repo: str, branch: str) -> str:
        return self.remote.resolve_branch_head(repo, branch)

    def resolve_default_branch_head(self, repo: str) -> str:
        return self.remote.resolve_default_branch_head(repo)

    def resolve_ref_to_sha(self, repo: str, ref: str) -> str:
        if is_commit_sha(ref):
            return ref
        return self.remote.resolve_ref_to_sha(repo, ref)

    def resolve_ref(self, repo: str, version: str, allow_major: bool = False) -> str:
        """Return the concrete ref to fetch `repo` at, given a version hint."""
        if not version:
            sha = self.resolve_default_branch_head(repo)
            logger.debug("Unpinned %s resolved to default branch head %s", repo, sha)
            return sha
        if is_commit_sha(version):
            return version
        if parse_version(version) is not None:
            return self.resolve_latest_release(repo, version, allow_major)
        return self.resolve_branch_head(repo, version)
