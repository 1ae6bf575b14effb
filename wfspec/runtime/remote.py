"""
remote.py - Remote repository access through the GitHub API and git plumbing.

Two interchangeable implementations of the RemoteRepository protocol:

- GitHubApiRemote: `gh api` calls, JSON responses validated with pydantic.
- GitPlumbingRemote: `git ls-remote`, `git archive --remote`, and a throwaway
  sparse shallow clone when remote archive is disabled on the server.

FallbackRemote composes them: the API is tried first and git plumbing is used
only when the API failure looks like an authentication problem. Any other
failure (404, bad ref, ...) propagates unchanged.

Usage:
    from wfspec.runtime.remote import default_remote

    remote = default_remote()
    content = remote.fetch("owner/repo", "workflows/ci.md", "v1.0.0")
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import tarfile
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Type, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, Field, ValidationError

from wfspec.config.runtime_config import RuntimeConfig, get_runtime_config
from wfspec.spec.errors import CommandError, FetchError, ResolutionError, SpecError
from wfspec.spec.versions import is_commit_sha

from .commands import CommandResult, run_gh, run_git
from .git_plumbing import parse_ls_remote_refs, parse_ls_remote_tags, parse_symref_head

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

# Lower-cased fragments of gh/git output that indicate missing or rejected
# credentials rather than a missing resource.
AUTH_ERROR_PATTERNS = (
    "gh_token",
    "github_token",
    "gh auth login",
    "authentication",
    "bad credentials",
    "not logged into",
    "not logged in",
    "unauthorized",
    "http 401",
    "forbidden",
    "permission denied",
    "saml enforcement",
)


def is_auth_error(text: str) -> bool:
    """Classify gh/git error text as an authentication failure."""
    lowered = (text or "").lower()
    return any(pattern in lowered for pattern in AUTH_ERROR_PATTERNS)


def _error_text(error: BaseException) -> str:
    parts = [str(error)]
    output = getattr(error, "output", "")
    if output:
        parts.append(output)
    if error.__cause__ is not None:
        parts.append(_error_text(error.__cause__))
    return "\n".join(parts)


def is_auth_failure(error: BaseException) -> bool:
    """True when an exception (or its cause chain) reads like an auth failure."""
    return is_auth_error(_error_text(error))


class RemoteRepository(Protocol):
    """Capability to read refs and files from a remote repository."""

    def fetch(self, repo: str, path: str, ref: str) -> bytes: ...

    def list_tags(self, repo: str) -> List[str]: ...

    def resolve_branch_head(self, repo: str, branch: str) -> str: ...

    def resolve_default_branch_head(self, repo: str) -> str: ...

    def resolve_ref_to_sha(self, repo: str, ref: str) -> str: ...


# =============================================================================
# GitHub API responses
# =============================================================================


class ContentsResponse(BaseModel):
    """Response of GET /repos/{repo}/contents/{path}."""

    content: str = Field(default="")
    encoding: str = Field(default="base64")
    name: str = Field(default="")
    type: str = Field(default="file")


class CommitRef(BaseModel):
    sha: str


class BranchResponse(BaseModel):
    """Response of GET /repos/{repo}/branches/{branch}."""

    name: str
    commit: CommitRef


class RepositoryResponse(BaseModel):
    """Response of GET /repos/{repo}."""

    full_name: str = Field(default="")
    default_branch: str


class CommitResponse(BaseModel):
    """Response of GET /repos/{repo}/commits/{ref}."""

    sha: str


# =============================================================================
# GitHub API implementation
# =============================================================================


class GitHubApiRemote:
    """RemoteRepository backed by `gh api`."""

    def _get(self, endpoint: str, model: Type[M], error_cls: Type[SpecError]) -> M:
        try:
            result = run_gh(["api", endpoint])
        except CommandError as e:
            raise error_cls(f"GitHub API request {endpoint} failed: {e}") from e
        try:
            return model.model_validate_json(result.stdout)
        except ValidationError as e:
            raise error_cls(f"unexpected response from {endpoint}: {e}") from e

    def fetch(self, repo: str, path: str, ref: str) -> bytes:
        endpoint = f"/repos/{repo}/contents/{quote(path)}"
        if ref:
            endpoint += f"?ref={quote(ref, safe='')}"
        logger.debug("Fetching %s/%s@%s via GitHub API", repo, path, ref)
        response = self._get(endpoint, ContentsResponse, FetchError)
        if response.type != "file":
            raise FetchError(f"{repo}/{path}@{ref} is a {response.type}, not a file")
        # Files over 1 MB come back with encoding "none" and no content
        if response.encoding != "base64":
            raise FetchError(f"unsupported content encoding '{response.encoding}' for {repo}/{path}")
        try:
            return base64.b64decode(response.content)
        except (binascii.Error, ValueError) as e:
            raise FetchError(f"failed to decode file content: {e}") from e

    def list_tags(self, repo: str) -> List[str]:
        try:
            result = run_gh(["api", "--paginate", f"/repos/{repo}/tags", "--jq", ".[].name"])
        except CommandError as e:
            raise ResolutionError(f"failed to list tags for {repo}: {e}") from e
        return [line.strip() for line in result.text.splitlines() if line.strip()]

    def resolve_branch_head(self, repo: str, branch: str) -> str:
        endpoint = f"/repos/{repo}/branches/{quote(branch, safe='')}"
        response = self._get(endpoint, BranchResponse, ResolutionError)
        logger.debug("Latest commit on %s in %s: %s", branch, repo, response.commit.sha)
        return response.commit.sha

    def resolve_default_branch_head(self, repo: str) -> str:
        response = self._get(f"/repos/{repo}", RepositoryResponse, ResolutionError)
        logger.debug("Default branch of %s: %s", repo, response.default_branch)
        return self.resolve_branch_head(repo, response.default_branch)

    def resolve_ref_to_sha(self, repo: str, ref: str) -> str:
        if is_commit_sha(ref):
            return ref
        endpoint = f"/repos/{repo}/commits/{quote(ref, safe='')}"
        response = self._get(endpoint, CommitResponse, ResolutionError)
        if not is_commit_sha(response.sha):
            raise ResolutionError(f"invalid SHA format returned: {response.sha}")
        return response.sha


# =============================================================================
# Git plumbing implementation
# =============================================================================


class GitPlumbingRemote:
    """RemoteRepository backed by the `git` binary; needs no API credentials."""

    def __init__(self, config: Optional[RuntimeConfig] = None):
        self._config = config

    @property
    def config(self) -> RuntimeConfig:
        return self._config or get_runtime_config()

    def _ls_remote(
        self, repo: str, options: Sequence[str] = (), patterns: Sequence[str] = ()
    ) -> CommandResult:
        url = self.config.repo_url(repo)
        try:
            return run_git(["ls-remote", *options, url, *patterns])
        except CommandError as e:
            raise ResolutionError(f"git ls-remote failed for {repo}: {e}") from e

    def list_tags(self, repo: str) -> List[str]:
        result = self._ls_remote(repo, options=["--tags"])
        return parse_ls_remote_tags(result.text)

    def resolve_branch_head(self, repo: str, branch: str) -> str:
        ref = f"refs/heads/{branch}"
        result = self._ls_remote(repo, options=["--heads"], patterns=[ref])
        for sha, name in parse_ls_remote_refs(result.text):
            if name == ref:
                logger.debug("Latest commit on %s in %s: %s (via git)", branch, repo, sha)
                return sha
        raise ResolutionError(f"branch {branch} not found in {repo}")

    def resolve_default_branch_head(self, repo: str) -> str:
        result = self._ls_remote(repo, options=["--symref"], patterns=["HEAD"])
        branch, sha = parse_symref_head(result.text)
        logger.debug("Default branch of %s: %s at %s (via git)", repo, branch, sha)
        return sha

    def resolve_ref_to_sha(self, repo: str, ref: str) -> str:
        if is_commit_sha(ref):
            return ref
        for candidate in (ref, f"refs/heads/{ref}", f"refs/tags/{ref}"):
            result = self._ls_remote(repo, patterns=[candidate])
            refs = parse_ls_remote_refs(result.text)
            if not refs:
                continue
            # Annotated tags: prefer the peeled commit over the tag object
            for sha, name in refs:
                if name.endswith("^{}"):
                    return sha
            sha = refs[0][0]
            if not is_commit_sha(sha):
                raise ResolutionError(f"invalid SHA format from git ls-remote: {sha}")
            return sha
        raise ResolutionError(f"no matching ref found for {ref} in {repo}")

    def fetch(self, repo: str, path: str, ref: str) -> bytes:
        logger.debug("Fetching %s/%s@%s via git archive", repo, path, ref)
        url = self.config.repo_url(repo)
        try:
            result = run_git(["archive", f"--remote={url}", ref, path])
        except CommandError as e:
            logger.info("git archive unavailable for %s (%s), using sparse clone", repo, e)
            return self.fetch_via_clone(repo, path, ref)
        return extract_from_tar(result.stdout, path)

    def fetch_via_clone(self, repo: str, path: str, ref: str) -> bytes:
        """Fetch one file through a temporary sparse, shallow checkout."""
        logger.debug("Fetching %s/%s@%s via sparse clone", repo, path, ref)
        url = self.config.repo_url(repo)
        with tempfile.TemporaryDirectory(prefix=self.config.temp_prefix) as tmp:
            tmp_dir = Path(tmp)
            try:
                run_git(["-C", tmp, "init", "--quiet"])
                run_git(["-C", tmp, "remote", "add", "origin", url])
                run_git(["-C", tmp, "config", "core.sparseCheckout", "true"])
                info_dir = tmp_dir / ".git" / "info"
                info_dir.mkdir(parents=True, exist_ok=True)
                (info_dir / "sparse-checkout").write_text(path + "\n", encoding="utf-8")

                if is_commit_sha(ref):
                    fetched = run_git(
                        ["-C", tmp, "fetch", "--depth", "1", "origin", ref], check=False
                    )
                    if not fetched.ok:
                        logger.debug("SHA fetch refused for %s, fetching all refs", ref)
                        run_git(["-C", tmp, "fetch", "--depth", "1", "origin"])
                    run_git(["-C", tmp, "checkout", "--quiet", ref])
                else:
                    run_git(["-C", tmp, "fetch", "--depth", "1", "origin", ref])
                    run_git(["-C", tmp, "checkout", "--quiet", "FETCH_HEAD"])
            except CommandError as e:
                raise FetchError(f"failed to fetch {repo}@{ref} via git clone: {e}") from e

            target = (tmp_dir / path).resolve()
            if tmp_dir.resolve() not in target.parents:
                raise FetchError(f"refusing to read path outside repository: {path}")
            if not target.is_file():
                raise FetchError(f"{path} not found in {repo}@{ref}")
            return target.read_bytes()


def extract_from_tar(archive: bytes, path: str) -> bytes:
    """Return the bytes of `path` from a tar stream produced by git archive."""
    try:
        with tarfile.open(fileobj=io.BytesIO(archive), mode="r:*") as tar:
            member = tar.getmember(path)
            extracted = tar.extractfile(member)
            if extracted is None:
                raise FetchError(f"{path} in git archive is not a regular file")
            return extracted.read()
    except (tarfile.TarError, KeyError) as e:
        raise FetchError(f"failed to extract file from git archive: {e}") from e


# =============================================================================
# Fallback composition
# =============================================================================


class FallbackRemote:
    """Try `primary`; on an authentication failure only, retry on `fallback`."""

    def __init__(
        self,
        primary: RemoteRepository,
        fallback: RemoteRepository,
        should_fallback: Callable[[BaseException], bool] = is_auth_failure,
    ):
        self.primary = primary
        self.fallback = fallback
        self.should_fallback = should_fallback

    def _call(
        self,
        what: str,
        primary: Callable[[], T],
        fallback: Callable[[], T],
        error_cls: Type[SpecError],
    ) -> T:
        try:
            return primary()
        except SpecError as api_error:
            if not self.should_fallback(api_error):
                raise
            logger.warning(
                "GitHub API authentication failed, attempting git fallback to %s", what
            )
            try:
                return fallback()
            except SpecError as git_error:
                raise error_cls(
                    f"failed to {what} via GitHub API and git: "
                    f"API error: {api_error}, Git error: {git_error}"
                ) from git_error

    def fetch(self, repo: str, path: str, ref: str) -> bytes:
        return self._call(
            f"fetch {repo}/{path}@{ref}",
            lambda: self.primary.fetch(repo, path, ref),
            lambda: self.fallback.fetch(repo, path, ref),
            FetchError,
        )

    def list_tags(self, repo: str) -> List[str]:
        return self._call(
            f"list tags of {repo}",
            lambda: self.primary.list_tags(repo),
            lambda: self.fallback.list_tags(repo),
            ResolutionError,
        )

    def resolve_branch_head(self, repo: str, branch: str) -> str:
        return self._call(
            f"resolve branch {branch} of {repo}",
            lambda: self.primary.resolve_branch_head(repo, branch),
            lambda: self.fallback.resolve_branch_head(repo, branch),
            ResolutionError,
        )

    def resolve_default_branch_head(self, repo: str) -> str:
        return self._call(
            f"resolve default branch of {repo}",
            lambda: self.primary.resolve_default_branch_head(repo),
            lambda: self.fallback.resolve_default_branch_head(repo),
            ResolutionError,
        )

    def resolve_ref_to_sha(self, repo: str, ref: str) -> str:
        return self._call(
            f"resolve {ref} of {repo}",
            lambda: self.primary.resolve_ref_to_sha(repo, ref),
            lambda: self.fallback.resolve_ref_to_sha(repo, ref),
            ResolutionError,
        )


def default_remote() -> FallbackRemote:
    """GitHub API first, git plumbing on authentication failures."""
    return FallbackRemote(GitHubApiRemote(), GitPlumbingRemote())
