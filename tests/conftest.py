"""
Test fixtures for wfspec tests.

Provides an in-memory RemoteRepository, a recording compiler, and helpers to
lay out workflow files with `imports:` frontmatter under tmp_path.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from wfspec.config.runtime_config import reset_runtime_config
from wfspec.runtime.compiler import lock_file_path
from wfspec.runtime.git_plumbing import get_current_repo_slug
from wfspec.spec.errors import FetchError, ResolutionError

SHA_A = "a" * 40
SHA_B = "b" * 40
SHA_C = "c" * 40

_ENV_VARS = (
    "GH_HOST",
    "WFSPEC_GITHUB_HOST",
    "WFSPEC_COMMAND_TIMEOUT",
    "WFSPEC_GH_BIN",
    "WFSPEC_GIT_BIN",
    "WFSPEC_COMPILE_COMMAND",
)


@pytest.fixture(autouse=True)
def clean_runtime_state(monkeypatch):
    """Isolate every test from the caller's environment and cached lookups."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_runtime_config()
    get_current_repo_slug.cache_clear()
    yield
    reset_runtime_config()
    get_current_repo_slug.cache_clear()


# =============================================================================
# Fake remote
# =============================================================================


class FakeRemote:
    """In-memory RemoteRepository that records every call."""

    def __init__(self):
        self.files: Dict[Tuple[str, str, str], bytes] = {}
        self.tags: Dict[str, List[str]] = {}
        self.branches: Dict[Tuple[str, str], str] = {}
        self.default_branches: Dict[str, str] = {}
        self.calls: List[Tuple[str, ...]] = []

    def add_file(self, repo: str, path: str, ref: str, content: bytes) -> None:
        self.files[(repo, path, ref)] = content

    def fetch(self, repo: str, path: str, ref: str) -> bytes:
        self.calls.append(("fetch", repo, path, ref))
        try:
            return self.files[(repo, path, ref)]
        except KeyError:
            raise FetchError(f"{repo}/{path}@{ref} not found") from None

    def list_tags(self, repo: str) -> List[str]:
        self.calls.append(("list_tags", repo))
        return list(self.tags.get(repo, []))

    def resolve_branch_head(self, repo: str, branch: str) -> str:
        self.calls.append(("resolve_branch_head", repo, branch))
        try:
            return self.branches[(repo, branch)]
        except KeyError:
            raise ResolutionError(f"branch {branch} not found in {repo}") from None

    def resolve_default_branch_head(self, repo: str) -> str:
        self.calls.append(("resolve_default_branch_head", repo))
        branch = self.default_branches.get(repo, "main")
        return self.resolve_branch_head(repo, branch)

    def resolve_ref_to_sha(self, repo: str, ref: str) -> str:
        self.calls.append(("resolve_ref_to_sha", repo, ref))
        if (repo, ref) in self.branches:
            return self.branches[(repo, ref)]
        raise ResolutionError(f"no matching ref found for {ref} in {repo}")


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()


# =============================================================================
# Fake compiler and workflow trees
# =============================================================================


class FakeCompiler:
    """Records compiled paths; writes a lock file unless told not to."""

    def __init__(self, write_lock: bool = True):
        self.write_lock = write_lock
        self.compiled: List[Path] = []

    def compile(self, workflow_path: Path) -> None:
        self.compiled.append(workflow_path)
        if self.write_lock:
            lock_file_path(workflow_path).write_text("# compiled\n", encoding="utf-8")


@pytest.fixture
def fake_compiler() -> FakeCompiler:
    return FakeCompiler()


def write_workflow(
    root: Path,
    rel_path: str,
    imports: Optional[Sequence[object]] = None,
    body: str = "# Workflow\n",
    extra_frontmatter: str = "",
) -> Path:
    """Write a markdown workflow with optional `imports:` frontmatter."""
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = ["---", "on: push"]
    if extra_frontmatter:
        lines.append(extra_frontmatter.rstrip("\n"))
    if imports is not None:
        lines.append("imports:")
        for entry in imports:
            if isinstance(entry, dict):
                lines.append(f"  - path: {entry['path']}")
            else:
                lines.append(f"  - {entry}")
    lines.append("---")
    path.write_text("\n".join(lines) + "\n" + body, encoding="utf-8")
    return path


@pytest.fixture
def workflow_root(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    return root
