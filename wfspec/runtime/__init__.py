# wfspec/runtime package
# Talks to the outside world: git, gh, the filesystem and the workflow compiler.
#
# Core components:
#   - remote: RemoteRepository protocol, GitHub API and git plumbing backends
#   - resolver: VersionResolver (ref hint -> concrete ref)
#   - fetcher: ContentFetcher, fetch_workflow
#   - collector: local import closure for push/publish
#
# Usage:
#     from wfspec.runtime import fetch_workflow, collect_workflow_files
#     content = fetch_workflow(spec).content
#     files = collect_workflow_files(".github/workflows/ci.md")

from .remote import (
    RemoteRepository,
    GitHubApiRemote,
    GitPlumbingRemote,
    FallbackRemote,
    default_remote,
    is_auth_error,
)
from .resolver import VersionResolver, resolve_latest_release_via_git
from .fetcher import (
    ContentFetcher,
    ResolvedContent,
    download_workflow_content,
    fetch_workflow,
)
from .collector import (
    LockFileStatus,
    ResolutionContext,
    check_lock_file_status,
    collect_imports,
    collect_workflow_files,
)
from .compiler import CommandCompiler, WorkflowCompiler, lock_file_path
from .imports import process_imports_with_workflow_spec

__all__ = [
    # Remote access
    "RemoteRepository",
    "GitHubApiRemote",
    "GitPlumbingRemote",
    "FallbackRemote",
    "default_remote",
    "is_auth_error",
    # Resolution
    "VersionResolver",
    "resolve_latest_release_via_git",
    # Fetch
    "ContentFetcher",
    "ResolvedContent",
    "download_workflow_content",
    "fetch_workflow",
    # Collection
    "LockFileStatus",
    "ResolutionContext",
    "check_lock_file_status",
    "collect_imports",
    "collect_workflow_files",
    "CommandCompiler",
    "WorkflowCompiler",
    "lock_file_path",
    "process_imports_with_workflow_spec",
]
