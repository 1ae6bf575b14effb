"""
wfspec/spec - Workflow spec value types and parsing.

Usage:
    from wfspec.spec import (
        parse_workflow_spec,
        parse_repo_spec,
        parse_version,
        WorkflowSpec,
        SpecParseError,
    )

    spec = parse_workflow_spec("githubnext/agentics/ci-doctor@v1.0.0")
    spec.workflow_path   # "workflows/ci-doctor.md"
"""

from .types import (
    RepoSpec,
    WorkflowSpec,
    SourceSpec,
    SemanticVersion,
)

from .errors import (
    SpecError,
    SpecParseError,
    ResolutionError,
    FetchError,
    CommandError,
    FrontmatterError,
    CollectionError,
    CollectionCancelled,
)

from .parser import (
    is_valid_github_identifier,
    normalize_workflow_id,
    is_repo_only_spec,
    parse_repo_spec,
    parse_github_url,
    parse_workflow_spec,
    is_workflow_spec_format,
    parse_source_spec,
    build_source_string,
    build_source_string_with_commit_sha,
)

from .versions import (
    is_commit_sha,
    parse_version,
    select_latest_release,
)

__all__ = [
    # Types
    "RepoSpec",
    "WorkflowSpec",
    "SourceSpec",
    "SemanticVersion",
    # Errors
    "SpecError",
    "SpecParseError",
    "ResolutionError",
    "FetchError",
    "CommandError",
    "FrontmatterError",
    "CollectionError",
    "CollectionCancelled",
    # Parser
    "is_valid_github_identifier",
    "normalize_workflow_id",
    "is_repo_only_spec",
    "parse_repo_spec",
    "parse_github_url",
    "parse_workflow_spec",
    "is_workflow_spec_format",
    "parse_source_spec",
    "build_source_string",
    "build_source_string_with_commit_sha",
    # Versions
    "is_commit_sha",
    "parse_version",
    "select_latest_release",
]
