"""
imports.py - Pin a fetched workflow's local imports to its source repository.

A workflow copied out of `owner/repo` keeps `imports: [shared/tools.md]`,
which would then resolve against the wrong repository. Rewriting each local
entry to `owner/repo/<path>@<sha>` keeps the copy self-contained.
"""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Any, Dict

import yaml

from wfspec.spec.errors import FrontmatterError
from wfspec.spec.parser import is_workflow_spec_format
from wfspec.spec.types import WorkflowSpec

from .frontmatter import extract_frontmatter

logger = logging.getLogger(__name__)

_QUOTED_ON_KEY = re.compile(r"^(['\"])on\1:", re.MULTILINE)


def build_workflow_spec_ref(repo_slug: str, path: str, commit_sha: str = "", version: str = "") -> str:
    """`owner/repo/path[@ref]`; a commit SHA takes precedence over a version."""
    ref = commit_sha or version
    spec = f"{repo_slug}/{path}"
    return f"{spec}@{ref}" if ref else spec


def resolve_import_path(import_path: str, workflow_path: str) -> str:
    """Resolve an import to its repository-relative path.

    Workflowspecs are returned unchanged, `/`-prefixed paths are taken from
    the repository root, anything else is relative to the workflow's directory.
    """
    if is_workflow_spec_format(import_path):
        return import_path
    if import_path.startswith("/"):
        return import_path[1:]
    workflow_dir = posixpath.dirname(workflow_path)
    return posixpath.normpath(posixpath.join(workflow_dir, import_path))


def render_workflow_file(frontmatter: Dict[str, Any], markdown: str) -> str:
    """Rebuild a `---` delimited workflow file from its parts."""
    dumped = yaml.safe_dump(
        frontmatter, sort_keys=False, default_flow_style=False, allow_unicode=True
    ).rstrip("\n")
    dumped = _QUOTED_ON_KEY.sub("on:", dumped)

    lines = ["---"]
    if frontmatter:
        lines.extend(dumped.split("\n"))
    lines.append("---")
    if markdown:
        lines.append(markdown)
    return "\n".join(lines)


def process_imports_with_workflow_spec(content: str, spec: WorkflowSpec, commit_sha: str = "") -> str:
    """Rewrite local `imports` entries of `content` into pinned workflowspecs.

    Content without frontmatter, or whose `imports` is missing or not a list,
    is returned unchanged. Non-string entries are dropped.
    """
    logger.debug("Processing imports for %s at %s", spec, commit_sha or spec.version or "HEAD")
    try:
        result = extract_frontmatter(content)
    except FrontmatterError as e:
        logger.debug("Unreadable frontmatter, leaving imports untouched: %s", e)
        return content
    if not result.has_frontmatter:
        return content

    imports = result.frontmatter.get("imports")
    if not isinstance(imports, list):
        if imports is not None:
            logger.debug("imports field is %s, not a list; skipping", type(imports).__name__)
        return content

    rewritten = []
    for entry in imports:
        if not isinstance(entry, str):
            continue
        if is_workflow_spec_format(entry):
            rewritten.append(entry)
            continue
        resolved = resolve_import_path(entry, spec.workflow_path)
        ref = build_workflow_spec_ref(spec.repo_slug, resolved, commit_sha, spec.version)
        logger.debug("Converted import %s -> %s", entry, ref)
        rewritten.append(ref)

    frontmatter = dict(result.frontmatter)
    frontmatter["imports"] = rewritten
    return render_workflow_file(frontmatter, result.markdown)
