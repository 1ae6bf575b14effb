"""
collector.py - Transitive import closure of a local workflow.

Starting from an entry workflow, the collector recompiles its lock file, then
follows `imports:` frontmatter entries depth-first and returns every file a
push or publish step needs, sorted for stable output.

Traversal state lives in a caller-owned ResolutionContext. The walk is
single-threaded: `files` and `visited` are plain sets and must be guarded
(or sharded per subtree) before the walk is parallelized.

Usage:
    from wfspec.runtime.collector import collect_workflow_files

    files = collect_workflow_files(".github/workflows/ci.md")
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Set, Union

from wfspec.spec.errors import (
    CollectionCancelled,
    CollectionError,
    FrontmatterError,
    ResolutionError,
)
from wfspec.spec.parser import is_workflow_spec_format

from .compiler import CommandCompiler, WorkflowCompiler, lock_file_path
from .frontmatter import compute_frontmatter_hash, extract_frontmatter, extract_hash_from_lock_file
from .git_plumbing import find_git_root

logger = logging.getLogger(__name__)


@dataclass
class ResolutionContext:
    """Mutable traversal state for one collection.

    Attributes:
        files: Absolute paths collected so far.
        visited: Absolute paths whose imports have been processed.
        cancel_event: When set, collection stops before the next file.
        git_root: Root for `/`-prefixed imports; looked up lazily if None.
    """

    files: Set[str] = field(default_factory=set)
    visited: Set[str] = field(default_factory=set)
    cancel_event: Optional[threading.Event] = None
    git_root: Optional[Path] = None

    def check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise CollectionCancelled("workflow file collection cancelled")

    def repo_root(self) -> Path:
        if self.git_root is None:
            self.git_root = find_git_root()
        return self.git_root

    def sorted_files(self) -> List[str]:
        return sorted(self.files)


@dataclass(frozen=True)
class LockFileStatus:
    """Whether a workflow's lock file is missing or stale."""
    lock_path: Path
    missing: bool = False
    outdated: bool = False


def check_lock_file_status(workflow_path: Union[str, Path]) -> LockFileStatus:
    """Compare the lock file's frontmatter hash against the workflow's.

    Informational only: collection recompiles regardless of the result. A
    hash that cannot be computed counts as outdated.
    """
    abs_path = Path(os.path.abspath(workflow_path))
    lock_path = lock_file_path(abs_path)
    if not lock_path.exists():
        return LockFileStatus(lock_path=lock_path, missing=True)

    try:
        existing = extract_hash_from_lock_file(lock_path.read_text(encoding="utf-8"))
        current = compute_frontmatter_hash(abs_path)
    except (OSError, UnicodeDecodeError, FrontmatterError) as e:
        logger.debug("Could not compare frontmatter hash for %s: %s", abs_path, e)
        return LockFileStatus(lock_path=lock_path, outdated=True)

    if not existing:
        logger.debug("No frontmatter-hash found in %s", lock_path)
        return LockFileStatus(lock_path=lock_path, outdated=True)
    return LockFileStatus(lock_path=lock_path, outdated=existing != current)


def collect_workflow_files(
    workflow_path: Union[str, Path],
    compiler: Optional[WorkflowCompiler] = None,
    context: Optional[ResolutionContext] = None,
) -> List[str]:
    """Collect the workflow, its lock file, and all transitively imported files.

    The lock file is always recompiled first; the hash comparison is only
    logged.

    Returns:
        Sorted absolute paths.

    Raises:
        CollectionError: If compilation fails or the entry cannot be read.
        CollectionCancelled: If the context's cancel event is set.
    """
    ctx = context if context is not None else ResolutionContext()
    compiler = compiler if compiler is not None else CommandCompiler()

    abs_path = os.path.abspath(workflow_path)
    if not os.path.isfile(abs_path):
        raise CollectionError(f"workflow file not found: {abs_path}")
    logger.debug("Collecting files for workflow: %s", abs_path)
    ctx.check_cancelled()

    status = check_lock_file_status(abs_path)
    if status.missing:
        logger.info("Lock file not found, compiling %s", abs_path)
    elif status.outdated:
        logger.warning("Lock file %s is stale, recompiling", status.lock_path)
    else:
        logger.debug("Lock file hash unchanged (will still recompile): %s", status.lock_path)

    compiler.compile(Path(abs_path))

    ctx.files.add(abs_path)
    if status.lock_path.exists():
        ctx.files.add(str(status.lock_path))
    else:
        logger.warning("Lock file not found after compilation: %s", status.lock_path)

    collect_imports(abs_path, ctx)

    result = ctx.sorted_files()
    logger.info("Collected %d files for %s", len(result), abs_path)
    return result


def parse_imports_field(value: Any, source: str = "") -> List[str]:
    """Normalize an `imports:` value into a list of path strings.

    Accepts a list of strings and/or `{path: ...}` mappings. Other shapes are
    logged and ignored.
    """
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning("Ignoring imports in %s: expected a list, got %s", source, type(value).__name__)
        return []

    imports: List[str] = []
    for i, item in enumerate(value):
        if isinstance(item, str):
            imports.append(item)
        elif isinstance(item, dict):
            path = item.get("path")
            if isinstance(path, str):
                imports.append(path)
            else:
                logger.warning("Ignoring import %d in %s: object has no string 'path'", i, source)
        else:
            logger.warning("Ignoring import %d in %s: unsupported type %s", i, source, type(item).__name__)
    return imports


def resolve_local_import(import_path: str, base_dir: str, ctx: ResolutionContext) -> Optional[str]:
    """Resolve an import entry to an absolute path, or None to skip it."""
    path = import_path.split("#", 1)[0]
    if not path:
        return None
    if is_workflow_spec_format(path):
        logger.debug("Skipping workflowspec import: %s", import_path)
        return None
    if path.startswith("/"):
        try:
            root = ctx.repo_root()
        except ResolutionError as e:
            logger.warning("Cannot resolve %s against the repository root: %s", import_path, e)
            return None
        return os.path.normpath(os.path.join(str(root), path.lstrip("/")))
    return os.path.normpath(os.path.join(base_dir, path))


def collect_imports(
    workflow_path: str, ctx: ResolutionContext, imported_by: Optional[str] = None
) -> None:
    """Add every file imported (transitively) by `workflow_path` to ctx.files.

    An unreadable entry raises CollectionError. An imported file that is not
    valid UTF-8 is kept but its own imports are skipped.
    """
    if workflow_path in ctx.visited:
        logger.debug("Skipping already visited file: %s", workflow_path)
        return
    ctx.check_cancelled()
    ctx.visited.add(workflow_path)

    try:
        content = Path(workflow_path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        if imported_by is None:
            raise CollectionError(f"workflow file {workflow_path} is not valid UTF-8: {e}") from e
        logger.warning(
            "Skipping imports of %s (imported by %s): not valid UTF-8", workflow_path, imported_by
        )
        return
    except OSError as e:
        raise CollectionError(f"failed to read workflow file {workflow_path}: {e}") from e

    try:
        result = extract_frontmatter(content)
    except FrontmatterError as e:
        logger.debug("No usable frontmatter in %s, skipping imports: %s", workflow_path, e)
        return

    imports = parse_imports_field(result.frontmatter.get("imports"), workflow_path)
    base_dir = os.path.dirname(workflow_path)
    for import_path in imports:
        resolved = resolve_local_import(import_path, base_dir, ctx)
        if resolved is None:
            continue
        if not os.path.isfile(resolved):
            logger.warning("Import file not found: %s (imported by %s)", resolved, workflow_path)
            continue
        ctx.files.add(resolved)
        collect_imports(resolved, ctx, imported_by=workflow_path)
