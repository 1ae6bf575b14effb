"""
frontmatter.py - YAML frontmatter extraction for markdown workflows.

A workflow file optionally starts with a `---` delimited YAML block:

    ---
    on: push
    imports:
      - shared/tools.md
    ---
    # Body
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from wfspec.spec.errors import FrontmatterError

logger = logging.getLogger(__name__)

DELIMITER = "---"
LOCK_HASH_PREFIX = "# frontmatter-hash: "


@dataclass
class FrontmatterResult:
    """Parsed frontmatter plus the markdown body that follows it."""
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    markdown: str = ""
    start_line: int = 0  # 1-based line of the first YAML line, 0 if absent

    @property
    def has_frontmatter(self) -> bool:
        return self.start_line > 0


def extract_frontmatter(content: str) -> FrontmatterResult:
    """Split `content` into frontmatter mapping and markdown body.

    Content without a leading `---` line has empty frontmatter.

    Raises:
        FrontmatterError: If the block is not closed, is not valid YAML, or
            is not a mapping.
    """
    lines = content.split("\n")
    if not lines or lines[0].strip() != DELIMITER:
        return FrontmatterResult(frontmatter={}, markdown=content)

    end_index = -1
    for i in range(1, len(lines)):
        if lines[i].strip() == DELIMITER:
            end_index = i
            break
    if end_index == -1:
        raise FrontmatterError("frontmatter not properly closed")

    # U+00A0 breaks the YAML scanner
    frontmatter_yaml = "\n".join(lines[1:end_index]).replace("\u00a0", " ")
    try:
        data = yaml.safe_load(frontmatter_yaml)
    except yaml.YAMLError as e:
        raise FrontmatterError(f"failed to parse frontmatter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"frontmatter must be a mapping, got {type(data).__name__}"
        )
    # YAML 1.1 reads a bare `on:` key as boolean true
    data = {("on" if key is True else key): value for key, value in data.items()}

    return FrontmatterResult(
        frontmatter=data,
        markdown="\n".join(lines[end_index + 1:]),
        start_line=2,
    )


def read_frontmatter(path: Union[str, Path]) -> FrontmatterResult:
    """Read a file and extract its frontmatter."""
    return extract_frontmatter(Path(path).read_text(encoding="utf-8"))


def compute_frontmatter_hash(path: Union[str, Path]) -> str:
    """SHA-256 over the canonical JSON form of a file's frontmatter."""
    result = read_frontmatter(path)
    canonical = json.dumps(
        result.frontmatter, sort_keys=True, separators=(",", ":"), default=str
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def extract_hash_from_lock_file(content: str) -> str:
    """Return the `# frontmatter-hash:` header value, or "" if absent."""
    for line in content.split("\n"):
        if line.startswith(LOCK_HASH_PREFIX):
            return line[len(LOCK_HASH_PREFIX):].strip()
    return ""
