"""Utility helpers for working with files and identifiers."""

from __future__ import annotations

import fnmatch
import hashlib
from pathlib import Path
from typing import Iterable, Iterator, Sequence

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    ".git/*",
    ".obsidian/*",
    "node_modules/*",
    "*.tmp.md",
)


def is_ignored(path: Path, root: Path, patterns: Sequence[str]) -> bool:
    """Return True when ``path`` (relative to ``root``) matches an ignore pattern."""
    try:
        relative = path.relative_to(root).as_posix()
    except ValueError:
        relative = path.as_posix()
    for pattern in patterns:
        if fnmatch.fnmatch(relative, pattern) or fnmatch.fnmatch(relative, f"*/{pattern}"):
            return True
    return False


def iter_markdown_paths(
    inputs: Iterable[Path],
    ignore_patterns: Sequence[str] = DEFAULT_IGNORE_PATTERNS,
) -> Iterator[Path]:
    """Yield Markdown paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            for child in sorted(item.rglob("*.md")):
                if child.is_file() and not is_ignored(child, item, ignore_patterns):
                    yield child
        elif item.is_file() and item.suffix.lower() == ".md":
            yield item


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def path_digest(value: str) -> str:
    """Short, stable digest of a document path used to build chunk ids."""
    return hashlib.sha1(value.encode("utf-8")).hexdigest()[:16]
