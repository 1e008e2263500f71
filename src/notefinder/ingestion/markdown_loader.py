"""Markdown loading utilities.

Turns note files into :class:`~notefinder.models.Document` records. YAML front
matter is parsed with PyYAML and stripped from the searchable text.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict

import yaml

from notefinder.models import Document

LOGGER = logging.getLogger(__name__)

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_HEADING = re.compile(r"^#[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)


def split_front_matter(text: str) -> tuple[Dict[str, Any], str]:
    """Return ``(front_matter, body)``; unparsable front matter is left in the body."""
    match = _FRONT_MATTER.match(text)
    if not match:
        return {}, text

    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        LOGGER.warning("Ignoring invalid front matter: %s", exc)
        return {}, text

    if not isinstance(data, dict):
        return {}, text
    return data, text[match.end():]


def extract_title(front_matter: Dict[str, Any], body: str, path: Path) -> str:
    title = front_matter.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()

    heading = _HEADING.search(body)
    if heading:
        return heading.group(1)
    return path.stem


def load_document(
    path: Path,
    *,
    base_dir: Path | None = None,
    max_file_size_mb: float = 10,
) -> Document | None:
    """Read a Markdown file, or return ``None`` when it exceeds the size limit."""
    stat = path.stat()
    if stat.st_size / (1024 * 1024) > max_file_size_mb:
        LOGGER.info("Skipping %s: larger than %s MB", path, max_file_size_mb)
        return None

    raw = path.read_text(encoding="utf-8")
    front_matter, body = split_front_matter(raw)

    relative = None
    if base_dir is not None:
        try:
            relative = path.relative_to(base_dir).as_posix()
        except ValueError:
            relative = None

    return Document(
        path=str(path.resolve()),
        title=extract_title(front_matter, body, path),
        size=stat.st_size,
        last_modified=stat.st_mtime,
        text_content=body,
        relative_path=relative or path.name,
    )
