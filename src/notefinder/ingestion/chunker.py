"""Line-aware document chunking for embedding.

Documents are split into paragraphs (runs of non-blank lines, with fenced code
blocks kept whole) which are packed into chunks of at most ``max_chunk_size``
estimated tokens. Consecutive chunks share a short trailing overlap so that
context spanning a boundary is still retrievable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List

from notefinder.models import DocumentChunk
from notefinder.utils.files import path_digest
from notefinder.utils.text import estimate_tokens

LOGGER = logging.getLogger(__name__)

FENCE = "```"

# A source line paired with its 1-based line number.
Line = tuple[int, str]


@dataclass(slots=True)
class ChunkOptions:
    max_chunk_size: int = 800
    overlap_size: int = 100
    chunk_by_paragraph: bool = True
    preserve_code_blocks: bool = True


@dataclass(slots=True)
class _Paragraph:
    lines: List[Line] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(text for _, text in self.lines)


def make_chunk_id(path: str, chunk_index: int) -> str:
    """Deterministic chunk id, unique across a corpus for each path/index pair."""
    return f"{path_digest(path)}_{chunk_index}"


def _join(lines: List[Line]) -> str:
    return "\n".join(text for _, text in lines)


class DocumentChunker:
    """Split document text into overlapping, line-addressed chunks."""

    def __init__(self, options: ChunkOptions | None = None) -> None:
        self.options = options or ChunkOptions()

    def chunk_document(self, content: str, path: str, title: str) -> List[DocumentChunk]:
        if not content.strip():
            return []

        lines: List[Line] = list(enumerate(content.split("\n"), start=1))
        if self.options.chunk_by_paragraph:
            groups = self._chunk_by_paragraphs(lines)
        else:
            groups = self._chunk_by_size(lines)

        chunks = [
            DocumentChunk(
                id=make_chunk_id(path, index),
                content=_join(group),
                start_line=group[0][0],
                end_line=group[-1][0],
                chunk_index=index,
                parent_title=title,
                parent_path=path,
            )
            for index, group in enumerate(groups)
        ]
        total = len(chunks)
        LOGGER.debug("Split %s into %d chunks", path, total)
        return [replace(chunk, total_chunks=total) for chunk in chunks]

    def _chunk_by_paragraphs(self, lines: List[Line]) -> List[List[Line]]:
        max_size = self.options.max_chunk_size
        groups: List[List[Line]] = []
        current: List[Line] = []
        current_size = 0

        for paragraph in self._extract_paragraphs(lines):
            paragraph_size = estimate_tokens(paragraph.text)

            if paragraph_size > max_size:
                if current:
                    groups.append(current)
                    current = []
                    current_size = 0
                groups.extend(self._split_large_paragraph(paragraph.lines))
            elif current_size + paragraph_size > max_size:
                if current:
                    groups.append(current)
                current = self._overlap(current) + paragraph.lines
                current_size = estimate_tokens(_join(current))
            else:
                current.extend(paragraph.lines)
                current_size += paragraph_size

        if current:
            groups.append(current)
        return groups

    def _chunk_by_size(self, lines: List[Line]) -> List[List[Line]]:
        max_size = self.options.max_chunk_size
        groups: List[List[Line]] = []
        current: List[Line] = []
        current_size = 0

        for line in lines:
            line_size = estimate_tokens(line[1])
            if current and current_size + line_size > max_size:
                groups.append(current)
                current = self._overlap(current)
                current_size = estimate_tokens(_join(current))
            current.append(line)
            current_size += line_size

        if current:
            groups.append(current)
        return groups

    def _extract_paragraphs(self, lines: List[Line]) -> List[_Paragraph]:
        preserve_code = self.options.preserve_code_blocks
        paragraphs: List[_Paragraph] = []
        current = _Paragraph()
        fence_opener: str | None = None

        for line in lines:
            stripped = line[1].strip()

            if preserve_code and stripped.startswith(FENCE):
                if fence_opener is None:
                    if current.lines:
                        paragraphs.append(current)
                    current = _Paragraph([line])
                    fence_opener = stripped
                elif stripped in (fence_opener, FENCE):
                    current.lines.append(line)
                    paragraphs.append(current)
                    current = _Paragraph()
                    fence_opener = None
                else:
                    current.lines.append(line)
            elif fence_opener is None and not stripped:
                if current.lines:
                    paragraphs.append(current)
                    current = _Paragraph()
            else:
                current.lines.append(line)

        if current.lines:
            paragraphs.append(current)
        return paragraphs

    def _split_large_paragraph(self, lines: List[Line]) -> List[List[Line]]:
        max_size = self.options.max_chunk_size
        groups: List[List[Line]] = []
        current: List[Line] = []
        current_size = 0

        for line in lines:
            line_size = estimate_tokens(line[1])
            if current and current_size + line_size > max_size:
                groups.append(current)
                current = []
                current_size = 0
            current.append(line)
            current_size += line_size

        if current:
            groups.append(current)
        return groups

    def _overlap(self, lines: List[Line]) -> List[Line]:
        """Trailing lines of ``lines`` whose estimate first reaches ``overlap_size``.

        When the whole chunk is smaller than the overlap only its last line is kept.
        """
        overlap_size = self.options.overlap_size
        if overlap_size <= 0 or not lines:
            return []

        size = 0
        start = len(lines) - 1
        for index in range(len(lines) - 1, -1, -1):
            size += estimate_tokens(lines[index][1])
            if size >= overlap_size:
                start = index
                break
        return lines[start:]
