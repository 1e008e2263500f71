"""Text helpers shared by the chunker, providers and search engines."""

from __future__ import annotations

import math
import re
from typing import List

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four characters."""
    return math.ceil(len(text) / 4)


def truncate_text(text: str, max_length: int) -> str:
    """Cut ``text`` to at most ``max_length`` characters.

    Prefers the last whitespace boundary at or before the limit and falls back
    to a hard cut when the head contains no whitespace.
    """
    if len(text) <= max_length:
        return text

    head = text[: max_length + 1]
    boundary = max(head.rfind(" "), head.rfind("\n"), head.rfind("\t"))
    if boundary > 0:
        return text[:boundary]
    return text[:max_length]


def split_sentences(text: str) -> List[str]:
    return _SENTENCE_SPLIT.split(text)


def best_matching_sentence(content: str, query: str) -> str:
    """Pick the sentence of ``content`` that contains the most query terms.

    Falls back to the first sentence when no term appears anywhere.
    """
    sentences = split_sentences(content)
    terms = [term for term in query.lower().split() if term]

    best = ""
    best_count = 0
    for sentence in sentences:
        lowered = sentence.lower()
        count = sum(1 for term in terms if term in lowered)
        if count > best_count:
            best_count = count
            best = sentence.strip()

    if best:
        return best
    return sentences[0].strip() if sentences else ""

