"""Advisory detection of sentences copied verbatim from source notes."""

from __future__ import annotations

import re
from typing import Iterable

from .models import SourceUnit

SENTENCE_SPLIT_PATTERN = re.compile(r"(?<=[.!?。！？])\s*|\n+")
NON_WORD_PATTERN = re.compile(r"[^\w]+")

MIN_FRAGMENT_CHARS = 20


def normalize_fragment(text: str) -> str:
    """Lowercase and collapse punctuation so formatting changes still match."""

    return NON_WORD_PATTERN.sub(" ", text.lower()).strip()


def find_copied_sentences(text: str, sources: Iterable[SourceUnit]) -> list[str]:
    """Return source sentences that reappear unchanged in ``text``.

    Sentences shorter than MIN_FRAGMENT_CHARS after normalization are ignored.
    """

    haystack = normalize_fragment(text)
    if not haystack:
        return []

    copied: list[str] = []
    for source in sources:
        for sentence in SENTENCE_SPLIT_PATTERN.split(source.body):
            key = normalize_fragment(sentence)
            if len(key) < MIN_FRAGMENT_CHARS:
                continue
            if key in haystack and sentence.strip() not in copied:
                copied.append(sentence.strip())
    return copied
