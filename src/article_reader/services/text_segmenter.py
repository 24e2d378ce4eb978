"""Split article text into sentence-aligned chunks for speech synthesis."""

from __future__ import annotations

import re

DEFAULT_MAX_CHARS = 500

# Sentence boundary: whitespace preceded by terminal punctuation
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """Split on ``.``, ``!`` or ``?`` followed by whitespace; punctuation stays put."""

    return [part.strip() for part in _SENTENCE_BOUNDARY_RE.split(text) if part.strip()]


def split_into_chunks(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> list[str]:
    """
    Greedily pack whole sentences into chunks of at most ``max_chars``.

    Sentences in a chunk are joined by single spaces. A sentence longer than
    ``max_chars`` becomes a chunk of its own and is never cut. Empty input
    yields an empty list.
    """
    if max_chars < 1:
        raise ValueError("max_chars must be at least 1")

    chunks: list[str] = []
    current = ""

    for sentence in split_sentences(text or ""):
        if current and len(current) + 1 + len(sentence) > max_chars:
            chunks.append(current)
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence

    if current:
        chunks.append(current)

    return chunks


__all__ = ["DEFAULT_MAX_CHARS", "split_into_chunks", "split_sentences"]
