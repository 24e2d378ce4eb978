"""Heuristic English/Swedish language detection."""

from __future__ import annotations

import re

from ..schemas.article import Language

SAMPLE_CHARS = 1000
SWEDISH_THRESHOLD = 5

_SWEDISH_WORDS = (
    "och", "att", "det", "är", "på", "för", "med", "som", "av", "till",
    "den", "har", "inte", "om", "en", "kan", "var", "vid", "jag", "från", "men",
)

_SWEDISH_RE = re.compile(
    r"\b(?:" + "|".join(_SWEDISH_WORDS) + r")\b|[åäö]",
    re.IGNORECASE,
)


def detect_language(text: str) -> Language:
    """Classify text as Swedish or English; English is the default.

    Counts Swedish function words and the letters å, ä, ö in the first
    thousand characters. More than five hits means Swedish.
    """

    sample = (text or "")[:SAMPLE_CHARS]
    hits = len(_SWEDISH_RE.findall(sample))
    return Language.SV if hits > SWEDISH_THRESHOLD else Language.EN


__all__ = ["detect_language"]
