"""Pull a readable title and body text out of raw article HTML."""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from ..errors import ExtractionError
from ..schemas.article import ExtractedText

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"
MIN_CONTENT_CHARS = 100
MIN_FRAGMENT_CHARS = 50

# Elements whose text is never part of the article body
_NOISE_TAGS = "script, style, noscript, nav, header, footer, aside"

# Typographic characters left after entity decoding that TTS engines read poorly
_CHAR_MAP = str.maketrans(
    {
        "\u2019": "'",
        "\u2018": "'",
        "\u201d": '"',
        "\u201c": '"',
        "\u00a0": " ",
    }
)

_WHITESPACE_RE = re.compile(r"\s+")
_FRAGMENT_SPLIT_RE = re.compile(r"\.\s+")


def _clean_text(raw: str) -> str:
    return _WHITESPACE_RE.sub(" ", raw.translate(_CHAR_MAP)).strip()


def _filter_boilerplate(text: str) -> str:
    """Drop short period-delimited fragments such as menu labels and bylines."""

    kept = [
        fragment
        for fragment in _FRAGMENT_SPLIT_RE.split(text)
        if len(fragment.strip()) >= MIN_FRAGMENT_CHARS
    ]
    if not kept:
        return text
    return ". ".join(fragment.strip() for fragment in kept)


def extract_text_from_html(html: str) -> ExtractedText:
    """Return the document title and readable body text.

    Never raises on malformed markup; an unreadable document yields empty
    content, which callers reject with :func:`require_readable_content`.
    """

    soup = BeautifulSoup(html or "", "lxml")

    title_tag = soup.find("title")
    title = _clean_text(title_tag.get_text()) if title_tag else ""

    for tag in soup.select(_NOISE_TAGS):
        tag.decompose()

    root = None
    for name in ("article", "main"):
        candidate = soup.find(name)
        if candidate is not None and candidate.get_text(strip=True):
            root = candidate
            break
    if root is None:
        root = soup.body or soup
        # The <title> lives in <head>; keep it out of the body text
        if root is soup and title_tag is not None:
            title_tag.decompose()

    text = _clean_text(root.get_text(" "))
    content = _filter_boilerplate(text) if text else ""

    logger.debug(
        "Extracted %d chars from <%s> (title=%r)", len(content), root.name, title
    )
    return ExtractedText(title=title or UNTITLED, content=content)


def require_readable_content(
    extracted: ExtractedText, min_chars: int = MIN_CONTENT_CHARS
) -> ExtractedText:
    if len(extracted.content) < min_chars:
        raise ExtractionError("Could not extract article content from this URL")
    return extracted


__all__ = [
    "MIN_CONTENT_CHARS",
    "UNTITLED",
    "extract_text_from_html",
    "require_readable_content",
]
