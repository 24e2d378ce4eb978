"""Article and extraction schemas."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    """Languages the reader can detect and speak."""

    EN = "en"
    SV = "sv"

    @property
    def locale(self) -> str:
        return _LOCALES[self]


_LOCALES = {Language.EN: "en-US", Language.SV: "sv-SE"}


class ContentMode(str, Enum):
    """Whether the full text or a generated summary is read aloud."""

    FULL = "full"
    SUMMARY = "summary"


class ExtractedText(BaseModel):
    """Title and readable body text pulled out of an HTML document."""

    title: str
    content: str


class Article(BaseModel):
    """A fetched article ready for chunking."""

    model_config = ConfigDict(frozen=True)

    title: str
    author: Optional[str] = None
    content: str
    url: str
    language: Language = Language.EN


class ExtractRequest(BaseModel):
    url: str = Field(..., min_length=1)
    mode: ContentMode = ContentMode.FULL


class LanguagePayload(BaseModel):
    language: Language


class ContentModePayload(BaseModel):
    mode: ContentMode


class ArticleResponse(BaseModel):
    """The article currently loaded into the reader session."""

    title: str
    author: Optional[str] = None
    url: str
    language: Language
    mode: ContentMode
    content: str
    chunks: list[str] = Field(default_factory=list)
    saved_article_id: Optional[str] = None


__all__ = [
    "Article",
    "ArticleResponse",
    "ContentMode",
    "ContentModePayload",
    "ExtractRequest",
    "ExtractedText",
    "Language",
    "LanguagePayload",
]
