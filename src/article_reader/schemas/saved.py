"""Schemas for articles saved with synthesized audio."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .article import Language


class SavedArticle(BaseModel):
    """An article persisted together with one audio file per chunk."""

    id: str
    url: str
    title: str
    author: Optional[str] = None
    content: str
    language: Language
    audio_files: list[str] = Field(default_factory=list)
    voice_id: str
    saved_at: datetime


class SavedArticleSummary(BaseModel):
    id: str
    url: str
    title: str
    language: Language
    chunk_count: int
    voice_id: str
    saved_at: datetime

    @classmethod
    def from_saved(cls, article: SavedArticle) -> "SavedArticleSummary":
        return cls(
            id=article.id,
            url=article.url,
            title=article.title,
            language=article.language,
            chunk_count=len(article.audio_files),
            voice_id=article.voice_id,
            saved_at=article.saved_at,
        )


class SaveProgress(BaseModel):
    current: int = 0
    total: int = 0
    active: bool = False


__all__ = ["SaveProgress", "SavedArticle", "SavedArticleSummary"]
