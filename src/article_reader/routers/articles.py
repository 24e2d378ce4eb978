"""API routes for loading articles into the reader."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..schemas.article import (
    ArticleResponse,
    ContentModePayload,
    ExtractRequest,
    LanguagePayload,
)
from ..services.reader_session import ReaderSession
from .dependencies import get_reader_session, reader_errors

router = APIRouter(prefix="/api/articles", tags=["articles"])


@router.post("/extract", response_model=ArticleResponse)
async def extract_article(
    payload: ExtractRequest,
    session: ReaderSession = Depends(get_reader_session),
) -> ArticleResponse:
    """Fetch a URL, extract its text and load it for playback."""
    with reader_errors():
        return await session.extract(payload.url, payload.mode)


@router.get("/current", response_model=ArticleResponse)
async def read_current_article(
    session: ReaderSession = Depends(get_reader_session),
) -> ArticleResponse:
    with reader_errors():
        return session.describe()


@router.put("/current/language", response_model=ArticleResponse)
async def update_language(
    payload: LanguagePayload,
    session: ReaderSession = Depends(get_reader_session),
) -> ArticleResponse:
    with reader_errors():
        return await session.set_language(payload.language)


@router.put("/current/mode", response_model=ArticleResponse)
async def update_content_mode(
    payload: ContentModePayload,
    session: ReaderSession = Depends(get_reader_session),
) -> ArticleResponse:
    with reader_errors():
        return await session.set_content_mode(payload.mode)
