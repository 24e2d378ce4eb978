"""API routes for articles saved for offline replay."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from ..schemas.article import ArticleResponse
from ..schemas.saved import SavedArticleSummary, SaveProgress
from ..services.device_bridge import DeviceConnectionManager
from ..services.reader_session import ReaderSession
from .dependencies import get_device_manager, get_reader_session, reader_errors

router = APIRouter(prefix="/api/saved", tags=["saved"])


@router.get("", response_model=list[SavedArticleSummary])
async def list_saved_articles(
    session: ReaderSession = Depends(get_reader_session),
) -> list[SavedArticleSummary]:
    articles = await session.list_saved()
    return [SavedArticleSummary.from_saved(article) for article in articles]


@router.post("", response_model=SavedArticleSummary, status_code=201)
async def save_current_article(
    session: ReaderSession = Depends(get_reader_session),
    manager: DeviceConnectionManager = Depends(get_device_manager),
) -> SavedArticleSummary:
    """Synthesize the loaded article with the selected cloud voice and store it.

    Progress is broadcast to connected devices as ``save_progress`` messages
    and can be polled from ``GET /api/saved/progress``.
    """

    async def _broadcast(progress: SaveProgress) -> None:
        await manager.broadcast({"type": "save_progress", **progress.model_dump()})

    with reader_errors():
        saved = await session.save_current(on_progress=_broadcast)
    return SavedArticleSummary.from_saved(saved)


@router.get("/progress", response_model=SaveProgress)
async def read_save_progress(
    session: ReaderSession = Depends(get_reader_session),
) -> SaveProgress:
    return session.save_progress


@router.get("/lookup")
async def lookup_saved(
    url: str,
    session: ReaderSession = Depends(get_reader_session),
) -> dict[str, bool]:
    return {"saved": await session.is_saved(url)}


@router.get("/{article_id}", response_model=SavedArticleSummary)
async def read_saved_article(
    article_id: str,
    session: ReaderSession = Depends(get_reader_session),
) -> SavedArticleSummary:
    with reader_errors():
        saved = await session.saved_articles.get(article_id)
    return SavedArticleSummary.from_saved(saved)


@router.post("/{article_id}/load", response_model=ArticleResponse)
async def load_saved_article(
    article_id: str,
    session: ReaderSession = Depends(get_reader_session),
) -> ArticleResponse:
    with reader_errors():
        return await session.load_saved(article_id)


@router.delete("/{article_id}", status_code=204)
async def delete_saved_article(
    article_id: str,
    session: ReaderSession = Depends(get_reader_session),
) -> Response:
    with reader_errors():
        await session.delete_saved(article_id)
    return Response(status_code=204)
