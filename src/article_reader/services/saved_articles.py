"""Saved articles: synthesized chunk audio on disk plus an SQLite index."""

from __future__ import annotations

import asyncio
import base64
import inspect
import json
import logging
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence, Union

import aiosqlite

from ..errors import PersistenceError, ReaderError, SavedArticleNotFoundError
from ..schemas.article import Article, Language
from ..schemas.saved import SavedArticle, SaveProgress
from .tts_service import GoogleCloudTTS

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SaveProgress], Union[None, Awaitable[None]]]


class AudioArchive:
    """Store one audio file per chunk under ``<root>/<article_id>/chunk_<i>.mp3``.

    Handles returned by :meth:`write` are paths relative to the root.
    """

    def __init__(self, root: Path):
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, handle: str) -> Path:
        path = (self._root / handle).resolve()
        if not path.is_relative_to(self._root.resolve()):
            raise PersistenceError(f"Audio handle {handle!r} escapes the archive")
        return path

    async def write(self, article_id: str, index: int, audio: bytes) -> str:
        handle = f"{article_id}/chunk_{index}.mp3"
        path = self._resolve(handle)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(audio)

        await asyncio.to_thread(_write)
        return handle

    async def read(self, handle: str) -> bytes:
        path = self._resolve(handle)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise PersistenceError(f"Saved audio is missing: {handle}") from exc

    async def exists(self, handle: str) -> bool:
        return await asyncio.to_thread(self._resolve(handle).is_file)

    async def delete(self, article_id: str) -> None:
        directory = self._resolve(article_id)
        if directory == self._root.resolve():
            raise PersistenceError("Refusing to delete the archive root")
        try:
            await asyncio.to_thread(shutil.rmtree, directory)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(f"Failed to delete saved audio: {exc}") from exc


class SavedArticleRepository:
    """Persist and retrieve saved-article records from SQLite."""

    def __init__(self, database_path: Path):
        self._path = database_path
        self._connection: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Open the SQLite connection and ensure tables exist."""
        if self._connection is not None:
            return

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._path)
        self._connection.row_factory = aiosqlite.Row
        await self._connection.execute("PRAGMA journal_mode=WAL;")
        await self._create_schema()

    async def _create_schema(self) -> None:
        assert self._connection is not None
        await self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS saved_articles (
                id TEXT PRIMARY KEY,
                url TEXT NOT NULL,
                title TEXT NOT NULL,
                author TEXT,
                content TEXT NOT NULL,
                language TEXT NOT NULL,
                audio_files TEXT NOT NULL,
                voice_id TEXT NOT NULL,
                saved_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_saved_articles_url ON saved_articles(url);
            CREATE INDEX IF NOT EXISTS idx_saved_articles_saved_at
                ON saved_articles(saved_at);
            """
        )
        await self._connection.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    def _row_to_article(self, row: aiosqlite.Row) -> SavedArticle:
        return SavedArticle(
            id=row["id"],
            url=row["url"],
            title=row["title"],
            author=row["author"],
            content=row["content"],
            language=Language(row["language"]),
            audio_files=json.loads(row["audio_files"]),
            voice_id=row["voice_id"],
            saved_at=datetime.fromisoformat(row["saved_at"]),
        )

    async def add(self, article: SavedArticle) -> None:
        assert self._connection is not None
        await self._connection.execute(
            """
            INSERT INTO saved_articles (
                id, url, title, author, content, language,
                audio_files, voice_id, saved_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                article.id,
                article.url,
                article.title,
                article.author,
                article.content,
                article.language.value,
                json.dumps(article.audio_files),
                article.voice_id,
                article.saved_at.isoformat(),
            ),
        )
        await self._connection.commit()

    async def get(self, article_id: str) -> SavedArticle | None:
        assert self._connection is not None
        cursor = await self._connection.execute(
            "SELECT * FROM saved_articles WHERE id = ?",
            (article_id,),
        )
        row = await cursor.fetchone()
        await cursor.close()
        return self._row_to_article(row) if row else None

    async def list_all(self) -> list[SavedArticle]:
        """All saved articles, most recent first."""
        assert self._connection is not None
        cursor = await self._connection.execute(
            "SELECT * FROM saved_articles ORDER BY saved_at DESC, rowid DESC"
        )
        rows = await cursor.fetchall()
        await cursor.close()
        return [self._row_to_article(row) for row in rows]

    async def find_by_url(self, url: str) -> SavedArticle | None:
        assert self._connection is not None
        cursor = await self._connection.execute(
            "SELECT * FROM saved_articles WHERE url = ? ORDER BY saved_at DESC LIMIT 1",
            (url,),
        )
        row = await cursor.fetchone()
        await cursor.close()
        return self._row_to_article(row) if row else None

    async def delete(self, article_id: str) -> bool:
        assert self._connection is not None
        cursor = await self._connection.execute(
            "DELETE FROM saved_articles WHERE id = ?",
            (article_id,),
        )
        await self._connection.commit()
        deleted = cursor.rowcount > 0
        await cursor.close()
        return deleted


class SavedArticleService:
    """Synthesize every chunk of an article and keep the audio for offline replay."""

    def __init__(
        self,
        repository: SavedArticleRepository,
        archive: AudioArchive,
        tts: GoogleCloudTTS,
    ):
        self.repository = repository
        self.archive = archive
        self._tts = tts

    async def save(
        self,
        article: Article,
        chunks: Sequence[str],
        voice_id: str,
        credential: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SavedArticle:
        """
        Synthesize each chunk in order and write its audio file.

        The index entry is written only after every file exists. If any chunk
        fails, all files written for this article are removed and
        PersistenceError is raised.
        """
        if not chunks:
            raise PersistenceError("Nothing to save: the article has no chunks")

        article_id = uuid.uuid4().hex
        total = len(chunks)
        handles: list[str] = []

        try:
            for index, chunk in enumerate(chunks):
                await _report(on_progress, SaveProgress(current=index + 1, total=total, active=True))
                audio_b64 = await self._tts.synthesize(chunk, voice_id, credential)
                handles.append(
                    await self.archive.write(article_id, index, base64.b64decode(audio_b64))
                )
        except (ReaderError, OSError, ValueError) as exc:
            logger.warning(
                "Saving '%s' failed at chunk %d/%d: %s",
                article.title,
                len(handles) + 1,
                total,
                exc,
            )
            await self._discard(article_id)
            detail = exc.detail if isinstance(exc, ReaderError) else str(exc)
            raise PersistenceError(f"Failed to save article: {detail}") from exc
        except BaseException:
            await self._discard(article_id)
            raise

        saved = SavedArticle(
            id=article_id,
            url=article.url,
            title=article.title,
            author=article.author,
            content=article.content,
            language=article.language,
            audio_files=handles,
            voice_id=voice_id,
            saved_at=datetime.now(timezone.utc),
        )
        try:
            await self.repository.add(saved)
        except aiosqlite.Error as exc:
            await self._discard(article_id)
            raise PersistenceError(f"Failed to save article: {exc}") from exc

        logger.info("Saved '%s' with %d audio chunk(s)", article.title, total)
        return saved

    async def _discard(self, article_id: str) -> None:
        try:
            await self.archive.delete(article_id)
        except PersistenceError as exc:
            logger.error("Could not clean up partial save %s: %s", article_id, exc.detail)

    async def list_saved(self) -> list[SavedArticle]:
        return await self.repository.list_all()

    async def get(self, article_id: str) -> SavedArticle:
        article = await self.repository.get(article_id)
        if article is None:
            raise SavedArticleNotFoundError(article_id)
        return article

    async def find_by_url(self, url: str) -> SavedArticle | None:
        return await self.repository.find_by_url(url)

    async def delete(self, article_id: str) -> None:
        """Remove the audio files, then the index entry.

        When the files cannot be removed the entry is kept and nothing is
        deleted from the index. If the index write fails after the files are
        gone, the entry survives without audio; loading it raises
        PersistenceError and deleting it again completes the removal.
        """
        await self.get(article_id)
        await self.archive.delete(article_id)
        try:
            await self.repository.delete(article_id)
        except aiosqlite.Error as exc:
            logger.error("Audio for %s removed but index entry kept: %s", article_id, exc)
            raise PersistenceError(f"Failed to delete saved article: {exc}") from exc
        logger.info("Deleted saved article %s", article_id)


async def _report(callback: Optional[ProgressCallback], progress: SaveProgress) -> None:
    if callback is None:
        return
    result = callback(progress)
    if inspect.isawaitable(result):
        await result


__all__ = [
    "AudioArchive",
    "ProgressCallback",
    "SavedArticleRepository",
    "SavedArticleService",
]
