"""Tests for saved-article persistence: audio archive, SQLite index, save/delete."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import aiosqlite
import pytest

from article_reader.errors import PersistenceError, SavedArticleNotFoundError
from article_reader.schemas.article import Article, Language
from article_reader.schemas.saved import SavedArticle
from article_reader.services.saved_articles import (
    AudioArchive,
    SavedArticleRepository,
    SavedArticleService,
)

from conftest import FakeCloudTTS

CHUNKS = ["One.", "Two.", "Three.", "Four.", "Five."]


@pytest.fixture
async def repository(tmp_path, anyio_backend):
    repo = SavedArticleRepository(tmp_path / "saved.db")
    await repo.initialize()
    yield repo
    await repo.close()


@pytest.fixture
def archive(tmp_path) -> AudioArchive:
    return AudioArchive(tmp_path / "audio")


def _article(url="https://example.com/a") -> Article:
    return Article(
        title="A story",
        author="Someone",
        content=" ".join(CHUNKS),
        url=url,
        language=Language.EN,
    )


@pytest.mark.anyio
async def test_save_writes_every_chunk_and_indexes(repository, archive):
    tts = FakeCloudTTS()
    service = SavedArticleService(repository, archive, tts)
    progress = []

    saved = await service.save(
        _article(), CHUNKS, "en-US-Wavenet-A", "good-key", on_progress=progress.append
    )

    assert [call[0] for call in tts.calls] == CHUNKS
    assert [(item.current, item.total) for item in progress] == [(i, 5) for i in range(1, 6)]
    assert saved.audio_files == [f"{saved.id}/chunk_{i}.mp3" for i in range(5)]
    assert await archive.read(saved.audio_files[2]) == b"audio:Three."

    stored = await service.get(saved.id)
    assert stored.title == "A story"
    assert stored.author == "Someone"
    assert stored.voice_id == "en-US-Wavenet-A"
    assert stored.audio_files == saved.audio_files


@pytest.mark.anyio
async def test_failed_save_leaves_nothing_behind(repository, archive):
    service = SavedArticleService(repository, archive, FakeCloudTTS(fail_on_call=3))

    with pytest.raises(PersistenceError) as excinfo:
        await service.save(_article(), CHUNKS, "en-US-Wavenet-A", "good-key")

    assert "quota exceeded" in excinfo.value.detail
    assert await repository.list_all() == []
    assert not archive.root.exists() or list(archive.root.iterdir()) == []


@pytest.mark.anyio
async def test_save_without_chunks_is_rejected(repository, archive):
    service = SavedArticleService(repository, archive, FakeCloudTTS())

    with pytest.raises(PersistenceError):
        await service.save(_article(), [], "en-US-Wavenet-A", "good-key")


@pytest.mark.anyio
async def test_list_is_most_recent_first(repository):
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    for offset, article_id in enumerate(["old", "middle", "new"]):
        await repository.add(
            SavedArticle(
                id=article_id,
                url=f"https://example.com/{article_id}",
                title=article_id,
                content="Text.",
                language=Language.SV,
                audio_files=[f"{article_id}/chunk_0.mp3"],
                voice_id="sv-SE-Wavenet-A",
                saved_at=base + timedelta(hours=offset),
            )
        )

    listed = await repository.list_all()

    assert [article.id for article in listed] == ["new", "middle", "old"]
    assert listed[0].language == Language.SV
    assert (await repository.find_by_url("https://example.com/middle")).id == "middle"
    assert await repository.find_by_url("https://example.com/none") is None


@pytest.mark.anyio
async def test_delete_removes_files_and_entry(repository, archive):
    service = SavedArticleService(repository, archive, FakeCloudTTS())
    saved = await service.save(_article(), CHUNKS[:2], "en-US-Wavenet-A", "good-key")
    assert await archive.exists(saved.audio_files[0])

    await service.delete(saved.id)

    assert not await archive.exists(saved.audio_files[0])
    assert not (archive.root / saved.id).exists()
    with pytest.raises(SavedArticleNotFoundError):
        await service.get(saved.id)
    with pytest.raises(SavedArticleNotFoundError):
        await service.delete(saved.id)


@pytest.mark.anyio
async def test_archive_rejects_escaping_handles(archive):
    with pytest.raises(PersistenceError):
        await archive.read("../outside.mp3")
    with pytest.raises(PersistenceError):
        await archive.read("missing/chunk_0.mp3")


@pytest.mark.anyio
async def test_delete_keeps_entry_when_files_cannot_be_removed(repository, archive):
    service = SavedArticleService(repository, archive, FakeCloudTTS())
    saved = await service.save(_article(), CHUNKS[:2], "en-US-Wavenet-A", "good-key")

    with patch.object(
        archive, "delete", new=AsyncMock(side_effect=PersistenceError("disk busy"))
    ):
        with pytest.raises(PersistenceError):
            await service.delete(saved.id)

    assert (await service.get(saved.id)).audio_files == saved.audio_files
    assert await archive.exists(saved.audio_files[1])


@pytest.mark.anyio
async def test_delete_index_failure_is_a_persistence_error(repository, archive):
    service = SavedArticleService(repository, archive, FakeCloudTTS())
    saved = await service.save(_article(), CHUNKS[:2], "en-US-Wavenet-A", "good-key")

    with patch.object(
        repository,
        "delete",
        new=AsyncMock(side_effect=aiosqlite.OperationalError("database is locked")),
    ):
        with pytest.raises(PersistenceError) as excinfo:
            await service.delete(saved.id)

    assert "database is locked" in excinfo.value.detail
    assert (await service.get(saved.id)).id == saved.id

    await service.delete(saved.id)
    assert await service.list_saved() == []
