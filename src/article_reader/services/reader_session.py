"""Reader session: the article pipeline wired to playback, voices and saving."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import (
    CredentialInvalidError,
    NoArticleLoadedError,
    PersistenceError,
    SaveInProgressError,
)
from ..schemas.article import Article, ArticleResponse, ContentMode, Language
from ..schemas.playback import PlaybackState
from ..schemas.saved import SavedArticle, SaveProgress
from ..schemas.settings import CredentialKind, CredentialStatus, CredentialValidation
from ..schemas.voices import Voice, VoiceListResponse, VoiceSource
from .credentials import CredentialStore
from .extraction import MIN_CONTENT_CHARS, extract_text_from_html, require_readable_content
from .fetcher import ArticleFetcher
from .language import detect_language
from .player import ArticlePlayer
from .saved_articles import ProgressCallback, SavedArticleService
from .summarizer import GeminiSummarizer
from .text_segmenter import DEFAULT_MAX_CHARS, split_into_chunks
from .tts import AudioPlayer, PlaybackTarget, SavedAudioBackend, SpeechBackendSelector
from .tts_service import GoogleCloudTTS

logger = logging.getLogger(__name__)


@dataclass
class LoadedArticle:
    """The article in the session. ``article.content`` is always the full text."""

    article: Article
    mode: ContentMode = ContentMode.FULL
    summary: Optional[str] = None
    saved_article_id: Optional[str] = None

    @property
    def text(self) -> str:
        if self.mode == ContentMode.SUMMARY and self.summary is not None:
            return self.summary
        return self.article.content


class ReaderSession:
    """
    Orchestrates one reader: fetch -> extract -> detect language ->
    (summarize) -> chunk -> play, plus voice and credential management and
    saving for offline replay.

    Playback controls are rejected while a save is running.
    """

    def __init__(
        self,
        *,
        fetcher: ArticleFetcher,
        summarizer: GeminiSummarizer,
        selector: SpeechBackendSelector,
        credentials: CredentialStore,
        tts_client: GoogleCloudTTS,
        saved_articles: SavedArticleService,
        audio_player: AudioPlayer,
        player: Optional[ArticlePlayer] = None,
        chunk_max_chars: int = DEFAULT_MAX_CHARS,
        min_content_chars: int = MIN_CONTENT_CHARS,
    ):
        self._fetcher = fetcher
        self._summarizer = summarizer
        self.selector = selector
        self._credentials = credentials
        self._tts_client = tts_client
        self.saved_articles = saved_articles
        self._audio_player = audio_player
        self.player = player or ArticlePlayer(self._resolve_target)
        self.player.set_target_provider(self._resolve_target)
        self._chunk_max_chars = chunk_max_chars
        self._min_content_chars = min_content_chars

        self._loaded: Optional[LoadedArticle] = None
        self._saved_backend: Optional[SavedAudioBackend] = None
        self._saving = False
        self._save_progress = SaveProgress()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def loaded(self) -> Optional[LoadedArticle]:
        return self._loaded

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def save_progress(self) -> SaveProgress:
        return self._save_progress

    @property
    def playback_state(self) -> PlaybackState:
        return self.player.state

    def describe(self) -> ArticleResponse:
        loaded = self._require_loaded()
        article = loaded.article
        return ArticleResponse(
            title=article.title,
            author=article.author,
            url=article.url,
            language=article.language,
            mode=loaded.mode,
            content=loaded.text,
            chunks=self.player.chunks,
            saved_article_id=loaded.saved_article_id,
        )

    async def initialize(self) -> None:
        await self.selector.refresh()

    async def close(self) -> None:
        await self.player.close()

    async def _resolve_target(self) -> PlaybackTarget:
        if self._saved_backend is not None:
            return PlaybackTarget(self._saved_backend, self._saved_backend.article.voice_id)
        return self.selector.target()

    def _require_loaded(self) -> LoadedArticle:
        if self._loaded is None:
            raise NoArticleLoadedError()
        return self._loaded

    def _ensure_not_saving(self) -> None:
        if self._saving:
            raise SaveInProgressError()

    # ------------------------------------------------------------------
    # Article pipeline
    # ------------------------------------------------------------------
    async def extract(self, url: str, mode: ContentMode = ContentMode.FULL) -> ArticleResponse:
        """Fetch and load an article. The previous article stays loaded on failure."""
        self._ensure_not_saving()
        await self.player.stop()

        html = await self._fetcher.fetch(url)
        extracted = require_readable_content(
            extract_text_from_html(html), self._min_content_chars
        )
        language = detect_language(extracted.content)
        logger.info(
            "Extracted '%s' (%d chars, %s) from %s",
            extracted.title,
            len(extracted.content),
            language.value,
            url,
        )

        loaded = LoadedArticle(
            article=Article(
                title=extracted.title,
                content=extracted.content,
                url=url,
                language=language,
            )
        )
        if mode == ContentMode.SUMMARY:
            await self._ensure_summary(loaded)
            loaded.mode = ContentMode.SUMMARY

        saved = await self.saved_articles.find_by_url(url)
        if saved is not None:
            loaded.saved_article_id = saved.id

        self._loaded = loaded
        self._saved_backend = None
        await self.selector.refresh(language)
        await self._reload_chunks()
        return self.describe()

    async def _ensure_summary(self, loaded: LoadedArticle) -> str:
        if loaded.summary is None:
            credential = await self._credentials.get(CredentialKind.SUMMARIZER)
            if not credential:
                raise CredentialInvalidError("A Gemini API key is required for summaries")
            loaded.summary = await self._summarizer.summarize(
                loaded.article.content, loaded.article.language, credential
            )
        return loaded.summary

    async def _reload_chunks(self) -> None:
        loaded = self._require_loaded()
        chunks = split_into_chunks(loaded.text, self._chunk_max_chars)
        await self.player.load(chunks, loaded.article.language)

    def _leave_saved_audio(self) -> None:
        # Saved audio only matches the saved text; any content change plays live
        if self._saved_backend is not None:
            logger.info("Switching from saved audio to live speech")
        self._saved_backend = None

    async def set_content_mode(self, mode: ContentMode) -> ArticleResponse:
        self._ensure_not_saving()
        loaded = self._require_loaded()
        if mode == loaded.mode:
            return self.describe()
        if mode == ContentMode.SUMMARY:
            await self._ensure_summary(loaded)
        loaded.mode = mode
        self._leave_saved_audio()
        await self._reload_chunks()
        return self.describe()

    async def set_language(self, language: Language) -> ArticleResponse:
        """Override the detected language."""
        self._ensure_not_saving()
        loaded = self._require_loaded()
        if language == loaded.article.language:
            return self.describe()

        loaded.article = loaded.article.model_copy(update={"language": language})
        if loaded.summary is not None:
            loaded.summary = None
            if loaded.mode == ContentMode.SUMMARY:
                await self._ensure_summary(loaded)
        self._leave_saved_audio()
        await self.selector.refresh(language)
        await self._reload_chunks()
        return self.describe()

    # ------------------------------------------------------------------
    # Voices and credentials
    # ------------------------------------------------------------------
    def voices(self) -> VoiceListResponse:
        return self.selector.describe()

    async def refresh_voices(self) -> VoiceListResponse:
        await self.selector.refresh()
        return self.selector.describe()

    async def select_voice(self, voice_id: str) -> Voice:
        self._ensure_not_saving()
        voice = await self.selector.select_voice(voice_id)
        # A running live loop keeps its voice; restart it from the current chunk
        if self.player.is_active and self._saved_backend is None:
            await self.player.stop()
            await self.player.play()
        return voice

    async def validate_credential(self, key: str) -> CredentialValidation:
        return await self._tts_client.validate_credential(key)

    async def credential_status(self) -> CredentialStatus:
        return await self._credentials.status()

    async def set_credential(self, kind: CredentialKind, key: str) -> CredentialStatus:
        self._ensure_not_saving()
        if kind == CredentialKind.TTS:
            validation = await self._tts_client.validate_credential(key)
            if not validation.valid:
                raise CredentialInvalidError(validation.error or "Invalid API key")
        await self._credentials.set(kind, key)
        if kind == CredentialKind.TTS:
            await self._on_speech_credential_changed()
        return await self._credentials.status()

    async def clear_credential(self, kind: CredentialKind) -> CredentialStatus:
        self._ensure_not_saving()
        await self._credentials.clear(kind)
        if kind == CredentialKind.TTS:
            await self._on_speech_credential_changed()
        return await self._credentials.status()

    async def _on_speech_credential_changed(self) -> None:
        if self._saved_backend is None:
            await self.player.stop()
        await self.selector.refresh()

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------
    async def play(self) -> PlaybackState:
        self._ensure_not_saving()
        await self.player.play()
        return self.player.state

    async def pause(self) -> PlaybackState:
        self._ensure_not_saving()
        await self.player.pause()
        return self.player.state

    async def resume(self) -> PlaybackState:
        self._ensure_not_saving()
        await self.player.resume()
        return self.player.state

    async def stop(self) -> PlaybackState:
        self._ensure_not_saving()
        await self.player.stop()
        return self.player.state

    async def set_speed(self, speed: float) -> PlaybackState:
        self._ensure_not_saving()
        await self.player.set_speed(speed)
        return self.player.state

    async def skip_forward(self) -> PlaybackState:
        self._ensure_not_saving()
        await self.player.skip_forward()
        return self.player.state

    async def skip_back(self) -> PlaybackState:
        self._ensure_not_saving()
        await self.player.skip_back()
        return self.player.state

    # ------------------------------------------------------------------
    # Saved articles
    # ------------------------------------------------------------------
    async def save_current(
        self, on_progress: Optional[ProgressCallback] = None
    ) -> SavedArticle:
        """Synthesize the loaded article with the selected cloud voice and keep it."""
        self._ensure_not_saving()
        loaded = self._require_loaded()
        self._saving = True
        try:
            credential = await self._credentials.get(CredentialKind.TTS)
            voice_id = self.selector.selected_voice_id
            if (
                not credential
                or self.selector.voice_source != VoiceSource.CLOUD
                or not voice_id
            ):
                raise CredentialInvalidError(
                    "A Google Cloud API key and voice are required to save articles"
                )

            await self.player.stop()
            chunks = self.player.chunks
            article = loaded.article.model_copy(update={"content": loaded.text})

            async def _progress(progress: SaveProgress) -> None:
                self._save_progress = progress
                if on_progress is not None:
                    result = on_progress(progress)
                    if inspect.isawaitable(result):
                        await result

            self._save_progress = SaveProgress(current=0, total=len(chunks), active=True)
            saved = await self.saved_articles.save(
                article, chunks, voice_id, credential, on_progress=_progress
            )
        finally:
            self._saving = False
            self._save_progress = self._save_progress.model_copy(update={"active": False})

        loaded.saved_article_id = saved.id
        return saved

    async def load_saved(self, article_id: str) -> ArticleResponse:
        """Load a saved article for offline replay from its stored audio."""
        self._ensure_not_saving()
        saved = await self.saved_articles.get(article_id)
        chunks = split_into_chunks(saved.content, self._chunk_max_chars)
        if len(chunks) != len(saved.audio_files):
            raise PersistenceError(
                f"Saved audio has {len(saved.audio_files)} chunk(s) but the text has {len(chunks)}"
            )
        for handle in saved.audio_files:
            if not await self.saved_articles.archive.exists(handle):
                raise PersistenceError(f"Saved audio is missing: {handle}")

        self._loaded = LoadedArticle(
            article=Article(
                title=saved.title,
                author=saved.author,
                content=saved.content,
                url=saved.url,
                language=saved.language,
            ),
            saved_article_id=saved.id,
        )
        self._saved_backend = SavedAudioBackend(
            self.saved_articles.archive, self._audio_player, saved
        )
        await self.player.load(chunks, saved.language)
        await self.selector.refresh(saved.language)
        logger.info("Loaded saved article '%s' (%d chunks)", saved.title, len(chunks))
        return self.describe()

    async def delete_saved(self, article_id: str) -> None:
        self._ensure_not_saving()
        loaded = self._loaded
        is_current = loaded is not None and loaded.saved_article_id == article_id
        if is_current and self._saved_backend is not None:
            await self.player.stop()
        await self.saved_articles.delete(article_id)
        if is_current:
            loaded.saved_article_id = None
            self._saved_backend = None

    async def list_saved(self) -> list[SavedArticle]:
        return await self.saved_articles.list_saved()

    async def is_saved(self, url: str) -> bool:
        return await self.saved_articles.find_by_url(url) is not None


__all__ = ["LoadedArticle", "ReaderSession"]
