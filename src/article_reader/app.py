"""Application factory for the FastAPI service."""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import PROJECT_ROOT, Settings, get_settings
from .logging_handlers import DateStampedFileHandler, cleanup_old_logs
from .logging_settings import parse_logging_settings
from .routers.articles import router as articles_router
from .routers.device import router as device_router
from .routers.player import router as player_router
from .routers.saved import router as saved_router
from .routers.settings import router as settings_router
from .schemas.settings import CredentialKind
from .services.credentials import CredentialStore, VoicePreferences
from .services.device_bridge import DeviceConnectionManager
from .services.fetcher import ArticleFetcher
from .services.key_value_store import JsonKeyValueStore
from .services.reader_session import ReaderSession
from .services.saved_articles import (
    AudioArchive,
    SavedArticleRepository,
    SavedArticleService,
)
from .services.summarizer import GeminiSummarizer
from .services.tts import CloudSpeechBackend, DeviceSpeechBackend, SpeechBackendSelector
from .services.tts_service import GoogleCloudTTS

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_under(base: Path, p: Path) -> Path:
    # Allow absolute paths as-is (useful for tests and external mounts).
    if p.is_absolute():
        return p.resolve()
    resolved = (base / p).resolve()
    if not resolved.is_relative_to(base):
        raise ValueError(f"Configured path {resolved} escapes project root {base}")
    return resolved


def _configure_logging(settings: Settings) -> None:
    """Configure console and file logging.

    ``LOG_LEVEL`` overrides the terminal level from the logging settings file.
    """
    # Load .env file first to ensure LOG_LEVEL is available
    load_dotenv(PROJECT_ROOT / ".env")

    log_settings = parse_logging_settings(
        _resolve_under(PROJECT_ROOT, settings.logging_settings_path)
    )
    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)
    handlers: list[logging.Handler] = []
    levels: list[int] = []

    env_level = os.getenv("LOG_LEVEL")
    terminal_level = (
        getattr(logging, env_level.upper(), logging.INFO)
        if env_level
        else log_settings.terminal_level
    )
    if terminal_level is not None:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(terminal_level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)
        levels.append(terminal_level)

    log_dir = _resolve_under(PROJECT_ROOT, settings.log_dir)
    if log_settings.file_level is not None:
        file_handler = DateStampedFileHandler(log_dir, prefix="reader")
        file_handler.setLevel(log_settings.file_level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
        levels.append(log_settings.file_level)

    root_level = min(levels) if levels else logging.WARNING
    logging.basicConfig(
        level=root_level,
        handlers=handlers or [logging.NullHandler()],
        format=_LOG_FORMAT,
        datefmt=_DATE_FORMAT,
        force=True,  # Override any existing configuration
    )
    logging.getLogger("article_reader").setLevel(root_level)
    logging.getLogger("uvicorn").setLevel(root_level)

    # Quiet down noisy third-party libraries
    if root_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    cleanup_old_logs(
        [log_dir], log_settings.retention_hours, logging.getLogger(__name__)
    )


def _secret(value) -> Optional[str]:
    return value.get_secret_value() if value else None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    # Configure logging first thing
    _configure_logging(settings)

    project_root = PROJECT_ROOT

    store = JsonKeyValueStore(_resolve_under(project_root, settings.preferences_path))
    credentials = CredentialStore(
        store,
        fallbacks={
            CredentialKind.TTS: _secret(settings.google_tts_api_key),
            CredentialKind.SUMMARIZER: _secret(settings.gemini_api_key),
        },
    )
    preferences = VoicePreferences(store)

    device_manager = DeviceConnectionManager(request_timeout=settings.request_timeout)
    tts_client = GoogleCloudTTS(base_url=str(settings.google_tts_base_url))
    selector = SpeechBackendSelector(
        device=DeviceSpeechBackend(device_manager),
        cloud=CloudSpeechBackend(tts_client, device_manager, credentials),
        credentials=credentials,
        preferences=preferences,
    )

    repository = SavedArticleRepository(
        _resolve_under(project_root, settings.saved_articles_db_path)
    )
    saved_articles = SavedArticleService(
        repository,
        AudioArchive(_resolve_under(project_root, settings.saved_audio_dir)),
        tts_client,
    )

    fetcher = ArticleFetcher(
        user_agent=settings.fetch_user_agent,
        timeout=settings.request_timeout,
    )
    session = ReaderSession(
        fetcher=fetcher,
        summarizer=GeminiSummarizer(
            base_url=str(settings.gemini_base_url),
            model=settings.gemini_model,
            timeout=settings.request_timeout,
        ),
        selector=selector,
        credentials=credentials,
        tts_client=tts_client,
        saved_articles=saved_articles,
        audio_player=device_manager,
        chunk_max_chars=settings.chunk_max_chars,
        min_content_chars=settings.min_content_chars,
    )
    session.player.add_listener(device_manager.publish_state)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await repository.initialize()
        await session.initialize()
        try:
            yield
        finally:
            # Add timeout to prevent hanging during shutdown (especially in tests)
            try:
                await asyncio.wait_for(session.close(), timeout=10.0)
            except asyncio.TimeoutError:
                logging.warning("Reader session shutdown timed out after 10s")
            await fetcher.aclose()
            await GoogleCloudTTS.close_http_client()
            await repository.close()

    app = FastAPI(
        title="Article Reader",
        version="0.1.0",
        description="Fetch web articles and read them aloud with device or cloud speech.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.reader_session = session
    app.state.device_manager = device_manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(articles_router)
    app.include_router(player_router)
    app.include_router(settings_router)
    app.include_router(saved_router)
    app.include_router(device_router)

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, object]:
        voices = session.voices()
        return {
            "status": "ok",
            "device_connected": device_manager.is_connected,
            "voice_source": voices.source.value,
            "playback": session.playback_state.status.value,
        }

    return app


__all__ = ["create_app"]
