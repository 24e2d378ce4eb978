"""Error types raised across the reader pipeline."""

from __future__ import annotations


class ReaderError(Exception):
    """Base error carrying an HTTP status code and a user-facing detail."""

    status_code: int = 500

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class FetchError(ReaderError):
    """The article URL could not be retrieved."""

    status_code = 502

    def __init__(self, url: str, detail: str, upstream_status: int | None = None) -> None:
        super().__init__(detail)
        self.url = url
        self.upstream_status = upstream_status


class ExtractionError(ReaderError):
    status_code = 422


class SynthesisError(ReaderError):
    """A speech backend failed to produce or play audio for a chunk."""

    status_code = 502


class DeviceUnavailableError(SynthesisError):
    status_code = 503


class CredentialInvalidError(ReaderError):
    status_code = 400


class PersistenceError(ReaderError):
    status_code = 500


class SummarizationError(ReaderError):
    status_code = 502


class NoArticleLoadedError(ReaderError):
    status_code = 409

    def __init__(self, detail: str = "No article loaded") -> None:
        super().__init__(detail)


class SaveInProgressError(ReaderError):
    status_code = 409

    def __init__(self, detail: str = "A save is in progress") -> None:
        super().__init__(detail)


class SavedArticleNotFoundError(ReaderError):
    status_code = 404

    def __init__(self, article_id: str) -> None:
        super().__init__(f"Saved article '{article_id}' not found")
        self.article_id = article_id


class VoiceNotAvailableError(ReaderError):
    status_code = 400

    def __init__(self, voice_id: str) -> None:
        super().__init__(f"Voice '{voice_id}' is not available")
        self.voice_id = voice_id


__all__ = [
    "CredentialInvalidError",
    "DeviceUnavailableError",
    "ExtractionError",
    "FetchError",
    "NoArticleLoadedError",
    "PersistenceError",
    "ReaderError",
    "SaveInProgressError",
    "SavedArticleNotFoundError",
    "SummarizationError",
    "SynthesisError",
    "VoiceNotAvailableError",
]
