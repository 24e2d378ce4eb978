"""Stored API credentials and per-language voice preferences."""

from __future__ import annotations

import json
import logging
from typing import Mapping, Optional

from ..schemas.article import Language
from ..schemas.settings import CredentialKind, CredentialStatus
from .key_value_store import JsonKeyValueStore

logger = logging.getLogger(__name__)

CREDENTIAL_KEYS: dict[CredentialKind, str] = {
    CredentialKind.TTS: "google_cloud_api_key",
    CredentialKind.SUMMARIZER: "gemini_api_key",
}
VOICE_PREFERENCES_KEY = "voice_preferences"


class CredentialStore:
    """Read and write API keys; environment-provided keys act as fallbacks."""

    def __init__(
        self,
        store: JsonKeyValueStore,
        fallbacks: Optional[Mapping[CredentialKind, Optional[str]]] = None,
    ):
        self._store = store
        self._fallbacks = dict(fallbacks or {})

    async def get(self, kind: CredentialKind) -> Optional[str]:
        stored = await self._store.get(CREDENTIAL_KEYS[kind])
        if stored:
            return stored
        return self._fallbacks.get(kind) or None

    async def set(self, kind: CredentialKind, key: str) -> None:
        await self._store.set(CREDENTIAL_KEYS[kind], key.strip())
        logger.info("Stored %s credential", kind.value)

    async def clear(self, kind: CredentialKind) -> None:
        await self._store.delete(CREDENTIAL_KEYS[kind])
        self._fallbacks.pop(kind, None)
        logger.info("Cleared %s credential", kind.value)

    async def status(self) -> CredentialStatus:
        return CredentialStatus(
            tts=await self.get(CredentialKind.TTS) is not None,
            summarizer=await self.get(CredentialKind.SUMMARIZER) is not None,
        )


class VoicePreferences:
    """Remember the chosen voice id per language."""

    def __init__(self, store: JsonKeyValueStore):
        self._store = store

    async def _load(self) -> dict[str, Optional[str]]:
        raw = await self._store.get(VOICE_PREFERENCES_KEY)
        if not raw:
            return {language.value: None for language in Language}
        try:
            data = json.loads(raw)
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed voice preferences")
            data = {}
        return {language.value: data.get(language.value) for language in Language}

    async def get(self, language: Language) -> Optional[str]:
        return (await self._load()).get(language.value)

    async def set(self, language: Language, voice_id: Optional[str]) -> None:
        data = await self._load()
        data[language.value] = voice_id
        await self._store.set(VOICE_PREFERENCES_KEY, json.dumps(data))


__all__ = [
    "CREDENTIAL_KEYS",
    "CredentialStore",
    "VOICE_PREFERENCES_KEY",
    "VoicePreferences",
]
