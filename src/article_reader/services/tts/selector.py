"""Choose between the device and cloud backends and track the selected voice."""

from __future__ import annotations

import logging
from typing import Optional

from ...errors import ReaderError, VoiceNotAvailableError
from ...schemas.article import Language
from ...schemas.settings import CredentialKind
from ...schemas.voices import Voice, VoiceListResponse, VoiceSource
from ..credentials import CredentialStore, VoicePreferences
from .backends import PlaybackTarget, SpeechBackend

logger = logging.getLogger(__name__)


class SpeechBackendSelector:
    """
    Cloud speech is used whenever a cloud credential is stored and a voice is
    selected; otherwise the device backend speaks.

    The voice list always comes from the backend implied by credential
    presence, and the selection is re-resolved on every ``refresh`` so that a
    voice id from one backend never survives into the other.
    """

    def __init__(
        self,
        device: SpeechBackend,
        cloud: SpeechBackend,
        credentials: CredentialStore,
        preferences: VoicePreferences,
        language: Language = Language.EN,
    ):
        self.device = device
        self.cloud = cloud
        self._credentials = credentials
        self._preferences = preferences
        self.language = language
        self.voices: list[Voice] = []
        self.selected_voice_id: Optional[str] = None
        self.has_cloud_credential = False

    @property
    def voice_source(self) -> VoiceSource:
        return VoiceSource.CLOUD if self.has_cloud_credential else VoiceSource.DEVICE

    @property
    def active_backend(self) -> SpeechBackend:
        if self.has_cloud_credential and self.selected_voice_id:
            return self.cloud
        return self.device

    async def refresh(self, language: Optional[Language] = None) -> list[Voice]:
        """Re-list voices and re-resolve the selection for ``language``.

        Resolution order: stored preference for the language, then the
        current selection, then the first listed voice.
        """
        if language is not None:
            self.language = language

        self.has_cloud_credential = (
            await self._credentials.get(CredentialKind.TTS) is not None
        )
        backend = self.cloud if self.has_cloud_credential else self.device

        try:
            voices = await backend.list_voices(self.language)
        except ReaderError as exc:
            logger.warning("Could not list %s voices: %s", backend.source.value, exc.detail)
            voices = []

        available = {voice.id for voice in voices}
        preferred = await self._preferences.get(self.language)

        if preferred in available:
            selected = preferred
        elif self.selected_voice_id in available:
            selected = self.selected_voice_id
        elif voices:
            selected = voices[0].id
        else:
            selected = None

        if selected != self.selected_voice_id:
            logger.info(
                "Voice for %s resolved to %s (%s)",
                self.language.value,
                selected,
                backend.source.value,
            )
        self.voices = voices
        self.selected_voice_id = selected
        return voices

    async def select_voice(self, voice_id: str) -> Voice:
        for voice in self.voices:
            if voice.id == voice_id:
                self.selected_voice_id = voice_id
                await self._preferences.set(self.language, voice_id)
                return voice
        raise VoiceNotAvailableError(voice_id)

    def target(self) -> PlaybackTarget:
        return PlaybackTarget(self.active_backend, self.selected_voice_id)

    def describe(self) -> VoiceListResponse:
        return VoiceListResponse(
            language=self.language,
            source=self.voice_source,
            voices=list(self.voices),
            selected_voice_id=self.selected_voice_id,
        )


__all__ = ["SpeechBackendSelector"]
