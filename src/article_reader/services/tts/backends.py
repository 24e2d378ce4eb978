"""
Speech backends behind one capability interface.

Each backend speaks a single chunk per ``speak`` call and resolves when that
chunk's audio has finished or was stopped. Differences between backends are
declared as capability flags rather than hidden behind the interface:

- ``supports_rate``: whether ``Utterance.rate`` changes the spoken speed
- ``cancellable_synthesis``: whether ``stop`` interrupts audio generation
  itself, or only prevents generated audio from being played
"""

from __future__ import annotations

import asyncio
import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ...errors import SynthesisError
from ...schemas.article import Language
from ...schemas.saved import SavedArticle
from ...schemas.settings import CredentialKind
from ...schemas.voices import GOOGLE_CLOUD_VOICES, Voice, VoiceSource
from .devices import AudioPlayer, SpeechEngine

if TYPE_CHECKING:
    from ..credentials import CredentialStore
    from ..saved_articles import AudioArchive
    from ..tts_service import GoogleCloudTTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Utterance:
    text: str
    index: int
    language: Language
    voice_id: Optional[str] = None
    rate: float = 1.0


class SpeechBackend(ABC):
    source: VoiceSource
    supports_rate: bool = True
    cancellable_synthesis: bool = True

    @abstractmethod
    async def list_voices(self, language: Language) -> list[Voice]: ...

    @abstractmethod
    async def speak(self, utterance: Utterance) -> None: ...

    @abstractmethod
    async def pause(self) -> None: ...

    @abstractmethod
    async def resume(self) -> None: ...

    @abstractmethod
    async def stop(self) -> None: ...


@dataclass(frozen=True)
class PlaybackTarget:
    """The backend and voice a playback run speaks with."""

    backend: SpeechBackend
    voice_id: Optional[str] = None


class DeviceSpeechBackend(SpeechBackend):
    source = VoiceSource.DEVICE
    supports_rate = True
    cancellable_synthesis = True

    def __init__(self, engine: SpeechEngine):
        self._engine = engine

    async def list_voices(self, language: Language) -> list[Voice]:
        voices = await self._engine.list_voices()
        prefix = language.value
        return [
            voice
            for voice in voices
            if (voice.language_code or "").lower().startswith(prefix)
        ]

    async def speak(self, utterance: Utterance) -> None:
        await self._engine.speak(
            utterance.text,
            language_code=utterance.language.locale,
            voice_id=utterance.voice_id,
            rate=utterance.rate,
        )

    async def pause(self) -> None:
        await self._engine.pause()

    async def resume(self) -> None:
        await self._engine.resume()

    async def stop(self) -> None:
        await self._engine.stop()


class _BufferedAudioBackend(SpeechBackend):
    """Shared handoff logic for backends that obtain a full buffer, then play it.

    Pause while the buffer is being obtained holds the handoff until resume;
    stop while it is being obtained discards the buffer.
    """

    supports_rate = False

    def __init__(self, player: AudioPlayer):
        self._player = player
        self._unpaused = asyncio.Event()
        self._unpaused.set()
        # Bumped by every stop; a speak call only plays if no stop followed its start
        self._stop_generation = 0

    @abstractmethod
    async def _load_audio(self, utterance: Utterance) -> bytes: ...

    async def speak(self, utterance: Utterance) -> None:
        generation = self._stop_generation
        audio = await self._load_audio(utterance)
        if generation != self._stop_generation:
            logger.debug("Discarding audio for chunk %d after stop", utterance.index)
            return
        await self._unpaused.wait()
        if generation != self._stop_generation:
            return
        await self._player.play(audio)

    async def pause(self) -> None:
        self._unpaused.clear()
        await self._player.pause()

    async def resume(self) -> None:
        self._unpaused.set()
        await self._player.resume()

    async def stop(self) -> None:
        self._stop_generation += 1
        self._unpaused.set()
        await self._player.stop()


class CloudSpeechBackend(_BufferedAudioBackend):
    source = VoiceSource.CLOUD
    cancellable_synthesis = False

    def __init__(
        self,
        client: "GoogleCloudTTS",
        player: AudioPlayer,
        credentials: "CredentialStore",
    ):
        super().__init__(player)
        self._client = client
        self._credentials = credentials

    async def list_voices(self, language: Language) -> list[Voice]:
        return list(GOOGLE_CLOUD_VOICES[language])

    async def _load_audio(self, utterance: Utterance) -> bytes:
        if not utterance.voice_id:
            raise SynthesisError("No cloud voice selected")
        credential = await self._credentials.get(CredentialKind.TTS)
        if not credential:
            raise SynthesisError("Google Cloud API key is not configured")
        audio_b64 = await self._client.synthesize(
            utterance.text, utterance.voice_id, credential
        )
        return base64.b64decode(audio_b64)


class SavedAudioBackend(_BufferedAudioBackend):
    """Replays the per-chunk audio stored with a saved article."""

    source = VoiceSource.CLOUD
    cancellable_synthesis = True

    def __init__(
        self,
        archive: "AudioArchive",
        player: AudioPlayer,
        article: SavedArticle,
    ):
        super().__init__(player)
        self._archive = archive
        self.article = article

    async def list_voices(self, language: Language) -> list[Voice]:
        return [
            Voice(
                id=self.article.voice_id,
                name=f"Saved audio ({self.article.voice_id})",
                source=VoiceSource.CLOUD,
                language_code=self.article.language.locale,
            )
        ]

    async def _load_audio(self, utterance: Utterance) -> bytes:
        try:
            handle = self.article.audio_files[utterance.index]
        except IndexError as exc:
            raise SynthesisError(
                f"No saved audio for chunk {utterance.index + 1}"
            ) from exc
        return await self._archive.read(handle)


__all__ = [
    "CloudSpeechBackend",
    "DeviceSpeechBackend",
    "PlaybackTarget",
    "SavedAudioBackend",
    "SpeechBackend",
    "Utterance",
]
