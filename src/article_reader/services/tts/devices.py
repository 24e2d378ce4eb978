"""Interfaces for the playback device: the on-device speech engine and audio player."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ...schemas.voices import Voice


@runtime_checkable
class SpeechEngine(Protocol):
    """On-device text-to-speech.

    ``speak`` resolves once the utterance has finished *or* been stopped;
    both outcomes look the same to the caller.
    """

    async def list_voices(self) -> list[Voice]: ...

    async def speak(
        self,
        text: str,
        *,
        language_code: str,
        voice_id: Optional[str],
        rate: float,
    ) -> None: ...

    async def pause(self) -> None: ...

    async def resume(self) -> None: ...

    async def stop(self) -> None: ...


@runtime_checkable
class AudioPlayer(Protocol):
    """Plays one complete audio buffer; ``play`` resolves on completion or stop."""

    async def play(self, audio: bytes) -> None: ...

    async def pause(self) -> None: ...

    async def resume(self) -> None: ...

    async def stop(self) -> None: ...


__all__ = ["AudioPlayer", "SpeechEngine"]
