import asyncio
import base64
import pathlib
import sys
from typing import Optional

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from article_reader.errors import SynthesisError  # noqa: E402
from article_reader.schemas.settings import CredentialValidation  # noqa: E402
from article_reader.schemas.voices import Voice, VoiceSource  # noqa: E402


async def settle(rounds: int = 20) -> None:
    """Let scheduled tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeSpeechEngine:
    """In-memory device speech engine.

    With ``hold=True`` every utterance stays "speaking" until
    ``finish_current()`` or ``stop()`` is called.
    """

    def __init__(self, voices: Optional[list[Voice]] = None, hold: bool = False):
        self.voices = voices if voices is not None else [
            Voice(id="device-en", name="Device English", source=VoiceSource.DEVICE, language_code="en-US"),
            Voice(id="device-sv", name="Device Swedish", source=VoiceSource.DEVICE, language_code="sv-SE"),
        ]
        self.hold = hold
        self.spoken: list[dict] = []
        self.fail_on: Optional[int] = None
        self.paused = False
        self.stop_calls = 0
        self._current: Optional[asyncio.Event] = None

    async def list_voices(self) -> list[Voice]:
        return list(self.voices)

    async def speak(self, text, *, language_code, voice_id, rate) -> None:
        self.spoken.append(
            {"text": text, "language_code": language_code, "voice_id": voice_id, "rate": rate}
        )
        if self.fail_on is not None and len(self.spoken) - 1 == self.fail_on:
            raise SynthesisError("boom")
        if self.hold:
            self._current = asyncio.Event()
            await self._current.wait()

    def finish_current(self) -> None:
        if self._current is not None:
            self._current.set()

    async def pause(self) -> None:
        self.paused = True

    async def resume(self) -> None:
        self.paused = False

    async def stop(self) -> None:
        self.stop_calls += 1
        self.finish_current()


class FakeAudioPlayer:
    def __init__(self):
        self.played: list[bytes] = []
        self.paused = False
        self.stop_calls = 0

    async def play(self, audio: bytes) -> None:
        self.played.append(audio)

    async def pause(self) -> None:
        self.paused = True

    async def resume(self) -> None:
        self.paused = False

    async def stop(self) -> None:
        self.stop_calls += 1


class FakeCloudTTS:
    """Stands in for GoogleCloudTTS; returns base64 of ``audio:<text>``."""

    def __init__(self, fail_on_call: Optional[int] = None, gate: Optional[asyncio.Event] = None):
        self.calls: list[tuple[str, str, str]] = []
        self.fail_on_call = fail_on_call
        self.gate = gate
        self.valid_keys = {"good-key"}

    async def synthesize(self, text: str, voice_id: str, credential: str) -> str:
        self.calls.append((text, voice_id, credential))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise SynthesisError("quota exceeded")
        if self.gate is not None:
            await self.gate.wait()
        return base64.b64encode(f"audio:{text}".encode()).decode()

    async def validate_credential(self, credential: str) -> CredentialValidation:
        if credential in self.valid_keys:
            return CredentialValidation(valid=True)
        return CredentialValidation(valid=False, error="API key not valid")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
