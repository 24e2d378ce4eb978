"""Voice descriptors and the cloud voice catalog."""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel

from .article import Language


class VoiceSource(str, Enum):
    DEVICE = "device"
    CLOUD = "cloud"


class Voice(BaseModel):
    """A selectable voice. Ids are unique within one backend only."""

    id: str
    name: str
    source: VoiceSource
    language_code: Optional[str] = None
    gender: Optional[Literal["male", "female"]] = None


def _cloud(voice_id: str, name: str, gender: Literal["male", "female"]) -> Voice:
    return Voice(
        id=voice_id,
        name=name,
        source=VoiceSource.CLOUD,
        language_code=voice_id[:5],
        gender=gender,
    )


# Google Cloud Text-to-Speech Wavenet voices offered for each language
GOOGLE_CLOUD_VOICES: dict[Language, tuple[Voice, ...]] = {
    Language.SV: (
        _cloud("sv-SE-Wavenet-A", "Swedish Female 1", "female"),
        _cloud("sv-SE-Wavenet-B", "Swedish Female 2", "female"),
        _cloud("sv-SE-Wavenet-C", "Swedish Female 3", "female"),
        _cloud("sv-SE-Wavenet-D", "Swedish Male 1", "male"),
        _cloud("sv-SE-Wavenet-E", "Swedish Male 2", "male"),
    ),
    Language.EN: (
        _cloud("en-US-Wavenet-A", "English Male 1", "male"),
        _cloud("en-US-Wavenet-B", "English Male 2", "male"),
        _cloud("en-US-Wavenet-C", "English Female 1", "female"),
        _cloud("en-US-Wavenet-D", "English Male 3", "male"),
        _cloud("en-US-Wavenet-E", "English Female 2", "female"),
        _cloud("en-US-Wavenet-F", "English Female 3", "female"),
    ),
}


class VoiceListResponse(BaseModel):
    language: Language
    source: VoiceSource
    voices: list[Voice]
    selected_voice_id: Optional[str] = None


class VoiceSelectionPayload(BaseModel):
    voice_id: str


__all__ = [
    "GOOGLE_CLOUD_VOICES",
    "Voice",
    "VoiceListResponse",
    "VoiceSelectionPayload",
    "VoiceSource",
]
