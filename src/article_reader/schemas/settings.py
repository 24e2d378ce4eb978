"""Credential management schemas."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CredentialKind(str, Enum):
    TTS = "tts"
    SUMMARIZER = "summarizer"


class CredentialPayload(BaseModel):
    key: str = Field(..., min_length=1)


class CredentialValidation(BaseModel):
    valid: bool
    error: Optional[str] = None


class CredentialStatus(BaseModel):
    """Which credentials are configured. Keys themselves are never returned."""

    tts: bool = False
    summarizer: bool = False


__all__ = [
    "CredentialKind",
    "CredentialPayload",
    "CredentialStatus",
    "CredentialValidation",
]
