"""API routes for API credentials and voice selection."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..schemas.settings import (
    CredentialKind,
    CredentialPayload,
    CredentialStatus,
    CredentialValidation,
)
from ..schemas.voices import Voice, VoiceListResponse, VoiceSelectionPayload
from ..services.reader_session import ReaderSession
from .dependencies import get_reader_session, reader_errors

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("/credentials", response_model=CredentialStatus)
async def read_credentials(
    session: ReaderSession = Depends(get_reader_session),
) -> CredentialStatus:
    return await session.credential_status()


@router.put("/credentials/{kind}", response_model=CredentialStatus)
async def update_credential(
    kind: CredentialKind,
    payload: CredentialPayload,
    session: ReaderSession = Depends(get_reader_session),
) -> CredentialStatus:
    """Store an API key. Cloud TTS keys are checked against the API first."""
    with reader_errors():
        return await session.set_credential(kind, payload.key)


@router.delete("/credentials/{kind}", response_model=CredentialStatus)
async def delete_credential(
    kind: CredentialKind,
    session: ReaderSession = Depends(get_reader_session),
) -> CredentialStatus:
    with reader_errors():
        return await session.clear_credential(kind)


@router.post("/credentials/validate", response_model=CredentialValidation)
async def validate_credential(
    payload: CredentialPayload,
    session: ReaderSession = Depends(get_reader_session),
) -> CredentialValidation:
    return await session.validate_credential(payload.key)


@router.get("/voices", response_model=VoiceListResponse)
async def read_voices(
    refresh: bool = False,
    session: ReaderSession = Depends(get_reader_session),
) -> VoiceListResponse:
    if refresh:
        return await session.refresh_voices()
    return session.voices()


@router.put("/voices", response_model=Voice)
async def update_voice(
    payload: VoiceSelectionPayload,
    session: ReaderSession = Depends(get_reader_session),
) -> Voice:
    with reader_errors():
        return await session.select_voice(payload.voice_id)
