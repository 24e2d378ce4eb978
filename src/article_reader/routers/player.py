"""API routes for playback control."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..schemas.playback import PLAYBACK_SPEEDS, PlaybackState, SpeedPayload
from ..services.reader_session import ReaderSession
from .dependencies import get_reader_session, reader_errors

router = APIRouter(prefix="/api/player", tags=["player"])


@router.get("/state", response_model=PlaybackState)
async def read_state(
    session: ReaderSession = Depends(get_reader_session),
) -> PlaybackState:
    return session.playback_state


@router.get("/speeds")
async def list_speeds() -> dict[str, list[float]]:
    return {"speeds": list(PLAYBACK_SPEEDS)}


@router.post("/play", response_model=PlaybackState)
async def play(session: ReaderSession = Depends(get_reader_session)) -> PlaybackState:
    with reader_errors():
        return await session.play()


@router.post("/pause", response_model=PlaybackState)
async def pause(session: ReaderSession = Depends(get_reader_session)) -> PlaybackState:
    with reader_errors():
        return await session.pause()


@router.post("/resume", response_model=PlaybackState)
async def resume(session: ReaderSession = Depends(get_reader_session)) -> PlaybackState:
    with reader_errors():
        return await session.resume()


@router.post("/stop", response_model=PlaybackState)
async def stop(session: ReaderSession = Depends(get_reader_session)) -> PlaybackState:
    with reader_errors():
        return await session.stop()


@router.post("/skip-forward", response_model=PlaybackState)
async def skip_forward(
    session: ReaderSession = Depends(get_reader_session),
) -> PlaybackState:
    with reader_errors():
        return await session.skip_forward()


@router.post("/skip-back", response_model=PlaybackState)
async def skip_back(
    session: ReaderSession = Depends(get_reader_session),
) -> PlaybackState:
    with reader_errors():
        return await session.skip_back()


@router.put("/speed", response_model=PlaybackState)
async def update_speed(
    payload: SpeedPayload,
    session: ReaderSession = Depends(get_reader_session),
) -> PlaybackState:
    with reader_errors():
        return await session.set_speed(payload.speed)
