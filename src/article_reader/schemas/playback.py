"""Playback state schemas."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator

PLAYBACK_SPEEDS: tuple[float, ...] = (0.5, 0.75, 1.0, 1.25, 1.5, 2.0)
DEFAULT_SPEED = 1.0


def validate_speed(value: float) -> float:
    speed = float(value)
    if speed not in PLAYBACK_SPEEDS:
        allowed = ", ".join(f"{option:g}" for option in PLAYBACK_SPEEDS)
        raise ValueError(f"Speed must be one of: {allowed}")
    return speed


class PlayerStatus(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"


class PlaybackState(BaseModel):
    """Snapshot of the playback state machine."""

    status: PlayerStatus = PlayerStatus.IDLE
    speed: float = DEFAULT_SPEED
    current_chunk_index: int = Field(default=0, ge=0)
    total_chunks: int = Field(default=0, ge=0)
    last_error: Optional[str] = None

    @field_validator("speed")
    @classmethod
    def _check_speed(cls, value: float) -> float:
        return validate_speed(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_playing(self) -> bool:
        return self.status == PlayerStatus.PLAYING

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_paused(self) -> bool:
        return self.status == PlayerStatus.PAUSED


class SpeedPayload(BaseModel):
    speed: float

    @field_validator("speed")
    @classmethod
    def _check_speed(cls, value: float) -> float:
        return validate_speed(value)


__all__ = [
    "DEFAULT_SPEED",
    "PLAYBACK_SPEEDS",
    "PlaybackState",
    "PlayerStatus",
    "SpeedPayload",
    "validate_speed",
]
