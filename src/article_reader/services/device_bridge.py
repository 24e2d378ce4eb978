"""WebSocket bridge to the client device that owns the speaker.

The server never produces sound itself. On-device speech and audio playback
are relayed to the connected client, which reports back when an utterance
or buffer has finished. The manager implements both the ``SpeechEngine`` and
``AudioPlayer`` interfaces on top of that exchange.

Server -> client messages: ``speak``, ``play_audio``, ``list_voices``,
``pause``, ``resume``, ``stop``, ``playback_state``.
Client -> server messages: ``speech_done``, ``speech_stopped``,
``playback_done``, ``playback_stopped``, ``voices``, ``error``, ``heartbeat``.
Replies carry the ``request_id`` of the command they answer.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import WebSocket

from ..errors import DeviceUnavailableError, SynthesisError
from ..schemas.playback import PlaybackState
from ..schemas.voices import Voice, VoiceSource

logger = logging.getLogger(__name__)

_REPLY_TYPES = {
    "speech_done",
    "speech_stopped",
    "playback_done",
    "playback_stopped",
    "voices",
}


@dataclass
class DeviceSession:
    """Tracks a single device connection."""

    client_id: str
    websocket: WebSocket
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_activity: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def update_activity(self) -> None:
        self.last_activity = datetime.now(timezone.utc)


@dataclass
class _PendingRequest:
    client_id: str
    message_type: str
    future: asyncio.Future


class DeviceConnectionManager:
    """Manages device WebSocket connections and relays speech commands.

    Commands go to the most recently connected device.
    """

    def __init__(self, request_timeout: float = 10.0):
        self.active_connections: Dict[str, DeviceSession] = {}
        self._pending: Dict[str, _PendingRequest] = {}
        self._request_timeout = request_timeout

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------
    async def connect(self, websocket: WebSocket, client_id: str) -> DeviceSession:
        await websocket.accept()
        session = DeviceSession(client_id=client_id, websocket=websocket)
        # Re-insert so the newest connection is last
        self.active_connections.pop(client_id, None)
        self.active_connections[client_id] = session
        logger.info(f"Device connected: {client_id}")
        return session

    def disconnect(self, client_id: str) -> None:
        if self.active_connections.pop(client_id, None) is None:
            return
        logger.info(f"Device disconnected: {client_id}")
        for request_id, pending in list(self._pending.items()):
            if pending.client_id == client_id and not pending.future.done():
                pending.future.set_exception(
                    DeviceUnavailableError("Playback device disconnected")
                )
                self._pending.pop(request_id, None)

    def get_session(self, client_id: str) -> Optional[DeviceSession]:
        return self.active_connections.get(client_id)

    @property
    def is_connected(self) -> bool:
        return bool(self.active_connections)

    def _primary(self) -> DeviceSession:
        if not self.active_connections:
            raise DeviceUnavailableError("No playback device connected")
        return next(reversed(self.active_connections.values()))

    async def send_message(self, client_id: str, message: dict) -> None:
        """Send a JSON message to a specific client."""
        session = self.active_connections.get(client_id)
        if session is None:
            return
        try:
            await session.websocket.send_json(message)
        except Exception as e:
            logger.warning(f"Error sending to {client_id}: {e}")
            self.disconnect(client_id)

    async def broadcast(self, message: dict) -> None:
        for client_id in list(self.active_connections):
            await self.send_message(client_id, message)

    async def publish_state(self, state: PlaybackState) -> None:
        """Playback listener that mirrors the state machine to every device."""
        await self.broadcast({"type": "playback_state", "state": state.model_dump(mode="json")})

    # ------------------------------------------------------------------
    # Incoming messages
    # ------------------------------------------------------------------
    async def handle_message(self, client_id: str, data: dict[str, Any]) -> None:
        session = self.active_connections.get(client_id)
        if session is not None:
            session.update_activity()

        event_type = data.get("type")
        request_id = data.get("request_id")

        if event_type == "heartbeat":
            return

        if event_type in _REPLY_TYPES or event_type == "error":
            pending = self._pending.pop(request_id, None) if request_id else None
            if pending is None or pending.future.done():
                logger.debug(f"Ignoring {event_type} for unknown request {request_id}")
                return
            if event_type == "error":
                message = data.get("message") or "Playback device reported an error"
                pending.future.set_exception(SynthesisError(str(message)))
            else:
                pending.future.set_result(data)
            return

        logger.warning(f"Unknown device message type from {client_id}: {event_type}")

    # ------------------------------------------------------------------
    # Outgoing commands
    # ------------------------------------------------------------------
    async def _request(
        self,
        message_type: str,
        payload: dict[str, Any],
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        session = self._primary()
        request_id = uuid.uuid4().hex
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = _PendingRequest(session.client_id, message_type, future)
        try:
            try:
                await session.websocket.send_json(
                    {"type": message_type, "request_id": request_id, **payload}
                )
            except Exception as e:
                self._pending.pop(request_id, None)
                self.disconnect(session.client_id)
                raise DeviceUnavailableError(f"Playback device unreachable: {e}") from e
            if timeout is None:
                return await future
            try:
                return await asyncio.wait_for(future, timeout)
            except asyncio.TimeoutError as e:
                raise DeviceUnavailableError(
                    f"Playback device did not answer '{message_type}'"
                ) from e
        finally:
            self._pending.pop(request_id, None)

    async def _command(self, message_type: str) -> None:
        if not self.active_connections:
            return
        await self.send_message(self._primary().client_id, {"type": message_type})

    # SpeechEngine / AudioPlayer
    async def list_voices(self) -> list[Voice]:
        reply = await self._request("list_voices", {}, timeout=self._request_timeout)
        voices = []
        for raw in reply.get("voices") or []:
            if not isinstance(raw, dict) or not raw.get("id"):
                continue
            voices.append(
                Voice(
                    id=str(raw["id"]),
                    name=str(raw.get("name") or raw["id"]),
                    source=VoiceSource.DEVICE,
                    language_code=raw.get("language_code") or raw.get("language"),
                )
            )
        return voices

    async def speak(
        self,
        text: str,
        *,
        language_code: str,
        voice_id: Optional[str],
        rate: float,
    ) -> None:
        await self._request(
            "speak",
            {
                "text": text,
                "language_code": language_code,
                "voice_id": voice_id,
                "rate": rate,
            },
        )

    async def play(self, audio: bytes) -> None:
        await self._request(
            "play_audio",
            {"audio": base64.b64encode(audio).decode("ascii"), "format": "mp3"},
        )

    async def pause(self) -> None:
        await self._command("pause")

    async def resume(self) -> None:
        await self._command("resume")

    async def stop(self) -> None:
        await self._command("stop")
        # Stopped utterances count as finished even if the device never answers
        for request_id, pending in list(self._pending.items()):
            if pending.message_type in ("speak", "play_audio") and not pending.future.done():
                pending.future.set_result({"type": "stopped", "request_id": request_id})
                self._pending.pop(request_id, None)


__all__ = ["DeviceConnectionManager", "DeviceSession"]
