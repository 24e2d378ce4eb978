"""WebSocket endpoint for the playback device."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..services.device_bridge import DeviceConnectionManager

router = APIRouter(prefix="/api/device", tags=["device"])
logger = logging.getLogger(__name__)


async def handle_connection(
    websocket: WebSocket,
    client_id: str,
    manager: DeviceConnectionManager,
) -> None:
    """
    Main loop for a single device connection.

    The device announces readiness, then answers speech and audio commands
    relayed by the manager. The current playback state is pushed on connect.
    """
    await manager.connect(websocket, client_id)

    session = getattr(websocket.app.state, "reader_session", None)
    if session is not None:
        await manager.publish_state(session.playback_state)

    refresh_task: Optional[asyncio.Task] = None

    try:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                logger.warning(f"Ignoring non-object message from {client_id}")
                continue

            if data.get("type") == "connection_ready":
                logger.info(f"Device {client_id} ready.")
                # Voices may have become available with this device. Refresh
                # in a task: the device answers on this same receive loop.
                if session is not None and (refresh_task is None or refresh_task.done()):
                    refresh_task = asyncio.create_task(session.refresh_voices())
                continue

            await manager.handle_message(client_id, data)

    except WebSocketDisconnect:
        logger.info(f"Device {client_id} disconnected")
        manager.disconnect(client_id)
    except Exception as e:
        logger.error(f"Unexpected error for device {client_id}: {e}")
        manager.disconnect(client_id)
    finally:
        if refresh_task is not None:
            refresh_task.cancel()
            await asyncio.gather(refresh_task, return_exceptions=True)


@router.websocket("/ws/{client_id}")
async def device_connect(websocket: WebSocket, client_id: str):
    manager = getattr(websocket.app.state, "device_manager", None)
    if manager is None:
        logger.error("Device manager not initialized")
        await websocket.close(code=1011, reason="Server not ready")
        return

    await handle_connection(websocket, client_id, manager)
