"""
WebSocket endpoint for display clients.

One connection per client; the client opts into channels with
``subscribe:*`` messages and receives ``schedule:updated``,
``settings:updated``, ``device:updated`` and ``device:command`` pushes.
"""
import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from signage.config import settings
from signage.realtime.hub import BroadcastHub
from signage.realtime.protocol import handle_client_message

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
async def websocket_realtime(websocket: WebSocket):
    hub: BroadcastHub = websocket.app.state.hub
    await websocket.accept()
    hub.connect(websocket)

    try:
        while True:
            try:
                text = await asyncio.wait_for(
                    websocket.receive_text(), timeout=settings.WS_KEEPALIVE_SECONDS
                )
            except asyncio.TimeoutError:
                # Send keepalive ping
                await websocket.send_json({"type": "ping"})
                continue

            try:
                message = json.loads(text)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "data": {"message": "invalid JSON"}})
                continue

            await websocket.send_json(handle_client_message(hub, websocket, message))
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"Realtime WebSocket error: {e}")
    finally:
        hub.disconnect(websocket)
