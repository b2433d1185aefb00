"""
Speech channel WebSocket endpoint

Relays the browser's speech recognition and speech synthesis to the
session's speech bridge, and pushes session state updates.

Client sends:
- capabilities: {recognition: bool, synthesis: bool}
- recognition_result / recognition_end / recognition_error
- speech_end / speech_error
- ping

Server sends:
- recognition_start / recognition_stop
- speak / cancel_speech
- state: Session snapshot after every change
- session_ended: Interview finished or quit
- pong
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from resq.api.dependencies import get_session_manager
from resq.core.speech_engines import SpeechChannel

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/{session_id}/speech")
async def speech_channel(websocket: WebSocket, session_id: str):
    """WebSocket endpoint for the browser speech relay."""
    await websocket.accept()

    workspace = get_session_manager().get(session_id)
    if not workspace:
        await websocket.close(code=4004, reason="Session not found")
        return

    channel = workspace.channel
    if channel.connected:
        await websocket.close(code=4009, reason="Speech channel already connected")
        return

    channel.connect()
    await websocket.send_json({"type": "state", "data": workspace.machine.snapshot().model_dump(mode="json")})

    writer = asyncio.create_task(_drain_outbox(websocket, channel))
    try:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                continue
            channel.dispatch(data)

    except WebSocketDisconnect:
        # Client disconnected
        pass
    except Exception as e:
        logger.error(f"Speech channel error for {session_id}: {e}")
        await websocket.send_json({
            "type": "error",
            "message": str(e),
        })
    finally:
        writer.cancel()
        channel.disconnect()


async def _drain_outbox(websocket: WebSocket, channel: SpeechChannel) -> None:
    while True:
        message = await channel.outbox.get()
        await websocket.send_json(message)
