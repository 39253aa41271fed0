"""
AI WebSocket Manager - Request/response channel for the opponent AI

Each connection is one client. The client sends
    {"action": "REQUEST", "request_id": ..., "board": ..., "side": ..., "preset": ...}
and receives THINKING_START followed by RESPONSE. A newer REQUEST supersedes an
older one still in flight; the superseded request never gets a RESPONSE.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, Set

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from nodi.app.schemas.game_schema import AIMoveRequest
from nodi.app.services.ai_runner import ai_runner

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        # Maps client_id -> WebSocket
        self.active_connections: Dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        client_id = uuid.uuid4().hex
        self.active_connections[client_id] = websocket
        return client_id

    async def disconnect(self, client_id: str):
        self.active_connections.pop(client_id, None)
        await ai_runner.stop(client_id)

    async def send(self, client_id: str, message: Dict[str, Any]):
        websocket = self.active_connections.get(client_id)
        if websocket is None:
            return
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError):
            logger.info("Client %s went away before message %s", client_id, message.get("type"))

    async def handle_ai_session(self, websocket: WebSocket):
        client_id = await self.connect(websocket)
        pending: Set[asyncio.Task] = set()

        try:
            while True:
                payload = await websocket.receive_json()
                if payload.get("action") != "REQUEST":
                    await self.send(client_id, {"type": "ERROR", "detail": f"Unknown action {payload.get('action')!r}"})
                    continue

                try:
                    request = AIMoveRequest.model_validate(payload)
                except ValidationError as e:
                    await self.send(client_id, {
                        "type": "ERROR",
                        "request_id": payload.get("request_id"),
                        "detail": str(e),
                    })
                    continue

                # Serve in the background so the next REQUEST can supersede this one
                task = asyncio.create_task(self._serve_request(client_id, request, payload.get("request_id")))
                pending.add(task)
                task.add_done_callback(pending.discard)

        except WebSocketDisconnect:
            pass
        finally:
            for task in list(pending):
                task.cancel()
            await self.disconnect(client_id)

    async def _serve_request(self, client_id: str, request: AIMoveRequest, request_id: Any):
        await self.send(client_id, {"type": "THINKING_START", "request_id": request_id})

        try:
            result = await ai_runner.request_move(
                client_id,
                request.board.to_board(),
                request.side,
                preset=request.preset,
                move_limit=request.move_limit,
                reply_limit=request.reply_limit,
            )
        except Exception as e:
            logger.exception("AI request %s for client %s failed", request_id, client_id)
            await self.send(client_id, {"type": "ERROR", "request_id": request_id, "detail": str(e)})
            return
        if result is None:
            # Superseded by a newer request
            return

        await self.send(client_id, {
            "type": "RESPONSE",
            "request_id": request_id,
            **result.model_dump(mode="json"),
        })


# Singleton instance
manager = ConnectionManager()
