"""
AI Runner - Background search worker

The search is CPU bound, so each request runs in a worker thread while the
event loop keeps serving. Requests are keyed by client: a new request from the
same client supersedes the previous one, whose result is discarded.
"""

import asyncio
import logging
from typing import Dict, Optional

from nodi.app.schemas.game_schema import AIMoveResponse
from nodi.app.services.game_service import game_service
from nodi.core.board import Board
from nodi.core.enums import Player

logger = logging.getLogger(__name__)


class AIRunner:
    def __init__(self):
        self.running_tasks: Dict[str, asyncio.Task] = {}  # client_id -> asyncio.Task

    async def request_move(
        self,
        client_id: str,
        board: Board,
        side: Player,
        preset: Optional[str] = None,
        move_limit: Optional[int] = None,
        reply_limit: Optional[int] = None,
    ) -> Optional[AIMoveResponse]:
        """
        Returns the AI response, or None if a newer request from the same
        client superseded this one before it finished.
        """
        previous = self.running_tasks.get(client_id)
        if previous is not None and not previous.done():
            logger.info("Superseding AI request for client %s", client_id)
            previous.cancel()

        # The worker thread itself cannot be interrupted; cancelling only drops interest in its result
        task = asyncio.create_task(asyncio.to_thread(
            game_service.choose_ai_move, board, side, preset, move_limit, reply_limit,
        ))
        self.running_tasks[client_id] = task
        logger.info("AI thinking for client %s (%s)", client_id, side)

        try:
            result = await task
            logger.info("AI finished for client %s in %.3fs", client_id, result.duration)
            return result
        except asyncio.CancelledError:
            if self.running_tasks.get(client_id) is not task:
                return None
            raise
        finally:
            if self.running_tasks.get(client_id) is task:
                del self.running_tasks[client_id]

    def is_running(self, client_id: str) -> bool:
        """Check if a request for this client is currently being processed."""
        task = self.running_tasks.get(client_id)
        return task is not None and not task.done()

    async def stop(self, client_id: str):
        """Drop any pending request for this client."""
        task = self.running_tasks.pop(client_id, None)
        if task is not None and not task.done():
            task.cancel()
            logger.info("Stopped AI request for client %s", client_id)


# Singleton
ai_runner = AIRunner()
