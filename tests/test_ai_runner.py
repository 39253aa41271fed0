import asyncio
import threading
import unittest
from unittest.mock import patch

from nodi.app.schemas.game_schema import AIMoveResponse
from nodi.app.services.ai_runner import AIRunner
from nodi.app.services.game_service import game_service
from nodi.core.board import Board
from nodi.core.enums import Player


class TestAIRunner(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.runner = AIRunner()
        self.release = threading.Event()

    def tearDown(self):
        # Let any worker thread still blocked on the event finish
        self.release.set()

    def slow_choice(self, board, side, preset=None, move_limit=None, reply_limit=None):
        self.release.wait(timeout=5)
        return AIMoveResponse(score=float(move_limit or 0), duration=0.01)

    async def test_single_request(self):
        self.release.set()
        with patch.object(game_service, "choose_ai_move", side_effect=self.slow_choice):
            result = await self.runner.request_move("c1", Board.initial(), Player.BLACK, move_limit=3)
        self.assertEqual(result.score, 3.0)
        self.assertFalse(self.runner.is_running("c1"))
        self.assertEqual(self.runner.running_tasks, {})

    async def test_newer_request_supersedes(self):
        with patch.object(game_service, "choose_ai_move", side_effect=self.slow_choice):
            first = asyncio.create_task(
                self.runner.request_move("c1", Board.initial(), Player.BLACK, move_limit=1)
            )
            await asyncio.sleep(0.05)
            self.assertTrue(self.runner.is_running("c1"))

            second = asyncio.create_task(
                self.runner.request_move("c1", Board.initial(), Player.BLACK, move_limit=2)
            )
            await asyncio.sleep(0.05)
            self.release.set()

            self.assertIsNone(await first)
            result = await second
        self.assertEqual(result.score, 2.0)

    async def test_clients_do_not_interfere(self):
        with patch.object(game_service, "choose_ai_move", side_effect=self.slow_choice):
            a = asyncio.create_task(self.runner.request_move("a", Board.initial(), Player.BLACK, move_limit=1))
            b = asyncio.create_task(self.runner.request_move("b", Board.initial(), Player.WHITE, move_limit=2))
            await asyncio.sleep(0.05)
            self.release.set()
            results = await asyncio.gather(a, b)
        self.assertEqual([r.score for r in results], [1.0, 2.0])

    async def test_stop_drops_pending_request(self):
        with patch.object(game_service, "choose_ai_move", side_effect=self.slow_choice):
            pending = asyncio.create_task(self.runner.request_move("c1", Board.initial(), Player.BLACK))
            await asyncio.sleep(0.05)
            await self.runner.stop("c1")
            self.assertFalse(self.runner.is_running("c1"))
            self.assertIsNone(await pending)


if __name__ == '__main__':
    unittest.main()
