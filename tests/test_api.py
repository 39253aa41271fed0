import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from nodi.app.main import app
from nodi.app.schemas.game_schema import BoardSchema
from nodi.app.services.ai_runner import ai_runner
from nodi.core.board import Board, king, single
from nodi.core.enums import Dir, Player

B, W = Player.BLACK, Player.WHITE


def board_json(board: Board):
    return BoardSchema.from_board(board).model_dump(mode="json")


class TestRulesEndpoints(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_initial_board(self):
        response = self.client.get("/board/initial")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["turn"], "Black")
        cells = data["board"]["cells"]
        self.assertEqual(len(cells), 8)
        self.assertEqual(cells[7][2]["counters"], [{"owner": "Black", "is_key": True}])
        self.assertIsNone(cells[3][0])

    def test_legal_for_initial_single(self):
        response = self.client.post("/legal", json={"board": board_json(Board.initial()), "at": [5, 1]})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["value"], 1)
        self.assertIn([4, 0], data["moves"])
        self.assertIn([4, 2], data["combines"])
        self.assertEqual(data["captures"], [])
        self.assertFalse(data["can_rotate"])
        self.assertIn({"type": "combine", "to": [4, 2]}, data["highlights"])

    def test_legal_offboard_is_neutral(self):
        response = self.client.post("/legal", json={"board": board_json(Board.initial()), "at": [-1, 9]})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["value"], 0)
        self.assertEqual(data["highlights"], [])

    def test_apply_combine(self):
        payload = {
            "board": board_json(Board.initial()),
            "action": {"kind": "combine", "from_pos": [5, 1], "to": [4, 2]},
        }
        response = self.client.post("/apply", json=payload)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["ends_turn"])
        self.assertIsNone(data["winner"])
        merged = data["board"]["cells"][4][2]
        self.assertEqual(len(merged["counters"]), 2)
        self.assertEqual(merged["arrow_dir"], "NE")
        self.assertIsNone(data["board"]["cells"][5][1])

    def test_apply_scatter_derives_landings(self):
        board = Board.from_pieces({
            (4, 0): king(B, Dir.E),
            (7, 7): single(B, is_key=True),
            (0, 0): single(W, is_key=True),
        })
        payload = {"board": board_json(board), "action": {"kind": "scatter", "from_pos": [4, 0], "base": [4, 0]}}
        response = self.client.post("/apply", json=payload)
        self.assertEqual(response.status_code, 200)
        cells = response.json()["board"]["cells"]
        self.assertIsNone(cells[4][0])
        self.assertEqual(cells[4][1]["counters"], [{"owner": "Black", "is_key": False}])
        self.assertEqual(cells[4][2]["counters"], [{"owner": "Black", "is_key": False}])

    def test_apply_capturing_last_key_reports_winner(self):
        board = Board.from_pieces({
            (3, 3): single(B),
            (2, 3): single(W, is_key=True),
            (7, 7): single(B, is_key=True),
        })
        payload = {"board": board_json(board), "action": {"kind": "capture", "from_pos": [3, 3], "to": [2, 3]}}
        response = self.client.post("/apply", json=payload)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["winner"], "Black")

    def test_apply_illegal_action(self):
        payload = {
            "board": board_json(Board.initial()),
            "action": {"kind": "move", "from_pos": [7, 2], "to": [5, 2]},
        }
        response = self.client.post("/apply", json=payload)
        self.assertEqual(response.status_code, 400)
        self.assertIn("Illegal action", response.json()["detail"])

    def test_values(self):
        board = Board.from_pieces({
            (4, 4): single(B),
            (4, 0): king(W, Dir.E),
            (7, 4): king(W, Dir.N),
        })
        response = self.client.post("/values", json={"board": board_json(board)})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["values"][4][4], 0)
        self.assertEqual(data["full_values"][4][4], -1)
        origins = {tuple(r["origin"]) for r in data["rays"]}
        self.assertEqual(origins, {(4, 0), (7, 4)})

    def test_bad_board_shape(self):
        cells = board_json(Board.initial())["cells"][:7]
        response = self.client.post("/values", json={"board": {"cells": cells}})
        self.assertEqual(response.status_code, 422)

    def test_mixed_ownership_piece_rejected(self):
        data = board_json(Board.initial())
        data["cells"][3][3] = {
            "counters": [{"owner": "Black"}, {"owner": "White"}],
            "arrow_dir": "N",
        }
        response = self.client.post("/values", json={"board": data})
        self.assertEqual(response.status_code, 422)

    def test_unknown_action_kind_rejected(self):
        payload = {
            "board": board_json(Board.initial()),
            "action": {"kind": "teleport", "from_pos": [5, 1], "to": [0, 0]},
        }
        response = self.client.post("/apply", json=payload)
        self.assertEqual(response.status_code, 422)


class TestAIEndpoints(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_presets(self):
        response = self.client.get("/ai/presets")
        self.assertEqual(response.status_code, 200)
        ids = {p["id"] for p in response.json()}
        self.assertEqual(ids, {"easy", "normal", "hard"})

    def test_ai_move(self):
        payload = {"board": board_json(Board.initial()), "side": "Black", "preset": "easy"}
        response = self.client.post("/ai/move", json=payload)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertFalse(data["no_legal_actions"])
        self.assertIn(data["action"]["kind"], {"move", "capture", "combine"})
        self.assertIsNone(data["winner"])
        self.assertEqual(len(data["board"]["cells"]), 8)

    def test_ai_move_without_actions(self):
        board = Board.from_pieces({
            (0, 0): single(B, is_key=True),
            (0, 3): king(W, Dir.W),
            (7, 7): single(W, is_key=True),
        })
        payload = {"board": board_json(board), "side": "Black", "preset": "easy"}
        response = self.client.post("/ai/move", json=payload)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["no_legal_actions"])
        self.assertIsNone(data["action"])

    def test_ai_move_rejects_bad_limits(self):
        payload = {"board": board_json(Board.initial()), "side": "Black", "move_limit": 0}
        response = self.client.post("/ai/move", json=payload)
        self.assertEqual(response.status_code, 422)

    def test_websocket_request_flow(self):
        with self.client.websocket_connect("/ai/ws") as websocket:
            websocket.send_json({
                "action": "REQUEST",
                "request_id": 1,
                "board": board_json(Board.initial()),
                "side": "White",
                "preset": "easy",
            })
            start = websocket.receive_json()
            self.assertEqual(start, {"type": "THINKING_START", "request_id": 1})

            response = websocket.receive_json()
            self.assertEqual(response["type"], "RESPONSE")
            self.assertEqual(response["request_id"], 1)
            self.assertIsNotNone(response["action"])

    def test_websocket_reports_failed_search(self):
        with patch.object(ai_runner, "request_move", side_effect=RuntimeError("search crashed")):
            with self.assertLogs("nodi.app.api.websocket_manager", level="ERROR"):
                with self.client.websocket_connect("/ai/ws") as websocket:
                    websocket.send_json({
                        "action": "REQUEST",
                        "request_id": 3,
                        "board": board_json(Board.initial()),
                        "side": "Black",
                    })
                    self.assertEqual(websocket.receive_json()["type"], "THINKING_START")
                    message = websocket.receive_json()
        self.assertEqual(message["type"], "ERROR")
        self.assertEqual(message["request_id"], 3)
        self.assertIn("search crashed", message["detail"])

    def test_websocket_rejects_unknown_message(self):
        with self.client.websocket_connect("/ai/ws") as websocket:
            websocket.send_json({"action": "PING"})
            message = websocket.receive_json()
            self.assertEqual(message["type"], "ERROR")

            websocket.send_json({"action": "REQUEST", "request_id": 2, "side": "Black"})
            message = websocket.receive_json()
            self.assertEqual(message["type"], "ERROR")
            self.assertEqual(message["request_id"], 2)


if __name__ == '__main__':
    unittest.main()
