import random
import unittest

from nodi.core.actions import CaptureAction, CombineAction, RotateAction, is_legal
from nodi.core.board import Board, king, single
from nodi.core.constants import TERMINAL_SCORE
from nodi.core.enums import Dir, Player
from nodi.core.evaluation import evaluate_board, threatened_squares
from nodi.core.search import ScoredAction, _prune, enumerate_actions, pick_with_lookahead, play_turn

B, W = Player.BLACK, Player.WHITE


class TestEvaluation(unittest.TestCase):
    def test_initial_position_is_balanced_in_material(self):
        board = Board.initial()
        self.assertAlmostEqual(evaluate_board(board, B), -evaluate_board(board, W))

    def test_terminal_detection(self):
        board = Board.from_pieces({
            (7, 7): single(B, is_key=True),
            (0, 0): single(W),
            (0, 1): single(W),
        })
        self.assertGreaterEqual(evaluate_board(board, B), TERMINAL_SCORE)
        self.assertLessEqual(evaluate_board(board, W), -TERMINAL_SCORE)

    def test_kings_outweigh_singles(self):
        with_king = Board.from_pieces({
            (4, 4): king(B, Dir.N),
            (7, 7): single(B, is_key=True),
            (0, 0): single(W, is_key=True),
        })
        with_single = Board.from_pieces({
            (4, 4): single(B),
            (7, 7): single(B, is_key=True),
            (0, 0): single(W, is_key=True),
        })
        self.assertGreater(evaluate_board(with_king, B), evaluate_board(with_single, B))

    def test_threatened_squares(self):
        board = Board.from_pieces({(3, 3): single(B), (2, 3): single(W), (6, 6): single(W)})
        self.assertEqual(threatened_squares(board, B), {(2, 3)})
        self.assertEqual(threatened_squares(board, W), {(3, 3)})


class TestEnumerate(unittest.TestCase):
    def test_sorted_and_legal(self):
        board = Board.initial()
        scored = enumerate_actions(board, B)
        self.assertTrue(scored)
        scores = [sa.score for sa in scored]
        self.assertEqual(scores, sorted(scores, reverse=True))
        for sa in scored:
            self.assertTrue(is_legal(board, sa.action), sa.action)

    def test_rotations_only_for_tier_three(self):
        board = Board.from_pieces({
            (4, 4): king(B, Dir.N),
            (7, 7): single(B, is_key=True),
            (0, 0): single(W, is_key=True),
        })
        self.assertFalse(any(isinstance(sa.action, RotateAction) for sa in enumerate_actions(board, B)))

        board = board.replace({(7, 4): king(B, Dir.N)})
        rotates = [sa for sa in enumerate_actions(board, B) if isinstance(sa.action, RotateAction)]
        self.assertEqual({sa.action.at for sa in rotates}, {(4, 4)})
        self.assertFalse(any(
            isinstance(sa.action, RotateAction) for sa in enumerate_actions(board, B, include_rotates=False)
        ))

    def test_prune_keeps_every_capture(self):
        board = Board.initial()
        quiet = [ScoredAction(("q", i), 100.0 - i, board, ()) for i in range(5)]
        capture = ScoredAction(("c", 0), -50.0, board, ((3, 3),))
        kept = _prune(quiet + [capture], 2)
        self.assertEqual(kept, quiet[:2] + [capture])


class TestLookahead(unittest.TestCase):
    def test_takes_last_key_immediately(self):
        """Capturing the opponent's only key wins outright, whatever else scores well."""
        board = Board.from_pieces({
            (3, 3): single(B),
            (2, 3): single(W, is_key=True),
            (5, 0): single(B),
            (4, 1): king(W, Dir.N),
            (7, 7): single(B, is_key=True),
        })
        choice = pick_with_lookahead(board, B, rng=random.Random(1))
        self.assertEqual(choice.action, CaptureAction((3, 3), (2, 3)))
        self.assertEqual(choice.score, TERMINAL_SCORE)
        self.assertEqual(choice.board.key_count(W), 0)

    def test_no_legal_actions_returns_none(self):
        board = Board.from_pieces({
            (0, 0): single(B, is_key=True),
            (0, 3): king(W, Dir.W),
            (7, 7): single(W, is_key=True),
        })
        self.assertIsNone(pick_with_lookahead(board, B))
        plan = play_turn(board, B)
        self.assertTrue(plan.no_legal_actions)
        self.assertIs(plan.board, board)

    def test_seeded_search_is_repeatable(self):
        board = Board.initial()
        a = pick_with_lookahead(board, B, reply_limit=2, move_limit=4, rng=random.Random(7))
        b = pick_with_lookahead(board, B, reply_limit=2, move_limit=4, rng=random.Random(7))
        self.assertEqual(a.action, b.action)
        self.assertEqual(a.score, b.score)
        self.assertEqual(board, Board.initial())

    def test_avoids_losing_key_next_turn(self):
        """
        Black's only key is attacked by a white single. Taking the attacker is
        the one action that stops White capturing the last key.
        """
        board = Board.from_pieces({
            (7, 7): single(B, is_key=True),
            (6, 6): single(W),
            (0, 0): single(W, is_key=True),
            (0, 7): single(W, is_key=True),
            (3, 0): single(B),
        })
        choice = pick_with_lookahead(board, B, reply_limit=6, move_limit=12, epsilon=0.0, rng=random.Random(3))
        self.assertEqual(choice.action, CaptureAction((7, 7), (6, 6)))

    def test_ties_within_epsilon_are_broken_at_random(self):
        """
        Mirror-symmetric position: the two combines score exactly the same and
        beat every other action, so different seeds must pick both of them.
        """
        board = Board.from_pieces({
            (5, 3): single(B),
            (5, 4): single(B),
            (7, 0): single(B, is_key=True),
            (7, 7): single(B, is_key=True),
            (0, 0): single(W, is_key=True),
            (0, 7): single(W, is_key=True),
        })
        scored = enumerate_actions(board, B)
        self.assertEqual(scored[0].score, scored[1].score)
        self.assertGreater(scored[1].score, scored[2].score)
        top = {scored[0].action, scored[1].action}
        self.assertEqual(top, {CombineAction((5, 3), (5, 4)), CombineAction((5, 4), (5, 3))})

        chosen = set()
        for seed in range(20):
            choice = pick_with_lookahead(board, B, reply_limit=0, move_limit=50, epsilon=0.0, rng=random.Random(seed))
            self.assertEqual(choice.score, scored[0].score)
            chosen.add(choice.action)
        self.assertEqual(chosen, top)

    def test_zero_epsilon_returns_top_score(self):
        board = Board.initial()
        best = max(sa.score for sa in enumerate_actions(board, B))
        for seed in range(5):
            choice = pick_with_lookahead(board, B, reply_limit=0, move_limit=100, epsilon=0.0, rng=random.Random(seed))
            self.assertEqual(choice.score, best)

    def test_greedy_mode(self):
        board = Board.initial()
        choice = pick_with_lookahead(board, W, reply_limit=0, move_limit=1, epsilon=0.0, rng=random.Random(0))
        self.assertEqual(choice.score, enumerate_actions(board, W)[0].score)

    def test_play_turn_on_initial_board(self):
        board = Board.initial()
        plan = play_turn(board, B, reply_limit=2, move_limit=4, rng=random.Random(5))
        self.assertFalse(plan.no_legal_actions)
        self.assertEqual(plan.board, plan.actions[-1].board)


if __name__ == '__main__':
    unittest.main()
