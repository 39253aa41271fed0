"""
AI search.

enumerate_actions scores every legal action by the position it leads to;
pick_with_lookahead runs a two-ply minimax over the best of them. Search only
ever works on the immutable boards returned by apply_action, so a caller's
snapshot is never touched.
"""
import logging
import random
from typing import List, NamedTuple, Optional, Tuple

from .actions import (
    Action,
    RotateAction,
    actions_from_legal,
    apply_action,
    captured_squares,
    rotation_ends_turn,
)
from .board import Board, Coord
from .constants import (
    DEFAULT_EPSILON,
    DEFAULT_MOVE_LIMIT,
    DEFAULT_REPLY_LIMIT,
    TERMINAL_SCORE,
    TIER_FREE,
)
from .enums import Player
from .evaluation import action_nudge, evaluate_board
from .rays import ValueMap
from .rules import legal_actions_for

logger = logging.getLogger(__name__)


class ScoredAction(NamedTuple):
    action: Action
    score: float
    board: Board                  # position after the action
    captured: Tuple[Coord, ...]   # enemy squares the action cleared

    @property
    def is_capture(self) -> bool:
        return bool(self.captured)


class TurnPlan(NamedTuple):
    actions: List[ScoredAction]
    board: Board

    @property
    def no_legal_actions(self) -> bool:
        return not self.actions


def enumerate_actions(board: Board, side: Player, include_rotates: bool = True) -> List[ScoredAction]:
    """
    All legal actions for `side`, best first. Rotations are only offered for
    tier-3 kings, where re-orienting does not spend the turn.
    """
    values = ValueMap(board)
    out: List[ScoredAction] = []

    for pos, _ in board.pieces(side):
        legal = legal_actions_for(board, pos, values)
        rotates = include_rotates and legal.value >= TIER_FREE
        for action in actions_from_legal(pos, legal, include_rotates=rotates):
            next_board = apply_action(board, action)
            if next_board is board:
                continue
            next_values = ValueMap(next_board)
            score = evaluate_board(next_board, side, next_values)
            score += action_nudge(board, action, next_board, side, values, next_values)
            out.append(ScoredAction(action, score, next_board, tuple(captured_squares(board, action))))

    out.sort(key=lambda sa: sa.score, reverse=True)
    return out


def _prune(scored: List[ScoredAction], limit: int) -> List[ScoredAction]:
    """Top `limit` actions plus every capture, whatever its rank."""
    kept = list(scored[:max(limit, 0)])
    kept.extend(sa for sa in scored[max(limit, 0):] if sa.is_capture)
    return kept


def winning_action(board: Board, side: Player, scored: List[ScoredAction]) -> Optional[ScoredAction]:
    """An action that takes the opponent's last key, if one exists."""
    opp = side.opponent
    if board.key_count(opp) == 0:
        return None
    for sa in scored:
        if sa.is_capture and sa.board.key_count(opp) == 0:
            return sa._replace(score=TERMINAL_SCORE)
    return None


def pick_with_lookahead(
    board: Board,
    side: Player,
    reply_limit: int = DEFAULT_REPLY_LIMIT,
    move_limit: int = DEFAULT_MOVE_LIMIT,
    epsilon: float = DEFAULT_EPSILON,
    rng: Optional[random.Random] = None,
    include_rotates: bool = True,
) -> Optional[ScoredAction]:
    """
    Two-ply search. Returns None when `side` has no legal action.

    Score of a candidate = evaluation after our action minus the best score the
    opponent reaches among its top `reply_limit` replies. reply_limit=0 degrades
    to the greedy one-ply choice.
    """
    rng = rng or random.Random()
    scored = enumerate_actions(board, side, include_rotates)
    if not scored:
        logger.debug("No legal actions for %s", side)
        return None

    # 1. Outright win short-circuits the search
    win = winning_action(board, side, scored)
    if win is not None:
        logger.debug("%s takes the last key with %s", side, win.action)
        return win

    candidates = _prune(scored, move_limit)
    if reply_limit <= 0:
        results = candidates
    else:
        opp = side.opponent
        results = []
        for sa in candidates:
            our_eval = evaluate_board(sa.board, side)
            replies = _prune(enumerate_actions(sa.board, opp), reply_limit)
            opp_best = max((r.score for r in replies), default=0.0)
            results.append(sa._replace(score=our_eval - opp_best))

    best_score = max(r.score for r in results)
    pool = [r for r in results if r.score >= best_score - epsilon]
    choice = rng.choice(pool)
    logger.debug(
        "%s: %d candidates, best %.2f, %d within epsilon, chose %s",
        side, len(candidates), best_score, len(pool), choice.action,
    )
    return choice


def play_turn(
    board: Board,
    side: Player,
    reply_limit: int = DEFAULT_REPLY_LIMIT,
    move_limit: int = DEFAULT_MOVE_LIMIT,
    epsilon: float = DEFAULT_EPSILON,
    rng: Optional[random.Random] = None,
) -> TurnPlan:
    """
    Chooses the full sequence of actions for one turn. A free (tier-3)
    rotation is followed by a second search with rotations disabled.
    """
    rng = rng or random.Random()
    chosen = pick_with_lookahead(board, side, reply_limit, move_limit, epsilon, rng)
    if chosen is None:
        return TurnPlan([], board)

    taken = [chosen]
    current = chosen.board
    action = chosen.action
    if isinstance(action, RotateAction) and not rotation_ends_turn(current, action.at):
        follow = pick_with_lookahead(current, side, reply_limit, move_limit, epsilon, rng, include_rotates=False)
        if follow is not None:
            taken.append(follow)
            current = follow.board
    return TurnPlan(taken, current)
