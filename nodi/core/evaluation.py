"""
Heuristic evaluation.

evaluate_board scores a position from one side's perspective; action_nudge adds
the per-action tactical bonuses and penalties the search layers on top.
"""
from typing import Optional, Set

from .actions import (
    Action,
    CaptureAction,
    CombineAction,
    MoveAction,
    ScatterAction,
    captured_squares,
)
from .board import Board, Coord, Piece, in_bounds, step
from .constants import (
    CAPTURE_BONUS,
    CAPTURE_KEY_MULTIPLIER,
    CAPTURE_KING_MULTIPLIER,
    CENTER_TABLE,
    CENTER_WEIGHT,
    COMBINE_BONUS,
    IMPORTANCE_KEY,
    IMPORTANCE_KING,
    IMPORTANCE_SINGLE,
    KEY_WEIGHT,
    KING_WEIGHT,
    MOBILITY_WEIGHT,
    RAY_WEIGHT,
    RISK_PENALTY,
    SINGLE_WEIGHT,
    TERMINAL_SCORE,
    TIER_STEP,
    VALUE_WEIGHT,
)
from .enums import Dir, Player
from .rays import ValueMap, get_ray
from .rules import arrow_actions, can_capture


def terminal_score(board: Board, perspective: Player) -> Optional[float]:
    """+/-TERMINAL_SCORE when exactly one side has run out of keys, else None."""
    mine = board.key_count(perspective)
    theirs = board.key_count(perspective.opponent)
    if theirs == 0 and mine > 0:
        return TERMINAL_SCORE
    if mine == 0 and theirs > 0:
        return -TERMINAL_SCORE
    return None


def _mobility(board: Board, pos: Coord) -> int:
    count = 0
    for d in Dir:
        r, c = step(pos, d)
        if in_bounds(r, c) and board.is_empty((r, c)):
            count += 1
    return count


def evaluate_board(board: Board, perspective: Player, values: Optional[ValueMap] = None) -> float:
    """
    Positive = good for `perspective`, negative = good for the opponent.
    Material, key presence, ability values, projecting rays, mobility.
    """
    terminal = terminal_score(board, perspective)
    if terminal is not None:
        return terminal

    values = values or ValueMap(board)
    score = 0.0
    for pos, piece in board.pieces():
        sign = 1 if piece.owner == perspective else -1
        val = values.value(pos)

        s = KING_WEIGHT if piece.is_king else SINGLE_WEIGHT
        if piece.is_key:
            s += KEY_WEIGHT
        s += VALUE_WEIGHT * val
        if piece.is_king and get_ray(board, pos):
            s += RAY_WEIGHT
        if val >= TIER_STEP:
            s += MOBILITY_WEIGHT * _mobility(board, pos)

        score += sign * s
    return score


def threatened_squares(board: Board, by_side: Player, values: Optional[ValueMap] = None) -> Set[Coord]:
    """Squares holding pieces `by_side` could capture on its next action."""
    values = values or ValueMap(board)
    out: Set[Coord] = set()
    for pos, piece in board.pieces(by_side):
        if values.value(pos) < TIER_STEP:
            continue
        for d in Dir:
            dst = step(pos, d)
            target = board.piece_at(dst)
            if target is not None and target.owner != by_side and can_capture(values, pos, dst):
                out.add(dst)
        if piece.is_king:
            _, captures = arrow_actions(board, pos, values)
            out.update(captures)
    return out


def importance(piece: Piece) -> float:
    if piece.is_key:
        return IMPORTANCE_KEY
    if piece.is_king:
        return IMPORTANCE_KING
    return IMPORTANCE_SINGLE


def _defenders(board: Board, pos: Coord, owner: Player) -> int:
    count = 0
    for d in Dir:
        q = board.piece_at(step(pos, d))
        if q is not None and q.owner == owner:
            count += 1
    return count


def _landing_squares(action: Action):
    if isinstance(action, (MoveAction, CaptureAction, CombineAction)):
        return [action.to]
    if isinstance(action, ScatterAction):
        return [action.l1, action.l2]
    return []


def action_nudge(
    board: Board,
    action: Action,
    next_board: Board,
    side: Player,
    values: Optional[ValueMap] = None,
    next_values: Optional[ValueMap] = None,
) -> float:
    """
    Tactical adjustments for one action: combine bonus, capture bonus (heavy for
    keys and kings), centralization for quiet moves, and a penalty for landing
    where the opponent can immediately capture.
    """
    values = values or ValueMap(board)
    next_values = next_values or ValueMap(next_board)
    nudge = 0.0

    if isinstance(action, CombineAction):
        nudge += COMBINE_BONUS

    for sq in captured_squares(board, action):
        victim = board.piece_at(sq)
        bonus = CAPTURE_BONUS * max(1, values.value(sq))
        if victim.is_key:
            bonus *= CAPTURE_KEY_MULTIPLIER
        elif victim.is_king:
            bonus *= CAPTURE_KING_MULTIPLIER
        nudge += bonus

    if isinstance(action, MoveAction):
        r, c = action.to
        nudge += CENTER_WEIGHT * CENTER_TABLE[r][c]

    landings = _landing_squares(action)
    if landings:
        threats = threatened_squares(next_board, side.opponent, next_values)
        for sq in landings:
            if sq not in threats:
                continue
            piece = next_board.piece_at(sq)
            if piece is None:
                continue
            nudge -= RISK_PENALTY * importance(piece) / (1 + _defenders(next_board, sq, side))

    return nudge
