"""
Scatter: a king splits back into two singles placed on the next two squares
along its arrow, capturing any enemies there if its value covers their sum.
"""
from typing import List, NamedTuple, Optional

from .board import Board, Coord, in_bounds, step
from .constants import TIER_FREE, TIER_ORIENT
from .enums import Dir, ScatterReason
from .rays import ValueMap


class ScatterCheck(NamedTuple):
    base: Coord
    l1: Coord
    l2: Coord
    can: bool
    reason: Optional[ScatterReason] = None


def empty_run(board: Board, origin: Coord, direction: Dir) -> List[Coord]:
    """Consecutive empty squares from `origin` (exclusive) along `direction`."""
    out = []
    r, c = step(origin, direction)
    while in_bounds(r, c) and board.is_empty((r, c)):
        out.append((r, c))
        r, c = step((r, c), direction)
    return out


def scatter_bases(board: Board, from_pos: Coord, values: Optional[ValueMap] = None) -> List[Coord]:
    """
    Squares a scatter may originate from.
    Tier 2: only the king's own square. Tier 3: also every empty square it could
    slide to along its arrow.
    """
    king = board.piece_at(from_pos)
    if king is None or not king.is_king or king.arrow_dir is None:
        return []
    values = values or ValueMap(board)
    v = values.value(from_pos)
    if v < TIER_ORIENT:
        return []

    out = [from_pos]
    if v >= TIER_FREE:
        out.extend(empty_run(board, from_pos, king.arrow_dir))
    return out


def validate_scatter(
    board: Board,
    from_pos: Coord,
    base: Coord,
    values: Optional[ValueMap] = None,
) -> ScatterCheck:
    """
    Landing squares are l1 = base + dir and l2 = base + 2*dir.
    Legal when both are on the board, neither holds an ally, and the summed
    value of any enemies on them does not exceed the king's value.
    """
    king = board.piece_at(from_pos)
    if king is None or not king.is_king or king.arrow_dir is None:
        return ScatterCheck(base, base, base, False, ScatterReason.NOT_A_KING)

    values = values or ValueMap(board)
    l1 = step(base, king.arrow_dir)
    l2 = step(base, king.arrow_dir, 2)

    my_val = values.value(from_pos)
    if my_val < TIER_ORIENT:
        return ScatterCheck(base, l1, l2, False, ScatterReason.INSUFFICIENT_VALUE)
    if base not in scatter_bases(board, from_pos, values):
        return ScatterCheck(base, l1, l2, False, ScatterReason.INVALID_BASE)

    if not in_bounds(*l1) or not in_bounds(*l2):
        return ScatterCheck(base, l1, l2, False, ScatterReason.OFFBOARD)

    q1 = board.piece_at(l1)
    q2 = board.piece_at(l2)
    if any(q is not None and q.owner == king.owner for q in (q1, q2)):
        return ScatterCheck(base, l1, l2, False, ScatterReason.ALLY_BLOCK)

    # Budget: the king's whole value against the combined enemy total
    enemy_sum = sum(values.value(sq) for sq, q in ((l1, q1), (l2, q2)) if q is not None)
    if enemy_sum > my_val:
        return ScatterCheck(base, l1, l2, False, ScatterReason.CAPTURE_SUM_EXCEEDS)

    return ScatterCheck(base, l1, l2, True)


def scatter_options(board: Board, from_pos: Coord, values: Optional[ValueMap] = None) -> List[ScatterCheck]:
    values = values or ValueMap(board)
    return [validate_scatter(board, from_pos, base, values) for base in scatter_bases(board, from_pos, values)]
