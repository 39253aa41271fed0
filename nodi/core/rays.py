"""
Ray & value engine.

A king projects a ray along its arrow. Every piece a ray reaches gets +1 if it
shares the king's owner, -1 otherwise. Values are always recomputed from the
board they are asked about; a ValueMap lives for a single legality/AI pass.
"""
from typing import Dict, List

from .board import Board, Coord, in_bounds, step
from .constants import MAX_VALUE, MIN_VALUE, SIZE


def get_ray(board: Board, origin: Coord) -> List[Coord]:
    """
    Squares along the arrow of the king at `origin`, stopping at (and including)
    the first occupied square. Empty if `origin` holds no king with an arrow.
    """
    king = board.piece_at(origin)
    if king is None or not king.is_king or king.arrow_dir is None:
        return []

    out = []
    r, c = step(origin, king.arrow_dir)
    while in_bounds(r, c):
        out.append((r, c))
        if not board.is_empty((r, c)):
            break
        r, c = step((r, c), king.arrow_dir)
    return out


def all_rays(board: Board) -> Dict[Coord, List[Coord]]:
    return {pos: get_ray(board, pos) for pos, _ in board.kings()}


def _ray_delta_at(board: Board, pos: Coord) -> int:
    piece = board.piece_at(pos)
    delta = 0
    for king_pos, king in board.kings():
        if king_pos == pos:
            continue
        if pos in get_ray(board, king_pos):
            delta += 1 if king.owner == piece.owner else -1
    return delta


def full_value_at(board: Board, pos: Coord) -> int:
    """Unclamped counters +/- rays. Display only, never used for gating."""
    piece = board.piece_at(pos)
    if piece is None:
        return 0
    return piece.size + _ray_delta_at(board, pos)


def clamp_value(v: int) -> int:
    return max(MIN_VALUE, min(MAX_VALUE, v))


def value_at(board: Board, pos: Coord) -> int:
    """Ability tier 0..3 of the piece at `pos` (0 for an empty square)."""
    return clamp_value(full_value_at(board, pos))


class ValueMap:
    """
    Board-wide values computed once: every king's ray is cast a single time and
    its deltas accumulated. Bound to one board; build a new one after any
    transition.
    """
    __slots__ = ("board", "_full")

    def __init__(self, board: Board):
        self.board = board
        deltas: Dict[Coord, int] = {}
        for king_pos, king in board.kings():
            for sq in get_ray(board, king_pos):
                target = board.piece_at(sq)
                if target is None:
                    continue
                deltas[sq] = deltas.get(sq, 0) + (1 if target.owner == king.owner else -1)

        self._full = [[0] * SIZE for _ in range(SIZE)]
        for pos, piece in board.pieces():
            self._full[pos[0]][pos[1]] = piece.size + deltas.get(pos, 0)

    def full_value(self, pos: Coord) -> int:
        r, c = pos
        if not in_bounds(r, c):
            return 0
        return self._full[r][c]

    def value(self, pos: Coord) -> int:
        return clamp_value(self.full_value(pos))

    def grid(self) -> List[List[int]]:
        return [[clamp_value(v) for v in row] for row in self._full]

    def full_grid(self) -> List[List[int]]:
        return [list(row) for row in self._full]


def compute_values(board: Board) -> List[List[int]]:
    return ValueMap(board).grid()


def compute_full_values(board: Board) -> List[List[int]]:
    return ValueMap(board).full_grid()
