"""
Legality engine.

All queries are evaluated against one unmodified board with a single ValueMap,
so the answer for a square never depends on partially applied actions.
"""
from typing import List, NamedTuple, Optional, Tuple

from .board import Board, Coord, Piece, in_bounds, step
from .constants import TIER_FREE, TIER_ORIENT, TIER_STEP
from .enums import Dir, Player
from .rays import ValueMap
from .scatter import ScatterCheck, scatter_options


class LegalActions(NamedTuple):
    moves: List[Coord]
    captures: List[Coord]
    combines: List[Coord]
    scatter_options: List[ScatterCheck]
    can_rotate: bool
    value: int

    @property
    def scatters(self) -> List[ScatterCheck]:
        """Only the scatter bases that validate."""
        return [s for s in self.scatter_options if s.can]

    def is_empty(self) -> bool:
        return not (self.moves or self.captures or self.combines or self.scatters or self.can_rotate)


def no_actions(value: int = 0) -> LegalActions:
    return LegalActions([], [], [], [], False, value)


def _add(out: List[Coord], sq: Coord):
    if sq not in out:
        out.append(sq)


def can_combine(mover: Piece, target: Piece) -> bool:
    """Two friendly singles, neither carrying a key."""
    return (
        mover.owner == target.owner
        and not mover.is_king
        and not target.is_king
        and not mover.is_key
        and not target.is_key
    )


def can_capture(values: ValueMap, attacker: Coord, defender: Coord) -> bool:
    # Ties favor the attacker
    return values.value(defender) <= values.value(attacker)


def arrow_actions(
    board: Board,
    from_pos: Coord,
    values: ValueMap,
) -> Tuple[List[Coord], List[Coord]]:
    """
    King moves along its arrow.
    Tier 2: exactly two squares, the middle one empty.
    Tier 3: slide over any number of empty squares; the first occupied square is
    a capture if it holds a capturable enemy, otherwise the slide just stops.
    """
    moves: List[Coord] = []
    captures: List[Coord] = []
    piece = board.piece_at(from_pos)
    if piece is None or not piece.is_king or piece.arrow_dir is None:
        return moves, captures

    val = values.value(from_pos)
    d = piece.arrow_dir

    if val == TIER_ORIENT:
        mid = step(from_pos, d)
        dst = step(from_pos, d, 2)
        if in_bounds(*mid) and in_bounds(*dst) and board.is_empty(mid):
            target = board.piece_at(dst)
            if target is None:
                moves.append(dst)
            elif target.owner != piece.owner and can_capture(values, from_pos, dst):
                captures.append(dst)

    elif val >= TIER_FREE:
        r, c = step(from_pos, d)
        while in_bounds(r, c):
            target = board.piece_at((r, c))
            if target is None:
                moves.append((r, c))
            else:
                if target.owner != piece.owner and can_capture(values, from_pos, (r, c)):
                    captures.append((r, c))
                break  # stop at first blocker
            r, c = step((r, c), d)

    return moves, captures


def can_rotate(board: Board, at: Coord, values: Optional[ValueMap] = None) -> bool:
    piece = board.piece_at(at)
    if piece is None or not piece.is_king or piece.arrow_dir is None:
        return False
    values = values or ValueMap(board)
    return values.value(at) >= TIER_ORIENT


def legal_actions_for(board: Board, from_pos: Coord, values: Optional[ValueMap] = None) -> LegalActions:
    """
    Legal one-step moves/captures/combines, king arrow moves, scatter options and
    rotate eligibility for the piece at `from_pos`.
    Empty or off-board squares yield no actions.
    """
    piece = board.piece_at(from_pos)
    if piece is None:
        return no_actions()

    values = values or ValueMap(board)
    val = values.value(from_pos)

    # Value 0 is frozen
    if val < TIER_STEP:
        return no_actions(val)

    moves: List[Coord] = []
    captures: List[Coord] = []
    combines: List[Coord] = []

    # 1. One-step actions in all 8 directions
    for d in Dir:
        dst = step(from_pos, d)
        if not in_bounds(*dst):
            continue
        target = board.piece_at(dst)
        if target is None:
            _add(moves, dst)
        elif target.owner == piece.owner:
            if can_combine(piece, target):
                _add(combines, dst)
        elif can_capture(values, from_pos, dst):
            _add(captures, dst)

    # 2. King arrow actions
    scatters: List[ScatterCheck] = []
    rotate = False
    if piece.is_king and piece.arrow_dir is not None:
        arrow_moves, arrow_captures = arrow_actions(board, from_pos, values)
        for sq in arrow_moves:
            _add(moves, sq)
        for sq in arrow_captures:
            _add(captures, sq)
        if val >= TIER_ORIENT:
            scatters = scatter_options(board, from_pos, values)
            rotate = True

    return LegalActions(moves, captures, combines, scatters, rotate, val)


def side_has_legal_actions(board: Board, side: Player) -> bool:
    values = ValueMap(board)
    return any(not legal_actions_for(board, pos, values).is_empty() for pos, _ in board.pieces(side))


def winner(board: Board) -> Optional[Player]:
    """The side whose opponent has no key counters left, if exactly one has none."""
    black_keys = board.key_count(Player.BLACK)
    white_keys = board.key_count(Player.WHITE)
    if black_keys == 0 and white_keys > 0:
        return Player.WHITE
    if white_keys == 0 and black_keys > 0:
        return Player.BLACK
    return None


def is_game_over(board: Board) -> bool:
    return board.key_count(Player.BLACK) == 0 or board.key_count(Player.WHITE) == 0
