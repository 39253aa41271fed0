"""
Action variants and pure board transitions.

Every apply_* function returns a NEW Board and never touches its input. Invalid
requests are a no-op: the input board comes back unchanged.
"""
from typing import List, Literal, NamedTuple, Optional, Union

from .board import Board, Coord, Piece, single
from .constants import TIER_FREE, TIER_ORIENT
from .enums import Dir, Player, RotateDirection
from .rays import ValueMap, value_at
from .rules import LegalActions, legal_actions_for
from .scatter import validate_scatter


class MoveAction(NamedTuple):
    from_pos: Coord
    to: Coord
    kind: Literal["move"] = "move"


class CaptureAction(NamedTuple):
    from_pos: Coord
    to: Coord
    kind: Literal["capture"] = "capture"


class CombineAction(NamedTuple):
    from_pos: Coord
    to: Coord
    kind: Literal["combine"] = "combine"


class ScatterAction(NamedTuple):
    from_pos: Coord
    base: Coord
    l1: Coord
    l2: Coord
    kind: Literal["scatter"] = "scatter"


class RotateAction(NamedTuple):
    at: Coord
    direction: RotateDirection
    kind: Literal["rotate"] = "rotate"


Action = Union[MoveAction, CaptureAction, CombineAction, ScatterAction, RotateAction]


class ActionResult(NamedTuple):
    board: Board
    ends_turn: bool


def apply_move(board: Board, from_pos: Coord, to: Coord) -> Board:
    """Moves, captures and combines only go where legal_actions_for lists them."""
    piece = board.piece_at(from_pos)
    if piece is None or to not in legal_actions_for(board, from_pos).moves:
        return board
    return board.replace({from_pos: None, to: piece})


def apply_capture(board: Board, from_pos: Coord, to: Coord) -> Board:
    piece = board.piece_at(from_pos)
    target = board.piece_at(to)
    if piece is None or target is None or to not in legal_actions_for(board, from_pos).captures:
        return board
    return board.replace({from_pos: None, to: piece})


def apply_combine(board: Board, from_pos: Coord, to: Coord) -> Board:
    """
    Merges the mover into the adjacent friendly single at `to`.
    The new king points the way the mover travelled.
    """
    mover = board.piece_at(from_pos)
    target = board.piece_at(to)
    if mover is None or target is None or to not in legal_actions_for(board, from_pos).combines:
        return board
    dr, dc = to[0] - from_pos[0], to[1] - from_pos[1]
    new_king = Piece(target.counters + mover.counters, Dir.from_delta(dr, dc))
    return board.replace({from_pos: None, to: new_king})


def apply_scatter(board: Board, from_pos: Coord, base: Coord) -> Board:
    """
    Removes the king and drops one plain single on each landing square,
    capturing whatever enemy stood there.
    """
    check = validate_scatter(board, from_pos, base)
    if not check.can:
        return board
    owner = board.piece_at(from_pos).owner
    return board.replace({
        from_pos: None,
        check.l1: single(owner),
        check.l2: single(owner),
    })


def apply_rotate(board: Board, at: Coord, direction: RotateDirection) -> Board:
    piece = board.piece_at(at)
    if piece is None or not piece.is_king or piece.arrow_dir is None:
        return board
    if value_at(board, at) < TIER_ORIENT:
        return board
    new_dir = piece.arrow_dir.rotated(clockwise=direction == RotateDirection.CW)
    return board.replace({at: piece.with_arrow(new_dir)})


def rotation_ends_turn(board_after: Board, at: Coord) -> bool:
    """
    Judged on the value AFTER rotating: tier 3 re-orients for free,
    anything lower spends the turn.
    """
    return value_at(board_after, at) < TIER_FREE


def apply_action(board: Board, action: Action) -> Board:
    if isinstance(action, MoveAction):
        return apply_move(board, action.from_pos, action.to)
    if isinstance(action, CaptureAction):
        return apply_capture(board, action.from_pos, action.to)
    if isinstance(action, CombineAction):
        return apply_combine(board, action.from_pos, action.to)
    if isinstance(action, ScatterAction):
        return apply_scatter(board, action.from_pos, action.base)
    if isinstance(action, RotateAction):
        return apply_rotate(board, action.at, action.direction)
    raise TypeError(f"Unknown action type: {type(action).__name__}")


def perform(board: Board, action: Action) -> ActionResult:
    """Applies the action and reports whether the player's turn is over."""
    next_board = apply_action(board, action)
    if isinstance(action, RotateAction):
        if next_board is board:
            return ActionResult(board, False)
        return ActionResult(next_board, rotation_ends_turn(next_board, action.at))
    return ActionResult(next_board, next_board is not board)


def actor_of(action: Action) -> Coord:
    return action.at if isinstance(action, RotateAction) else action.from_pos


def actions_from_legal(from_pos: Coord, legal: LegalActions, include_rotates: bool = True) -> List[Action]:
    out: List[Action] = []
    out.extend(MoveAction(from_pos, to) for to in legal.moves)
    out.extend(CaptureAction(from_pos, to) for to in legal.captures)
    out.extend(CombineAction(from_pos, to) for to in legal.combines)
    out.extend(ScatterAction(from_pos, s.base, s.l1, s.l2) for s in legal.scatters)
    if include_rotates and legal.can_rotate:
        out.append(RotateAction(from_pos, RotateDirection.CW))
        out.append(RotateAction(from_pos, RotateDirection.CCW))
    return out


def legal_actions_list(
    board: Board,
    side: Player,
    include_rotates: bool = True,
    values: Optional[ValueMap] = None,
) -> List[Action]:
    """Every legal action for `side`, computed against one ValueMap."""
    values = values or ValueMap(board)
    out: List[Action] = []
    for pos, _ in board.pieces(side):
        out.extend(actions_from_legal(pos, legal_actions_for(board, pos, values), include_rotates))
    return out


def is_legal(board: Board, action: Action) -> bool:
    piece = board.piece_at(actor_of(action))
    if piece is None:
        return False
    legal = legal_actions_for(board, actor_of(action))
    return action in actions_from_legal(actor_of(action), legal)


def captured_squares(board: Board, action: Action) -> List[Coord]:
    """Squares whose enemy occupant the action removes."""
    if isinstance(action, CaptureAction):
        return [action.to]
    if isinstance(action, ScatterAction):
        owner = board.piece_at(action.from_pos).owner
        return [
            sq for sq in (action.l1, action.l2)
            if board.piece_at(sq) is not None and board.piece_at(sq).owner != owner
        ]
    return []
