from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from nodi.core.actions import (
    Action,
    CaptureAction,
    CombineAction,
    MoveAction,
    RotateAction,
    ScatterAction,
)
from nodi.core.board import Board, Counter, Piece, check_piece
from nodi.core.constants import SIZE
from nodi.core.enums import Dir, Player, RotateDirection, ScatterReason

# [row, col]; off-board coordinates are allowed and yield neutral answers
Coord = Tuple[int, int]


# --- Board ---

class CounterSchema(BaseModel):
    owner: Player
    is_key: bool = False


class PieceSchema(BaseModel):
    counters: List[CounterSchema] = Field(min_length=1, max_length=2)
    arrow_dir: Optional[Dir] = None

    @model_validator(mode="after")
    def check_invariants(self):
        check_piece(self.to_piece())
        return self

    def to_piece(self) -> Piece:
        counters = tuple(Counter(c.owner, c.is_key) for c in self.counters)
        # Arrows only mean something on kings
        arrow = self.arrow_dir if len(counters) == 2 else None
        return Piece(counters, arrow)

    @classmethod
    def from_piece(cls, piece: Piece) -> "PieceSchema":
        return cls(
            counters=[CounterSchema(owner=c.owner, is_key=c.is_key) for c in piece.counters],
            arrow_dir=piece.arrow_dir,
        )


class BoardSchema(BaseModel):
    cells: List[List[Optional[PieceSchema]]]

    @field_validator("cells")
    @classmethod
    def check_shape(cls, cells):
        if len(cells) != SIZE or any(len(row) != SIZE for row in cells):
            raise ValueError(f"Board must be {SIZE}x{SIZE}")
        return cells

    def to_board(self) -> Board:
        return Board([[p.to_piece() if p else None for p in row] for row in self.cells])

    @classmethod
    def from_board(cls, board: Board) -> "BoardSchema":
        return cls(cells=[[PieceSchema.from_piece(p) if p else None for p in row] for row in board.cells])


# --- Actions (discriminated by 'kind') ---

class MoveSchema(BaseModel):
    kind: Literal["move"] = "move"
    from_pos: Coord
    to: Coord


class CaptureSchema(BaseModel):
    kind: Literal["capture"] = "capture"
    from_pos: Coord
    to: Coord


class CombineSchema(BaseModel):
    kind: Literal["combine"] = "combine"
    from_pos: Coord
    to: Coord


class ScatterSchema(BaseModel):
    kind: Literal["scatter"] = "scatter"
    from_pos: Coord
    base: Coord
    # Derived from the king's arrow when omitted
    l1: Optional[Coord] = None
    l2: Optional[Coord] = None


class RotateSchema(BaseModel):
    kind: Literal["rotate"] = "rotate"
    at: Coord
    direction: RotateDirection


ActionSchema = Annotated[
    Union[MoveSchema, CaptureSchema, CombineSchema, ScatterSchema, RotateSchema],
    Field(discriminator="kind"),
]


def action_to_schema(action: Action):
    if isinstance(action, MoveAction):
        return MoveSchema(from_pos=action.from_pos, to=action.to)
    if isinstance(action, CaptureAction):
        return CaptureSchema(from_pos=action.from_pos, to=action.to)
    if isinstance(action, CombineAction):
        return CombineSchema(from_pos=action.from_pos, to=action.to)
    if isinstance(action, ScatterAction):
        return ScatterSchema(from_pos=action.from_pos, base=action.base, l1=action.l1, l2=action.l2)
    if isinstance(action, RotateAction):
        return RotateSchema(at=action.at, direction=action.direction)
    raise TypeError(f"Unknown action type: {type(action).__name__}")


# --- Requests / Responses ---

class InitialBoardResponse(BaseModel):
    board: BoardSchema
    turn: Player


class LegalRequest(BaseModel):
    board: BoardSchema
    at: Coord


class ScatterOptionSchema(BaseModel):
    base: Coord
    l1: Coord
    l2: Coord
    can: bool
    reason: Optional[ScatterReason] = None


class Highlight(BaseModel):
    type: Literal["move", "capture", "combine", "scatter"]
    to: Coord


class LegalResponse(BaseModel):
    at: Coord
    value: int
    moves: List[Coord]
    captures: List[Coord]
    combines: List[Coord]
    scatter_options: List[ScatterOptionSchema]
    can_rotate: bool
    highlights: List[Highlight]


class ApplyRequest(BaseModel):
    board: BoardSchema
    action: ActionSchema


class ApplyResponse(BaseModel):
    board: BoardSchema
    ends_turn: bool
    winner: Optional[Player] = None


class ValuesRequest(BaseModel):
    board: BoardSchema


class RaySchema(BaseModel):
    origin: Coord
    squares: List[Coord]


class ValuesResponse(BaseModel):
    values: List[List[int]]
    full_values: List[List[int]]
    rays: List[RaySchema]


class AIMoveRequest(BaseModel):
    # Allow extra fields so older clients keep working
    model_config = ConfigDict(extra="ignore")

    board: BoardSchema
    side: Player
    preset: Optional[str] = None
    move_limit: Optional[int] = Field(default=None, ge=1)
    reply_limit: Optional[int] = Field(default=None, ge=0)


class AIMoveResponse(BaseModel):
    action: Optional[ActionSchema] = None
    # Second action when the first was a free rotation
    followup: Optional[ActionSchema] = None
    score: Optional[float] = None
    board: Optional[BoardSchema] = None
    no_legal_actions: bool = False
    winner: Optional[Player] = None
    duration: float = 0.0


class PresetResponse(BaseModel):
    id: str
    label: str
    move_limit: int
    reply_limit: int
    epsilon: float
