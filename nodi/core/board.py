# nodi/core/board.py
from typing import Dict, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from .constants import INITIAL_LAYOUT, SIZE
from .enums import Dir, Player

Coord = Tuple[int, int]


class Counter(NamedTuple):
    owner: Player
    is_key: bool = False


class Piece(NamedTuple):
    """
    1 counter = single, 2 counters = king.
    arrow_dir is only meaningful on kings.
    """
    counters: Tuple[Counter, ...]
    arrow_dir: Optional[Dir] = None

    @property
    def owner(self) -> Player:
        return self.counters[0].owner

    @property
    def size(self) -> int:
        return len(self.counters)

    @property
    def is_king(self) -> bool:
        return len(self.counters) == 2

    @property
    def is_key(self) -> bool:
        return any(c.is_key for c in self.counters)

    def with_arrow(self, arrow_dir: Dir) -> "Piece":
        return self._replace(arrow_dir=arrow_dir)


def single(owner: Player, is_key: bool = False) -> Piece:
    return Piece((Counter(owner, is_key),))


def king(owner: Player, arrow_dir: Dir) -> Piece:
    return Piece((Counter(owner), Counter(owner)), arrow_dir)


def check_piece(piece: Piece) -> None:
    """Raises ValueError if the piece breaks a structural invariant."""
    if not 1 <= len(piece.counters) <= 2:
        raise ValueError(f"A piece holds 1 or 2 counters, got {len(piece.counters)}")
    if len({c.owner for c in piece.counters}) != 1:
        raise ValueError("Mixed-ownership piece")
    if piece.is_king:
        if piece.is_key:
            raise ValueError("A key counter can never be part of a king")
        if piece.arrow_dir is None:
            raise ValueError("A king must carry an arrow direction")


def in_bounds(r: int, c: int) -> bool:
    return 0 <= r < SIZE and 0 <= c < SIZE


def step(pos: Coord, direction: Dir, n: int = 1) -> Coord:
    dr, dc = direction.delta
    return (pos[0] + dr * n, pos[1] + dc * n)


class Board:
    """
    Immutable 8x8 grid. Row 0 is the TOP, col 0 the LEFT.
    Each cell is None or a Piece. Transitions return a NEW Board.
    """
    __slots__ = ("_cells",)

    def __init__(self, cells: Optional[Sequence[Sequence[Optional[Piece]]]] = None):
        if cells is None:
            cells = [[None] * SIZE for _ in range(SIZE)]
        if len(cells) != SIZE or any(len(row) != SIZE for row in cells):
            raise ValueError(f"Board must be {SIZE}x{SIZE}")
        self._cells = tuple(tuple(row) for row in cells)

    @classmethod
    def empty(cls) -> "Board":
        return cls()

    @classmethod
    def from_layout(cls, layout: Sequence[str] = INITIAL_LAYOUT) -> "Board":
        """
        Parses the textual grid ('.', 'w', 'W', 'b', 'B').
        Whitespace inside a row is ignored.
        """
        rows = ["".join(line.split()) for line in layout]
        if len(rows) != SIZE or any(len(r) != SIZE for r in rows):
            raise ValueError(f"Layout must be {SIZE} rows x {SIZE} cols using . w W b B")

        symbols = {
            ".": None,
            "w": single(Player.WHITE),
            "W": single(Player.WHITE, is_key=True),
            "b": single(Player.BLACK),
            "B": single(Player.BLACK, is_key=True),
        }
        cells: List[List[Optional[Piece]]] = []
        for r, row in enumerate(rows):
            out_row = []
            for c, ch in enumerate(row):
                if ch not in symbols:
                    raise ValueError(f"Unknown layout symbol {ch!r} at {(r, c)}")
                out_row.append(symbols[ch])
            cells.append(out_row)
        return cls(cells)

    @classmethod
    def initial(cls) -> "Board":
        return cls.from_layout(INITIAL_LAYOUT)

    @classmethod
    def from_pieces(cls, pieces: Dict[Coord, Piece]) -> "Board":
        return cls().replace(pieces)

    # --- Accessors ---

    @property
    def cells(self) -> Tuple[Tuple[Optional[Piece], ...], ...]:
        return self._cells

    def piece_at(self, pos: Coord) -> Optional[Piece]:
        r, c = pos
        if not in_bounds(r, c):
            return None
        return self._cells[r][c]

    def is_empty(self, pos: Coord) -> bool:
        return self.piece_at(pos) is None

    def pieces(self, owner: Optional[Player] = None) -> Iterator[Tuple[Coord, Piece]]:
        for r in range(SIZE):
            for c in range(SIZE):
                p = self._cells[r][c]
                if p is not None and (owner is None or p.owner == owner):
                    yield (r, c), p

    def kings(self) -> Iterator[Tuple[Coord, Piece]]:
        for pos, p in self.pieces():
            if p.is_king and p.arrow_dir is not None:
                yield pos, p

    def key_count(self, player: Player) -> int:
        return sum(
            1
            for _, p in self.pieces(player)
            for counter in p.counters
            if counter.is_key
        )

    # --- Transitions ---

    def replace(self, changes: Dict[Coord, Optional[Piece]]) -> "Board":
        """Returns a NEW board with the given cells overwritten."""
        grid = [list(row) for row in self._cells]
        for (r, c), piece in changes.items():
            if not in_bounds(r, c):
                raise ValueError(f"Square {(r, c)} is off the board")
            grid[r][c] = piece
        return Board(grid)

    # --- Formatting ---

    def render(self) -> str:
        """ASCII grid. Singles: b/w, keys: B/W, kings: owner letter + arrow."""
        header = "   " + "".join(f"{c:^4}" for c in range(SIZE))
        lines = [header]
        for r in range(SIZE):
            cells = []
            for c in range(SIZE):
                p = self._cells[r][c]
                if p is None:
                    cells.append(" . ")
                    continue
                letter = "w" if p.owner == Player.WHITE else "b"
                if p.is_king:
                    cells.append(f"{letter.upper()}{p.arrow_dir.value:<2}")
                elif p.is_key:
                    cells.append(f" {letter.upper()}*")
                else:
                    cells.append(f" {letter} ")
            lines.append(f"{r:>2} |" + "|".join(cells) + "|")
        return "\n".join(lines)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._cells == other._cells

    def __hash__(self) -> int:
        return hash(self._cells)

    def __repr__(self) -> str:
        return f"Board(\n{self.render()}\n)"
