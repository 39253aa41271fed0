"""
Game Service - Translation layer between the wire schemas and the rules engine

This service is the single entry point the API uses to touch the core:
- Initial layout
- Legality queries (highlights, scatter options, rotate eligibility)
- Action validation and application
- Value / ray overlays
- AI move selection

Every call works on a board snapshot supplied by the caller. Nothing is stored
here: undo history belongs to the client, which keeps the snapshots it sent.
"""

import logging
import random
import time
from typing import List, Optional

from nodi.app.core.config import registry
from nodi.app.schemas.game_schema import (
    AIMoveResponse,
    ApplyResponse,
    BoardSchema,
    Coord,
    Highlight,
    InitialBoardResponse,
    LegalResponse,
    RaySchema,
    ScatterOptionSchema,
    ValuesResponse,
    action_to_schema,
)
from nodi.core.actions import (
    Action,
    CaptureAction,
    CombineAction,
    MoveAction,
    RotateAction,
    ScatterAction,
    actor_of,
    is_legal,
    perform,
)
from nodi.core.board import Board, step
from nodi.core.enums import Player
from nodi.core.rays import ValueMap, all_rays
from nodi.core.rules import legal_actions_for, winner
from nodi.core.search import play_turn

logger = logging.getLogger(__name__)

FIRST_TO_MOVE = Player.BLACK


class IllegalActionError(ValueError):
    """The requested action is not legal on the supplied board."""


def action_from_schema(schema, board: Board) -> Action:
    """
    Builds the core action. Scatter landing squares are re-derived from the
    king's arrow so a client only has to name the base.
    """
    if schema.kind == "move":
        return MoveAction(tuple(schema.from_pos), tuple(schema.to))
    if schema.kind == "capture":
        return CaptureAction(tuple(schema.from_pos), tuple(schema.to))
    if schema.kind == "combine":
        return CombineAction(tuple(schema.from_pos), tuple(schema.to))
    if schema.kind == "scatter":
        king = board.piece_at(tuple(schema.from_pos))
        base = tuple(schema.base)
        if king is None or king.arrow_dir is None:
            raise IllegalActionError(f"No king with an arrow at {schema.from_pos}")
        l1, l2 = step(base, king.arrow_dir), step(base, king.arrow_dir, 2)
        if (schema.l1 is not None and tuple(schema.l1) != l1) or (schema.l2 is not None and tuple(schema.l2) != l2):
            raise IllegalActionError(f"Scatter landings do not follow the arrow from {base}")
        return ScatterAction(tuple(schema.from_pos), base, l1, l2)
    if schema.kind == "rotate":
        return RotateAction(tuple(schema.at), schema.direction)
    raise IllegalActionError(f"Unknown action kind: {schema.kind}")


class GameService:
    """Stateless facade over the rules engine"""

    def initial_board(self) -> InitialBoardResponse:
        return InitialBoardResponse(board=BoardSchema.from_board(Board.initial()), turn=FIRST_TO_MOVE)

    def legal_actions(self, board: Board, at: Coord) -> LegalResponse:
        at = tuple(at)
        legal = legal_actions_for(board, at)

        highlights: List[Highlight] = []
        highlights += [Highlight(type="move", to=sq) for sq in legal.moves]
        highlights += [Highlight(type="capture", to=sq) for sq in legal.captures]
        highlights += [Highlight(type="combine", to=sq) for sq in legal.combines]
        highlights += [Highlight(type="scatter", to=s.base) for s in legal.scatters]

        return LegalResponse(
            at=at,
            value=legal.value,
            moves=legal.moves,
            captures=legal.captures,
            combines=legal.combines,
            scatter_options=[
                ScatterOptionSchema(base=s.base, l1=s.l1, l2=s.l2, can=s.can, reason=s.reason)
                for s in legal.scatter_options
            ],
            can_rotate=legal.can_rotate,
            highlights=highlights,
        )

    def apply_action(self, board: Board, schema) -> ApplyResponse:
        """Validate inside the rules engine, then transition"""
        action = action_from_schema(schema, board)
        if not is_legal(board, action):
            logger.warning("Rejected illegal action %s", action)
            raise IllegalActionError(f"Illegal action: {schema.kind} from {actor_of(action)}")

        result = perform(board, action)
        return ApplyResponse(
            board=BoardSchema.from_board(result.board),
            ends_turn=result.ends_turn,
            winner=winner(result.board),
        )

    def values(self, board: Board) -> ValuesResponse:
        values = ValueMap(board)
        return ValuesResponse(
            values=values.grid(),
            full_values=values.full_grid(),
            rays=[RaySchema(origin=origin, squares=squares) for origin, squares in all_rays(board).items()],
        )

    def choose_ai_move(
        self,
        board: Board,
        side: Player,
        preset_key: Optional[str] = None,
        move_limit: Optional[int] = None,
        reply_limit: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> AIMoveResponse:
        """
        Runs the search synchronously. Callers on an event loop should go
        through the AI runner, which moves this off the loop.
        """
        done = winner(board)
        if done is not None:
            return AIMoveResponse(board=BoardSchema.from_board(board), winner=done)

        preset = registry.get(preset_key)
        start_time = time.time()
        plan = play_turn(
            board,
            side,
            reply_limit=preset.reply_limit if reply_limit is None else reply_limit,
            move_limit=preset.move_limit if move_limit is None else move_limit,
            epsilon=preset.epsilon,
            rng=rng,
        )
        duration = round(time.time() - start_time, 3)

        if plan.no_legal_actions:
            logger.info("%s has no legal actions", side)
            return AIMoveResponse(no_legal_actions=True, board=BoardSchema.from_board(board), duration=duration)

        first = plan.actions[0]
        followup = plan.actions[1] if len(plan.actions) > 1 else None
        return AIMoveResponse(
            action=action_to_schema(first.action),
            followup=action_to_schema(followup.action) if followup else None,
            score=(followup or first).score,
            board=BoardSchema.from_board(plan.board),
            winner=winner(plan.board),
            duration=duration,
        )


# Singleton instance
game_service = GameService()
