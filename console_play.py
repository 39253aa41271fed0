import logging
import sys

from nodi.app.core.config import registry
from nodi.core.actions import (
    CaptureAction,
    CombineAction,
    MoveAction,
    RotateAction,
    ScatterAction,
    is_legal,
    legal_actions_list,
    perform,
)
from nodi.core.board import Board, step
from nodi.core.enums import Player, RotateDirection
from nodi.core.rules import side_has_legal_actions, winner
from nodi.core.search import play_turn

HELP = """Commands:
  r,c r,c          move / capture / combine from the first square to the second
  scatter r,c r,c  scatter the king at the first square from the base square
  rotate r,c cw    rotate a king's arrow (cw or ccw)
  quit"""


def parse_coord(text: str):
    r, c = text.split(",")
    return int(r), int(c)


def parse_command(board: Board, line: str):
    """Returns the action the line names, or None if it is not understood."""
    parts = line.split()
    if len(parts) == 3 and parts[0] == "scatter":
        src, base = parse_coord(parts[1]), parse_coord(parts[2])
        king = board.piece_at(src)
        if king is None or king.arrow_dir is None:
            return None
        return ScatterAction(src, base, step(base, king.arrow_dir), step(base, king.arrow_dir, 2))
    if len(parts) == 3 and parts[0] == "rotate":
        return RotateAction(parse_coord(parts[1]), RotateDirection(parts[2].lower()))
    if len(parts) == 2:
        src, dst = parse_coord(parts[0]), parse_coord(parts[1])
        for kind in (MoveAction, CaptureAction, CombineAction):
            action = kind(src, dst)
            if is_legal(board, action):
                return action
    return None


def main():
    logging.basicConfig(level=logging.INFO)
    preset = registry.get(sys.argv[1] if len(sys.argv) > 1 else None)

    print("=======================================")
    print(f"   NODI: Human (Black) vs AI ({preset.label})")
    print("=======================================")
    print(HELP)

    board = Board.initial()
    turn = Player.BLACK
    rotated = False  # one free rotation per turn
    print(board.render())

    while winner(board) is None:
        if not side_has_legal_actions(board, turn):
            print(f"\n{turn} has no legal actions.")
            break

        # --- Human Turn (Black) ---
        if turn == Player.BLACK:
            line = input(f"\nYour action ({turn}): ").strip()
            if line == "quit":
                return
            try:
                action = parse_command(board, line)
            except ValueError:
                action = None
            if action is None or not is_legal(board, action):
                print("Illegal or unrecognised action. Try again.")
                continue
            if rotated and isinstance(action, RotateAction):
                print("Only one free rotation per turn. Make another action.")
                continue
            result = perform(board, action)
            board = result.board
            if not result.ends_turn and legal_actions_list(board, turn, include_rotates=False):
                rotated = True
                print("Free rotation, you may still act.")
                print("\n" + board.render())
                continue

        # --- AI Turn (White) ---
        else:
            print("\nAI is thinking...")
            plan = play_turn(board, turn, preset.reply_limit, preset.move_limit, preset.epsilon)
            for scored in plan.actions:
                print(f"AI plays {scored.action.kind}: {scored.action}")
            board = plan.board

        turn = turn.opponent
        rotated = False
        print("\n" + board.render())

    # --- End Game ---
    won = winner(board)
    if won:
        print(f"\nGame Over! Winner: {'Human' if won == Player.BLACK else 'AI'}")


if __name__ == "__main__":
    main()
