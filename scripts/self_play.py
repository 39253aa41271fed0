#!/usr/bin/env python3
"""
AI Self-Play Verification Script

Plays AI vs AI games from the initial layout and checks, at every step, that
the action the search picked is legal on the board it was picked for and that
the board the search reports equals the one the rules engine produces.

Exit Codes:
  0: All games passed
  1: One or more games produced an illegal or inconsistent action
"""

import argparse
import logging
import os
import random
import sys
from typing import Tuple

# Add project root to path so we can import nodi without installing it
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from nodi.app.core.config import registry
from nodi.core.actions import is_legal, perform
from nodi.core.board import Board
from nodi.core.enums import Player
from nodi.core.rules import winner
from nodi.core.search import play_turn

logger = logging.getLogger("self_play")


def run_game(seed: int, preset_key: str, max_turns: int) -> Tuple[bool, str]:
    """
    Returns (Success, Summary).
    """
    preset = registry.get(preset_key)
    rng = random.Random(seed)
    board = Board.initial()
    turn = Player.BLACK

    for n in range(max_turns):
        plan = play_turn(board, turn, preset.reply_limit, preset.move_limit, preset.epsilon, rng)
        if plan.no_legal_actions:
            return True, f"{turn} has no legal actions after {n} turns"

        current = board
        for scored in plan.actions:
            if not is_legal(current, scored.action):
                return False, f"Turn {n}: illegal {scored.action} for {turn}"
            result = perform(current, scored.action)
            if result.board != scored.board:
                return False, f"Turn {n}: search board diverges from rules engine for {scored.action}"
            current = result.board
        board = current

        won = winner(board)
        if won is not None:
            return True, f"{won} wins after {n + 1} turns"
        turn = turn.opponent

    return True, f"No result after {max_turns} turns"


def main():
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--games", type=int, default=4)
    parser.add_argument("--preset", default="easy")
    parser.add_argument("--max-turns", type=int, default=120)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    failures = 0
    for seed in range(args.games):
        ok, summary = run_game(seed, args.preset, args.max_turns)
        logger.info("%s game %d: %s", "PASS" if ok else "FAIL", seed, summary)
        if not ok:
            failures += 1

    logger.info("%d/%d games passed", args.games - failures, args.games)
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
