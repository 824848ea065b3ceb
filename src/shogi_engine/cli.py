"""CLI entry point for shogi-engine: Human vs Computer.

コマンドラインで動く本将棋の対局プログラム。
手は USI 形式（例: 7g7f, 8h2b+, P*5e）で入力する。

起動方法: `shogi-cli --level normal --side sente`
"""

from __future__ import annotations

import argparse
import logging
import random
from collections.abc import Sequence

from shogi_engine.engine.config import PRESETS, SearchConfig
from shogi_engine.engine.random_player import random_move
from shogi_engine.engine.search import select_move
from shogi_engine.game.display import format_board
from shogi_engine.game.events import MoveEvent
from shogi_engine.game.move import Move
from shogi_engine.game.rules import GameStatus, MoveError, RulesEngine
from shogi_engine.game.types import Player

_PLAYER_NAMES = {Player.SENTE: "先手", Player.GOTE: "後手"}


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play shogi against the computer")
    parser.add_argument(
        "--side",
        choices=["sente", "gote"],
        default="sente",
        help="Which side you play (sente moves first)",
    )
    parser.add_argument(
        "--ai",
        choices=["minimax", "random"],
        default="minimax",
        help="Computer opponent type",
    )
    parser.add_argument(
        "--level",
        choices=sorted(PRESETS),
        default="normal",
        help="Search preset for the minimax opponent",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=None,
        help="Override the search depth of the preset",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def _announce(event: MoveEvent) -> None:
    print(f"{_PLAYER_NAMES[event.player]}: {event.move.usi()}")


def _read_human_move(engine: RulesEngine) -> Move | None:
    """Prompt until a legal move is entered. Returns None if the user quits.

    "moves" で合法手の一覧、"quit" で中断。
    """
    while True:
        try:
            text = input("Your move (USI, 'moves', 'quit'): ").strip()
        except (EOFError, KeyboardInterrupt):
            return None
        if text == "quit":
            return None
        if text == "moves":
            print(" ".join(m.usi() for m in engine.legal_moves()))
            continue
        try:
            move = Move.from_usi(text)
        except ValueError as exc:
            print(f"Cannot parse move: {exc}")
            continue
        error = engine.check_move(move)
        if error is None:
            return move
        print(f"Illegal move ({error.value})")


def main(argv: Sequence[str] | None = None) -> None:
    """Run a Human vs Computer game.

    ゲームの流れ:
    1. 盤面を表示
    2. 人間の番なら USI 形式の手を入力、AI の番なら探索して指す
    3. 終局まで繰り返す
    """
    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    config = PRESETS[args.level]
    if args.depth is not None:
        config = SearchConfig(depth=args.depth, time_limit=config.time_limit)
    human = Player.SENTE if args.side == "sente" else Player.GOTE

    engine = RulesEngine()
    engine.subscribe(_announce)

    print("=== 本将棋 ===")
    print(f"You are {_PLAYER_NAMES[human]}. Enemy pieces are marked with 'v'.")
    print()

    while not engine.outcome.is_terminal:
        print(format_board(engine.board))
        print()
        if engine.current_player == human:
            move = _read_human_move(engine)
            if move is None:
                print("\nGame aborted.")
                return
        elif args.ai == "random":
            move = random_move(engine.board_copy(), random.Random())
        else:
            move = select_move(engine.board_copy(), config, engine.config)
            if move is None:
                break
        try:
            engine.make_move(move)
        except MoveError as exc:
            print(f"Rejected: {exc.error.value}")
        print()

    print(format_board(engine.board))
    print()
    outcome = engine.outcome
    if outcome.status == GameStatus.WIN:
        print("You win!" if outcome.winner == human else "AI wins!")
    else:
        print("Draw!")


if __name__ == "__main__":
    main()
