"""Random player: a baseline opponent for 本将棋.

合法手（成・不成、持ち駒の打ち手を含む）から一様ランダムに1手を選ぶ。
探索AIの強さの下限の確認や、ルール実装のランダム対局テストに使う。
"""

from __future__ import annotations

import random

from shogi_engine.game.board import Board
from shogi_engine.game.move import Move
from shogi_engine.game.rules import generate_all_moves


def random_move(board: Board, rng: random.Random | None = None) -> Move:
    """Pick a legal move for the side to move.

    渡された盤面は変更しない。rng を渡せば再現可能な手順になる。
    合法手がない局面（詰み・合法手なし）では ValueError を送出する。
    """
    moves = generate_all_moves(board.copy())
    if not moves:
        msg = f"No legal moves for {board.current_player.name}"
        raise ValueError(msg)
    return (rng or random).choice(moves)
