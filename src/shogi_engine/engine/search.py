"""Minimax search with alpha-beta pruning for 本将棋.

探索は渡された盤面のコピー1枚に対して apply/undo を繰り返して行う。
対局の正本の盤面（RulesEngine が持つもの）を直接変更することはない。
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from shogi_engine.engine.config import DEFAULT_SEARCH, SearchConfig
from shogi_engine.game.board import Board
from shogi_engine.game.move import Move
from shogi_engine.game.rules import (
    DEFAULT_RULES,
    RulesConfig,
    RulesEngine,
    generate_all_moves,
    is_checkmate,
    is_in_check,
)
from shogi_engine.game.types import HAND_PIECE_TYPES, PieceType, Player

logger = logging.getLogger(__name__)

# 駒の価値テーブル（材料評価に使用）
# 王将に圧倒的に高い値を設定することで「玉を守る」行動を最優先させる
PIECE_VALUES: dict[PieceType, int] = {
    PieceType.PAWN: 100,
    PieceType.LANCE: 300,
    PieceType.KNIGHT: 350,
    PieceType.SILVER: 400,
    PieceType.GOLD: 500,
    PieceType.BISHOP: 800,
    PieceType.ROOK: 1000,
    PieceType.KING: 10000,
    PieceType.PRO_PAWN: 600,
    PieceType.PRO_LANCE: 600,
    PieceType.PRO_KNIGHT: 600,
    PieceType.PRO_SILVER: 600,
    PieceType.HORSE: 1200,
    PieceType.DRAGON: 1400,
}

# 詰みの評価値。どんな駒得よりも大きい
MATE_SCORE = 1_000_000


@dataclass(frozen=True)
class SearchResult:
    """Best move found and search statistics. move is None when no legal move exists."""

    move: Move | None
    score: float
    nodes: int
    elapsed: float


def evaluate(board: Board, player: Player, config: SearchConfig = DEFAULT_SEARCH) -> int:
    """Evaluate a position from player's perspective.

    局面を player の視点から数値評価する（静的評価関数）。

    Scoring:
    - Material on the board (piece values)
    - Material in hand (持ち駒も潜在的な打ち駒として同じ価値で数える)
    - Mobility difference, only when config.mobility_weight is non-zero

    Returns positive if player is better off.
    """
    score = 0
    for piece in board.squares:
        if piece is None:
            continue
        value = PIECE_VALUES[piece.piece_type]
        score += value if piece.owner == player else -value

    opponent = player.opponent
    for pt in HAND_PIECE_TYPES:
        diff = board.hand_count(player, pt) - board.hand_count(opponent, pt)
        score += diff * PIECE_VALUES[pt]

    if config.mobility_weight:
        mobility = len(generate_all_moves(board, player)) - len(
            generate_all_moves(board, opponent)
        )
        score += config.mobility_weight * mobility

    return score


def _mate_score(mated: Player, ai_player: Player, depth: int) -> float:
    # depth を加算することで「より速い詰み」を優先する
    if mated == ai_player:
        return -(MATE_SCORE + depth)
    return MATE_SCORE + depth


def minimax(
    board: Board,
    depth: int,
    maximizing: bool,
    alpha: float,
    beta: float,
    ai_player: Player,
    config: SearchConfig = DEFAULT_SEARCH,
    rules: RulesConfig = DEFAULT_RULES,
    counter: list[int] | None = None,
) -> float:
    """Minimax search with alpha-beta pruning.

    ミニマックス法 + αβ枝刈りによる探索。
    maximizing=True の局面では ai_player が手番で評価値を最大化し、
    False の局面では相手が手番で評価値を最小化する。

    alpha: 最大化側が保証できる最低スコア
    beta:  最小化側が保証できる最高スコア
    beta <= alpha になった時点で残りの兄弟手は調べない（枝刈り）。

    Returns the score from ai_player's perspective.
    """
    if counter is not None:
        counter[0] += 1
    mover = board.current_player

    # 葉ノード: 詰みなら詰みの評価値、そうでなければ静的評価
    if depth == 0:
        if is_checkmate(board, mover):
            return _mate_score(mover, ai_player, depth)
        return evaluate(board, ai_player, config)

    moves = generate_all_moves(board, mover)
    if not moves:
        if is_in_check(board, mover) or rules.stalemate_is_loss:
            return _mate_score(mover, ai_player, depth)
        return 0.0  # 合法手なし（王手ではない）は引き分け扱い

    if maximizing:
        best = float("-inf")
        for move in moves:
            board.apply(move)
            score = minimax(board, depth - 1, False, alpha, beta, ai_player, config, rules, counter)
            board.undo()
            best = max(best, score)
            alpha = max(alpha, score)
            if beta <= alpha:
                break  # βカットオフ
        return best

    best = float("inf")
    for move in moves:
        board.apply(move)
        score = minimax(board, depth - 1, True, alpha, beta, ai_player, config, rules, counter)
        board.undo()
        best = min(best, score)
        beta = min(beta, score)
        if beta <= alpha:
            break  # αカットオフ
    return best


def search(
    board: Board,
    config: SearchConfig = DEFAULT_SEARCH,
    rules: RulesConfig = DEFAULT_RULES,
) -> SearchResult:
    """Search the best move for the side to move on a private copy of board.

    合法手が0なら move=None（終局のサイン）、1つだけならそのまま返して探索しない。
    """
    start = time.perf_counter()
    work = board.copy()
    ai_player = work.current_player

    moves = generate_all_moves(work, ai_player)
    if not moves:
        return SearchResult(None, float("-inf"), 0, time.perf_counter() - start)
    if len(moves) == 1:
        return SearchResult(moves[0], 0.0, 0, time.perf_counter() - start)

    deadline = None if config.time_limit is None else start + config.time_limit
    counter = [0]
    best_move = moves[0]
    best_score = float("-inf")
    alpha, beta = float("-inf"), float("inf")

    for i, move in enumerate(moves):
        # 時間制限はルートの手と手の間でだけ確認する
        if deadline is not None and i > 0 and time.perf_counter() >= deadline:
            logger.debug("Time limit reached after %d of %d root moves", i, len(moves))
            break
        work.apply(move)
        score = minimax(work, config.depth - 1, False, alpha, beta, ai_player, config, rules, counter)
        work.undo()
        if score > best_score:
            best_score = score
            best_move = move
        alpha = max(alpha, score)

    elapsed = time.perf_counter() - start
    logger.debug(
        "Searched depth %d: best %s score %s (%d nodes, %.2fs)",
        config.depth,
        best_move,
        best_score,
        counter[0],
        elapsed,
    )
    return SearchResult(best_move, best_score, counter[0], elapsed)


def select_move(
    board: Board,
    config: SearchConfig = DEFAULT_SEARCH,
    rules: RulesConfig = DEFAULT_RULES,
) -> Move | None:
    """Return the best move for the side to move, or None if there is none."""
    return search(board, config, rules).move


def play_best_move(engine: RulesEngine, config: SearchConfig = DEFAULT_SEARCH) -> Move | None:
    """探索した手を RulesEngine.make_move 経由で指す。指せる手がなければ None。"""
    if engine.outcome.is_terminal:
        return None
    move = select_move(engine.board_copy(), config, engine.config)
    if move is not None:
        engine.make_move(move)
    return move
