"""Pseudo-legal destination generation for 本将棋.

駒の動きのルールだけから移動先の候補を求める。王手放置かどうかの判定は
rules.py の仕事で、ここでは扱わない。

2種類の基本動作ですべての駒を表現する:
  Stepping: 各方向に1マス（桂馬の跳びも含む、途中の駒は関係ない）
  Sliding:  各方向に空きマスを進み続け、最初に駒があるマスで止まる（相手の駒なら取れる）
"""

from __future__ import annotations

from shogi_engine.game.board import Board
from shogi_engine.game.types import (
    COLS,
    MOVE_RULES,
    ROWS,
    PieceType,
    Player,
    Position,
)


def candidate_destinations(
    piece_type: PieceType,
    origin: Position,
    board: Board,
    owner: Player,
) -> list[Position]:
    """Return every square the piece can reach by its movement rule.

    自分の駒があるマスは含まない。相手の駒があるマスは取る手として含む。
    """
    if not origin.is_valid:
        return []
    rule = MOVE_RULES[piece_type]
    squares = board.squares
    flip = owner == Player.GOTE
    row, col = origin.row, origin.col
    result: list[Position] = []

    for dr, dc in rule.steps:
        if flip:
            dr = -dr
        nr, nc = row + dr, col + dc
        if 0 <= nr < ROWS and 0 <= nc < COLS:
            target = squares[nr * COLS + nc]
            if target is None or target.owner != owner:
                result.append(Position(nr, nc))

    for dr, dc in rule.slides:
        if flip:
            dr = -dr
        nr, nc = row + dr, col + dc
        while 0 <= nr < ROWS and 0 <= nc < COLS:
            target = squares[nr * COLS + nc]
            if target is not None and target.owner == owner:
                break
            result.append(Position(nr, nc))
            if target is not None:
                break  # 取ったらそこで止まる
            nr, nc = nr + dr, nc + dc

    return result


def attacks_square(board: Board, origin: Position, target: Position) -> bool:
    """Check if the piece at origin attacks target.

    candidate_destinations と同じ規則だが、リストを作らずに判定する（王手判定の高速化）。
    """
    piece = board.squares[origin.index]
    if piece is None:
        return False
    rule = MOVE_RULES[piece.piece_type]
    flip = piece.owner == Player.GOTE
    row, col = origin.row, origin.col

    for dr, dc in rule.steps:
        if flip:
            dr = -dr
        if row + dr == target.row and col + dc == target.col:
            return True

    for dr, dc in rule.slides:
        if flip:
            dr = -dr
        nr, nc = row + dr, col + dc
        while 0 <= nr < ROWS and 0 <= nc < COLS:
            if nr == target.row and nc == target.col:
                return True
            if board.squares[nr * COLS + nc] is not None:
                break
            nr, nc = nr + dr, nc + dc

    return False


def is_square_attacked(board: Board, target: Position, by_player: Player) -> bool:
    """by_player のいずれかの駒が target に利いていれば True。"""
    for idx, piece in enumerate(board.squares):
        if piece is None or piece.owner != by_player:
            continue
        if attacks_square(board, Position.from_index(idx), target):
            return True
    return False


def in_promotion_zone(player: Player, row: int) -> bool:
    """Check if a row is in the promotion zone (enemy's 3 ranks)."""
    if player == Player.SENTE:
        return 0 <= row <= 2
    return 6 <= row < ROWS


def is_dead_square(piece_type: PieceType, player: Player, row: int) -> bool:
    """行き所のない駒: その段に置くと二度と動けない駒なら True.

    歩・香は最奥の1段、桂は最奥の2段。成りの強制と打ち駒の制限の両方で使う。
    """
    if piece_type in (PieceType.PAWN, PieceType.LANCE):
        return row == 0 if player == Player.SENTE else row == ROWS - 1
    if piece_type == PieceType.KNIGHT:
        return row <= 1 if player == Player.SENTE else row >= ROWS - 2
    return False


def must_promote(piece_type: PieceType, player: Player, dest_row: int) -> bool:
    """Check if promotion is mandatory (piece has no further moves)."""
    return is_dead_square(piece_type, player, dest_row)


def can_promote(piece_type: PieceType, player: Player, from_row: int, to_row: int) -> bool:
    """成れる手なら True.

    未成の飛角銀桂香歩で、移動元か移動先のどちらかが敵陣（成り領域）にあること。
    """
    if not piece_type.can_promote:
        return False
    return in_promotion_zone(player, from_row) or in_promotion_zone(player, to_row)
