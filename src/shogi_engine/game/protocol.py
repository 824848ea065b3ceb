"""BoardView protocol: read-only access shared by Board and BoardSnapshot.

盤面の読み取り専用インタフェース（プロトコル）。

可変の Board と、イベント通知用のイミュータブルな BoardSnapshot の両方が
このプロトコルを満たすので、表示やシリアライズはどちらに対しても動作する。
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from shogi_engine.game.types import Piece, PieceType, Player, Position


@runtime_checkable  # isinstance() でのランタイムチェックを有効にする
class BoardView(Protocol):
    """Read-only view of a shogi position."""

    @property
    def current_player(self) -> Player:
        """現在手番のプレイヤーを返す。"""
        ...

    def piece_at(self, pos: Position) -> Piece | None:
        """マスの駒を返す。空きマスまたは盤外なら None。"""
        ...

    def hand_count(self, player: Player, piece_type: PieceType) -> int:
        """持ち駒の枚数を返す。"""
        ...
