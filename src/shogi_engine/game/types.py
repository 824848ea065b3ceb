"""Types and constants for 本将棋 (Full Shogi, 9x9).

本将棋（9×9盤）の基本型・定数定義。
駒は14種類（未成7種 + 成り6種 + 王将）。

座標系は1種類のみ使用する:
  Position(row, col)、row 0 = 上端（後手の後段）、row 8 = 下端（先手の後段）、
  col 0 = 先手から見て左端（9筋）。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, unique
from typing import NamedTuple

ROWS = 9
COLS = 9
NUM_SQUARES = ROWS * COLS  # 81マス


@unique
class Player(IntEnum):
    """Player identifiers.

    先手（SENTE）は下側から上に向かって進む（row 8 → row 0）。
    後手（GOTE）は上側から下に向かって進む（row 0 → row 8）。
    """

    SENTE = 0  # 先手
    GOTE = 1   # 後手

    @property
    def opponent(self) -> Player:
        """相手プレイヤーを返す。"""
        return Player(1 - self.value)

    @property
    def forward(self) -> int:
        """前方向の行の増分（先手は -1、後手は +1）。"""
        return -1 if self == Player.SENTE else 1


@unique
class PieceType(IntEnum):
    """Piece types in 本将棋（14種類）.

    0〜6: 未成駒、7: 王将、8〜13: 成り駒
    """

    PAWN = 0         # 歩
    LANCE = 1        # 香
    KNIGHT = 2       # 桂
    SILVER = 3       # 銀
    GOLD = 4         # 金
    BISHOP = 5       # 角
    ROOK = 6         # 飛
    KING = 7         # 玉/王
    PRO_PAWN = 8     # と（成り歩）
    PRO_LANCE = 9    # 成香
    PRO_KNIGHT = 10  # 成桂
    PRO_SILVER = 11  # 成銀
    HORSE = 12       # 馬（成り角）
    DRAGON = 13      # 龍（成り飛）

    @property
    def is_promoted(self) -> bool:
        return self in UNPROMOTION_MAP

    @property
    def can_promote(self) -> bool:
        """成れる駒種（未成の飛角銀桂香歩）なら True。金・玉は成れない。"""
        return self in PROMOTION_MAP

    def promoted(self) -> PieceType:
        """成った駒種を返す。成れない駒はそのまま返す。"""
        return PROMOTION_MAP.get(self, self)

    def demoted(self) -> PieceType:
        """成る前の駒種を返す。成り駒でなければそのまま返す。"""
        return UNPROMOTION_MAP.get(self, self)


# 成り変換テーブル: 未成駒 → 成り駒
PROMOTION_MAP: dict[PieceType, PieceType] = {
    PieceType.PAWN: PieceType.PRO_PAWN,
    PieceType.LANCE: PieceType.PRO_LANCE,
    PieceType.KNIGHT: PieceType.PRO_KNIGHT,
    PieceType.SILVER: PieceType.PRO_SILVER,
    PieceType.BISHOP: PieceType.HORSE,
    PieceType.ROOK: PieceType.DRAGON,
}

# 逆変換: 成り駒 → 元の駒種（取られた駒を持ち駒に戻す際に使用）
UNPROMOTION_MAP: dict[PieceType, PieceType] = {v: k for k, v in PROMOTION_MAP.items()}

# 持ち駒として使える駒種（未成の非玉駒、7種）。表示・打ち手生成はこの順序に従う
HAND_PIECE_TYPES: tuple[PieceType, ...] = (
    PieceType.ROOK, PieceType.BISHOP, PieceType.GOLD, PieceType.SILVER,
    PieceType.KNIGHT, PieceType.LANCE, PieceType.PAWN,
)


@dataclass(frozen=True, order=True)
class Position:
    """A square on the board.

    盤上のマス。範囲外（INVALID_POSITION）は「マスなし」を表す番兵値で、
    盤面の中身を表すためには使わない。
    """

    row: int
    col: int

    @property
    def is_valid(self) -> bool:
        return 0 <= self.row < ROWS and 0 <= self.col < COLS

    @property
    def index(self) -> int:
        """squares 配列のインデックス（行優先）。"""
        return self.row * COLS + self.col

    @staticmethod
    def from_index(idx: int) -> Position:
        return Position(idx // COLS, idx % COLS)

    def offset(self, dr: int, dc: int) -> Position:
        return Position(self.row + dr, self.col + dc)

    def usi(self) -> str:
        """USI 形式のマス表記（例: (6, 2) → "7g"）。筋 = 9 - col、段 = 'a' + row。"""
        if not self.is_valid:
            msg = f"Cannot format invalid position {self}"
            raise ValueError(msg)
        return f"{COLS - self.col}{chr(ord('a') + self.row)}"

    @staticmethod
    def from_usi(text: str) -> Position:
        if len(text) != 2 or not text[0].isdigit():
            msg = f"Malformed square: {text!r}"
            raise ValueError(msg)
        pos = Position(ord(text[1]) - ord("a"), COLS - int(text[0]))
        if not pos.is_valid:
            msg = f"Square out of range: {text!r}"
            raise ValueError(msg)
        return pos


INVALID_POSITION = Position(-1, -1)


@dataclass(frozen=True)
class Piece:
    """A piece on the board.

    盤面上の駒。種類と所有者を持つ。空きマスは None で表す。
    """

    piece_type: PieceType
    owner: Player


class MoveRule(NamedTuple):
    """Movement pattern of a piece kind (先手視点、前 = 行インデックス減少方向)."""

    steps: tuple[tuple[int, int], ...]   # 1マス移動（桂馬の跳びも含む）
    slides: tuple[tuple[int, int], ...]  # 遠距離移動（同方向に繰り返し移動できる）


_ORTHOGONAL = ((-1, 0), (1, 0), (0, -1), (0, 1))
_DIAGONAL = ((-1, -1), (-1, 1), (1, -1), (1, 1))
_ALL_EIGHT = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
)
# 金: 斜め後ろ2方向を除く6方向
_GOLD = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, 0))

# 駒種 → 動き方の固定テーブル（駒種は閉じた集合なので仮想関数ディスパッチは使わない）
# 後手の場合は行方向を反転して使う
MOVE_RULES: dict[PieceType, MoveRule] = {
    PieceType.PAWN: MoveRule(steps=((-1, 0),), slides=()),
    PieceType.LANCE: MoveRule(steps=(), slides=((-1, 0),)),
    PieceType.KNIGHT: MoveRule(steps=((-2, -1), (-2, 1)), slides=()),
    PieceType.SILVER: MoveRule(
        steps=((-1, -1), (-1, 0), (-1, 1), (1, -1), (1, 1)), slides=()
    ),
    PieceType.GOLD: MoveRule(steps=_GOLD, slides=()),
    PieceType.BISHOP: MoveRule(steps=(), slides=_DIAGONAL),
    PieceType.ROOK: MoveRule(steps=(), slides=_ORTHOGONAL),
    PieceType.KING: MoveRule(steps=_ALL_EIGHT, slides=()),
    # 成り駒（と・成香・成桂・成銀）は金と同じ動き
    PieceType.PRO_PAWN: MoveRule(steps=_GOLD, slides=()),
    PieceType.PRO_LANCE: MoveRule(steps=_GOLD, slides=()),
    PieceType.PRO_KNIGHT: MoveRule(steps=_GOLD, slides=()),
    PieceType.PRO_SILVER: MoveRule(steps=_GOLD, slides=()),
    # 馬: 斜め遠距離 + 縦横1マス、龍: 縦横遠距離 + 斜め1マス
    PieceType.HORSE: MoveRule(steps=_ORTHOGONAL, slides=_DIAGONAL),
    PieceType.DRAGON: MoveRule(steps=_DIAGONAL, slides=_ORTHOGONAL),
}
