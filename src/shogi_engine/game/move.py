"""Move value type for 本将棋.

指し手は「盤上の手」（移動元・移動先・成り）または「打つ手」（移動先・駒種）のどちらか。
手の識別子として USI 形式の文字列（例: "7g7f", "8h2b+", "P*5e"）を使う。
"""

from __future__ import annotations

from dataclasses import dataclass

from shogi_engine.game.types import (
    HAND_PIECE_TYPES,
    INVALID_POSITION,
    PieceType,
    Position,
)

# USI の打ち駒表記
USI_DROP_LETTERS: dict[PieceType, str] = {
    PieceType.ROOK: "R",
    PieceType.BISHOP: "B",
    PieceType.GOLD: "G",
    PieceType.SILVER: "S",
    PieceType.KNIGHT: "N",
    PieceType.LANCE: "L",
    PieceType.PAWN: "P",
}
_DROP_LETTER_TO_TYPE = {v: k for k, v in USI_DROP_LETTERS.items()}


@dataclass(frozen=True)
class Move:
    """A normal move or a drop.

    drop_piece が None なら盤上の手、そうでなければ持ち駒を打つ手。
    不正な手（範囲外のマスなど）もそのまま構築できる。検証は RulesEngine の仕事。
    """

    to_pos: Position
    from_pos: Position = INVALID_POSITION
    promote: bool = False
    drop_piece: PieceType | None = None

    @staticmethod
    def normal(from_pos: Position, to_pos: Position, promote: bool = False) -> Move:
        return Move(to_pos=to_pos, from_pos=from_pos, promote=promote)

    @staticmethod
    def drop(piece_type: PieceType, to_pos: Position) -> Move:
        return Move(to_pos=to_pos, drop_piece=piece_type)

    @property
    def is_drop(self) -> bool:
        return self.drop_piece is not None

    def is_well_formed(self) -> bool:
        """Check the structural invariants of the move.

        盤上の手: 移動元・移動先がともに盤内で、かつ異なるマス。
        打つ手: 移動先が盤内で、駒種が持ち駒になりうる7種のいずれか（成りフラグなし）。
        """
        if not self.to_pos.is_valid:
            return False
        if self.is_drop:
            return self.drop_piece in HAND_PIECE_TYPES and not self.promote
        return self.from_pos.is_valid and self.from_pos != self.to_pos

    def usi(self) -> str:
        if self.is_drop:
            assert self.drop_piece is not None
            letter = USI_DROP_LETTERS.get(self.drop_piece)
            if letter is None:
                msg = f"Piece type cannot be dropped: {self.drop_piece.name}"
                raise ValueError(msg)
            return f"{letter}*{self.to_pos.usi()}"
        suffix = "+" if self.promote else ""
        return f"{self.from_pos.usi()}{self.to_pos.usi()}{suffix}"

    @staticmethod
    def from_usi(text: str) -> Move:
        """Parse a USI move string.

        例: "7g7f" → 盤上の手、"2c2b+" → 成る手、"P*5e" → 歩を打つ手。
        """
        text = text.strip()
        if len(text) == 4 and text[1] == "*":
            piece_type = _DROP_LETTER_TO_TYPE.get(text[0])
            if piece_type is None:
                msg = f"Unknown drop piece in {text!r}"
                raise ValueError(msg)
            return Move.drop(piece_type, Position.from_usi(text[2:]))
        if len(text) in (4, 5):
            promote = len(text) == 5
            if promote and text[4] != "+":
                msg = f"Malformed promotion suffix in {text!r}"
                raise ValueError(msg)
            return Move.normal(
                Position.from_usi(text[0:2]),
                Position.from_usi(text[2:4]),
                promote=promote,
            )
        msg = f"Malformed USI move: {text!r}"
        raise ValueError(msg)

    def __str__(self) -> str:
        if self.to_pos.is_valid and (
            self.drop_piece in USI_DROP_LETTERS
            or (not self.is_drop and self.from_pos.is_valid)
        ):
            return self.usi()
        return repr(self)
