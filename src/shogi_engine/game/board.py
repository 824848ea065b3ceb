"""Board representation for 本将棋 (9x9).

9×9盤の盤面データ構造。探索で高速に apply/undo を繰り返せるよう可変にしてある。
各手の取り消しに必要な情報（取った駒・成ったかどうか・手番）は MoveRecord として
履歴スタックに積む。外部へ渡すときは snapshot() でイミュータブルなコピーを作る。
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from shogi_engine.game.move import Move
from shogi_engine.game.types import (
    COLS,
    HAND_PIECE_TYPES,
    INVALID_POSITION,
    NUM_SQUARES,
    ROWS,
    Piece,
    PieceType,
    Player,
    Position,
)

Hand = dict[PieceType, int]

# SFEN の駒文字（先手は大文字、後手は小文字、成り駒は "+" を前置）
_SFEN_LETTERS: dict[PieceType, str] = {
    PieceType.PAWN: "P",
    PieceType.LANCE: "L",
    PieceType.KNIGHT: "N",
    PieceType.SILVER: "S",
    PieceType.GOLD: "G",
    PieceType.BISHOP: "B",
    PieceType.ROOK: "R",
    PieceType.KING: "K",
    PieceType.PRO_PAWN: "+P",
    PieceType.PRO_LANCE: "+L",
    PieceType.PRO_KNIGHT: "+N",
    PieceType.PRO_SILVER: "+S",
    PieceType.HORSE: "+B",
    PieceType.DRAGON: "+R",
}
_SFEN_TO_TYPE = {v: k for k, v in _SFEN_LETTERS.items()}

_BACK_RANK = (
    PieceType.LANCE, PieceType.KNIGHT, PieceType.SILVER,
    PieceType.GOLD, PieceType.KING, PieceType.GOLD,
    PieceType.SILVER, PieceType.KNIGHT, PieceType.LANCE,
)


def _empty_hand() -> Hand:
    return dict.fromkeys(HAND_PIECE_TYPES, 0)


def _initial_squares() -> list[Piece | None]:
    """Return the standard starting position (平手).

    Row 0 = 後手の後段（上端）、Row 8 = 先手の後段（下端）。
    将棋盤の「9筋」表記と異なり、プログラムでは列0が左（9筋）になる点に注意。
    """
    squares: list[Piece | None] = [None] * NUM_SQUARES

    for c, pt in enumerate(_BACK_RANK):
        squares[0 * COLS + c] = Piece(pt, Player.GOTE)
        squares[8 * COLS + c] = Piece(pt, Player.SENTE)

    # 後手の飛角（飛車=左、角行=右）、先手はその鏡像
    squares[1 * COLS + 1] = Piece(PieceType.ROOK, Player.GOTE)
    squares[1 * COLS + 7] = Piece(PieceType.BISHOP, Player.GOTE)
    squares[7 * COLS + 1] = Piece(PieceType.BISHOP, Player.SENTE)
    squares[7 * COLS + 7] = Piece(PieceType.ROOK, Player.SENTE)

    for c in range(COLS):
        squares[2 * COLS + c] = Piece(PieceType.PAWN, Player.GOTE)
        squares[6 * COLS + c] = Piece(PieceType.PAWN, Player.SENTE)

    return squares


@dataclass(frozen=True)
class MoveRecord:
    """Undo information for one applied move."""

    move: Move
    mover: Player
    captured: Piece | None
    promoted: bool
    previous_player: Player


@dataclass(frozen=True)
class BoardSnapshot:
    """Immutable copy of a position (盤面・持ち駒・手番).

    hands は HAND_PIECE_TYPES の順に並んだ枚数のタプル。
    """

    squares: tuple[Piece | None, ...]
    hands: tuple[tuple[int, ...], tuple[int, ...]]
    current_player: Player

    def piece_at(self, pos: Position) -> Piece | None:
        if not pos.is_valid:
            return None
        return self.squares[pos.index]

    def hand_count(self, player: Player, piece_type: PieceType) -> int:
        if piece_type not in HAND_PIECE_TYPES:
            return 0
        return self.hands[player][HAND_PIECE_TYPES.index(piece_type)]


class Board:
    """Mutable board state for 9x9 本将棋.

    squares: 81要素のリスト（行優先）。squares[row * COLS + col] でアクセス。
    hands: 2要素のタプル。hands[0]=先手の持ち駒、hands[1]=後手の持ち駒（駒種 → 枚数）。
    history: 適用済みの手の取り消し情報（MoveRecord）のスタック。
    """

    def __init__(
        self,
        squares: Iterable[Piece | None] | None = None,
        hands: tuple[Mapping[PieceType, int], Mapping[PieceType, int]] | None = None,
        current_player: Player = Player.SENTE,
    ) -> None:
        self.squares: list[Piece | None] = (
            _initial_squares() if squares is None else list(squares)
        )
        if len(self.squares) != NUM_SQUARES:
            msg = f"Board needs {NUM_SQUARES} squares, got {len(self.squares)}"
            raise ValueError(msg)
        self.hands: tuple[Hand, Hand] = (_empty_hand(), _empty_hand())
        if hands is not None:
            for player in Player:
                for pt, count in hands[player].items():
                    if pt not in HAND_PIECE_TYPES or count < 0:
                        msg = f"Invalid hand entry: {pt!r} x {count}"
                        raise ValueError(msg)
                    self.hands[player][pt] = count
        self.current_player = current_player
        self.history: list[MoveRecord] = []
        self.initial_ply = 1

    @classmethod
    def empty(cls, current_player: Player = Player.SENTE) -> Board:
        return cls(squares=[None] * NUM_SQUARES, current_player=current_player)

    @classmethod
    def from_pieces(
        cls,
        pieces: Iterable[tuple[int, int, PieceType, Player]],
        sente_hand: Mapping[PieceType, int] | None = None,
        gote_hand: Mapping[PieceType, int] | None = None,
        current_player: Player = Player.SENTE,
    ) -> Board:
        """Build a Board from an explicit piece list.

        Pieces are specified as (row, col, PieceType, Player) tuples.
        """
        squares: list[Piece | None] = [None] * NUM_SQUARES
        for row, col, pt, owner in pieces:
            pos = Position(row, col)
            if not pos.is_valid:
                msg = f"Piece placed off the board: {pos}"
                raise ValueError(msg)
            squares[pos.index] = Piece(pt, owner)
        return cls(
            squares=squares,
            hands=(sente_hand or {}, gote_hand or {}),
            current_player=current_player,
        )

    # ------------------------------------------------------------------
    # Squares and hands
    # ------------------------------------------------------------------

    def piece_at(self, pos: Position) -> Piece | None:
        """マスの駒を返す。駒がない、またはマスが盤外なら None。"""
        if not pos.is_valid:
            return None
        return self.squares[pos.index]

    def set_piece(self, pos: Position, piece: Piece | None) -> None:
        """マスの駒を置き換える。盤外のマスなら何もしない。"""
        if pos.is_valid:
            self.squares[pos.index] = piece

    def pieces(self, player: Player | None = None) -> Iterator[tuple[Position, Piece]]:
        """盤上の駒を行優先で列挙する。player を指定するとその駒だけ。"""
        for idx, piece in enumerate(self.squares):
            if piece is None:
                continue
            if player is None or piece.owner == player:
                yield Position.from_index(idx), piece

    def hand_count(self, player: Player, piece_type: PieceType) -> int:
        return self.hands[player].get(piece_type, 0)

    def add_to_hand(self, player: Player, piece_type: PieceType) -> None:
        """Add a piece to the hand, reverting promoted pieces to base form.

        取った駒を持ち駒に追加する。成り駒は元の駒種に戻す。
        例: 龍（成り飛）を取ったら、飛車として持ち駒に加える。王将は持ち駒にならない。
        """
        base_type = piece_type.demoted()
        if base_type not in HAND_PIECE_TYPES:
            return
        self.hands[player][base_type] += 1

    def remove_from_hand(self, player: Player, piece_type: PieceType) -> bool:
        """持ち駒を1枚減らす。0枚なら何もせず False を返す。"""
        hand = self.hands[player]
        if hand.get(piece_type, 0) == 0:
            return False
        hand[piece_type] -= 1
        return True

    def find_king(self, player: Player) -> Position:
        """プレイヤーの王将のマスを返す。王将がなければ INVALID_POSITION。

        王将がいないことはエラーではなく「玉なし」として扱う。
        """
        for idx, piece in enumerate(self.squares):
            if (
                piece is not None
                and piece.piece_type == PieceType.KING
                and piece.owner == player
            ):
                return Position.from_index(idx)
        return INVALID_POSITION

    def count_pawns_in_column(self, player: Player, col: int) -> int:
        """Count unpromoted pawns of player in a column (for 二歩 check).

        指定列にあるプレイヤーの未成歩の枚数を返す。と金は数えない。
        """
        count = 0
        for r in range(ROWS):
            p = self.squares[r * COLS + col]
            if p is not None and p.owner == player and p.piece_type == PieceType.PAWN:
                count += 1
        return count

    # ------------------------------------------------------------------
    # Apply / undo
    # ------------------------------------------------------------------

    def apply(self, move: Move, player: Player | None = None) -> MoveRecord:
        """Apply a move in place and push its undo record.

        合法性の検証は行わない（RulesEngine の仕事）。ただし構造的に不可能な手
        （空きマスからの移動、埋まったマスへの打ち、持っていない駒の打ち）は
        ValueError を送出し、盤面は変更しない。

        player を省略すると現在の手番のプレイヤーが指したものとして扱う。
        適用後の手番は指したプレイヤーの相手になる。
        """
        mover = self.current_player if player is None else player

        if move.is_drop:
            assert move.drop_piece is not None
            if self.piece_at(move.to_pos) is not None or not move.to_pos.is_valid:
                msg = f"Cannot drop onto {move.to_pos}"
                raise ValueError(msg)
            if not self.remove_from_hand(mover, move.drop_piece):
                msg = f"{mover.name} has no {move.drop_piece.name} in hand"
                raise ValueError(msg)
            self.squares[move.to_pos.index] = Piece(move.drop_piece, mover)
            record = MoveRecord(move, mover, None, False, self.current_player)
        else:
            piece = self.piece_at(move.from_pos)
            if piece is None or piece.owner != mover:
                msg = f"No {mover.name} piece at {move.from_pos}"
                raise ValueError(msg)
            if not move.to_pos.is_valid:
                msg = f"Destination off the board: {move.to_pos}"
                raise ValueError(msg)
            captured = self.squares[move.to_pos.index]
            if captured is not None and captured.owner == mover:
                msg = f"Cannot capture own piece at {move.to_pos}"
                raise ValueError(msg)

            promoted = move.promote and piece.piece_type.can_promote
            if promoted:
                piece = Piece(piece.piece_type.promoted(), mover)
            if captured is not None:
                self.add_to_hand(mover, captured.piece_type)

            self.squares[move.from_pos.index] = None
            self.squares[move.to_pos.index] = piece
            record = MoveRecord(move, mover, captured, promoted, self.current_player)

        self.history.append(record)
        self.current_player = mover.opponent  # 手番交代
        return record

    def undo(self) -> MoveRecord | None:
        """Revert the most recent applied move.

        履歴が空なら何もせず None を返す。
        """
        if not self.history:
            return None
        record = self.history.pop()
        move = record.move
        # 手番を先に戻す（元の手を指したプレイヤーの番に戻る）
        self.current_player = record.previous_player

        if move.is_drop:
            assert move.drop_piece is not None
            self.squares[move.to_pos.index] = None
            self.add_to_hand(record.mover, move.drop_piece)
            return record

        piece = self.squares[move.to_pos.index]
        assert piece is not None
        if record.promoted:
            piece = Piece(piece.piece_type.demoted(), piece.owner)
        self.squares[move.from_pos.index] = piece
        self.squares[move.to_pos.index] = record.captured
        if record.captured is not None:
            self.remove_from_hand(record.mover, record.captured.piece_type.demoted())
        return record

    # ------------------------------------------------------------------
    # Copies and identifiers
    # ------------------------------------------------------------------

    def copy(self) -> Board:
        """独立したコピーを返す（探索・シミュレーション用）。"""
        other = Board.__new__(Board)
        other.squares = list(self.squares)
        other.hands = (dict(self.hands[0]), dict(self.hands[1]))
        other.current_player = self.current_player
        other.history = list(self.history)
        other.initial_ply = self.initial_ply
        return other

    def snapshot(self) -> BoardSnapshot:
        return BoardSnapshot(
            squares=tuple(self.squares),
            hands=(
                tuple(self.hands[0][pt] for pt in HAND_PIECE_TYPES),
                tuple(self.hands[1][pt] for pt in HAND_PIECE_TYPES),
            ),
            current_player=self.current_player,
        )

    @property
    def ply(self) -> int:
        """次に指される手の手数（1始まり）。"""
        return self.initial_ply + len(self.history)

    def to_sfen(self) -> str:
        """Return the SFEN string identifying this position.

        例: 平手初期局面 → "lnsgkgsnl/1r5b1/ppppppppp/9/9/9/PPPPPPPPP/1B5R1/LNSGKGSNL b - 1"
        """
        rows: list[str] = []
        for r in range(ROWS):
            row_str = ""
            empty = 0
            for c in range(COLS):
                piece = self.squares[r * COLS + c]
                if piece is None:
                    empty += 1
                    continue
                if empty:
                    row_str += str(empty)
                    empty = 0
                letter = _SFEN_LETTERS[piece.piece_type]
                row_str += letter if piece.owner == Player.SENTE else letter.lower()
            if empty:
                row_str += str(empty)
            rows.append(row_str)

        hand_str = ""
        for player in Player:
            for pt in HAND_PIECE_TYPES:
                count = self.hands[player][pt]
                if count == 0:
                    continue
                letter = _SFEN_LETTERS[pt]
                if player == Player.GOTE:
                    letter = letter.lower()
                hand_str += (str(count) if count > 1 else "") + letter

        side = "b" if self.current_player == Player.SENTE else "w"
        return f"{'/'.join(rows)} {side} {hand_str or '-'} {self.ply}"

    @classmethod
    def from_sfen(cls, sfen: str) -> Board:
        """Parse an SFEN string. Malformed text raises ValueError."""
        fields = sfen.split()
        if len(fields) not in (3, 4):
            msg = f"SFEN needs 3 or 4 fields: {sfen!r}"
            raise ValueError(msg)
        placement, side, hand_str = fields[0], fields[1], fields[2]

        rows = placement.split("/")
        if len(rows) != ROWS:
            msg = f"SFEN needs {ROWS} ranks: {placement!r}"
            raise ValueError(msg)
        squares: list[Piece | None] = []
        for row_str in rows:
            row: list[Piece | None] = []
            i = 0
            while i < len(row_str):
                ch = row_str[i]
                if ch.isdigit():
                    row.extend([None] * int(ch))
                    i += 1
                    continue
                token = ch
                if ch == "+":
                    token = row_str[i : i + 2]
                    i += 1
                pt = _SFEN_TO_TYPE.get(token.upper())
                if pt is None:
                    msg = f"Unknown SFEN piece {token!r}"
                    raise ValueError(msg)
                owner = Player.SENTE if token[-1].isupper() else Player.GOTE
                row.append(Piece(pt, owner))
                i += 1
            if len(row) != COLS:
                msg = f"SFEN rank has {len(row)} files: {row_str!r}"
                raise ValueError(msg)
            squares.extend(row)

        if side not in ("b", "w"):
            msg = f"Unknown side to move {side!r}"
            raise ValueError(msg)

        hands: tuple[Hand, Hand] = (_empty_hand(), _empty_hand())
        if hand_str != "-":
            count = 0
            for ch in hand_str:
                if ch.isdigit():
                    count = count * 10 + int(ch)
                    continue
                pt = _SFEN_TO_TYPE.get(ch.upper())
                if pt is None or pt not in HAND_PIECE_TYPES:
                    msg = f"Unknown SFEN hand piece {ch!r}"
                    raise ValueError(msg)
                owner = Player.SENTE if ch.isupper() else Player.GOTE
                hands[owner][pt] += count or 1
                count = 0

        board = cls(
            squares=squares,
            hands=hands,
            current_player=Player.SENTE if side == "b" else Player.GOTE,
        )
        if len(fields) == 4:
            if not fields[3].isdigit():
                msg = f"Malformed SFEN move number {fields[3]!r}"
                raise ValueError(msg)
            board.initial_ply = int(fields[3])
        return board
