"""Rules of 本将棋: move validation, check detection, legal move enumeration.

盤面レベルの関数（validate_*, is_in_check, generate_all_moves など）は任意の Board に対して
動作し、シミュレーションのために apply/undo した盤面は必ず元に戻す。
RulesEngine は対局の正本の盤面と勝敗（GameOutcome）を持ち、問い合わせは常に
盤面のコピーに対して行うので、正本の盤面を変更するのは make_move だけである。

Special rules（特殊ルール）:
  二歩:       同じ筋に自分の未成の歩を2枚置けない（TWO_PAWN_RULE）
  打ち歩詰め: 歩を打って相手玉を詰ませてはならない（DROP_MATE_RULE）
  行き所のない駒: 歩・香は最奥1段、桂は最奥2段に不成で移動・打つことはできない
  王手放置:   自玉に王手がかかる手は指せない（IN_CHECK）
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum, unique

from shogi_engine.game.board import Board, BoardSnapshot
from shogi_engine.game.events import EventBus, MoveEvent
from shogi_engine.game.move import Move
from shogi_engine.game.movegen import (
    can_promote,
    candidate_destinations,
    is_dead_square,
    is_square_attacked,
    must_promote,
)
from shogi_engine.game.types import (
    HAND_PIECE_TYPES,
    NUM_SQUARES,
    PieceType,
    Player,
    Position,
)

logger = logging.getLogger(__name__)


@unique
class GameError(Enum):
    """Reasons a move is rejected."""

    INVALID_POSITION = "invalid_position"  # マスの指定が不正
    PIECE_NOT_FOUND = "piece_not_found"    # 移動元に駒がない
    WRONG_PLAYER = "wrong_player"          # 手番でない側の駒
    INVALID_MOVE = "invalid_move"          # 駒の動きに反する、または成り指定が不正
    INVALID_DROP = "invalid_drop"          # 打てないマス・持っていない駒
    TWO_PAWN_RULE = "two_pawn_rule"        # 二歩
    DROP_MATE_RULE = "drop_mate_rule"      # 打ち歩詰め
    IN_CHECK = "in_check"                  # 王手放置
    GAME_OVER = "game_over"                # 終局後の着手


class MoveError(Exception):
    """Raised by RulesEngine.make_move when a move is rejected."""

    def __init__(self, error: GameError, move: Move) -> None:
        super().__init__(f"{error.value}: {move}")
        self.error = error
        self.move = move


@unique
class GameStatus(Enum):
    IN_PROGRESS = "in_progress"
    WIN = "win"
    DRAW = "draw"


@dataclass(frozen=True)
class GameOutcome:
    """Result of the game. winner is set only when status is WIN."""

    status: GameStatus = GameStatus.IN_PROGRESS
    winner: Player | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status != GameStatus.IN_PROGRESS

    @staticmethod
    def win(player: Player) -> GameOutcome:
        return GameOutcome(GameStatus.WIN, player)

    @staticmethod
    def draw() -> GameOutcome:
        return GameOutcome(GameStatus.DRAW)


IN_PROGRESS = GameOutcome()


@dataclass(frozen=True)
class RulesConfig:
    """Rule options.

    Attributes:
        stalemate_is_loss: 王手がかかっていないのに合法手がない場合を、
                           手番側の負けとして扱うなら True（既定は引き分け）。
    """

    stalemate_is_loss: bool = False


DEFAULT_RULES = RulesConfig()


# ---------------------------------------------------------------------------
# Board-level rules
# ---------------------------------------------------------------------------


def is_in_check(board: Board, player: Player) -> bool:
    """Check if player's king is under attack.

    王将がいない場合は「王手ではない」として扱う。
    """
    king = board.find_king(player)
    if not king.is_valid:
        return False
    return is_square_attacked(board, king, player.opponent)


def _promotion_error(
    piece_type: PieceType,
    player: Player,
    from_row: int,
    to_row: int,
    promote: bool,
) -> GameError | None:
    if promote:
        if not can_promote(piece_type, player, from_row, to_row):
            return GameError.INVALID_MOVE
    elif must_promote(piece_type, player, to_row):
        return GameError.INVALID_MOVE
    return None


def validate_normal_move(
    board: Board,
    move: Move,
    player: Player | None = None,
) -> GameError | None:
    """Validate a board move by movement rule and promotion policy.

    王手放置の判定は含まない（would_leave_mover_in_check を使う）。
    問題がなければ None を返す。
    """
    mover = board.current_player if player is None else player
    if not move.from_pos.is_valid or not move.to_pos.is_valid:
        return GameError.INVALID_POSITION

    piece = board.squares[move.from_pos.index]
    if piece is None:
        return GameError.PIECE_NOT_FOUND
    if piece.owner != mover:
        return GameError.WRONG_PLAYER

    destinations = candidate_destinations(piece.piece_type, move.from_pos, board, mover)
    if move.to_pos not in destinations:
        return GameError.INVALID_MOVE

    return _promotion_error(
        piece.piece_type, mover, move.from_pos.row, move.to_pos.row, move.promote
    )


def validate_drop_move(
    board: Board,
    move: Move,
    player: Player | None = None,
) -> GameError | None:
    """Validate a drop, including 二歩 and 打ち歩詰め."""
    mover = board.current_player if player is None else player
    if not move.to_pos.is_valid:
        return GameError.INVALID_POSITION

    pt = move.drop_piece
    if pt not in HAND_PIECE_TYPES or move.promote:
        return GameError.INVALID_DROP
    assert pt is not None
    if board.squares[move.to_pos.index] is not None:
        return GameError.INVALID_DROP
    if board.hand_count(mover, pt) == 0:
        return GameError.INVALID_DROP
    # 行き所のない駒: 打った直後に前に進めない場所には打てない
    if is_dead_square(pt, mover, move.to_pos.row):
        return GameError.INVALID_DROP

    if pt == PieceType.PAWN:
        if board.count_pawns_in_column(mover, move.to_pos.col) > 0:
            return GameError.TWO_PAWN_RULE
        if _is_pawn_drop_mate(board, move, mover):
            return GameError.DROP_MATE_RULE

    return None


def _is_pawn_drop_mate(board: Board, move: Move, mover: Player) -> bool:
    """打ち歩詰め: 歩を打った結果、相手が王手から逃れる手を持たなければ True."""
    opponent = mover.opponent
    king = board.find_king(opponent)
    # 打った歩が直接王手しない限り詰みにはならない
    if king != move.to_pos.offset(mover.forward, 0):
        return False

    board.apply(move, mover)
    try:
        if not is_in_check(board, opponent):
            return False
        return not has_legal_move(board, opponent)
    finally:
        board.undo()


def would_leave_mover_in_check(
    board: Board,
    move: Move,
    player: Player | None = None,
) -> bool:
    """Simulate the move and report whether the mover's own king is attacked.

    move は validate_* を通過済みであること。盤面は呼び出し前の状態に戻る。
    """
    mover = board.current_player if player is None else player
    board.apply(move, mover)
    try:
        return is_in_check(board, mover)
    finally:
        board.undo()


def validate_move(
    board: Board,
    move: Move,
    player: Player | None = None,
) -> GameError | None:
    """Full legality check: movement/drop rules, then self-check avoidance."""
    mover = board.current_player if player is None else player
    if move.is_drop:
        error = validate_drop_move(board, move, mover)
    else:
        error = validate_normal_move(board, move, mover)
    if error is not None:
        return error
    if would_leave_mover_in_check(board, move, mover):
        return GameError.IN_CHECK
    return None


def _iter_legal_moves(board: Board, player: Player) -> Iterator[Move]:
    """Yield legal moves: board moves in row-major order, then drops.

    yield の時点で盤面は必ず元の状態に戻っているので、途中で打ち切ってもよい。
    """
    squares = tuple(board.squares)
    for idx, piece in enumerate(squares):
        if piece is None or piece.owner != player:
            continue
        origin = Position.from_index(idx)
        pt = piece.piece_type
        for to in candidate_destinations(pt, origin, board, player):
            for promote in (False, True):
                if _promotion_error(pt, player, origin.row, to.row, promote) is not None:
                    continue
                move = Move.normal(origin, to, promote)
                if not would_leave_mover_in_check(board, move, player):
                    yield move

    # 王手がかかっていなければ、駒を打っても自玉に王手がかかることはない
    in_check = is_in_check(board, player)
    for pt in HAND_PIECE_TYPES:
        if board.hand_count(player, pt) == 0:
            continue
        for idx in range(NUM_SQUARES):
            if squares[idx] is not None:
                continue
            move = Move.drop(pt, Position.from_index(idx))
            if validate_drop_move(board, move, player) is not None:
                continue
            if in_check and would_leave_mover_in_check(board, move, player):
                continue
            yield move


def generate_all_moves(board: Board, player: Player | None = None) -> list[Move]:
    """Generate all legal moves (excluding moves that leave king in check)."""
    mover = board.current_player if player is None else player
    return list(_iter_legal_moves(board, mover))


def has_legal_move(board: Board, player: Player) -> bool:
    """合法手が1つでもあれば True（最初の1手が見つかった時点で打ち切る）。"""
    return next(_iter_legal_moves(board, player), None) is not None


def is_checkmate(board: Board, player: Player) -> bool:
    return is_in_check(board, player) and not has_legal_move(board, player)


def is_stalemate(board: Board) -> bool:
    """手番側が王手されておらず、合法手もない。"""
    player = board.current_player
    return not is_in_check(board, player) and not has_legal_move(board, player)


def evaluate_outcome(board: Board, config: RulesConfig = DEFAULT_RULES) -> GameOutcome:
    """Decide the outcome for the side to move (詰み・合法手なし・対局中)."""
    player = board.current_player
    if has_legal_move(board, player):
        return IN_PROGRESS
    if is_in_check(board, player) or config.stalemate_is_loss:
        return GameOutcome.win(player.opponent)
    return GameOutcome.draw()


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class RulesEngine:
    """Authoritative game: one board, one outcome, move notifications.

    盤面を変更する入口は make_move だけ。それ以外の問い合わせは盤面のコピーに対して行う。
    """

    def __init__(
        self,
        board: Board | None = None,
        config: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self.config = config
        self.events = EventBus()
        self._board = Board() if board is None else board.copy()
        # 局面を指定して開始した場合は、すでに終局している可能性がある
        self._outcome = IN_PROGRESS if board is None else evaluate_outcome(self._board, config)

    def reset(self) -> None:
        """平手の初期局面に戻す。購読者はそのまま残る。"""
        self._board = Board()
        self._outcome = IN_PROGRESS
        logger.info("Game reset")

    @property
    def outcome(self) -> GameOutcome:
        return self._outcome

    @property
    def current_player(self) -> Player:
        return self._board.current_player

    @property
    def board(self) -> BoardSnapshot:
        return self._board.snapshot()

    @property
    def history(self) -> list[Move]:
        return [record.move for record in self._board.history]

    def board_copy(self) -> Board:
        """探索用の独立した盤面コピーを返す。"""
        return self._board.copy()

    def subscribe(self, listener: Callable[[MoveEvent], None]) -> Callable[[], None]:
        return self.events.subscribe(listener)

    def check_move(self, move: Move) -> GameError | None:
        """make_move が受け付けるかどうかを、盤面を変更せずに調べる。"""
        if self._outcome.is_terminal:
            return GameError.GAME_OVER
        return validate_move(self._board.copy(), move)

    def make_move(self, move: Move) -> None:
        """Validate and execute a move, then notify listeners.

        不正な手は MoveError を送出し、盤面も勝敗も変更しない。
        """
        error = self.check_move(move)
        if error is not None:
            logger.debug("Rejected %s: %s", move, error.value)
            raise MoveError(error, move)

        player = self._board.current_player
        self._board.apply(move)
        self._outcome = evaluate_outcome(self._board, self.config)
        if self._outcome.is_terminal:
            logger.info(
                "Game over after %s: %s (winner=%s)",
                move,
                self._outcome.status.value,
                self._outcome.winner.name if self._outcome.winner is not None else None,
            )

        self.events.publish(MoveEvent(move, player, self._board.snapshot(), self._outcome))

    def legal_moves(self) -> list[Move]:
        if self._outcome.is_terminal:
            return []
        return generate_all_moves(self._board.copy())

    def legal_destinations(self, origin: Position) -> list[Position]:
        """指定したマスの駒が合法に移動できるマスの一覧（成り・不成は区別しない）。"""
        piece = self._board.piece_at(origin)
        if piece is None or piece.owner != self.current_player or self._outcome.is_terminal:
            return []
        destinations: list[Position] = []
        for move in self.legal_moves():
            if move.from_pos == origin and move.to_pos not in destinations:
                destinations.append(move.to_pos)
        return destinations

    def droppable_kinds(self, to_pos: Position) -> list[PieceType]:
        """指定したマスに合法に打てる持ち駒の種類の一覧。"""
        if not to_pos.is_valid or self._outcome.is_terminal:
            return []
        board = self._board.copy()
        return [
            pt
            for pt in HAND_PIECE_TYPES
            if board.hand_count(board.current_player, pt) > 0
            and validate_move(board, Move.drop(pt, to_pos)) is None
        ]

    def is_in_check(self, player: Player) -> bool:
        return is_in_check(self._board.copy(), player)

    def is_checkmate(self, player: Player) -> bool:
        return is_checkmate(self._board.copy(), player)

    def is_stalemate(self) -> bool:
        return is_stalemate(self._board.copy())
