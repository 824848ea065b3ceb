"""Tests for move validation, special rules and game outcomes."""

from __future__ import annotations

from shogi_engine.game.board import Board
from shogi_engine.game.move import Move
from shogi_engine.game.rules import (
    GameError,
    GameStatus,
    RulesConfig,
    evaluate_outcome,
    generate_all_moves,
    is_checkmate,
    is_in_check,
    is_stalemate,
    validate_drop_move,
    validate_move,
    validate_normal_move,
)
from shogi_engine.game.types import PieceType, Player, Position

S = Player.SENTE
G = Player.GOTE
P = Position


def _kings(*extra: tuple[int, int, PieceType, Player]) -> list[tuple[int, int, PieceType, Player]]:
    return [(8, 4, PieceType.KING, S), (0, 4, PieceType.KING, G), *extra]


def _make_board(
    pieces: list[tuple[int, int, PieceType, Player]],
    sente_hand: dict[PieceType, int] | None = None,
    gote_hand: dict[PieceType, int] | None = None,
    current_player: Player = S,
) -> Board:
    return Board.from_pieces(pieces, sente_hand, gote_hand, current_player)


def _drop_mate_board() -> Board:
    """後手玉 1a、先手金 3a・2c。先手は歩を持つ。1b への歩打ちは打ち歩詰め。"""
    return _make_board(
        [
            (8, 4, PieceType.KING, S),
            (0, 8, PieceType.KING, G),
            (0, 6, PieceType.GOLD, S),
            (2, 7, PieceType.GOLD, S),
        ],
        sente_hand={PieceType.PAWN: 1},
    )


class TestInitialMoves:
    def test_30_legal_moves(self) -> None:
        assert len(generate_all_moves(Board())) == 30

    def test_gote_also_has_30(self) -> None:
        board = Board()
        board.apply(Move.normal(P(6, 2), P(5, 2)))
        # 先手の角道が開いても後手の初手の数は変わらない
        assert len(generate_all_moves(board)) == 30

    def test_generation_leaves_board_untouched(self) -> None:
        board = Board()
        before = board.snapshot()
        generate_all_moves(board)
        generate_all_moves(board, G)
        assert board.snapshot() == before
        assert board.history == []

    def test_every_generated_move_validates(self) -> None:
        board = Board()
        for move in generate_all_moves(board):
            assert validate_move(board, move) is None


class TestNormalMoveErrors:
    def test_invalid_position(self) -> None:
        board = Board()
        assert validate_move(board, Move.normal(P(9, 0), P(8, 0))) == GameError.INVALID_POSITION
        assert validate_move(board, Move.normal(P(6, 0), P(-1, 0))) == GameError.INVALID_POSITION

    def test_piece_not_found(self) -> None:
        assert validate_move(Board(), Move.normal(P(4, 4), P(3, 4))) == GameError.PIECE_NOT_FOUND

    def test_wrong_player(self) -> None:
        assert validate_move(Board(), Move.normal(P(2, 0), P(3, 0))) == GameError.WRONG_PLAYER

    def test_invalid_move(self) -> None:
        board = Board()
        assert validate_move(board, Move.normal(P(6, 0), P(4, 0))) == GameError.INVALID_MOVE
        # 自分の駒がいるマス
        assert validate_move(board, Move.normal(P(8, 3), P(8, 4))) == GameError.INVALID_MOVE

    def test_explicit_player_argument(self) -> None:
        board = Board()
        assert validate_normal_move(board, Move.normal(P(2, 0), P(3, 0)), G) is None

    def test_pinned_piece_cannot_move(self) -> None:
        board = _make_board(
            [
                (8, 4, PieceType.KING, S),
                (7, 4, PieceType.GOLD, S),
                (2, 4, PieceType.ROOK, G),
                (0, 0, PieceType.KING, G),
            ]
        )
        assert validate_move(board, Move.normal(P(7, 4), P(7, 3))) == GameError.IN_CHECK
        assert validate_move(board, Move.normal(P(7, 4), P(6, 4))) is None

    def test_must_escape_check(self) -> None:
        board = _make_board(
            [
                (8, 4, PieceType.KING, S),
                (8, 0, PieceType.LANCE, S),
                (2, 4, PieceType.ROOK, G),
                (0, 0, PieceType.KING, G),
            ]
        )
        assert is_in_check(board, S)
        assert validate_move(board, Move.normal(P(8, 0), P(7, 0))) == GameError.IN_CHECK
        assert validate_move(board, Move.normal(P(8, 4), P(8, 3))) is None

    def test_king_cannot_step_into_attack(self) -> None:
        board = _make_board(_kings((2, 3, PieceType.ROOK, G)))
        assert validate_move(board, Move.normal(P(8, 4), P(8, 3))) == GameError.IN_CHECK


class TestPromotion:
    def test_pawn_must_promote_on_last_rank(self) -> None:
        board = _make_board(_kings((1, 0, PieceType.PAWN, S)))
        assert validate_move(board, Move.normal(P(1, 0), P(0, 0))) == GameError.INVALID_MOVE
        assert validate_move(board, Move.normal(P(1, 0), P(0, 0), promote=True)) is None

    def test_lance_must_promote_on_last_rank(self) -> None:
        board = _make_board(_kings((3, 0, PieceType.LANCE, S)))
        assert validate_move(board, Move.normal(P(3, 0), P(0, 0))) == GameError.INVALID_MOVE
        assert validate_move(board, Move.normal(P(3, 0), P(0, 0), promote=True)) is None
        assert validate_move(board, Move.normal(P(3, 0), P(1, 0))) is None

    def test_knight_must_promote_on_last_two_ranks(self) -> None:
        board = _make_board(_kings((3, 3, PieceType.KNIGHT, S), (2, 6, PieceType.KNIGHT, S)))
        assert validate_move(board, Move.normal(P(3, 3), P(1, 2))) == GameError.INVALID_MOVE
        assert validate_move(board, Move.normal(P(3, 3), P(1, 2), promote=True)) is None
        assert validate_move(board, Move.normal(P(2, 6), P(0, 7))) == GameError.INVALID_MOVE

    def test_gote_must_promote_mirrored(self) -> None:
        board = _make_board(_kings((7, 8, PieceType.PAWN, G)), current_player=G)
        assert validate_move(board, Move.normal(P(7, 8), P(8, 8))) == GameError.INVALID_MOVE
        assert validate_move(board, Move.normal(P(7, 8), P(8, 8), promote=True)) is None

    def test_optional_promotion_offers_both_moves(self) -> None:
        board = _make_board(_kings((3, 0, PieceType.PAWN, S)))
        moves = [m for m in generate_all_moves(board) if m.from_pos == P(3, 0)]
        assert set(moves) == {
            Move.normal(P(3, 0), P(2, 0)),
            Move.normal(P(3, 0), P(2, 0), promote=True),
        }

    def test_forced_promotion_offers_one_move(self) -> None:
        board = _make_board(_kings((1, 0, PieceType.PAWN, S)))
        moves = [m for m in generate_all_moves(board) if m.from_pos == P(1, 0)]
        assert moves == [Move.normal(P(1, 0), P(0, 0), promote=True)]

    def test_promotion_outside_zone_rejected(self) -> None:
        board = _make_board(_kings((6, 0, PieceType.PAWN, S)))
        assert validate_move(board, Move.normal(P(6, 0), P(5, 0), promote=True)) == (
            GameError.INVALID_MOVE
        )

    def test_promotion_leaving_zone_allowed(self) -> None:
        board = _make_board(_kings((2, 2, PieceType.SILVER, S)))
        assert validate_move(board, Move.normal(P(2, 2), P(3, 1), promote=True)) is None

    def test_unpromotable_pieces(self) -> None:
        board = _make_board(_kings((3, 2, PieceType.GOLD, S), (3, 6, PieceType.DRAGON, S)))
        assert validate_move(board, Move.normal(P(3, 2), P(2, 2), promote=True)) == (
            GameError.INVALID_MOVE
        )
        assert validate_move(board, Move.normal(P(3, 6), P(2, 6), promote=True)) == (
            GameError.INVALID_MOVE
        )


class TestDrops:
    def test_drop_onto_empty_square(self) -> None:
        board = _make_board(_kings(), sente_hand={PieceType.SILVER: 1})
        assert validate_move(board, Move.drop(PieceType.SILVER, P(4, 4))) is None

    def test_occupied_square(self) -> None:
        board = _make_board(_kings((4, 4, PieceType.PAWN, G)), sente_hand={PieceType.SILVER: 1})
        assert validate_move(board, Move.drop(PieceType.SILVER, P(4, 4))) == GameError.INVALID_DROP

    def test_not_in_hand(self) -> None:
        board = _make_board(_kings())
        assert validate_move(board, Move.drop(PieceType.GOLD, P(4, 4))) == GameError.INVALID_DROP

    def test_king_or_promoted_piece(self) -> None:
        board = _make_board(_kings())
        assert validate_move(board, Move.drop(PieceType.KING, P(4, 4))) == GameError.INVALID_DROP
        assert validate_move(board, Move.drop(PieceType.HORSE, P(4, 4))) == GameError.INVALID_DROP

    def test_off_board(self) -> None:
        board = _make_board(_kings(), sente_hand={PieceType.PAWN: 1})
        assert validate_move(board, Move.drop(PieceType.PAWN, P(9, 4))) == (
            GameError.INVALID_POSITION
        )

    def test_dead_squares(self) -> None:
        board = _make_board(
            _kings(),
            sente_hand={PieceType.PAWN: 1, PieceType.LANCE: 1, PieceType.KNIGHT: 1},
        )
        assert validate_move(board, Move.drop(PieceType.PAWN, P(0, 0))) == GameError.INVALID_DROP
        assert validate_move(board, Move.drop(PieceType.LANCE, P(0, 0))) == GameError.INVALID_DROP
        assert validate_move(board, Move.drop(PieceType.KNIGHT, P(1, 0))) == GameError.INVALID_DROP
        assert validate_move(board, Move.drop(PieceType.KNIGHT, P(2, 0))) is None

    def test_gote_dead_squares_mirrored(self) -> None:
        board = _make_board(_kings(), gote_hand={PieceType.KNIGHT: 1}, current_player=G)
        assert validate_move(board, Move.drop(PieceType.KNIGHT, P(7, 0))) == GameError.INVALID_DROP
        assert validate_move(board, Move.drop(PieceType.KNIGHT, P(6, 0))) is None

    def test_two_pawn_rule(self) -> None:
        board = _make_board(_kings((6, 0, PieceType.PAWN, S)), sente_hand={PieceType.PAWN: 1})
        assert validate_move(board, Move.drop(PieceType.PAWN, P(4, 0))) == GameError.TWO_PAWN_RULE
        assert validate_move(board, Move.drop(PieceType.PAWN, P(4, 1))) is None

    def test_promoted_pawn_does_not_count(self) -> None:
        board = _make_board(_kings((3, 0, PieceType.PRO_PAWN, S)), sente_hand={PieceType.PAWN: 1})
        assert validate_move(board, Move.drop(PieceType.PAWN, P(4, 0))) is None

    def test_opponent_pawn_does_not_count(self) -> None:
        board = _make_board(_kings((2, 0, PieceType.PAWN, G)), sente_hand={PieceType.PAWN: 1})
        assert validate_move(board, Move.drop(PieceType.PAWN, P(4, 0))) is None

    def test_drop_mate_rule(self) -> None:
        board = _drop_mate_board()
        before = board.snapshot()
        assert validate_drop_move(board, Move.drop(PieceType.PAWN, P(1, 8))) == (
            GameError.DROP_MATE_RULE
        )
        assert board.snapshot() == before
        assert Move.drop(PieceType.PAWN, P(1, 8)) not in generate_all_moves(board)

    def test_pawn_drop_check_that_is_not_mate(self) -> None:
        board = _drop_mate_board()
        board.set_piece(P(2, 7), None)  # 玉が歩を取れる
        assert validate_move(board, Move.drop(PieceType.PAWN, P(1, 8))) is None

    def test_pawn_advance_mate_is_legal(self) -> None:
        board = _make_board(
            [
                (8, 4, PieceType.KING, S),
                (0, 8, PieceType.KING, G),
                (0, 6, PieceType.GOLD, S),
                (2, 7, PieceType.GOLD, S),
                (2, 8, PieceType.PAWN, S),
            ]
        )
        move = Move.normal(P(2, 8), P(1, 8))
        assert validate_move(board, move) is None
        board.apply(move)
        assert is_checkmate(board, G)

    def test_other_pieces_may_drop_mate(self) -> None:
        board = _make_board(
            [
                (8, 4, PieceType.KING, S),
                (0, 8, PieceType.KING, G),
                (2, 8, PieceType.PAWN, S),
            ],
            sente_hand={PieceType.GOLD: 1},
        )
        move = Move.drop(PieceType.GOLD, P(1, 8))
        assert validate_move(board, move) is None
        board.apply(move)
        assert is_checkmate(board, G)


class TestOutcome:
    def test_initial_position_in_progress(self) -> None:
        outcome = evaluate_outcome(Board())
        assert outcome.status == GameStatus.IN_PROGRESS
        assert not outcome.is_terminal
        assert outcome.winner is None

    def test_checkmate_is_win_for_attacker(self) -> None:
        board = _make_board(
            [
                (8, 4, PieceType.KING, S),
                (0, 8, PieceType.KING, G),
                (0, 6, PieceType.GOLD, S),
                (2, 7, PieceType.GOLD, S),
                (1, 8, PieceType.PAWN, S),
            ],
            current_player=G,
        )
        assert is_checkmate(board, G)
        assert not is_stalemate(board)
        outcome = evaluate_outcome(board)
        assert outcome.status == GameStatus.WIN
        assert outcome.winner == S

    def test_stalemate_is_draw_by_default(self) -> None:
        board = _stalemate_board()
        assert not is_in_check(board, G)
        assert is_stalemate(board)
        assert not is_checkmate(board, G)
        assert evaluate_outcome(board).status == GameStatus.DRAW

    def test_stalemate_as_loss(self) -> None:
        outcome = evaluate_outcome(_stalemate_board(), RulesConfig(stalemate_is_loss=True))
        assert outcome.status == GameStatus.WIN
        assert outcome.winner == S

    def test_missing_king_is_never_in_check(self) -> None:
        board = _make_board([(4, 4, PieceType.ROOK, G)])
        assert not is_in_check(board, S)


def _stalemate_board() -> Board:
    """後手玉 9a は王手されていないが、逃げ場がすべて先手の利きの中にある。"""
    return _make_board(
        [
            (8, 4, PieceType.KING, S),
            (0, 0, PieceType.KING, G),
            (2, 1, PieceType.GOLD, S),
            (1, 2, PieceType.SILVER, S),
        ],
        current_player=G,
    )
