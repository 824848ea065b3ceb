"""Tests for alpha-beta search."""

from __future__ import annotations

from shogi_engine.engine.config import SearchConfig
from shogi_engine.engine.search import (
    MATE_SCORE,
    PIECE_VALUES,
    evaluate,
    minimax,
    play_best_move,
    search,
    select_move,
)
from shogi_engine.game.board import Board
from shogi_engine.game.move import Move
from shogi_engine.game.rules import GameOutcome, RulesEngine, generate_all_moves
from shogi_engine.game.types import PieceType, Player, Position

S = Player.SENTE
G = Player.GOTE
P = Position

DEPTH_1 = SearchConfig(depth=1)
DEPTH_2 = SearchConfig(depth=2)


def _head_gold_board() -> Board:
    """5b への金打ちで詰む（5c の歩が金を支える）。"""
    return Board.from_pieces(
        [
            (8, 4, PieceType.KING, S),
            (0, 4, PieceType.KING, G),
            (2, 4, PieceType.PAWN, S),
        ],
        sente_hand={PieceType.GOLD: 1},
    )


class TestEvaluate:
    def test_initial_position_is_balanced(self) -> None:
        board = Board()
        assert evaluate(board, S) == 0
        assert evaluate(board, G) == 0

    def test_material_and_hand(self) -> None:
        board = Board.from_pieces(
            [(8, 4, PieceType.KING, S), (0, 4, PieceType.KING, G), (4, 4, PieceType.DRAGON, S)],
            gote_hand={PieceType.PAWN: 2},
        )
        expected = PIECE_VALUES[PieceType.DRAGON] - 2 * PIECE_VALUES[PieceType.PAWN]
        assert evaluate(board, S) == expected
        assert evaluate(board, G) == -expected

    def test_mobility_term(self) -> None:
        board = Board.from_pieces(
            [(8, 4, PieceType.KING, S), (0, 4, PieceType.KING, G), (4, 1, PieceType.ROOK, S)],
            gote_hand={PieceType.ROOK: 1},
        )
        material = evaluate(board, S)
        assert material == 0
        weighted = evaluate(board, S, SearchConfig(mobility_weight=1))
        mobility = len(generate_all_moves(board, S)) - len(generate_all_moves(board, G))
        assert weighted == mobility


class TestSearch:
    def test_finds_mate_in_one(self) -> None:
        board = _head_gold_board()
        result = search(board, DEPTH_1)
        assert result.move == Move.drop(PieceType.GOLD, P(1, 4))
        assert result.score >= MATE_SCORE

    def test_finds_mate_in_one_at_depth_two(self) -> None:
        result = search(_head_gold_board(), DEPTH_2)
        assert result.move == Move.drop(PieceType.GOLD, P(1, 4))
        assert result.score >= MATE_SCORE

    def test_captures_hanging_rook(self) -> None:
        board = Board.from_pieces(
            [
                (8, 4, PieceType.KING, S),
                (0, 0, PieceType.KING, G),
                (6, 6, PieceType.SILVER, S),
                (5, 6, PieceType.ROOK, G),
            ]
        )
        assert select_move(board, DEPTH_1) == Move.normal(P(6, 6), P(5, 6))

    def test_does_not_mutate_input(self) -> None:
        board = Board()
        before = board.snapshot()
        search(board, DEPTH_1)
        assert board.snapshot() == before
        assert board.history == []

    def test_returned_move_is_legal(self) -> None:
        board = Board()
        result = search(board, DEPTH_2)
        assert result.move in generate_all_moves(board)
        assert result.nodes > 0

    def test_no_legal_moves(self) -> None:
        board = Board.from_pieces(
            [
                (8, 4, PieceType.KING, S),
                (0, 0, PieceType.KING, G),
                (2, 1, PieceType.GOLD, S),
                (1, 2, PieceType.SILVER, S),
            ],
            current_player=G,
        )
        result = search(board, DEPTH_1)
        assert result.move is None
        assert select_move(board, DEPTH_1) is None

    def test_single_legal_move_returned_without_search(self) -> None:
        board = Board.from_pieces(
            [
                (8, 4, PieceType.KING, S),
                (0, 0, PieceType.KING, G),
                (2, 1, PieceType.GOLD, S),
            ],
            current_player=G,
        )
        result = search(board, DEPTH_2)
        assert result.move == Move.normal(P(0, 0), P(0, 1))
        assert result.nodes == 0

    def test_searches_for_gote(self) -> None:
        board = Board.from_pieces(
            [
                (8, 4, PieceType.KING, S),
                (0, 4, PieceType.KING, G),
                (2, 2, PieceType.SILVER, G),
                (3, 2, PieceType.ROOK, S),
            ],
            current_player=G,
        )
        assert select_move(board, DEPTH_1) == Move.normal(P(2, 2), P(3, 2))

    def test_time_limit_still_returns_move(self) -> None:
        move = select_move(Board(), SearchConfig(depth=2, time_limit=0.001))
        assert move in generate_all_moves(Board())


class TestMinimax:
    def test_leaf_returns_static_evaluation(self) -> None:
        board = Board()
        assert minimax(board, 0, True, float("-inf"), float("inf"), S) == 0

    def test_mated_side_scores_as_mate(self) -> None:
        board = _head_gold_board()
        board.apply(Move.drop(PieceType.GOLD, P(1, 4)))
        score = minimax(board, 0, False, float("-inf"), float("inf"), S)
        assert score == MATE_SCORE
        score = minimax(board, 1, False, float("-inf"), float("inf"), G)
        assert score == -(MATE_SCORE + 1)

    def test_counter_tracks_nodes(self) -> None:
        counter = [0]
        minimax(Board(), 1, True, float("-inf"), float("inf"), S, counter=counter)
        assert counter[0] == 1 + 30


class TestPlayBestMove:
    def test_plays_through_engine(self) -> None:
        engine = RulesEngine(_head_gold_board())
        seen: list[Move] = []
        engine.subscribe(lambda e: seen.append(e.move))
        move = play_best_move(engine, DEPTH_1)
        assert move == Move.drop(PieceType.GOLD, P(1, 4))
        assert seen == [move]
        assert engine.outcome == GameOutcome.win(S)

    def test_nothing_to_play_after_game_over(self) -> None:
        engine = RulesEngine(_head_gold_board())
        play_best_move(engine, DEPTH_1)
        assert play_best_move(engine, DEPTH_1) is None

