"""本将棋 (Full Shogi): board, move generation and rules."""

from shogi_engine.game.board import Board, BoardSnapshot, MoveRecord
from shogi_engine.game.display import format_board
from shogi_engine.game.events import EventBus, MoveEvent
from shogi_engine.game.move import Move
from shogi_engine.game.rules import (
    GameError,
    GameOutcome,
    GameStatus,
    MoveError,
    RulesConfig,
    RulesEngine,
    generate_all_moves,
)
from shogi_engine.game.types import (
    COLS,
    INVALID_POSITION,
    ROWS,
    Piece,
    PieceType,
    Player,
    Position,
)

__all__ = [
    "Board",
    "BoardSnapshot",
    "COLS",
    "EventBus",
    "GameError",
    "GameOutcome",
    "GameStatus",
    "INVALID_POSITION",
    "Move",
    "MoveError",
    "MoveEvent",
    "MoveRecord",
    "Piece",
    "PieceType",
    "Player",
    "Position",
    "ROWS",
    "RulesConfig",
    "RulesEngine",
    "format_board",
    "generate_all_moves",
]
