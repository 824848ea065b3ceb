"""Terminal display for 本将棋."""

from __future__ import annotations

from shogi_engine.game.protocol import BoardView
from shogi_engine.game.types import COLS, HAND_PIECE_TYPES, ROWS, PieceType, Player, Position

# Display characters for pieces
PIECE_CHARS: dict[PieceType, str] = {
    PieceType.PAWN: "歩",
    PieceType.LANCE: "香",
    PieceType.KNIGHT: "桂",
    PieceType.SILVER: "銀",
    PieceType.GOLD: "金",
    PieceType.BISHOP: "角",
    PieceType.ROOK: "飛",
    PieceType.KING: "玉",
    PieceType.PRO_PAWN: "と",
    PieceType.PRO_LANCE: "杏",
    PieceType.PRO_KNIGHT: "圭",
    PieceType.PRO_SILVER: "全",
    PieceType.HORSE: "馬",
    PieceType.DRAGON: "龍",
}


def format_board(board: BoardView) -> str:
    """Format the board for terminal display."""
    lines: list[str] = []

    lines.append(f"後手持駒: {format_hand(board, Player.GOTE)}")
    lines.append("  ９ ８ ７ ６ ５ ４ ３ ２ １")
    lines.append("+--+--+--+--+--+--+--+--+--+")

    for r in range(ROWS):
        row_str = "|"
        for c in range(COLS):
            piece = board.piece_at(Position(r, c))
            if piece is None:
                row_str += "  |"
            else:
                char = PIECE_CHARS.get(piece.piece_type, "？")
                mark = "v" if piece.owner == Player.GOTE else " "
                row_str += f"{mark}{char}|"
        lines.append(f"{row_str} {_row_label(r)}")
        lines.append("+--+--+--+--+--+--+--+--+--+")

    lines.append(f"先手持駒: {format_hand(board, Player.SENTE)}")
    turn = "先手" if board.current_player == Player.SENTE else "後手"
    lines.append(f"手番: {turn}")

    return "\n".join(lines)


def format_hand(board: BoardView, player: Player) -> str:
    pieces: list[str] = []
    for pt in HAND_PIECE_TYPES:
        count = board.hand_count(player, pt)
        if count == 0:
            continue
        char = PIECE_CHARS[pt]
        pieces.append(char if count == 1 else f"{char}{count}")
    return " ".join(pieces) if pieces else "なし"


def _row_label(row: int) -> str:
    labels = ["一", "二", "三", "四", "五", "六", "七", "八", "九"]
    return labels[row]
