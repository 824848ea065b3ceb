"""FastAPI web application for playing shogi against the computer.

FastAPI を使った本将棋の REST API。ブラウザや他のプロセスから対局できる。
手は USI 形式の文字列（例: "7g7f", "P*5e"）でやり取りする。

エンドポイント:
  POST /api/new-game                新規対局を開始（ゲームIDを返す）
  POST /api/move                    プレイヤーが手を指す（AIが応答して次局面を返す）
  POST /api/auto-move/{id}          手番側のAIが1手指す（AI同士の観戦モード）
  GET  /api/state/{id}              現在の局面情報を取得
  GET  /api/destinations/{id}       指定マスの駒の移動先一覧
  GET  /api/droppable/{id}          指定マスに打てる持ち駒の一覧
  GET  /api/moves/{id}              棋譜（指し手の記録）
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from shogi_engine.engine.config import PRESETS
from shogi_engine.engine.random_player import random_move
from shogi_engine.engine.search import select_move
from shogi_engine.game.board import Board
from shogi_engine.game.display import format_board
from shogi_engine.game.events import MoveEvent
from shogi_engine.game.move import Move
from shogi_engine.game.rules import MoveError, RulesEngine
from shogi_engine.game.types import HAND_PIECE_TYPES, Player, Position

logger = logging.getLogger(__name__)

app = FastAPI(title="Shogi Engine")

AIFunction = Callable[[RulesEngine], Move | None]


@dataclass
class _Game:
    engine: RulesEngine
    sente_fn: AIFunction | None  # None = 人間
    gote_fn: AIFunction | None
    log: list[dict[str, Any]] = field(default_factory=list)

    def ai_for(self, player: Player) -> AIFunction | None:
        return self.sente_fn if player == Player.SENTE else self.gote_fn


# 対局情報のインメモリストレージ（サーバ再起動で消える簡易実装）
_games: dict[str, _Game] = {}


class NewGameRequest(BaseModel):
    """新規対局リクエストのスキーマ。"""

    ai_type: str = "minimax"  # 後手の種別: "minimax", "random", "human"
    sente_type: str = "human"  # 先手の種別: "human" or AI種別（AI同士の観戦モード）
    level: str = "easy"  # 探索プリセット: "easy", "normal", "hard"
    sfen: str | None = None  # 開始局面（省略時は平手）


class MoveRequest(BaseModel):
    """指し手リクエストのスキーマ。"""

    game_id: str  # 対局ID（/api/new-game で取得）
    move: str  # USI 形式の手（例: "7g7f"）


def _get_ai_fn(ai_type: str, level: str) -> AIFunction | None:
    """Get the AI move function based on type.

    AI種別に応じた手選択関数を返す。"human" なら None。
    """
    if ai_type == "human":
        return None
    if ai_type == "random":
        return lambda engine: random_move(engine.board_copy())
    if ai_type == "minimax":
        config = PRESETS.get(level)
        if config is None:
            msg = f"Unknown level: {level}"
            raise ValueError(msg)
        return lambda engine: select_move(engine.board_copy(), config, engine.config)
    msg = f"Unknown AI type: {ai_type}"
    raise ValueError(msg)


def _parse_square(square: str) -> Position:
    try:
        return Position.from_usi(square)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc


def _require_game(game_id: str) -> _Game:
    game = _games.get(game_id)
    if game is None:
        raise HTTPException(404, "Game not found")
    return game


def _state_to_dict(engine: RulesEngine) -> dict[str, Any]:
    """Convert game state to JSON-serializable dict.

    局面情報を JSON 形式（辞書）に変換する。
    """
    snapshot = engine.board
    squares: list[dict[str, Any] | None] = []
    for piece in snapshot.squares:
        if piece is None:
            squares.append(None)
        else:
            squares.append(
                {
                    "type": piece.piece_type.value,  # 駒種インデックス
                    "owner": piece.owner.value,  # 所有者（0=先手, 1=後手）
                    "name": piece.piece_type.name,  # 駒名（文字列）
                }
            )
    hands = [
        {pt.name: snapshot.hand_count(player, pt) for pt in HAND_PIECE_TYPES}
        for player in Player
    ]
    outcome = engine.outcome
    return {
        "current_player": engine.current_player.value,  # 手番（0=先手, 1=後手）
        "is_terminal": outcome.is_terminal,
        "status": outcome.status.value,
        "winner": outcome.winner.value if outcome.winner is not None else None,
        "in_check": engine.is_in_check(engine.current_player),
        "legal_moves": [m.usi() for m in engine.legal_moves()],
        "squares": squares,  # 盤面の駒情報（81要素）
        "hands": hands,  # 持ち駒情報（駒種名 → 枚数）
        "sfen": engine.board_copy().to_sfen(),
        "board_display": format_board(snapshot),  # テキスト形式の盤面表示
    }


def _play_ai(game: _Game) -> Move | None:
    """手番側がAIなら1手指す。人間の番、または終局していれば None。"""
    engine = game.engine
    if engine.outcome.is_terminal:
        return None
    fn = game.ai_for(engine.current_player)
    if fn is None:
        return None
    move = fn(engine)
    if move is not None:
        engine.make_move(move)
    return move


@app.post("/api/new-game")
async def new_game(req: NewGameRequest) -> dict[str, Any]:
    """新規対局を開始する。

    対局IDと初期局面情報を返す。
    """
    try:
        sente_fn = _get_ai_fn(req.sente_type, req.level)
        gote_fn = _get_ai_fn(req.ai_type, req.level)
        board = Board.from_sfen(req.sfen) if req.sfen else None
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc

    game_id = str(uuid.uuid4())[:8]  # 短いIDを生成
    game = _Game(RulesEngine(board), sente_fn, gote_fn)

    def record(event: MoveEvent) -> None:
        game.log.append(
            {
                "ply": len(game.log) + 1,
                "player": event.player.value,
                "move": event.move.usi(),
                "status": event.outcome.status.value,
            }
        )

    game.engine.subscribe(record)
    _games[game_id] = game
    logger.info("New game %s (sente=%s, gote=%s)", game_id, req.sente_type, req.ai_type)

    return {"game_id": game_id, "state": _state_to_dict(game.engine)}


@app.post("/api/move")
async def make_move(req: MoveRequest) -> dict[str, Any]:
    """プレイヤーの手を受け取り、AIが応答して次の局面を返す。

    処理フロー:
    1. プレイヤーの手を検証して適用（不正なら 400、エラー種別を返す）
    2. 相手がAIなら探索して応答
    """
    game = _require_game(req.game_id)
    engine = game.engine

    if engine.outcome.is_terminal:
        raise HTTPException(400, "Game is already over")
    if game.ai_for(engine.current_player) is not None:
        raise HTTPException(400, "Current player is AI - use /api/auto-move instead")

    try:
        move = Move.from_usi(req.move)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
    try:
        engine.make_move(move)
    except MoveError as exc:
        raise HTTPException(400, f"Illegal move {req.move}: {exc.error.value}") from exc

    ai_move = _play_ai(game)
    return {
        "state": _state_to_dict(engine),
        "player_move": move.usi(),
        "ai_move": ai_move.usi() if ai_move is not None else None,
    }


@app.post("/api/auto-move/{game_id}")
async def auto_move(game_id: str) -> dict[str, Any]:
    """自動対戦: 現在の手番プレイヤーのAIが1手指す。"""
    game = _require_game(game_id)
    engine = game.engine

    if engine.outcome.is_terminal:
        raise HTTPException(400, "Game is already over")
    moved_by = engine.current_player
    if game.ai_for(moved_by) is None:
        raise HTTPException(400, "Current player is human - use /api/move instead")

    move = _play_ai(game)
    return {
        "state": _state_to_dict(engine),
        "move": move.usi() if move is not None else None,
        "moved_by": moved_by.value,
    }


@app.get("/api/state/{game_id}")
async def get_state(game_id: str) -> dict[str, Any]:
    """現在の局面情報を取得する（ページ再読み込み時などに使用）。"""
    return _state_to_dict(_require_game(game_id).engine)


@app.get("/api/destinations/{game_id}")
async def legal_destinations(game_id: str, square: str) -> dict[str, Any]:
    """指定マスの駒を合法に動かせるマスの一覧（盤面クリック時のハイライト用）。"""
    engine = _require_game(game_id).engine
    origin = _parse_square(square)
    return {"square": square, "destinations": [p.usi() for p in engine.legal_destinations(origin)]}


@app.get("/api/droppable/{game_id}")
async def droppable(game_id: str, square: str) -> dict[str, Any]:
    """指定マスに合法に打てる持ち駒の一覧。"""
    engine = _require_game(game_id).engine
    to_pos = _parse_square(square)
    return {"square": square, "pieces": [pt.name for pt in engine.droppable_kinds(to_pos)]}


@app.get("/api/moves/{game_id}")
async def move_log(game_id: str) -> dict[str, Any]:
    """棋譜を返す（指し手イベントの購読者が記録したもの）。"""
    return {"moves": _require_game(game_id).log}


def main() -> None:
    """Run the web server.

    `shogi-web` または `python -m shogi_engine.web.app` で起動する。
    """
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
