"""Move notifications pushed by the RulesEngine.

指し手が成功するたびに (手, 盤面スナップショット) のメッセージを購読者全員に送る。
描画層・棋譜記録・ネットワーク配信などが互いに独立して購読できる。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shogi_engine.game.board import BoardSnapshot
from shogi_engine.game.move import Move
from shogi_engine.game.types import Player

if TYPE_CHECKING:
    from shogi_engine.game.rules import GameOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveEvent:
    """One successful move and the position it produced."""

    move: Move
    player: Player
    board: BoardSnapshot
    outcome: GameOutcome


MoveListener = Callable[[MoveEvent], None]


class EventBus:
    """Fan-out of MoveEvents to any number of listeners."""

    def __init__(self) -> None:
        self._listeners: list[MoveListener] = []

    def subscribe(self, listener: MoveListener) -> Callable[[], None]:
        """購読者を登録し、登録解除用の関数を返す。"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: MoveEvent) -> None:
        # 通知中に購読解除されても安全なようにコピーを回す
        for listener in list(self._listeners):
            listener(event)
        logger.debug("Published %s to %d listener(s)", event.move, len(self._listeners))

    def __len__(self) -> int:
        return len(self._listeners)
