"""Search configuration for the computer player.

探索の設定定義。強さ（深さ）と時間制限をまとめて管理する。
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for minimax search.

    Attributes:
        depth:           探索深さ（手数）。本将棋は合法手が多いので3程度に抑える
        time_limit:      秒単位の時間制限。None なら深さのみで打ち切る。
                         制限はルートの手と手の間でだけ確認する（apply/undo の対を崩さないため）
        mobility_weight: 合法手数の差に掛ける重み。0 なら駒得だけで評価する
    """

    depth: int = 3
    time_limit: float | None = None
    mobility_weight: int = 0

    def __post_init__(self) -> None:
        if self.depth < 1:
            msg = f"Search depth must be at least 1, got {self.depth}"
            raise ValueError(msg)
        if self.time_limit is not None and self.time_limit <= 0:
            msg = f"Time limit must be positive, got {self.time_limit}"
            raise ValueError(msg)


DEFAULT_SEARCH = SearchConfig()

# 難易度ごとのプリセット設定
EASY_CONFIG = SearchConfig(depth=1)
NORMAL_CONFIG = SearchConfig(depth=2)
HARD_CONFIG = SearchConfig(depth=3, time_limit=30.0)

PRESETS: dict[str, SearchConfig] = {
    "easy": EASY_CONFIG,
    "normal": NORMAL_CONFIG,
    "hard": HARD_CONFIG,
}
