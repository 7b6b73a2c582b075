"""牌型定义 - 两种玩法共用的牌型枚举与结构化出牌"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional, Tuple

from .card import Card


class ComboType(str, Enum):
    """牌型枚举"""
    SINGLE = "SINGLE"                           # 单张
    PAIR = "PAIR"                               # 对子
    TRIPLE = "TRIPLE"                           # 三条
    TRIPLE_WITH_SINGLE = "TRIPLE_WITH_SINGLE"   # 三带一（斗地主）
    TRIPLE_WITH_PAIR = "TRIPLE_WITH_PAIR"       # 三带一对 / 葫芦
    STRAIGHT = "STRAIGHT"                       # 顺子
    STRAIGHT_PAIR = "STRAIGHT_PAIR"             # 连对
    PLANE = "PLANE"                             # 飞机不带 / 钢板
    PLANE_WITH_SINGLES = "PLANE_WITH_SINGLES"   # 飞机带单
    PLANE_WITH_PAIRS = "PLANE_WITH_PAIRS"       # 飞机带对
    STRAIGHT_FLUSH = "STRAIGHT_FLUSH"           # 同花顺（掼蛋）
    BOMB = "BOMB"                               # 炸弹（4~8张）
    FOUR_JOKERS = "FOUR_JOKERS"                 # 四王炸（掼蛋）
    ROCKET = "ROCKET"                           # 火箭/王炸（斗地主）


RUN_TYPES = frozenset({
    ComboType.STRAIGHT,
    ComboType.STRAIGHT_PAIR,
    ComboType.PLANE,
    ComboType.PLANE_WITH_SINGLES,
    ComboType.PLANE_WITH_PAIRS,
    ComboType.STRAIGHT_FLUSH,
})

# 炸弹层级：火箭/四王 > 长炸 > 短炸 > 同花顺 > 普通牌型
TOP_TIER = 100
_BOMB_TIER_BASE = 10
_STRAIGHT_FLUSH_TIER = 1


@dataclass(frozen=True)
class Combination:
    """一手出牌的结构化表示（分类器输出）"""
    type: ComboType
    cards: Tuple[Card, ...]
    main_value: int                  # 主牌大小（已按规则集换算，用于比较）
    chain_length: int = 1            # 顺子/连对/飞机的连续组数
    base_value: Optional[int] = None  # 连续牌型的起始位置
    wildcards_used: int = 0          # 实际替代了其他点数的逢人配张数

    @property
    def length(self) -> int:
        return len(self.cards)

    @property
    def bomb_tier(self) -> int:
        if self.type in (ComboType.ROCKET, ComboType.FOUR_JOKERS):
            return TOP_TIER
        if self.type == ComboType.BOMB:
            return _BOMB_TIER_BASE + self.length
        if self.type == ComboType.STRAIGHT_FLUSH:
            return _STRAIGHT_FLUSH_TIER
        return 0

    @property
    def is_bomb(self) -> bool:
        return self.bomb_tier > 0

    @property
    def is_run(self) -> bool:
        return self.type in RUN_TYPES

    def __repr__(self) -> str:
        cards_str = " ".join(repr(c) for c in self.cards)
        return f"[{self.type.value}:{self.main_value}] {cards_str}"
