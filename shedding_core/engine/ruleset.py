"""规则集选择 - 斗地主(三人) / 掼蛋(四人, 带级牌与逢人配)"""

from enum import Enum
from dataclasses import dataclass
from typing import FrozenSet, Tuple

from .card import Card, Rank, Suit
from .errors import InvalidLevelError


class Variant(str, Enum):
    """玩法"""
    DOUDIZHU = "DOUDIZHU"   # 三人斗地主
    GUANDAN = "GUANDAN"     # 四人掼蛋


# 级牌在掼蛋中的排序值：大于 A，小于两张王
LEVEL_ORDER = 15
# 掼蛋中非级牌的 2 排最小
LOW_TWO_ORDER = 2
# 顺子位置：A 可作 1（A2345）或 14（10JQKA）
ACE_LOW_POSITION = 1


@dataclass(frozen=True)
class Ruleset:
    """一局的规则参数。

    level_value 只对掼蛋有意义，取牌值（2=15），默认打 2。
    """
    variant: Variant = Variant.DOUDIZHU
    level_value: int = int(Rank.TWO)

    def __post_init__(self) -> None:
        if self.variant == Variant.GUANDAN and not Rank.THREE <= self.level_value <= Rank.TWO:
            raise InvalidLevelError(f"级牌必须在 3..15 之间: {self.level_value}")

    @classmethod
    def doudizhu(cls) -> "Ruleset":
        return cls(Variant.DOUDIZHU)

    @classmethod
    def guandan(cls, level_value: int = int(Rank.TWO)) -> "Ruleset":
        return cls(Variant.GUANDAN, level_value)

    @property
    def is_guandan(self) -> bool:
        return self.variant == Variant.GUANDAN

    @property
    def bomb_lengths(self) -> Tuple[int, ...]:
        """支持的炸弹张数，长的在前"""
        if self.is_guandan:
            return (8, 7, 6, 5, 4)
        return (4,)

    def is_wild(self, card: Card) -> bool:
        """逢人配：掼蛋中红桃级牌"""
        return (
            self.is_guandan
            and card.value == self.level_value
            and card.suit == Suit.HEART
        )

    def is_level(self, value: int) -> bool:
        return self.is_guandan and value == self.level_value

    def rank_order(self, value: int) -> int:
        """牌值 → 比较用的大小顺序"""
        if not self.is_guandan:
            return value
        if value == self.level_value:
            return LEVEL_ORDER
        if value == Rank.TWO:
            return LOW_TWO_ORDER
        return value

    @property
    def forbidden_positions(self) -> FrozenSet[int]:
        """掼蛋顺子/连对/钢板中不能出现的位置（级牌所在位置）"""
        if not self.is_guandan:
            return frozenset()
        if self.level_value == Rank.TWO:
            return frozenset({LOW_TWO_ORDER})
        if self.level_value == Rank.ACE:
            return frozenset({int(Rank.ACE), ACE_LOW_POSITION})
        return frozenset({self.level_value})
