"""玩家模型 - 斗地主三人 / 掼蛋四人玩家的数据结构"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from shedding_core.engine.card import Card, sort_cards


class Role(str, Enum):
    """玩家角色（斗地主）"""
    LANDLORD = "LANDLORD"   # 地主
    FARMER = "FARMER"       # 农民
    UNKNOWN = "UNKNOWN"     # 未确定


@dataclass
class Player:
    """一个玩家"""
    id: int                          # 座位号
    name: str                        # 显示名
    hand: List[Card] = field(default_factory=list)
    role: Role = Role.UNKNOWN
    team: Optional[int] = None       # 掼蛋队伍：座位奇偶
    play_count: int = 0              # 本局出牌次数（用于春天判定）
    score: int = 0                   # 累计积分

    @property
    def hand_size(self) -> int:
        return len(self.hand)

    @property
    def is_landlord(self) -> bool:
        return self.role == Role.LANDLORD

    @property
    def finished(self) -> bool:
        return not self.hand

    def sort_hand(self) -> None:
        """手牌排序"""
        self.hand = sort_cards(self.hand)

    def take_cards(self, cards: Iterable[Card]) -> None:
        """收牌（发牌 / 地主拿底牌）"""
        self.hand.extend(cards)
        self.sort_hand()

    def remove_cards(self, cards: Iterable[Card]) -> None:
        """从手牌中移除指定的牌（按 card_id）"""
        ids = {c.card_id for c in cards}
        self.hand = [c for c in self.hand if c.card_id not in ids]

    def has_cards(self, cards: Iterable[Card]) -> bool:
        """检查手牌中是否包含指定的牌"""
        held = {c.card_id for c in self.hand}
        wanted = [c.card_id for c in cards]
        return len(set(wanted)) == len(wanted) and held.issuperset(wanted)

    def reset_for_new_game(self) -> None:
        """新一局重置"""
        self.hand = []
        self.role = Role.UNKNOWN
        self.play_count = 0
