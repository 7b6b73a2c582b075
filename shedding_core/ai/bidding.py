"""叫地主决策 - 手牌强度打分 + 按阈值概率叫地主（三人斗地主）"""

import os
import random
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

from shedding_core.engine.card import Card, Rank


# 单张牌的基础分，越大的牌分越高
_CARD_WEIGHTS = {
    Rank.BIG_JOKER: 7.0,
    Rank.SMALL_JOKER: 6.0,
    Rank.TWO: 4.0,
    Rank.ACE: 3.0,
    Rank.KING: 2.5,
    Rank.QUEEN: 2.0,
    Rank.JACK: 1.0,
    Rank.TEN: 1.0,
}
_LOW_CARD_WEIGHT = 0.3

BOMB_BONUS = 8.0
HIGH_TRIPLE_BONUS = 4.0
LOW_TRIPLE_BONUS = 2.0
HIGH_PAIR_BONUS = 1.5
MID_PAIR_BONUS = 0.8
SMALL_SINGLE_PENALTY = 0.4


def score_hand(cards: Iterable[Card]) -> float:
    """手牌强度：单牌权重之和 + 炸弹/三张/大对子加分 - 小单张（≤8）扣分"""
    counts = Counter(c.rank for c in cards)

    score = sum(_CARD_WEIGHTS.get(r, _LOW_CARD_WEIGHT) * n for r, n in counts.items())
    for rank, n in counts.items():
        if n == 4:
            score += BOMB_BONUS
        elif n == 3:
            score += HIGH_TRIPLE_BONUS if rank >= Rank.JACK else LOW_TRIPLE_BONUS
        elif n == 2:
            if rank >= Rank.JACK:
                score += HIGH_PAIR_BONUS
            elif rank >= Rank.EIGHT:
                score += MID_PAIR_BONUS

    small_singles = sum(1 for r, n in counts.items() if n == 1 and r <= Rank.EIGHT)
    return score - small_singles * SMALL_SINGLE_PENALTY


@dataclass(frozen=True)
class BiddingConfig:
    """叫地主阈值：高于 high 必叫，介于两者之间按概率叫，低于 low 不叫"""
    high_threshold: float = 34.0
    low_threshold: float = 27.0
    claim_probability: float = 0.5

    @classmethod
    def from_env(cls) -> "BiddingConfig":
        """从环境变量读取配置"""
        return cls(
            high_threshold=float(os.getenv("BID_HIGH_THRESHOLD", cls.high_threshold)),
            low_threshold=float(os.getenv("BID_LOW_THRESHOLD", cls.low_threshold)),
            claim_probability=float(os.getenv("BID_CLAIM_PROBABILITY", cls.claim_probability)),
        )


def decide_claim(
    cards: Iterable[Card],
    config: Optional[BiddingConfig] = None,
    rng: Optional[random.Random] = None,
) -> bool:
    """是否叫地主"""
    config = config or BiddingConfig()
    score = score_hand(cards)
    if score > config.high_threshold:
        return True
    if score >= config.low_threshold:
        return (rng or random).random() < config.claim_probability
    return False
