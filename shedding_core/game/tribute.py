"""进贡 / 还贡 - 掼蛋新一轮发牌后，上一轮的下游向上游进贡

单下：末游向头游进贡一张。
双下（后两名同队）：两人都进贡，大的一张给头游，小的给二游；一样大时末游的给头游。
进贡方合计抓到两张大王即抗贡，不进贡，由上一轮头游先出。
进贡后由贡牌最大的进贡方先出。
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from shedding_core.engine.card import Card, Rank
from shedding_core.engine.ruleset import Ruleset

RETURN_LIMIT = 10           # 还贡优先还 10 以下的牌
ANTI_TRIBUTE_JOKERS = 2


@dataclass(frozen=True)
class TributeExchange:
    """一次进贡：payer 把 tribute_card 交给 receiver，receiver 还 return_card"""
    payer: int
    receiver: int
    tribute_card: Card
    return_card: Card


@dataclass(frozen=True)
class TributePlan:
    exchanges: Tuple[TributeExchange, ...]
    leader: int                      # 本轮先出的人
    anti_tribute: bool


def is_double_tribute(finish_order: Sequence[int]) -> bool:
    """后两名同队即双下"""
    return finish_order[2] % 2 == finish_order[3] % 2


def tribute_card(hand: Sequence[Card], ruleset: Ruleset) -> Card:
    """进贡的牌：除逢人配外最大的一张"""
    eligible = [c for c in hand if not ruleset.is_wild(c)]
    if not eligible:
        raise ValueError("没有可以进贡的牌")
    return max(eligible, key=lambda c: (ruleset.rank_order(c.value), c.card_id))


def return_card(hand: Sequence[Card], ruleset: Ruleset) -> Card:
    """还贡的牌：不还级牌，优先还 10 以下最小的一张"""
    if not hand:
        raise ValueError("没有可以还贡的牌")
    candidates = [c for c in hand if not ruleset.is_level(c.value)] or list(hand)
    small = [c for c in candidates if ruleset.rank_order(c.value) <= RETURN_LIMIT]
    return min(small or candidates, key=lambda c: (ruleset.rank_order(c.value), c.card_id))


def plan_tribute(
    finish_order: Sequence[int],
    hands: Sequence[Sequence[Card]],
    ruleset: Ruleset,
) -> TributePlan:
    """按上一轮名次和新发的手牌算出进贡方案（不改动手牌）"""
    if len(finish_order) != 4 or sorted(finish_order) != [0, 1, 2, 3]:
        raise ValueError(f"上一轮名次必须包含 4 个座位: {list(finish_order)}")
    head, second = finish_order[0], finish_order[1]
    double = is_double_tribute(finish_order)
    payers = [finish_order[3], finish_order[2]] if double else [finish_order[3]]

    big_jokers = sum(1 for p in payers for c in hands[p] if c.value == Rank.BIG_JOKER)
    if big_jokers >= ANTI_TRIBUTE_JOKERS:
        return TributePlan(exchanges=(), leader=head, anti_tribute=True)

    paid: List[Tuple[int, Card]] = [(p, tribute_card(hands[p], ruleset)) for p in payers]
    paid.sort(key=lambda item: ruleset.rank_order(item[1].value), reverse=True)

    exchanges = tuple(
        TributeExchange(payer, receiver, card, return_card(hands[receiver], ruleset))
        for (payer, card), receiver in zip(paid, (head, second))
    )
    return TributePlan(exchanges=exchanges, leader=paid[0][0], anti_tribute=False)
