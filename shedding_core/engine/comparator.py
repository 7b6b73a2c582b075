"""压牌判定 - 一手牌能否压过上一手"""

from typing import Optional, Sequence

from .card import Card
from .hand_type import Combination
from .hand_detector import classify
from .ruleset import Ruleset


def beats(
    candidate: Combination,
    reference: Optional[Combination],
    ruleset: Optional[Ruleset] = None,
) -> bool:
    """
    判断 candidate 能否压过 reference。
    规则：
    1. 没有上一手，任何合法牌型都能出
    2. 炸弹层级：火箭/四王 > 长炸 > 短炸 > 同花顺 > 普通牌型；同层比主牌
    3. 普通牌型必须同类型同张数，比主牌点数

    main_value 在分类时已按规则集换算过，ruleset 只为接口对称保留。
    """
    if reference is None:
        return True

    if candidate.bomb_tier or reference.bomb_tier:
        if candidate.bomb_tier != reference.bomb_tier:
            return candidate.bomb_tier > reference.bomb_tier
        return candidate.main_value > reference.main_value

    if candidate.type != reference.type:
        return False
    if candidate.length != reference.length:
        return False
    return candidate.main_value > reference.main_value


def can_play_cards(
    cards: Sequence[Card],
    last_cards: Optional[Sequence[Card]],
    ruleset: Optional[Ruleset] = None,
) -> bool:
    """
    校验玩家选中的牌能否出（供人类玩家出牌使用）。
    两手都不成牌型时判为压不过；上一手不成牌型而这一手合法时判为能出。
    """
    played = classify(cards, ruleset)
    if not last_cards:
        return played is not None
    if played is None:
        # 不成牌型的牌永远不能出，上一手合不合法都一样
        return False
    last = classify(last_cards, ruleset)
    if last is None:
        return True
    return beats(played, last, ruleset)
