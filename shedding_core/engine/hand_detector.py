"""牌型检测器 - 按规则集识别一组牌的牌型，构建 Combination"""

from typing import Optional, Sequence
from collections import Counter

from .card import Card
from .errors import DuplicateCardError
from .hand_type import Combination
from .ruleset import Ruleset
from . import ddz_rules, gd_rules

# 两张检测优先级表，供文档与测试引用
DDZ_PRIORITY = ddz_rules.DDZ_PRIORITY
GD_PRIORITY = gd_rules.GD_PRIORITY

_DEFAULT_RULESET = Ruleset.doudizhu()


def classify(cards: Sequence[Card], ruleset: Optional[Ruleset] = None) -> Optional[Combination]:
    """
    识别一组牌的牌型。
    返回 Combination 或 None（空牌或非法牌型）。
    同一张物理牌出现两次属于调用方错误，抛 DuplicateCardError。
    """
    if not cards:
        return None
    _check_unique(cards)

    ruleset = ruleset or _DEFAULT_RULESET
    if ruleset.is_guandan:
        return gd_rules.detect(cards, ruleset)
    return ddz_rules.detect(cards)


def _check_unique(cards: Sequence[Card]) -> None:
    ids = Counter(c.card_id for c in cards)
    dupes = sorted(cid for cid, n in ids.items() if n > 1)
    if dupes:
        raise DuplicateCardError(f"重复的 card_id: {dupes}")
