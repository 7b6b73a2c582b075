"""候选出牌排序 - 出牌和跟牌共用：先生成全部候选并打分，再取最优"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from shedding_core.engine.card import Card
from shedding_core.engine.hand_type import Combination


@dataclass(frozen=True)
class PlayCandidate:
    """一个候选出牌：priority 越高越优先，同优先级取 tie_value 小的（先出小牌）"""
    combination: Combination
    priority: float
    tie_value: float


def pick_best(candidates: Iterable[PlayCandidate]) -> Optional[PlayCandidate]:
    """取最优候选；完全相同时保留先生成的那个"""
    best: Optional[PlayCandidate] = None
    for cand in candidates:
        if best is None or (cand.priority, -cand.tie_value) > (best.priority, -best.tie_value):
            best = cand
    return best


def group_by_value(
    cards: Iterable[Card],
    key: Callable[[Card], int] = lambda c: c.value,
) -> Dict[int, List[Card]]:
    """按点数分组，组内按 card_id 排序"""
    groups: Dict[int, List[Card]] = {}
    for card in sorted(cards, key=lambda c: c.card_id):
        groups.setdefault(key(card), []).append(card)
    return groups
