"""掼蛋牌型检测 - 四人双副牌，级牌与逢人配（红桃级牌百搭）

逢人配的选择是一个很小的约束求解：对每种牌型枚举候选点数分配，
计算需要补的百搭张数（缺口），缺口 ≤ 百搭数且所有自然牌都被用上即可；
多种解释同时成立时，先取替代张数最少的，再取主牌更大的。
"""

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Sequence, Tuple
from collections import Counter

from .card import Card, Rank, Suit, sort_cards
from .hand_type import ComboType, Combination
from .ruleset import ACE_LOW_POSITION, Ruleset


STRAIGHT_LENGTH = 5
STRAIGHT_PAIR_GROUPS = 3
PLATE_GROUPS = 2
FOUR_JOKERS_COUNT = 4


@dataclass(frozen=True)
class _Hand:
    """一次检测的上下文：排好序的牌、自然牌计数与百搭数"""
    cards: Tuple[Card, ...]
    counts: Dict[int, int]       # 自然牌（非百搭）牌值 → 张数
    wilds: int
    ruleset: Ruleset

    @property
    def n(self) -> int:
        return len(self.cards)


Detector = Callable[[_Hand], Optional[Combination]]


def detect(cards: Sequence[Card], ruleset: Ruleset) -> Optional[Combination]:
    """识别一组掼蛋牌，返回 Combination 或 None（非法牌型）"""
    if not cards:
        return None
    ordered = tuple(sort_cards(cards))
    naturals = [c for c in ordered if not ruleset.is_wild(c)]
    hand = _Hand(
        cards=ordered,
        counts=dict(Counter(c.value for c in naturals)),
        wilds=len(ordered) - len(naturals),
        ruleset=ruleset,
    )
    for detector in GD_PRIORITY:
        result = detector(hand)
        if result is not None:
            return result
    return None


# ============================================================
#  同点数类：单 / 对 / 三 / 炸弹
# ============================================================

def _same_rank(hand: _Hand, size: int) -> Optional[Tuple[int, int]]:
    """能否凑成 size 张同点数，返回 (牌值, 替代张数)。

    百搭不能替代王；点数本身就是级牌时百搭按自然牌计，不算替代。
    """
    if hand.n != size or len(hand.counts) > 1:
        return None
    level = hand.ruleset.level_value
    if not hand.counts:
        return level, 0
    value = next(iter(hand.counts))
    if value in (Rank.SMALL_JOKER, Rank.BIG_JOKER):
        return (value, 0) if hand.wilds == 0 else None
    if value == level:
        return value, 0
    return value, hand.wilds


def _detect_four_jokers(hand: _Hand) -> Optional[Combination]:
    """四王：两张大王 + 两张小王"""
    if hand.n == FOUR_JOKERS_COUNT and hand.wilds == 0 and all(c.is_joker for c in hand.cards):
        return Combination(ComboType.FOUR_JOKERS, hand.cards, int(Rank.BIG_JOKER))
    return None


def _detect_bomb(hand: _Hand) -> Optional[Combination]:
    """4~8 张同点数（可含逢人配），王不能组成炸弹"""
    if hand.n not in hand.ruleset.bomb_lengths:
        return None
    found = _same_rank(hand, hand.n)
    if found is None or found[0] in (Rank.SMALL_JOKER, Rank.BIG_JOKER):
        return None
    value, used = found
    return Combination(
        ComboType.BOMB, hand.cards, hand.ruleset.rank_order(value),
        wildcards_used=used,
    )


def _detect_single(hand: _Hand) -> Optional[Combination]:
    if hand.n != 1:
        return None
    value = hand.cards[0].value
    return Combination(ComboType.SINGLE, hand.cards, hand.ruleset.rank_order(value))


def _detect_pair(hand: _Hand) -> Optional[Combination]:
    """对子：两张同点数，或一张自然牌 + 一张逢人配；两张同色王也算对子"""
    found = _same_rank(hand, 2)
    if found is None:
        return None
    value, used = found
    return Combination(
        ComboType.PAIR, hand.cards, hand.ruleset.rank_order(value),
        wildcards_used=used,
    )


def _detect_triple(hand: _Hand) -> Optional[Combination]:
    found = _same_rank(hand, 3)
    if found is None:
        return None
    value, used = found
    return Combination(
        ComboType.TRIPLE, hand.cards, hand.ruleset.rank_order(value),
        wildcards_used=used,
    )


# ============================================================
#  三带二（葫芦）
# ============================================================

def _detect_full_house(hand: _Hand) -> Optional[Combination]:
    """三张 + 一对，可用逢人配补缺。三张部分不能是王。"""
    if hand.n != 5:
        return None
    ruleset = hand.ruleset
    level = ruleset.level_value
    options = set(hand.counts) | {level}

    best: Optional[Tuple[int, int, int]] = None   # (替代张数, -主牌顺序, 主牌值)
    for head in options:
        if head in (Rank.SMALL_JOKER, Rank.BIG_JOKER):
            continue
        for tail in options:
            if tail == head:
                continue
            if any(v not in (head, tail) for v in hand.counts):
                continue
            need_head = 3 - hand.counts.get(head, 0)
            need_tail = 2 - hand.counts.get(tail, 0)
            if need_head < 0 or need_tail < 0 or need_head + need_tail != hand.wilds:
                continue
            if tail in (Rank.SMALL_JOKER, Rank.BIG_JOKER) and need_tail:
                continue
            used = (need_head if head != level else 0) + (need_tail if tail != level else 0)
            key = (used, -ruleset.rank_order(head), head)
            if best is None or key < best:
                best = key
    if best is None:
        return None
    used, _, head = best
    return Combination(
        ComboType.TRIPLE_WITH_PAIR, hand.cards, ruleset.rank_order(head),
        wildcards_used=used,
    )


# ============================================================
#  连续牌型：顺子 / 连对 / 钢板 / 同花顺
# ============================================================

def run_positions(value: int) -> Tuple[int, ...]:
    """自然牌在连续牌型中可占的位置：A 可作 14 或 1，2 占位置 2"""
    if value == Rank.ACE:
        return (int(Rank.ACE), ACE_LOW_POSITION)
    if value == Rank.TWO:
        return (2,)
    return (value,)


def run_windows(groups: int) -> Iterable[Tuple[int, ...]]:
    """所有 groups 个连续位置的窗口，从高到低（顶端 14 → 最低的 A 起始窗口）"""
    for top in range(int(Rank.ACE), ACE_LOW_POSITION + groups - 2, -1):
        yield tuple(range(top - groups + 1, top + 1))


def fit_window(
    counts: Dict[int, int],
    window: Tuple[int, ...],
    group_size: int,
    forbidden: FrozenSet[int],
) -> Optional[int]:
    """自然牌能否放进窗口，每个位置最多 group_size 张；返回缺口张数"""
    if forbidden.intersection(window):
        return None
    filled: Dict[int, int] = {}
    for value, count in counts.items():
        slot = next((p for p in run_positions(value) if p in window), None)
        if slot is None:
            return None
        filled[slot] = filled.get(slot, 0) + count
        if filled[slot] > group_size:
            return None
    return group_size * len(window) - sum(filled.values())


def _best_run(hand: _Hand, groups: int, group_size: int) -> Optional[Tuple[int, ...]]:
    """取缺口最小、顶端最高的合法窗口；王不能进入连续牌型"""
    if hand.n != groups * group_size:
        return None
    if any(v in (Rank.SMALL_JOKER, Rank.BIG_JOKER) for v in hand.counts):
        return None
    best: Optional[Tuple[int, ...]] = None
    best_deficit: Optional[int] = None
    for window in run_windows(groups):
        deficit = fit_window(hand.counts, window, group_size, hand.ruleset.forbidden_positions)
        if deficit is None or deficit > hand.wilds:
            continue
        if best_deficit is None or deficit < best_deficit:
            best, best_deficit = window, deficit
    return best


def _run_combination(
    combo_type: ComboType, hand: _Hand, window: Tuple[int, ...],
) -> Combination:
    return Combination(
        combo_type, hand.cards, window[-1],
        chain_length=len(window), base_value=window[0],
        wildcards_used=hand.wilds,
    )


def _detect_straight_flush(hand: _Hand) -> Optional[Combination]:
    """同花顺：5 张连续，自然牌同一花色；逢人配可补缺，级牌位置不能出现"""
    if hand.n != STRAIGHT_LENGTH:
        return None
    suits = {c.suit for c in hand.cards if not hand.ruleset.is_wild(c)}
    if len(suits) > 1 or Suit.JOKER in suits:
        return None
    window = _best_run(hand, STRAIGHT_LENGTH, 1)
    if window is None:
        return None
    return _run_combination(ComboType.STRAIGHT_FLUSH, hand, window)


def _detect_straight(hand: _Hand) -> Optional[Combination]:
    """顺子：恰好 5 张"""
    window = _best_run(hand, STRAIGHT_LENGTH, 1)
    if window is None:
        return None
    return _run_combination(ComboType.STRAIGHT, hand, window)


def _detect_straight_pair(hand: _Hand) -> Optional[Combination]:
    """连对：恰好 3 对"""
    window = _best_run(hand, STRAIGHT_PAIR_GROUPS, 2)
    if window is None:
        return None
    return _run_combination(ComboType.STRAIGHT_PAIR, hand, window)


def _detect_plate(hand: _Hand) -> Optional[Combination]:
    """钢板：恰好 2 个连续三张"""
    window = _best_run(hand, PLATE_GROUPS, 3)
    if window is None:
        return None
    return _run_combination(ComboType.PLANE, hand, window)


# 检测优先级：先匹配者胜。四王 > 炸弹(8→4) > 同花顺 > 单/对/三 > 三带二 > 顺子 > 连对 > 钢板。
# 5 张可能同时是炸弹、同花顺、三带二或顺子；6 张可能是炸弹、连对或钢板，由顺序裁决。
GD_PRIORITY: Tuple[Detector, ...] = (
    _detect_four_jokers,
    _detect_bomb,
    _detect_straight_flush,
    _detect_single,
    _detect_pair,
    _detect_triple,
    _detect_full_house,
    _detect_straight,
    _detect_straight_pair,
    _detect_plate,
)

