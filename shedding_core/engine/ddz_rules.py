"""斗地主牌型检测 - 三人玩法，无百搭"""

from typing import Callable, List, Optional, Sequence, Tuple
from collections import Counter

from .card import Card, Rank, sort_cards
from .hand_type import ComboType, Combination


# 顺子/连对/飞机中不允许出现的点数
CHAIN_FORBIDDEN = frozenset({Rank.TWO, Rank.SMALL_JOKER, Rank.BIG_JOKER})
MIN_STRAIGHT = 5
MAX_STRAIGHT = 12
MIN_STRAIGHT_PAIRS = 2
MIN_PLANE = 2

Detector = Callable[[Tuple[Card, ...], int, Counter], Optional[Combination]]


def detect(cards: Sequence[Card]) -> Optional[Combination]:
    """识别一组斗地主牌，返回 Combination 或 None（非法牌型）"""
    if not cards:
        return None
    ordered = tuple(sort_cards(cards))
    n = len(ordered)
    rank_counts = Counter(c.value for c in ordered)

    for detector in DDZ_PRIORITY:
        result = detector(ordered, n, rank_counts)
        if result is not None:
            return result
    return None


# ============================================================
#  辅助函数
# ============================================================

def _groups_by_count(rank_counts: Counter, count: int) -> List[int]:
    """返回出现恰好 count 次的所有点数，按点数排序"""
    return sorted(r for r, c in rank_counts.items() if c == count)


def _is_chain(values: List[int]) -> bool:
    """已排序的点数是否严格连续且不含 2 和王"""
    if any(v in CHAIN_FORBIDDEN for v in values):
        return False
    return all(values[i + 1] - values[i] == 1 for i in range(len(values) - 1))


# ============================================================
#  基础牌型检测
# ============================================================

def _detect_rocket(cards, n: int, rc: Counter) -> Optional[Combination]:
    """火箭：大王 + 小王"""
    if n == 2 and Rank.SMALL_JOKER in rc and Rank.BIG_JOKER in rc:
        return Combination(ComboType.ROCKET, cards, int(Rank.BIG_JOKER))
    return None


def _detect_bomb(cards, n: int, rc: Counter) -> Optional[Combination]:
    """炸弹：四张相同点数"""
    if n == 4 and len(rc) == 1:
        return Combination(ComboType.BOMB, cards, next(iter(rc)))
    return None


def _detect_single(cards, n: int, rc: Counter) -> Optional[Combination]:
    if n == 1:
        return Combination(ComboType.SINGLE, cards, cards[0].value)
    return None


def _detect_pair(cards, n: int, rc: Counter) -> Optional[Combination]:
    if n == 2 and len(rc) == 1:
        return Combination(ComboType.PAIR, cards, next(iter(rc)))
    return None


def _detect_triple(cards, n: int, rc: Counter) -> Optional[Combination]:
    if n == 3 and len(rc) == 1:
        return Combination(ComboType.TRIPLE, cards, next(iter(rc)))
    return None


# ============================================================
#  带牌类检测
# ============================================================

def _detect_triple_with_single(cards, n: int, rc: Counter) -> Optional[Combination]:
    """三带一：三条 + 一张单牌"""
    if n != 4:
        return None
    triples = _groups_by_count(rc, 3)
    if len(triples) == 1:
        return Combination(ComboType.TRIPLE_WITH_SINGLE, cards, triples[0])
    return None


def _detect_triple_with_pair(cards, n: int, rc: Counter) -> Optional[Combination]:
    """三带一对：三条 + 一个对子"""
    if n != 5:
        return None
    triples = _groups_by_count(rc, 3)
    pairs = _groups_by_count(rc, 2)
    if len(triples) == 1 and len(pairs) == 1:
        return Combination(ComboType.TRIPLE_WITH_PAIR, cards, triples[0])
    return None


# ============================================================
#  顺子类检测
# ============================================================

def _detect_straight(cards, n: int, rc: Counter) -> Optional[Combination]:
    """顺子：5~12 张连续单牌，不含 2 和王"""
    if n < MIN_STRAIGHT or n > MAX_STRAIGHT:
        return None
    if any(c != 1 for c in rc.values()):
        return None
    values = sorted(rc)
    if not _is_chain(values):
        return None
    return Combination(
        ComboType.STRAIGHT, cards, values[-1],
        chain_length=n, base_value=values[0],
    )


def _detect_straight_pair(cards, n: int, rc: Counter) -> Optional[Combination]:
    """连对：≥2 对连续对子，不含 2 和王"""
    if n % 2 != 0 or n // 2 < MIN_STRAIGHT_PAIRS:
        return None
    if any(c != 2 for c in rc.values()):
        return None
    values = sorted(rc)
    if not _is_chain(values):
        return None
    return Combination(
        ComboType.STRAIGHT_PAIR, cards, values[-1],
        chain_length=n // 2, base_value=values[0],
    )


# ============================================================
#  飞机类检测
# ============================================================

def _trio_windows(rc: Counter) -> List[List[int]]:
    """所有 ≥2 组的连续三条窗口，长的在前，同长度机头大的在前"""
    trios = sorted(r for r, c in rc.items() if c >= 3 and r not in CHAIN_FORBIDDEN)
    windows: List[List[int]] = []
    for i in range(len(trios)):
        for j in range(i + MIN_PLANE, len(trios) + 1):
            window = trios[i:j]
            if not _is_chain(window):
                break
            windows.append(window)
    windows.sort(key=lambda w: (-len(w), -w[-1]))
    return windows


def _detect_plane(cards, n: int, rc: Counter) -> Optional[Combination]:
    """飞机：连续三条，不带 / 带等量单牌 / 带等量对子"""
    for window in _trio_windows(rc):
        k = len(window)
        residual = Counter(rc)
        for r in window:
            residual[r] -= 3
        residual = +residual

        if n == 3 * k:
            combo_type = ComboType.PLANE
        elif n == 4 * k:
            combo_type = ComboType.PLANE_WITH_SINGLES
        elif n == 5 * k and all(c % 2 == 0 for c in residual.values()):
            combo_type = ComboType.PLANE_WITH_PAIRS
        else:
            continue
        return Combination(
            combo_type, cards, window[-1],
            chain_length=k, base_value=window[0],
        )
    return None


# 检测优先级：先匹配者胜。4/5/6 张存在歧义（如 4 张可能是炸弹或三带一），
# 顺序本身决定结果：火箭 > 炸弹 > 单/对/三 > 带牌 > 顺子 > 连对 > 飞机
DDZ_PRIORITY: Tuple[Detector, ...] = (
    _detect_rocket,
    _detect_bomb,
    _detect_single,
    _detect_pair,
    _detect_triple,
    _detect_triple_with_single,
    _detect_triple_with_pair,
    _detect_straight,
    _detect_straight_pair,
    _detect_plane,
)
