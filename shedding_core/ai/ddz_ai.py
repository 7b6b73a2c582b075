"""斗地主规则 AI - 三人局的叫地主与出牌策略"""

import logging
import random
from typing import Dict, Iterable, List, Optional, Sequence, Set

from shedding_core.engine.card import Card, Rank
from shedding_core.engine.hand_type import ComboType, Combination
from shedding_core.engine.hand_detector import classify
from shedding_core.engine.comparator import beats
from shedding_core.engine.ruleset import Ruleset
from shedding_core.ai.bidding import BiddingConfig, decide_claim
from shedding_core.ai.candidates import PlayCandidate, group_by_value, pick_best
from shedding_core.ai.context import TableContext

logger = logging.getLogger(__name__)

# 顺子/连对/飞机不允许的点数
_CHAIN_FORBIDDEN = {Rank.TWO, Rank.SMALL_JOKER, Rank.BIG_JOKER}
_JOKERS = (int(Rank.SMALL_JOKER), int(Rank.BIG_JOKER))

# 出牌阶段各牌型的优先级区间，长牌型优先
PLANE_PRIORITY = 30
TRIPLE_PRIORITY = 20
STRAIGHT_PAIR_PRIORITY = 15
STRAIGHT_PRIORITY = 10
PAIR_PRIORITY = 5

# 拆开更大的组（对子拆单、三张拆对）的额外代价
SPLIT_COST = 4

DEFENSE_THRESHOLD = 5     # 对手少于此张数进入残局防守
EARLY_HAND_SIZE = 14      # 手牌不少于此张数视为前期
EARLY_TRIPLE_LIMIT = int(Rank.JACK)
URGENT_OPPONENT = 3
URGENT_SELF = 4
EMERGENCY_OPPONENT = 2
INTERCEPT_STREAK = 2


class DdzAI:
    """基于规则的斗地主 AI"""

    def __init__(
        self,
        bidding: Optional[BiddingConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.ruleset = Ruleset.doudizhu()
        self.bidding = bidding or BiddingConfig()
        self.rng = rng or random.Random()

    def decide_claim(self, hand: Sequence[Card]) -> bool:
        """叫地主决策"""
        return decide_claim(hand, self.bidding, self.rng)

    def select_move(
        self,
        hand: Sequence[Card],
        reference: Optional[Combination],
        context: TableContext,
    ) -> Optional[Combination]:
        """
        出牌决策，返回要出的 Combination，None 表示不出。
        出牌阶段（reference 为 None）必定出牌；跟牌阶段只返回能压过 reference 的牌。
        """
        if not hand:
            return None
        if reference is None:
            move = self._lead(list(hand), context)
        else:
            move = self._follow(list(hand), reference, context)
        return self._validated(move, reference)

    def _validated(
        self, move: Optional[Combination], reference: Optional[Combination],
    ) -> Optional[Combination]:
        """提交前重新识别一次，不合法或压不过一律改为不出"""
        if move is None:
            return None
        again = classify(move.cards, self.ruleset)
        if again is None or again.type != move.type or not beats(again, reference, self.ruleset):
            logger.warning("丢弃不合法的候选出牌: %r (上家 %r)", move, reference)
            return None
        return again

    # ============================================================
    #  主动出牌
    # ============================================================

    def _lead(self, hand: List[Card], ctx: TableContext) -> Optional[Combination]:
        whole = classify(hand, self.ruleset)
        if whole is not None:
            return whole

        groups = group_by_value(hand)
        defense = any(
            0 < ctx.count_of(p) < DEFENSE_THRESHOLD
            for p in ctx.opponents_of(ctx.player_id)
        )
        early = not defense and len(hand) >= EARLY_HAND_SIZE

        candidates: List[PlayCandidate] = []
        candidates.extend(self._lead_planes(groups))
        candidates.extend(self._lead_triples(groups, early))
        candidates.extend(self._lead_runs(groups, group_size=2, min_groups=3,
                                          base=STRAIGHT_PAIR_PRIORITY))
        candidates.extend(self._lead_runs(groups, group_size=1, min_groups=5,
                                          base=STRAIGHT_PRIORITY))
        candidates.extend(self._lead_pairs(groups))

        best = pick_best(candidates)
        if best is not None:
            return best.combination
        return self._lead_single(groups, defense)

    def _lead_planes(self, groups: Dict[int, List[Card]]) -> Iterable[PlayCandidate]:
        """飞机：带单 > 带对 > 不带，机身越长越优先"""
        trios = sorted(v for v, cs in groups.items() if len(cs) == 3 and v not in _CHAIN_FORBIDDEN)
        for chain in self._chains(trios, 2):
            used = set(chain)
            body = [c for v in chain for c in groups[v][:3]]
            for bonus, wing_size in ((0.2, 1), (0.1, 2), (0.0, 0)):
                wings = self._find_wings(groups, used, len(chain), wing_size) if wing_size else []
                if wings is None:
                    continue
                combo = classify(body + wings, self.ruleset)
                if combo is not None:
                    yield PlayCandidate(combo, PLANE_PRIORITY + len(chain) + bonus, chain[-1])

    def _lead_triples(self, groups: Dict[int, List[Card]], early: bool) -> Iterable[PlayCandidate]:
        """三带一 / 三带一对 / 三张；前期不拿 J 以上的三张开局"""
        for v in sorted(v for v, cs in groups.items() if len(cs) == 3):
            if early and v > EARLY_TRIPLE_LIMIT:
                continue
            priority = TRIPLE_PRIORITY
            if v == Rank.TWO:
                priority -= 3
            elif v == Rank.ACE:
                priority -= 2
            trio = groups[v][:3]
            for wing_size in (1, 2, 0):
                wings = self._find_wings(groups, {v}, 1, wing_size) if wing_size else []
                if wings is None:
                    continue
                combo = classify(trio + wings, self.ruleset)
                if combo is not None:
                    yield PlayCandidate(combo, priority, v)
                    break

    def _lead_runs(
        self, groups: Dict[int, List[Card]], group_size: int, min_groups: int, base: int,
    ) -> Iterable[PlayCandidate]:
        """顺子/连对：取每一段最长的连续点数，不拆炸弹"""
        avail = sorted(
            v for v, cs in groups.items()
            if v not in _CHAIN_FORBIDDEN and group_size <= len(cs) < 4
        )
        for chain in self._maximal_chains(avail, min_groups):
            cards = [c for v in chain for c in groups[v][:group_size]]
            combo = classify(cards, self.ruleset)
            if combo is not None:
                yield PlayCandidate(combo, base + len(chain), chain[-1])

    def _lead_pairs(self, groups: Dict[int, List[Card]]) -> Iterable[PlayCandidate]:
        for v in sorted(v for v, cs in groups.items() if len(cs) == 2):
            priority = PAIR_PRIORITY
            if v == Rank.TWO:
                priority -= 3
            elif v == Rank.ACE:
                priority -= 2
            combo = classify(groups[v], self.ruleset)
            if combo is not None:
                yield PlayCandidate(combo, priority, v)

    def _lead_single(self, groups: Dict[int, List[Card]], defense: bool) -> Optional[Combination]:
        """
        没有成型的组合时出单张。
        残局防守且手里只剩单张：从大往小出，抢出牌权；否则出最小的单张。
        """
        singles = sorted(v for v, cs in groups.items() if len(cs) == 1)
        if singles:
            only_singles = all(len(cs) == 1 for cs in groups.values())
            v = singles[-1] if defense and only_singles else singles[0]
            return classify(groups[v][:1], self.ruleset)

        bombs = sorted(v for v, cs in groups.items() if len(cs) == 4)
        if bombs:
            return classify(groups[bombs[0]], self.ruleset)
        lowest = min(groups)
        return classify(groups[lowest][:1], self.ruleset)

    # ============================================================
    #  跟牌
    # ============================================================

    def _follow(
        self, hand: List[Card], last: Combination, ctx: TableContext,
    ) -> Optional[Combination]:
        if last.type == ComboType.ROCKET:
            return None

        # 队友（另一个农民）出的牌不压，除非能一手出完
        if ctx.last_is_teammate:
            whole = classify(hand, self.ruleset)
            if whole is not None and beats(whole, last, self.ruleset):
                return whole
            return None

        groups = group_by_value(hand)
        opponent_min = ctx.min_opponent_count()

        if last.type == ComboType.SINGLE and 0 < opponent_min <= EMERGENCY_OPPONENT:
            # 对手快走完了，直接顶最大的单张
            top = max(groups)
            if top > last.main_value:
                return classify(groups[top][:1], self.ruleset)
            return self._bomb_fallback(groups, last, ctx, opponent_min, len(hand))

        best = pick_best(self._beat_candidates(groups, last))
        if best is not None:
            return best.combination
        return self._bomb_fallback(groups, last, ctx, opponent_min, len(hand))

    def _beat_candidates(
        self, groups: Dict[int, List[Card]], last: Combination,
    ) -> Iterable[PlayCandidate]:
        """按代价生成同牌型的压牌候选：代价 = 点数，拆大组额外加价"""
        t = last.type
        if t in (ComboType.SINGLE, ComboType.PAIR, ComboType.TRIPLE):
            size = {ComboType.SINGLE: 1, ComboType.PAIR: 2, ComboType.TRIPLE: 3}[t]
            yield from self._beat_same_rank(groups, last.main_value, size, wing_size=0)
        elif t == ComboType.TRIPLE_WITH_SINGLE:
            yield from self._beat_same_rank(groups, last.main_value, 3, wing_size=1)
        elif t == ComboType.TRIPLE_WITH_PAIR:
            yield from self._beat_same_rank(groups, last.main_value, 3, wing_size=2)
        elif t == ComboType.STRAIGHT:
            yield from self._beat_chain(groups, last, group_size=1)
        elif t == ComboType.STRAIGHT_PAIR:
            yield from self._beat_chain(groups, last, group_size=2)
        elif t in (ComboType.PLANE, ComboType.PLANE_WITH_SINGLES, ComboType.PLANE_WITH_PAIRS):
            yield from self._beat_chain(groups, last, group_size=3)
        elif t == ComboType.BOMB:
            for v in sorted(v for v, cs in groups.items() if len(cs) == 4 and v > last.main_value):
                combo = classify(groups[v], self.ruleset)
                if combo is not None:
                    yield PlayCandidate(combo, 0, v)

    def _beat_same_rank(
        self, groups: Dict[int, List[Card]], target: int, size: int, wing_size: int,
    ) -> Iterable[PlayCandidate]:
        rocket = all(j in groups for j in _JOKERS)
        for v in sorted(groups):
            cs = groups[v]
            if v <= target or len(cs) < size or len(cs) == 4:
                continue
            if rocket and v in _JOKERS:
                continue
            cost = v + (SPLIT_COST if len(cs) > size else 0)
            cards = cs[:size]
            if wing_size:
                wings = self._find_wings(groups, {v}, 1, wing_size)
                if wings is None:
                    continue
                cards = cards + wings
            combo = classify(cards, self.ruleset)
            if combo is not None:
                yield PlayCandidate(combo, -cost, v)

    def _beat_chain(
        self, groups: Dict[int, List[Card]], last: Combination, group_size: int,
    ) -> Iterable[PlayCandidate]:
        """跟顺子/连对/飞机：同长度、顶牌更大的最小连续段，飞机按原牌型带翅膀"""
        avail = sorted(
            v for v, cs in groups.items()
            if v not in _CHAIN_FORBIDDEN and group_size <= len(cs) < 4
        )
        chain = self._find_chain(avail, last.chain_length, last.main_value)
        if chain is None:
            return
        cards = [c for v in chain for c in groups[v][:group_size]]
        wing_size = {
            ComboType.PLANE_WITH_SINGLES: 1,
            ComboType.PLANE_WITH_PAIRS: 2,
        }.get(last.type, 0)
        if wing_size:
            wings = self._find_wings(groups, set(chain), len(chain), wing_size)
            if wings is None:
                return
            cards += wings
        combo = classify(cards, self.ruleset)
        if combo is not None:
            yield PlayCandidate(combo, 0, chain[-1])

    def _bomb_fallback(
        self,
        groups: Dict[int, List[Card]],
        last: Combination,
        ctx: TableContext,
        opponent_min: int,
        hand_size: int,
    ) -> Optional[Combination]:
        """
        常规牌压不住时是否动用炸弹/火箭：
        对手剩牌 ≤3、自己剩牌 ≤4，或上家已连续出牌成功 ≥2 次（拦截）。
        """
        urgent = 0 < opponent_min <= URGENT_OPPONENT or hand_size <= URGENT_SELF
        intercept = ctx.consecutive_of(ctx.last_player_id) >= INTERCEPT_STREAK
        if not (urgent or intercept):
            return None
        if last.type != ComboType.BOMB:
            bombs = sorted(v for v, cs in groups.items() if len(cs) == 4)
            if bombs:
                return classify(groups[bombs[0]], self.ruleset)
        if all(j in groups for j in _JOKERS):
            return classify([groups[j][0] for j in _JOKERS], self.ruleset)
        return None

    # ============================================================
    #  链式查找辅助
    # ============================================================

    @staticmethod
    def _find_chain(avail_ranks: List[int], length: int, min_max_rank: int) -> Optional[List[int]]:
        """
        在 avail_ranks（已排序）中找到 length 个连续点数的序列，
        且序列最大值 > min_max_rank。返回最小的满足条件的序列。
        """
        if len(avail_ranks) < length:
            return None
        for i in range(len(avail_ranks) - length + 1):
            window = avail_ranks[i:i + length]
            is_consecutive = all(window[j + 1] - window[j] == 1 for j in range(length - 1))
            if is_consecutive and window[-1] > min_max_rank:
                return window
        return None

    @staticmethod
    def _maximal_chains(avail_ranks: List[int], min_length: int) -> List[List[int]]:
        """把已排序点数切成极长的连续段，只保留不短于 min_length 的"""
        chains: List[List[int]] = []
        current: List[int] = []
        for v in avail_ranks:
            if current and v != current[-1] + 1:
                chains.append(current)
                current = []
            current.append(v)
        if current:
            chains.append(current)
        return [c for c in chains if len(c) >= min_length]

    @classmethod
    def _chains(cls, avail_ranks: List[int], min_length: int) -> List[List[int]]:
        """所有长度 ≥ min_length 的连续子段（飞机机身候选）"""
        result: List[List[int]] = []
        for chain in cls._maximal_chains(avail_ranks, min_length):
            for size in range(len(chain), min_length - 1, -1):
                for i in range(len(chain) - size + 1):
                    result.append(chain[i:i + size])
        return result

    # ============================================================
    #  带牌辅助方法
    # ============================================================

    @staticmethod
    def _find_wings(
        groups: Dict[int, List[Card]], exclude: Set[int], count: int, size: int,
    ) -> Optional[List[Card]]:
        """
        找 count 组翅膀（每组 size 张，size=1 单牌 / 2 对子），排除 exclude 中的点数。
        先用刚好 size 张的组，再拆更大的组；不拆炸弹，不拆火箭。
        """
        rocket = all(j in groups for j in _JOKERS)
        usable = [
            v for v in sorted(groups)
            if v not in exclude and size <= len(groups[v]) < 4
            and not (rocket and v in _JOKERS)
        ]
        ordered = (
            [v for v in usable if len(groups[v]) == size]
            + [v for v in usable if len(groups[v]) > size]
        )
        if len(ordered) < count:
            return None
        wings: List[Card] = []
        for v in ordered[:count]:
            wings.extend(groups[v][:size])
        return wings
