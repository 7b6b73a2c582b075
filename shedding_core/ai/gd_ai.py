"""掼蛋规则 AI - 四人局的出牌策略（级牌、逢人配、团队配合、炸弹时机）"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from shedding_core.engine.card import PLAIN_SUITS, Card, Rank
from shedding_core.engine.hand_type import ComboType, Combination
from shedding_core.engine.hand_detector import classify
from shedding_core.engine.comparator import beats
from shedding_core.engine.ruleset import ACE_LOW_POSITION, LEVEL_ORDER, Ruleset
from shedding_core.engine.gd_rules import STRAIGHT_LENGTH, run_windows
from shedding_core.ai.candidates import PlayCandidate, group_by_value, pick_best
from shedding_core.ai.context import TableContext

logger = logging.getLogger(__name__)

_JOKERS = (int(Rank.SMALL_JOKER), int(Rank.BIG_JOKER))

ENDGAME_SOLVER_SIZE = 6      # 出牌时手牌不多于此张数，先试一手或两手出完
ALL_SINGLES_ENDGAME = 10
ENDGAME_SIZE = 10
LAST_BOMB_SIZE = 5
EARLY_HAND_SIZE = 15         # 手牌多于此张数为前期，节省逢人配
TEAMMATE_STRUGGLING = 15
WEAK_PLAY_LIMIT = 10
RESCUE_MIN_ORDER = int(Rank.QUEEN)
PROTECTION_THRESHOLD = 10    # 对手少于此张数时需要帮队友防守
INTERCEPT_STREAK = 2
URGENT_ORDER = int(Rank.ACE)
SMALL_BOMB_LIMIT = 10
HIGH_RUN_TOP = int(Rank.ACE)


@dataclass(frozen=True)
class _Bomb:
    combination: Combination
    base_order: int
    valuable: bool

    @property
    def strength(self) -> Tuple[int, int]:
        return self.combination.bomb_tier, self.combination.main_value

    @property
    def small(self) -> bool:
        return not self.valuable and self.base_order < SMALL_BOMB_LIMIT


class GdAI:
    """基于规则的掼蛋 AI"""

    def __init__(self, ruleset: Optional[Ruleset] = None):
        self.ruleset = ruleset or Ruleset.guandan()

    def select_move(
        self,
        hand: Sequence[Card],
        reference: Optional[Combination],
        context: TableContext,
    ) -> Optional[Combination]:
        """出牌决策，返回要出的 Combination，None 表示不出"""
        if not hand:
            return None
        view = _HandView(list(hand), self.ruleset)
        if reference is None:
            move = self._lead(view, context)
        else:
            move = self._follow(view, reference, context)
        return self._validated(move, reference)

    def _validated(
        self, move: Optional[Combination], reference: Optional[Combination],
    ) -> Optional[Combination]:
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

    def _lead(self, view: "_HandView", ctx: TableContext) -> Optional[Combination]:
        if len(view.hand) <= ENDGAME_SOLVER_SIZE:
            solved = self._solve_endgame(view)
            if solved is not None:
                return solved

        candidates: List[PlayCandidate] = []
        for combos, base, bonus_high in (
            (view.runs(5, 1, ComboType.STRAIGHT), 0, True),
            (view.runs(2, 3, ComboType.PLANE), 1, True),
            (view.runs(3, 2, ComboType.STRAIGHT_PAIR), 0, True),
        ):
            for combo in combos:
                priority = len(combos) * 2 + base
                if bonus_high and combo.main_value >= HIGH_RUN_TOP:
                    priority += 3
                candidates.append(_candidate(combo, priority))

        for combos, scale in (
            (view.full_houses(), 2.0),
            (view.same_rank(3), 1.0),
            (view.same_rank(2), 0.5),
        ):
            for combo in combos:
                priority = len(combos) * scale - _high_card_penalty(combo.main_value)
                candidates.append(_candidate(combo, priority))

        best = pick_best(candidates)
        if best is not None:
            return best.combination
        return self._lead_single(view)

    def _solve_endgame(self, view: "_HandView") -> Optional[Combination]:
        """残局：整手能出就出完；否则留一个炸弹，剩下的一手出掉"""
        whole = classify(view.hand, self.ruleset)
        if whole is not None:
            return whole
        for bomb in view.bombs():
            bomb_ids = {c.card_id for c in bomb.combination.cards}
            rest = [c for c in view.hand if c.card_id not in bomb_ids]
            if rest:
                combo = classify(rest, self.ruleset)
                if combo is not None:
                    return combo
        return None

    def _lead_single(self, view: "_HandView") -> Optional[Combination]:
        """没有组合可出：全是单张且残局时从大出，否则出最小的单张"""
        orders = sorted(view.groups)
        if not orders:
            return classify(view.wilds[:1], self.ruleset)
        all_singles = all(len(cs) == 1 for cs in view.groups.values())
        if all_singles and len(view.hand) <= ALL_SINGLES_ENDGAME:
            return classify(view.groups[orders[-1]][:1], self.ruleset)
        return classify(view.groups[orders[0]][:1], self.ruleset)

    # ============================================================
    #  跟牌
    # ============================================================

    def _follow(
        self, view: "_HandView", last: Combination, ctx: TableContext,
    ) -> Optional[Combination]:
        if ctx.last_is_teammate:
            return self._rescue_teammate(view, last, ctx)

        opponent_cards = ctx.count_of(ctx.last_player_id) if ctx.last_player_id is not None else 27
        protection = opponent_cards < PROTECTION_THRESHOLD
        aggressive = protection and ctx.pass_count >= 1
        conserve = len(view.hand) > EARLY_HAND_SIZE and not protection
        intercept = ctx.consecutive_of(ctx.last_player_id) >= INTERCEPT_STREAK

        if not last.is_bomb:
            candidates = self._beat_candidates(view, last, aggressive, conserve)
            best = pick_best(c for c in candidates if beats(c.combination, last, self.ruleset))
            if best is not None:
                return best.combination

        return self._bomb_policy(view, last, aggressive, intercept)

    def _rescue_teammate(
        self, view: "_HandView", last: Combination, ctx: TableContext,
    ) -> Optional[Combination]:
        """
        队友出的牌原则上不压。只有队友手牌还很多、又出了小单/小对，
        容易被对手截走时，用 Q 以上的同型牌接过来。
        """
        struggling = ctx.count_of(ctx.last_player_id) > TEAMMATE_STRUGGLING
        weak = last.type in (ComboType.SINGLE, ComboType.PAIR) and last.main_value < WEAK_PLAY_LIMIT
        if not (struggling and weak):
            return None
        size = 1 if last.type == ComboType.SINGLE else 2
        for order in sorted(view.groups):
            cs = view.groups[order]
            if order >= RESCUE_MIN_ORDER and order > last.main_value and len(cs) == size:
                return classify(cs, self.ruleset)
        return None

    def _beat_candidates(
        self, view: "_HandView", last: Combination, aggressive: bool, conserve: bool,
    ) -> List[PlayCandidate]:
        """
        非炸弹压牌候选，priority 为负的档次：越靠前的档越优先，同档出小的。
        优先用刚好成组、又不在顺子/连对/钢板里的牌；逢人配放最后。
        """
        t = last.type
        in_runs = view.run_card_ids()
        out: List[PlayCandidate] = []

        def free(cs: List[Card]) -> List[Card]:
            return [c for c in cs if c.card_id not in in_runs]

        if t == ComboType.SINGLE:
            endgame = len(view.hand) <= ENDGAME_SIZE
            for order, cs in view.groups.items():
                if order <= last.main_value or len(cs) > 3:
                    continue
                if order in _JOKERS and view.has_four_jokers:
                    continue
                if len(cs) <= 2 and free(cs):
                    out.append(_tiered(classify(free(cs)[:1], self.ruleset), len(cs) - 1))
                    continue
                if order >= URGENT_ORDER and last.main_value < WEAK_PLAY_LIMIT \
                        and not aggressive and not endgame:
                    continue
                out.append(_tiered(classify(cs[:1], self.ruleset), 2))
            if view.wilds and (not conserve or aggressive):
                out.append(_tiered(classify(view.wilds[:1], self.ruleset), 3))

        elif t == ComboType.PAIR:
            for order, cs in view.groups.items():
                if order <= last.main_value or not 2 <= len(cs) <= 3:
                    continue
                if order in _JOKERS and view.has_four_jokers:
                    continue
                if len(free(cs)) >= 2:
                    out.append(_tiered(classify(free(cs)[:2], self.ruleset), len(cs) - 2))
                else:
                    out.append(_tiered(classify(cs[:2], self.ruleset), 2))
            if not conserve or aggressive:
                for combo in view.same_rank(2, wild_only=True):
                    out.append(_tiered(combo, 3))

        elif t == ComboType.TRIPLE:
            for order, cs in view.groups.items():
                if order <= last.main_value or len(cs) != 3:
                    continue
                tier = 0 if len(free(cs)) == 3 else 1
                out.append(_tiered(classify(cs, self.ruleset), tier))
            if not conserve or aggressive:
                for combo in view.same_rank(3, wild_only=True):
                    out.append(_tiered(combo, 2))

        elif t == ComboType.TRIPLE_WITH_PAIR:
            for combo in view.full_houses():
                out.append(_tiered(combo, combo.wildcards_used))

        elif t == ComboType.STRAIGHT:
            for combo in view.runs(5, 1, ComboType.STRAIGHT):
                out.append(_tiered(combo, combo.wildcards_used))
        elif t == ComboType.STRAIGHT_PAIR:
            for combo in view.runs(3, 2, ComboType.STRAIGHT_PAIR):
                out.append(_tiered(combo, combo.wildcards_used))
        elif t == ComboType.PLANE:
            for combo in view.runs(2, 3, ComboType.PLANE):
                out.append(_tiered(combo, combo.wildcards_used))

        return [c for c in out if c is not None]

    def _bomb_policy(
        self, view: "_HandView", last: Combination, aggressive: bool, intercept: bool,
    ) -> Optional[Combination]:
        """
        炸弹时机：
        1. 上家是炸弹：用最小的能压住的炸弹
        2. 激进模式（对手快走完且已有人不要）：先小炸弹，再大炸弹
        3. 拦截（对手连续出牌 ≥2）：小炸弹
        4. 残局（≤10 张）或上家出了 A 以上：小炸弹；≤5 张或紧急时动用大炸弹
        """
        valid = sorted(
            (b for b in view.bombs() if beats(b.combination, last, self.ruleset)),
            key=lambda b: b.strength,
        )
        if not valid:
            return None
        small = [b for b in valid if b.small]
        valuable = [b for b in valid if b.valuable]

        if last.is_bomb:
            return valid[0].combination
        if aggressive:
            pool = small or valuable
            if pool:
                return pool[0].combination
        if intercept and small:
            return small[0].combination

        urgent = last.main_value >= URGENT_ORDER
        if len(view.hand) <= ENDGAME_SIZE or urgent:
            if small:
                return small[0].combination
            if (len(view.hand) <= LAST_BOMB_SIZE or urgent) and valuable:
                return valuable[0].combination
        return None


# ============================================================
#  手牌视图：分组与候选组合生成（含逢人配）
# ============================================================

class _HandView:
    """一手掼蛋牌的分组视图；groups 以比较顺序（rank_order）为键，不含逢人配"""

    def __init__(self, hand: List[Card], ruleset: Ruleset):
        self.hand = hand
        self.ruleset = ruleset
        self.wilds = [c for c in hand if ruleset.is_wild(c)]
        naturals = [c for c in hand if not ruleset.is_wild(c)]
        self.groups: Dict[int, List[Card]] = dict(
            sorted(group_by_value(naturals, key=lambda c: ruleset.rank_order(c.value)).items())
        )
        self._run_ids: Optional[Set[int]] = None

    def _take(self, order: int, count: int, wilds: List[Card]) -> Optional[List[Card]]:
        """取 count 张该点数的牌，不够用逢人配补；王不能用逢人配补"""
        current = self.groups.get(order, [])
        need = count - len(current)
        if need <= 0:
            return current[:count]
        if order in _JOKERS or len(wilds) < need:
            return None
        return current + wilds[:need]

    def _classify_as(self, cards: Optional[List[Card]], combo_type: ComboType) -> Optional[Combination]:
        if not cards:
            return None
        combo = classify(cards, self.ruleset)
        if combo is None or combo.type != combo_type:
            return None
        return combo

    def same_rank(self, size: int, wild_only: bool = False) -> List[Combination]:
        """所有对子/三张（不拆炸弹）；wild_only 时只要必须用逢人配凑成的"""
        combo_type = ComboType.PAIR if size == 2 else ComboType.TRIPLE
        result: List[Combination] = []
        for order, cs in self.groups.items():
            if len(cs) >= 4:
                continue
            if wild_only and len(cs) >= size:
                continue
            combo = self._classify_as(self._take(order, size, self.wilds), combo_type)
            if combo is not None:
                result.append(combo)
        return result

    def full_houses(self) -> List[Combination]:
        """三带二：每个三张配最小的可用对子"""
        result: List[Combination] = []
        for order, cs in self.groups.items():
            if order in _JOKERS or len(cs) >= 4:
                continue
            triple = self._take(order, 3, self.wilds)
            if triple is None:
                continue
            left = [w for w in self.wilds if w not in triple]
            for pair_order, pcs in self.groups.items():
                if pair_order == order or len(pcs) >= 4:
                    continue
                pair = self._take(pair_order, 2, left)
                combo = self._classify_as(triple + pair if pair else None, ComboType.TRIPLE_WITH_PAIR)
                if combo is not None:
                    result.append(combo)
                    break
        return result

    def runs(self, groups: int, group_size: int, combo_type: ComboType) -> List[Combination]:
        """顺子/连对/钢板：每个位置至少一张自然牌（顺子除外），不含级牌位置"""
        forbidden = self.ruleset.forbidden_positions
        result: List[Combination] = []
        for window in run_windows(groups):
            if forbidden.intersection(window):
                continue
            wilds = list(self.wilds)
            cards: List[Card] = []
            for position in window:
                order = self._position_order(position)
                if group_size > 1 and not self.groups.get(order):
                    break
                if len(self.groups.get(order, [])) >= 4:
                    break
                taken = self._take(order, group_size, wilds)
                if taken is None:
                    break
                wilds = [w for w in wilds if w not in taken]
                cards.extend(taken)
            else:
                combo = self._classify_as(cards, combo_type)
                if combo is not None:
                    result.append(combo)
        return result

    def _position_order(self, position: int) -> int:
        """连续牌型的位置 → groups 的键"""
        if position == ACE_LOW_POSITION:
            return self.ruleset.rank_order(int(Rank.ACE))
        if position == 2:
            return self.ruleset.rank_order(int(Rank.TWO))
        return self.ruleset.rank_order(position)

    @property
    def has_four_jokers(self) -> bool:
        return sum(1 for c in self.hand if c.is_joker) == 4

    def run_card_ids(self) -> Set[int]:
        """能组成顺子/连对/钢板的自然牌"""
        if self._run_ids is None:
            ids: Set[int] = set()
            for combo in (
                self.runs(5, 1, ComboType.STRAIGHT)
                + self.runs(2, 3, ComboType.PLANE)
                + self.runs(3, 2, ComboType.STRAIGHT_PAIR)
            ):
                ids.update(c.card_id for c in combo.cards if not c.is_wild)
            self._run_ids = ids
        return self._run_ids

    def straight_flushes(self) -> List[Combination]:
        """每种花色、每个 5 连窗口的同花顺，缺的位置用逢人配补；不拆 4 张以上的炸弹"""
        forbidden = self.ruleset.forbidden_positions
        result: List[Combination] = []
        for suit in PLAIN_SUITS:
            for window in run_windows(STRAIGHT_LENGTH):
                if forbidden.intersection(window):
                    continue
                wilds = list(self.wilds)
                cards: List[Card] = []
                for position in window:
                    group = self.groups.get(self._position_order(position), [])
                    same = [c for c in group if c.suit == suit]
                    if same and len(group) < 4:
                        cards.append(same[0])
                    elif wilds:
                        cards.append(wilds.pop(0))
                    else:
                        break
                else:
                    combo = self._classify_as(cards, ComboType.STRAIGHT_FLUSH)
                    if combo is not None:
                        result.append(combo)
        return result

    def bombs(self) -> List[_Bomb]:
        """
        手里的炸弹：同花顺；自然 4 张以上整组成炸；不足 4 张的用逢人配补到 4 张；四王。
        A 以上或级牌的炸弹视为大炸弹，留到关键时刻；同花顺按起点算大小。
        """
        result: List[_Bomb] = [
            _Bomb(combo, combo.base_value, False) for combo in self.straight_flushes()
        ]
        level_order = self.ruleset.rank_order(self.ruleset.level_value)
        for order, cs in self.groups.items():
            if order in _JOKERS:
                continue
            cards = cs if len(cs) >= 4 else self._take(order, 4, self.wilds)
            combo = self._classify_as(cards, ComboType.BOMB)
            if combo is None:
                continue
            valuable = order >= URGENT_ORDER or order == level_order
            result.append(_Bomb(combo, order, valuable))
        jokers = [c for c in self.hand if c.is_joker]
        combo = self._classify_as(jokers if len(jokers) == 4 else None, ComboType.FOUR_JOKERS)
        if combo is not None:
            result.append(_Bomb(combo, int(Rank.BIG_JOKER), True))
        return result


def _high_card_penalty(order: int) -> int:
    """级牌和 A 的三张/对子留着，前期不轻易打出"""
    if order == LEVEL_ORDER:
        return 3
    if order >= int(Rank.ACE):
        return 2
    return 0


def _candidate(combo: Combination, priority: float) -> PlayCandidate:
    # 同优先级先出小的，再少用逢人配
    return PlayCandidate(combo, priority, combo.main_value + 0.1 * combo.wildcards_used)


def _tiered(combo: Optional[Combination], tier: int) -> Optional[PlayCandidate]:
    if combo is None:
        return None
    return PlayCandidate(combo, -tier, combo.main_value)
