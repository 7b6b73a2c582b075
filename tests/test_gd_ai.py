"""掼蛋规则 AI 单元测试 - 出牌优先级、残局、跟牌、炸弹时机与团队配合"""

import random
from typing import Optional, Tuple

import pytest

from shedding_core.engine.card import apply_level, create_double_deck, parse_cards, shuffle_and_deal
from shedding_core.engine.hand_type import ComboType
from shedding_core.engine.hand_detector import classify
from shedding_core.engine.comparator import beats
from shedding_core.engine.ruleset import Ruleset
from shedding_core.ai.context import TableContext
from shedding_core.ai.gd_ai import GdAI
from shedding_core.ai.selector import select_move, selector_for
from shedding_core.ai.ddz_ai import DdzAI


RULESET = Ruleset.guandan(15)


# ============================================================
#  辅助工具
# ============================================================

def h(text: str, level: int = 15):
    return apply_level(parse_cards(text.split()), level)


def ref(text: str, level: int = 15):
    cards = apply_level(parse_cards(text.split(), start_id=200), level)
    return classify(cards, Ruleset.guandan(level))


def ctx(
    player_id: int = 0,
    counts: Tuple[int, ...] = (27, 27, 27, 27),
    last_player_id: Optional[int] = None,
    pass_count: int = 0,
    consecutive: Tuple[int, ...] = (0, 0, 0, 0),
) -> TableContext:
    return TableContext(
        player_id=player_id,
        hand_counts=counts,
        last_player_id=last_player_id,
        pass_count=pass_count,
        consecutive_plays=consecutive,
    )


# ============================================================
#  主动出牌
# ============================================================

class TestLead:

    def setup_method(self):
        self.ai = GdAI(RULESET)

    def test_endgame_whole_hand(self):
        move = self.ai.select_move(h("S3 H3 C3 S5 H5"), None, ctx(counts=(5, 27, 27, 27)))
        assert move.type == ComboType.TRIPLE_WITH_PAIR

    def test_endgame_keeps_bomb(self):
        move = self.ai.select_move(h("S9 H9 C9 D9 S4 H4"), None, ctx(counts=(6, 27, 27, 27)))
        assert move.type == ComboType.PAIR
        assert move.main_value == 4

    def test_straight_first(self):
        move = self.ai.select_move(
            h("S3 H4 C5 D6 S7 S9 HJ DK"), None, ctx(counts=(8, 27, 27, 27)),
        )
        assert move.type == ComboType.STRAIGHT
        assert move.main_value == 7

    def test_low_pair_before_level_pair(self):
        move = self.ai.select_move(
            h("S2 C2 S6 H6 S9 HJ DK SA"), None, ctx(counts=(8, 27, 27, 27)),
        )
        assert move.type == ComboType.PAIR
        assert move.main_value == 6

    def test_all_singles_endgame_plays_highest(self):
        move = self.ai.select_move(h("S3 H7 D9 SJ CK"), None, ctx(counts=(5, 27, 27, 27)))
        assert move.type == ComboType.SINGLE
        assert move.main_value == 13


# ============================================================
#  跟牌
# ============================================================

class TestFollow:

    def setup_method(self):
        self.ai = GdAI(RULESET)

    def test_cheapest_free_single(self):
        move = self.ai.select_move(
            h("S3 S7 H9 C9 SK"), ref("S5"),
            ctx(counts=(5, 20, 27, 27), last_player_id=1),
        )
        assert move.type == ComboType.SINGLE
        assert move.main_value == 7

    def test_natural_pair_before_wild_pair(self):
        move = self.ai.select_move(
            h("S8 H2 S10 C10 S3"), ref("S6 H6"),
            ctx(counts=(5, 20, 27, 27), last_player_id=1),
        )
        assert move.type == ComboType.PAIR
        assert move.main_value == 10
        assert move.wildcards_used == 0

    def test_wild_pair_when_needed(self):
        move = self.ai.select_move(
            h("S8 H2 S3 C5"), ref("S6 H6"),
            ctx(counts=(4, 20, 27, 27), last_player_id=1),
        )
        assert move.type == ComboType.PAIR
        assert move.main_value == 8
        assert move.wildcards_used == 1

    def test_pass_on_teammate(self):
        move = self.ai.select_move(
            h("SA S3 S4"), ref("S10"),
            ctx(counts=(3, 20, 8, 27), last_player_id=2),
        )
        assert move is None

    def test_rescue_struggling_teammate(self):
        move = self.ai.select_move(
            h("S8 SQ S4"), ref("S5"),
            ctx(counts=(3, 20, 20, 27), last_player_id=2),
        )
        assert move.type == ComboType.SINGLE
        assert move.main_value == 12


# ============================================================
#  炸弹时机
# ============================================================

class TestBombPolicy:

    def setup_method(self):
        self.ai = GdAI(RULESET)

    def test_smallest_bomb_over_bomb(self):
        move = self.ai.select_move(
            h("S3 H3 C3 D3 S9 H9 C9 D9 SK"), ref("S5 H5 C5 D5"),
            ctx(counts=(9, 20, 27, 27), last_player_id=1),
        )
        assert move.type == ComboType.BOMB
        assert move.main_value == 9

    def test_small_bomb_against_high_single(self):
        hand = h("S3 H4 S6 H6 C6 D6 S8 S9 S10 SJ HQ DK")
        move = self.ai.select_move(hand, ref("SA"), ctx(counts=(12, 20, 27, 27), last_player_id=1))
        assert move.type == ComboType.BOMB
        assert move.main_value == 6

    def test_no_bomb_for_low_single_early(self):
        hand = h("S3 H4 S6 H6 C6 D6 S8 S9 S10 SJ HQ DK")
        move = self.ai.select_move(hand, ref("DK"), ctx(counts=(12, 20, 27, 27), last_player_id=1))
        assert move is None

    def test_small_bomb_in_endgame(self):
        move = self.ai.select_move(
            h("S3 H4 S6 H6 C6 D6 S8"), ref("DK"),
            ctx(counts=(7, 20, 27, 27), last_player_id=1),
        )
        assert move.type == ComboType.BOMB
        assert move.main_value == 6

    def test_intercept_with_small_bomb(self):
        hand = h("S3 H4 S6 H6 C6 D6 S8 S9 S10 SJ HQ DK")
        move = self.ai.select_move(
            hand, ref("DK"),
            ctx(counts=(12, 20, 27, 27), last_player_id=1, consecutive=(0, 2, 0, 0)),
        )
        assert move.type == ComboType.BOMB


class TestStraightFlush:

    def setup_method(self):
        self.ai = GdAI(RULESET)

    def test_straight_flush_over_high_single(self):
        move = self.ai.select_move(
            h("S3 S4 S5 S6 S7 H9 DJ"), ref("SA"),
            ctx(counts=(7, 20, 27, 27), last_player_id=1),
        )
        assert move.type == ComboType.STRAIGHT_FLUSH
        assert move.main_value == 7

    def test_higher_straight_flush_answers_lower(self):
        move = self.ai.select_move(
            h("C3 C4 C5 C6 C7 S5 S6 S7 S8 S9 DK"), ref("H4 H5 H6 H7 H8"),
            ctx(counts=(11, 20, 27, 27), last_player_id=1),
        )
        assert move.type == ComboType.STRAIGHT_FLUSH
        assert move.main_value == 9

    def test_wild_fills_straight_flush(self):
        move = self.ai.select_move(
            h("S4 S5 S7 S8 H2 DK"), ref("C3 C4 C5 C6 C7"),
            ctx(counts=(6, 20, 27, 27), last_player_id=1),
        )
        assert move.type == ComboType.STRAIGHT_FLUSH
        assert move.main_value == 8
        assert move.wildcards_used == 1

    def test_no_answer_to_higher_straight_flush(self):
        move = self.ai.select_move(
            h("S3 S4 S5 S6 S7 DK"), ref("H6 H7 H8 H9 H10"),
            ctx(counts=(6, 20, 27, 27), last_player_id=1),
        )
        assert move is None


# ============================================================
#  规则集分派与合法性
# ============================================================

class TestSelector:

    def test_selector_for_variant(self):
        assert isinstance(selector_for(RULESET), GdAI)
        assert isinstance(selector_for(Ruleset.doudizhu()), DdzAI)

    @pytest.mark.parametrize("seed", range(6))
    def test_moves_reclassify_and_beat(self, seed):
        rng = random.Random(seed)
        level = rng.choice([5, 10, 14, 15])
        ruleset = Ruleset.guandan(level)
        deck = apply_level(create_double_deck(), level)
        hands, _ = shuffle_and_deal(deck, 4, 27, rng)

        counts = (27, 27, 27, 27)
        lead = select_move(hands[0], None, ctx(counts=counts), ruleset)
        assert lead is not None
        assert classify(lead.cards, ruleset).type == lead.type

        for pid in (1, 3):
            answer = select_move(
                hands[pid], lead, ctx(player_id=pid, counts=counts, last_player_id=0), ruleset,
            )
            if answer is not None:
                assert classify(answer.cards, ruleset).type == answer.type
                assert beats(answer, lead, ruleset)
