"""掼蛋牌型检测单元测试 - 级牌、逢人配、连续牌型与炸弹"""

import pytest

from shedding_core.engine.card import apply_level, parse_cards
from shedding_core.engine.errors import InvalidLevelError
from shedding_core.engine.hand_type import ComboType
from shedding_core.engine.hand_detector import GD_PRIORITY, classify
from shedding_core.engine.ruleset import LEVEL_ORDER, Ruleset


# ============================================================
#  辅助
# ============================================================

def gd(text: str, level: int = 15):
    """按级牌解析一组掼蛋牌，返回 (cards, ruleset)"""
    return apply_level(parse_cards(text.split()), level), Ruleset.guandan(level)


def detect(text: str, level: int = 15):
    cards, ruleset = gd(text, level)
    return classify(cards, ruleset)


# ============================================================
#  规则集
# ============================================================

class TestRuleset:

    @pytest.mark.parametrize("level", [2, 16, 17])
    def test_invalid_level(self, level):
        with pytest.raises(InvalidLevelError):
            Ruleset.guandan(level)

    def test_rank_order(self):
        ruleset = Ruleset.guandan(7)
        assert ruleset.rank_order(7) == LEVEL_ORDER
        assert ruleset.rank_order(15) == 2
        assert ruleset.rank_order(14) == 14
        assert ruleset.rank_order(16) == 16

    def test_forbidden_positions(self):
        assert Ruleset.guandan(15).forbidden_positions == {2}
        assert Ruleset.guandan(14).forbidden_positions == {14, 1}
        assert Ruleset.guandan(9).forbidden_positions == {9}


# ============================================================
#  同点数类
# ============================================================

class TestSameRank:

    def test_level_single_orders_above_ace(self):
        combo = detect("S5", level=5)
        assert combo.type == ComboType.SINGLE
        assert combo.main_value == LEVEL_ORDER

    def test_natural_two_orders_lowest(self):
        combo = detect("S2", level=5)
        assert combo.main_value == 2

    def test_natural_plus_wild_pair(self):
        combo = detect("S9 H5", level=5)
        assert combo.type == ComboType.PAIR
        assert combo.main_value == 9
        assert combo.wildcards_used == 1

    def test_two_wilds_pair_counts_as_level(self):
        combo = detect("H5 H5", level=5)
        assert combo.type == ComboType.PAIR
        assert combo.main_value == LEVEL_ORDER
        assert combo.wildcards_used == 0

    def test_wild_cannot_substitute_joker(self):
        assert detect("BJ H5", level=5) is None

    def test_identical_jokers_pair(self):
        combo = detect("RJ RJ")
        assert combo.type == ComboType.PAIR
        assert combo.main_value == 17

    def test_mixed_jokers_not_pair(self):
        assert detect("BJ RJ") is None

    def test_triple_with_wild(self):
        combo = detect("SK DK H5", level=5)
        assert combo.type == ComboType.TRIPLE
        assert combo.main_value == 13
        assert combo.wildcards_used == 1


# ============================================================
#  炸弹
# ============================================================

class TestBombs:

    def test_four_jokers(self):
        combo = detect("BJ BJ RJ RJ")
        assert combo.type == ComboType.FOUR_JOKERS

    def test_bomb_with_wild(self):
        combo = detect("S9 H9 C9 H5", level=5)
        assert combo.type == ComboType.BOMB
        assert combo.main_value == 9
        assert combo.wildcards_used == 1

    def test_six_card_bomb(self):
        combo = detect("S9 H9 C9 D9 S9 H9")
        assert combo.type == ComboType.BOMB
        assert combo.length == 6

    def test_eight_card_bomb(self):
        combo = detect("SA HA CA DA SA HA CA DA")
        assert combo.type == ComboType.BOMB
        assert combo.length == 8

    def test_jokers_never_form_bomb(self):
        assert detect("BJ BJ RJ H5", level=5) is None

    def test_straight_flush(self):
        combo = detect("S3 S4 S5 S6 S7")
        assert combo.type == ComboType.STRAIGHT_FLUSH
        assert combo.main_value == 7
        assert combo.is_bomb

    def test_straight_flush_with_wild_gap(self):
        combo = detect("S3 S4 S6 S7 H2")
        assert combo.type == ComboType.STRAIGHT_FLUSH
        assert combo.main_value == 7
        assert combo.wildcards_used == 1

    def test_wild_run_with_mixed_suits_stays_straight(self):
        combo = detect("S3 S4 H5 S6 H2")
        assert combo.type == ComboType.STRAIGHT
        assert combo.wildcards_used == 1

    def test_straight_flush_skips_level_position(self):
        assert detect("S6 S7 S8 S9 H9", level=9) is None


# ============================================================
#  连续牌型
# ============================================================

class TestRuns:

    def test_natural_straight(self):
        combo = detect("S3 H4 C5 D6 S7")
        assert combo.type == ComboType.STRAIGHT
        assert combo.main_value == 7
        assert combo.base_value == 3

    def test_level_card_breaks_straight(self):
        assert detect("S3 H4 S2 D6 C7") is None

    def test_wild_fills_gap(self):
        combo = detect("S3 H4 H2 D6 C7")
        assert combo.type == ComboType.STRAIGHT
        assert combo.main_value == 7
        assert combo.wildcards_used == 1

    def test_level_rank_forbidden_in_run(self):
        assert detect("S3 S4 C5 D6 C7", level=7) is None

    def test_ace_low_straight(self):
        combo = detect("SA H2 C3 D4 S5", level=10)
        assert combo.type == ComboType.STRAIGHT
        assert combo.main_value == 5
        assert combo.base_value == 1

    def test_ace_high_straight(self):
        combo = detect("S10 HJ CQ DK SA")
        assert combo.type == ComboType.STRAIGHT
        assert combo.main_value == 14

    def test_straight_must_be_five(self):
        assert detect("S3 H4 C5 D6 S7 D8") is None

    def test_straight_pair(self):
        combo = detect("S3 H3 S4 H4 S5 H5")
        assert combo.type == ComboType.STRAIGHT_PAIR
        assert combo.main_value == 5
        assert combo.chain_length == 3

    def test_two_pairs_run_invalid(self):
        assert detect("S3 H3 S4 H4") is None

    def test_plate(self):
        combo = detect("S3 H3 C3 S4 H4 C4")
        assert combo.type == ComboType.PLANE
        assert combo.main_value == 4
        assert combo.chain_length == 2


# ============================================================
#  三带二
# ============================================================

class TestFullHouse:

    def test_natural(self):
        combo = detect("S8 H8 C8 S5 H5")
        assert combo.type == ComboType.TRIPLE_WITH_PAIR
        assert combo.main_value == 8

    def test_wild_completes_pair(self):
        combo = detect("S8 H8 C8 S5 H10", level=10)
        assert combo.type == ComboType.TRIPLE_WITH_PAIR
        assert combo.main_value == 8
        assert combo.wildcards_used == 1

    def test_wild_prefers_higher_head(self):
        combo = detect("S8 D8 S5 D5 H10", level=10)
        assert combo.type == ComboType.TRIPLE_WITH_PAIR
        assert combo.main_value == 8

    def test_triple_with_single_is_invalid(self):
        assert detect("S8 H8 C8 S5") is None


class TestPriority:

    def test_priority_list_order(self):
        names = [d.__name__ for d in GD_PRIORITY]
        assert names[:3] == ["_detect_four_jokers", "_detect_bomb", "_detect_straight_flush"]

    @pytest.mark.parametrize("code", ["S3", "HK", "DA", "S2", "BJ", "RJ"])
    def test_any_single_card(self, code):
        cards, ruleset = gd(code)
        combo = classify(cards, ruleset)
        assert combo.type == ComboType.SINGLE
        assert combo.main_value == ruleset.rank_order(cards[0].value)
