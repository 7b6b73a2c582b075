"""压牌判定单元测试 - 同型比较、炸弹层级与牌面校验"""

import pytest

from shedding_core.engine.card import apply_level, parse_cards
from shedding_core.engine.hand_detector import classify
from shedding_core.engine.comparator import beats, can_play_cards
from shedding_core.engine.ruleset import Ruleset


# ============================================================
#  辅助
# ============================================================

_ids = iter(range(10_000))


def h(text: str):
    """斗地主牌，card_id 在整个模块内不重复"""
    codes = text.split()
    return parse_cards(codes, start_id=next(_ids) * 20)


def ddz(text: str):
    return classify(h(text))


GD = Ruleset.guandan(15)


def gd(text: str):
    return classify(apply_level(h(text), GD.level_value), GD)


# ============================================================
#  斗地主
# ============================================================

class TestDoudizhu:

    def test_no_reference(self):
        assert beats(ddz("S3"), None)

    def test_pair_scenario(self):
        ref = ddz("S8 H8")
        assert not beats(ddz("C8 D8"), ref)
        assert beats(ddz("S9 H9"), ref)
        assert not beats(ddz("S9 H9 C9"), ref)

    def test_lower_never_beats(self):
        assert not beats(ddz("S5"), ddz("S6"))

    def test_straight_length_must_match(self):
        five = ddz("S3 H4 C5 D6 S7")
        six = ddz("S4 H5 C6 D7 S8 S9")
        assert not beats(six, five)
        assert not beats(five, six)
        assert beats(ddz("S4 H5 C6 D7 S8"), five)

    def test_triple_with_single_by_triple(self):
        assert beats(ddz("S9 H9 C9 D3"), ddz("S8 H8 C8 DA"))

    def test_bomb_beats_ordinary(self):
        bomb = ddz("S3 H3 C3 D3")
        assert beats(bomb, ddz("S2 H2"))
        assert beats(bomb, ddz("S3 H4 C5 D6 S7 S8 S9 S10"))

    def test_higher_bomb(self):
        assert beats(ddz("S4 H4 C4 D4"), ddz("S3 H3 C3 D3"))
        assert not beats(ddz("S3 H3 C3 D3"), ddz("S4 H4 C4 D4"))

    def test_rocket_beats_everything(self):
        rocket = ddz("BJ RJ")
        for ref in (ddz("S2"), ddz("S2 H2 C2 D2"), ddz("S3 H4 C5 D6 S7")):
            assert beats(rocket, ref)
        assert not beats(ddz("S2 H2 C2 D2"), rocket)


# ============================================================
#  掼蛋
# ============================================================

class TestGuandan:

    @pytest.mark.parametrize("n", [4, 5, 6, 7])
    def test_bomb_length_monotonic(self, n):
        aces = " ".join(["SA", "HA", "CA", "DA"] * 2).split()[:n]
        threes = " ".join(["S3", "H3", "C3", "D3"] * 2).split()[:n + 1]
        short, long_ = gd(" ".join(aces)), gd(" ".join(threes))
        assert beats(long_, short, GD)
        assert not beats(short, long_, GD)

    def test_four_jokers_beat_eight_bomb(self):
        assert beats(gd("BJ BJ RJ RJ"), gd("SA HA CA DA SA HA CA DA"), GD)

    def test_straight_flush_between_ordinary_and_bombs(self):
        flush = gd("S3 S4 S5 S6 S7")
        assert beats(flush, gd("SA HA CA DK SK"), GD)
        assert beats(flush, gd("S10 HJ CQ DK SA"), GD)
        assert not beats(flush, gd("S3 H3 C3 D3"), GD)
        assert beats(gd("S3 H3 C3 D3"), flush, GD)

    def test_higher_straight_flush(self):
        assert beats(gd("H4 H5 H6 H7 H8"), gd("S3 S4 S5 S6 S7"), GD)

    def test_level_pair_beats_ace_pair(self):
        assert beats(gd("S2 C2"), gd("SA HA"), GD)

    def test_category_mismatch(self):
        assert not beats(gd("S9 H9 C9"), gd("S8 H8"), GD)


# ============================================================
#  牌面校验
# ============================================================

class TestCanPlayCards:

    def test_free_lead_needs_valid_combination(self):
        assert can_play_cards(h("S3 H3"), None)
        assert not can_play_cards(h("S3 H4"), [])

    def test_invalid_candidate(self):
        assert not can_play_cards(h("S3 H4"), h("S5"))

    def test_invalid_reference(self):
        assert can_play_cards(h("S3"), h("S5 H6"))

    def test_both_invalid(self):
        assert not can_play_cards(h("S3 H4"), h("S5 H6"))

    def test_normal_compare(self):
        assert can_play_cards(h("SK"), h("SQ"))
        assert not can_play_cards(h("SJ"), h("SQ"))
