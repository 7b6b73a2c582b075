"""进贡 / 还贡单元测试 - 单下、双下、抗贡与先出权"""

import pytest

from shedding_core.engine.card import apply_level, parse_cards
from shedding_core.engine.ruleset import Ruleset
from shedding_core.game.tribute import (
    is_double_tribute, plan_tribute, return_card, tribute_card,
)


RULESET = Ruleset.guandan(15)


def hands(*texts: str, level: int = 15):
    """每个座位一手牌，card_id 互不重叠"""
    return [
        apply_level(parse_cards(text.split(), start_id=seat * 100), level)
        for seat, text in enumerate(texts)
    ]


# ============================================================
#  选牌
# ============================================================

class TestCardChoice:

    def test_tribute_skips_wild_but_keeps_level_card(self):
        hand = hands("H2 S2 DA C5")[0]
        card = tribute_card(hand, RULESET)
        assert card.code == "S2"

    def test_tribute_prefers_joker(self):
        hand = hands("RJ SA S2")[0]
        assert tribute_card(hand, RULESET).code == "RJ"

    def test_return_lowest_small_card(self):
        hand = hands("S9 D4 SK S3")[0]
        assert return_card(hand, RULESET).code == "S3"

    def test_return_never_level_card(self):
        hand = hands("SJ SQ S2")[0]
        assert return_card(hand, RULESET).code == "SJ"


# ============================================================
#  进贡方案
# ============================================================

class TestPlanTribute:

    def test_double_detection(self):
        assert is_double_tribute([0, 2, 1, 3])
        assert not is_double_tribute([0, 1, 3, 2])

    def test_single_tribute(self):
        hs = hands("S3 D4 H9 SK", "S5", "H2 S2 DA C5", "C6")
        plan = plan_tribute([0, 1, 3, 2], hs, RULESET)

        assert not plan.anti_tribute
        assert len(plan.exchanges) == 1
        ex = plan.exchanges[0]
        assert (ex.payer, ex.receiver) == (2, 0)
        assert ex.tribute_card.code == "S2"
        assert ex.return_card.code == "S3"
        assert plan.leader == 2

    def test_double_tribute_larger_card_to_head(self):
        hs = hands("S3 SA", "RJ C4", "D9 HJ", "SK D5")
        plan = plan_tribute([0, 2, 1, 3], hs, RULESET)

        pairs = [(ex.payer, ex.receiver, ex.tribute_card.code) for ex in plan.exchanges]
        assert pairs == [(1, 0, "RJ"), (3, 2, "SK")]
        assert [ex.return_card.code for ex in plan.exchanges] == ["S3", "D9"]
        assert plan.leader == 1

    def test_equal_tribute_last_place_pays_head(self):
        hs = hands("S3", "SA D4", "D9", "HA C5")
        plan = plan_tribute([0, 2, 1, 3], hs, RULESET)
        assert plan.exchanges[0].payer == 3
        assert plan.exchanges[0].receiver == 0
        assert plan.leader == 3

    def test_anti_tribute_single(self):
        hs = hands("S3", "S5", "RJ RJ S4", "C6")
        plan = plan_tribute([0, 1, 3, 2], hs, RULESET)
        assert plan.anti_tribute
        assert plan.exchanges == ()
        assert plan.leader == 0

    def test_anti_tribute_split_between_losers(self):
        hs = hands("S3", "RJ C4", "D9", "RJ D5")
        plan = plan_tribute([0, 2, 1, 3], hs, RULESET)
        assert plan.anti_tribute
        assert plan.leader == 0

    @pytest.mark.parametrize("order", [[0, 1, 2], [0, 1, 1, 3]])
    def test_bad_order(self, order):
        with pytest.raises(ValueError):
            plan_tribute(order, hands("S3", "S4", "S5", "S6"), RULESET)
