"""牌模型单元测试 - 建牌、级牌标记、发牌与牌面代码"""

import random

import pytest

from shedding_core.engine.card import (
    Card, Rank, Suit, apply_level, create_deck, create_double_deck,
    parse_cards, shuffle_and_deal, sort_cards,
)
from shedding_core.engine.errors import EngineError, UnknownCardError


# ============================================================
#  建牌
# ============================================================

class TestDecks:

    def test_single_deck_has_54_unique_cards(self):
        deck = create_deck()
        assert len(deck) == 54
        assert len({c.card_id for c in deck}) == 54
        assert sum(1 for c in deck if c.is_joker) == 2

    def test_double_deck_ids_are_unique(self):
        deck = create_double_deck()
        assert len(deck) == 108
        assert {c.card_id for c in deck} == set(range(108))
        hearts_five = [c for c in deck if c.rank == Rank.FIVE and c.suit == Suit.HEART]
        assert len(hearts_five) == 2

    def test_value_matches_rank(self):
        assert Card(Rank.TWO, Suit.SPADE).value == 15
        assert Card(Rank.SMALL_JOKER, Suit.JOKER).value == 16
        assert Card(Rank.BIG_JOKER, Suit.JOKER).value == 17


# ============================================================
#  级牌 / 逢人配
# ============================================================

class TestApplyLevel:

    def test_only_heart_level_cards_are_wild(self):
        deck = apply_level(create_double_deck(), int(Rank.FIVE))
        wild = [c for c in deck if c.is_wild]
        assert len(wild) == 2
        assert all(c.rank == Rank.FIVE and c.suit == Suit.HEART for c in wild)

    def test_marking_keeps_identity(self):
        plain = parse_cards(["H7"])
        marked = apply_level(plain, 7)
        assert marked[0].is_wild
        assert marked[0] == plain[0]
        assert hash(marked[0]) == hash(plain[0])


# ============================================================
#  发牌
# ============================================================

class TestShuffleAndDeal:

    def test_three_player_split(self):
        hands, bottom = shuffle_and_deal(create_deck(), 3, 17, random.Random(1))
        assert [len(h) for h in hands] == [17, 17, 17]
        assert len(bottom) == 3
        dealt = [c.card_id for h in hands for c in h] + [c.card_id for c in bottom]
        assert sorted(dealt) == list(range(54))

    def test_four_player_split(self):
        hands, bottom = shuffle_and_deal(create_double_deck(), 4, 27, random.Random(2))
        assert [len(h) for h in hands] == [27] * 4
        assert bottom == []

    def test_same_seed_same_deal(self):
        a, _ = shuffle_and_deal(create_deck(), rng=random.Random(7))
        b, _ = shuffle_and_deal(create_deck(), rng=random.Random(7))
        assert a == b

    def test_not_enough_cards(self):
        with pytest.raises(ValueError):
            shuffle_and_deal(create_deck(), 4, 27)

    def test_hands_are_sorted(self):
        hands, _ = shuffle_and_deal(create_deck(), rng=random.Random(3))
        for hand in hands:
            assert hand == sort_cards(hand)


# ============================================================
#  牌面代码
# ============================================================

class TestParseCards:

    def test_codes(self):
        cards = parse_cards(["S3", "h10", "DA", "C2", "BJ", "RJ"])
        assert [c.value for c in cards] == [3, 10, 14, 15, 16, 17]
        assert [c.card_id for c in cards] == [0, 1, 2, 3, 4, 5]
        assert cards[1].suit == Suit.HEART

    def test_start_id(self):
        cards = parse_cards(["S3", "S4"], start_id=10)
        assert [c.card_id for c in cards] == [10, 11]

    def test_code_round_trip(self):
        cards = parse_cards(["SQ", "H10", "BJ"])
        assert [c.code for c in cards] == ["SQ", "H10", "BJ"]

    @pytest.mark.parametrize("code", ["X3", "S1", "S", "JOKER", ""])
    def test_unknown_code(self, code):
        with pytest.raises(UnknownCardError):
            parse_cards([code])

    def test_unknown_code_is_engine_and_value_error(self):
        with pytest.raises(EngineError):
            parse_cards(["Z9"])
        with pytest.raises(ValueError):
            parse_cards(["Z9"])
