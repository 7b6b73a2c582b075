"""牌的定义 - 单副(54张)/双副(108张)扑克牌的数据模型与发牌工具"""

from enum import IntEnum, Enum
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Sequence, Tuple
import random

from .errors import UnknownCardError


class Rank(IntEnum):
    """点数枚举（数值即牌值，越大牌越大）"""
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14
    TWO = 15
    SMALL_JOKER = 16
    BIG_JOKER = 17


class Suit(str, Enum):
    """花色枚举"""
    SPADE = "♠"
    HEART = "♥"
    CLUB = "♣"
    DIAMOND = "♦"
    JOKER = "🃏"


PLAIN_SUITS = (Suit.SPADE, Suit.HEART, Suit.CLUB, Suit.DIAMOND)
JOKER_RANKS = frozenset({Rank.SMALL_JOKER, Rank.BIG_JOKER})

# 点数显示映射
RANK_DISPLAY = {
    Rank.THREE: "3", Rank.FOUR: "4", Rank.FIVE: "5",
    Rank.SIX: "6", Rank.SEVEN: "7", Rank.EIGHT: "8",
    Rank.NINE: "9", Rank.TEN: "10", Rank.JACK: "J",
    Rank.QUEEN: "Q", Rank.KING: "K", Rank.ACE: "A",
    Rank.TWO: "2", Rank.SMALL_JOKER: "小王", Rank.BIG_JOKER: "大王",
}

# 牌面代码: 花色字母 + 点数, 如 S3 / H10 / DA; BJ=小王, RJ=大王
_SUIT_CODES = {"S": Suit.SPADE, "H": Suit.HEART, "C": Suit.CLUB, "D": Suit.DIAMOND}
_RANK_CODES = {v: k for k, v in RANK_DISPLAY.items() if k not in JOKER_RANKS}
_JOKER_CODES = {"BJ": Rank.SMALL_JOKER, "RJ": Rank.BIG_JOKER}


@dataclass(frozen=True)
class Card:
    """一张扑克牌。

    card_id 是物理牌的身份标识：双副牌中点数花色完全相同的两张牌靠它区分。
    is_wild 只在掼蛋中由 apply_level 设置（红桃级牌 = 逢人配）。
    相等与哈希只看 card_id，标记百搭前后仍是同一张牌。
    """
    rank: Rank = field(compare=False)
    suit: Suit = field(compare=False)
    card_id: int = 0
    is_wild: bool = field(default=False, compare=False)

    @property
    def value(self) -> int:
        return int(self.rank)

    @property
    def is_joker(self) -> bool:
        return self.rank in JOKER_RANKS

    @property
    def display(self) -> str:
        if self.is_joker:
            return RANK_DISPLAY[self.rank]
        return f"{self.suit.value}{RANK_DISPLAY[self.rank]}"

    @property
    def code(self) -> str:
        """反向生成 parse_cards 可识别的代码"""
        if self.rank == Rank.SMALL_JOKER:
            return "BJ"
        if self.rank == Rank.BIG_JOKER:
            return "RJ"
        suit_code = next(k for k, v in _SUIT_CODES.items() if v == self.suit)
        return f"{suit_code}{RANK_DISPLAY[self.rank]}"

    def __repr__(self) -> str:
        return self.display + ("*" if self.is_wild else "")

    def __lt__(self, other: "Card") -> bool:
        return (self.rank, self.card_id) < (other.rank, other.card_id)


# ============================================================
#  建牌
# ============================================================

def _build_single_deck(start_id: int) -> List[Card]:
    deck: List[Card] = []
    card_id = start_id
    ranks = [r for r in Rank if r not in JOKER_RANKS]
    for rank in ranks:
        for suit in PLAIN_SUITS:
            deck.append(Card(rank=rank, suit=suit, card_id=card_id))
            card_id += 1
    deck.append(Card(rank=Rank.SMALL_JOKER, suit=Suit.JOKER, card_id=card_id))
    deck.append(Card(rank=Rank.BIG_JOKER, suit=Suit.JOKER, card_id=card_id + 1))
    return deck


def create_deck() -> List[Card]:
    """创建一副54张标准扑克牌（斗地主）"""
    deck = _build_single_deck(0)
    assert len(deck) == 54, f"牌数错误: {len(deck)}"
    return deck


def create_double_deck() -> List[Card]:
    """创建两副共108张扑克牌（掼蛋），card_id 全局唯一"""
    deck = _build_single_deck(0) + _build_single_deck(54)
    assert len(deck) == 108, f"牌数错误: {len(deck)}"
    return deck


def apply_level(cards: Iterable[Card], level_value: int) -> List[Card]:
    """按本局级牌标记逢人配：只有红桃级牌是百搭，其余级牌仍是普通牌"""
    return [
        replace(c, is_wild=(c.value == level_value and c.suit == Suit.HEART))
        for c in cards
    ]


def shuffle_and_deal(
    deck: Sequence[Card],
    players: int = 3,
    share: int = 17,
    rng: Optional[random.Random] = None,
) -> Tuple[List[List[Card]], List[Card]]:
    """洗牌并发牌: 返回 (各玩家手牌, 底牌)。

    斗地主 3x17 + 3 张底牌；掼蛋 4x27，底牌为空。
    """
    if players * share > len(deck):
        raise ValueError(f"牌数不足: {len(deck)} < {players}x{share}")
    shuffled = list(deck)
    (rng or random).shuffle(shuffled)

    hands = [
        sort_cards(shuffled[i * share:(i + 1) * share])
        for i in range(players)
    ]
    bottom = sort_cards(shuffled[players * share:])
    return hands, bottom


def sort_cards(cards: Iterable[Card]) -> List[Card]:
    """按点数排序手牌（从小到大，同点数按 card_id）"""
    return sorted(cards, key=lambda c: (c.rank, c.card_id))


def parse_cards(codes: Iterable[str], start_id: int = 0) -> List[Card]:
    """解析牌面代码列表，依次分配 card_id。

    >>> parse_cards(["S3", "H10", "BJ"])
    [♠3, ♥10, 小王]
    """
    cards: List[Card] = []
    for offset, raw in enumerate(codes):
        text = raw.strip().upper()
        card_id = start_id + offset
        if text in _JOKER_CODES:
            cards.append(Card(rank=_JOKER_CODES[text], suit=Suit.JOKER, card_id=card_id))
            continue
        suit = _SUIT_CODES.get(text[:1])
        rank = _RANK_CODES.get(text[1:])
        if suit is None or rank is None:
            raise UnknownCardError(f"无法识别的牌面代码: {raw!r}")
        cards.append(Card(rank=rank, suit=suit, card_id=card_id))
    return cards
