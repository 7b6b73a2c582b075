# 游戏引擎模块
from .card import (
    Card, Rank, Suit, apply_level, create_deck, create_double_deck,
    parse_cards, shuffle_and_deal, sort_cards,
)
from .errors import (
    EngineError, DuplicateCardError, InvalidLevelError, InvalidSnapshotError, UnknownCardError,
)
from .ruleset import Ruleset, Variant
from .hand_type import ComboType, Combination
from .hand_detector import classify
from .comparator import beats, can_play_cards
