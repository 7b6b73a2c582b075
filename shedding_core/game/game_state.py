"""游戏状态 - 斗地主 / 掼蛋一局游戏的完整状态与事件记录"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from shedding_core.engine.card import Card, Rank
from shedding_core.engine.hand_type import Combination
from shedding_core.engine.ruleset import Ruleset
from shedding_core.ai.context import TableContext
from shedding_core.game.player import Player
from shedding_core.game.tribute import TributePlan


class GamePhase(str, Enum):
    """游戏阶段"""
    WAITING = "WAITING"         # 等待开始
    DEALING = "DEALING"         # 发牌中
    BIDDING = "BIDDING"         # 叫地主
    TRIBUTE = "TRIBUTE"         # 进贡 / 还贡（掼蛋）
    PLAYING = "PLAYING"         # 出牌中
    FINISHED = "FINISHED"       # 已结束


@dataclass
class GameEvent:
    """游戏事件记录"""
    phase: GamePhase
    player_id: int
    action: str                  # "claim", "tribute", "return", "anti_tribute", "play", "pass", "lead", "finish"
    data: Any = None             # 是否叫地主 / Card / Combination / None


@dataclass
class _TableState:
    """两种玩法共用的出牌桌面状态"""
    players: List[Player]
    phase: GamePhase = GamePhase.WAITING

    current_player: int = 0          # 当前出牌玩家
    last_play: Optional[Combination] = None
    last_player: Optional[int] = None
    pass_count: int = 0              # 连续不出次数
    consecutive_plays: List[int] = field(default_factory=list)

    events: List[GameEvent] = field(default_factory=list)
    play_history: List[Tuple[int, Combination]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.consecutive_plays:
            self.consecutive_plays = [0] * len(self.players)

    def clear_table(self) -> None:
        self.last_play = None
        self.last_player = None
        self.pass_count = 0

    def record_play(self, pid: int, combo: Combination) -> None:
        """出牌成功：该玩家连续出牌数 +1，其他人清零"""
        for i in range(len(self.consecutive_plays)):
            self.consecutive_plays[i] = self.consecutive_plays[i] + 1 if i == pid else 0
        self.last_play = combo
        self.last_player = pid
        self.pass_count = 0
        self.play_history.append((pid, combo))

    def _context(self, pid: int, landlord_id: Optional[int]) -> TableContext:
        return TableContext(
            player_id=pid,
            hand_counts=tuple(p.hand_size for p in self.players),
            last_player_id=self.last_player,
            pass_count=self.pass_count,
            consecutive_plays=tuple(self.consecutive_plays),
            landlord_id=landlord_id,
        )


@dataclass
class GameState(_TableState):
    """一局斗地主的完整状态"""
    bottom_cards: List[Card] = field(default_factory=list)

    # 叫地主相关
    first_bidder: int = 0            # 首叫玩家
    claims: List[Optional[bool]] = field(default_factory=lambda: [None, None, None])
    landlord_id: Optional[int] = None

    bomb_count: int = 0              # 本局炸弹/火箭数

    # 结算相关
    winner: Optional[int] = None
    is_spring: bool = False          # 春天
    is_anti_spring: bool = False     # 反春天
    multiplier: int = 1

    def context_for(self, pid: int) -> TableContext:
        return self._context(pid, self.landlord_id)


@dataclass
class GdState(_TableState):
    """一局掼蛋的完整状态"""
    ruleset: Ruleset = field(default_factory=Ruleset.guandan)
    finish_order: List[int] = field(default_factory=list)
    tribute: Optional[TributePlan] = None
    team_levels: Dict[int, int] = field(
        default_factory=lambda: {0: int(Rank.TWO), 1: int(Rank.TWO)}
    )
    winning_team: Optional[int] = None
    level_delta: int = 0
    match_won: bool = False          # 获胜方打过 A

    def context_for(self, pid: int) -> TableContext:
        return self._context(pid, None)
