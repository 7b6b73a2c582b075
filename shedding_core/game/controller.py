"""游戏控制器 - 驱动斗地主一局游戏的完整流程"""

import logging
import random
from typing import Callable, List, Optional, Protocol, Sequence

from shedding_core.engine.card import Card, create_deck, shuffle_and_deal
from shedding_core.engine.hand_type import Combination
from shedding_core.engine.hand_detector import classify
from shedding_core.engine.comparator import beats
from shedding_core.engine.ruleset import Ruleset
from shedding_core.ai.context import TableContext
from shedding_core.game.player import Player, Role
from shedding_core.game.game_state import GameState, GamePhase, GameEvent

logger = logging.getLogger(__name__)

PLAYERS = 3
HAND_SHARE = 17


class AIStrategy(Protocol):
    """AI 决策接口（策略模式）"""

    def decide_claim(self, hand: Sequence[Card]) -> bool:
        """是否叫地主"""
        ...

    def select_move(
        self,
        hand: Sequence[Card],
        reference: Optional[Combination],
        context: TableContext,
    ) -> Optional[Combination]:
        """决定出牌：返回要出的 Combination，None=不出(PASS)"""
        ...


class GameController:
    """游戏控制器：驱动一局斗地主的完整流程"""

    def __init__(
        self,
        player_names: List[str],
        strategies: List[AIStrategy],
        rng: Optional[random.Random] = None,
    ):
        if len(player_names) != PLAYERS or len(strategies) != PLAYERS:
            raise ValueError("斗地主需要 3 名玩家和 3 个策略")
        self.players = [
            Player(id=i, name=name) for i, name in enumerate(player_names)
        ]
        self.strategies = strategies
        self.ruleset = Ruleset.doudizhu()
        self.rng = rng or random.Random()
        self.state = GameState(players=self.players)
        self._callbacks: List[Callable[[GameEvent], None]] = []

    def on_event(self, callback: Callable[[GameEvent], None]) -> None:
        """注册事件回调"""
        self._callbacks.append(callback)

    def _emit(self, event: GameEvent) -> None:
        """触发事件通知"""
        self.state.events.append(event)
        for cb in self._callbacks:
            cb(event)

    # ============================================================
    #  发牌阶段
    # ============================================================

    def deal(self) -> None:
        """洗牌发牌：每人 17 张，留 3 张底牌"""
        self.state.phase = GamePhase.DEALING
        hands, bottom = shuffle_and_deal(create_deck(), PLAYERS, HAND_SHARE, self.rng)
        for player, hand in zip(self.players, hands):
            player.take_cards(hand)
        self.state.bottom_cards = bottom

        # 随机选首叫玩家
        self.state.first_bidder = self.rng.randrange(PLAYERS)
        self.state.phase = GamePhase.BIDDING

    # ============================================================
    #  叫地主阶段
    # ============================================================

    def run_bidding(self) -> bool:
        """
        从首叫玩家起依次表态，第一个叫的人当地主。
        返回 True=成功确定地主，False=三人都不叫需重新发牌。
        """
        s = self.state
        for i in range(PLAYERS):
            pid = (s.first_bidder + i) % PLAYERS
            claim = bool(self.strategies[pid].decide_claim(self.players[pid].hand))
            s.claims[pid] = claim
            self._emit(GameEvent(GamePhase.BIDDING, pid, "claim", claim))
            if claim:
                self._assign_landlord(pid)
                return True
        return False

    def _assign_landlord(self, pid: int) -> None:
        """确定地主：分配角色、发底牌"""
        landlord = self.players[pid]
        landlord.role = Role.LANDLORD
        landlord.take_cards(self.state.bottom_cards)

        for p in self.players:
            if p.id != pid:
                p.role = Role.FARMER

        self.state.landlord_id = pid
        self.state.current_player = pid
        self.state.phase = GamePhase.PLAYING
        logger.info("%s 成为地主", landlord.name)

    # ============================================================
    #  出牌阶段
    # ============================================================

    def run_playing(self) -> None:
        """执行出牌流程，直到有人出完牌"""
        s = self.state
        while s.phase == GamePhase.PLAYING:
            self._play_one_turn()

    def _play_one_turn(self) -> None:
        """执行一个玩家的出牌回合"""
        s = self.state
        pid = s.current_player
        player = self.players[pid]

        # 两家都不要，出牌权回到最后出牌的人
        if s.pass_count >= PLAYERS - 1:
            s.clear_table()
        is_free = s.last_play is None

        move = self.strategies[pid].select_move(
            list(player.hand), s.last_play, s.context_for(pid),
        )
        if is_free and not self._is_legal_lead(player, move):
            # 空桌时必须出牌
            logger.warning("%s 主动出牌没有给出合法的牌 %r，强制出最小的单张", player.name, move)
            move = classify(player.hand[:1], self.ruleset)

        if move is None:
            self._handle_pass(pid)
        else:
            self._handle_play(pid, move)

    def _is_legal_lead(self, player: Player, move: Optional[Combination]) -> bool:
        if move is None or not player.has_cards(move.cards):
            return False
        return classify(move.cards, self.ruleset) is not None

    def _handle_pass(self, pid: int) -> None:
        """处理不出"""
        s = self.state
        s.pass_count += 1
        self._emit(GameEvent(GamePhase.PLAYING, pid, "pass"))
        s.current_player = (pid + 1) % PLAYERS

    def _handle_play(self, pid: int, move: Combination) -> None:
        """处理出牌：重新校验，任何不合法的出牌都按不出处理"""
        s = self.state
        player = self.players[pid]

        if not player.has_cards(move.cards):
            logger.warning("%s 出了手里没有的牌 %r，按不出处理", player.name, move)
            self._handle_pass(pid)
            return

        combo = classify(move.cards, self.ruleset)
        if combo is None or not beats(combo, s.last_play, self.ruleset):
            logger.warning("%s 的出牌 %r 不合法或压不过 %r，按不出处理",
                           player.name, move, s.last_play)
            self._handle_pass(pid)
            return

        player.remove_cards(combo.cards)
        player.play_count += 1
        if combo.is_bomb:
            s.bomb_count += 1
        s.record_play(pid, combo)
        self._emit(GameEvent(GamePhase.PLAYING, pid, "play", combo))

        if player.hand_size == 0:
            self._finish_game(pid)
            return

        s.current_player = (pid + 1) % PLAYERS

    # ============================================================
    #  结算阶段
    # ============================================================

    def _finish_game(self, winner_id: int) -> None:
        """游戏结束，计算结果"""
        s = self.state
        s.phase = GamePhase.FINISHED
        s.winner = winner_id

        landlord = next(p for p in self.players if p.is_landlord)
        farmers = [p for p in self.players if not p.is_landlord]

        # 春天判定：地主赢 + 农民都没出过牌 = 春天
        # 反春判定：农民赢 + 地主只出了一手牌 = 反春
        if landlord.id == winner_id:
            if all(f.play_count == 0 for f in farmers):
                s.is_spring = True
        else:
            if landlord.play_count <= 1:
                s.is_anti_spring = True

        s.multiplier = self._calc_multiplier()
        landlord_wins = (landlord.id == winner_id)
        self._settle_scores(landlord, farmers, s.multiplier, landlord_wins)
        self._emit(GameEvent(GamePhase.FINISHED, winner_id, "finish", s.multiplier))
        logger.info("本局结束: %s 获胜, 倍数 %d", self.players[winner_id].name, s.multiplier)

    def _calc_multiplier(self) -> int:
        """计算本局最终倍数：每个炸弹/火箭 ×2，春天/反春再 ×2"""
        s = self.state
        m = 2 ** s.bomb_count
        if s.is_spring or s.is_anti_spring:
            m *= 2
        return m

    @staticmethod
    def _settle_scores(
        landlord: Player,
        farmers: List[Player],
        multiplier: int,
        landlord_wins: bool,
    ) -> None:
        """结算积分"""
        if landlord_wins:
            landlord.score += 2 * multiplier
            for f in farmers:
                f.score -= multiplier
        else:
            landlord.score -= 2 * multiplier
            for f in farmers:
                f.score += multiplier

    # ============================================================
    #  完整游戏入口
    # ============================================================

    def run_game(self, max_redeal: int = 3) -> GameState:
        """
        运行一局完整游戏。
        max_redeal: 三人都不叫时最多重新发牌次数，超过后首叫玩家强制当地主。
        """
        for _ in range(max(1, max_redeal)):
            self._reset_round()
            self.deal()
            if self.run_bidding():
                break
            logger.info("三人都不叫，重新发牌")
        else:
            self._assign_landlord(self.state.first_bidder)

        self.run_playing()
        return self.state

    def _reset_round(self) -> None:
        """重置一轮的状态（用于重新发牌）"""
        for p in self.players:
            p.reset_for_new_game()
        self.state = GameState(players=self.players)
