"""掼蛋控制器 - 驱动四人掼蛋一轮的进贡、出牌、接风与升级"""

import logging
import random
from typing import Callable, List, Optional, Tuple

from shedding_core.engine.card import Rank, apply_level, create_double_deck, shuffle_and_deal
from shedding_core.engine.hand_type import Combination
from shedding_core.engine.hand_detector import classify
from shedding_core.engine.comparator import beats
from shedding_core.engine.ruleset import Ruleset
from shedding_core.ai.selector import MoveSelector
from shedding_core.game.player import Player
from shedding_core.game.game_state import GdState, GamePhase, GameEvent
from shedding_core.game.tribute import TributePlan, plan_tribute

logger = logging.getLogger(__name__)

PLAYERS = 4
HAND_SHARE = 27

# 级牌顺序：从 2 打到 A
LEVEL_SEQUENCE: Tuple[int, ...] = (int(Rank.TWO),) + tuple(range(int(Rank.THREE), int(Rank.ACE) + 1))


def upgrade_delta(finish_order: List[int]) -> int:
    """头游所在队伍的升级数：双上 3 级，头游 + 三游 2 级，头游 + 末游 1 级"""
    first, second, third = (seat % 2 for seat in finish_order[:3])
    if first == second:
        return 3
    if first == third:
        return 2
    return 1


def next_level(level_value: int, delta: int) -> Tuple[int, bool]:
    """升级后的级牌；第二个返回值表示是否打过了 A"""
    idx = LEVEL_SEQUENCE.index(level_value) + delta
    if idx >= len(LEVEL_SEQUENCE):
        return LEVEL_SEQUENCE[-1], True
    return LEVEL_SEQUENCE[idx], False


class GdController:
    """掼蛋控制器：座位 0、2 一队，1、3 一队"""

    def __init__(
        self,
        player_names: List[str],
        strategies: List[MoveSelector],
        level_value: int = int(Rank.TWO),
        rng: Optional[random.Random] = None,
    ):
        if len(player_names) != PLAYERS or len(strategies) != PLAYERS:
            raise ValueError("掼蛋需要 4 名玩家和 4 个策略")
        self.players = [
            Player(id=i, name=name, team=i % 2) for i, name in enumerate(player_names)
        ]
        self.strategies = strategies
        self.ruleset = Ruleset.guandan(level_value)
        self.rng = rng or random.Random()
        self.state = GdState(
            players=self.players, ruleset=self.ruleset,
            team_levels={0: level_value, 1: level_value},
        )
        self._callbacks: List[Callable[[GameEvent], None]] = []

    def on_event(self, callback: Callable[[GameEvent], None]) -> None:
        """注册事件回调"""
        self._callbacks.append(callback)

    def _emit(self, event: GameEvent) -> None:
        self.state.events.append(event)
        for cb in self._callbacks:
            cb(event)

    # ============================================================
    #  发牌
    # ============================================================

    def deal(self, leader: int = 0) -> None:
        """两副牌洗牌，每人 27 张，标记逢人配"""
        self.state.phase = GamePhase.DEALING
        deck = apply_level(create_double_deck(), self.ruleset.level_value)
        hands, _ = shuffle_and_deal(deck, PLAYERS, HAND_SHARE, self.rng)
        for player, hand in zip(self.players, hands):
            player.hand = []
            player.play_count = 0
            player.take_cards(hand)
        self.state.current_player = leader
        self.state.phase = GamePhase.PLAYING

    # ============================================================
    #  进贡
    # ============================================================

    def run_tribute(self, previous_order: List[int]) -> TributePlan:
        """按上一轮名次进贡、还贡，并交出本轮的出牌权"""
        s = self.state
        s.phase = GamePhase.TRIBUTE
        plan = plan_tribute(previous_order, [p.hand for p in self.players], self.ruleset)
        if plan.anti_tribute:
            logger.info("进贡方有两张大王，抗贡")
            self._emit(GameEvent(GamePhase.TRIBUTE, plan.leader, "anti_tribute"))

        for ex in plan.exchanges:
            payer, receiver = self.players[ex.payer], self.players[ex.receiver]
            payer.remove_cards([ex.tribute_card])
            receiver.take_cards([ex.tribute_card])
            self._emit(GameEvent(GamePhase.TRIBUTE, ex.payer, "tribute", ex.tribute_card))
            receiver.remove_cards([ex.return_card])
            payer.take_cards([ex.return_card])
            self._emit(GameEvent(GamePhase.TRIBUTE, ex.receiver, "return", ex.return_card))
            logger.info("%s 向 %s 进贡 %r，还 %r",
                        payer.name, receiver.name, ex.tribute_card, ex.return_card)

        s.tribute = plan
        s.current_player = plan.leader
        s.phase = GamePhase.PLAYING
        return plan

    # ============================================================
    #  出牌
    # ============================================================

    def run_playing(self) -> None:
        s = self.state
        while s.phase == GamePhase.PLAYING:
            self._play_one_turn()

    def _next_active(self, pid: int) -> int:
        """pid 之后下一个还没出完的玩家"""
        for step in range(1, PLAYERS + 1):
            nxt = (pid + step) % PLAYERS
            if not self.players[nxt].finished:
                return nxt
        return pid

    def _active_count(self) -> int:
        return sum(1 for p in self.players if not p.finished)

    def _play_one_turn(self) -> None:
        s = self.state
        pid = s.current_player
        player = self.players[pid]
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
        """
        处理不出。其余在场玩家都不要、或轮回到最后出牌的人时清桌；
        最后出牌的人已经出完时由其对家接风，对家也出完则由下家接风。
        """
        s = self.state
        self._emit(GameEvent(GamePhase.PLAYING, pid, "pass"))
        if s.last_play is None:
            s.current_player = self._next_active(pid)
            return

        s.pass_count += 1
        nxt = self._next_active(pid)
        last = s.last_player
        last_done = last is not None and self.players[last].finished
        others = self._active_count() - (0 if last_done else 1)

        if nxt != last and s.pass_count < others:
            s.current_player = nxt
            return

        s.clear_table()
        if last_done:
            mate = (last + 2) % PLAYERS
            leader = mate if not self.players[mate].finished else self._next_active(last)
            logger.info("%s 已出完，%s 接风", self.players[last].name, self.players[leader].name)
        else:
            leader = last
        s.current_player = leader
        self._emit(GameEvent(GamePhase.PLAYING, leader, "lead"))

    def _handle_play(self, pid: int, move: Combination) -> None:
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
        s.record_play(pid, combo)
        self._emit(GameEvent(GamePhase.PLAYING, pid, "play", combo))

        if player.finished:
            s.finish_order.append(pid)
            self._emit(GameEvent(GamePhase.PLAYING, pid, "finish", len(s.finish_order)))
            if self._round_over():
                self._end_round()
                return
        s.current_player = self._next_active(pid)

    # ============================================================
    #  结算
    # ============================================================

    def _round_over(self) -> bool:
        """三家出完，或同队两人拿下头游、二游（双上）"""
        done = self.state.finish_order
        if len(done) >= PLAYERS - 1:
            return True
        return len(done) == 2 and done[0] % 2 == done[1] % 2

    def _end_round(self) -> None:
        """补全名次（没出完的按剩余张数排），头游队伍按名次升级"""
        s = self.state
        last = s.finish_order[-1]
        rest = sorted(
            (p for p in self.players if p.id not in s.finish_order),
            key=lambda p: (p.hand_size, (p.id - last) % PLAYERS),
        )
        s.finish_order.extend(p.id for p in rest)
        s.phase = GamePhase.FINISHED

        winner_team = s.finish_order[0] % 2
        s.winning_team = winner_team
        s.level_delta = upgrade_delta(s.finish_order)
        s.team_levels[winner_team], s.match_won = next_level(
            s.team_levels[winner_team], s.level_delta,
        )
        logger.info(
            "本轮结束: 名次 %s，队伍 %d 升 %d 级",
            [self.players[i].name for i in s.finish_order], winner_team, s.level_delta,
        )

    def run_round(self, leader: int = 0, previous_order: Optional[List[int]] = None) -> GdState:
        """
        运行一轮完整的掼蛋。
        previous_order: 上一轮的名次；给出时发牌后先进贡，出牌权由进贡结果决定。
        """
        team_levels = dict(self.state.team_levels)
        self.state = GdState(players=self.players, ruleset=self.ruleset, team_levels=team_levels)
        self.deal(leader)
        if previous_order:
            self.run_tribute(previous_order)
        self.run_playing()
        return self.state
