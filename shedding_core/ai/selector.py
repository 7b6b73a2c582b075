"""出牌选择入口 - 按规则集分派到三人/四人 AI"""

from typing import Optional, Protocol, Sequence

from shedding_core.engine.card import Card
from shedding_core.engine.hand_type import Combination
from shedding_core.engine.ruleset import Ruleset
from shedding_core.ai.context import TableContext
from shedding_core.ai.ddz_ai import DdzAI
from shedding_core.ai.gd_ai import GdAI


class MoveSelector(Protocol):
    """出牌策略接口"""

    def select_move(
        self,
        hand: Sequence[Card],
        reference: Optional[Combination],
        context: TableContext,
    ) -> Optional[Combination]:
        ...


def selector_for(ruleset: Ruleset) -> MoveSelector:
    if ruleset.is_guandan:
        return GdAI(ruleset)
    return DdzAI()


def select_move(
    hand: Sequence[Card],
    reference: Optional[Combination],
    context: TableContext,
    ruleset: Optional[Ruleset] = None,
) -> Optional[Combination]:
    """
    为非人类玩家选一手牌。
    返回的 Combination 一定能重新识别成同一牌型并压过 reference；None 表示不出。
    """
    return selector_for(ruleset or Ruleset.doudizhu()).select_move(hand, reference, context)
