"""牌桌快照 - AI 每次决策时由调用方提供，AI 自身不保存任何状态"""

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class TableContext:
    """
    一次出牌决策可见的公开信息。

    三人局用 landlord_id 划分阵营（两个农民是队友）；
    四人局按座位奇偶分队：0、2 一队，1、3 一队。
    consecutive_plays[i] 是座位 i 连续出牌成功（没人压得住）的次数。
    """
    player_id: int
    hand_counts: Tuple[int, ...]
    last_player_id: Optional[int] = None
    pass_count: int = 0
    consecutive_plays: Tuple[int, ...] = ()
    landlord_id: Optional[int] = None

    @property
    def seats(self) -> int:
        return len(self.hand_counts)

    def is_teammate(self, a: int, b: int) -> bool:
        if a == b:
            return False
        if self.seats == 4:
            return (a - b) % 2 == 0
        if self.landlord_id is None:
            return False
        return self.landlord_id not in (a, b)

    def teammate_of(self, pid: int) -> Optional[int]:
        mates = [p for p in range(self.seats) if self.is_teammate(pid, p)]
        return mates[0] if mates else None

    def opponents_of(self, pid: int) -> List[int]:
        return [
            p for p in range(self.seats)
            if p != pid and not self.is_teammate(pid, p)
        ]

    def count_of(self, pid: int) -> int:
        return self.hand_counts[pid]

    def consecutive_of(self, pid: Optional[int]) -> int:
        if pid is None or pid >= len(self.consecutive_plays):
            return 0
        return self.consecutive_plays[pid]

    def min_opponent_count(self) -> int:
        """对手中最少的剩余牌数；已出完的对手不计"""
        counts = [
            self.hand_counts[p] for p in self.opponents_of(self.player_id)
            if self.hand_counts[p] > 0
        ]
        return min(counts) if counts else 0

    @property
    def last_is_teammate(self) -> bool:
        return (
            self.last_player_id is not None
            and self.is_teammate(self.player_id, self.last_player_id)
        )
