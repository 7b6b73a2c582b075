"""引擎异常层级：只用于调用方的编程错误或非法输入。

"不是合法牌型""压不过""无牌可出"都是正常结果，以 None / False 返回，不走异常。
"""

__all__ = [
    "EngineError", "DuplicateCardError", "InvalidLevelError", "InvalidSnapshotError",
    "UnknownCardError",
]


class EngineError(Exception):
    """引擎异常基类"""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.args})"


class DuplicateCardError(EngineError, ValueError):
    """同一张物理牌（card_id）在一组牌中出现了两次"""


class InvalidLevelError(EngineError, ValueError):
    """级牌点数超出 3..15（王不能做级牌）"""


class UnknownCardError(EngineError, ValueError):
    """无法解析的牌面代码"""


class InvalidSnapshotError(EngineError, ValueError):
    """牌桌快照与玩法不符：座位号越界、座位数不对，或上家出的牌不是合法牌型"""
