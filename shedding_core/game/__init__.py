# 游戏流程控制模块
from .player import Player, Role
from .game_state import GameState, GdState, GamePhase, GameEvent
from .controller import GameController, AIStrategy
from .gd_controller import GdController, next_level, upgrade_delta
from .tribute import TributeExchange, TributePlan, plan_tribute
