"""斗地主 / 掼蛋 AI 对局 - 主入口"""

import argparse
import logging
import random

from shedding_core.ai.ddz_ai import DdzAI
from shedding_core.ai.gd_ai import GdAI
from shedding_core.engine.ruleset import Ruleset
from shedding_core.game.controller import GameController
from shedding_core.game.gd_controller import GdController
from shedding_core.game.game_state import GameEvent

logger = logging.getLogger("shedding_core")


def log_event(names):
    """生成事件回调：把对局过程写进日志"""
    def _callback(event: GameEvent) -> None:
        name = names[event.player_id]
        if event.action == "play":
            logger.info("%s 出牌 %r", name, event.data)
        elif event.action == "pass":
            logger.debug("%s 不出", name)
        elif event.action == "claim":
            logger.info("%s %s", name, "叫地主" if event.data else "不叫")
        elif event.action == "tribute":
            logger.info("%s 进贡 %r", name, event.data)
        elif event.action == "return":
            logger.info("%s 还贡 %r", name, event.data)
        elif event.action == "anti_tribute":
            logger.info("抗贡，%s 先出", name)
        elif event.action == "lead":
            logger.debug("%s 获得出牌权", name)
        elif event.action == "finish":
            logger.info("%s 出完 (%s)", name, event.data)
    return _callback


def run_doudizhu(rounds: int, rng: random.Random) -> None:
    names = ["地主候选A", "地主候选B", "地主候选C"]
    gc = GameController(
        player_names=names,
        strategies=[DdzAI(rng=rng) for _ in names],
        rng=rng,
    )
    gc.on_event(log_event(names))

    for i in range(rounds):
        logger.info("===== 第 %d/%d 局 =====", i + 1, rounds)
        state = gc.run_game()
        logger.info(
            "地主 %s，赢家 %s，倍数 %d%s",
            names[state.landlord_id], names[state.winner], state.multiplier,
            "（春天）" if state.is_spring else "（反春）" if state.is_anti_spring else "",
        )
    logger.info("累计积分: %s", {p.name: p.score for p in gc.players})


def run_guandan(rounds: int, level: int, rng: random.Random) -> None:
    names = ["东", "南", "西", "北"]
    team_levels = {0: level, 1: level}
    previous_order = None
    for i in range(rounds):
        # 当前级牌取上一轮获胜队伍的级数
        gc = GdController(
            player_names=names,
            strategies=[GdAI(Ruleset.guandan(level)) for _ in names],
            level_value=level,
            rng=rng,
        )
        gc.state.team_levels = dict(team_levels)
        gc.on_event(log_event(names))

        logger.info("===== 第 %d/%d 轮，打 %d =====", i + 1, rounds, level)
        state = gc.run_round(previous_order=previous_order)
        team_levels = state.team_levels
        logger.info(
            "名次 %s，队伍 %d 升 %d 级，两队级数 %s",
            [names[pid] for pid in state.finish_order],
            state.winning_team, state.level_delta, team_levels,
        )
        if state.match_won:
            logger.info("队伍 %d 打过 A，整场获胜", state.winning_team)
            break
        level = team_levels[state.winning_team]
        previous_order = list(state.finish_order)


def serve(host: str, port: int) -> None:
    import uvicorn

    uvicorn.run("shedding_core.web.server:app", host=host, port=port)


def main():
    """命令行入口"""
    parser = argparse.ArgumentParser(description="AI 斗地主 / 掼蛋对局")
    parser.add_argument("--variant", choices=["doudizhu", "guandan"], default="doudizhu",
                        help="玩法 (默认 doudizhu)")
    parser.add_argument("--rounds", type=int, default=1, help="对局数 (默认1)")
    parser.add_argument("--seed", type=int, default=None, help="随机种子")
    parser.add_argument("--level", type=int, default=15, help="掼蛋起始级牌，2=15 (默认15)")
    parser.add_argument("--verbose", action="store_true", help="输出每一次不出")
    parser.add_argument("--serve", action="store_true", help="启动 HTTP 接口而不是本地对局")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.serve:
        serve(args.host, args.port)
        return

    rng = random.Random(args.seed)
    if args.variant == "guandan":
        run_guandan(args.rounds, args.level, rng)
    else:
        run_doudizhu(args.rounds, rng)


if __name__ == "__main__":
    main()
