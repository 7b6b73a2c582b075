"""HTTP 接口 - 以 JSON 暴露牌型识别、压牌判定、AI 出牌与叫地主评分

所有接口都是无状态的：每次请求带上完整的手牌与牌桌快照，服务端不保存对局。
牌用 parse_cards 的代码传输，如 "S3" / "H10" / "BJ" / "RJ"。
"""

import logging
from collections import Counter
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from shedding_core.engine.card import Card, apply_level, parse_cards
from shedding_core.engine.errors import DuplicateCardError, EngineError, InvalidSnapshotError
from shedding_core.engine.hand_type import ComboType, Combination
from shedding_core.engine.hand_detector import classify
from shedding_core.engine.comparator import beats, can_play_cards
from shedding_core.engine.ruleset import Ruleset, Variant
from shedding_core.ai.bidding import BiddingConfig, score_hand
from shedding_core.ai.context import TableContext
from shedding_core.ai.selector import select_move

logger = logging.getLogger(__name__)


# 牌型中文名
COMBO_TYPE_NAME = {
    ComboType.SINGLE: "单张", ComboType.PAIR: "对子",
    ComboType.TRIPLE: "三条", ComboType.TRIPLE_WITH_SINGLE: "三带一",
    ComboType.TRIPLE_WITH_PAIR: "三带二", ComboType.STRAIGHT: "顺子",
    ComboType.STRAIGHT_PAIR: "连对", ComboType.PLANE: "飞机/钢板",
    ComboType.PLANE_WITH_SINGLES: "飞机带翅膀(单)",
    ComboType.PLANE_WITH_PAIRS: "飞机带翅膀(对)",
    ComboType.STRAIGHT_FLUSH: "同花顺", ComboType.BOMB: "炸弹",
    ComboType.FOUR_JOKERS: "四王", ComboType.ROCKET: "火箭",
}


# ============================================================
#  请求模型
# ============================================================

class RulesetModel(BaseModel):
    variant: Variant = Variant.DOUDIZHU
    level: int = 15


class ClassifyRequest(RulesetModel):
    cards: List[str]


class BeatsRequest(RulesetModel):
    candidate: List[str]
    reference: Optional[List[str]] = None


class SelectMoveRequest(RulesetModel):
    hand: List[str]
    reference: Optional[List[str]] = None
    player_id: int = 0
    hand_counts: List[int] = Field(default_factory=list)
    last_player_id: Optional[int] = None
    pass_count: int = 0
    consecutive_plays: List[int] = Field(default_factory=list)
    landlord_id: Optional[int] = None


class BidScoreRequest(BaseModel):
    hand: List[str]


# ============================================================
#  序列化工具
# ============================================================

def card_to_dict(c: Card) -> dict:
    """将 Card 序列化"""
    return {
        "code": c.code,
        "value": c.value,
        "suit": c.suit.value,
        "display": c.display,
        "is_wild": c.is_wild,
    }


def combination_to_dict(combo: Combination) -> dict:
    return {
        "type": combo.type.value,
        "name": COMBO_TYPE_NAME.get(combo.type, ""),
        "main_value": combo.main_value,
        "length": combo.length,
        "chain_length": combo.chain_length,
        "base_value": combo.base_value,
        "wildcards_used": combo.wildcards_used,
        "is_bomb": combo.is_bomb,
        "cards": [card_to_dict(c) for c in combo.cards],
    }


def _ruleset(req: RulesetModel) -> Ruleset:
    if req.variant == Variant.GUANDAN:
        return Ruleset.guandan(req.level)
    return Ruleset.doudizhu()


def _parse(codes: List[str], ruleset: Ruleset, start_id: int = 0) -> List[Card]:
    """解析牌面代码；同一张牌的代码不能超过牌副数（斗地主 1 副，掼蛋 2 副）"""
    decks = 2 if ruleset.is_guandan else 1
    seen = Counter(code.strip().upper() for code in codes)
    over = sorted(code for code, n in seen.items() if n > decks)
    if over:
        raise DuplicateCardError(f"牌面重复: {over}")
    cards = parse_cards(codes, start_id)
    if ruleset.is_guandan:
        cards = apply_level(cards, ruleset.level_value)
    return cards


def _table_context(req: SelectMoveRequest, hand: List[Card], seats: int) -> TableContext:
    """校验牌桌快照：座位数和座位号都要和玩法一致"""
    hand_counts = list(req.hand_counts) or [len(hand)] * seats
    if len(hand_counts) != seats or any(n < 0 for n in hand_counts):
        raise InvalidSnapshotError(f"hand_counts 需要 {seats} 个非负数: {hand_counts}")
    if req.consecutive_plays and len(req.consecutive_plays) != seats:
        raise InvalidSnapshotError(f"consecutive_plays 需要 {seats} 个座位: {req.consecutive_plays}")
    seat_ids = {
        "player_id": req.player_id,
        "last_player_id": req.last_player_id,
        "landlord_id": req.landlord_id,
    }
    for name, pid in seat_ids.items():
        if pid is not None and not 0 <= pid < seats:
            raise InvalidSnapshotError(f"{name} 超出座位范围 0..{seats - 1}: {pid}")
    return TableContext(
        player_id=req.player_id,
        hand_counts=tuple(hand_counts),
        last_player_id=req.last_player_id,
        pass_count=req.pass_count,
        consecutive_plays=tuple(req.consecutive_plays),
        landlord_id=req.landlord_id,
    )


# ============================================================
#  FastAPI 应用
# ============================================================

app = FastAPI(title="出牌引擎")


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """非法输入（牌面代码、级牌、重复牌、牌桌快照）统一返回 422"""
    logger.info("拒绝请求 %s: %r", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc), "error": type(exc).__name__})


@app.post("/classify")
async def classify_cards(req: ClassifyRequest) -> dict:
    ruleset = _ruleset(req)
    combo = classify(_parse(req.cards, ruleset), ruleset)
    return {
        "valid": combo is not None,
        "combination": combination_to_dict(combo) if combo else None,
    }


@app.post("/beats")
async def beats_reference(req: BeatsRequest) -> dict:
    ruleset = _ruleset(req)
    candidate = _parse(req.candidate, ruleset)
    reference = _parse(req.reference or [], ruleset, start_id=len(candidate))
    combo = classify(candidate, ruleset)
    return {
        "beats": can_play_cards(candidate, reference, ruleset),
        "candidate": combination_to_dict(combo) if combo else None,
    }


@app.post("/select-move")
async def select_move_endpoint(req: SelectMoveRequest) -> dict:
    ruleset = _ruleset(req)
    hand = _parse(req.hand, ruleset)
    reference_cards = _parse(req.reference or [], ruleset, start_id=len(hand))
    reference = None
    if reference_cards:
        reference = classify(reference_cards, ruleset)
        if reference is None:
            raise InvalidSnapshotError(f"上家出的牌不是合法牌型: {req.reference}")

    seats = 4 if ruleset.is_guandan else 3
    context = _table_context(req, hand, seats)
    move = select_move(hand, reference, context, ruleset)
    if move is not None and reference is not None and not beats(move, reference, ruleset):
        logger.warning("出牌选择返回了压不过的牌: %r", move)
        move = None
    return {
        "pass": move is None,
        "combination": combination_to_dict(move) if move else None,
    }


@app.post("/bid-score")
async def bid_score(req: BidScoreRequest) -> dict:
    hand = _parse(req.hand, Ruleset.doudizhu())
    config = BiddingConfig.from_env()
    score = score_hand(hand)
    if score > config.high_threshold:
        decision = "claim"
    elif score >= config.low_threshold:
        decision = "maybe"
    else:
        decision = "decline"
    return {
        "score": round(score, 2),
        "decision": decision,
        "high_threshold": config.high_threshold,
        "low_threshold": config.low_threshold,
        "claim_probability": config.claim_probability,
    }
