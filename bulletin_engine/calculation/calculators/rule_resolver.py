# 评语等级与评价区间解析
import logging
from dataclasses import dataclass, asdict
from typing import Iterable, Optional, Dict, Any

from ...schemas.entities import MentionRule, AppreciationRule
from ..grading_config import GradingConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MentionResult:
    """评语等级结果"""
    label: str
    icon: str
    color: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AppreciationResult:
    """评价结果"""
    label: str
    color: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


UNEVALUATED = AppreciationResult(
    label=GradingConfig.UNEVALUATED_LABEL,
    color=GradingConfig.UNEVALUATED_COLOR
)


def _to_mention(rule: MentionRule) -> MentionResult:
    return MentionResult(label=rule.label, icon=rule.emoji, color=rule.color)


def resolve_mention(average: float, mention_rules: Iterable[MentionRule]) -> Optional[MentionResult]:
    """
    根据平均分确定评语等级

    规则按门槛降序检查，第一条门槛<=平均分的规则生效；
    平均分低于所有门槛时使用门槛最低的规则；规则为空时返回None
    """
    rules = sorted(mention_rules, key=lambda r: r.min_average, reverse=True)
    if not rules:
        return None

    for rule in rules:
        if average >= rule.min_average:
            return _to_mention(rule)

    logger.debug(f"平均分{average}低于所有评语门槛，使用最低门槛规则: {rules[-1].label}")
    return _to_mention(rules[-1])


def resolve_appreciation(average: float,
                         appreciation_rules: Iterable[AppreciationRule]) -> AppreciationResult:
    """
    根据平均分确定评价区间

    区间按下限降序检查，第一条满足min<=平均分<=max的规则生效；
    落入区间空隙时使用下限最低的规则；规则为空时返回"未评价"占位结果
    """
    rules = sorted(appreciation_rules, key=lambda r: r.min, reverse=True)
    if not rules:
        return UNEVALUATED

    for rule in rules:
        if rule.min <= average <= rule.max:
            return AppreciationResult(label=rule.label, color=rule.color)

    fallback = rules[-1]
    logger.debug(f"平均分{average}不在任何评价区间内，使用最低区间: {fallback.label}")
    return AppreciationResult(label=fallback.label, color=fallback.color)
