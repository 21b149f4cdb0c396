# 计算器模块
from .average_calculator import (
    student_average,
    student_averages,
    class_average,
    subject_class_average,
    student_subject_average,
    subject_class_extremes
)
from .rank_calculator import ranks, format_rank
from .rule_resolver import (
    MentionResult,
    AppreciationResult,
    resolve_mention,
    resolve_appreciation
)
from .class_statistics import ClassOverviewStrategy
from .strategy_registry import CalculationStrategyRegistry, register_default_strategies

__all__ = [
    'student_average',
    'student_averages',
    'class_average',
    'subject_class_average',
    'student_subject_average',
    'subject_class_extremes',
    'ranks',
    'format_rank',
    'MentionResult',
    'AppreciationResult',
    'resolve_mention',
    'resolve_appreciation',
    'ClassOverviewStrategy',
    'CalculationStrategyRegistry',
    'register_default_strategies'
]
