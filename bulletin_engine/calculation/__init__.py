# 成绩汇总计算模块
from .engine import CalculationEngine, get_calculation_engine
from .grading_config import GradingConfig
from .calculators.strategy_registry import initialize_calculation_system

__all__ = [
    'CalculationEngine',
    'get_calculation_engine',
    'GradingConfig',
    'initialize_calculation_system'
]
