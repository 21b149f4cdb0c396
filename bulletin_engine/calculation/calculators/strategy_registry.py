# 策略注册表
import logging
from typing import Dict, Type, List, Any

from ..engine import StatisticalStrategy, CalculationEngine, get_calculation_engine
from .class_statistics import ClassOverviewStrategy

logger = logging.getLogger(__name__)


class CalculationStrategyRegistry:
    """计算策略注册表"""

    def __init__(self):
        self._strategies: Dict[str, Type[StatisticalStrategy]] = {}
        self._descriptions: Dict[str, str] = {}

    def register(self, name: str, strategy_class: Type[StatisticalStrategy], description: str = ""):
        """注册计算策略"""
        if not issubclass(strategy_class, StatisticalStrategy):
            raise ValueError(f"策略类 {strategy_class.__name__} 必须继承 StatisticalStrategy")

        self._strategies[name] = strategy_class
        self._descriptions[name] = description or strategy_class.__doc__ or "无描述"
        logger.info(f"已注册计算策略: {name} ({strategy_class.__name__})")

    def get_strategy(self, name: str) -> Type[StatisticalStrategy]:
        """获取策略类"""
        if name not in self._strategies:
            raise ValueError(f"未找到策略: {name}")
        return self._strategies[name]

    def create_strategy(self, name: str) -> StatisticalStrategy:
        """创建策略实例"""
        return self.get_strategy(name)()

    def list_strategies(self) -> List[Dict[str, str]]:
        """列出所有已注册的策略"""
        return [
            {
                'name': name,
                'class_name': strategy_class.__name__,
                'description': self._descriptions[name]
            }
            for name, strategy_class in self._strategies.items()
        ]

    def is_registered(self, name: str) -> bool:
        return name in self._strategies

    def unregister(self, name: str) -> bool:
        """注销策略"""
        if name in self._strategies:
            del self._strategies[name]
            del self._descriptions[name]
            logger.info(f"已注销计算策略: {name}")
            return True
        return False

    def register_to_engine(self, engine: CalculationEngine):
        """将所有策略注册到计算引擎"""
        for name in self._strategies:
            engine.register_strategy(name, self.create_strategy(name))
            logger.debug(f"策略 {name} 已注册到计算引擎")


# 全局策略注册表
_registry = CalculationStrategyRegistry()


def register_strategy(name: str, strategy_class: Type[StatisticalStrategy], description: str = ""):
    """注册策略到全局注册表"""
    _registry.register(name, strategy_class, description)


def register_default_strategies():
    """注册默认的计算策略"""
    register_strategy(
        'class_overview',
        ClassOverviewStrategy,
        '班级概况：平均分均值、中位数、标准差、最值、及格率与评语等级分布'
    )

    engine = get_calculation_engine()
    _registry.register_to_engine(engine)
    logger.info(f"已将 {len(_registry.list_strategies())} 个策略注册到计算引擎")


def initialize_calculation_system() -> CalculationEngine:
    """初始化计算系统，重复调用不会重复注册"""
    engine = get_calculation_engine()
    if not engine.get_registered_strategies():
        logger.info("正在初始化计算系统...")
        register_default_strategies()
        logger.info(f"计算系统初始化完成: {engine.get_registered_strategies()}")
    return engine


def get_strategy_info(name: str) -> Dict[str, Any]:
    """获取策略详细信息"""
    if not _registry.is_registered(name):
        raise ValueError(f"策略 {name} 未注册")

    strategy_instance = _registry.create_strategy(name)
    return {
        'name': name,
        'description': _registry._descriptions[name],
        'class_name': _registry._strategies[name].__name__,
        'algorithm_info': strategy_instance.get_algorithm_info()
    }
