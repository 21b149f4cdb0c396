# 核心统计计算引擎
import pandas as pd
import numpy as np
import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional
from dataclasses import dataclass
import time

logger = logging.getLogger(__name__)


class StatisticalStrategy(ABC):
    """统计计算策略抽象基类"""

    @abstractmethod
    def calculate(self, data: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
        """执行统计计算"""
        pass

    @abstractmethod
    def validate_input(self, data: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
        """验证输入数据"""
        pass

    @abstractmethod
    def get_algorithm_info(self) -> Dict[str, str]:
        """获取算法信息"""
        pass


@dataclass
class CalculationMetrics:
    """计算指标"""
    operation_name: str
    data_size: int
    execution_time: float
    success: bool
    error_message: Optional[str] = None


class PerformanceMonitor:
    """性能监控器"""

    # 班级规模的数据，超过该耗时即告警(秒)
    SLOW_CALCULATION_THRESHOLD = 0.5

    def __init__(self):
        self.metrics: List[CalculationMetrics] = []

    def record_calculation(self, operation: str, data_size: int,
                           execution_time: float, success: bool,
                           error: Optional[str] = None):
        """记录计算指标"""
        metric = CalculationMetrics(
            operation_name=operation,
            data_size=data_size,
            execution_time=execution_time,
            success=success,
            error_message=error
        )
        self.metrics.append(metric)

        # 性能告警
        if execution_time > self.SLOW_CALCULATION_THRESHOLD:
            logger.warning(f"计算性能告警: {operation} 耗时 {execution_time:.3f}s (数据量 {data_size})")
        else:
            logger.debug(f"计算完成: {operation} 耗时 {execution_time:.4f}s")

    def get_stats(self) -> Dict[str, Any]:
        """获取性能统计"""
        if not self.metrics:
            return {}

        successful_metrics = [m for m in self.metrics if m.success]
        failed_metrics = [m for m in self.metrics if not m.success]

        return {
            'total_operations': len(self.metrics),
            'successful_operations': len(successful_metrics),
            'failed_operations': len(failed_metrics),
            'success_rate': len(successful_metrics) / len(self.metrics),
            'avg_execution_time': float(np.mean([m.execution_time for m in successful_metrics])) if successful_metrics else 0,
            'total_data_processed': sum(m.data_size for m in successful_metrics)
        }


class DataValidator:
    """数据验证器"""

    def validate_input_data(self, data: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
        """验证输入数据完整性"""
        validation_result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'stats': {}
        }

        if data.empty:
            validation_result['is_valid'] = False
            validation_result['errors'].append("数据集为空")
            return validation_result

        required_columns = config.get('required_columns', ['average'])
        missing_columns = [col for col in required_columns if col not in data.columns]
        if missing_columns:
            validation_result['is_valid'] = False
            validation_result['errors'].append(f"缺少必需字段: {missing_columns}")
            return validation_result

        null_count = 0
        if 'average' in data.columns:
            averages = pd.to_numeric(data['average'], errors='coerce')
            null_count = int(averages.isna().sum())
            if null_count > 0:
                validation_result['warnings'].append(f"发现{null_count}个无平均分的记录")

            # 分数范围检查
            note_min = config.get('note_min', 0)
            note_max = config.get('note_max', 20)
            invalid = averages[(averages < note_min) | (averages > note_max)]
            if len(invalid) > 0:
                validation_result['warnings'].append(f"发现{len(invalid)}个超出量表范围的平均分")

        validation_result['stats']['total_records'] = len(data)
        validation_result['stats']['graded_records'] = len(data) - null_count
        return validation_result

    def validate_calculation_result(self, result: Dict[str, Any], algorithm_info: Dict[str, str]) -> bool:
        """验证计算结果合理性"""
        mean = result.get('mean')
        if mean is not None:
            if not isinstance(mean, (int, float)) or np.isnan(mean):
                return False

        std = result.get('std')
        if std is not None and std < 0:
            return False

        percentage_keys = [k for k in result.keys() if k.endswith('_rate')]
        for key in percentage_keys:
            if result[key] is not None and not (0 <= result[key] <= 1):
                return False

        return True


class CalculationEngine:
    """统计计算引擎核心"""

    def __init__(self):
        self.strategies: Dict[str, StatisticalStrategy] = {}
        self.validator = DataValidator()
        self.performance_monitor = PerformanceMonitor()

    def register_strategy(self, name: str, strategy: StatisticalStrategy):
        """注册计算策略"""
        self.strategies[name] = strategy
        logger.info(f"已注册计算策略: {name}")

    def calculate(self, strategy_name: str, data: pd.DataFrame,
                  config: Dict[str, Any]) -> Dict[str, Any]:
        """执行计算"""
        start_time = time.perf_counter()

        try:
            if strategy_name not in self.strategies:
                raise ValueError(f"未知的计算策略: {strategy_name}")

            strategy = self.strategies[strategy_name]

            # 数据验证
            validation_result = strategy.validate_input(data, config)
            if not validation_result['is_valid']:
                raise ValueError(f"数据验证失败: {validation_result['errors']}")

            result = strategy.calculate(data, config)

            # 结果验证
            algorithm_info = strategy.get_algorithm_info()
            if not self.validator.validate_calculation_result(result, algorithm_info):
                logger.warning(f"计算结果验证失败: {strategy_name}")

            execution_time = time.perf_counter() - start_time
            result['_meta'] = {
                'algorithm_info': algorithm_info,
                'data_size': len(data),
                'calculation_time': execution_time,
                'validation_warnings': validation_result.get('warnings', [])
            }

            self.performance_monitor.record_calculation(
                strategy_name, len(data), execution_time, True
            )
            return result

        except Exception as e:
            execution_time = time.perf_counter() - start_time
            self.performance_monitor.record_calculation(
                strategy_name, len(data), execution_time, False, str(e)
            )
            raise

    def get_performance_stats(self) -> Dict[str, Any]:
        """获取性能统计"""
        return self.performance_monitor.get_stats()

    def reset_performance_stats(self):
        """重置性能统计"""
        self.performance_monitor = PerformanceMonitor()

    def get_strategy_info(self, strategy_name: str) -> Dict[str, Any]:
        """
        获取特定策略的元数据信息

        Raises:
            ValueError: 当策略不存在时
        """
        if strategy_name not in self.strategies:
            raise ValueError(f"策略 '{strategy_name}' 不存在")

        algorithm_info = self.strategies[strategy_name].get_algorithm_info()
        return {
            'name': strategy_name,
            'description': algorithm_info.get('description', '无描述'),
            'version': algorithm_info.get('version', '1.0'),
            'algorithm_info': algorithm_info
        }

    def get_registered_strategies(self) -> List[str]:
        """获取已注册的策略列表"""
        return list(self.strategies.keys())


# 全局计算引擎实例
_calculation_engine = None


def get_calculation_engine() -> CalculationEngine:
    """获取全局计算引擎实例"""
    global _calculation_engine
    if _calculation_engine is None:
        _calculation_engine = CalculationEngine()
        logger.info("已初始化全局计算引擎")
    return _calculation_engine
