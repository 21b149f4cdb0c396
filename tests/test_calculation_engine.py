# 计算引擎与班级概况策略测试
import pytest
import pandas as pd

from bulletin_engine.calculation.engine import CalculationEngine, PerformanceMonitor
from bulletin_engine.calculation.calculators.class_statistics import (
    ClassOverviewStrategy,
    build_average_frame
)
from bulletin_engine.calculation.calculators.strategy_registry import (
    CalculationStrategyRegistry,
    get_strategy_info,
    initialize_calculation_system
)
from bulletin_engine.calculation.grading_config import GradingConfig


class TestClassOverviewStrategy:
    """测试班级概况策略"""

    def setup_method(self):
        self.strategy = ClassOverviewStrategy()
        self.config = {
            'mention_rules': GradingConfig.default_mention_rules(),
            'pass_mark': 10
        }

    def test_overview_statistics(self):
        data = build_average_frame({'e1': 13.0, 'e2': 15.0, 'e3': 8.0, 'e4': None})
        result = self.strategy.calculate(data, self.config)

        assert result['student_count'] == 4
        assert result['graded_count'] == 3
        assert result['ungraded_count'] == 1
        assert result['mean'] == 12.0
        assert result['median'] == 13.0
        assert result['min'] == 8.0
        assert result['max'] == 15.0
        assert result['pass_rate'] == 0.67
        assert result['top_student_id'] == 'e2'

    def test_sample_standard_deviation(self):
        data = build_average_frame({'a': 10.0, 'b': 14.0})
        result = self.strategy.calculate(data, self.config)
        # 样本标准差 sqrt(((10-12)^2 + (14-12)^2) / 1) = 2.83
        assert result['std'] == 2.83

    def test_single_student_std_is_zero(self):
        result = self.strategy.calculate(build_average_frame({'a': 11.0}), self.config)
        assert result['std'] == 0.0

    def test_mention_distribution_lists_every_label(self):
        data = build_average_frame({'e1': 13.0, 'e2': 15.0, 'e3': 8.0, 'e4': None})
        distribution = self.strategy.calculate(data, self.config)['mention_distribution']

        assert list(distribution.keys()) == [
            "TABLEAU D'HONNEUR", 'FÉLICITATIONS', 'ENCOURAGEMENTS', 'PASSABLE', 'INSUFFISANT'
        ]
        assert distribution['FÉLICITATIONS'] == 1
        assert distribution['ENCOURAGEMENTS'] == 1
        assert distribution['INSUFFISANT'] == 1
        assert distribution["TABLEAU D'HONNEUR"] == 0
        assert sum(distribution.values()) == 3

    def test_all_ungraded(self):
        data = build_average_frame({'e1': None, 'e2': None})
        result = self.strategy.calculate(data, self.config)
        assert result['graded_count'] == 0
        assert result['mean'] is None
        assert result['top_student_id'] is None

    def test_top_student_tie_keeps_input_order(self):
        data = build_average_frame({'b': 15.0, 'a': 15.0})
        assert self.strategy.calculate(data, self.config)['top_student_id'] == 'b'

    def test_validate_input(self):
        assert not self.strategy.validate_input(pd.DataFrame(), {})['is_valid']
        missing = self.strategy.validate_input(pd.DataFrame({'student_id': ['a']}), {})
        assert not missing['is_valid']
        assert 'average' in missing['errors'][0]

        partial = self.strategy.validate_input(build_average_frame({'a': 10.0, 'b': None}), {})
        assert partial['is_valid']
        assert partial['stats']['graded_records'] == 1
        assert len(partial['warnings']) == 1

    def test_validate_input_flags_out_of_scale_averages(self):
        data = build_average_frame({'a': 12.0, 'b': 45.0})
        result = self.strategy.validate_input(data, {'note_min': 0, 'note_max': 20})
        assert result['is_valid']
        assert any('超出量表范围' in w for w in result['warnings'])
        assert result['stats'] == {'total_records': 2, 'graded_records': 2}

    def test_algorithm_info(self):
        info = self.strategy.get_algorithm_info()
        assert info['name'] == 'ClassOverview'
        assert info['std_formula'] == 'sample_std_ddof_1'


class TestCalculationEngine:
    """测试计算引擎"""

    def setup_method(self):
        self.engine = CalculationEngine()
        self.engine.register_strategy('class_overview', ClassOverviewStrategy())

    def test_calculate_attaches_meta(self):
        data = build_average_frame({'e1': 13.0, 'e2': 15.0})
        result = self.engine.calculate('class_overview', data, {'mention_rules': []})

        assert result['mean'] == 14.0
        assert result['_meta']['data_size'] == 2
        assert result['_meta']['algorithm_info']['name'] == 'ClassOverview'
        assert result['_meta']['calculation_time'] >= 0

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="未知的计算策略"):
            self.engine.calculate('unknown', build_average_frame({'a': 1.0}), {})

    def test_invalid_input_raises(self):
        with pytest.raises(ValueError, match="数据验证失败"):
            self.engine.calculate('class_overview', pd.DataFrame(), {})

    def test_performance_monitoring(self):
        self.engine.calculate('class_overview', build_average_frame({'a': 12.0}), {})
        with pytest.raises(ValueError):
            self.engine.calculate('class_overview', pd.DataFrame(), {})

        stats = self.engine.get_performance_stats()
        assert stats['total_operations'] == 2
        assert stats['successful_operations'] == 1
        assert stats['failed_operations'] == 1
        assert stats['success_rate'] == 0.5

        self.engine.reset_performance_stats()
        assert self.engine.get_performance_stats() == {}

    def test_strategy_info(self):
        info = self.engine.get_strategy_info('class_overview')
        assert info['name'] == 'class_overview'
        with pytest.raises(ValueError):
            self.engine.get_strategy_info('missing')

    def test_slow_calculation_warning(self, caplog):
        monitor = PerformanceMonitor()
        with caplog.at_level('WARNING'):
            monitor.record_calculation('class_overview', 30, monitor.SLOW_CALCULATION_THRESHOLD + 1, True)
        assert '计算性能告警' in caplog.text


class TestStrategyRegistry:
    """测试策略注册表"""

    def test_register_and_list(self):
        registry = CalculationStrategyRegistry()
        registry.register('overview', ClassOverviewStrategy, '测试')
        assert registry.is_registered('overview')
        assert registry.list_strategies()[0]['class_name'] == 'ClassOverviewStrategy'
        assert isinstance(registry.create_strategy('overview'), ClassOverviewStrategy)
        assert registry.unregister('overview')
        assert not registry.unregister('overview')

    def test_register_requires_strategy_subclass(self):
        registry = CalculationStrategyRegistry()
        with pytest.raises(ValueError):
            registry.register('bad', dict)

    def test_register_to_engine(self):
        registry = CalculationStrategyRegistry()
        registry.register('overview', ClassOverviewStrategy)
        engine = CalculationEngine()
        registry.register_to_engine(engine)
        assert engine.get_registered_strategies() == ['overview']

    def test_initialize_is_idempotent(self):
        engine = initialize_calculation_system()
        first = engine.get_registered_strategies()
        assert 'class_overview' in first
        assert initialize_calculation_system().get_registered_strategies() == first
        assert get_strategy_info('class_overview')['class_name'] == 'ClassOverviewStrategy'
