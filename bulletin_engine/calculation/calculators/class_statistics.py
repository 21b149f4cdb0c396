# 班级概况统计策略
import pandas as pd
import logging
from typing import Dict, Any, List, Optional

from ..engine import StatisticalStrategy, DataValidator
from .rule_resolver import resolve_mention
from ...schemas.entities import MentionRule
from ...utils.precision import round2

logger = logging.getLogger(__name__)


class ClassOverviewStrategy(StatisticalStrategy):
    """
    班级概况统计

    输入为每个学生一行的数据框(student_id, average)，average可为空；
    输出参与人数、均值、中位数、标准差、最值、评语等级分布和第一名
    """

    def calculate(self, data: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
        averages = pd.to_numeric(data['average'], errors='coerce')
        graded = data.assign(average=averages).dropna(subset=['average'])

        result: Dict[str, Any] = {
            'student_count': int(len(data)),
            'graded_count': int(len(graded)),
            'ungraded_count': int(len(data) - len(graded)),
        }

        if graded.empty:
            result.update({
                'mean': None, 'median': None, 'std': None,
                'min': None, 'max': None,
                'pass_rate': None,
                'mention_distribution': {},
                'top_student_id': None
            })
            return result

        values = graded['average'].astype(float)
        result.update({
            'mean': round2(values.mean()),
            'median': round2(values.median()),
            # 只有一个学生时样本标准差无定义，记为0
            'std': round2(values.std(ddof=1)) if len(values) > 1 else 0.0,
            'min': round2(values.min()),
            'max': round2(values.max()),
        })

        pass_mark = config.get('pass_mark')
        if pass_mark is not None:
            result['pass_rate'] = round2((values >= pass_mark).sum() / len(values))
        else:
            result['pass_rate'] = None

        result['mention_distribution'] = self._mention_distribution(
            values.tolist(), config.get('mention_rules', [])
        )

        # 并列第一时取输入顺序中的第一个
        top_index = values.idxmax()
        result['top_student_id'] = graded.loc[top_index, 'student_id']
        return result

    def _mention_distribution(self, values: List[float], rules: List[MentionRule]) -> Dict[str, int]:
        """统计每个评语等级的人数，规则内的所有等级都会出现(可为0)"""
        distribution = {
            rule.label: 0
            for rule in sorted(rules, key=lambda r: r.min_average, reverse=True)
        }
        for value in values:
            mention = resolve_mention(value, rules)
            if mention is not None:
                distribution[mention.label] = distribution.get(mention.label, 0) + 1
        return distribution

    def validate_input(self, data: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
        return DataValidator().validate_input_data(
            data, {**config, 'required_columns': ['student_id', 'average']}
        )

    def get_algorithm_info(self) -> Dict[str, str]:
        return {
            'name': 'ClassOverview',
            'version': '1.0',
            'description': '班级平均分概况与评语等级分布',
            'std_formula': 'sample_std_ddof_1',
            'rounding': 'round_half_up_2'
        }


def build_average_frame(averages: Dict[str, Optional[float]]) -> pd.DataFrame:
    """将{student_id: average}转换为策略输入数据框，保持学生顺序"""
    return pd.DataFrame(
        [{'student_id': student_id, 'average': avg} for student_id, avg in averages.items()],
        columns=['student_id', 'average']
    )
