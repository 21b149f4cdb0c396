# 成绩单组装服务
"""
成绩单数据组装

成绩单是纯派生数据：每次请求都根据当前学生、科目、成绩与规则重新计算，从不持久化。
科目行中的学生单科平均分为该科目所有成绩条目的等权平均，
系数只在跨科目的总平均分中使用。
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Iterable

from ..schemas.entities import (
    Student, Subject, Grade, GradingPeriod, SchoolSettings,
    MentionRule, AppreciationRule
)
from ..calculation.grading_config import GradingConfig
from ..calculation.calculators.average_calculator import (
    student_average, class_average, subject_class_average,
    student_subject_average, subject_class_extremes
)
from ..calculation.calculators.rank_calculator import ranks, format_rank
from ..calculation.calculators.rule_resolver import (
    MentionResult, AppreciationResult, resolve_mention, resolve_appreciation
)
from ..utils.precision import round2, batch_format_dict

logger = logging.getLogger(__name__)


@dataclass
class SubjectLine:
    """成绩单中的科目行"""
    subject_id: str
    subject_name: str
    coefficient: float
    category: str
    student_average: Optional[float]
    class_average: Optional[float]
    delta: Optional[float]
    class_min: Optional[float]
    class_max: Optional[float]
    appreciation: Optional[AppreciationResult]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subject_id': self.subject_id,
            'subject_name': self.subject_name,
            'coefficient': self.coefficient,
            'category': self.category,
            'student_average': self.student_average,
            'class_average': self.class_average,
            'delta': self.delta,
            'class_min': self.class_min,
            'class_max': self.class_max,
            'appreciation': self.appreciation.to_dict() if self.appreciation else None
        }


@dataclass
class BulletinData:
    """单个学生单个周期的成绩单数据"""
    student_id: str
    student_name: str
    first_name: str
    class_name: str
    period_id: str
    period_name: str
    subjects: List[SubjectLine] = field(default_factory=list)
    average: Optional[float] = None
    class_average: Optional[float] = None
    rank: Optional[int] = None
    rank_display: Optional[str] = None
    class_size: int = 0
    mention: Optional[MentionResult] = None
    appreciation: Optional[AppreciationResult] = None
    narrative: Optional[str] = None

    def to_dict(self, decimal_places: Optional[int] = None) -> Dict[str, Any]:
        """转换为字典；给定decimal_places时对浮点数做显示舍入"""
        data = {
            'student_id': self.student_id,
            'student_name': self.student_name,
            'first_name': self.first_name,
            'class_name': self.class_name,
            'period_id': self.period_id,
            'period_name': self.period_name,
            'subjects': [line.to_dict() for line in self.subjects],
            'average': self.average,
            'class_average': self.class_average,
            'rank': self.rank,
            'rank_display': self.rank_display,
            'class_size': self.class_size,
            'mention': self.mention.to_dict() if self.mention else None,
            'appreciation': self.appreciation.to_dict() if self.appreciation else None,
            'narrative': self.narrative
        }
        if decimal_places is None:
            return data
        return batch_format_dict(data, decimal_places)


def _delta(student_value: Optional[float], class_value: Optional[float]) -> Optional[float]:
    if student_value is None or class_value is None:
        return None
    return round2(student_value - class_value)


def assemble_bulletin(student_id: str, period_id: str, students: Iterable[Student],
                      subjects: Iterable[Subject], grades: Iterable[Grade],
                      settings: SchoolSettings, mention_rules: Iterable[MentionRule],
                      appreciation_rules: Iterable[AppreciationRule],
                      periods: Optional[Iterable[GradingPeriod]] = None) -> Optional[BulletinData]:
    """
    组装学生在某周期的成绩单

    Args:
        student_id: 学生ID
        period_id: 周期ID
        students: 全部学生(只统计启用的学生)
        subjects: 全部科目(只统计启用的科目)
        grades: 全部成绩
        settings: 学校设置(量表、是否显示排名)
        mention_rules: 评语等级规则
        appreciation_rules: 评价区间规则
        periods: 周期列表，给定时用于校验周期并取周期名称

    Returns:
        BulletinData；学生或周期不存在时返回None
    """
    active_students = [s for s in students if s.is_active]
    active_subjects = [s for s in subjects if s.is_active]
    # 科目统计只针对本次参与统计的启用学生
    active_ids = {s.id for s in active_students}
    grades = [g for g in grades if g.period_id == period_id and g.student_id in active_ids]
    mention_rules = list(mention_rules)
    appreciation_rules = list(appreciation_rules)
    scale = settings.grading_scale

    student = next((s for s in active_students if s.id == student_id), None)
    if student is None:
        logger.warning(f"成绩单组装失败，学生不存在或未启用: {student_id}")
        return None

    period_name = period_id
    if periods is not None:
        period = next((p for p in periods if p.id == period_id), None)
        if period is None:
            logger.warning(f"成绩单组装失败，周期不存在: {period_id}")
            return None
        period_name = period.name

    lines = []
    for subject in active_subjects:
        own = student_subject_average(student_id, subject.id, period_id, grades, scale)
        class_value = subject_class_average(subject.id, period_id, grades, scale)
        class_min, class_max = subject_class_extremes(subject.id, period_id, grades, scale)
        lines.append(SubjectLine(
            subject_id=subject.id,
            subject_name=subject.name,
            coefficient=subject.coefficient,
            category=subject.category,
            student_average=own,
            class_average=class_value,
            delta=_delta(own, class_value),
            class_min=class_min,
            class_max=class_max,
            appreciation=resolve_appreciation(own, appreciation_rules) if own is not None else None
        ))

    average = student_average(student_id, period_id, grades, active_subjects, scale)
    class_value = class_average(active_students, period_id, grades, active_subjects, scale)
    class_size = len(active_students)

    bulletin = BulletinData(
        student_id=student.id,
        student_name=student.full_name,
        first_name=student.first_name,
        class_name=student.class_name,
        period_id=period_id,
        period_name=period_name,
        subjects=lines,
        average=average,
        class_average=class_value,
        class_size=class_size
    )

    if settings.show_ranks:
        period_ranks = ranks(active_students, period_id, grades, active_subjects, scale)
        bulletin.rank = period_ranks.get(student_id)
        bulletin.rank_display = format_rank(bulletin.rank, class_size)

    if average is not None:
        bulletin.mention = resolve_mention(average, mention_rules)
        bulletin.appreciation = resolve_appreciation(average, appreciation_rules)
        bulletin.narrative = GradingConfig.generate_narrative(average, student.first_name, scale)

    return bulletin


def assemble_class_bulletins(period_id: str, students: Iterable[Student], subjects: Iterable[Subject],
                             grades: Iterable[Grade], settings: SchoolSettings,
                             mention_rules: Iterable[MentionRule],
                             appreciation_rules: Iterable[AppreciationRule],
                             periods: Optional[Iterable[GradingPeriod]] = None) -> List[BulletinData]:
    """组装全部启用学生的成绩单，按名次顺序排列，无平均分的学生排在最后"""
    students = list(students)
    subjects = list(subjects)
    grades = list(grades)
    mention_rules = list(mention_rules)
    appreciation_rules = list(appreciation_rules)
    periods = list(periods) if periods is not None else None

    bulletins = []
    for student in students:
        if not student.is_active:
            continue
        bulletin = assemble_bulletin(
            student.id, period_id, students, subjects, grades,
            settings, mention_rules, appreciation_rules, periods
        )
        if bulletin is not None:
            bulletins.append(bulletin)

    # 稳定排序：平均分相同者保持学生输入顺序，与排名的并列规则一致
    bulletins.sort(key=lambda b: (b.average is None, -(b.average or 0)))
    logger.info(f"周期{period_id}共生成{len(bulletins)}份成绩单")
    return bulletins
