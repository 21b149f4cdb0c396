# 平均分计算器
"""
加权平均分计算

所有函数均为纯函数，不做任何I/O。
"未评分"(None)与"零分"(0)严格区分：没有有效成绩时返回None，绝不返回0。
"""
import logging
from typing import Iterable, List, Optional, Tuple, Dict

from ...schemas.entities import Grade, Subject, Student, GradingScale
from ...utils.precision import round2

logger = logging.getLogger(__name__)


def _valid_values(grades: Iterable[Grade], scale: Optional[GradingScale] = None) -> List[Grade]:
    """过滤出有分数的成绩；给定量表时剔除超出范围的分数"""
    result = []
    for grade in grades:
        if grade.value is None:
            continue
        if scale is not None and not scale.contains(grade.value):
            logger.warning(
                f"成绩超出量表范围[{scale.note_min}, {scale.note_max}]，已剔除: "
                f"student={grade.student_id}, subject={grade.subject_id}, value={grade.value}"
            )
            continue
        result.append(grade)
    return result


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return round2(sum(values) / len(values))


def student_average(student_id: str, period_id: str, grades: Iterable[Grade],
                    subjects: Iterable[Subject], scale: Optional[GradingScale] = None) -> Optional[float]:
    """
    计算学生在某周期的加权平均分

    Args:
        student_id: 学生ID
        period_id: 周期ID
        grades: 全部成绩
        subjects: 科目列表（提供系数）
        scale: 评分量表，给定时超出范围的分数按未评分处理

    Returns:
        Σ(分数×系数)/Σ系数，保留两位小数；无成绩或总权重为0时返回None
    """
    student_grades = _valid_values(
        (g for g in grades if g.student_id == student_id and g.period_id == period_id),
        scale
    )
    if not student_grades:
        return None

    coefficients: Dict[str, float] = {subject.id: subject.coefficient for subject in subjects}

    total_weighted = 0.0
    total_coef = 0.0
    for grade in student_grades:
        # 科目已删除的成绩直接忽略
        coefficient = coefficients.get(grade.subject_id)
        if coefficient is None:
            continue
        total_weighted += grade.value * coefficient
        total_coef += coefficient

    if total_coef <= 0:
        return None
    return round2(total_weighted / total_coef)


def student_averages(students: Iterable[Student], period_id: str, grades: Iterable[Grade],
                     subjects: Iterable[Subject], scale: Optional[GradingScale] = None) -> Dict[str, Optional[float]]:
    """批量计算学生平均分，保持学生输入顺序"""
    grades = list(grades)
    subjects = list(subjects)
    return {
        student.id: student_average(student.id, period_id, grades, subjects, scale)
        for student in students
    }


def class_average(students: Iterable[Student], period_id: str, grades: Iterable[Grade],
                  subjects: Iterable[Subject], scale: Optional[GradingScale] = None) -> Optional[float]:
    """
    计算班级平均分：各学生平均分的算术平均（不按人加权）

    没有任何学生有平均分时返回None
    """
    averages = student_averages(students, period_id, grades, subjects, scale)
    return _mean([avg for avg in averages.values() if avg is not None])


def subject_class_average(subject_id: str, period_id: str, grades: Iterable[Grade],
                          scale: Optional[GradingScale] = None) -> Optional[float]:
    """科目班级平均分：该科目该周期所有有效分数的算术平均（不乘系数）"""
    values = [
        g.value for g in _valid_values(grades, scale)
        if g.subject_id == subject_id and g.period_id == period_id
    ]
    return _mean(values)


def student_subject_average(student_id: str, subject_id: str, period_id: str,
                            grades: Iterable[Grade], scale: Optional[GradingScale] = None) -> Optional[float]:
    """学生单科平均分：该科目该周期所有成绩条目等权平均"""
    values = [
        g.value for g in _valid_values(grades, scale)
        if g.student_id == student_id and g.subject_id == subject_id and g.period_id == period_id
    ]
    return _mean(values)


def subject_class_extremes(subject_id: str, period_id: str, grades: Iterable[Grade],
                           scale: Optional[GradingScale] = None) -> Tuple[Optional[float], Optional[float]]:
    """科目在该周期的最低分与最高分"""
    values = [
        g.value for g in _valid_values(grades, scale)
        if g.subject_id == subject_id and g.period_id == period_id
    ]
    if not values:
        return None, None
    return min(values), max(values)
