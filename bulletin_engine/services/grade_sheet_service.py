# 成绩汇总表
import logging
from typing import Dict, Iterable, List

import pandas as pd

from ..schemas.entities import Student, Subject, Grade, SchoolSettings, MentionRule
from ..calculation.calculators.average_calculator import student_subject_average, student_average
from ..calculation.calculators.rank_calculator import ranks
from ..calculation.calculators.rule_resolver import resolve_mention

logger = logging.getLogger(__name__)

BASE_COLUMNS = ['student_id', 'student_name', 'class_name']
SUMMARY_COLUMNS = ['average', 'rank', 'mention']


def subject_column_labels(subjects: Iterable[Subject]) -> Dict[str, str]:
    """
    科目ID -> 列名

    默认使用科目名称；名称重复或与固定列同名时附加科目ID，保证列名唯一
    """
    subjects = list(subjects)
    reserved = set(BASE_COLUMNS) | set(SUMMARY_COLUMNS)
    name_counts: Dict[str, int] = {}
    for subject in subjects:
        name_counts[subject.name] = name_counts.get(subject.name, 0) + 1

    labels = {}
    for subject in subjects:
        if name_counts[subject.name] > 1 or subject.name in reserved:
            labels[subject.id] = f"{subject.name} [{subject.id}]"
        else:
            labels[subject.id] = subject.name
    return labels


def build_grade_sheet(period_id: str, students: Iterable[Student], subjects: Iterable[Subject],
                      grades: Iterable[Grade], settings: SchoolSettings,
                      mention_rules: Iterable[MentionRule]) -> pd.DataFrame:
    """
    构建周期成绩汇总表(供外部表格导出使用)

    每个启用的学生一行；每个启用的科目一列(学生单科平均分)，
    最后是总平均分、名次与评语等级。没有成绩的单元格为NaN/None。
    名次在传入的学生范围内计算。
    """
    active_students: List[Student] = [s for s in students if s.is_active]
    active_subjects: List[Subject] = [s for s in subjects if s.is_active]
    grades = [g for g in grades if g.period_id == period_id]
    mention_rules = list(mention_rules)
    scale = settings.grading_scale
    labels = subject_column_labels(active_subjects)

    period_ranks = ranks(active_students, period_id, grades, active_subjects, scale)

    rows = []
    for student in active_students:
        row = {'student_id': student.id, 'student_name': student.full_name, 'class_name': student.class_name}
        for subject in active_subjects:
            row[labels[subject.id]] = student_subject_average(student.id, subject.id, period_id, grades, scale)
        average = student_average(student.id, period_id, grades, active_subjects, scale)
        mention = resolve_mention(average, mention_rules) if average is not None else None
        row['average'] = average
        row['rank'] = period_ranks.get(student.id)
        row['mention'] = mention.label if mention is not None else None
        rows.append(row)

    columns = BASE_COLUMNS + [labels[subject.id] for subject in active_subjects] + SUMMARY_COLUMNS
    sheet = pd.DataFrame(rows, columns=columns)
    # 名次为可空整数列，评语等级缺失时保持None
    sheet['rank'] = pd.array([row['rank'] for row in rows], dtype='Int64')
    sheet['mention'] = pd.Series([row['mention'] for row in rows], index=sheet.index, dtype=object)
    logger.debug(f"周期{period_id}成绩汇总表: {len(sheet)}行 x {len(columns)}列")
    return sheet
