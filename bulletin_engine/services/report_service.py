# 报告服务：基于当前状态快照计算成绩单、排名与班级概况
import logging
from typing import Dict, Any, List, Optional

import pandas as pd

from ..calculation.engine import CalculationEngine
from ..calculation.calculators.strategy_registry import initialize_calculation_system
from ..calculation.calculators.average_calculator import student_averages
from ..calculation.calculators.rank_calculator import ranks, format_rank
from ..calculation.calculators.rule_resolver import resolve_mention
from ..calculation.calculators.class_statistics import build_average_frame
from ..schemas.entities import SchoolState, Student
from .bulletin_service import BulletinData, assemble_bulletin, assemble_class_bulletins
from .grade_sheet_service import build_grade_sheet
from .school_data_service import SchoolDataService, EntityNotFoundError

logger = logging.getLogger(__name__)


class ReportService:
    """报告服务，每次调用都根据最新状态重新计算"""

    def __init__(self, data_service: SchoolDataService, engine: Optional[CalculationEngine] = None):
        self.data_service = data_service
        self.engine = engine or initialize_calculation_system()

    def _snapshot(self, period_id: str) -> SchoolState:
        state = self.data_service.state
        if not any(p.id == period_id for p in state.periods):
            raise EntityNotFoundError("周期", period_id)
        return state

    def _class_groups(self, state: SchoolState, class_name: Optional[str] = None) -> Dict[str, List[Student]]:
        """按班级分组(保持学生首次出现的顺序)；排名与班级人数都在班级内计算"""
        groups: Dict[str, List[Student]] = {}
        for student in state.students:
            if class_name is None or student.class_name == class_name:
                groups.setdefault(student.class_name, []).append(student)
        return groups

    def get_bulletin(self, period_id: str, student_id: str) -> BulletinData:
        state = self._snapshot(period_id)
        student = next((s for s in state.students if s.id == student_id), None)
        if student is None:
            raise EntityNotFoundError("学生", student_id)
        classmates = self._class_groups(state, student.class_name)[student.class_name]
        bulletin = assemble_bulletin(
            student_id, period_id, classmates, state.subjects, state.grades,
            state.settings, state.mention_rules, state.appreciation_rules, state.periods
        )
        if bulletin is None:
            raise EntityNotFoundError("学生", student_id)
        return bulletin

    def get_class_bulletins(self, period_id: str, class_name: Optional[str] = None) -> List[BulletinData]:
        """成绩单按班级依次排列，每个班级内按名次排序；给定class_name时只返回该班级"""
        state = self._snapshot(period_id)
        bulletins: List[BulletinData] = []
        for students in self._class_groups(state, class_name).values():
            bulletins.extend(assemble_class_bulletins(
                period_id, students, state.subjects, state.grades, state.settings,
                state.mention_rules, state.appreciation_rules, state.periods
            ))
        return bulletins

    def get_rankings(self, period_id: str, class_name: Optional[str] = None) -> List[Dict[str, Any]]:
        """排名表：按班级分组，班级内已排名学生按名次在前，未排名学生在后(名次为None)"""
        state = self._snapshot(period_id)
        subjects = [s for s in state.subjects if s.is_active]
        scale = state.settings.grading_scale

        rows = []
        for group_name, group in self._class_groups(state, class_name).items():
            students = [s for s in group if s.is_active]
            averages = student_averages(students, period_id, state.grades, subjects, scale)
            period_ranks = ranks(students, period_id, state.grades, subjects, scale)
            class_size = len(students)

            class_rows = []
            for student in students:
                average = averages[student.id]
                mention = resolve_mention(average, state.mention_rules) if average is not None else None
                rank = period_ranks.get(student.id)
                class_rows.append({
                    'student_id': student.id,
                    'student_name': student.full_name,
                    'class_name': group_name,
                    'average': average,
                    'rank': rank,
                    'rank_display': format_rank(rank, class_size),
                    'mention': mention.to_dict() if mention else None
                })
            class_rows.sort(key=lambda row: (row['rank'] is None, row['rank'] or 0))
            rows.extend(class_rows)
        return rows

    def get_class_overview(self, period_id: str, class_name: Optional[str] = None) -> Dict[str, Any]:
        """班级概况，通过计算引擎的class_overview策略计算；不给定class_name时统计全校"""
        state = self._snapshot(period_id)
        students = [s for s in state.students
                    if s.is_active and (class_name is None or s.class_name == class_name)]
        subjects = [s for s in state.subjects if s.is_active]
        scale = state.settings.grading_scale

        if not students:
            logger.info(f"周期{period_id}没有启用的学生，返回空概况")
            return {'student_count': 0, 'graded_count': 0, 'ungraded_count': 0,
                    'mean': None, 'median': None, 'std': None, 'min': None, 'max': None,
                    'pass_rate': None, 'mention_distribution': {}, 'top_student_id': None}

        averages = student_averages(students, period_id, state.grades, subjects, scale)
        # 及格线取量表中点(0-20分制为10分)
        config = {
            'mention_rules': state.mention_rules,
            'pass_mark': scale.note_min + (scale.note_max - scale.note_min) / 2,
            'note_min': scale.note_min,
            'note_max': scale.note_max
        }
        return self.engine.calculate('class_overview', build_average_frame(averages), config)

    def get_grade_sheet(self, period_id: str, class_name: Optional[str] = None) -> pd.DataFrame:
        """成绩汇总表，名次在各班级内计算"""
        state = self._snapshot(period_id)
        sheets = [
            build_grade_sheet(period_id, students, state.subjects, state.grades,
                              state.settings, state.mention_rules)
            for students in self._class_groups(state, class_name).values()
        ]
        if not sheets:
            return build_grade_sheet(period_id, [], state.subjects, state.grades,
                                     state.settings, state.mention_rules)
        return pd.concat(sheets, ignore_index=True)
