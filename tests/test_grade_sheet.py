# 成绩汇总表与报告服务测试
import pandas as pd
import pytest

from bulletin_engine.schemas.entities import Subject, Grade
from bulletin_engine.services.grade_sheet_service import build_grade_sheet, subject_column_labels
from bulletin_engine.services.report_service import ReportService
from bulletin_engine.services.school_data_service import EntityNotFoundError


class TestGradeSheet:
    """测试成绩汇总表"""

    def _sheet(self, school_state, period_id='p1', **overrides):
        args = dict(
            students=school_state.students,
            subjects=school_state.subjects,
            grades=school_state.grades,
            settings=school_state.settings,
            mention_rules=school_state.mention_rules
        )
        args.update(overrides)
        return build_grade_sheet(period_id, **args)

    def test_columns_and_values(self, school_state):
        sheet = self._sheet(school_state)

        assert list(sheet.columns) == [
            'student_id', 'student_name', 'class_name', 'Mathématiques', 'Français',
            'average', 'rank', 'mention'
        ]
        assert len(sheet) == 4

        alice = sheet.set_index('student_id').loc['e1']
        assert alice['student_name'] == 'Dossou Alice'
        assert alice['class_name'] == 'CM2'
        assert alice['Mathématiques'] == 12
        assert alice['average'] == 13.0
        assert alice['rank'] == 2
        assert alice['mention'] == 'ENCOURAGEMENTS'

    def test_missing_values(self, school_state):
        sheet = self._sheet(school_state).set_index('student_id')

        assert pd.isna(sheet.loc['e3', 'Français'])
        assert pd.isna(sheet.loc['e4', 'average'])
        assert pd.isna(sheet.loc['e4', 'rank'])
        assert pd.isna(sheet.loc['e4', 'mention'])
        assert sheet['mention'].dtype == object
        assert str(sheet['rank'].dtype) == 'Int64'

    def test_other_period(self, school_state):
        sheet = self._sheet(school_state, period_id='p2').set_index('student_id')
        assert sheet.loc['e1', 'average'] == 18.0
        assert sheet.loc['e1', 'rank'] == 1
        assert sheet['rank'].isna().sum() == 3

    def test_duplicate_subject_names_get_distinct_columns(self, school_state):
        subjects = [
            Subject(id='m1', name='Maths', coefficient=1),
            Subject(id='m2', name='Maths', coefficient=1),
        ]
        grades = [
            Grade(student_id='e1', subject_id='m1', period_id='p1', value=5),
            Grade(student_id='e1', subject_id='m2', period_id='p1', value=15),
        ]
        sheet = self._sheet(school_state, subjects=subjects, grades=grades)

        assert sheet.columns.is_unique
        alice = sheet.set_index('student_id').loc['e1']
        assert alice['Maths [m1]'] == 5
        assert alice['Maths [m2]'] == 15
        assert alice['average'] == 10.0

    def test_subject_named_like_summary_column(self):
        labels = subject_column_labels([
            Subject(id='s9', name='average', coefficient=1),
            Subject(id='s1', name='Maths', coefficient=1),
        ])
        assert labels == {'s9': 'average [s9]', 's1': 'Maths'}


class TestReportService:
    """测试报告服务"""

    def test_rankings_follow_latest_state(self, data_service):
        service = ReportService(data_service)
        assert service.get_rankings('p1')[0]['student_id'] == 'e2'

        data_service.set_grade('e1', 's1', 'p1', 20)
        rankings = service.get_rankings('p1')
        assert rankings[0]['student_id'] == 'e1'
        assert rankings[0]['average'] == 19.0

    def test_class_filter(self, data_service):
        data_service.update_student('e2', {'class_name': 'CM1'})
        bulletins = ReportService(data_service).get_class_bulletins('p1', class_name='CM2')
        assert [b.student_id for b in bulletins] == ['e1', 'e3', 'e4']
        assert bulletins[0].rank_display == '1/3'

    def test_ranks_are_scoped_to_the_class_everywhere(self, data_service):
        """同一学生在成绩单、全班成绩单、排名表与汇总表中的名次一致"""
        data_service.update_student('e2', {'class_name': 'CM1'})
        service = ReportService(data_service)

        bulletin = service.get_bulletin('p1', 'e1')
        assert (bulletin.rank, bulletin.rank_display, bulletin.class_size) == (1, '1/3', 3)
        assert bulletin.class_average == 10.5

        rankings = service.get_rankings('p1')
        by_student = {row['student_id']: row for row in rankings}
        assert [row['student_id'] for row in rankings] == ['e1', 'e3', 'e4', 'e2']
        assert by_student['e1']['rank_display'] == '1/3'
        assert by_student['e2']['rank_display'] == '1/1'
        assert by_student['e2']['class_name'] == 'CM1'

        all_bulletins = {b.student_id: b for b in service.get_class_bulletins('p1')}
        for student_id, row in by_student.items():
            assert all_bulletins[student_id].rank_display == row['rank_display']
            assert service.get_bulletin('p1', student_id).rank == row['rank']

        sheet = service.get_grade_sheet('p1').set_index('student_id')
        assert sheet.loc['e1', 'rank'] == 1
        assert sheet.loc['e2', 'rank'] == 1

    def test_rankings_for_one_class(self, data_service):
        data_service.update_student('e2', {'class_name': 'CM1'})
        rankings = ReportService(data_service).get_rankings('p1', class_name='CM1')
        assert [(row['student_id'], row['rank']) for row in rankings] == [('e2', 1)]

    def test_unknown_period(self, data_service):
        with pytest.raises(EntityNotFoundError):
            ReportService(data_service).get_rankings('p9')

    def test_unknown_student(self, data_service):
        with pytest.raises(EntityNotFoundError):
            ReportService(data_service).get_bulletin('p1', 'ghost')

    def test_overview_without_students(self, data_service):
        for student_id in ('e1', 'e2', 'e3', 'e4'):
            data_service.delete_student(student_id)
        overview = ReportService(data_service).get_class_overview('p1')
        assert overview['student_count'] == 0
        assert overview['mean'] is None

    def test_overview_pass_rate_uses_scale_midpoint(self, data_service):
        overview = ReportService(data_service).get_class_overview('p1')
        # 13和15及格，8不及格
        assert overview['pass_rate'] == 0.67
        assert overview['_meta']['data_size'] == 4

    def test_overview_for_one_class(self, data_service):
        data_service.update_student('e2', {'class_name': 'CM1'})
        overview = ReportService(data_service).get_class_overview('p1', class_name='CM1')
        assert overview['student_count'] == 1
        assert overview['mean'] == 15.0

    def test_grade_sheet(self, data_service):
        sheet = ReportService(data_service).get_grade_sheet('p1')
        assert len(sheet) == 4
        assert ReportService(data_service).get_grade_sheet('p1', class_name='CP').empty
