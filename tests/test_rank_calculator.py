# 排名计算器测试
from bulletin_engine.schemas.entities import Grade, Subject, Student
from bulletin_engine.calculation.calculators.rank_calculator import ranks, format_rank


def _single_subject_grades(values):
    """每个学生一门系数1的成绩"""
    return [
        Grade(student_id=student_id, subject_id='s1', period_id='p1', value=value)
        for student_id, value in values.items()
    ]


class TestRanks:
    """测试周期排名"""

    def setup_method(self):
        self.subjects = [Subject(id='s1', name='Maths', coefficient=1)]
        self.students = [
            Student(id='a', first_name='A', last_name='A'),
            Student(id='b', first_name='B', last_name='B'),
            Student(id='c', first_name='C', last_name='C'),
        ]

    def test_descending_order(self, students, grades, subjects):
        result = ranks(students, 'p1', grades, subjects)
        assert result == {'e2': 1, 'e1': 2, 'e3': 3}

    def test_student_without_average_not_ranked(self, students, grades, subjects):
        result = ranks(students, 'p1', grades, subjects)
        assert 'e4' not in result
        graded = [s for s in students if any(
            g.student_id == s.id and g.period_id == 'p1' and g.value is not None for g in grades
        )]
        assert len(result) == len(graded)

    def test_ties_get_sequential_ranks_in_input_order(self):
        """平均分15、15、12 -> 名次1、2、3，并列者保持学生输入顺序"""
        grades = _single_subject_grades({'a': 15, 'b': 15, 'c': 12})
        assert ranks(self.students, 'p1', grades, self.subjects) == {'a': 1, 'b': 2, 'c': 3}

        reversed_students = list(reversed(self.students[:2])) + [self.students[2]]
        assert ranks(reversed_students, 'p1', grades, self.subjects) == {'b': 1, 'a': 2, 'c': 3}

    def test_ranks_are_distinct_and_contiguous(self):
        grades = _single_subject_grades({'a': 10, 'b': 10, 'c': 10})
        result = ranks(self.students, 'p1', grades, self.subjects)
        assert sorted(result.values()) == [1, 2, 3]

    def test_no_grades_gives_empty_ranking(self):
        assert ranks(self.students, 'p1', [], self.subjects) == {}

    def test_scoped_to_period(self, students, grades, subjects):
        assert ranks(students, 'p2', grades, subjects) == {'e1': 1}

    def test_zero_average_is_ranked(self):
        grades = _single_subject_grades({'a': 0, 'b': 5})
        assert ranks(self.students, 'p1', grades, self.subjects) == {'b': 1, 'a': 2}


class TestFormatRank:
    """测试名次显示"""

    def test_rank_over_class_size(self):
        assert format_rank(2, 25) == "2/25"

    def test_unranked_placeholder(self):
        assert format_rank(None, 25) == "-/25"
