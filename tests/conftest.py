# 测试公共数据
import pytest

from bulletin_engine.schemas.entities import (
    Student, Subject, GradingPeriod, Grade, MentionRule, AppreciationRule,
    SchoolSettings, SchoolState
)
from bulletin_engine.calculation.grading_config import GradingConfig
from bulletin_engine.services.state_store import MemoryStateStore
from bulletin_engine.services.school_data_service import SchoolDataService


@pytest.fixture
def subjects():
    return [
        Subject(id='s1', name='Mathématiques', coefficient=3, category='Sciences'),
        Subject(id='s2', name='Français', coefficient=1, category='Langues'),
    ]


@pytest.fixture
def students():
    return [
        Student(id='e1', first_name='Alice', last_name='Dossou', gender='F', class_name='CM2'),
        Student(id='e2', first_name='Bruno', last_name='Kakpo', gender='M', class_name='CM2'),
        Student(id='e3', first_name='Chloé', last_name='Soglo', gender='F', class_name='CM2'),
        Student(id='e4', first_name='David', last_name='Zannou', gender='M', class_name='CM2'),
    ]


@pytest.fixture
def periods():
    return [
        GradingPeriod(id='p1', name='Trimestre 1', order=1),
        GradingPeriod(id='p2', name='Trimestre 2', order=2),
    ]


@pytest.fixture
def grades():
    """
    周期p1: e1=(12×3+16×1)/4=13.0, e2=15.0, e3=8.0(法语未评分), e4无成绩
    周期p2: 只有e1的数学
    """
    return [
        Grade(student_id='e1', subject_id='s1', period_id='p1', value=12),
        Grade(student_id='e1', subject_id='s2', period_id='p1', value=16),
        Grade(student_id='e2', subject_id='s1', period_id='p1', value=15),
        Grade(student_id='e2', subject_id='s2', period_id='p1', value=15),
        Grade(student_id='e3', subject_id='s1', period_id='p1', value=8),
        Grade(student_id='e3', subject_id='s2', period_id='p1', value=None),
        Grade(student_id='e1', subject_id='s1', period_id='p2', value=18),
    ]


@pytest.fixture
def settings():
    return SchoolSettings(note_min=0, note_max=20, note_decimal_places=2)


@pytest.fixture
def mention_rules():
    return GradingConfig.default_mention_rules()


@pytest.fixture
def appreciation_rules():
    return GradingConfig.default_appreciation_rules()


@pytest.fixture
def school_state(students, subjects, grades, periods, settings, mention_rules, appreciation_rules):
    return SchoolState(
        students=students,
        subjects=subjects,
        grades=grades,
        periods=periods,
        settings=settings,
        active_period_id='p1',
        mention_rules=mention_rules,
        appreciation_rules=appreciation_rules,
        categories=list(GradingConfig.DEFAULT_CATEGORIES),
        demo_names=GradingConfig.default_demo_names()
    )


@pytest.fixture
def store(school_state):
    return MemoryStateStore(school_state.to_json_dict())


@pytest.fixture
def data_service(store):
    service = SchoolDataService(store)
    service.load()
    return service
