# 数据模型
from .entities import (
    Student, Subject, GradingPeriod, Grade, MentionRule, AppreciationRule,
    GradingScale, SchoolSettings, DemoNamePool, SchoolState, CURRENT_SCHEMA_VERSION
)

__all__ = [
    'Student',
    'Subject',
    'GradingPeriod',
    'Grade',
    'MentionRule',
    'AppreciationRule',
    'GradingScale',
    'SchoolSettings',
    'DemoNamePool',
    'SchoolState',
    'CURRENT_SCHEMA_VERSION'
]
