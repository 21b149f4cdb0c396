# 业务服务模块
from .state_store import StateStore, MemoryStateStore, SqlAlchemyStateStore
from .school_data_service import SchoolDataService, EntityNotFoundError, GradeValueError
from .bulletin_service import BulletinData, SubjectLine, assemble_bulletin, assemble_class_bulletins
from .grade_sheet_service import build_grade_sheet
from .report_service import ReportService

__all__ = [
    'StateStore',
    'MemoryStateStore',
    'SqlAlchemyStateStore',
    'SchoolDataService',
    'EntityNotFoundError',
    'GradeValueError',
    'BulletinData',
    'SubjectLine',
    'assemble_bulletin',
    'assemble_class_bulletins',
    'build_grade_sheet',
    'ReportService'
]
