# API依赖：进程内唯一的状态服务
import logging
from typing import Optional

from ..database.connection import create_tables
from ..services.state_store import SqlAlchemyStateStore
from ..services.school_data_service import SchoolDataService
from ..services.report_service import ReportService

logger = logging.getLogger(__name__)

_data_service: Optional[SchoolDataService] = None
_report_service: Optional[ReportService] = None


def get_data_service() -> SchoolDataService:
    """首次调用时建表并从本地数据库加载状态"""
    global _data_service
    if _data_service is None:
        create_tables()
        _data_service = SchoolDataService(SqlAlchemyStateStore())
        _data_service.load()
        logger.info("学校数据服务已初始化")
    return _data_service


def get_report_service() -> ReportService:
    global _report_service
    if _report_service is None:
        _report_service = ReportService(get_data_service())
    return _report_service
