from fastapi import APIRouter, HTTPException, Query, Depends
from typing import Optional

from ..schemas.response_schemas import ApiResponse, success_response
from ..services.report_service import ReportService
from ..services.school_data_service import EntityNotFoundError
from .dependencies import get_report_service

router = APIRouter(tags=["成绩单报告API"])


@router.get("/periods/{period_id}/students/{student_id}/bulletin", response_model=ApiResponse)
def get_student_bulletin(
    period_id: str,
    student_id: str,
    rounded: bool = Query(True, description="是否按设置的小数位数舍入"),
    service: ReportService = Depends(get_report_service)
):
    """获取单个学生的成绩单数据"""
    try:
        bulletin = service.get_bulletin(period_id, student_id)
        decimal_places = service.data_service.state.settings.note_decimal_places if rounded else None
        return success_response(bulletin.to_dict(decimal_places))
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/periods/{period_id}/bulletins", response_model=ApiResponse)
def get_period_bulletins(
    period_id: str,
    class_name: Optional[str] = Query(None, description="班级，不指定则返回所有学生"),
    service: ReportService = Depends(get_report_service)
):
    """获取周期内全部学生的成绩单数据(按名次排列)"""
    try:
        bulletins = service.get_class_bulletins(period_id, class_name)
        decimal_places = service.data_service.state.settings.note_decimal_places
        return success_response({
            "period_id": period_id,
            "count": len(bulletins),
            "bulletins": [b.to_dict(decimal_places) for b in bulletins]
        })
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/periods/{period_id}/rankings", response_model=ApiResponse)
def get_period_rankings(
    period_id: str,
    class_name: Optional[str] = Query(None, description="班级，不指定则返回全部班级"),
    service: ReportService = Depends(get_report_service)
):
    """获取周期排名(名次在班级内计算)"""
    try:
        return success_response({"period_id": period_id, "rankings": service.get_rankings(period_id, class_name)})
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/periods/{period_id}/overview", response_model=ApiResponse)
def get_period_overview(
    period_id: str,
    class_name: Optional[str] = Query(None, description="班级，不指定则统计全校"),
    service: ReportService = Depends(get_report_service)
):
    """获取班级概况统计"""
    try:
        overview = service.get_class_overview(period_id, class_name)
        return success_response({"period_id": period_id, "overview": overview})
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
