from fastapi import APIRouter, HTTPException, Depends, Request

from ..database.repositories import RepositoryError
from ..schemas.request_schemas import GradeWriteRequest
from ..schemas.response_schemas import ApiResponse, success_response
from ..serialization.state_serializer import ImportValidationError
from ..services.school_data_service import SchoolDataService, EntityNotFoundError
from .dependencies import get_data_service

router = APIRouter(tags=["数据管理API"])


@router.get("/export")
def export_data(service: SchoolDataService = Depends(get_data_service)):
    """导出完整数据文档"""
    return service.export_document()


@router.post("/import", response_model=ApiResponse)
async def import_data(request: Request, service: SchoolDataService = Depends(get_data_service)):
    """导入完整数据文档(整体替换)"""
    body = await request.body()
    try:
        state = service.import_json(body.decode("utf-8"))
        return success_response(
            {
                "students": len(state.students),
                "subjects": len(state.subjects),
                "grades": len(state.grades),
                "periods": len(state.periods)
            },
            message="导入成功"
        )
    except ImportValidationError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "errors": e.errors})
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail=f"文档编码无效: {str(e)}")
    except RepositoryError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/grades", response_model=ApiResponse)
def write_grade(request: GradeWriteRequest, service: SchoolDataService = Depends(get_data_service)):
    """写入单条成绩(同一学生/科目/周期覆盖旧值)"""
    try:
        grade = service.set_grade(request.student_id, request.subject_id, request.period_id, request.value)
        return success_response(grade.model_dump(), message="成绩已保存")
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RepositoryError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/subjects/{subject_id}", response_model=ApiResponse)
def delete_subject(subject_id: str, service: SchoolDataService = Depends(get_data_service)):
    """删除科目及其全部成绩"""
    try:
        removed = service.delete_subject(subject_id)
        return success_response({"subject_id": subject_id, "removed_grades": removed}, message="科目删除成功")
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RepositoryError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/students/{student_id}", response_model=ApiResponse)
def delete_student(student_id: str, service: SchoolDataService = Depends(get_data_service)):
    """删除学生及其全部成绩"""
    try:
        removed = service.delete_student(student_id)
        return success_response({"student_id": student_id, "removed_grades": removed}, message="学生删除成功")
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RepositoryError as e:
        raise HTTPException(status_code=500, detail=str(e))
