from pydantic import BaseModel, Field
from typing import Optional


class GradeWriteRequest(BaseModel):
    """写入单条成绩请求模型"""
    student_id: str = Field(..., description="学生ID", min_length=1)
    subject_id: str = Field(..., description="科目ID", min_length=1)
    period_id: str = Field(..., description="周期ID", min_length=1)
    value: Optional[float] = Field(None, description="分数，为空表示尚未评分")

    model_config = {
        "json_schema_extra": {
            "example": {
                "student_id": "e1",
                "subject_id": "s1",
                "period_id": "p1",
                "value": 14.5
            }
        }
    }
