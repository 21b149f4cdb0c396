# 学校数据实体模型
import logging
from dataclasses import dataclass
from typing import List, Optional, Literal, Tuple, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 2


class EntityModel(BaseModel):
    """实体基类：Python侧使用snake_case，JSON侧使用camelCase"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode='json')


class Student(EntityModel):
    """学生"""
    id: str = Field(..., min_length=1, description="学生ID")
    first_name: str = Field(..., description="名")
    last_name: str = Field(..., description="姓")
    date_of_birth: str = Field("", description="出生日期")
    gender: Literal['M', 'F'] = Field('M', description="性别")
    class_name: str = Field("", description="班级")
    photo: Optional[str] = None
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    parent_email: Optional[str] = None
    matricule: Optional[str] = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}".strip()


class Subject(EntityModel):
    """科目，coefficient为跨科目平均分中的权重"""
    id: str = Field(..., min_length=1, description="科目ID")
    name: str = Field(..., description="科目名称")
    coefficient: float = Field(1.0, ge=0, description="系数")
    color: str = "#4169E1"
    category: str = "Autre"
    is_active: bool = True


class GradingPeriod(EntityModel):
    """评分周期（学期/季度）"""
    id: str = Field(..., min_length=1, description="周期ID")
    name: str = Field(..., description="周期名称")
    order: int = Field(0, description="排序位置")
    type: Literal['trimestre', 'semestre', 'custom'] = 'trimestre'
    start_date: str = ""
    end_date: str = ""


class Grade(EntityModel):
    """成绩：(学生, 科目, 周期) -> 分数，value为None表示尚未评分"""
    student_id: str
    subject_id: str
    period_id: str
    value: Optional[float] = None

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.student_id, self.subject_id, self.period_id)


class MentionRule(EntityModel):
    """评语等级规则：平均分达到min_average即适用"""
    id: str
    min_average: float
    label: str
    emoji: str = ""
    color: str = "#999999"


class AppreciationRule(EntityModel):
    """评价区间规则：min <= 平均分 <= max"""
    id: str
    min: float
    max: float
    label: str
    color: str = "#999999"

    @model_validator(mode='after')
    def check_interval(self):
        if self.min > self.max:
            raise ValueError(f"评价区间无效: min={self.min} > max={self.max}")
        return self


@dataclass(frozen=True)
class GradingScale:
    """评分量表：所有计算遵循的上下限与显示精度"""
    note_min: float = 0.0
    note_max: float = 20.0
    decimal_places: int = 2

    def contains(self, value: float) -> bool:
        return self.note_min <= value <= self.note_max

    def ratio(self, value: float) -> float:
        """将分数换算为量表上的比例(0-1)"""
        span = self.note_max - self.note_min
        if span <= 0:
            return 0.0
        return (value - self.note_min) / span


class SchoolSettings(EntityModel):
    """学校设置"""
    school_name: str = "Les Bulles de Joie"
    school_address: str = ""
    school_phone: str = ""
    school_email: str = ""
    logo: Optional[str] = None
    cachet: Optional[str] = None
    signature_directeur: Optional[str] = None
    signature_enseignant: Optional[str] = None
    annee_scolaire: str = ""
    primary_color: str = "#FF69B4"
    show_ranks: bool = True
    bulletin_title: str = "BULLETIN DE NOTES"
    director_title: str = "Le/La Directeur(trice)"
    teacher_title: str = "L'Enseignant(e)"
    parent_title: str = "Le Parent"
    note_min: float = 0
    note_max: float = 20
    note_decimal_places: int = Field(2, ge=0, le=4)
    schema_version: int = CURRENT_SCHEMA_VERSION

    @model_validator(mode='after')
    def check_scale(self):
        if self.note_min >= self.note_max:
            raise ValueError(f"评分量表无效: noteMin={self.note_min} >= noteMax={self.note_max}")
        return self

    @property
    def grading_scale(self) -> GradingScale:
        return GradingScale(
            note_min=float(self.note_min),
            note_max=float(self.note_max),
            decimal_places=self.note_decimal_places
        )


class DemoNamePool(EntityModel):
    """演示数据姓名池"""
    first_names_male: List[str] = Field(default_factory=list)
    first_names_female: List[str] = Field(default_factory=list)
    last_names: List[str] = Field(default_factory=list)


class SchoolState(EntityModel):
    """应用状态快照"""
    students: List[Student] = Field(default_factory=list)
    subjects: List[Subject] = Field(default_factory=list)
    grades: List[Grade] = Field(default_factory=list)
    periods: List[GradingPeriod] = Field(default_factory=list)
    settings: SchoolSettings = Field(default_factory=SchoolSettings)
    active_period_id: Optional[str] = None
    appreciation_rules: List[AppreciationRule] = Field(default_factory=list)
    mention_rules: List[MentionRule] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    demo_names: DemoNamePool = Field(default_factory=DemoNamePool)

    @field_validator('grades')
    @classmethod
    def dedupe_grades(cls, grades: List[Grade]) -> List[Grade]:
        """同一(学生, 科目, 周期)只保留最后写入的成绩"""
        latest: Dict[Tuple[str, str, str], Grade] = {}
        for grade in grades:
            latest[grade.key] = grade
        if len(latest) != len(grades):
            logger.warning(f"发现{len(grades) - len(latest)}条重复成绩，已按最后写入保留")
        return list(latest.values())
