"""
状态文档验证器

负责在导入前检查JSON文档的结构：必需的顶层键、各集合的类型、
成绩引用与分数范围，确保整份文档可以安全地整体替换当前状态。
"""

import logging
from typing import Dict, Any, List, Set

logger = logging.getLogger(__name__)

REQUIRED_IMPORT_KEYS = ('students', 'subjects', 'grades', 'settings')

LIST_KEYS = ('students', 'subjects', 'grades', 'periods', 'appreciationRules', 'mentionRules', 'categories')


class ValidationResult:
    """验证结果类"""

    def __init__(self, is_valid: bool = True):
        self.is_valid = is_valid
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.details: Dict[str, Any] = {}

    def add_error(self, message: str, field: str = None):
        """添加错误"""
        self.is_valid = False
        if field:
            self.errors.append(f"{field}: {message}")
        else:
            self.errors.append(message)

    def add_warning(self, message: str, field: str = None):
        """添加警告"""
        if field:
            self.warnings.append(f"{field}: {message}")
        else:
            self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'details': self.details
        }


class StateDocumentValidator:
    """应用状态文档验证器"""

    def validate_structure(self, data: Any, require_keys: bool = True) -> ValidationResult:
        """
        验证状态文档的顶层结构

        Args:
            data: json.loads得到的对象
            require_keys: 是否要求students/subjects/grades/settings齐全(导入时)

        Returns:
            验证结果；缺少必需键或集合类型错误时无效
        """
        result = ValidationResult()

        if not isinstance(data, dict):
            result.add_error("导入文档必须是JSON对象")
            return result

        if require_keys:
            for key in REQUIRED_IMPORT_KEYS:
                if key not in data:
                    result.add_error("缺少必需字段", key)

        for key in LIST_KEYS:
            if data.get(key) is None:
                continue
            if not isinstance(data[key], list):
                result.add_error("必须是数组", key)
            elif key != "categories" and not all(isinstance(item, dict) for item in data[key]):
                result.add_error("数组元素必须是对象", key)

        if data.get('settings') is not None and not isinstance(data['settings'], dict):
            result.add_error("必须是对象", 'settings')

        if result.is_valid:
            result.details = {
                key: len(data.get(key) or [])
                for key in ('students', 'subjects', 'grades', 'periods')
            }

        logger.debug(f"导入文档结构验证完成，有效性: {result.is_valid}")
        return result

    def validate_grades(self, grades: List[Dict[str, Any]], note_min: float, note_max: float,
                        student_ids: Set[str], subject_ids: Set[str], period_ids: Set[str]) -> ValidationResult:
        """
        验证成绩：分数必须在量表范围内；引用不存在的学生/科目/周期只给出警告
        (汇总计算时这些成绩会被忽略)
        """
        result = ValidationResult()
        orphan_count = 0

        for index, grade in enumerate(grades):
            value = grade.get('value')
            if value is not None:
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    result.add_error(f"分数必须是数字: {value!r}", f"grades[{index}]")
                    continue
                if not (note_min <= value <= note_max):
                    result.add_error(f"分数{value}超出范围[{note_min}, {note_max}]", f"grades[{index}]")

            if (grade.get('studentId') not in student_ids
                    or grade.get('subjectId') not in subject_ids
                    or grade.get('periodId') not in period_ids):
                orphan_count += 1

        if orphan_count:
            result.add_warning(f"{orphan_count}条成绩引用了不存在的学生、科目或周期，计算时将被忽略")

        return result
