"""
应用状态导出/导入与版本迁移

导出为单个JSON文档(camelCase键)；导入为整体替换：
解析 -> 结构验证 -> 版本迁移 -> 实体验证，任一步失败都不会产生部分状态。
"""

import copy
import json
import logging
from datetime import datetime
from typing import Dict, Any, List, Optional

from pydantic import ValidationError

from ..schemas.entities import SchoolState, CURRENT_SCHEMA_VERSION
from ..calculation.grading_config import GradingConfig
from .schema_validator import StateDocumentValidator, ValidationResult

logger = logging.getLogger(__name__)

# 旧版本文档中的键名
LEGACY_KEY_ALIASES = {
    'periodes': 'periods',
    'schoolPeriods': 'periods',
}


class ImportValidationError(ValueError):
    """导入文档无效，当前状态保持不变"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


def _schema_version(raw: Dict[str, Any]) -> int:
    settings = raw.get('settings') or {}
    version = settings.get('schemaVersion', settings.get('schema_version', 1))
    try:
        return int(version)
    except (TypeError, ValueError):
        return 1


def _migrate_v1_to_v2(doc: Dict[str, Any]) -> None:
    """v1文档没有量表设置、显示排名开关和启用标记"""
    for collection in ('students', 'subjects'):
        for item in doc[collection]:
            if isinstance(item, dict):
                item.setdefault('isActive', True)
    for grade in doc['grades']:
        if isinstance(grade, dict):
            grade.setdefault('value', None)


MIGRATIONS = {
    1: _migrate_v1_to_v2,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _sorted_rules(rules: List[Any], field: str, reverse: bool = False) -> List[Any]:
    """按门槛排序；门槛不是数字时保持原顺序，交给实体验证报错"""
    if not all(isinstance(r, dict) and _is_number(r.get(field, 0)) for r in rules):
        return list(rules)
    return sorted(rules, key=lambda r: r.get(field, 0), reverse=reverse)


def migrate_state(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    将任意版本的状态文档升级为当前版本(加载或导入时执行一次)

    - 旧键名改为当前键名
    - 缺失的顶层键使用默认值
    - 设置合并到默认设置之上
    - 逐版本执行迁移步骤
    - 规则表排序：评语等级按门槛降序，评价区间按下限升序

    Returns:
        新的字典，不修改输入
    """
    doc = copy.deepcopy(raw)
    defaults = GradingConfig.default_state_document()

    for legacy_key, key in LEGACY_KEY_ALIASES.items():
        if legacy_key in doc and key not in doc:
            doc[key] = doc.pop(legacy_key)
    doc.pop('exportDate', None)

    version = _schema_version(doc)

    for key, default_value in defaults.items():
        if key == 'settings':
            continue
        if doc.get(key) is None:
            doc[key] = default_value

    # 只合并文档中有值的设置项
    settings = {k: v for k, v in (doc.get('settings') or {}).items() if v is not None}
    doc['settings'] = {**defaults['settings'], **settings}

    while version < CURRENT_SCHEMA_VERSION:
        migration = MIGRATIONS.get(version)
        if migration is not None:
            logger.info(f"迁移状态文档: v{version} -> v{version + 1}")
            migration(doc)
        version += 1
    doc['settings']['schemaVersion'] = CURRENT_SCHEMA_VERSION

    doc['mentionRules'] = _sorted_rules(doc['mentionRules'], 'minAverage', reverse=True)
    doc['appreciationRules'] = _sorted_rules(doc['appreciationRules'], 'min')

    period_ids = [p.get('id') for p in doc['periods'] if isinstance(p, dict)]
    if doc.get('activePeriodId') not in period_ids:
        doc['activePeriodId'] = period_ids[0] if period_ids else None

    return doc


def _format_pydantic_errors(error: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    ]


def load_state_document(raw: Dict[str, Any], require_keys: bool = False) -> SchoolState:
    """
    将原始文档迁移并验证为SchoolState

    Args:
        raw: 状态文档
        require_keys: 导入时为True，要求students/subjects/grades/settings齐全

    Raises:
        ImportValidationError: 文档结构、实体字段或分数范围无效
    """
    validator = StateDocumentValidator()

    structure = validator.validate_structure(raw, require_keys=require_keys)
    if not structure.is_valid:
        raise ImportValidationError("状态文档格式无效", structure.errors)

    doc = migrate_state(raw)

    try:
        state = SchoolState.model_validate(doc)
    except ValidationError as e:
        raise ImportValidationError("导入文档包含无效数据", _format_pydantic_errors(e)) from e

    # 数字字符串经验证转换后再排序一次
    state.mention_rules.sort(key=lambda r: r.min_average, reverse=True)
    state.appreciation_rules.sort(key=lambda r: r.min)

    scale = state.settings.grading_scale
    grade_check: ValidationResult = validator.validate_grades(
        doc['grades'], scale.note_min, scale.note_max,
        {s.id for s in state.students},
        {s.id for s in state.subjects},
        {p.id for p in state.periods}
    )
    if not grade_check.is_valid:
        raise ImportValidationError("导入文档包含超出范围的成绩", grade_check.errors)
    for warning in grade_check.warnings:
        logger.warning(warning)

    return state


def parse_import(text: str) -> SchoolState:
    """解析导入的JSON文本"""
    try:
        raw = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise ImportValidationError(f"JSON解析失败: {str(e)}") from e

    state = load_state_document(raw, require_keys=True)
    logger.info(
        f"导入文档验证通过: {len(state.students)}名学生, {len(state.subjects)}个科目, "
        f"{len(state.grades)}条成绩"
    )
    return state


def export_state(state: SchoolState, export_date: Optional[datetime] = None) -> Dict[str, Any]:
    """导出完整状态文档"""
    document = state.to_json_dict()
    document['exportDate'] = (export_date or datetime.now()).isoformat()
    return document


def export_state_json(state: SchoolState, export_date: Optional[datetime] = None) -> str:
    return json.dumps(export_state(state, export_date), ensure_ascii=False, indent=2)
