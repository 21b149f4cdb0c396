# 状态文档序列化模块
from .schema_validator import ValidationResult, StateDocumentValidator, REQUIRED_IMPORT_KEYS
from .state_serializer import (
    ImportValidationError,
    migrate_state,
    load_state_document,
    parse_import,
    export_state,
    export_state_json
)

__all__ = [
    'ValidationResult',
    'StateDocumentValidator',
    'REQUIRED_IMPORT_KEYS',
    'ImportValidationError',
    'migrate_state',
    'load_state_document',
    'parse_import',
    'export_state',
    'export_state_json'
]
