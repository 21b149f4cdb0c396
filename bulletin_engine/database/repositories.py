# 数据仓库层
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from datetime import datetime
import logging

from .models import AppStateEntry

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Repository层异常基类"""
    pass


class DataIntegrityError(RepositoryError):
    """数据完整性异常"""
    pass


class BaseRepository:
    """基础仓库类"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def _handle_db_error(self, error: Exception, operation: str) -> None:
        """统一处理数据库异常"""
        logger.error(f"Database error in {operation}: {str(error)}")
        self.db.rollback()

        if isinstance(error, IntegrityError):
            raise DataIntegrityError(f"数据完整性错误: {str(error)}")
        elif isinstance(error, SQLAlchemyError):
            raise RepositoryError(f"数据库操作失败: {str(error)}")
        else:
            raise RepositoryError(f"未知数据库错误: {str(error)}")


class AppStateRepository(BaseRepository):
    """应用状态键值仓库"""

    def get_entry(self, key: str) -> Optional[AppStateEntry]:
        try:
            return self.db.query(AppStateEntry).filter(AppStateEntry.key == key).first()
        except Exception as e:
            self._handle_db_error(e, "get_entry")

    def get_value(self, key: str) -> Optional[str]:
        """读取键对应的JSON文本，不存在时返回None"""
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def set_value(self, key: str, value: str) -> AppStateEntry:
        """写入(新建或覆盖)键对应的JSON文本"""
        try:
            entry = self.db.query(AppStateEntry).filter(AppStateEntry.key == key).first()
            if entry is None:
                entry = AppStateEntry(key=key, value=value, updated_at=datetime.now())
                self.db.add(entry)
            else:
                entry.value = value
                entry.updated_at = datetime.now()
            self.db.commit()
            self.db.refresh(entry)
            logger.debug(f"已保存键 {key} ({len(value)} 字节)")
            return entry
        except Exception as e:
            self._handle_db_error(e, "set_value")

    def delete_value(self, key: str) -> bool:
        """删除键，不存在时返回False"""
        try:
            entry = self.db.query(AppStateEntry).filter(AppStateEntry.key == key).first()
            if entry is None:
                return False
            self.db.delete(entry)
            self.db.commit()
            logger.info(f"已删除键 {key}")
            return True
        except Exception as e:
            self._handle_db_error(e, "delete_value")

    def list_keys(self) -> List[str]:
        try:
            return [row.key for row in self.db.query(AppStateEntry).order_by(AppStateEntry.key).all()]
        except Exception as e:
            self._handle_db_error(e, "list_keys")
