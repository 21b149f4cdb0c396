# 状态快照存储
import json
import logging
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, Callable

from sqlalchemy.orm import Session

from ..config import STATE_KEY
from ..database.connection import SessionLocal
from ..database.repositories import AppStateRepository

logger = logging.getLogger(__name__)


class StateStore(ABC):
    """状态快照存储接口：load返回JSON文档(不存在时None)，save写入JSON文档"""

    @abstractmethod
    def load(self) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def save(self, document: Dict[str, Any]) -> None:
        pass


class MemoryStateStore(StateStore):
    """内存存储，用于测试和脚本"""

    def __init__(self, document: Optional[Dict[str, Any]] = None):
        self._text = json.dumps(document) if document is not None else None
        self.save_count = 0

    def load(self) -> Optional[Dict[str, Any]]:
        return json.loads(self._text) if self._text is not None else None

    def save(self, document: Dict[str, Any]) -> None:
        self._text = json.dumps(document, ensure_ascii=False)
        self.save_count += 1


class SqlAlchemyStateStore(StateStore):
    """通过AppStateRepository将快照保存在键值表中"""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal, key: str = STATE_KEY):
        self.session_factory = session_factory
        self.key = key

    def load(self) -> Optional[Dict[str, Any]]:
        db = self.session_factory()
        try:
            text = AppStateRepository(db).get_value(self.key)
        finally:
            db.close()
        if text is None:
            logger.info(f"未找到已保存的状态({self.key})，使用默认状态")
            return None
        return json.loads(text)

    def save(self, document: Dict[str, Any]) -> None:
        db = self.session_factory()
        try:
            AppStateRepository(db).set_value(self.key, json.dumps(document, ensure_ascii=False))
        finally:
            db.close()
