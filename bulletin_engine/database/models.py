# SQLAlchemy模型定义
from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func

from .connection import Base


class AppStateEntry(Base):
    """键值存储：每个键保存一份JSON文档(应用状态快照)"""
    __tablename__ = "app_state"

    key = Column(String(100), primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
