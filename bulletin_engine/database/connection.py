# 数据库连接配置
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
import logging

from ..config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger(__name__)


def build_engine(database_url: str = DATABASE_URL, echo: bool = SQL_ECHO):
    """创建数据库引擎，SQLite需关闭同线程检查以便在API线程池中使用"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        future=True,
        connect_args=connect_args
    )


# 创建数据库引擎
engine = build_engine()

# 创建会话工厂
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True
)

# 创建声明性基类
Base = declarative_base()


def create_tables(bind=None):
    """创建所有表"""
    # 注册模型到Base.metadata
    from . import models  # noqa: F401
    try:
        Base.metadata.create_all(bind=bind or engine)
        logger.info("All tables created successfully")
    except Exception as e:
        logger.error(f"Failed to create tables: {str(e)}")
        raise
