# 运行配置
import os
import logging

# 日志配置
LOG_LEVEL = os.getenv("BULLETIN_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

# 本地存储配置
DATABASE_URL = os.getenv("BULLETIN_DATABASE_URL", "sqlite:///./bulletin.db")
SQL_ECHO = os.getenv("BULLETIN_SQL_ECHO", "false").lower() in ("1", "true", "yes")

# 状态快照在键值表中的键名
STATE_KEY = os.getenv("BULLETIN_STATE_KEY", "app_state")
