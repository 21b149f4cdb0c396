# 本地持久化层
from .connection import Base, SessionLocal, engine, build_engine, create_tables
from .models import AppStateEntry
from .repositories import (
    RepositoryError,
    DataIntegrityError,
    BaseRepository,
    AppStateRepository
)

__all__ = [
    'Base',
    'SessionLocal',
    'engine',
    'build_engine',
    'create_tables',
    'AppStateEntry',
    'RepositoryError',
    'DataIntegrityError',
    'BaseRepository',
    'AppStateRepository'
]
