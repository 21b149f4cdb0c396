# 状态仓库与持久化存储测试
import pytest
from unittest.mock import MagicMock
from sqlalchemy.orm import sessionmaker
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from bulletin_engine.database.connection import build_engine, create_tables
from bulletin_engine.database.repositories import (
    AppStateRepository,
    RepositoryError,
    DataIntegrityError
)
from bulletin_engine.services.state_store import StateStore, MemoryStateStore, SqlAlchemyStateStore
from bulletin_engine.services.school_data_service import SchoolDataService


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'bulletin_test.db'}", echo=False)
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    engine.dispose()


class TestAppStateRepository:
    """测试键值仓库"""

    def test_get_missing_key(self, session_factory):
        db = session_factory()
        try:
            assert AppStateRepository(db).get_value('missing') is None
        finally:
            db.close()

    def test_set_and_overwrite(self, session_factory):
        db = session_factory()
        try:
            repo = AppStateRepository(db)
            first = repo.set_value('state', '{"a": 1}')
            created_at = first.updated_at
            repo.set_value('state', '{"a": 2}')

            assert repo.get_value('state') == '{"a": 2}'
            assert repo.list_keys() == ['state']
            assert repo.get_entry('state').updated_at >= created_at
        finally:
            db.close()

    def test_delete_value(self, session_factory):
        db = session_factory()
        try:
            repo = AppStateRepository(db)
            repo.set_value('b', '{}')
            repo.set_value('a', '{}')
            assert repo.list_keys() == ['a', 'b']
            assert repo.delete_value('a') is True
            assert repo.delete_value('a') is False
            assert repo.list_keys() == ['b']
        finally:
            db.close()


class TestRepositoryErrorHandling:
    """测试数据库异常处理"""

    def setup_method(self):
        self.mock_db = MagicMock()
        self.repo = AppStateRepository(self.mock_db)

    def test_integrity_error(self):
        error = IntegrityError("INSERT", {}, Exception("duplicate key"))
        with pytest.raises(DataIntegrityError):
            self.repo._handle_db_error(error, "set_value")
        self.mock_db.rollback.assert_called_once()

    def test_sqlalchemy_error(self):
        with pytest.raises(RepositoryError, match="数据库操作失败"):
            self.repo._handle_db_error(SQLAlchemyError("locked"), "get_entry")

    def test_unknown_error(self):
        with pytest.raises(RepositoryError, match="未知数据库错误"):
            self.repo._handle_db_error(RuntimeError("boom"), "list_keys")

    def test_set_value_failure_rolls_back(self):
        self.mock_db.commit.side_effect = SQLAlchemyError("disk I/O error")
        with pytest.raises(RepositoryError):
            self.repo.set_value('state', '{}')
        self.mock_db.rollback.assert_called_once()


class TestSqlAlchemyStateStore:
    """测试数据库状态存储"""

    def test_empty_store_loads_none(self, session_factory):
        assert SqlAlchemyStateStore(session_factory, key='school').load() is None

    def test_save_and_load(self, session_factory):
        store = SqlAlchemyStateStore(session_factory, key='school')
        store.save({'students': [{'id': 'e1', 'firstName': 'Chloé'}]})
        assert store.load() == {'students': [{'id': 'e1', 'firstName': 'Chloé'}]}

    def test_keys_are_isolated(self, session_factory):
        SqlAlchemyStateStore(session_factory, key='one').save({'value': 1})
        assert SqlAlchemyStateStore(session_factory, key='two').load() is None

    def test_service_state_survives_reload(self, session_factory, school_state):
        store = SqlAlchemyStateStore(session_factory, key='school')
        store.save(school_state.to_json_dict())

        service = SchoolDataService(store)
        service.load()
        service.set_grade('e4', 's1', 'p1', 11)

        reloaded = SchoolDataService(SqlAlchemyStateStore(session_factory, key='school'))
        state = reloaded.load()
        assert any(g.key == ('e4', 's1', 'p1') and g.value == 11 for g in state.grades)
        assert state == service.state


class TestStateStoreContract:
    """测试存储接口"""

    def test_interface_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            StateStore()

    def test_subclass_must_implement_save(self):
        class LoadOnlyStore(StateStore):
            def load(self):
                return None

        with pytest.raises(TypeError):
            LoadOnlyStore()

    def test_memory_store_implements_contract(self):
        store = MemoryStateStore()
        assert isinstance(store, StateStore)
        store.save({'categories': ['Autre']})
        assert store.load() == {'categories': ['Autre']}
        assert store.save_count == 1
