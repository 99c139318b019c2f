import pytest

from identity_search.adapters.sqlite.migrator import SQLiteMigrator
from identity_search.adapters.sqlite.repos import SQLiteIdentityRepo, SQLiteVerificationRepo
from identity_search.app_shell.context import ServiceContext
from identity_search.rules.loader import load_rules
from identity_search.rules.models import Rules
from tests.fakes import (
    PROJECT_ROOT,
    FakeIndex,
    ManualScheduler,
    MockTimePort,
    RecordingSleeper,
)


@pytest.fixture
def rules() -> Rules:
    """The real rules file from the project root."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def db_path(tmp_path) -> str:
    """A migrated, empty SQLite database."""
    path = str(tmp_path / "identity.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def identity_repo(db_path) -> SQLiteIdentityRepo:
    return SQLiteIdentityRepo(db_path)


@pytest.fixture
def verification_repo(db_path) -> SQLiteVerificationRepo:
    return SQLiteVerificationRepo(db_path)


@pytest.fixture
def time_port() -> MockTimePort:
    return MockTimePort()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def fake_index() -> FakeIndex:
    return FakeIndex()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def test_ctx(db_path, rules, fake_index, scheduler, time_port, sleeper) -> ServiceContext:
    """
    Full ServiceContext on a temporary SQLite DB, with the search index and
    the background scheduler replaced by in-memory doubles.
    """
    ctx = ServiceContext.create(
        db_path,
        rules,
        index=fake_index,
        scheduler=scheduler,
        clock=time_port,
        sleeper=sleeper,
    )
    yield ctx
    ctx.close()
