from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
import itertools
import os
import sys
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure the project root (which exposes the ``backend`` package) is on ``sys.path``
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# The application reads its configuration at import time.
_APP_DB_DIR = Path(tempfile.mkdtemp(prefix="opsboard-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{(_APP_DB_DIR / 'app.db').as_posix()}"
os.environ["ENABLE_NOTIFICATION_SCHEDULER"] = "0"

from backend.app.database import Base, get_db  # noqa: E402
from backend.app.main import app  # noqa: E402
from backend.app import models  # noqa: E402
from backend.app.services import SchedulerMonitor  # noqa: E402

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite needs explicit BEGIN handling for SAVEPOINT support.
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(connection) -> None:
    connection.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    join_transaction_mode="create_savepoint",
)

_counter = itertools.count(1)


@pytest.fixture(scope="session", autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _reset_scheduler_monitor() -> Generator[None, None, None]:
    SchedulerMonitor.reset()
    yield
    SchedulerMonitor.reset()


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """Sessions against a throwaway SQLite file, for code that commits and rolls back."""

    file_engine = create_engine(
        f"sqlite:///{(tmp_path / 'evaluator.db').as_posix()}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=file_engine)
    factory = sessionmaker(bind=file_engine, autocommit=False, autoflush=False)
    try:
        yield factory
    finally:
        file_engine.dispose()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            db_session.expire_all()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 6, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_client() -> Callable[..., models.Client]:
    def _make(session: Session, **overrides) -> models.Client:
        index = next(_counter)
        values = {
            "name": f"Client {index}",
            "company": f"Company {index}",
            "email": f"client{index}@example.com",
            "source": "referral",
            "sector": "retail",
        }
        values.update(overrides)
        record = models.Client(**values)
        session.add(record)
        session.commit()
        session.refresh(record)
        return record

    return _make


@pytest.fixture
def make_project() -> Callable[..., models.Project]:
    def _make(
        session: Session,
        client: models.Client,
        *,
        due_date: datetime,
        status: models.ProjectStatus = models.ProjectStatus.DEVELOPMENT,
        **overrides,
    ) -> models.Project:
        values = {
            "client_id": client.id,
            "name": f"Project {next(_counter)}",
            "value": Decimal("1000"),
            "start_date": due_date - timedelta(days=30),
            "due_date": due_date,
            "status": status,
        }
        values.update(overrides)
        record = models.Project(**values)
        session.add(record)
        session.commit()
        session.refresh(record)
        return record

    return _make


@pytest.fixture
def make_rule() -> Callable[..., models.NotificationRule]:
    def _make(
        session: Session,
        rule_type: str = models.RuleType.PROJECT_DELAYED.value,
        *,
        is_active: bool = True,
        name: str | None = None,
    ) -> models.NotificationRule:
        record = models.NotificationRule(
            name=name or f"Rule {rule_type}",
            description="",
            condition={
                "type": rule_type,
                "field": "dueDate",
                "operator": "less_than",
                "value": "now",
                "entityType": "project",
            },
            is_active=is_active,
        )
        session.add(record)
        session.commit()
        session.refresh(record)
        return record

    return _make
