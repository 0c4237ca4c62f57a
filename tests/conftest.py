from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from radiowash.adapters.sqlalchemy import start_mappers
from radiowash.adapters.sqlalchemy.migrations import upgrade_head
from radiowash.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    create_database_engine,
    shutdown,
    startup,
)
from tests.helpers.catalog import FakeCatalogClient
from tests.helpers.clock import FrozenClock
from tests.helpers.notifications import RecordingNotifier
from tests.helpers.persistence import FakeUnitOfWorkFactory

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def catalog() -> FakeCatalogClient:
    return FakeCatalogClient()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def uow_factory() -> FakeUnitOfWorkFactory:
    return FakeUnitOfWorkFactory()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_database_engine("sqlite+pysqlite:///:memory:")
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
