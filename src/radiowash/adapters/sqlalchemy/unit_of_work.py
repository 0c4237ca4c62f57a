"""SQLAlchemy-backed unit of work for RadioWash repositories."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from radiowash.adapters.sqlalchemy.mappings import enable_foreign_keys, start_mappers
from radiowash.adapters.sqlalchemy.migrations import upgrade_head
from radiowash.adapters.sqlalchemy.repositories import (
    SqlAlchemyCleanPlaylistJobRepository,
    SqlAlchemyPlaylistSyncConfigRepository,
    SqlAlchemyPlaylistSyncHistoryRepository,
    SqlAlchemyTrackMappingRepository,
)
from radiowash.config import get_database_config
from radiowash.domain.ports.unit_of_work import RadioWashRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


class _Adapter:
    engine: Engine | None = None
    session_factory: sessionmaker[Session] | None = None


def create_database_engine(database_uri: str | None = None) -> Engine:
    """Create an engine for ``database_uri`` (default: configured URI) with FK enforcement."""

    uri = database_uri or get_database_config().uri
    return enable_foreign_keys(create_engine(uri))


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Map the model, migrate the schema and bind the session factory.

    Commits keep loaded attributes (``expire_on_commit=False``) because the
    services hand entities out after their session has closed.
    """

    if _Adapter.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved = enable_foreign_keys(engine or create_database_engine(database_uri))
    start_mappers()
    upgrade_head(engine=resolved)
    _Adapter.engine = resolved
    _Adapter.session_factory = sessionmaker(bind=resolved, expire_on_commit=False)
    log.info("SQLAlchemy adapter bound to %s", resolved.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _Adapter.engine


def is_started() -> bool:
    return _Adapter.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _Adapter.engine is not None:
        _Adapter.engine.dispose()
    _Adapter.engine = None
    _Adapter.session_factory = None


class SqlAlchemyUnitOfWork:
    """One session per ``with`` block; leaving it with an exception rolls back."""

    def __init__(self) -> None:
        if _Adapter.session_factory is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call radiowash.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        self.session_factory = _Adapter.session_factory
        self._session: Session | None = None
        self._repositories: RadioWashRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        session = self.session_factory()
        self._session = session
        self._repositories = RadioWashRepositories(
            jobs=SqlAlchemyCleanPlaylistJobRepository(session),
            mappings=SqlAlchemyTrackMappingRepository(session),
            sync_configs=SqlAlchemyPlaylistSyncConfigRepository(session),
            sync_history=SqlAlchemyPlaylistSyncHistoryRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self._session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @property
    def repositories(self) -> RadioWashRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories


if TYPE_CHECKING:
    from radiowash.domain.ports import RadioWashUnitOfWork

    _uow_check: RadioWashUnitOfWork = SqlAlchemyUnitOfWork()
