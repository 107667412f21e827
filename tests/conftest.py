"""Pytest fixtures: an in-memory SQLite database shared by the helper, the service and the API client."""

from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies import get_db_conn
from app.core.db import Base, DBHelper
from main import app

SAMPLE_LINE = "1201903010000010000123456789011234****5678153000BAR DO JOAO   LOJA DO O - MATRIZ "


def build_line(
    type: str = "1",  # noqa: A002
    date: str = "20190301",
    value: str = "0000010000",
    cpf: str = "12345678901",
    card: str = "1234****5678",
    time: str = "153000",
    store_owner: str = "BAR DO JOAO",
    store_name: str = "LOJA DO O - MATRIZ",
) -> str:
    """Assemble a CNAB line, padding every field to its layout width."""
    return "".join(
        [
            type.rjust(1)[:1],
            date.rjust(8, "0")[:8],
            value.rjust(10, "0")[:10],
            cpf.rjust(11, "0")[:11],
            card.ljust(12)[:12],
            time.rjust(6, "0")[:6],
            store_owner.ljust(14)[:14],
            store_name.ljust(19),
        ]
    )


@pytest.fixture
def make_line() -> Callable[..., str]:
    """Provide the CNAB line builder."""
    return build_line


@pytest.fixture
def engine() -> Iterator[Engine]:
    """Fresh in-memory database with the schema created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to the test engine, configured like the application's."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[DBHelper]:
    """DBHelper over a session on the test database."""
    helper = DBHelper(session_factory())
    yield helper
    helper.close()


@pytest.fixture
def other_session(session_factory: sessionmaker) -> Iterator[Session]:
    """A second, independent session for checking what was actually committed."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory: sessionmaker) -> Iterator[TestClient]:
    """API client whose requests use the test database."""

    def _get_test_db() -> Iterator[DBHelper]:
        helper = DBHelper(session_factory())
        try:
            yield helper
        finally:
            helper.close()

    app.dependency_overrides[get_db_conn] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()
