import os

# avant tout import de parstock : settings et engine lisent l'environnement
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from parstock.app.api.deps import get_db
from parstock.app.db.base import Base
from parstock.app.db.models import models_v1  # noqa: F401  (tables)
from parstock.app.db.session import enable_sqlite_foreign_keys
from parstock.app.main import app
from parstock.services.catalog import CatalogStore


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Session DB isolée par test.

    Base SQLite en mémoire neuve à chaque test : les commit() des lots
    d'import sont réels, rien ne fuit d'un test à l'autre.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)

    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def store(db_session) -> CatalogStore:
    return CatalogStore(db_session)


@pytest.fixture
def client(db_session):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
