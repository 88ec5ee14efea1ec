"""
JSON:API Adapter Test Configuration

Provides pytest fixtures for in-memory SQLite database, session management
and an application client wired to the test session.
"""

import os

# Keep the application's module-level engine off the filesystem
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from jsonapi_adapter.models import Base, Post


@pytest.fixture(scope="session")
def db_engine():
    """Create an in-memory SQLite database shared across threads for testing"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """
    Create a new database session for each test function.
    Rolls back all changes after the test completes.
    """
    connection = db_engine.connect()
    transaction = connection.begin()

    # Savepoints keep adapter rollbacks inside the outer test transaction
    SessionLocal = sessionmaker(bind=connection, join_transaction_mode="create_savepoint")
    session = SessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def make_post(db_session: Session):
    """Factory for persisted posts with unique slugs"""
    counter = {"n": 0}

    def _make_post(**attributes) -> Post:
        counter["n"] += 1
        post = Post(
            title=attributes.pop("title", f"Post {counter['n']}"),
            slug=attributes.pop("slug", f"post-{counter['n']}"),
            content=attributes.pop("content", "Lorem ipsum"),
            **attributes,
        )
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


@pytest.fixture
def app(db_session: Session):
    """Application using the test exception handler and the test session"""
    from handler import Handler
    from jsonapi_adapter.database import get_db
    from jsonapi_adapter.main import create_app

    application = create_app(exception_handler=Handler())
    application.dependency_overrides[get_db] = lambda: db_session
    return application


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
