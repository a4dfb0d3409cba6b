import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.db.session import Base
from app.services.payments import StubGateway

from factories import RecordingNotifier


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture()
def db_session(db_engine):
    TestingSessionLocal = sessionmaker(bind=db_engine, autoflush=False, autocommit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def gateway_client():
    return StubGateway(Settings())


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def api_client(session_factory, gateway_client, notifier):
    from fastapi import FastAPI
    from fastapi.testclient import TestClient

    from app.api import deps
    from app.api.errors import register_exception_handlers
    from app.api.routes import auth, bookings, chat, misc, notifications, venues
    from app.db.session import get_db

    from factories import RecordingInteractions

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    interactions = RecordingInteractions()
    test_app = FastAPI()
    register_exception_handlers(test_app)
    for module in (auth, venues, bookings, notifications, chat, misc):
        test_app.include_router(module.router, prefix="/api/v1")

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[deps.get_payment_gateway] = lambda: gateway_client
    test_app.dependency_overrides[deps.get_notifier] = lambda: notifier
    test_app.dependency_overrides[deps.get_interaction_logger] = lambda: interactions

    with TestClient(test_app) as client:
        client.interactions = interactions
        yield client

    test_app.dependency_overrides.clear()
