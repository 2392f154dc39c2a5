import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.database import Base, get_db
from app.dependencies import get_llm_client, get_rng
from app.main import app
from app.services.catalog import seed_catalog
from app.services.llm_client import LLMError


class FakeLLM:
    """Stands in for LLMClient; returns a canned dict or raises LLMError."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    @property
    def available(self):
        return True

    async def get_structured_completion(self, prompt, **kwargs):
        self.calls.append((prompt, kwargs))
        if self.error:
            raise LLMError(self.error)
        return self.response

    async def get_completion(self, prompt, **kwargs):
        self.calls.append((prompt, kwargs))
        if self.error:
            raise LLMError(self.error)
        return str(self.response)


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def seeded_db(db_session):
    seed_catalog(db_session)
    return db_session


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def client(seeded_db, fake_llm):
    def override_get_db():
        yield seeded_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    app.dependency_overrides[get_rng] = lambda: random.Random(1234)
    app.state.limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.limiter.enabled = True
