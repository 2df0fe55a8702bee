from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import security
from app.db import models  # noqa: F401  ensure models are loaded
from app.db.base import Base
from app.db.deps import get_db
from app.main import app
from app.services.ai.gateway import LLMGatewayError, get_llm_gateway


class FakeGateway:
    """Records prompts and replays canned replies; raises when ``fail`` is set."""

    def __init__(self, reply: str = "Sure, let's plan your day.", fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.calls: List[Tuple[str, str, bool]] = []

    @property
    def configured(self) -> bool:
        return True

    def complete(self, system_prompt: str, user_prompt: str, *, json_mode: bool = False) -> str:
        self.calls.append((system_prompt, user_prompt, json_mode))
        if self.fail:
            raise LLMGatewayError("model unavailable")
        return self.reply


def make_token(user_id: UUID, *, expires_in: int = 3600, audience: Optional[str] = None) -> str:
    settings = security.settings
    claims = {
        "sub": str(user_id),
        "aud": audience or settings.jwt_audience,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm="HS256")


def auth_headers(user_id: UUID) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def client(session_factory, gateway):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client, session_factory
    app.dependency_overrides.clear()


@pytest.fixture()
def user_id():
    return uuid4()


@pytest.fixture()
def headers(user_id):
    return auth_headers(user_id)
