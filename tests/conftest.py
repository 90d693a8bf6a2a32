import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault(
    "DATABASE_URL", f"sqlite:///{Path(tempfile.gettempdir()) / 'creative_strategist_test.db'}"
)
os.environ.setdefault("OAUTH_BROKER_SECRET", "test-broker-secret")
os.environ.setdefault("META_APP_ID", "test-app-id")
os.environ.setdefault("META_APP_SECRET", "test-app-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from creative_strategist.auth.dependencies import AuthContext, get_current_user  # noqa: E402
from creative_strategist.db import models  # noqa: E402,F401
from creative_strategist.db.base import Base, SessionLocal, engine  # noqa: E402
from creative_strategist.db.deps import get_session  # noqa: E402
from creative_strategist.db.repositories.users import UsersRepository  # noqa: E402
from creative_strategist.main import app  # noqa: E402
from creative_strategist.routers.deps import get_llm_client  # noqa: E402

TEST_USER_ID = "user_test_123"


@pytest.fixture(scope="session", autouse=True)
def create_schema() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


class FakeLLM:
    """Stands in for LLMClient; replies are queued per test and every call is recorded."""

    def __init__(self) -> None:
        self.responses: list[Any] = []
        self.calls: list[dict[str, Any]] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def generate_json(self, prompt: str, *, system_prompt: Optional[str] = None, params=None) -> dict[str, Any]:
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt, "params": params})
        if not self.responses:
            raise AssertionError("FakeLLM called without a queued response")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture()
def db_session():
    session = SessionLocal()
    UsersRepository(session).get_or_create(TEST_USER_ID, email="strategist@example.com", first_name="Test")
    try:
        yield session
    finally:
        session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()


@pytest.fixture()
def auth_context() -> AuthContext:
    return AuthContext(user_id=TEST_USER_ID)


@pytest.fixture()
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture()
def override_dependencies(db_session, auth_context, fake_llm):
    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    def get_user_override():
        return auth_context

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_current_user] = get_user_override
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def api_client(override_dependencies):
    with TestClient(app) as client:
        yield client
