import os

# Settings are read at import time, so the test environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "local"
os.environ["SECRET_KEY"] = "test-secret-key-for-fridgy-tests"
os.environ.pop("LLM_API_KEY", None)
os.environ.pop("OPENAI_API_KEY", None)

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from fridgy.analysis_cache import analysis_cache  # noqa: E402
from fridgy.core.db import engine  # noqa: E402
from fridgy.main import app  # noqa: E402
from fridgy.models import User  # noqa: E402
from fridgy.rate_limit import analyze_rate_limiter  # noqa: E402
from fridgy.tests.utils.utils import (  # noqa: E402
    create_test_user,
    random_email,
    random_lower_string,
    user_authentication_headers,
)


@pytest.fixture(autouse=True)
def db() -> Generator[Session, None, None]:
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def reset_in_memory_state() -> Generator[None, None, None]:
    analyze_rate_limiter.reset()
    analysis_cache.clear()
    yield
    analyze_rate_limiter.reset()
    analysis_cache.clear()


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def user_password() -> str:
    return random_lower_string()


@pytest.fixture()
def normal_user(db: Session, user_password: str) -> User:
    return create_test_user(db, email=random_email(), password=user_password)


@pytest.fixture()
def normal_user_token_headers(
    client: TestClient, normal_user: User, user_password: str
) -> dict[str, str]:
    return user_authentication_headers(
        client=client, email=normal_user.email, password=user_password
    )
