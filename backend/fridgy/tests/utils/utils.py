import random
import string

from fastapi.testclient import TestClient
from sqlmodel import Session

from fridgy import crud
from fridgy.core.config import settings
from fridgy.models import User, UserCreate

# Smallest valid PNG header plus padding; the analysis never decodes the pixels
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def random_lower_string() -> str:
    return "".join(random.choices(string.ascii_lowercase, k=32))


def random_email() -> str:
    return f"{random_lower_string()}@{random_lower_string()}.com"


def create_test_user(session: Session, *, email: str, password: str) -> User:
    return crud.create_user(
        session=session, user_create=UserCreate(email=email, password=password)
    )


def user_authentication_headers(
    *, client: TestClient, email: str, password: str
) -> dict[str, str]:
    data = {"username": email, "password": password}
    r = client.post(f"{settings.API_V1_STR}/login/access-token", data=data)
    response = r.json()
    auth_token = response["access_token"]
    return {"Authorization": f"Bearer {auth_token}"}


def image_upload(
    content: bytes = PNG_BYTES, content_type: str = "image/png", filename: str = "fridge.png"
) -> dict:
    return {"image": (filename, content, content_type)}


def post_analysis(client: TestClient, headers: dict[str, str] | None = None) -> dict:
    r = client.post(
        f"{settings.API_V1_STR}/analyze", files=image_upload(), headers=headers or {}
    )
    assert r.status_code == 200, r.text
    return r.json()
