import uuid

from fastapi.testclient import TestClient
from sqlmodel import Session

from fridgy import crud
from fridgy.core.config import settings
from fridgy.models import NotificationCreate, User

NOTIFICATIONS_URL = f"{settings.API_V1_STR}/notifications"


def _notify(db: Session, user: User, title: str) -> None:
    crud.create_notification(
        session=db,
        owner_id=user.id,
        notification_in=NotificationCreate(title=title, message="Hello", type="recipe"),
    )


def test_list_notifications_with_unread_count(
    client: TestClient, db: Session, normal_user: User, normal_user_token_headers: dict[str, str]
) -> None:
    _notify(db, normal_user, "First")
    _notify(db, normal_user, "Second")

    r = client.get(NOTIFICATIONS_URL, headers=normal_user_token_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    assert body["unread_count"] == 2
    assert [n["title"] for n in body["data"]] == ["Second", "First"]


def test_mark_read_and_read_all(
    client: TestClient, db: Session, normal_user: User, normal_user_token_headers: dict[str, str]
) -> None:
    _notify(db, normal_user, "First")
    _notify(db, normal_user, "Second")
    _notify(db, normal_user, "Third")
    notifications = client.get(NOTIFICATIONS_URL, headers=normal_user_token_headers).json()
    first_id = notifications["data"][0]["id"]

    r = client.patch(f"{NOTIFICATIONS_URL}/{first_id}/read", headers=normal_user_token_headers)
    assert r.status_code == 200
    assert r.json()["read"] is True
    assert (
        client.get(NOTIFICATIONS_URL, headers=normal_user_token_headers).json()["unread_count"]
        == 2
    )

    r = client.post(f"{NOTIFICATIONS_URL}/read-all", headers=normal_user_token_headers)
    assert r.json()["message"] == "2 notifications marked as read"
    assert (
        client.get(NOTIFICATIONS_URL, headers=normal_user_token_headers).json()["unread_count"]
        == 0
    )


def test_delete_notification(
    client: TestClient, db: Session, normal_user: User, normal_user_token_headers: dict[str, str]
) -> None:
    _notify(db, normal_user, "Only")
    notification_id = client.get(
        NOTIFICATIONS_URL, headers=normal_user_token_headers
    ).json()["data"][0]["id"]

    url = f"{NOTIFICATIONS_URL}/{notification_id}"
    assert client.delete(url, headers=normal_user_token_headers).status_code == 200
    assert client.delete(url, headers=normal_user_token_headers).status_code == 404


def test_notifications_of_other_users_are_hidden(
    client: TestClient, db: Session, normal_user_token_headers: dict[str, str]
) -> None:
    other = User(email="someone@example.com", hashed_password="x")
    db.add(other)
    db.commit()
    db.refresh(other)
    _notify(db, other, "Private")
    notification_id = crud.get_user_notifications(session=db, owner_id=other.id)[0].id

    body = client.get(NOTIFICATIONS_URL, headers=normal_user_token_headers).json()
    assert body["count"] == 0
    r = client.patch(
        f"{NOTIFICATIONS_URL}/{notification_id}/read", headers=normal_user_token_headers
    )
    assert r.status_code == 404
    r = client.delete(f"{NOTIFICATIONS_URL}/{uuid.uuid4()}", headers=normal_user_token_headers)
    assert r.status_code == 404
