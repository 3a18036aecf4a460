import uuid

from fastapi.testclient import TestClient

from fridgy.core.config import settings
from fridgy.tests.utils.utils import post_analysis

LISTS_URL = f"{settings.API_V1_STR}/shopping-lists"


def _create_list(client: TestClient, headers: dict[str, str], name: str = "Weekly") -> dict:
    r = client.post(LISTS_URL, headers=headers, json={"name": name})
    assert r.status_code == 200, r.text
    return r.json()


def test_lists_require_authentication(client: TestClient) -> None:
    assert client.get(LISTS_URL).status_code == 401


def test_create_rename_and_delete_list(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    created = _create_list(client, normal_user_token_headers)
    assert created["name"] == "Weekly"
    assert created["items"] == []

    url = f"{LISTS_URL}/{created['id']}"
    r = client.patch(url, headers=normal_user_token_headers, json={"name": "Party"})
    assert r.json()["name"] == "Party"

    lists = client.get(LISTS_URL, headers=normal_user_token_headers).json()
    assert [item["name"] for item in lists] == ["Party"]

    assert client.delete(url, headers=normal_user_token_headers).status_code == 200
    assert client.get(url, headers=normal_user_token_headers).status_code == 404


def test_list_creation_sends_notification(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    _create_list(client, normal_user_token_headers, name="Groceries")
    notifications = client.get(
        f"{settings.API_V1_STR}/notifications", headers=normal_user_token_headers
    ).json()
    assert notifications["data"][0]["type"] == "shopping_list"
    assert "Groceries" in notifications["data"][0]["message"]


def test_empty_list_name_is_rejected(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    r = client.post(LISTS_URL, headers=normal_user_token_headers, json={"name": ""})
    assert r.status_code == 422


def test_item_lifecycle(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    shopping_list = _create_list(client, normal_user_token_headers)
    items_url = f"{LISTS_URL}/{shopping_list['id']}/items"

    r = client.post(items_url, headers=normal_user_token_headers, json={"name": "Milk"})
    assert r.status_code == 200
    item = r.json()
    assert item["completed"] is False
    assert item["from_analysis"] is False

    r = client.patch(
        f"{items_url}/{item['id']}",
        headers=normal_user_token_headers,
        json={"completed": True},
    )
    assert r.json()["completed"] is True
    assert r.json()["name"] == "Milk"

    refreshed = client.get(
        f"{LISTS_URL}/{shopping_list['id']}", headers=normal_user_token_headers
    ).json()
    assert [i["name"] for i in refreshed["items"]] == ["Milk"]

    r = client.delete(f"{items_url}/{item['id']}", headers=normal_user_token_headers)
    assert r.status_code == 200
    r = client.delete(f"{items_url}/{item['id']}", headers=normal_user_token_headers)
    assert r.status_code == 404


def test_add_items_from_latest_analysis_skips_duplicates(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    body = post_analysis(client, normal_user_token_headers)
    shopping_list = _create_list(client, normal_user_token_headers)
    list_url = f"{LISTS_URL}/{shopping_list['id']}"
    client.post(f"{list_url}/items", headers=normal_user_token_headers, json={"name": "eggs"})

    r = client.post(
        f"{list_url}/items/from-analysis", headers=normal_user_token_headers, json={}
    )
    assert r.status_code == 200
    names = [item["name"] for item in r.json()["items"]]
    expected = ["eggs"] + [i for i in body["data"]["ingredients"] if i.lower() != "eggs"]
    assert names == expected
    assert all(item["from_analysis"] for item in r.json()["items"][1:])

    r = client.post(
        f"{list_url}/items/from-analysis",
        headers=normal_user_token_headers,
        json={"analysis_id": body["analysis_id"]},
    )
    assert len(r.json()["items"]) == len(expected)


def test_add_items_from_analysis_without_history(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    shopping_list = _create_list(client, normal_user_token_headers)
    r = client.post(
        f"{LISTS_URL}/{shopping_list['id']}/items/from-analysis",
        headers=normal_user_token_headers,
        json={"analysis_id": str(uuid.uuid4())},
    )
    assert r.status_code == 404


def test_add_items_from_recipe(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    body = post_analysis(client, normal_user_token_headers)
    shopping_list = _create_list(client, normal_user_token_headers)
    recipe = body["data"]["recipes"][1]

    r = client.post(
        f"{LISTS_URL}/{shopping_list['id']}/items/from-recipe/{recipe['id']}",
        headers=normal_user_token_headers,
    )
    assert r.status_code == 200
    assert [item["name"] for item in r.json()["items"]] == recipe["ingredients"]["additional"]
    assert not any(item["from_analysis"] for item in r.json()["items"])


def test_lists_are_private(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    shopping_list = _create_list(client, normal_user_token_headers)
    client.post(
        f"{settings.API_V1_STR}/users/signup",
        json={"email": "second@example.com", "password": "secondpassword"},
    )
    token = client.post(
        f"{settings.API_V1_STR}/login/access-token",
        data={"username": "second@example.com", "password": "secondpassword"},
    ).json()["access_token"]
    other_headers = {"Authorization": f"Bearer {token}"}

    assert client.get(LISTS_URL, headers=other_headers).json() == []
    r = client.get(f"{LISTS_URL}/{shopping_list['id']}", headers=other_headers)
    assert r.status_code == 404
