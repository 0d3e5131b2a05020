"""HTTP-level tests for the /api/users endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from user_directory.application.services import UserService
from user_directory.infrastructure.dependencies import get_user_service
from user_directory.main import app


async def _create(client: AsyncClient, **body) -> dict:
    response = await client.post("/api/users", json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_stores_normalized_email_and_rejects_duplicate(client: AsyncClient):
    response = await client.post("/api/users", json={"email": "A@X.com", "name": " An "})
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["data"]["email"] == "a@x.com"
    assert body["data"]["name"] == "An"
    assert {"id", "createdAt", "updatedAt"} <= body["data"].keys()

    duplicate = await client.post("/api/users", json={"email": "a@x.com "})
    assert duplicate.status_code == 409
    assert "message" in duplicate.json()


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"name": "No Email"}, {"email": ""}, {"email": "   "}])
async def test_create_without_email_is_bad_request(client: AsyncClient, body: dict):
    response = await client.post("/api/users", json=body)
    assert response.status_code == 400
    assert "email" in response.json()["message"]


@pytest.mark.asyncio
async def test_create_with_malformed_json_is_bad_request(client: AsyncClient):
    response = await client.post(
        "/api/users",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["message"]


@pytest.mark.asyncio
async def test_list_second_page(client: AsyncClient):
    for i in range(12):
        await _create(client, email=f"user{i}@x.com")

    response = await client.get("/api/users", params={"page": 2, "limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert len(body["users"]) == 5
    assert body["users"] == body["data"]
    assert body["total"] == 12
    assert body["page"] == 2
    assert body["totalPages"] == 3


@pytest.mark.asyncio
async def test_list_uses_defaults_for_missing_or_garbage_params(client: AsyncClient):
    for i in range(7):
        await _create(client, email=f"g{i}@x.com")

    response = await client.get("/api/users", params={"page": "abc", "limit": "0"})

    body = response.json()
    assert body["page"] == 1
    assert len(body["users"]) == 5
    assert body["totalPages"] == 2


@pytest.mark.asyncio
async def test_list_reads_leading_integer_of_params(client: AsyncClient):
    for i in range(3):
        await _create(client, email=f"lead{i}@x.com")

    response = await client.get("/api/users", params={"page": "2abc", "limit": "1.5"})

    body = response.json()
    assert body["page"] == 2
    assert len(body["users"]) == 1
    assert body["totalPages"] == 3


@pytest.mark.asyncio
async def test_list_page_far_beyond_last_is_empty(client: AsyncClient):
    for i in range(3):
        await _create(client, email=f"far{i}@x.com")

    response = await client.get("/api/users", params={"page": "99999999999999999999"})

    assert response.status_code == 200
    body = response.json()
    assert body["users"] == []
    assert body["total"] == 3
    assert body["page"] == 99999999999999999999


@pytest.mark.asyncio
async def test_list_huge_limit_returns_everything_on_one_page(client: AsyncClient):
    for i in range(3):
        await _create(client, email=f"big{i}@x.com")

    response = await client.get("/api/users", params={"limit": "99999999999999999999"})

    assert response.status_code == 200
    body = response.json()
    assert len(body["users"]) == 3
    assert body["total"] == 3
    assert body["totalPages"] == 1


@pytest.mark.asyncio
async def test_whole_number_age_round_trips_as_integer(client: AsyncClient):
    created = await _create(client, email="age@x.com", age=31)
    assert created["age"] == 31
    assert isinstance(created["age"], int)

    fetched = (await client.get(f"/api/users/{created['id']}")).json()["data"]
    assert isinstance(fetched["age"], int)

    fractional = await _create(client, email="half@x.com", age=20.5)
    assert fractional["age"] == 20.5


@pytest.mark.asyncio
async def test_long_name_and_address_are_accepted(client: AsyncClient):
    address = "Khu pho " * 200
    created = await _create(client, email="long@x.com", name="N" * 400, address=address)

    assert created["address"] == address.strip()
    assert len(created["name"]) == 400


@pytest.mark.asyncio
async def test_list_search_matches_address_substring(client: AsyncClient):
    await _create(client, email="hn@x.com", address="Hanoi")
    await _create(client, email="dn@x.com", address="Da Nang")

    response = await client.get("/api/users", params={"search": "han"})

    body = response.json()
    assert body["total"] == 1
    assert [u["address"] for u in body["users"]] == ["Hanoi"]


@pytest.mark.asyncio
async def test_list_empty_store(client: AsyncClient):
    response = await client.get("/api/users")
    assert response.status_code == 200
    assert response.json() == {"users": [], "total": 0, "page": 1, "totalPages": 0, "data": []}


@pytest.mark.asyncio
async def test_get_user_by_id(client: AsyncClient):
    created = await _create(client, email="get@x.com")

    found = await client.get(f"/api/users/{created['id']}")
    assert found.status_code == 200
    assert found.json()["data"]["email"] == "get@x.com"

    missing = await client.get("/api/users/does-not-exist")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_update_email_taken_by_other_user_conflicts(client: AsyncClient):
    x = await _create(client, email="x@x.com", name="X")
    await _create(client, email="y@x.com")

    response = await client.put(f"/api/users/{x['id']}", json={"email": "Y@x.com", "name": "Z"})
    assert response.status_code == 409

    unchanged = (await client.get(f"/api/users/{x['id']}")).json()["data"]
    assert unchanged["email"] == "x@x.com"
    assert unchanged["name"] == "X"


@pytest.mark.asyncio
async def test_update_only_age_preserves_other_fields(client: AsyncClient):
    created = await _create(client, email="keep@x.com", name="Keep", address="Hue", age=30)

    response = await client.put(f"/api/users/{created['id']}", json={"age": 31})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User updated successfully"
    assert body["data"]["age"] == 31
    assert body["data"]["name"] == "Keep"
    assert body["data"]["email"] == "keep@x.com"
    assert body["data"]["address"] == "Hue"
    assert body["data"]["id"] == created["id"]


@pytest.mark.asyncio
async def test_update_rejects_null_email(client: AsyncClient):
    created = await _create(client, email="nn@x.com")
    response = await client.put(f"/api/users/{created['id']}", json={"email": None})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_unknown_user_is_not_found(client: AsyncClient):
    response = await client.put("/api/users/does-not-exist", json={"age": 1})
    assert response.status_code == 404
    assert response.json()["message"]


@pytest.mark.asyncio
async def test_delete_user(client: AsyncClient):
    created = await _create(client, email="bye@x.com")

    response = await client.delete(f"/api/users/{created['id']}")
    assert response.status_code == 200
    assert response.json()["message"] == "User deleted successfully"
    assert response.json()["data"]["email"] == "bye@x.com"

    again = await client.delete(f"/api/users/{created['id']}")
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_delete_unknown_user_leaves_store_unchanged(client: AsyncClient):
    await _create(client, email="stay@x.com")

    response = await client.delete("/api/users/does-not-exist")

    assert response.status_code == 404
    assert (await client.get("/api/users")).json()["total"] == 1


class _BrokenService(UserService):
    async def list_users(self, **kwargs):
        raise ConnectionError("store unreachable")


@pytest.mark.asyncio
async def test_unexpected_store_failure_is_server_error():
    app.dependency_overrides[get_user_service] = lambda: _BrokenService(repository=None)
    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/users")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"message": "Server Error", "error": "store unreachable"}
