import pytest

from app.services.user_service import UserService
from app.utils.file_upload import url_to_path

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

@pytest.mark.asyncio
async def test_get_public_profile(client, make_user):
    user = await make_user("profile", first_name="Maria")

    response = await client.get(f"/api/v1/users/{user.id}")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "id": user.id,
        "first_name": "Maria",
        "paternal_surname": "User",
        "username": "profile",
        "avatar_url": None
    }

@pytest.mark.asyncio
async def test_get_unknown_user(client):
    response = await client.get("/api/v1/users/999")

    assert response.status_code == 404
    assert response.json()["message"] == "User not found"

@pytest.mark.asyncio
async def test_update_profile(client, make_user):
    user = await make_user("editor", maternal_surname="Old", phone="123")

    response = await client.put(f"/api/v1/users/{user.id}", json={
        "first_name": "New",
        "paternal_surname": "Name",
        "phone": "555"
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["first_name"] == "New"
    assert data["paternal_surname"] == "Name"
    assert data["phone"] == "555"
    # Omitted optional fields are cleared
    assert data["maternal_surname"] is None

@pytest.mark.asyncio
async def test_update_profile_password(client, make_user):
    user = await make_user("rotator")

    response = await client.put(f"/api/v1/users/{user.id}", json={
        "first_name": "Test",
        "paternal_surname": "User",
        "password": "NewPassword456"
    })
    assert response.status_code == 200

    response = await client.post("/api/v1/auth/login", json={
        "username": "rotator",
        "password": "Password123"
    })
    assert response.status_code == 401

    response = await client.post("/api/v1/auth/login", json={
        "username": "rotator",
        "password": "NewPassword456"
    })
    assert response.status_code == 200

@pytest.mark.asyncio
async def test_update_profile_validation(client, make_user):
    user = await make_user()

    response = await client.put(f"/api/v1/users/{user.id}", json={
        "first_name": "Test",
        "paternal_surname": "User",
        "password": "weak"
    })
    assert response.status_code == 400

    response = await client.put(f"/api/v1/users/{user.id}", json={"first_name": "Only"})
    assert response.status_code == 400

    response = await client.put("/api/v1/users/999", json={
        "first_name": "Test",
        "paternal_surname": "User"
    })
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_update_avatar_replaces_file(client, make_user):
    user = await make_user()

    first = await client.put(
        f"/api/v1/users/{user.id}/avatar",
        files={"avatar": ("one.png", PNG_BYTES, "image/png")}
    )
    assert first.status_code == 200
    first_url = first.json()["data"]["avatar_url"]
    assert url_to_path(first_url).exists()

    second = await client.put(
        f"/api/v1/users/{user.id}/avatar",
        files={"avatar": ("two.png", PNG_BYTES, "image/png")}
    )
    assert second.status_code == 200
    second_url = second.json()["data"]["avatar_url"]
    assert second_url != first_url
    assert url_to_path(second_url).exists()
    assert not url_to_path(first_url).exists()

    profile = await client.get(f"/api/v1/users/{user.id}")
    assert profile.json()["data"]["avatar_url"] == second_url

@pytest.mark.asyncio
async def test_update_avatar_rejects_non_image(client, make_user):
    user = await make_user()

    response = await client.put(
        f"/api/v1/users/{user.id}/avatar",
        files={"avatar": ("doc.pdf", b"%PDF-1.4", "application/pdf")}
    )

    assert response.status_code == 400

@pytest.mark.asyncio
async def test_root_and_health(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["docs"] == "/api/docs"

    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/api/v1/nowhere")

    assert response.status_code == 404
    assert response.json()["success"] is False

@pytest.mark.asyncio
async def test_profile_lookup_failure_is_wrapped(client, make_user, monkeypatch):
    user = await make_user()

    async def broken_profile(self, user_id):
        raise RuntimeError("profile store unavailable")

    monkeypatch.setattr(UserService, "get_public_profile", broken_profile)

    response = await client.get(f"/api/v1/users/{user.id}")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Failed to get user profile",
        "error": "profile store unavailable"
    }

@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", ["0", "-3", str(2 ** 31), str(2 ** 63)])
async def test_user_routes_reject_out_of_range_ids(client, user_id):
    response = await client.get(f"/api/v1/users/{user_id}")
    assert response.status_code == 400

    response = await client.put(f"/api/v1/users/{user_id}", json={
        "first_name": "Test",
        "paternal_surname": "User"
    })
    assert response.status_code == 400
