import uuid

from fastapi.testclient import TestClient

from pixhub.api.v1.deps import get_blob_store
from pixhub.core.errors import StorageError

PNG = b"\x89PNG\r\n\x1a\nfake-image"


def _register(client: TestClient, email: str = "u1@example.com") -> str:
    resp = client.post("/api/register", json={"username": "u1", "email": email, "password": "s3cret"})
    assert resp.status_code == 201
    return resp.json()["id"]


def _create_gallery(client: TestClient, owner_id: str, title: str = "Holidays") -> dict:
    resp = client.post("/api/gallery", json={"title": title, "ownerId": owner_id})
    assert resp.status_code == 201
    return resp.json()


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_gallery_media_end_to_end(client: TestClient) -> None:
    user_id = _register(client)

    gallery = _create_gallery(client, user_id)
    assert gallery["ownerId"] == user_id
    assert gallery["media"] == []
    assert gallery["description"] == ""
    assert "createdAt" in gallery

    resp = client.post(
        f"/api/gallery/{gallery['id']}/{user_id}/media",
        files={"file": ("cat.png", PNG, "image/png")},
    )
    assert resp.status_code == 201
    media = resp.json()
    assert media["title"] == "cat.png"
    assert media["type"] == "image"
    assert media["isFavorite"] is False
    assert media["ownerId"] == user_id
    assert client.get(media["url"]).content == PNG

    listed = client.get(f"/api/gallery/user/{user_id}").json()
    assert len(listed) == 1
    assert listed[0]["id"] == gallery["id"]
    assert listed[0]["media"] == [media]

    resp = client.delete(f"/api/gallery/{gallery['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    assert client.get(f"/api/gallery/user/{user_id}").json() == []
    resp = client.get(media["url"])
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_video_upload_is_classified_as_video(client: TestClient) -> None:
    user_id = _register(client)
    gallery = _create_gallery(client, user_id)

    resp = client.post(
        f"/api/gallery/{gallery['id']}/{user_id}/media",
        files={"file": ("clip.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
    )

    assert resp.status_code == 201
    assert resp.json()["type"] == "video"


def test_create_gallery_missing_fields(client: TestClient) -> None:
    resp = client.post("/api/gallery", json={"description": "no title"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_argument"


def test_create_gallery_unknown_owner(client: TestClient) -> None:
    resp = client.post("/api/gallery", json={"title": "Trip", "ownerId": str(uuid.uuid4())})
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_malformed_identifiers_are_rejected(client: TestClient) -> None:
    assert client.get("/api/gallery/user/not-an-id").status_code == 400
    assert client.delete("/api/gallery/not-an-id").status_code == 400
    resp = client.post("/api/gallery", json={"title": "Trip", "ownerId": "64b7f0c2e4b0a1a2b3c4d5e6"})
    assert resp.status_code == 400


def test_delete_unknown_gallery_succeeds(client: TestClient) -> None:
    gallery_id = uuid.uuid4()
    for _ in range(2):
        resp = client.delete(f"/api/gallery/{gallery_id}")
        assert resp.status_code == 200
        assert resp.json() == {"success": True}


def test_upload_without_file(client: TestClient) -> None:
    user_id = _register(client)
    gallery = _create_gallery(client, user_id)

    resp = client.post(f"/api/gallery/{gallery['id']}/{user_id}/media")

    assert resp.status_code == 400
    assert resp.json() == {"error": "invalid_argument", "message": "Missing file"}


def test_upload_to_unknown_gallery(client: TestClient) -> None:
    user_id = _register(client)
    resp = client.post(
        f"/api/gallery/{uuid.uuid4()}/{user_id}/media",
        files={"file": ("cat.png", PNG, "image/png")},
    )
    assert resp.status_code == 404


def test_upload_too_large(client: TestClient) -> None:
    user_id = _register(client)
    gallery = _create_gallery(client, user_id)

    resp = client.post(
        f"/api/gallery/{gallery['id']}/{user_id}/media",
        files={"file": ("big.mp4", b"0" * (1024 * 1024 + 10), "video/mp4")},
    )

    assert resp.status_code == 413
    assert resp.json()["error"] == "payload_too_large"


class _BrokenBlobStore:
    async def put(self, data, filename, content_type):
        raise StorageError("disk full at /var/lib/pixhub")


def test_storage_failure_hides_details(client: TestClient) -> None:
    user_id = _register(client)
    gallery = _create_gallery(client, user_id)
    client.app.dependency_overrides[get_blob_store] = lambda: _BrokenBlobStore()

    resp = client.post(
        f"/api/gallery/{gallery['id']}/{user_id}/media",
        files={"file": ("cat.png", PNG, "image/png")},
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "unexpected", "message": "Internal server error"}


def test_register_and_login(client: TestClient) -> None:
    user_id = _register(client, "alice@example.com")

    resp = client.post("/api/register", json={"username": "x", "email": "alice@example.com", "password": "y"})
    assert resp.status_code == 409
    assert resp.json()["error"] == "conflict"

    resp = client.post("/api/login", json={"email": "alice@example.com", "password": "s3cret"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == user_id
    assert body["accessToken"]
    assert "password" not in body and "passwordHash" not in body

    assert client.post("/api/login", json={"email": "alice@example.com", "password": "bad"}).status_code == 401
    assert client.post("/api/login", json={"email": "bob@example.com", "password": "x"}).status_code == 404
    assert client.post("/api/register", json={"email": "carol@example.com"}).status_code == 400


def test_routing_errors_use_error_body(client: TestClient) -> None:
    resp = client.delete("/api/gallery")
    assert resp.status_code == 405
    assert resp.json() == {"error": "method_not_allowed", "message": "Method Not Allowed"}

    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"error": "not_found", "message": "Not Found"}


def test_empty_upload_is_reported_as_empty(client: TestClient) -> None:
    user_id = _register(client)
    gallery = _create_gallery(client, user_id)

    resp = client.post(
        f"/api/gallery/{gallery['id']}/{user_id}/media",
        files={"file": ("empty.png", b"", "image/png")},
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "invalid_argument", "message": "Empty file"}
