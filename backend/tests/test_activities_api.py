"""Tests for the activities HTTP API."""

from pathlib import Path

JPEG = b"\xff\xd8\xff\xe0fake-jpeg"


def _image(name: str = "run.jpg", data: bytes = JPEG, content_type: str = "image/jpeg"):
    return {"image": (name, data, content_type)}


def test_index_lists_endpoints(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "SmartTracker API is running"
    assert "GET /api/activities" in body["endpoints"]


def test_health(client):
    response = client.get("/health")
    assert response.json()["status"] == "healthy"


def test_list_empty(client):
    response = client.get("/api/activities")

    assert response.status_code == 200
    assert response.json() == []


def test_create_without_image(client):
    response = client.post(
        "/api/activities",
        data={"latitude": "1.0", "longitude": "2.0", "description": "Park run"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "1"
    assert body["latitude"] == 1.0
    assert body["longitude"] == 2.0
    assert body["description"] == "Park run"
    assert body["imageUrl"] is None
    assert body["imagePath"] is None
    assert body["timestamp"]


def test_create_requires_coordinates(client, store):
    response = client.post("/api/activities", data={"description": "No location"})

    assert response.status_code == 400
    assert response.json() == {"error": "Latitude and longitude are required"}
    assert len(store) == 0


def test_create_with_image_serves_file(client, upload_dir):
    response = client.post(
        "/api/activities",
        data={"latitude": "1", "longitude": "2"},
        files=_image(),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["imageUrl"].startswith("http://testserver/uploads/")
    assert body["imageUrl"].endswith(".jpg")
    assert Path(body["imagePath"]).parent == upload_dir
    assert Path(body["imagePath"]).exists()

    served = client.get(body["imageUrl"])
    assert served.status_code == 200
    assert served.content == JPEG


def test_create_uses_public_base_url_setting(settings, store):
    from fastapi.testclient import TestClient
    from smarttracker.main import create_app

    settings.PUBLIC_BASE_URL = "https://img.example.com/uploads/"
    with TestClient(create_app(settings=settings, store=store)) as client:
        response = client.post("/api/activities", data={"latitude": "1", "longitude": "2"}, files=_image())

    assert response.json()["imageUrl"].startswith("https://img.example.com/uploads/")


def test_create_rejects_non_image(client, upload_dir, store):
    response = client.post(
        "/api/activities",
        data={"latitude": "1", "longitude": "2"},
        files=_image("notes.txt", b"hello", "text/plain"),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Only image files are allowed"}
    assert list(upload_dir.iterdir()) == []
    assert len(store) == 0


def test_create_rejects_oversized_image(client, settings, upload_dir):
    settings.MAX_UPLOAD_SIZE = 8

    response = client.post(
        "/api/activities",
        data={"latitude": "1", "longitude": "2"},
        files=_image(data=b"x" * 9),
    )

    assert response.status_code == 413
    assert list(upload_dir.iterdir()) == []


def test_create_with_image_but_missing_coordinates_leaves_no_file(client, upload_dir):
    response = client.post("/api/activities", data={"latitude": "1"}, files=_image())

    assert response.status_code == 400
    assert list(upload_dir.iterdir()) == []


def test_get_activity(client):
    created = client.post("/api/activities", data={"latitude": "1", "longitude": "2"}).json()

    response = client.get(f"/api/activities/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


def test_get_unknown_activity(client):
    response = client.get("/api/activities/404")

    assert response.status_code == 404
    assert response.json() == {"error": "Activity not found"}


def test_update_fields(client):
    created = client.post(
        "/api/activities", data={"latitude": "1", "longitude": "2", "description": "Run"}
    ).json()

    response = client.put(
        f"/api/activities/{created['id']}",
        data={"latitude": "5", "description": ""},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["latitude"] == 5.0
    assert body["longitude"] == 2.0
    assert body["description"] == "Run"


def test_update_replaces_image(client, upload_dir):
    created = client.post(
        "/api/activities", data={"latitude": "1", "longitude": "2"}, files=_image("a.jpg")
    ).json()

    response = client.put(f"/api/activities/{created['id']}", files=_image("b.png", b"png", "image/png"))

    body = response.json()
    assert response.status_code == 200
    assert body["imageUrl"] != created["imageUrl"]
    assert body["imageUrl"].endswith(".png")
    assert not Path(created["imagePath"]).exists()
    assert [p.name for p in upload_dir.iterdir()] == [Path(body["imagePath"]).name]


def test_update_unknown_activity(client, upload_dir):
    response = client.put("/api/activities/7", data={"description": "x"}, files=_image())

    assert response.status_code == 404
    assert list(upload_dir.iterdir()) == []


def test_delete_activity(client):
    created = client.post(
        "/api/activities", data={"latitude": "1", "longitude": "2"}, files=_image()
    ).json()

    response = client.delete(f"/api/activities/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"message": "Activity deleted successfully", "id": created["id"]}
    assert client.get(f"/api/activities/{created['id']}").status_code == 404
    assert not Path(created["imagePath"]).exists()


def test_delete_unknown_activity(client):
    response = client.delete("/api/activities/1")
    assert response.status_code == 404


def test_search_route_is_not_an_id(client):
    client.post("/api/activities", data={"latitude": "1", "longitude": "2", "description": "Park run"})

    response = client.get("/api/activities/search")

    assert response.status_code == 200
    assert [a["id"] for a in response.json()] == ["1"]


def test_search_by_location(client):
    client.post("/api/activities", data={"latitude": "51.5", "longitude": "-0.1"})
    client.post("/api/activities", data={"latitude": "48.85", "longitude": "2.35"})

    response = client.get("/api/activities/search", params={"q": "51.5,-0.1"})

    assert [a["id"] for a in response.json()] == ["1"]


def test_activity_lifecycle(client, upload_dir):
    first = client.post(
        "/api/activities",
        data={
            "latitude": "1.0",
            "longitude": "2.0",
            "description": "Park run",
            "timestamp": "2024-05-01T10:00:00.000Z",
        },
    ).json()
    assert first["id"] == "1"
    assert first["imageUrl"] is None

    second = client.post(
        "/api/activities",
        data={"latitude": "3.0", "longitude": "4.0", "timestamp": "2024-05-01T11:00:00.000Z"},
        files=_image("photo.jpg"),
    ).json()
    assert second["id"] == "2"
    assert second["imageUrl"] is not None

    listed = client.get("/api/activities").json()
    assert [a["id"] for a in listed] == ["2", "1"]

    found = client.get("/api/activities/search", params={"q": "park"}).json()
    assert [a["id"] for a in found] == ["1"]

    assert client.delete("/api/activities/2").status_code == 200
    assert client.get("/api/activities/2").status_code == 404
    assert not Path(second["imagePath"]).exists()
    assert list(upload_dir.iterdir()) == []


def test_routes_are_mounted_under_api_prefix(settings, store):
    from smarttracker.main import create_app

    paths = {route.path for route in create_app(settings=settings, store=store).routes}

    assert f"{settings.API_PREFIX}/search" in paths
    assert f"{settings.API_PREFIX}/{{activity_id}}" in paths


def test_unhandled_error_returns_generic_message(settings, store):
    from fastapi.testclient import TestClient
    from smarttracker.main import create_app

    app = create_app(settings=settings, store=store)

    async def failing_endpoint():
        raise RuntimeError("internal detail that must not leak")

    app.add_api_route("/failing", failing_endpoint)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/failing")

    assert response.status_code == 500
    assert response.json() == {"error": "Something went wrong!"}
