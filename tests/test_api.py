from fastapi.testclient import TestClient

from reno_storage.api.app import create_app
from reno_storage.config import Settings, UploadSettings
from reno_storage.integrations import InMemoryObjectStore, InMemoryRecordStore
from reno_storage.services.photo_service import PhotoService


def make_client(with_storage=True):
    settings = Settings(STORAGE_BACKEND="supabase")
    service = None
    if with_storage:
        service = PhotoService(
            settings=settings,
            object_store=InMemoryObjectStore("memory://bucket"),
            record_store=InMemoryRecordStore(),
            clock=lambda: 1700000000000,
        )
    return TestClient(create_app(settings=settings, photo_service=service))


def test_sanitize_endpoint():
    client = make_client()
    response = client.post("/api/keys/sanitize", json={"name": "My Photo.JPG"})
    assert response.status_code == 200
    assert response.json()["key"] == "my_photo.jpg"


def test_path_endpoint():
    client = make_client()
    response = client.post("/api/keys/path", json={"owner_id": "/proj-1", "name": "photo", "index": 2})
    assert response.status_code == 200
    path = response.json()["path"]
    assert path.startswith("proj-1/")
    assert path.endswith("-2-photo.jpg")


def test_path_endpoint_rejects_negative_index():
    client = make_client()
    response = client.post("/api/keys/path", json={"owner_id": "p", "name": "a.png", "index": -1})
    assert response.status_code == 422


def test_inspect_endpoint():
    client = make_client()
    response = client.post("/api/keys/inspect", json={"name": "a\u200bb"})
    body = response.json()
    assert body["length"] == 3
    assert body["problematic"] == 1
    assert body["code_points"][1]["description"] == "Zero-width Space"
    assert body["code_points"][1]["is_visible"] is False


def test_upload_photos_endpoint():
    client = make_client()
    response = client.post(
        "/api/inspirations/insp-1/photos",
        files=[
            ("files", ("Kitchen Idea.PNG", b"png-bytes", "image/png")),
            ("files", ("notes.txt", b"text", "text/plain")),
        ],
        data={"start_order": "1"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body == [
        {
            "inspiration_id": "insp-1",
            "photo_url": "memory://bucket/insp-1/1700000000000-0-kitchen_idea.png",
            "photo_order": 1,
        }
    ]


def test_upload_photos_endpoint_validation_error():
    client = make_client()
    response = client.post(
        "/api/inspirations/insp-1/photos",
        files=[("files", ("notes.txt", b"text", "text/plain"))],
    )
    assert response.status_code == 400


def test_upload_photos_without_storage_is_unavailable():
    client = make_client(with_storage=False)
    response = client.post(
        "/api/inspirations/insp-1/photos",
        files=[("files", ("a.png", b"png", "image/png"))],
    )
    assert response.status_code == 503


def test_remove_photos_endpoint():
    client = make_client()
    client.post(
        "/api/inspirations/insp-1/photos",
        files=[("files", ("a.png", b"png", "image/png"))],
    )
    response = client.request("DELETE", "/api/inspirations/insp-1/photos", json={"photo_ids": ["1"]})
    assert response.status_code == 200
    assert response.json() == {"deleted": 1}


def test_health_reports_storage_state():
    assert make_client(with_storage=False).get("/api/health").json()["photo_storage"] is False


def test_upload_photos_endpoint_skips_oversized_files():
    settings = Settings(STORAGE_BACKEND="supabase", uploads=UploadSettings(max_photo_bytes=10))
    objects = InMemoryObjectStore("memory://bucket")
    service = PhotoService(
        settings=settings,
        object_store=objects,
        record_store=InMemoryRecordStore(),
        clock=lambda: 1700000000000,
    )
    client = TestClient(create_app(settings=settings, photo_service=service))

    response = client.post(
        "/api/inspirations/insp-1/photos",
        files=[
            ("files", ("big.png", b"x" * 50, "image/png")),
            ("files", ("small.png", b"x" * 10, "image/png")),
        ],
    )
    assert response.status_code == 200
    assert list(objects.objects) == ["insp-1/1700000000000-0-small.png"]

    response = client.post(
        "/api/inspirations/insp-1/photos",
        files=[("files", ("big.png", b"x" * 50, "image/png"))],
    )
    assert response.status_code == 400
