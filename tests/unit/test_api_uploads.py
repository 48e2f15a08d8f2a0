from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

API_DIR = Path(__file__).resolve().parents[2]
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

import main
from formforge.deps import get_object_storage
from formforge.storage import LocalObjectStorage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture()
def objects(tmp_path: Path) -> LocalObjectStorage:
    return LocalObjectStorage(tmp_path / "uploads")


@pytest.fixture()
def client(objects: LocalObjectStorage) -> TestClient:
    main.app.dependency_overrides[get_object_storage] = lambda: objects
    return TestClient(main.app)


@pytest.fixture(autouse=True)
def clear_overrides() -> None:
    yield
    main.app.dependency_overrides.clear()


def test_upload_url_points_at_upload_endpoint(client: TestClient) -> None:
    response = client.post("/api/objects/upload")

    assert response.status_code == 200
    assert response.json() == {"uploadURL": "/api/upload"}


def test_upload_stores_image_and_serves_it(client: TestClient, objects: LocalObjectStorage) -> None:
    response = client.post("/api/upload", files={"file": ("header.PNG", PNG_BYTES, "image/png")})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["originalName"] == "header.PNG"
    assert body["filename"].endswith(".png")
    assert body["url"] == f"/public-objects/{body['filename']}"
    assert (objects.root_dir / body["filename"]).read_bytes() == PNG_BYTES

    served = client.get(body["url"])
    assert served.status_code == 200
    assert served.content == PNG_BYTES


def test_upload_rejects_non_image(client: TestClient) -> None:
    response = client.post("/api/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400
    assert "image" in response.json()["detail"].lower()


def test_upload_rejects_missing_file(client: TestClient) -> None:
    response = client.post("/api/upload")

    assert response.status_code == 400
    assert response.json()["detail"] == "No file uploaded"


def test_upload_rejects_oversized_file(
    client: TestClient, objects: LocalObjectStorage, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(main, "UPLOAD_MAX_SIZE_BYTES", 16)

    response = client.post("/api/upload", files={"file": ("big.png", PNG_BYTES, "image/png")})

    assert response.status_code == 413
    assert list(objects.root_dir.iterdir()) == []


def test_public_object_returns_404_for_missing_or_escaping_keys(client: TestClient) -> None:
    assert client.get("/public-objects/missing.png").status_code == 404
    assert client.get("/public-objects/..%2F..%2Fetc%2Fpasswd").status_code == 404


def test_local_object_storage_blocks_path_traversal(objects: LocalObjectStorage) -> None:
    with pytest.raises(ValueError, match="Invalid object key"):
        objects.resolve_object("../outside.png")


def test_local_object_storage_drops_unsafe_suffix(objects: LocalObjectStorage, tmp_path: Path) -> None:
    source = tmp_path / "source.bin"
    source.write_bytes(b"data")

    key = objects.save_object(source, "photo.p$g")

    assert "." not in key
    assert objects.resolve_object(key).read_bytes() == b"data"
