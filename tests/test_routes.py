from __future__ import annotations

import pytest

from conftest import RecordingObserver


@pytest.fixture
def viewer(service):
    observer = RecordingObserver("viewer")
    service.register_observer(observer)
    return observer


def test_save_file_round_trip(client, backup_dir, viewer):
    response = client.post(
        "/api/save-file",
        json={"filename": "note.txt", "fileContent": "68656c6c6f"},
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["filename"] == "note.txt"
    assert body["size"] == 5
    assert (backup_dir / "note.txt").read_bytes() == b"hello"
    assert viewer.messages == ["note.txt"]


def test_save_file_accepts_body_without_json_content_type(client, backup_dir):
    response = client.post(
        "/api/save-file",
        data='{"filename": "raw.txt", "fileContent": "6869"}',
        content_type="text/plain",
    )

    assert response.status_code == 200
    assert (backup_dir / "raw.txt").read_bytes() == b"hi"


@pytest.mark.parametrize(
    "payload",
    [
        {"filename": "", "fileContent": "6869"},
        {"filename": "a.txt", "fileContent": ""},
        {"filename": "a.txt", "fileContent": "not-hex"},
    ],
)
def test_save_file_rejects_invalid_payload(client, backup_dir, viewer, payload):
    response = client.post("/api/save-file", json=payload)

    assert response.status_code == 400
    assert list(backup_dir.iterdir()) == []
    assert viewer.messages == []


def test_save_file_rejects_malformed_json(client, viewer):
    response = client.post("/api/save-file", data="{nope", content_type="application/json")

    assert response.status_code == 400
    assert response.get_data(as_text=True) == "Invalid JSON"
    assert viewer.messages == []


def test_save_file_write_failure_returns_500(client, backup_dir, viewer):
    (backup_dir / "taken").mkdir()

    response = client.post("/api/save-file", json={"filename": "taken", "fileContent": "6869"})

    assert response.status_code == 500
    assert viewer.messages == []


def test_save_file_only_accepts_post(client):
    assert client.get("/api/save-file").status_code == 405


def test_preflight_requests_get_cors_headers(client):
    for path in ("/api/save-file", "/api/tree"):
        response = client.options(path)
        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert "OPTIONS" in response.headers["Access-Control-Allow-Methods"]
        assert response.headers["Access-Control-Allow-Headers"] == "Content-Type"


def test_tree_endpoint(client, backup_dir):
    (backup_dir / "docs").mkdir()
    (backup_dir / "docs" / "cv.pdf").write_bytes(b"%PDF")
    (backup_dir / "empty").mkdir()

    response = client.get("/api/tree")

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    tree = response.get_json()
    assert tree["name"] == backup_dir.name
    assert tree["isDir"] is True
    children = {child["name"]: child for child in tree["children"]}
    assert children["docs"]["children"] == [{"name": "cv.pdf", "isDir": False}]
    assert children["empty"]["children"] == []


def test_tree_endpoint_reports_missing_backup_folder(client, backup_dir):
    backup_dir.rmdir()

    response = client.get("/api/tree")

    assert response.status_code == 500
    assert response.get_data(as_text=True) == "Failed to build file tree"


def test_file_listing_endpoint(client, backup_dir):
    (backup_dir / "a.txt").write_bytes(b"a")

    assert client.get("/api/files").get_json() == {"files": ["a.txt"]}


def test_index_page_lists_backups(client, backup_dir):
    (backup_dir / "holiday.png").write_bytes(b"png")

    response = client.get("/")

    assert response.status_code == 200
    page = response.get_data(as_text=True)
    assert "holiday.png" in page
    assert "/files/holiday.png" in page


def test_static_file_server(client, backup_dir):
    (backup_dir / "docs").mkdir()
    (backup_dir / "docs" / "readme.txt").write_bytes(b"read me")

    response = client.get("/files/docs/readme.txt")

    assert response.status_code == 200
    assert response.data == b"read me"
    response.close()
    assert client.get("/files/missing.txt").status_code == 404


def test_health_endpoint(client):
    body = client.get("/api/test").get_json()

    assert body["status"] == "ok"
    assert body["timestamp"]


def test_backed_up_folder_is_browsable(client, service, watch_dir):
    (watch_dir / "album" / "raw").mkdir(parents=True)
    (watch_dir / "album" / "cover.jpg").write_bytes(b"jpg")
    service.scan()

    assert "/files/album" in client.get("/").get_data(as_text=True)

    for url in ("/files/album", "/files/album/"):
        response = client.get(url)
        assert response.status_code == 200
        page = response.get_data(as_text=True)
        assert "/files/album/cover.jpg" in page
        assert "/files/album/raw" in page

    nested = client.get("/files/album/raw")
    assert nested.status_code == 200

    download = client.get("/files/album/cover.jpg")
    assert download.status_code == 200
    assert download.data == b"jpg"
    download.close()


def test_listing_survives_unreadable_backup_folder(client, backup_dir):
    backup_dir.rmdir()
    backup_dir.write_bytes(b"not a folder")

    assert client.get("/api/files").get_json() == {"files": []}
    assert client.get("/").status_code == 200
