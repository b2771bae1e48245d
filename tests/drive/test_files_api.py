"""网盘文件接口集成测试（本地对象存储 + 固定上传闸门）。"""

from fastapi.testclient import TestClient


def _upload(client: TestClient, headers, path: str, *files):
    return client.post(
        "/api/v1/files/upload",
        data={"path": path},
        files=[("files", f) for f in files],
        headers=headers,
    )


def test_requires_authentication(client: TestClient):
    resp = client.get("/api/v1/files")
    assert resp.status_code == 401
    assert resp.json()["code"] == 401


def test_folder_upload_download_delete_flow(client: TestClient, user_headers):
    user, headers = user_headers

    mk = client.post("/api/v1/files/folder", json={"name": "Docs", "path": "/"}, headers=headers)
    assert mk.status_code == 200
    folder = mk.json()["data"]
    assert folder["isFolder"] is True
    assert folder["objectKey"] == f"{user.id}/Docs/"

    up = _upload(client, headers, "Docs", ("a.txt", b"hello", "text/plain"))
    assert up.status_code == 200
    uploaded = up.json()["data"]
    assert len(uploaded) == 1
    assert uploaded[0]["path"] == "/Docs/"
    assert uploaded[0]["size"] == 5

    listing = client.get("/api/v1/files", params={"path": "/Docs/"}, headers=headers)
    assert listing.status_code == 200
    assert [e["name"] for e in listing.json()["data"]] == ["a.txt"]

    down = client.get(f"/api/v1/files/download/{uploaded[0]['id']}", headers=headers)
    assert down.status_code == 200
    assert down.content == b"hello"
    assert down.headers["content-type"].startswith("text/plain")
    assert "a.txt" in down.headers["content-disposition"]

    rm = client.delete(f"/api/v1/files/{folder['id']}", headers=headers)
    assert rm.status_code == 200

    root = client.get("/api/v1/files", params={"path": "/"}, headers=headers)
    assert root.json()["data"] == []
    gone = client.get("/api/v1/files", params={"path": "/Docs/"}, headers=headers)
    assert gone.status_code == 200
    assert gone.json()["data"] == []


def test_download_of_overwritten_duplicate_streams_current_object(client: TestClient, user_headers):
    _, headers = user_headers
    first = _upload(client, headers, "/", ("a.txt", b"one", "text/plain")).json()["data"][0]
    second = _upload(client, headers, "/", ("a.txt", b"two!", "text/plain")).json()["data"][0]
    assert first["objectKey"] == second["objectKey"]
    assert first["size"] == 3

    down = client.get(f"/api/v1/files/download/{first['id']}", headers=headers)
    assert down.status_code == 200
    assert down.content == b"two!"
    assert down.headers.get("content-length") in (None, str(len(down.content)))


def test_list_filters(client: TestClient, user_headers):
    _, headers = user_headers
    _upload(
        client,
        headers,
        "/",
        ("photo.png", b"png", "image/png"),
        ("notes.txt", b"txt", "text/plain"),
        ("backup.zip", b"zip", "application/zip"),
    )
    client.post("/api/v1/files/folder", json={"name": "Pictures"}, headers=headers)

    images = client.get("/api/v1/files", params={"fileType": "image"}, headers=headers)
    assert [e["name"] for e in images.json()["data"]] == ["photo.png"]

    archives = client.get("/api/v1/files", params={"fileType": "archive"}, headers=headers)
    assert [e["name"] for e in archives.json()["data"]] == ["backup.zip"]

    search = client.get("/api/v1/files", params={"search": "PIC"}, headers=headers)
    assert [e["name"] for e in search.json()["data"]] == ["Pictures"]

    everything = client.get("/api/v1/files", params={"dateRange": "today"}, headers=headers)
    assert everything.json()["data"][0]["name"] == "Pictures"

    bad = client.get("/api/v1/files", params={"fileType": "spreadsheet"}, headers=headers)
    assert bad.status_code == 400


def test_upload_folder_reconstructs_tree(client: TestClient, user_headers):
    _, headers = user_headers
    resp = client.post(
        "/api/v1/files/upload-folder",
        data={"path": "/", "relativePaths": ["a/b/x.txt", "a/b/y.txt", "a/c/z.txt"]},
        files=[
            ("files", ("x.txt", b"x", "text/plain")),
            ("files", ("y.txt", b"y", "text/plain")),
            ("files", ("z.txt", b"z", "text/plain")),
        ],
        headers=headers,
    )
    assert resp.status_code == 200
    body = resp.json()["data"]
    assert body["errors"] == []
    assert [e["path"] for e in body["entries"]] == ["/a/b/", "/a/b/", "/a/c/"]

    top = client.get("/api/v1/files", params={"path": "/a/"}, headers=headers).json()["data"]
    assert [(e["name"], e["isFolder"]) for e in top] == [("b", True), ("c", True)]


def test_upload_folder_reports_item_errors(client: TestClient, user_headers):
    _, headers = user_headers
    resp = client.post(
        "/api/v1/files/upload-folder",
        data={"relativePaths": ["good/ok.txt", "good//bad.txt"]},
        files=[
            ("files", ("ok.txt", b"1", "text/plain")),
            ("files", ("bad.txt", b"2", "text/plain")),
        ],
        headers=headers,
    )
    assert resp.status_code == 200
    body = resp.json()["data"]
    assert [e["name"] for e in body["entries"]] == ["ok.txt"]
    assert len(body["errors"]) == 1


def test_upload_folder_rejects_mismatched_paths(client: TestClient, user_headers):
    _, headers = user_headers
    resp = client.post(
        "/api/v1/files/upload-folder",
        data={"relativePaths": ["a/x.txt", "a/y.txt"]},
        files=[("files", ("x.txt", b"x", "text/plain"))],
        headers=headers,
    )
    assert resp.status_code == 400


def test_error_mapping(client: TestClient, user_headers):
    _, headers = user_headers
    client.post("/api/v1/files/folder", json={"name": "Docs"}, headers=headers)

    conflict = client.post("/api/v1/files/folder", json={"name": "Docs"}, headers=headers)
    assert conflict.status_code == 409
    assert conflict.json()["code"] == 409

    invalid = client.post("/api/v1/files/folder", json={"name": "a/b"}, headers=headers)
    assert invalid.status_code == 400

    missing = client.delete("/api/v1/files/does-not-exist", headers=headers)
    assert missing.status_code == 404

    folder_id = client.get("/api/v1/files", headers=headers).json()["data"][0]["id"]
    not_a_file = client.get(f"/api/v1/files/download/{folder_id}", headers=headers)
    assert not_a_file.status_code == 400


def test_closed_upload_window_is_forbidden(client: TestClient, user_headers, upload_gate):
    _, headers = user_headers
    upload_gate.open = False

    mk = client.post("/api/v1/files/folder", json={"name": "Late"}, headers=headers)
    assert mk.status_code == 403
    assert mk.json()["msg"] == "上传截止时间已过"

    up = _upload(client, headers, "/", ("late.txt", b"late", "text/plain"))
    assert up.status_code == 403
    assert client.get("/api/v1/files", headers=headers).json()["data"] == []


def test_bulk_delete_reports_partial_failures(client: TestClient, user_headers):
    _, headers = user_headers
    uploaded = _upload(
        client,
        headers,
        "/",
        ("1.txt", b"1", "text/plain"),
        ("2.txt", b"2", "text/plain"),
    ).json()["data"]
    ids = [uploaded[0]["id"], "missing", uploaded[1]["id"]]

    resp = client.post("/api/v1/files/bulk-delete", json={"ids": ids}, headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["deletedCount"] == 2
    assert len(data["errors"]) == 1
    assert data["errors"][0].startswith("missing: ")


def test_users_cannot_touch_each_other(client: TestClient, make_user, login_as):
    alice = make_user()
    bob = make_user()
    alice_headers = login_as(alice.email)
    bob_headers = login_as(bob.email)

    entry = _upload(client, alice_headers, "/", ("mine.txt", b"m", "text/plain")).json()["data"][0]

    assert client.get("/api/v1/files", headers=bob_headers).json()["data"] == []
    assert client.get(f"/api/v1/files/download/{entry['id']}", headers=bob_headers).status_code == 404
    assert client.delete(f"/api/v1/files/{entry['id']}", headers=bob_headers).status_code == 404
    assert client.get(f"/api/v1/files/download/{entry['id']}", headers=alice_headers).status_code == 200
