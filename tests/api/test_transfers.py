from __future__ import annotations


def _move(client, files, source="src", target="dst"):
    return client.post(
        "/move-files",
        json={"sourceBucket": source, "targetBucket": target, "files": files},
    )


def test_move_files(client, storage):
    storage.put("src", "a.txt", b"A")
    storage.put("src", "b.txt", b"B")

    resp = _move(
        client,
        [
            {"sourceKey": "a.txt", "targetKey": "in/a.txt"},
            {"sourceKey": "b.txt", "targetKey": "in/b.txt"},
        ],
    )

    assert resp.status_code == 200
    assert resp.json() == {"message": "Files moved successfully"}
    assert storage.body("dst", "in/a.txt") == b"A"
    assert storage.body("dst", "in/b.txt") == b"B"
    assert not storage.exists("src", "a.txt")
    assert not storage.exists("src", "b.txt")


def test_move_stops_at_first_failure(client, storage):
    storage.put("src", "a.txt", b"A")
    storage.put("src", "c.txt", b"C")

    resp = _move(
        client,
        [
            {"sourceKey": "a.txt", "targetKey": "a.txt"},
            {"sourceKey": "missing.txt", "targetKey": "missing.txt"},
            {"sourceKey": "c.txt", "targetKey": "c.txt"},
        ],
    )

    assert resp.status_code == 500
    assert resp.json()["Error"]["Code"] == "NoSuchKey"
    # already moved files stay moved, later ones are untouched
    assert storage.exists("dst", "a.txt")
    assert not storage.exists("src", "a.txt")
    assert storage.exists("src", "c.txt")
    assert not storage.exists("dst", "c.txt")


def test_move_requires_buckets_and_files(client, storage):
    resp = client.post("/move-files", json={"sourceBucket": "src", "files": []})

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "sourceBucket, files, and targetBucket are required"
    }
    assert storage.calls == []


def test_move_rejects_incomplete_item_before_any_call(client, storage):
    storage.put("src", "a.txt")

    resp = _move(
        client,
        [{"sourceKey": "a.txt", "targetKey": "a.txt"}, {"sourceKey": "b.txt"}],
    )

    assert resp.status_code == 400
    assert storage.calls == []
    assert storage.exists("src", "a.txt")


def test_archive_file(client, storage):
    storage.put("b1", "reports/q1.pdf", b"Q1")

    resp = client.post("/archive-file/b1/reports/q1.pdf")

    assert resp.status_code == 200
    assert resp.json() == {
        "message": "File archived successfully",
        "archivedKey": "archive/reports/q1.pdf",
    }
    assert storage.body("b1", "archive/reports/q1.pdf") == b"Q1"
    assert not storage.exists("b1", "reports/q1.pdf")


def test_archive_missing_file(client, storage):
    resp = client.post("/archive-file/b1/nope.txt")

    assert resp.status_code == 500
    assert resp.json()["Error"]["Code"] == "NoSuchKey"


def test_move_onto_itself_is_bad_request(client, storage):
    storage.put("b1", "a.txt", b"keep")

    resp = _move(client, [{"sourceKey": "a.txt", "targetKey": "a.txt"}], "b1", "b1")

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "sourceKey and targetKey must differ when sourceBucket equals targetBucket"
    }
    assert storage.calls == []
    assert storage.body("b1", "a.txt") == b"keep"
