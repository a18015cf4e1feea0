"""Tests for FileService using the in-memory storage client."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from s3_gateway.common.config import Settings
from s3_gateway.domain.keys import InvalidKeyError
from s3_gateway.infra.storage.client import StorageError
from s3_gateway.services.base import InvalidRequestError
from s3_gateway.services.file_service import FileService

from tests.services.mock_storage import BASE_TIME, MockStorageClient


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture
def service(storage) -> FileService:
    return FileService(storage, settings=Settings(LIST_PAGE_SIZE=3))


def _collect_all_pages(service: FileService, bucket: str, prefix: str = ""):
    entries, folders, token, pages = [], [], None, 0
    while True:
        listing = service.list_files(bucket, prefix=prefix, token=token)
        entries.extend(e.key for e in listing.entries)
        folders.extend(listing.folders)
        pages += 1
        token = listing.next_token
        if token is None:
            return entries, folders, pages


class TestPresign:
    def test_uses_configured_expiry(self, service, storage):
        url = service.presign("b1", "docs/a.pdf")

        assert url.endswith("X-Amz-Expires=3600")
        assert storage.calls == [("presign_download", "b1", "docs/a.pdf", 3600)]

    def test_requires_key(self, service, storage):
        with pytest.raises(InvalidKeyError):
            service.presign("b1", "")
        assert storage.calls == []


class TestListFiles:
    def test_groups_nested_keys_into_folders(self, service, storage):
        for key in ["a.txt", "docs/one.txt", "docs/two.txt", "img/x/y.png"]:
            storage.put("b1", key, b"x")
        service = FileService(storage, settings=Settings(LIST_PAGE_SIZE=100))

        listing = service.list_files("b1")

        assert [e.key for e in listing.entries] == ["a.txt"]
        assert listing.folders == ["docs/", "img/"]
        assert listing.next_token is None
        for entry in listing.entries:
            assert "/" not in entry.key

    def test_nested_prefix_keeps_only_direct_children(self, storage):
        for key in ["docs/one.txt", "docs/sub/deep.txt", "docs/sub/other.txt", "top.txt"]:
            storage.put("b1", key, b"x")
        service = FileService(storage, settings=Settings(LIST_PAGE_SIZE=100))

        listing = service.list_files("b1", prefix="docs/")

        assert [e.key for e in listing.entries] == ["docs/one.txt"]
        assert listing.folders == ["docs/sub/"]
        for entry in listing.entries:
            assert "/" not in entry.key[len("docs/"):]

    def test_slash_prefix_means_root(self, service, storage):
        storage.put("b1", "a.txt")

        service.list_files("b1", prefix="/")

        assert storage.calls[-1] == ("list_objects", "b1", "", None)

    def test_pages_concatenate_to_full_listing(self, service, storage):
        keys = [f"file-{i:02d}.txt" for i in range(8)] + ["dir/a", "dir/b", "zz/c"]
        for key in keys:
            storage.put("b1", key, b"x")

        entries, folders, pages = _collect_all_pages(service, "b1")

        assert pages == 4
        assert len(entries) == len(set(entries))
        assert sorted(entries) == sorted(k for k in keys if "/" not in k)
        assert sorted(folders) == ["dir/", "zz/"]

    def test_token_is_passed_verbatim(self, service, storage):
        for i in range(5):
            storage.put("b1", f"k{i}")

        first = service.list_files("b1")
        service.list_files("b1", token=first.next_token)

        assert storage.calls[-1] == ("list_objects", "b1", "", first.next_token)

    def test_last_fetch_time_filters_within_page(self, service, storage):
        for i in range(3):
            storage.put("b1", f"k{i}", last_modified=BASE_TIME + timedelta(minutes=i))
        storage.put("b1", "z-late", last_modified=BASE_TIME + timedelta(minutes=10))

        listing = service.list_files(
            "b1", last_fetch_time=BASE_TIME + timedelta(minutes=1)
        )

        # z-late matches too but sits on the next page
        assert [e.key for e in listing.entries] == ["k2"]
        assert listing.next_token is not None
        for entry in listing.entries:
            assert entry.last_modified > BASE_TIME + timedelta(minutes=1)

    def test_last_fetch_time_is_strictly_greater(self, service, storage):
        storage.put("b1", "k0", last_modified=BASE_TIME)

        listing = service.list_files("b1", last_fetch_time=BASE_TIME)

        assert listing.entries == []

    def test_naive_last_fetch_time_is_utc(self, service, storage):
        storage.put("b1", "k0", last_modified=BASE_TIME + timedelta(seconds=1))

        listing = service.list_files(
            "b1", last_fetch_time=datetime(2024, 1, 1, 0, 0, 0)
        )

        assert [e.key for e in listing.entries] == ["k0"]

    def test_folders_are_never_filtered(self, storage):
        storage.put("b1", "old/a", last_modified=BASE_TIME)
        service = FileService(storage, settings=Settings())

        listing = service.list_files(
            "b1", last_fetch_time=datetime(2030, 1, 1, tzinfo=timezone.utc)
        )

        assert listing.folders == ["old/"]


class TestSearchFiles:
    def test_case_sensitive_substring(self, service, storage):
        for key in ["docs/Report.pdf", "docs/report-2.pdf", "img/report.png", "x.txt"]:
            storage.put("b1", key, b"x")

        found = service.search_files("b1", prefix="docs/", file_name="report")

        assert [e.key for e in found] == ["docs/report-2.pdf"]

    def test_is_not_paginated(self, service, storage):
        for i in range(10):
            storage.put("b1", f"deep/{i}/item-{i}.txt", b"x")

        found = service.search_files("b1", file_name="item")

        assert len(found) == 10

    def test_missing_substring_keeps_everything(self, service, storage):
        storage.put("b1", "a")
        storage.put("b1", "b/c")

        assert [e.key for e in service.search_files("b1")] == ["a", "b/c"]


class TestCreateFolder:
    def test_creates_empty_marker(self, service, storage):
        locator = service.create_folder("b1", "docs")

        assert locator.key == "docs/"
        assert storage.body("b1", "docs/") == b""

    def test_trailing_delimiter_is_not_doubled(self, service, storage):
        service.create_folder("b1", "docs/")

        assert storage.exists("b1", "docs/")
        assert not storage.exists("b1", "docs//")

    def test_missing_name_makes_no_remote_call(self, service, storage):
        with pytest.raises(InvalidRequestError, match="folderName is required"):
            service.create_folder("b1", None)
        assert storage.calls == []


class TestDownload:
    def test_opens_stream_with_basename(self, service, storage):
        storage.put("b1", "docs/a.txt", b"hello", content_type="text/plain")

        download = service.download("b1", "docs/a.txt")

        assert download.filename == "a.txt"
        assert b"".join(download.stream.chunks) == b"hello"
        assert download.stream.content_type == "text/plain"

    def test_missing_key_raises_before_streaming(self, service, storage):
        with pytest.raises(StorageError) as excinfo:
            service.download("b1", "missing.txt")

        assert excinfo.value.to_payload()["Error"]["Code"] == "NoSuchKey"


class TestDeleteAndCopy:
    def test_delete_missing_key_succeeds(self, service, storage):
        service.delete("b1", "never-existed")

        assert storage.calls == [("delete_object", "b1", "never-existed")]

    def test_copy_within_bucket(self, service, storage):
        storage.put("b1", "a.txt", b"content")

        service.copy("b1", "a.txt", "backup/a.txt")

        assert storage.body("b1", "backup/a.txt") == b"content"
        assert storage.exists("b1", "a.txt")

    def test_copy_overwrites_target(self, service, storage):
        storage.put("b1", "a.txt", b"new")
        storage.put("b1", "b.txt", b"old")

        service.copy("b1", "a.txt", "b.txt")

        assert storage.body("b1", "b.txt") == b"new"

    @pytest.mark.parametrize(("source", "target"), [(None, "b"), ("a", ""), (None, None)])
    def test_copy_requires_both_keys(self, service, storage, source, target):
        with pytest.raises(InvalidRequestError, match="sourceKey and targetKey are required"):
            service.copy("b1", source, target)
        assert storage.calls == []
