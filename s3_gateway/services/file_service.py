"""File service for single-object and listing operations.

Each method is one round-trip to the object store: presigned URLs, bucket and
object listings, folder markers, downloads, deletes and in-bucket copies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from s3_gateway.domain import keys
from s3_gateway.infra.storage.client import (
    ObjectEntry,
    ObjectLocator,
    ObjectStream,
)

from .base import BaseService, InvalidRequestError

logger = logging.getLogger("s3_gateway.files")


@dataclass(frozen=True, slots=True)
class FileListing:
    """A page of files and folders, already filtered by last-fetch time."""

    entries: Sequence[ObjectEntry]
    folders: Sequence[str]
    next_token: str | None


@dataclass(frozen=True, slots=True)
class FileDownload:
    """An opened object ready to be streamed as an attachment."""

    locator: ObjectLocator
    filename: str
    stream: ObjectStream


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class FileService(BaseService):
    """Application service for object-level gateway operations."""

    def presign(self, bucket: str, key: str) -> str:
        self._require(bucket, "bucketName is required")
        keys.validate_key(key, what="fileKey")
        return self.storage.presign_download(
            bucket=bucket,
            object_key=key,
            expires_in=self.settings.STORAGE_PRESIGN_EXPIRES_SECONDS,
        )

    def list_buckets(self) -> list[str]:
        return self.storage.list_buckets()

    def list_files(
        self,
        bucket: str,
        *,
        prefix: str | None = None,
        token: str | None = None,
        last_fetch_time: datetime | None = None,
    ) -> FileListing:
        """List one page under ``prefix`` grouped by ``/``.

        ``last_fetch_time`` keeps only entries modified strictly after it.
        The filter applies to the fetched page alone, so a page can hold fewer
        entries than the page size while later pages still have matches.
        Folders are never filtered.
        """
        self._require(bucket, "bucketName is required")
        normalized_prefix = "" if prefix in (None, keys.DELIMITER) else prefix
        page = self.storage.list_objects(
            bucket=bucket,
            prefix=normalized_prefix,
            delimiter=keys.DELIMITER,
            max_keys=self.settings.LIST_PAGE_SIZE,
            continuation_token=token or None,
        )

        entries: Sequence[ObjectEntry] = page.entries
        if last_fetch_time is not None:
            threshold = _as_utc(last_fetch_time)
            entries = [
                entry for entry in entries if _as_utc(entry.last_modified) > threshold
            ]
        return FileListing(
            entries=list(entries),
            folders=list(page.folders),
            next_token=page.next_token,
        )

    def search_files(
        self,
        bucket: str,
        *,
        prefix: str | None = None,
        file_name: str | None = None,
    ) -> list[ObjectEntry]:
        """Every object under ``prefix`` whose key contains ``file_name``.

        Matching is plain, case-sensitive substring containment.
        """
        self._require(bucket, "bucketName is required")
        needle = file_name or ""
        return [
            entry
            for entry in self.storage.iter_objects(bucket=bucket, prefix=prefix or "")
            if needle in entry.key
        ]

    def create_folder(self, bucket: str, folder_name: str | None) -> ObjectLocator:
        self._require(bucket, "bucketName is required")
        self._require(folder_name, "folderName is required")
        key = keys.folder_key(folder_name)
        self.storage.put_object(bucket=bucket, object_key=key, body=b"")
        logger.info(
            "folder created bucket=%s key=%s",
            bucket,
            key,
            extra={"extra": {"bucket": bucket, "key": key}},
        )
        return ObjectLocator(bucket=bucket, key=key)

    def download(self, bucket: str, key: str) -> FileDownload:
        self._require(bucket, "bucketName is required")
        keys.validate_key(key, what="fileKey")
        stream = self.storage.open_object(
            bucket=bucket,
            object_key=key,
            chunk_size=self.settings.DOWNLOAD_CHUNK_SIZE,
        )
        return FileDownload(
            locator=ObjectLocator(bucket=bucket, key=key),
            filename=keys.basename(key),
            stream=stream,
        )

    def delete(self, bucket: str, key: str) -> None:
        self._require(bucket, "bucketName is required")
        keys.validate_key(key, what="fileKey")
        self.storage.delete_object(bucket=bucket, object_key=key)

    def copy(self, bucket: str, source_key: str | None, target_key: str | None) -> None:
        self._require(bucket, "bucketName is required")
        if not source_key or not target_key:
            raise InvalidRequestError("sourceKey and targetKey are required")
        keys.validate_key(source_key, what="sourceKey")
        keys.validate_key(target_key, what="targetKey")
        logger.info(
            "copying object bucket=%s source=%s target=%s",
            bucket,
            source_key,
            target_key,
            extra={
                "extra": {
                    "bucket": bucket,
                    "source_key": source_key,
                    "target_key": target_key,
                }
            },
        )
        self.storage.copy_object(
            source_bucket=bucket,
            source_key=source_key,
            target_bucket=bucket,
            target_key=target_key,
        )
