"""Upload service for multipart form uploads.

Each uploaded part is streamed straight into the object store under a
timestamped key and reported back with its resolvable URL.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import BinaryIO, Callable, Sequence

from s3_gateway.common.config import Settings
from s3_gateway.domain import keys
from s3_gateway.infra.storage.client import StorageClient

from .base import BaseService, InvalidRequestError

logger = logging.getLogger("s3_gateway.uploads")


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True, slots=True)
class UploadSource:
    """One file part received from the client."""

    filename: str | None
    fileobj: BinaryIO
    content_type: str | None = None


@dataclass(frozen=True, slots=True)
class UploadResult:
    """Where an uploaded part ended up."""

    bucket: str
    key: str
    url: str


class UploadService(BaseService):
    """Streams uploaded parts to storage, one object per part."""

    def __init__(
        self,
        storage: StorageClient,
        *,
        settings: Settings | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        super().__init__(storage, settings=settings)
        self._clock = clock or _now_ms

    def upload(
        self,
        bucket: str,
        files: Sequence[UploadSource],
        *,
        prefix: str | None = None,
    ) -> list[UploadResult]:
        """Store every part under ``{prefix}{timestamp_ms}_{filename}``.

        Timestamps strictly increase within one call, so two parts never
        share a key. All keys are validated before the first upload starts.
        """
        self._require(bucket, "bucketName is required")
        if not files:
            raise InvalidRequestError("No files uploaded.")

        planned: list[tuple[str, UploadSource]] = []
        last_stamp = 0
        for source in files:
            stamp = max(self._clock(), last_stamp + 1)
            last_stamp = stamp
            planned.append((keys.upload_key(prefix, stamp, source.filename), source))

        results: list[UploadResult] = []
        for key, source in planned:
            self.storage.upload_fileobj(
                bucket=bucket,
                object_key=key,
                fileobj=source.fileobj,
                content_type=source.content_type,
            )
            results.append(
                UploadResult(
                    bucket=bucket,
                    key=key,
                    url=self.storage.object_url(bucket=bucket, object_key=key),
                )
            )

        logger.info(
            "files uploaded bucket=%s count=%s",
            bucket,
            len(results),
            extra={
                "extra": {
                    "bucket": bucket,
                    "keys": [result.key for result in results],
                }
            },
        )
        return results

    def upload_single(
        self,
        bucket: str,
        source: UploadSource | None,
        *,
        prefix: str | None = None,
    ) -> UploadResult:
        if source is None:
            raise InvalidRequestError("No file uploaded.")
        return self.upload(bucket, [source], prefix=prefix)[0]
