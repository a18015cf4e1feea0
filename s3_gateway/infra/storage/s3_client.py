"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, BinaryIO, Iterator
from urllib.parse import quote

from s3_gateway.infra.observability.metrics import STORAGE_OPERATIONS
from s3_gateway.infra.storage.client import (
    ListingPage,
    ObjectEntry,
    ObjectStream,
    StorageError,
)

if TYPE_CHECKING:
    from s3_gateway.common.config import Settings

logger = logging.getLogger("s3_gateway.storage")


def _to_entry(item: dict[str, Any]) -> ObjectEntry:
    return ObjectEntry(
        key=str(item["Key"]),
        last_modified=item["LastModified"],
        size=int(item.get("Size") or 0),
    )


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations. When no explicit keys are
    configured, boto3's default credential chain is used.
    """

    def __init__(self, *, settings: "Settings") -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Application settings containing S3 configuration.

        Raises:
            StorageError: If boto3 is not installed.
        """
        self._settings = settings
        self._client = self._build_client(settings)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3",
                cause=exc,
            ) from exc

        addressing_style = (settings.S3_ADDRESSING_STYLE or "auto").strip().lower()
        config_kwargs: dict[str, Any] = {
            "signature_version": "s3v4",
            "s3": {"addressing_style": addressing_style},
        }
        if settings.S3_CONNECT_TIMEOUT is not None:
            config_kwargs["connect_timeout"] = settings.S3_CONNECT_TIMEOUT
        if settings.S3_READ_TIMEOUT is not None:
            config_kwargs["read_timeout"] = settings.S3_READ_TIMEOUT

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=Config(**config_kwargs),
        )

    def _call(self, operation: str, failure: str, **params: Any) -> Any:
        """Invoke one boto3 operation, translating failures to StorageError."""
        try:
            response = getattr(self._client, operation)(**params)
        except Exception as exc:
            STORAGE_OPERATIONS.labels(operation, "error").inc()
            raise StorageError(f"{failure}: {exc}", cause=exc) from exc
        STORAGE_OPERATIONS.labels(operation, "success").inc()
        return response

    def list_buckets(self) -> list[str]:
        """Return every bucket name visible to the configured identity."""
        response = self._call("list_buckets", "Failed to list buckets")
        return [str(bucket["Name"]) for bucket in response.get("Buckets") or []]

    def head_bucket(self, *, bucket: str) -> None:
        """Check that a bucket exists and is reachable."""
        self._call("head_bucket", "Failed to reach bucket", Bucket=bucket)

    def list_objects(
        self,
        *,
        bucket: str,
        prefix: str = "",
        delimiter: str | None = "/",
        max_keys: int = 1000,
        continuation_token: str | None = None,
    ) -> ListingPage:
        """Fetch one page of a delimited listing."""
        params: dict[str, Any] = {"Bucket": bucket, "MaxKeys": int(max_keys)}
        if prefix:
            params["Prefix"] = prefix
        if delimiter:
            params["Delimiter"] = delimiter
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        response = self._call("list_objects_v2", "Failed to list objects", **params)

        next_token = None
        if response.get("IsTruncated"):
            next_token = response.get("NextContinuationToken") or None
        return ListingPage(
            entries=[_to_entry(item) for item in response.get("Contents") or []],
            folders=[
                str(common["Prefix"])
                for common in response.get("CommonPrefixes") or []
            ],
            next_token=next_token,
        )

    def iter_objects(self, *, bucket: str, prefix: str = "") -> Iterator[ObjectEntry]:
        """Yield every object under a prefix, following continuation tokens."""
        params: dict[str, Any] = {"Bucket": bucket}
        if prefix:
            params["Prefix"] = prefix
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**params):
                for item in page.get("Contents") or []:
                    yield _to_entry(item)
        except Exception as exc:
            STORAGE_OPERATIONS.labels("list_objects_v2", "error").inc()
            raise StorageError(f"Failed to list objects: {exc}", cause=exc) from exc
        STORAGE_OPERATIONS.labels("list_objects_v2", "success").inc()

    def presign_download(
        self,
        *,
        bucket: str,
        object_key: str,
        expires_in: int,
        filename: str | None = None,
    ) -> str:
        """Generate a presigned URL for downloading an object."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if filename:
            # Escape quotes in filename for Content-Disposition header
            safe_filename = filename.replace('"', '\\"')
            params["ResponseContentDisposition"] = (
                f'attachment; filename="{safe_filename}"'
            )

        url = self._call(
            "generate_presigned_url",
            "Failed to generate download URL",
            ClientMethod="get_object",
            Params=params,
            ExpiresIn=int(expires_in),
        )
        if not url:
            raise StorageError("Generated presigned URL is empty")
        return str(url)

    def object_url(self, *, bucket: str, object_key: str) -> str:
        """Return the unsigned location of an object."""
        quoted_key = quote(object_key, safe="/~")
        endpoint = self._settings.S3_ENDPOINT_URL
        if endpoint:
            return f"{endpoint.rstrip('/')}/{bucket}/{quoted_key}"
        region = self._settings.S3_REGION
        return f"https://{bucket}.s3.{region}.amazonaws.com/{quoted_key}"

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes = b"",
        content_type: str | None = None,
    ) -> None:
        """Store a small in-memory body under a key."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        self._call("put_object", "Failed to put object", **params)

    def upload_fileobj(
        self,
        *,
        bucket: str,
        object_key: str,
        fileobj: BinaryIO,
        content_type: str | None = None,
    ) -> None:
        """Stream a file-like object into storage with boto3's managed transfer."""
        params: dict[str, Any] = {
            "Fileobj": fileobj,
            "Bucket": bucket,
            "Key": object_key,
        }
        if content_type:
            params["ExtraArgs"] = {"ContentType": content_type}
        self._call("upload_fileobj", "Failed to upload object", **params)

    def open_object(
        self, *, bucket: str, object_key: str, chunk_size: int = 64 * 1024
    ) -> ObjectStream:
        """Fetch an object and expose its body as a chunk iterator."""
        response = self._call(
            "get_object", "Failed to get object", Bucket=bucket, Key=object_key
        )
        body = response["Body"]
        length = response.get("ContentLength")
        return ObjectStream(
            chunks=self._iter_body(body, bucket, object_key, chunk_size),
            content_type=response.get("ContentType"),
            content_length=int(length) if length is not None else None,
            on_close=body.close,
        )

    @staticmethod
    def _iter_body(
        body: Any, bucket: str, object_key: str, chunk_size: int
    ) -> Iterator[bytes]:
        try:
            for chunk in body.iter_chunks(chunk_size=chunk_size):
                if chunk:
                    yield chunk
        except Exception as exc:
            STORAGE_OPERATIONS.labels("get_object_body", "error").inc()
            logger.error(
                "object body read failed bucket=%s key=%s error=%s "
                "[event=download_stream_failed]",
                bucket,
                object_key,
                exc,
                extra={
                    "extra": {
                        "bucket": bucket,
                        "key": object_key,
                        "exception": repr(exc),
                    }
                },
            )
            raise StorageError(f"Failed to read object body: {exc}", cause=exc) from exc
        finally:
            body.close()

    def copy_object(
        self,
        *,
        source_bucket: str,
        source_key: str,
        target_bucket: str,
        target_key: str,
    ) -> None:
        """Server-side copy of one object."""
        self._call(
            "copy_object",
            "Failed to copy object",
            Bucket=target_bucket,
            Key=target_key,
            CopySource={"Bucket": source_bucket, "Key": source_key},
        )

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        self._call(
            "delete_object", "Failed to delete object", Bucket=bucket, Key=object_key
        )
