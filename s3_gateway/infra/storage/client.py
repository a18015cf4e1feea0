"""Storage client protocol and data types.

This module defines the interface the gateway needs from an object store:
listing, presigned downloads, streaming reads and writes, copies and deletes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO, Callable, Iterator, Protocol, Sequence


class StorageError(RuntimeError):
    """Raised when object storage operations fail.

    ``cause`` keeps the provider exception so callers can surface the raw
    provider payload instead of a normalized message.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause

    def to_payload(self) -> dict[str, Any]:
        """Serialize the underlying provider error as-is."""
        cause = self.cause
        response = getattr(cause, "response", None)
        if isinstance(response, dict):
            return response
        if cause is not None:
            return {"name": type(cause).__name__, "message": str(cause)}
        return {"name": type(self).__name__, "message": str(self)}


@dataclass(frozen=True, slots=True)
class ObjectLocator:
    """A single object within a bucket."""

    bucket: str
    key: str


@dataclass(frozen=True, slots=True)
class ObjectEntry:
    """One object returned by a listing."""

    key: str
    last_modified: datetime
    size: int


@dataclass(frozen=True, slots=True)
class ListingPage:
    """One page of a delimited listing."""

    entries: Sequence[ObjectEntry] = field(default_factory=tuple)
    folders: Sequence[str] = field(default_factory=tuple)
    next_token: str | None = None


@dataclass(slots=True)
class ObjectStream:
    """An opened object body, consumed chunk by chunk."""

    chunks: Iterator[bytes]
    content_type: str | None = None
    content_length: int | None = None
    on_close: Callable[[], None] | None = None

    def close(self) -> None:
        """Stop reading and release the remote body. Safe to call twice."""
        close = getattr(self.chunks, "close", None)
        if close is not None:
            close()
        if self.on_close is not None:
            release, self.on_close = self.on_close, None
            release()


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Implementations must provide all methods defined here.
    Currently supports S3-compatible storage services.
    """

    def list_buckets(self) -> list[str]:
        """Return every bucket name visible to the configured identity.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def head_bucket(self, *, bucket: str) -> None:
        """Check that a bucket exists and is reachable.

        Raises:
            StorageError: If the bucket is missing or unreachable.
        """
        ...

    def list_objects(
        self,
        *,
        bucket: str,
        prefix: str = "",
        delimiter: str | None = "/",
        max_keys: int = 1000,
        continuation_token: str | None = None,
    ) -> ListingPage:
        """Fetch one page of a listing.

        Args:
            bucket: Bucket name.
            prefix: Only keys starting with this prefix are returned.
            delimiter: Keys sharing a prefix up to the delimiter are grouped
                into folders. ``None`` disables grouping.
            max_keys: Upper bound on entries plus folders in the page.
            continuation_token: Token returned by the previous page.

        Returns:
            ListingPage with entries, folders and the next token (or None).

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def iter_objects(self, *, bucket: str, prefix: str = "") -> Iterator[ObjectEntry]:
        """Yield every object under a prefix, following continuation tokens.

        Raises:
            StorageError: If any page request fails.
        """
        ...

    def presign_download(
        self,
        *,
        bucket: str,
        object_key: str,
        expires_in: int,
        filename: str | None = None,
    ) -> str:
        """Generate a presigned URL for downloading an object.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            expires_in: URL expiration time in seconds.
            filename: Optional filename for Content-Disposition header.

        Returns:
            Presigned URL for GET request.

        Raises:
            StorageError: If URL generation fails.
        """
        ...

    def object_url(self, *, bucket: str, object_key: str) -> str:
        """Return the resolvable location of an object (no signature)."""
        ...

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes = b"",
        content_type: str | None = None,
    ) -> None:
        """Store a small in-memory body under a key.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def upload_fileobj(
        self,
        *,
        bucket: str,
        object_key: str,
        fileobj: BinaryIO,
        content_type: str | None = None,
    ) -> None:
        """Stream a file-like object into storage.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def open_object(
        self, *, bucket: str, object_key: str, chunk_size: int = 64 * 1024
    ) -> ObjectStream:
        """Open an object for streaming.

        Errors that happen before the body is available (missing key,
        permissions) raise immediately. Errors while reading are raised from
        the chunk iterator.

        Raises:
            StorageError: If the object cannot be fetched.
        """
        ...

    def copy_object(
        self,
        *,
        source_bucket: str,
        source_key: str,
        target_bucket: str,
        target_key: str,
    ) -> None:
        """Server-side copy of one object.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) to delete.

        Raises:
            StorageError: If the operation fails.
        """
        ...
