"""Transfer service for moving and archiving objects.

A move is a copy followed by a delete, one item at a time. There is no
rollback: when an item fails, the items before it stay moved and the items
after it are never touched. Retrying a failed batch re-copies items whose
source still exists, so the contract is at-least-once and non-atomic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from s3_gateway.domain import keys
from s3_gateway.infra.storage.client import ObjectLocator, StorageError

from .base import BaseService, InvalidRequestError

logger = logging.getLogger("s3_gateway.transfers")


@dataclass(frozen=True, slots=True)
class MoveItem:
    source_key: str | None
    target_key: str | None


class BatchMoveError(StorageError):
    """A move batch stopped at a failing item.

    ``moved`` lists the items that were fully copied and deleted before the
    failure, ``failed`` is the item that broke the batch and ``step`` is
    ``"copy"`` or ``"delete"``.
    """

    def __init__(
        self,
        cause: StorageError,
        *,
        moved: Sequence[MoveItem],
        failed: MoveItem,
        step: str,
    ) -> None:
        super().__init__(str(cause), cause=cause.cause)
        self.moved = list(moved)
        self.failed = failed
        self.step = step


class TransferService(BaseService):
    """Sequential copy-then-delete orchestration."""

    def move(
        self,
        source_bucket: str | None,
        target_bucket: str | None,
        items: Sequence[MoveItem] | None,
    ) -> list[MoveItem]:
        if not source_bucket or not target_bucket or not items:
            raise InvalidRequestError(
                "sourceBucket, files, and targetBucket are required"
            )
        for item in items:
            if not item.source_key or not item.target_key:
                raise InvalidRequestError(
                    "sourceKey and targetKey are required for every file"
                )
            keys.validate_key(item.source_key, what="sourceKey")
            keys.validate_key(item.target_key, what="targetKey")
            if source_bucket == target_bucket and item.source_key == item.target_key:
                raise InvalidRequestError(
                    "sourceKey and targetKey must differ when sourceBucket equals targetBucket"
                )

        moved: list[MoveItem] = []
        for item in items:
            logger.info(
                "moving object source=%s/%s target=%s/%s",
                source_bucket,
                item.source_key,
                target_bucket,
                item.target_key,
                extra={
                    "extra": {
                        "source_bucket": source_bucket,
                        "source_key": item.source_key,
                        "target_bucket": target_bucket,
                        "target_key": item.target_key,
                    }
                },
            )
            self._move_one(source_bucket, target_bucket, item, moved)
            moved.append(item)
        return moved

    def _move_one(
        self,
        source_bucket: str,
        target_bucket: str,
        item: MoveItem,
        moved: Sequence[MoveItem],
    ) -> None:
        step = "copy"
        try:
            self.storage.copy_object(
                source_bucket=source_bucket,
                source_key=item.source_key,
                target_bucket=target_bucket,
                target_key=item.target_key,
            )
            step = "delete"
            self.storage.delete_object(bucket=source_bucket, object_key=item.source_key)
        except StorageError as exc:
            logger.error(
                "move batch aborted step=%s source=%s/%s moved=%s "
                "[event=move_batch_aborted]",
                step,
                source_bucket,
                item.source_key,
                len(moved),
                extra={
                    "extra": {
                        "step": step,
                        "source_bucket": source_bucket,
                        "source_key": item.source_key,
                        "target_bucket": target_bucket,
                        "target_key": item.target_key,
                        "moved": [m.source_key for m in moved],
                    }
                },
            )
            raise BatchMoveError(exc, moved=moved, failed=item, step=step) from exc

    def archive(self, bucket: str, key: str) -> ObjectLocator:
        """Move one object to the archive prefix of the same bucket."""
        self._require(bucket, "bucketName is required")
        target_key = keys.archive_key(self.settings.ARCHIVE_PREFIX, key)
        self.move(bucket, bucket, [MoveItem(source_key=key, target_key=target_key)])
        return ObjectLocator(bucket=bucket, key=target_key)
