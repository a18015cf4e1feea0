"""Transfer API router.

Batch moves between buckets and single-object archiving. Both are
copy-then-delete sequences without rollback.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from s3_gateway.api.deps import get_services
from s3_gateway.api.schemas.files import ArchiveOut, MessageOut, MoveFilesIn
from s3_gateway.domain.keys import InvalidKeyError
from s3_gateway.services.base import InvalidRequestError
from s3_gateway.services.bundle import ServiceBundle
from s3_gateway.services.transfer_service import MoveItem, TransferService

router = APIRouter()


@router.post(
    "/move-files",
    response_model=MessageOut,
    summary="Move files",
    description=(
        "Copy each file to the target bucket, then delete it from the source, "
        "one file at a time. The first failure stops the batch; files already "
        "moved stay moved."
    ),
)
def move_files(
    payload: MoveFilesIn | None = None,
    services: ServiceBundle = Depends(get_services),
) -> MessageOut:
    payload = payload or MoveFilesIn()
    transfer_service: TransferService = services.transfer()
    items = [
        MoveItem(source_key=f.source_key, target_key=f.target_key)
        for f in payload.files or []
    ]
    try:
        transfer_service.move(payload.source_bucket, payload.target_bucket, items)
    except (InvalidRequestError, InvalidKeyError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return MessageOut(message="Files moved successfully")


@router.post(
    "/archive-file/{bucket}/{key:path}",
    response_model=ArchiveOut,
    summary="Archive file",
    description="Move one object under the archive prefix of the same bucket.",
)
def archive_file(
    bucket: str,
    key: str,
    services: ServiceBundle = Depends(get_services),
) -> ArchiveOut:
    transfer_service: TransferService = services.transfer()
    try:
        locator = transfer_service.archive(bucket, key)
    except (InvalidRequestError, InvalidKeyError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ArchiveOut(message="File archived successfully", archived_key=locator.key)
