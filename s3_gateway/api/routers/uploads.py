"""Upload API router.

Multipart form uploads, streamed part by part into the target bucket.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from s3_gateway.api.deps import get_services
from s3_gateway.api.schemas.files import UploadManyOut, UploadSingleOut
from s3_gateway.domain.keys import InvalidKeyError
from s3_gateway.services.base import InvalidRequestError
from s3_gateway.services.bundle import ServiceBundle
from s3_gateway.services.upload_service import UploadService, UploadSource

router = APIRouter()


def _as_source(upload: UploadFile) -> UploadSource:
    return UploadSource(
        filename=upload.filename,
        fileobj=upload.file,
        content_type=upload.content_type,
    )


@router.post(
    "/upload/{bucket}",
    response_model=UploadManyOut,
    summary="Upload files",
    description=(
        "Upload every part of the `files` form field. Each part is stored "
        "under `{prefix}{timestampMillis}_{filename}`."
    ),
)
def upload_files(
    bucket: str,
    prefix: str | None = Query(default=None),
    files: List[UploadFile] | None = File(default=None),
    services: ServiceBundle = Depends(get_services),
) -> UploadManyOut:
    upload_service: UploadService = services.upload()
    try:
        results = upload_service.upload(
            bucket, [_as_source(f) for f in files or []], prefix=prefix
        )
    except (InvalidRequestError, InvalidKeyError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return UploadManyOut(file_urls=[result.url for result in results])


@router.post(
    "/upload-single/{bucket}",
    response_model=UploadSingleOut,
    summary="Upload one file",
    description="Upload the `file` form field.",
)
def upload_single_file(
    bucket: str,
    prefix: str | None = Query(default=None),
    file: UploadFile | None = File(default=None),
    services: ServiceBundle = Depends(get_services),
) -> UploadSingleOut:
    upload_service: UploadService = services.upload()
    try:
        result = upload_service.upload_single(
            bucket, _as_source(file) if file is not None else None, prefix=prefix
        )
    except (InvalidRequestError, InvalidKeyError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return UploadSingleOut(file_url=result.url)
