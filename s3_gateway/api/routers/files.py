"""File API router.

Endpoints that map one-to-one onto object operations inside a bucket:
presigned URLs, listings, search, folder markers, downloads, deletes and
in-bucket copies. Storage failures propagate to the application-level
handler, which answers 500 with the provider's raw error.
"""

from __future__ import annotations

from datetime import datetime
from typing import AsyncIterator, List
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from starlette.concurrency import iterate_in_threadpool

from s3_gateway.api.deps import get_services
from s3_gateway.api.schemas.files import (
    CopyFileIn,
    CreateFolderIn,
    FileEntryOut,
    FilesPage,
    FolderEntryOut,
    MessageOut,
    PresignedUrlOut,
)
from s3_gateway.domain.keys import InvalidKeyError
from s3_gateway.infra.storage.client import ObjectEntry, ObjectStream
from s3_gateway.services.base import InvalidRequestError
from s3_gateway.services.bundle import ServiceBundle
from s3_gateway.services.file_service import FileService

router = APIRouter()


def _entry_out(entry: ObjectEntry) -> FileEntryOut:
    return FileEntryOut(key=entry.key, last_modified=entry.last_modified, size=entry.size)


def _content_disposition(filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


async def _iter_download(stream: ObjectStream) -> AsyncIterator[bytes]:
    # Runs until the body is exhausted, a read fails, or the client goes away.
    # In every case the remote body is released so nothing keeps buffering.
    try:
        async for chunk in iterate_in_threadpool(stream.chunks):
            yield chunk
    finally:
        stream.close()


@router.get(
    "/generate-presigned-url/{bucket}/{key:path}",
    response_model=PresignedUrlOut,
    summary="Generate presigned URL",
    description="Create a time-limited GET URL for one object.",
)
def generate_presigned_url(
    bucket: str,
    key: str,
    services: ServiceBundle = Depends(get_services),
) -> PresignedUrlOut:
    file_service: FileService = services.file()
    try:
        url = file_service.presign(bucket, key)
    except (InvalidRequestError, InvalidKeyError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return PresignedUrlOut(url=url)


@router.get(
    "/list-files/{bucket}",
    response_model=FilesPage,
    summary="List files",
    description="List one page of files and folders under a prefix.",
)
def list_files(
    bucket: str,
    prefix: str | None = Query(default=None),
    token: str | None = Query(default=None),
    last_fetch_time: datetime | None = Query(default=None, alias="lastFetchTime"),
    services: ServiceBundle = Depends(get_services),
) -> FilesPage:
    file_service: FileService = services.file()
    try:
        listing = file_service.list_files(
            bucket, prefix=prefix, token=token, last_fetch_time=last_fetch_time
        )
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    files: list[FileEntryOut | FolderEntryOut] = [
        _entry_out(entry) for entry in listing.entries
    ]
    files.extend(FolderEntryOut(key=folder) for folder in listing.folders)
    return FilesPage(files=files, next_token=listing.next_token)


@router.get(
    "/search-files/{bucket}",
    response_model=List[FileEntryOut],
    summary="Search files",
    description="Find every object under a prefix whose key contains fileName.",
)
def search_files(
    bucket: str,
    prefix: str | None = Query(default=None),
    file_name: str | None = Query(default=None, alias="fileName"),
    services: ServiceBundle = Depends(get_services),
) -> List[FileEntryOut]:
    file_service: FileService = services.file()
    try:
        entries = file_service.search_files(bucket, prefix=prefix, file_name=file_name)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [_entry_out(entry) for entry in entries]


@router.post(
    "/create-folder/{bucket}",
    response_model=MessageOut,
    summary="Create folder",
    description="Create a zero-byte folder marker object.",
)
def create_folder(
    bucket: str,
    payload: CreateFolderIn | None = None,
    services: ServiceBundle = Depends(get_services),
) -> MessageOut:
    payload = payload or CreateFolderIn()
    file_service: FileService = services.file()
    try:
        file_service.create_folder(bucket, payload.folder_name)
    except (InvalidRequestError, InvalidKeyError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return MessageOut(message="Folder created successfully")


@router.get(
    "/download/{bucket}/{key:path}",
    response_class=StreamingResponse,
    summary="Download file",
    description="Stream an object back as an attachment.",
)
def download_file(
    bucket: str,
    key: str,
    services: ServiceBundle = Depends(get_services),
) -> StreamingResponse:
    file_service: FileService = services.file()
    try:
        download = file_service.download(bucket, key)
    except (InvalidRequestError, InvalidKeyError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    headers = {"Content-Disposition": _content_disposition(download.filename)}
    if download.stream.content_length is not None:
        headers["Content-Length"] = str(download.stream.content_length)
    return StreamingResponse(
        _iter_download(download.stream),
        media_type=download.stream.content_type or "application/octet-stream",
        headers=headers,
    )


@router.delete(
    "/delete-file/{bucket}/{key:path}",
    response_model=MessageOut,
    summary="Delete file",
    description="Delete one object. Deleting a missing key also succeeds.",
)
def delete_file(
    bucket: str,
    key: str,
    services: ServiceBundle = Depends(get_services),
) -> MessageOut:
    file_service: FileService = services.file()
    try:
        file_service.delete(bucket, key)
    except (InvalidRequestError, InvalidKeyError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return MessageOut(message="File deleted successfully")


@router.post(
    "/copy-file/{bucket}",
    response_model=MessageOut,
    summary="Copy file",
    description="Server-side copy of an object within one bucket.",
)
def copy_file(
    bucket: str,
    payload: CopyFileIn | None = None,
    services: ServiceBundle = Depends(get_services),
) -> MessageOut:
    payload = payload or CopyFileIn()
    file_service: FileService = services.file()
    try:
        file_service.copy(bucket, payload.source_key, payload.target_key)
    except (InvalidRequestError, InvalidKeyError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return MessageOut(message="File copied successfully")
