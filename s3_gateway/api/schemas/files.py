"""Pydantic schemas for the file gateway endpoints.

Wire names are camelCase. Request fields are optional at the schema level so
that a missing field is reported with the route's own 400 message.
"""

from __future__ import annotations

from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MessageOut(BaseModel):
    message: str


class PresignedUrlOut(BaseModel):
    url: str


class FileEntryOut(_CamelModel):
    """A stored object in a listing."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    key: str
    last_modified: datetime = Field(alias="lastModified")
    size: int


class FolderEntryOut(_CamelModel):
    """A common prefix grouped by the `/` delimiter."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    key: str
    is_folder: bool = Field(default=True, alias="isFolder")


class FilesPage(_CamelModel):
    files: list[Union[FileEntryOut, FolderEntryOut]]
    next_token: str | None = Field(default=None, alias="nextToken")


class CreateFolderIn(_CamelModel):
    folder_name: str | None = Field(default=None, alias="folderName")


class CopyFileIn(_CamelModel):
    source_key: str | None = Field(default=None, alias="sourceKey")
    target_key: str | None = Field(default=None, alias="targetKey")


class MoveFileItem(_CamelModel):
    source_key: str | None = Field(default=None, alias="sourceKey")
    target_key: str | None = Field(default=None, alias="targetKey")


class MoveFilesIn(_CamelModel):
    source_bucket: str | None = Field(default=None, alias="sourceBucket")
    target_bucket: str | None = Field(default=None, alias="targetBucket")
    files: list[MoveFileItem] | None = None


class ArchiveOut(_CamelModel):
    message: str
    archived_key: str = Field(alias="archivedKey")


class UploadManyOut(_CamelModel):
    file_urls: list[str] = Field(alias="fileUrls")


class UploadSingleOut(_CamelModel):
    file_url: str = Field(alias="fileUrl")
