from __future__ import annotations

from dataclasses import dataclass, field

from s3_gateway.common.config import Settings
from s3_gateway.infra.storage.client import StorageClient

from .file_service import FileService
from .transfer_service import TransferService
from .upload_service import UploadService


@dataclass
class ServiceBundle:
    """Lazily constructs application services sharing the same storage client."""

    storage: StorageClient
    settings: Settings
    _file: FileService | None = field(default=None, init=False, repr=False)
    _upload: UploadService | None = field(default=None, init=False, repr=False)
    _transfer: TransferService | None = field(default=None, init=False, repr=False)

    def file(self) -> FileService:
        if self._file is None:
            self._file = FileService(self.storage, settings=self.settings)
        return self._file

    def upload(self) -> UploadService:
        if self._upload is None:
            self._upload = UploadService(self.storage, settings=self.settings)
        return self._upload

    def transfer(self) -> TransferService:
        if self._transfer is None:
            self._transfer = TransferService(self.storage, settings=self.settings)
        return self._transfer


def get_service_bundle(storage: StorageClient, settings: Settings) -> ServiceBundle:
    return ServiceBundle(storage=storage, settings=settings)
