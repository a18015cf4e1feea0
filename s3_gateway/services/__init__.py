from .base import BaseService, InvalidRequestError, ServiceError
from .bundle import ServiceBundle, get_service_bundle
from .file_service import FileDownload, FileListing, FileService
from .transfer_service import BatchMoveError, MoveItem, TransferService
from .upload_service import UploadResult, UploadService, UploadSource

__all__ = [
    "BaseService",
    "ServiceError",
    "InvalidRequestError",
    "ServiceBundle",
    "get_service_bundle",
    "FileService",
    "FileListing",
    "FileDownload",
    "UploadService",
    "UploadSource",
    "UploadResult",
    "TransferService",
    "MoveItem",
    "BatchMoveError",
]
