"""Application layer: services orchestrating the transfer workflow."""

from .dependency_container import DependencyContainer, DependencyNotFoundError
from .download_result import DownloadResult
from .retrieval_service import RetrievalService
from .upload_service import UploadItem, UploadLimits, UploadService

__all__ = [
    "DependencyContainer",
    "DependencyNotFoundError",
    "DownloadResult",
    "RetrievalService",
    "UploadItem",
    "UploadLimits",
    "UploadService",
]
