from docvault.domains.documents.entities import Document, UploadedFile
from docvault.domains.documents.schemas import (
    DocumentResponse, LeftDiskSpaceResponse, PurgeResponse, StorageReportResponse
)

__all__ = [
    "Document", "UploadedFile",
    "DocumentResponse", "LeftDiskSpaceResponse", "PurgeResponse", "StorageReportResponse"
]
