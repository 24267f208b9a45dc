from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
import uuid
from datetime import datetime

from docvault.domains.documents.entities import Document


class DocumentResponse(BaseModel):
    """Документ в ответе API"""
    id: uuid.UUID
    filename: str
    path: str
    size: int
    upload_date: datetime = Field(..., alias="uploadDate")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_entity(cls, document: Document) -> "DocumentResponse":
        return cls(
            id=document.uuid,
            filename=document.filename,
            path=document.path,
            size=document.size,
            upload_date=document.upload_date
        )


class LeftDiskSpaceResponse(BaseModel):
    """Остаток квоты владельца"""
    used_bytes_remaining: int = Field(..., alias="usedBytesRemaining")
    used_mb_remaining: float = Field(..., alias="usedMbRemaining")

    model_config = ConfigDict(populate_by_name=True)


class PurgeResponse(BaseModel):
    """Результат очистки хранилища владельца"""
    removed_documents: int = Field(..., alias="removedDocuments")

    model_config = ConfigDict(populate_by_name=True)


class StorageReportResponse(BaseModel):
    """Отчет сверки пространства владельца с каталогом"""
    namespace: str
    owner_id: Optional[str] = Field(None, alias="ownerId")
    consistent: bool
    orphan_blobs: List[str] = Field(default_factory=list, alias="orphanBlobs")
    partial_uploads: List[str] = Field(default_factory=list, alias="partialUploads")
    dangling_references: List[str] = Field(default_factory=list, alias="danglingReferences")
    missing_blobs: List[str] = Field(default_factory=list, alias="missingBlobs")
    size_mismatches: List[str] = Field(default_factory=list, alias="sizeMismatches")
    removed_blobs: List[str] = Field(default_factory=list, alias="removedBlobs")
    removed_references: List[str] = Field(default_factory=list, alias="removedReferences")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_report(cls, report: Dict[str, Any]) -> "StorageReportResponse":
        return cls.model_validate(report)
