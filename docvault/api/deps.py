from typing import List, Optional

from fastapi import Depends, File, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.db import get_db
from docvault.core.exceptions import ValidationError
from docvault.domains.documents.entities import UploadedFile
from docvault.domains.documents.services import DocumentLifecycleService
from docvault.domains.storage.context import StorageContext
from docvault.domains.storage.reconciliation import StorageReconciler


def get_storage(request: Request) -> StorageContext:
    """Компоненты хранилища, собранные при старте приложения"""
    return request.app.state.storage


async def get_lifecycle_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageContext = Depends(get_storage)
) -> DocumentLifecycleService:
    return DocumentLifecycleService(db, storage)


async def get_reconciler(
    db: AsyncSession = Depends(get_db),
    storage: StorageContext = Depends(get_storage)
) -> StorageReconciler:
    return StorageReconciler(db, storage)


async def read_upload(document: Optional[List[UploadFile]] = File(None)) -> Optional[UploadedFile]:
    """Ровно один файл в поле формы document"""
    if not document:
        return None
    if len(document) > 1:
        raise ValidationError("Only one document can be uploaded per request.", code="too_many_files")

    upload = document[0]
    try:
        content = await upload.read()
    finally:
        await upload.close()
    return UploadedFile(filename=upload.filename, content=content)
