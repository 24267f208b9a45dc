from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.api.deps import get_storage
from docvault.core.db import get_db
from docvault.domains.storage.context import StorageContext

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(
    db: AsyncSession = Depends(get_db),
    storage: StorageContext = Depends(get_storage)
):
    """Проверка доступности каталога и хранилища"""
    await db.execute(text("SELECT 1"))
    return {
        "status": "ok",
        "storageRoot": str(storage.blob_store.root),
        "plans": dict(storage.quota_enforcer.plans)
    }
