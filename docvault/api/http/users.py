from typing import Optional

from fastapi import APIRouter, Depends, Query

from docvault.api.deps import get_lifecycle_service, get_reconciler
from docvault.core.auth import get_current_principal
from docvault.core.units import bytes_to_mb
from docvault.domains.documents.schemas import LeftDiskSpaceResponse, PurgeResponse, StorageReportResponse
from docvault.domains.documents.services import DocumentLifecycleService
from docvault.domains.identity.entities import Principal
from docvault.domains.storage.reconciliation import StorageReconciler

router = APIRouter(prefix="/users", tags=["users"])


def _rounding_enabled(raw: Optional[str]) -> bool:
    """Округление выключается только значением false"""
    if raw is None:
        return True
    return raw.strip().lower() != "false"


@router.get("/me/left-disk-space", response_model=LeftDiskSpaceResponse)
async def get_left_disk_space(
    round: Optional[str] = Query(None),
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service)
):
    """Остаток дискового пространства по плану пользователя"""
    remaining = await service.left_disk_space(principal)
    return LeftDiskSpaceResponse(
        used_bytes_remaining=remaining,
        used_mb_remaining=bytes_to_mb(remaining, round_result=_rounding_enabled(round))
    )


@router.delete("/me/documents", response_model=PurgeResponse)
async def purge_my_documents(
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service)
):
    """Удаление всех документов пользователя"""
    removed = await service.purge_owner(principal)
    return PurgeResponse(removed_documents=removed)


@router.get("/me/storage-report", response_model=StorageReportResponse)
async def get_storage_report(
    repair: bool = Query(False),
    principal: Principal = Depends(get_current_principal),
    reconciler: StorageReconciler = Depends(get_reconciler)
):
    """Сверка файлов пользователя с каталогом"""
    report = await reconciler.reconcile_owner(principal.id, repair=repair)
    return StorageReportResponse.from_report(report.to_dict())
