import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docvault.domains.documents.services import DocumentLifecycleService
from docvault.domains.storage.blob_store import PARTIAL_SUFFIX
from docvault.domains.storage.context import StorageContext

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    """Расхождения между пространством владельца и каталогом"""

    namespace: str
    owner_id: Optional[uuid.UUID] = None
    orphan_blobs: List[str] = field(default_factory=list)
    partial_uploads: List[str] = field(default_factory=list)
    dangling_references: List[uuid.UUID] = field(default_factory=list)
    missing_blobs: List[uuid.UUID] = field(default_factory=list)
    size_mismatches: List[uuid.UUID] = field(default_factory=list)
    removed_blobs: List[str] = field(default_factory=list)
    removed_references: List[uuid.UUID] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not (
            self.orphan_blobs
            or self.dangling_references
            or self.missing_blobs
            or self.size_mismatches
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespace": self.namespace,
            "ownerId": str(self.owner_id) if self.owner_id else None,
            "consistent": self.is_consistent,
            "orphanBlobs": list(self.orphan_blobs),
            "partialUploads": list(self.partial_uploads),
            "danglingReferences": [str(document_id) for document_id in self.dangling_references],
            "missingBlobs": [str(document_id) for document_id in self.missing_blobs],
            "sizeMismatches": [str(document_id) for document_id in self.size_mismatches],
            "removedBlobs": list(self.removed_blobs),
            "removedReferences": [str(document_id) for document_id in self.removed_references],
        }


class StorageReconciler:
    """Внеплановая сверка файлов на диске с записями каталога.

    Автоматического самовосстановления нет: сверка запускается явно
    и с repair=True удаляет блобы-сироты и висячие ссылки владельца.
    """

    def __init__(self, session: AsyncSession, storage: StorageContext):
        self.storage = storage
        self.blob_store = storage.blob_store
        self.lifecycle = DocumentLifecycleService(session, storage)

    async def reconcile_owner(self, owner_id: uuid.UUID, repair: bool = False) -> ReconciliationReport:
        """Сверка одного владельца"""
        namespace = str(owner_id)
        async with self.storage.owner_locks.hold(namespace):
            # Запись владельца читается только под мьютексом
            user = await self.lifecycle.user_repository.get_by_uuid(owner_id)
            document_ids = list(user.document_ids) if user is not None else []

            report = ReconciliationReport(namespace=namespace, owner_id=user.uuid if user is not None else None)
            blobs = await self.blob_store.list_blobs(namespace)
            records = await self.lifecycle.document_repository.get_many(document_ids)

            referenced = set()
            for document_id in document_ids:
                document = records.get(document_id)
                if document is None:
                    report.dangling_references.append(document_id)
                    continue
                referenced.add(document.filename)
                if document.filename not in blobs:
                    report.missing_blobs.append(document_id)
                elif blobs[document.filename] != document.size:
                    report.size_mismatches.append(document_id)

            self._collect_orphans(report, blobs, referenced)

            if repair:
                if user is not None:
                    report.removed_references = await self.lifecycle.forget_documents(
                        user, list(report.dangling_references)
                    )
                await self._remove_orphans(report)

        self._log(report)
        return report

    async def reconcile_all(self, repair: bool = False) -> List[ReconciliationReport]:
        """Сверка всех владельцев и всех пространств на диске"""
        owner_ids = [user.uuid for user in await self.lifecycle.user_repository.get_all()]
        reports = [await self.reconcile_owner(owner_id, repair=repair) for owner_id in owner_ids]

        known = {str(owner_id) for owner_id in owner_ids}
        for namespace in await self.blob_store.list_namespaces():
            if namespace in known:
                continue
            try:
                owner_id = uuid.UUID(namespace)
            except ValueError:
                owner_id = None
            if owner_id is not None and str(owner_id) == namespace:
                # Владелец мог появиться после чтения списка; проверяется под мьютексом
                reports.append(await self.reconcile_owner(owner_id, repair=repair))
                continue
            # Пространство не принадлежит ни одному владельцу: все файлы в нем сироты
            async with self.storage.owner_locks.hold(namespace):
                report = ReconciliationReport(namespace=namespace)
                blobs = await self.blob_store.list_blobs(namespace)
                self._collect_orphans(report, blobs, set())
                if repair:
                    await self._remove_orphans(report)
            self._log(report)
            reports.append(report)
        return reports

    def _collect_orphans(self, report: ReconciliationReport, blobs: Dict[str, int], referenced: set) -> None:
        for name in sorted(blobs):
            if name in referenced:
                continue
            if name.endswith(PARTIAL_SUFFIX):
                report.partial_uploads.append(name)
            else:
                report.orphan_blobs.append(name)

    async def _remove_orphans(self, report: ReconciliationReport) -> None:
        for name in report.orphan_blobs:
            if await self.blob_store.delete(report.namespace, name):
                report.removed_blobs.append(name)

    def _log(self, report: ReconciliationReport) -> None:
        if report.is_consistent:
            logger.debug(f"Namespace {report.namespace} is consistent")
        else:
            logger.warning(f"Namespace {report.namespace} is inconsistent: {report.to_dict()}")
