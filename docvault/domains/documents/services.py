import asyncio
import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.exceptions import CatalogError, DocVaultError, NotFoundError, StorageIOError, ValidationError
from docvault.db.repositories.document_repository import DocumentRepository
from docvault.db.repositories.user_repository import UserRepository
from docvault.domains.documents.entities import Document, UploadedFile
from docvault.domains.identity.entities import Principal, User
from docvault.domains.storage.context import StorageContext
from docvault.domains.storage.usage import UsageAccountant

logger = logging.getLogger(__name__)


class DocumentLifecycleService:
    """Создание, замена и удаление документов с согласованием каталога и диска.

    Каталог (запись документа и список ссылок владельца) и файловое хранилище
    не имеют общей транзакции. Каждая операция выполняется как цепочка шагов;
    если поздний шаг падает, уже выполненные шаги откатываются компенсирующими
    действиями в обратном порядке. Ошибки компенсации только логируются и не
    подменяют исходную ошибку.

    Идемпотентны: удаление блоба и удаление ссылки из списка владельца.
    Не идемпотентно: создание записи документа.

    Запись блоба, подсчет потребления, проверка квоты и запись в каталог
    выполняются под мьютексом владельца, поэтому два параллельных запроса
    одного владельца не могут вместе превысить лимит плана.
    """

    def __init__(self, session: AsyncSession, storage: StorageContext):
        self.session = session
        self.storage = storage
        self.blob_store = storage.blob_store
        self.quota_enforcer = storage.quota_enforcer
        self.usage = UsageAccountant(storage.blob_store)
        self.document_repository = DocumentRepository(session)
        self.user_repository = UserRepository(session)

    # Проверки

    def parse_document_id(self, raw_id: str) -> uuid.UUID:
        """Разбор идентификатора документа"""
        try:
            return uuid.UUID(str(raw_id))
        except ValueError:
            raise ValidationError("Document id is not valid.", code="document_id_not_valid")

    def validate_upload(self, upload: Optional[UploadedFile]) -> UploadedFile:
        """Проверка загрузки до любой записи на диск"""
        if upload is None or not upload.filename:
            raise ValidationError("No document selected.", code="file_not_selected")
        extension = self.storage.allowed_extension
        if not upload.has_extension(extension):
            raise ValidationError(
                f"Only {extension} files can be uploaded as documents.",
                code="file_type_not_allowed"
            )
        return upload

    # Чтение

    async def list_documents(self, principal: Principal) -> List[Document]:
        """Документы владельца в порядке списка ссылок"""
        user = await self._load_owner(principal)
        records = await self.document_repository.get_many(user.document_ids)

        documents = []
        for document_id in user.document_ids:
            document = records.get(document_id)
            if document is None:
                logger.warning(f"Dangling reference {document_id} in owner {user.uuid}")
                continue
            documents.append(document)
        return documents

    async def get_document(self, principal: Principal, raw_id: str) -> Document:
        """Документ владельца по идентификатору"""
        document_id = self.parse_document_id(raw_id)
        user = await self._load_owner(principal)
        return await self._resolve_owned(user, document_id)

    async def left_disk_space(self, principal: Principal) -> int:
        """Остаток квоты в байтах (может быть отрицательным)"""
        used = await self.usage.used_bytes(principal.namespace)
        return self.quota_enforcer.remaining_bytes(principal.plan, used)

    # Запись

    async def create_document(self, principal: Principal, upload: Optional[UploadedFile]) -> Document:
        """Создание документа из загрузки"""
        upload = self.validate_upload(upload)
        namespace = principal.namespace
        # Неизвестный план обнаруживается до записи на диск
        self.quota_enforcer.plan_limit_bytes(principal.plan)

        async with self.storage.owner_locks.hold(namespace):
            user = await self.user_repository.get_or_create(principal)
            blob = await self.blob_store.put(namespace, upload.filename, upload.content)

            try:
                used = await self.usage.used_bytes(namespace, exclude=[blob.physical_name])
                self.quota_enforcer.assert_create(principal.plan, used, blob.size)
                document = await self.document_repository.create(
                    Document.create_document(blob.physical_name, blob.path, blob.size)
                )
            except (DocVaultError, asyncio.CancelledError):
                await self._discard_blob(namespace, blob.physical_name, "create was not admitted")
                raise

            user.add_document(document.uuid)
            try:
                await self.user_repository.update(user)
            except (DocVaultError, asyncio.CancelledError):
                await self._discard_record(document.uuid)
                await self._discard_blob(namespace, blob.physical_name, "owner could not be saved")
                raise

        logger.info(f"Created document {document.uuid} ({document.size} bytes) for owner {principal.id}")
        return document

    async def update_document(self, principal: Principal, raw_id: str, upload: Optional[UploadedFile]) -> Document:
        """Замена содержимого документа; uuid и дата загрузки сохраняются"""
        document_id = self.parse_document_id(raw_id)
        namespace = principal.namespace
        self.quota_enforcer.plan_limit_bytes(principal.plan)

        async with self.storage.owner_locks.hold(namespace):
            user = await self._load_owner(principal)
            document = await self._resolve_owned(user, document_id)
            upload = self.validate_upload(upload)
            blob = await self.blob_store.put(namespace, upload.filename, upload.content)

            previous = document.copy()
            try:
                used = await self.usage.used_bytes(namespace, exclude=[blob.physical_name])
                self.quota_enforcer.assert_update(principal.plan, used, previous.size, blob.size)
                document.replace_blob(blob.physical_name, blob.path, blob.size)
                await self.document_repository.update(document)
            except (DocVaultError, asyncio.CancelledError):
                # Старая запись и старый блоб остаются без изменений
                await self._discard_blob(namespace, blob.physical_name, "update was not applied")
                raise

            await self._discard_blob(namespace, previous.filename, "replaced by update")

        logger.info(f"Replaced document {document.uuid} ({previous.size} -> {document.size} bytes)")
        return document

    async def delete_document(self, principal: Principal, raw_id: str) -> Optional[Document]:
        """Удаление документа; None, если запись уже была удалена ранее"""
        document_id = self.parse_document_id(raw_id)
        namespace = principal.namespace

        async with self.storage.owner_locks.hold(namespace):
            user = await self._load_owner(principal)
            if not user.owns(document_id):
                raise NotFoundError()

            document = await self.document_repository.get_by_uuid(document_id)
            if document is not None:
                await self.document_repository.delete(document_id)
            else:
                # Повтор после частичного сбоя: запись удалена, ссылка осталась
                logger.warning(f"Removing dangling reference {document_id} from owner {user.uuid}")

            await self.forget_documents(user, [document_id])

            if document is not None:
                await self._discard_blob(namespace, document.filename, "document deleted")

        return document

    async def forget_documents(self, user: User, document_ids: List[uuid.UUID]) -> List[uuid.UUID]:
        """Удаление ссылок из списка владельца и сохранение владельца"""
        removed = [document_id for document_id in document_ids if user.remove_document(document_id)]
        if removed:
            await self.user_repository.update(user)
        return removed

    async def purge_owner(self, principal: Principal) -> int:
        """Удаление всех документов владельца и его пространства"""
        namespace = principal.namespace

        async with self.storage.owner_locks.hold(namespace):
            user = await self.user_repository.get_by_uuid(principal.id)
            removed = 0
            if user is not None:
                for document_id in list(user.document_ids):
                    if await self.document_repository.delete(document_id):
                        removed += 1
                    user.remove_document(document_id)
                    await self.user_repository.update(user)
            await self.blob_store.remove_namespace(namespace)

        logger.info(f"Purged {removed} documents of owner {principal.id}")
        return removed

    # Вспомогательные

    async def _load_owner(self, principal: Principal) -> User:
        user = await self.user_repository.get_by_uuid(principal.id)
        return user if user is not None else User.from_principal(principal)

    async def _resolve_owned(self, user: User, document_id: uuid.UUID) -> Document:
        """Чужой и несуществующий документ неразличимы для вызывающего"""
        document = await self.document_repository.get_by_uuid(document_id)
        if document is None or not user.owns(document_id):
            raise NotFoundError()
        return document

    async def _discard_blob(self, namespace: str, physical_name: str, reason: str) -> None:
        """Лучшее усилие: удаление блоба, сбой только логируется"""
        try:
            await self.blob_store.delete(namespace, physical_name)
        except StorageIOError as e:
            logger.error(f"Orphan blob {physical_name} in namespace {namespace} ({reason}): {e.message}")

    async def _discard_record(self, document_id: uuid.UUID) -> None:
        try:
            await self.document_repository.delete(document_id)
        except CatalogError as e:
            logger.error(f"Orphan document record {document_id} could not be removed: {e.message}")
