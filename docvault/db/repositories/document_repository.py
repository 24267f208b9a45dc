import logging
import uuid
from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.core.exceptions import CatalogError
from docvault.db.models.document import Document as DocumentModel
from docvault.domains.documents.entities import Document

logger = logging.getLogger(__name__)


class DocumentRepository:
    """Репозиторий записей каталога документов"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, document: Document) -> Document:
        """Создание записи документа"""
        db_document = DocumentModel(
            uuid=document.uuid,
            filename=document.filename,
            path=document.path,
            size=document.size,
            created_at=document.created_at,
            updated_at=document.updated_at
        )

        self.session.add(db_document)
        try:
            await self.session.commit()
            await self.session.refresh(db_document)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create document record {document.uuid}: {e}")
            raise CatalogError("Document record could not be saved")
        return self._to_domain(db_document)

    async def get_by_uuid(self, document_uuid: uuid.UUID) -> Optional[Document]:
        """Получение документа по UUID"""
        try:
            result = await self.session.execute(
                select(DocumentModel)
                .where(DocumentModel.uuid == document_uuid)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load document record {document_uuid}: {e}")
            raise CatalogError("Document record could not be loaded")
        db_document = result.scalar_one_or_none()
        return self._to_domain(db_document) if db_document else None

    async def get_many(self, document_uuids: Sequence[uuid.UUID]) -> Dict[uuid.UUID, Document]:
        """Получение документов по списку UUID; отсутствующие пропускаются"""
        if not document_uuids:
            return {}
        try:
            result = await self.session.execute(
                select(DocumentModel)
                .where(DocumentModel.uuid.in_(list(document_uuids)))
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load document records: {e}")
            raise CatalogError("Document records could not be loaded")
        return {db_document.uuid: self._to_domain(db_document) for db_document in result.scalars().all()}

    async def list_all(self) -> List[Document]:
        """Все записи каталога (для сверки с диском)"""
        try:
            result = await self.session.execute(select(DocumentModel))
        except SQLAlchemyError as e:
            logger.error(f"Failed to list document records: {e}")
            raise CatalogError("Document records could not be loaded")
        return [self._to_domain(db_document) for db_document in result.scalars().all()]

    async def update(self, document: Document) -> Document:
        """Перезапись имени файла, пути и размера"""
        stmt = (
            update(DocumentModel)
            .where(DocumentModel.uuid == document.uuid)
            .values(
                filename=document.filename,
                path=document.path,
                size=document.size,
                updated_at=document.updated_at
            )
        )

        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update document record {document.uuid}: {e}")
            raise CatalogError("Document record could not be updated")

        if result.rowcount == 0:
            raise CatalogError(f"Document record {document.uuid} disappeared during update")
        return document

    async def delete(self, document_uuid: uuid.UUID) -> bool:
        """Удаление записи документа"""
        stmt = delete(DocumentModel).where(DocumentModel.uuid == document_uuid)
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete document record {document_uuid}: {e}")
            raise CatalogError("Document record could not be deleted")
        return result.rowcount > 0

    def _to_domain(self, db_document: DocumentModel) -> Document:
        """Преобразование модели БД в доменную сущность"""
        return Document(
            uuid=db_document.uuid,
            filename=db_document.filename,
            path=db_document.path,
            size=db_document.size,
            created_at=db_document.created_at,
            updated_at=db_document.updated_at
        )
