from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from docvault.api.deps import get_lifecycle_service, read_upload
from docvault.core.auth import get_current_principal
from docvault.domains.documents.entities import UploadedFile
from docvault.domains.documents.schemas import DocumentResponse
from docvault.domains.documents.services import DocumentLifecycleService
from docvault.domains.identity.entities import Principal

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("/mine", response_model=List[DocumentResponse])
async def get_my_documents(
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service)
):
    """Список документов текущего пользователя"""
    documents = await service.list_documents(principal)
    return [DocumentResponse.from_entity(document) for document in documents]


@router.get("/mine/{document_id}", response_model=DocumentResponse)
async def get_my_document(
    document_id: str,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service)
):
    """Документ текущего пользователя по идентификатору"""
    document = await service.get_document(principal, document_id)
    return DocumentResponse.from_entity(document)


@router.post("/mine", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_my_document(
    principal: Principal = Depends(get_current_principal),
    upload: Optional[UploadedFile] = Depends(read_upload),
    service: DocumentLifecycleService = Depends(get_lifecycle_service)
):
    """Загрузка нового документа"""
    document = await service.create_document(principal, upload)
    return DocumentResponse.from_entity(document)


@router.put("/mine/{document_id}", response_model=DocumentResponse)
async def replace_my_document(
    document_id: str,
    principal: Principal = Depends(get_current_principal),
    upload: Optional[UploadedFile] = Depends(read_upload),
    service: DocumentLifecycleService = Depends(get_lifecycle_service)
):
    """Замена содержимого документа"""
    document = await service.update_document(principal, document_id, upload)
    return DocumentResponse.from_entity(document)


@router.delete("/mine/{document_id}", response_model=DocumentResponse)
async def delete_my_document(
    document_id: str,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service)
):
    """Удаление документа"""
    document = await service.delete_document(principal, document_id)

    if document is None:
        # Запись уже удалена предыдущим запросом, убрана висячая ссылка
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return DocumentResponse.from_entity(document)
