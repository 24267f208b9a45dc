import os
import uuid
from datetime import datetime, timezone
from typing import Optional


class Document:
    """Запись каталога, описывающая один блоб владельца"""

    def __init__(
        self,
        uuid: uuid.UUID,
        filename: str,
        path: str,
        size: int,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.filename = filename
        self.path = path
        self.size = size
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or self.created_at

    @property
    def upload_date(self) -> datetime:
        """Дата первоначальной загрузки (не меняется при замене)"""
        return self.created_at

    def replace_blob(self, filename: str, path: str, size: int) -> None:
        """Замена физического файла; uuid и дата загрузки сохраняются"""
        self.filename = filename
        self.path = path
        self.size = size
        self.updated_at = datetime.now(timezone.utc)

    def copy(self) -> "Document":
        return Document(
            uuid=self.uuid,
            filename=self.filename,
            path=self.path,
            size=self.size,
            created_at=self.created_at,
            updated_at=self.updated_at
        )

    @classmethod
    def create_document(cls, filename: str, path: str, size: int) -> "Document":
        """Создание новой записи документа"""
        return cls(
            uuid=uuid.uuid4(),
            filename=filename,
            path=path,
            size=size
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Document):
            return False
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)

    def __repr__(self) -> str:
        return f"Document(uuid={self.uuid}, filename={self.filename}, size={self.size})"


class UploadedFile:
    """Входящий файл запроса на загрузку"""

    def __init__(self, filename: Optional[str], content: bytes):
        self.filename = filename or ""
        self.content = content

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1].lower()

    @property
    def size(self) -> int:
        return len(self.content)

    def has_extension(self, extension: str) -> bool:
        return self.extension == extension.lower()

    def __repr__(self) -> str:
        return f"UploadedFile(filename={self.filename}, size={self.size})"
