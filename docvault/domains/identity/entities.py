import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional


@dataclass(frozen=True)
class Principal:
    """Аутентифицированный вызывающий, которого передает внешний слой идентификации"""
    id: uuid.UUID
    username: str
    plan: str

    @property
    def namespace(self) -> str:
        """Имя пространства блобов владельца"""
        return str(self.id)


class User:
    """Владелец документов: тарифный план и упорядоченный список ссылок"""

    def __init__(
        self,
        uuid: uuid.UUID,
        username: str,
        plan: str,
        document_ids: Optional[Iterable[uuid.UUID]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.username = username
        self.plan = plan
        self.document_ids = []
        for document_id in document_ids or []:
            self.add_document(document_id)
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or self.created_at

    def owns(self, document_id: uuid.UUID) -> bool:
        """Проверка наличия ссылки на документ"""
        return document_id in self.document_ids

    def add_document(self, document_id: uuid.UUID) -> bool:
        """Добавление ссылки в конец списка без дубликатов"""
        if document_id in self.document_ids:
            return False
        self.document_ids.append(document_id)
        self.updated_at = datetime.now(timezone.utc)
        return True

    def remove_document(self, document_id: uuid.UUID) -> bool:
        """Удаление ссылки; отсутствие ссылки не ошибка"""
        if document_id not in self.document_ids:
            return False
        self.document_ids.remove(document_id)
        self.updated_at = datetime.now(timezone.utc)
        return True

    @classmethod
    def from_principal(cls, principal: Principal) -> "User":
        """Новая запись владельца для принципала без записи в каталоге"""
        return cls(
            uuid=principal.id,
            username=principal.username,
            plan=principal.plan
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)

    def __repr__(self) -> str:
        return f"User(uuid={self.uuid}, username={self.username}, plan={self.plan})"
