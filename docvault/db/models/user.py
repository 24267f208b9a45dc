from sqlalchemy import JSON, Column, String

from docvault.db.base import BaseModel


class User(BaseModel):
    __tablename__ = "users"

    username = Column(String(100), index=True, nullable=False)
    plan = Column(String(50), nullable=False)
    # Упорядоченный список UUID документов без внешнего ключа,
    # ссылки поддерживает только DocumentLifecycleService
    document_ids = Column(JSON, nullable=False, default=list)
