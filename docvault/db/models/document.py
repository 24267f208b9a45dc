from sqlalchemy import BigInteger, Column, String

from docvault.db.base import BaseModel


class Document(BaseModel):
    __tablename__ = "documents"

    # created_at хранит дату загрузки и не меняется при замене содержимого
    filename = Column(String(512), nullable=False)
    path = Column(String(1024), nullable=False)
    size = Column(BigInteger, nullable=False)
