from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


@dataclass(eq=False)
class DocVaultError(Exception):
    """Базовая ошибка хранилища документов, пригодная для ответа клиенту"""

    code: str
    message: str
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def payload(self) -> Dict[str, Any]:
        """Тело ответа об ошибке"""
        body: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "statusCode": self.status_code,
        }
        if self.detail:
            body.update(self.detail)
        return {"error": body}

    def to_http_exception(self) -> HTTPException:
        """Преобразование доменной ошибки в HTTPException"""
        return HTTPException(status_code=self.status_code, detail=self.payload)


class ValidationError(DocVaultError):
    """Загрузка отсутствует или некорректна, либо неверный идентификатор"""

    def __init__(self, message: str, code: str = "validation_error", detail: Optional[Mapping[str, Any]] = None):
        super().__init__(code=code, message=message, status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFoundError(DocVaultError):
    """Документ не найден или не принадлежит вызывающему"""

    def __init__(self, message: str = "Document not found", code: str = "document_not_found"):
        super().__init__(code=code, message=message, status_code=status.HTTP_404_NOT_FOUND)


class QuotaExceededError(DocVaultError):
    """Запись не проходит проверку квоты тарифного плана"""

    def __init__(self, message: str = "Your plan's disk space is exceeded.", detail: Optional[Mapping[str, Any]] = None):
        super().__init__(
            code="plan_limit_exceeded",
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class StorageIOError(DocVaultError):
    """Сбой физического хранилища блобов"""

    def __init__(self, message: str, code: str = "storage_io_error"):
        super().__init__(code=code, message=message)


class CatalogError(DocVaultError):
    """Сбой каталога метаданных"""

    def __init__(self, message: str, code: str = "catalog_error"):
        super().__init__(code=code, message=message)


class ConfigurationError(DocVaultError):
    """Ошибка конфигурации (например, неизвестный тарифный план)"""

    def __init__(self, message: str):
        super().__init__(code="configuration_error", message=message)
