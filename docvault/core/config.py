from functools import lru_cache
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Dict

from pydantic_settings import BaseSettings

from docvault.core.exceptions import ConfigurationError
from docvault.core.units import mb_to_bytes


class Settings(BaseSettings):
    database_url: str
    db_echo: bool = False
    create_schema: bool = True

    jwt_secret: str
    jwt_algorithm: str = "HS256"

    # Хранилище блобов
    storage_root: str = "uploads"
    public_prefix: str = "/uploads"
    allowed_extension: str = ".json"
    partial_upload_max_age_seconds: int = 3600

    # Тарифные планы: имя -> объем в МБ
    plans: Dict[str, int] = {"free": 50}
    default_plan: str = "free"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Кэшированный экземпляр настроек"""
    return Settings()


class PlanTable(Mapping[str, int]):
    """Неизменяемая таблица тарифных планов (имя -> объем в МБ)"""

    def __init__(self, plans: Mapping[str, int], default_plan: str):
        if not plans:
            raise ConfigurationError("Plan table is empty")

        for name, capacity_mb in plans.items():
            if isinstance(capacity_mb, bool) or not isinstance(capacity_mb, int) or capacity_mb <= 0:
                raise ConfigurationError(f"Plan '{name}' must have a positive integer capacity in MB")

        if default_plan not in plans:
            raise ConfigurationError(f"Default plan '{default_plan}' is not defined in the plan table")

        self._plans = MappingProxyType(dict(plans))
        self.default_plan = default_plan

    def __getitem__(self, name: str) -> int:
        return self._plans[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._plans)

    def __len__(self) -> int:
        return len(self._plans)

    def limit_bytes(self, name: str) -> int:
        """Объем плана в байтах; неизвестный план - ошибка конфигурации"""
        try:
            capacity_mb = self._plans[name]
        except KeyError:
            raise ConfigurationError(f"Unknown plan '{name}'")
        return mb_to_bytes(capacity_mb)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlanTable":
        return cls(settings.plans, settings.default_plan)

    def __repr__(self) -> str:
        return f"PlanTable({dict(self._plans)}, default={self.default_plan})"
