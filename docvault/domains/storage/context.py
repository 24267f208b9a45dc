from dataclasses import dataclass, field

from docvault.core.config import PlanTable, Settings
from docvault.domains.quota.enforcer import QuotaEnforcer
from docvault.domains.quota.locks import OwnerLocks
from docvault.domains.storage.blob_store import BlobStore


@dataclass(frozen=True)
class StorageContext:
    """Компоненты хранилища, общие для всех запросов процесса"""
    blob_store: BlobStore
    quota_enforcer: QuotaEnforcer
    owner_locks: OwnerLocks = field(default_factory=OwnerLocks)
    allowed_extension: str = ".json"

    @classmethod
    def from_settings(cls, settings: Settings, plans: PlanTable) -> "StorageContext":
        return cls(
            blob_store=BlobStore(settings.storage_root, settings.public_prefix),
            quota_enforcer=QuotaEnforcer(plans),
            allowed_extension=settings.allowed_extension
        )
