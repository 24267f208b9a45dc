from docvault.domains.storage.blob_store import BlobStore, StoredBlob
from docvault.domains.storage.usage import UsageAccountant
from docvault.domains.storage.context import StorageContext

__all__ = [
    "BlobStore",
    "StoredBlob",
    "UsageAccountant",
    "StorageContext"
]
