from typing import Iterable

from docvault.domains.storage.blob_store import BlobStore


class UsageAccountant:
    """Потребление владельца как сумма размеров файлов в его пространстве.

    Источник истины - диск, а не поле size в каталоге, поэтому файлы-сироты
    тоже уменьшают остаток квоты. Подсчет не берет блокировок и отражает
    произвольный момент времени, если файлы параллельно добавляются или удаляются.
    """

    def __init__(self, blob_store: BlobStore):
        self.blob_store = blob_store

    async def used_bytes(self, owner_id: str, exclude: Iterable[str] = ()) -> int:
        """Занятые байты; 0, если пространства еще нет"""
        excluded = set(exclude)
        blobs = await self.blob_store.list_blobs(owner_id)
        return sum(size for name, size in blobs.items() if name not in excluded)
