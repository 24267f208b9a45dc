import asyncio
import logging
import os
import shutil
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Union

from docvault.core.exceptions import StorageIOError

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"


@dataclass(frozen=True)
class StoredBlob:
    """Результат записи блоба"""
    physical_name: str
    size: int
    path: str


class BlobStore:
    """Файловое хранилище блобов с отдельным каталогом (пространством) на владельца.

    Физическое имя строится из заявленного имени, метки времени в миллисекундах
    и случайного 128-битного суффикса, поэтому две загрузки одного владельца
    в одну и ту же миллисекунду не перезаписывают друг друга. Запись идет во
    временный файл ``*.part``, который переименовывается на место только после
    успешной записи всего содержимого.

    Все операции с диском выполняются в пуле потоков через ``asyncio.to_thread``.
    Сбои носителя (нет места, нет прав, каталог недоступен) поднимаются как
    ``StorageIOError`` и на этом уровне не подавляются.
    """

    def __init__(self, root: Union[str, Path], public_prefix: str = "/uploads"):
        self.root = Path(root)
        self.public_prefix = public_prefix.rstrip("/")

    def namespace_path(self, owner_id: str) -> Path:
        """Каталог пространства владельца"""
        owner_id = str(owner_id)
        if not owner_id or owner_id in (".", "..") or os.sep in owner_id or "/" in owner_id:
            raise StorageIOError(f"Invalid namespace name: {owner_id!r}")
        return self.root / owner_id

    def public_path(self, owner_id: str, physical_name: str) -> str:
        """Виртуальный путь блоба внутри пространства владельца"""
        return f"{self.public_prefix}/{owner_id}/{physical_name}"

    def make_physical_name(self, declared_name: str) -> str:
        """Уникальное физическое имя с исходным расширением"""
        stem, extension = os.path.splitext(os.path.basename(declared_name or ""))
        stem = stem.strip() or "document"
        timestamp = int(time.time() * 1000)
        return f"{stem}--{timestamp}-{uuid.uuid4().hex}{extension.lower()}"

    async def ensure_namespace(self, owner_id: str) -> Path:
        """Создание пространства владельца, если его нет"""
        path = self.namespace_path(owner_id)
        try:
            # exist_ok: параллельное создание тем же запросом не ошибка
            await asyncio.to_thread(os.makedirs, path, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Namespace {owner_id} could not be created: {e.strerror or e}")
        return path

    async def put(self, owner_id: str, declared_name: str, content: bytes) -> StoredBlob:
        """Запись содержимого под новым физическим именем"""
        namespace = await self.ensure_namespace(owner_id)
        physical_name = self.make_physical_name(declared_name)
        target = namespace / physical_name

        size = await asyncio.to_thread(self._write_atomic, target, content)
        logger.info(f"Stored blob {physical_name} ({size} bytes) in namespace {owner_id}")
        return StoredBlob(
            physical_name=physical_name,
            size=size,
            path=self.public_path(owner_id, physical_name)
        )

    async def delete(self, owner_id: str, physical_name: str) -> bool:
        """Идемпотентное удаление блоба; False, если файла уже нет"""
        target = self._blob_path(owner_id, physical_name)
        try:
            await asyncio.to_thread(os.unlink, target)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageIOError(f"Blob {physical_name} could not be deleted: {e.strerror or e}")
        logger.info(f"Deleted blob {physical_name} from namespace {owner_id}")
        return True

    async def exists(self, owner_id: str, physical_name: str) -> bool:
        return await asyncio.to_thread(self._blob_path(owner_id, physical_name).is_file)

    async def list_blobs(self, owner_id: str) -> Dict[str, int]:
        """Файлы пространства и их размеры; пустой словарь, если пространства нет"""
        return await asyncio.to_thread(self._scan, self.namespace_path(owner_id))

    async def list_namespaces(self) -> List[str]:
        """Имена всех пространств на диске"""
        return await asyncio.to_thread(self._list_namespaces)

    async def remove_namespace(self, owner_id: str) -> bool:
        """Удаление пространства владельца вместе со всеми блобами"""
        path = self.namespace_path(owner_id)
        try:
            await asyncio.to_thread(shutil.rmtree, path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageIOError(f"Namespace {owner_id} could not be removed: {e.strerror or e}")
        logger.info(f"Removed namespace {owner_id}")
        return True

    async def sweep_partials(self, max_age_seconds: int) -> List[Path]:
        """Удаление незавершенных записей старше max_age_seconds"""
        removed = await asyncio.to_thread(self._sweep_partials, max_age_seconds)
        for path in removed:
            logger.warning(f"Removed stale partial upload {path}")
        return removed

    def _blob_path(self, owner_id: str, physical_name: str) -> Path:
        if not physical_name or os.path.basename(physical_name) != physical_name or physical_name in (".", ".."):
            raise StorageIOError(f"Invalid blob name: {physical_name!r}")
        return self.namespace_path(owner_id) / physical_name

    def _write_atomic(self, target: Path, content: bytes) -> int:
        partial = target.with_name(target.name + PARTIAL_SUFFIX)
        try:
            with open(partial, "wb") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(partial, target)
        except OSError as e:
            try:
                os.unlink(partial)
            except OSError as cleanup_error:
                logger.warning(f"Partial file {partial} was left behind: {cleanup_error}")
            raise StorageIOError(f"Blob {target.name} could not be written: {e.strerror or e}")
        return len(content)

    def _scan(self, namespace: Path) -> Dict[str, int]:
        sizes: Dict[str, int] = {}
        try:
            with os.scandir(namespace) as iterator:
                entries = list(iterator)
        except FileNotFoundError:
            return sizes
        except OSError as e:
            raise StorageIOError(f"Namespace {namespace.name} could not be read: {e.strerror or e}")

        for entry in entries:
            try:
                if entry.is_file(follow_symlinks=False):
                    sizes[entry.name] = entry.stat(follow_symlinks=False).st_size
            except FileNotFoundError:
                # Файл удален между чтением каталога и stat
                continue
            except OSError as e:
                raise StorageIOError(f"Blob {entry.name} could not be inspected: {e.strerror or e}")
        return sizes

    def _list_namespaces(self) -> List[str]:
        try:
            with os.scandir(self.root) as iterator:
                return sorted(entry.name for entry in iterator if entry.is_dir(follow_symlinks=False))
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageIOError(f"Storage root could not be read: {e.strerror or e}")

    def _sweep_partials(self, max_age_seconds: int) -> List[Path]:
        removed: List[Path] = []
        threshold = time.time() - max_age_seconds
        for namespace in self._list_namespaces():
            for path in (self.root / namespace).glob(f"*{PARTIAL_SUFFIX}"):
                try:
                    if path.stat().st_mtime <= threshold:
                        path.unlink()
                        removed.append(path)
                except FileNotFoundError:
                    continue
                except OSError as e:
                    raise StorageIOError(f"Partial upload {path.name} could not be removed: {e.strerror or e}")
        return removed
