import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class _OwnerLock:
    def __init__(self):
        self.lock = asyncio.Lock()
        self.holders = 0


class OwnerLocks:
    """Мьютекс на владельца: сериализует запись блоба, подсчет и проверку квоты.

    Действует в пределах одного процесса (одного event loop).
    """

    def __init__(self):
        self._locks: Dict[str, _OwnerLock] = {}

    @asynccontextmanager
    async def hold(self, owner_id: str) -> AsyncIterator[None]:
        entry = self._locks.get(owner_id)
        if entry is None:
            entry = self._locks[owner_id] = _OwnerLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                self._locks.pop(owner_id, None)

    def is_locked(self, owner_id: str) -> bool:
        entry = self._locks.get(owner_id)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
