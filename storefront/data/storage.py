# storefront/data/storage.py
import os
import tempfile
from typing import Dict, Optional, Protocol

from storefront.utils.settings import STORAGE_BACKEND, STORAGE_DIR
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class StoragePort(Protocol):
    """
    Trwaly magazyn klucz -> tekst (JSON).
    get zwraca None gdy brak rekordu, set/delete sa write-through.
    """

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Dict[str, str] | None = None):
        self.records: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.records.get(key)

    def set(self, key: str, value: str) -> None:
        self.records[key] = value

    def delete(self, key: str) -> None:
        self.records.pop(key, None)


class JsonFileStorage:
    """Jeden plik <key>.json na rekord, zapis atomowy (tmp + replace)."""

    def __init__(self, directory: str | None = None):
        self.directory = directory or STORAGE_DIR
        os.makedirs(self.directory, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Nie mozna odczytac rekordu {key}: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, self._path(key))
        except Exception:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def delete(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)


def make_storage(backend: str | None = None) -> StoragePort:
    backend = (backend or STORAGE_BACKEND).lower()
    logger.info(f"Storage backend: {backend}")

    if backend == "memory":
        return MemoryStorage()
    if backend == "json":
        return JsonFileStorage()
    if backend == "redis":
        from storefront.data.redis_storage import RedisStorage

        return RedisStorage()
    if backend == "sql":
        from storefront.data.sql_storage import SqlStorage

        return SqlStorage()

    raise ValueError(f"Nieznany backend storage: {backend}")
