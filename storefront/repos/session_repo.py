# storefront/repos/session_repo.py
import json

from pydantic import ValidationError

from storefront.data.storage import StoragePort
from storefront.domain.schemas import SessionRecord
from storefront.utils.settings import SESSION_STORAGE_KEY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class SessionRepo:
    def __init__(self, storage: StoragePort, key: str = SESSION_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> SessionRecord:
        raw = self.storage.get(self.key)
        if raw is None:
            return SessionRecord()

        try:
            data = json.loads(raw)
            if isinstance(data, dict) and isinstance(data.get("state"), dict):
                data = data["state"]
            record = SessionRecord.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Uszkodzony rekord sesji {self.key}: {e}")
            return SessionRecord()

        # niespojny rekord (brak tokenu lub usera) traktujemy jak brak sesji
        if record.is_authenticated and (not record.token or record.user is None):
            logger.warning("Rekord sesji bez tokenu/uzytkownika - ignoruje")
            return SessionRecord()

        return record

    def save(self, record: SessionRecord) -> None:
        self.storage.set(self.key, json.dumps(record.to_wire()))

    def clear(self) -> None:
        self.storage.delete(self.key)
