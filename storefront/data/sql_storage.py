# storefront/data/sql_storage.py
from typing import Optional

from storefront.data.database import Base, make_engine, make_session_factory
from storefront.data.models import StoredRecordModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class SqlStorage:
    """Rekordy w tabeli stored_records (key -> value), commit przy kazdym zapisie."""

    def __init__(self, url: str | None = None, engine=None):
        self.engine = engine or make_engine(url)
        Base.metadata.create_all(bind=self.engine)
        self.SessionLocal = make_session_factory(self.engine)

    def get(self, key: str) -> Optional[str]:
        with self.SessionLocal() as db:
            record = db.get(StoredRecordModel, key)
            return record.value if record else None

    def set(self, key: str, value: str) -> None:
        with self.SessionLocal() as db:
            record = db.get(StoredRecordModel, key)
            if record:
                record.value = value
            else:
                db.add(StoredRecordModel(key=key, value=value))
            db.commit()
        logger.debug(f"Zapisano rekord {key}")

    def delete(self, key: str) -> None:
        with self.SessionLocal() as db:
            record = db.get(StoredRecordModel, key)
            if record:
                db.delete(record)
                db.commit()
