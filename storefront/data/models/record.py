from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from storefront.data.database import Base


class StoredRecordModel(Base):
    __tablename__ = "stored_records"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
