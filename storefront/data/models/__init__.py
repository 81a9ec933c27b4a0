#import modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.record import StoredRecordModel

__all__ = ["StoredRecordModel"]
