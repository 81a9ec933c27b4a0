# storefront/repos/cart_repo.py
import json
from typing import List, Sequence

from pydantic import ValidationError

from storefront.data.storage import StoragePort
from storefront.domain.schemas import CartItem, CartRecord
from storefront.utils.settings import CART_STORAGE_KEY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartRepo:
    """
    Rekord koszyka {"items": [...]} w storage.
    Uszkodzony lub brakujacy rekord = pusty koszyk, nigdy wyjatek.
    """

    def __init__(self, storage: StoragePort, key: str = CART_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> List[CartItem]:
        raw = self.storage.get(self.key)
        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Uszkodzony rekord koszyka {self.key}: {e}")
            return []

        # format zapisany przez przegladarkowy persist: {"state": {...}, "version": 0}
        if isinstance(data, dict) and isinstance(data.get("state"), dict):
            data = data["state"]

        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            logger.warning(f"Nieprawidlowy ksztalt rekordu koszyka {self.key}")
            return []

        items: List[CartItem] = []
        seen: set[str] = set()
        for raw_item in data["items"]:
            try:
                item = CartItem.model_validate(raw_item)
            except ValidationError as e:
                logger.warning(f"Pomijam nieprawidlowa pozycje koszyka: {e.error_count()} bledow")
                continue
            if item.id in seen:
                logger.warning(f"Pomijam zduplikowana pozycje {item.id}")
                continue
            seen.add(item.id)
            items.append(item)

        return items

    def save(self, items: Sequence[CartItem]) -> None:
        record = CartRecord(items=list(items))
        self.storage.set(self.key, json.dumps(record.to_wire()))
