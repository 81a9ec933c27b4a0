# storefront/services/stock_reconciler.py
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from storefront.domain.schemas import CartItem, Product
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ReconcileResult:
    items: List[CartItem]
    dropped: List[str] = field(default_factory=list)
    changed: bool = False


class StockReconciler:
    """
    Jednokierunkowa korekta koszyka wg swiezego katalogu (katalog -> koszyk).

    - pola wyswietlane i stockQuantity nadpisywane z katalogu
    - pozycje spoza katalogu lub ze stanem 0 sa usuwane
    - ilosci nigdy nie rosna, usuniete pozycje nie wracaja
    """

    def reconcile(self, items: Sequence[CartItem], catalog: Iterable[Product]) -> ReconcileResult:
        by_id: Dict[str, Product] = {p.id: p for p in catalog}

        kept: List[CartItem] = []
        dropped: List[str] = []
        changed = False

        for item in items:
            product = by_id.get(item.id)

            if product is None:
                logger.info(f"Produkt {item.id} zniknal z katalogu - usuwam z koszyka")
                dropped.append(item.id)
                continue

            if product.stock_quantity is not None and product.stock_quantity <= 0:
                logger.info(f"Produkt {item.id} niedostepny - usuwam z koszyka")
                dropped.append(item.id)
                continue

            refreshed = item.model_copy(
                update={
                    "name": product.name,
                    "price": product.price,
                    "image_url": product.image_url,
                    "category": product.category,
                    "stock_quantity": product.stock_quantity,
                }
            )
            if refreshed != item:
                changed = True
            kept.append(refreshed)

        return ReconcileResult(items=kept, dropped=dropped, changed=changed or bool(dropped))
