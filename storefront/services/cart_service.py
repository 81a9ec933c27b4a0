# storefront/services/cart_service.py
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from storefront.domain import cart_rules
from storefront.domain.errors import CartValidationError
from storefront.domain.schemas import CartItem, Product
from storefront.repos.cart_repo import CartRepo
from storefront.services.notification_service import NotificationService
from storefront.services.stock_reconciler import StockReconciler
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Koszyk po stronie klienta, prosty podzial na commands i query.
    commands (add, remove, update, clear, sync) zmieniaja stan i od razu zapisuja go do storage
    query (totals, lookups, order items) tylko odczyt, liczone zawsze z aktualnego stanu
    """

    def __init__(
        self,
        repo: CartRepo,
        notifier: NotificationService,
        reconciler: StockReconciler | None = None,
    ):
        self.repo = repo
        self.notifier = notifier
        self.reconciler = reconciler or StockReconciler()
        self.is_open = False
        self._items: List[CartItem] = self.repo.load()
        logger.info(f"Koszyk wczytany: {len(self._items)} pozycji")

    #query - odczyt
    @property
    def items(self) -> Tuple[CartItem, ...]:
        return tuple(self._items)

    def get_total_items(self) -> int:
        return sum(i.quantity for i in self._items)

    def get_total_price(self) -> Decimal:
        return sum((i.price * i.quantity for i in self._items), Decimal("0.00"))

    def get_item_quantity(self, product_id: str) -> int:
        item = self._find(product_id)
        return item.quantity if item else 0

    def is_in_cart(self, product_id: str) -> bool:
        return self._find(product_id) is not None

    def get_order_items(self) -> List[Dict[str, object]]:
        # tylko id + ilosc, cene wyznacza serwer
        return [{"productId": i.id, "quantity": i.quantity} for i in self._items]

    def validate_cart(self) -> bool:
        try:
            cart_rules.check_cart(self._items)
        except CartValidationError as e:
            logger.info(f"Koszyk nie przeszedl walidacji: {e.message}")
            self.notifier.error(e.message)
            return False
        return True

    #commands
    def add_item(self, product: Product, quantity: int = 1) -> CartItem:
        if quantity <= 0:
            raise CartValidationError("Quantity must be at least 1")

        existing = self._find(product.id)

        if existing:
            logger.info(
                f"Produkt {product.id} juz jest w koszyku, zwiekszam ilosc "
                f"z {existing.quantity} do {existing.quantity + quantity}"
            )
            existing.quantity += quantity
            item = existing
            message = f"Updated {product.name} quantity in cart"
        else:
            logger.info(f"Dodaje nowy produkt {product.id} do koszyka")
            item = CartItem.from_product(product, quantity)
            self._items.append(item)
            message = f"Added {product.name} to cart"

        self._commit()
        self.notifier.success(message)
        return item

    def remove_item(self, product_id: str) -> None:
        item = self._find(product_id)
        if item is None:
            return

        logger.info(f"Usuwanie produktu {product_id} z koszyka")
        self._items = [i for i in self._items if i.id != product_id]
        self._commit()
        self.notifier.success(f"Removed {item.name} from cart")

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(product_id)
            return

        item = self._find(product_id)
        if item is None:
            return

        # nadpisanie, nie sumowanie
        item.quantity = quantity
        self._commit()

    def clear_cart(self) -> None:
        self._items = []
        self._commit()
        self.notifier.success("Cart cleared")

    def sync_with_products(self, catalog: Iterable[Product]) -> List[str]:
        """Korekta koszyka wg katalogu, zwraca id usunietych produktow."""
        before = len(self._items)
        result = self.reconciler.reconcile(self._items, catalog)

        if result.changed:
            self._items = result.items
            self._commit()

        if len(result.items) != before:
            self.notifier.info("Cart updated with latest product information")

        return result.dropped

    def reload(self) -> None:
        """Ponowne wczytanie ze storage (np. po zapisie z innego procesu)."""
        self._items = self.repo.load()

    #widocznosc koszyka - stan tylko w pamieci
    def toggle_cart(self) -> None:
        self.is_open = not self.is_open

    def open_cart(self) -> None:
        self.is_open = True

    def close_cart(self) -> None:
        self.is_open = False

    def _find(self, product_id: str) -> Optional[CartItem]:
        return next((i for i in self._items if i.id == product_id), None)

    def _commit(self) -> None:
        # write-through: zapis zanim operacja sie zakonczy
        self.repo.save(self._items)
