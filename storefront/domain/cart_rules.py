# storefront/domain/cart_rules.py
from typing import Sequence

from storefront.domain.errors import CartValidationError
from storefront.domain.schemas import CartItem


class InsufficientStockError(CartValidationError):
    def __init__(self, items: Sequence[CartItem]):
        names = ", ".join(i.name for i in items)
        super().__init__(f"Insufficient stock for: {names}")
        self.product_ids = [i.id for i in items]


def check_not_empty(items: Sequence[CartItem]) -> None:
    if not items:
        raise CartValidationError("Your cart is empty")


def check_quantities(items: Sequence[CartItem]) -> None:
    # pozycje z model_construct/starego zapisu moga ominac walidacje modelu
    if any(i.quantity is None or i.quantity <= 0 for i in items):
        raise CartValidationError("Some items have invalid quantities")


def check_stock(items: Sequence[CartItem]) -> None:
    # brak stockQuantity = brak limitu
    over = [
        i for i in items
        if i.stock_quantity is not None and i.quantity > i.stock_quantity
    ]
    if over:
        raise InsufficientStockError(over)


def check_cart(items: Sequence[CartItem]) -> None:
    """Reguly koszyka w kolejnosci, pierwszy blad wygrywa."""
    check_not_empty(items)
    check_quantities(items)
    check_stock(items)
