# storefront/services/checkout_service.py
from typing import Dict, Mapping, Optional, Sequence

from pydantic import ValidationError

from storefront.domain import cart_rules
from storefront.domain.errors import (
    CartValidationError,
    CheckoutFormError,
    StorefrontError,
)
from storefront.domain.schemas import (
    CartItem,
    CheckoutForm,
    Order,
    OrderCreate,
    OrderItemIn,
)
from storefront.services.cart_service import CartService
from storefront.services.notification_service import NotificationService
from storefront.services.order_client import OrderClient
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# (pole, typ bledu pydantic) -> komunikat dla uzytkownika
_FIELD_MESSAGES = {
    ("deliveryAddress", "missing"): "Delivery address is required",
    ("deliveryAddress", "string_too_short"): "Delivery address must be at least 10 characters",
    ("deliveryAddress", "string_too_long"): "Delivery address cannot exceed 500 characters",
    ("contactNumber", "missing"): "Contact number is required",
    ("contactNumber", "string_pattern_mismatch"): "Please enter a valid phone number",
    ("orderNotes", "string_too_long"): "Order notes cannot exceed 500 characters",
}


class CancelToken:
    """Odwolanie checkoutu (np. uzytkownik opuscil widok przed odpowiedzia)."""

    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class CheckoutValidator:
    """
    Bramka przed wyslaniem zamowienia.
    Reguly koszyka (1-3) blokuja checkout, reguly pol (4-6) tylko submit formularza.
    """

    def check_cart(self, items: Sequence[CartItem]) -> None:
        cart_rules.check_cart(items)

    def validate_form(self, data: Mapping[str, object] | CheckoutForm) -> CheckoutForm:
        if isinstance(data, CheckoutForm):
            return data

        try:
            return CheckoutForm.model_validate(dict(data))
        except ValidationError as e:
            raise CheckoutFormError(self._field_errors(e))

    def build_order(self, items: Sequence[CartItem], form: CheckoutForm) -> OrderCreate:
        return OrderCreate(
            order_items=[OrderItemIn(product_id=i.id, quantity=i.quantity) for i in items],
            delivery_address=form.delivery_address,
            contact_number=form.contact_number,
            order_notes=form.order_notes,
        )

    def validate(
        self,
        items: Sequence[CartItem],
        data: Mapping[str, object] | CheckoutForm,
    ) -> OrderCreate:
        self.check_cart(items)
        form = self.validate_form(data)
        return self.build_order(items, form)

    @staticmethod
    def _field_errors(error: ValidationError) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        fields = CheckoutForm.model_fields
        for err in error.errors():
            field = str(err["loc"][0]) if err["loc"] else "form"
            # loc moze byc nazwa pola albo aliasem - zawsze raportujemy alias
            if field in fields:
                field = fields[field].alias or field
            if field in errors:
                continue
            errors[field] = _FIELD_MESSAGES.get((field, err["type"]), err["msg"])
        return errors


class CheckoutService:
    def __init__(
        self,
        cart: CartService,
        orders: OrderClient,
        notifier: NotificationService,
        validator: CheckoutValidator | None = None,
    ):
        self.cart = cart
        self.orders = orders
        self.notifier = notifier
        self.validator = validator or CheckoutValidator()

    def place_order(
        self,
        data: Mapping[str, object] | CheckoutForm,
        cancel_token: CancelToken | None = None,
    ) -> Optional[Order]:
        """
        Use Case: zlozenie zamowienia z koszyka.

        1. Walidacja koszyka (blad = toast) i formularza (blad = komunikaty przy polach)
        2. POST zamowienia
        3. Jesli widok nie zostal zamkniety: czyszczenie koszyka
        Zwraca None gdy odpowiedz przyszla po anulowaniu.
        """
        try:
            payload = self.validator.validate(self.cart.items, data)
        except CartValidationError as e:
            self.notifier.error(e.message)
            raise

        try:
            order = self.orders.create_order(payload)
        except StorefrontError as e:
            if cancel_token is not None and cancel_token.cancelled:
                logger.info(f"Checkout anulowany, pomijam blad: {e.message}")
                return None
            logger.error(f"Blad podczas skladania zamowienia: {e.message}")
            self.notifier.error(e.message or "Failed to place order. Please try again.")
            raise

        if cancel_token is not None and cancel_token.cancelled:
            logger.info(f"Checkout anulowany, odpowiedz dla zamowienia {order.id} pominieta")
            return None

        self.cart.clear_cart()
        self.notifier.success("Order placed successfully!")
        return order
