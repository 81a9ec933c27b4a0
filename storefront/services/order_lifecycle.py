# storefront/services/order_lifecycle.py
from dataclasses import dataclass
from typing import List, Tuple

from storefront.domain.schemas import Order, OrderStatus, Page, PageParams, PaymentMethod
from storefront.services.order_client import OrderClient
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TimelineStep:
    status: OrderStatus
    label: str
    completed: bool = False
    current: bool = False


@dataclass(frozen=True)
class StatusDisplay:
    value: str
    label: str
    color: str


CANONICAL_STEPS: Tuple[Tuple[OrderStatus, str], ...] = (
    (OrderStatus.PENDING, "Order Placed"),
    (OrderStatus.PROCESSING, "Processing"),
    (OrderStatus.SHIPPED, "Shipped"),
    (OrderStatus.DELIVERED, "Delivered"),
)

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

_STATUS_DISPLAY = {
    OrderStatus.PENDING: ("Pending", "yellow"),
    OrderStatus.PROCESSING: ("Processing", "blue"),
    OrderStatus.SHIPPED: ("Shipped", "purple"),
    OrderStatus.DELIVERED: ("Delivered", "green"),
    OrderStatus.CANCELLED: ("Cancelled", "red"),
}

_PAYMENT_LABELS = {
    PaymentMethod.CASH_ON_DELIVERY: "Cash on Delivery",
    PaymentMethod.ONLINE_PAYMENT: "Online Payment",
    PaymentMethod.CARD_PAYMENT: "Card Payment",
}


def _coerce_status(status) -> OrderStatus | None:
    try:
        return OrderStatus(status)
    except ValueError:
        return None


def build_timeline(status: OrderStatus | str) -> List[TimelineStep]:
    """
    Os czasu zamowienia dla danego statusu.
    Kroki do biezacego wlacznie sa completed, biezacy jest current.
    CANCELLED (i nieznany status) nie ma pozycji na osi - nic nie jest completed ani current.
    """
    order = [s for s, _ in CANONICAL_STEPS]
    current = _coerce_status(status)
    index = order.index(current) if current in order else -1

    return [
        TimelineStep(
            status=step,
            label=label,
            completed=i <= index,
            current=i == index,
        )
        for i, (step, label) in enumerate(CANONICAL_STEPS)
    ]


def is_terminal(status: OrderStatus | str) -> bool:
    return _coerce_status(status) in TERMINAL_STATUSES


def format_status(status: OrderStatus | str) -> StatusDisplay:
    current = _coerce_status(status)
    if current is None:
        return StatusDisplay(value=str(status), label=str(status), color="gray")
    label, color = _STATUS_DISPLAY[current]
    return StatusDisplay(value=current.value, label=label, color=color)


def format_payment_method(method: PaymentMethod | str | None) -> str:
    if method is None:
        return ""
    try:
        return _PAYMENT_LABELS[PaymentMethod(method)]
    except ValueError:
        return str(method)


class OrderTracker:
    """
    Sledzenie zamowien - zawsze swiezy odczyt z serwera,
    status nie jest cache'owany miedzy wywolaniami.
    """

    def __init__(self, orders: OrderClient):
        self.orders = orders

    def track(self, order_id: str) -> Tuple[Order, List[TimelineStep]]:
        order = self.orders.get_order(order_id)
        logger.info(f"Zamowienie {order.id}: {order.status.value}")
        return order, build_timeline(order.status)

    def track_mine(self, params: PageParams | None = None) -> Page[Order]:
        return self.orders.get_my_orders(params)
