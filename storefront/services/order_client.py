# storefront/services/order_client.py
from storefront.domain.schemas import (
    Order,
    OrderCreate,
    OrderStats,
    OrderStatus,
    Page,
    PageParams,
)
from storefront.services.api_client import ApiClient, parse
from storefront.services.session_manager import SessionTokenManager
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDERS = "/api/orders"


class OrderClient:
    """
    Zamowienia po stronie klienta - tylko wywolania API.
    Status zmienia wylacznie serwer (admin przez update_order_status).
    """

    def __init__(self, api: ApiClient, session_manager: SessionTokenManager):
        self.api = api
        self.session_manager = session_manager

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(self, payload: OrderCreate) -> Order:
        self.session_manager.require_authenticated()
        logger.info(f"Tworzenie zamowienia ({len(payload.order_items)} pozycji)")

        data = self.api.post(ORDERS, json=payload.to_wire())
        order = parse(Order, data)

        logger.info(f"Zamowienie {order.id} utworzone, status {order.status.value}")
        return order

    def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        self.session_manager.require_admin()
        logger.info(f"Zmiana statusu zamowienia {order_id} na {status.value}")

        data = self.api.put(f"{ORDERS}/{order_id}/status", params={"status": status.value})
        return parse(Order, data)

    # =====================================================
    # QUERY
    # =====================================================
    def get_my_orders(self, params: PageParams | None = None) -> Page[Order]:
        self.session_manager.require_authenticated()
        data = self.api.get(f"{ORDERS}/my-orders", params=self._query(params))
        return parse(Page[Order], data)

    def get_order(self, order_id: str) -> Order:
        self.session_manager.require_authenticated()
        data = self.api.get(f"{ORDERS}/{order_id}")
        return parse(Order, data)

    def get_all_orders(self, params: PageParams | None = None) -> Page[Order]:
        self.session_manager.require_admin()
        data = self.api.get(f"{ORDERS}/admin/all", params=self._query(params))
        return parse(Page[Order], data)

    def get_order_statistics(self) -> OrderStats:
        self.session_manager.require_admin()
        data = self.api.get(f"{ORDERS}/admin/statistics")
        return parse(OrderStats, data)

    @staticmethod
    def _query(params: PageParams | None) -> dict:
        params = params or PageParams(size=10, sort_by="orderDate", sort_dir="desc")
        return params.to_query()
