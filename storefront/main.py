# storefront/main.py
from dataclasses import dataclass
from typing import Callable

import requests

from storefront.data.storage import StoragePort, make_storage
from storefront.repos.cart_repo import CartRepo
from storefront.repos.session_repo import SessionRepo
from storefront.services.api_client import ApiClient
from storefront.services.auth_service import AuthService
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.services.notification_service import NotificationService
from storefront.services.order_client import OrderClient
from storefront.services.order_lifecycle import OrderTracker
from storefront.services.product_client import ProductClient
from storefront.services.session_manager import SessionTokenManager
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Storefront:
    notifier: NotificationService
    session: SessionTokenManager
    api: ApiClient
    auth: AuthService
    products: ProductClient
    orders: OrderClient
    cart: CartService
    checkout: CheckoutService
    tracker: OrderTracker

    def refresh_cart_stock(self) -> list[str]:
        """Pobierz aktualne dane produktow z koszyka i skoryguj koszyk."""
        catalog = self.products.fetch_catalog([i.id for i in self.cart.items])
        return self.cart.sync_with_products(catalog)


def create_storefront(
    storage: StoragePort | None = None,
    base_url: str | None = None,
    http: requests.Session | None = None,
    on_expired: Callable[[], None] | None = None,
    retry_wait=None,
) -> Storefront:
    storage = storage or make_storage()
    http = http or requests.Session()
    notifier = NotificationService()

    session = SessionTokenManager(
        repo=SessionRepo(storage),
        notifier=notifier,
        http=http,
        on_expired=on_expired,
    )
    api = ApiClient(
        session_manager=session,
        base_url=base_url,
        http=http,
        retry_wait=retry_wait,
    )
    auth = AuthService(api, session, notifier)
    products = ProductClient(api)
    orders = OrderClient(api, session)
    cart = CartService(CartRepo(storage), notifier)

    return Storefront(
        notifier=notifier,
        session=session,
        api=api,
        auth=auth,
        products=products,
        orders=orders,
        cart=cart,
        checkout=CheckoutService(cart, orders, notifier),
        tracker=OrderTracker(orders),
    )


if __name__ == "__main__":
    store = create_storefront()
    store.auth.initialize()
    logger.info(
        f"Koszyk: {store.cart.get_total_items()} szt., suma {store.cart.get_total_price()}"
    )
