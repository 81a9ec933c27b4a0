import unittest

import requests
from fakes import auth_payload, auth_result, make_storefront, ok, order_payload, query_of

from storefront.domain.errors import (
    AccessDeniedError,
    ApiError,
    AuthenticationError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    SessionExpiredError,
)
from storefront.domain.schemas import OrderCreate, OrderItemIn
from storefront.services.session_manager import SessionState

ORDER = OrderCreate(
    order_items=[OrderItemIn(product_id="A", quantity=1)],
    delivery_address="12 Long Street, Springfield",
    contact_number="1234567890",
)

UNAUTHORIZED = (401, {"success": False, "message": "Unauthorized"})


class ApiClientTestCase(unittest.TestCase):
    def setUp(self):
        self.expired = []
        self.store, self.adapter = make_storefront(on_expired=lambda: self.expired.append(True))
        self.store.session.start(auth_result("old"))

    def sent_tokens(self, method, path):
        return [c.headers.get("Authorization") for c in self.adapter.calls_to(method, path)]

    # ---------- Envelope / errors ----------

    def test_unwraps_envelope(self):
        self.adapter.add("GET", "/api/products/A", ok({"id": "A", "name": "Apples", "price": 2, "quantity": 4}))
        product = self.store.products.get_product("A")
        self.assertEqual(product.stock_quantity, 4)

    def test_success_false_is_error(self):
        self.adapter.add("GET", "/api/orders/admin/statistics", (200, {"success": False, "message": "nope"}))
        self.store.session.start(auth_result("old", role="ADMIN"))
        with self.assertRaises(ApiError) as ctx:
            self.store.orders.get_order_statistics()
        self.assertEqual(ctx.exception.message, "nope")

    def test_not_found(self):
        with self.assertRaises(NotFoundError):
            self.store.orders.get_order("missing")
        # 404 nie jest ponawiane
        self.assertEqual(len(self.adapter.calls_to("GET", "/api/orders/missing")), 1)

    def test_forbidden_does_not_renew(self):
        self.adapter.add("GET", "/api/orders/o-1", (403, {"success": False, "message": "Forbidden"}))
        with self.assertRaises(AccessDeniedError):
            self.store.orders.get_order("o-1")
        self.assertEqual(self.adapter.calls_to("POST", "/api/auth/refresh"), [])
        self.assertTrue(self.store.session.is_authenticated)

    # ---------- Renewal ----------

    def test_single_renewal_then_retry(self):
        self.adapter.add("POST", "/api/orders", UNAUTHORIZED, ok(order_payload()))
        self.adapter.add("POST", "/api/auth/refresh", ok(auth_payload("new")))

        order = self.store.orders.create_order(ORDER)

        self.assertEqual(order.id, "o-1")
        self.assertEqual(len(self.adapter.calls_to("POST", "/api/auth/refresh")), 1)
        self.assertEqual(self.sent_tokens("POST", "/api/orders"), ["Bearer old", "Bearer new"])
        # refresh wysylany ze starym tokenem
        self.assertEqual(self.sent_tokens("POST", "/api/auth/refresh"), ["Bearer old"])
        self.assertEqual(self.store.session.token, "new")

    def test_second_401_expires_session(self):
        self.adapter.add("GET", "/api/orders/o-1", UNAUTHORIZED)
        self.adapter.add("POST", "/api/auth/refresh", ok(auth_payload("new")))

        with self.assertRaises(SessionExpiredError):
            self.store.orders.get_order("o-1")

        self.assertEqual(len(self.adapter.calls_to("POST", "/api/auth/refresh")), 1)
        self.assertEqual(len(self.adapter.calls_to("GET", "/api/orders/o-1")), 2)
        self.assertEqual(self.store.session.state, SessionState.EXPIRED)
        self.assertEqual(self.expired, [True])

    def test_second_401_after_session_already_expired(self):
        def expired_elsewhere(request):
            # inne zapytanie zdazylo juz wymusic wylogowanie
            self.store.session.expire()
            return UNAUTHORIZED

        self.adapter.add("GET", "/api/orders/o-1", UNAUTHORIZED, expired_elsewhere)
        self.adapter.add("POST", "/api/auth/refresh", ok(auth_payload("new")))

        with self.assertRaises(SessionExpiredError):
            self.store.orders.get_order("o-1")

        self.assertEqual(self.expired, [True])
        messages = [n.message for n in self.store.notifier.history]
        self.assertEqual(messages.count("Session expired. Please login again."), 1)

    def test_malformed_payload_is_api_error(self):
        self.adapter.add("GET", "/api/orders/o-1", ok({"id": "o-1", "status": "WHATEVER"}))
        with self.assertRaises(ApiError) as ctx:
            self.store.orders.get_order("o-1")
        self.assertEqual(ctx.exception.message, "Unexpected response from server")

        self.adapter.add("GET", "/api/products/A", ok({"id": "A"}))
        with self.assertRaises(ApiError):
            self.store.products.get_product("A")

        self.adapter.add("GET", "/api/products", ok({"content": [{"name": "no id"}]}))
        with self.assertRaises(ApiError):
            self.store.products.get_products()

    def test_failed_refresh_forces_logout(self):
        self.adapter.add("GET", "/api/orders/o-1", UNAUTHORIZED)
        self.adapter.add("POST", "/api/auth/refresh", UNAUTHORIZED)

        with self.assertRaises(SessionExpiredError):
            self.store.orders.get_order("o-1")

        self.assertIsNone(self.store.session.token)
        self.assertEqual(self.expired, [True])
        self.assertEqual(
            self.store.notifier.history[-1].message,
            "Session expired. Please login again.",
        )

    def test_request_sent_after_renewal_uses_new_token(self):
        self.adapter.add("GET", "/api/orders/o-1", UNAUTHORIZED, ok(order_payload()))
        self.adapter.add("POST", "/api/auth/refresh", ok(auth_payload("new")))
        self.store.orders.get_order("o-1")

        self.adapter.add("GET", "/api/orders/o-2", ok(order_payload("o-2")))
        self.store.orders.get_order("o-2")
        self.assertEqual(self.sent_tokens("GET", "/api/orders/o-2"), ["Bearer new"])

    def test_anonymous_401_is_not_renewed(self):
        self.store.session.logout()
        self.adapter.add("POST", "/api/auth/login", UNAUTHORIZED)

        with self.assertRaises(AuthenticationError):
            self.store.auth.login("jan@example.com", "wrong")
        self.assertEqual(self.adapter.calls_to("POST", "/api/auth/refresh"), [])

    # ---------- Retry policy ----------

    def test_query_retries_server_errors_three_times(self):
        self.adapter.add("GET", "/api/orders/o-1", (503, {"message": "down"}))
        with self.assertRaises(ServerError) as ctx:
            self.store.orders.get_order("o-1")
        self.assertEqual(ctx.exception.status, 503)
        self.assertEqual(len(self.adapter.calls_to("GET", "/api/orders/o-1")), 4)

    def test_query_retries_rate_limit_twice(self):
        self.adapter.add("GET", "/api/orders/o-1", (429, None))
        with self.assertRaises(RateLimitedError):
            self.store.orders.get_order("o-1")
        self.assertEqual(len(self.adapter.calls_to("GET", "/api/orders/o-1")), 3)

    def test_query_recovers_after_transient_failure(self):
        self.adapter.add(
            "GET",
            "/api/orders/o-1",
            requests.ConnectionError("reset"),
            (500, None),
            ok(order_payload()),
        )
        self.assertEqual(self.store.orders.get_order("o-1").id, "o-1")
        self.assertEqual(len(self.adapter.calls_to("GET", "/api/orders/o-1")), 3)

    def test_query_does_not_retry_client_errors(self):
        self.adapter.add("GET", "/api/orders/o-1", (400, {"message": "Bad id"}))
        with self.assertRaises(ApiError) as ctx:
            self.store.orders.get_order("o-1")
        self.assertEqual(ctx.exception.message, "Bad id")
        self.assertEqual(len(self.adapter.calls_to("GET", "/api/orders/o-1")), 1)

    def test_mutation_retries_twice(self):
        self.adapter.add("POST", "/api/orders", requests.ConnectionError("reset"))
        with self.assertRaises(NetworkError):
            self.store.orders.create_order(ORDER)
        self.assertEqual(len(self.adapter.calls_to("POST", "/api/orders")), 3)

    def test_mutation_does_not_retry_client_errors(self):
        self.adapter.add("POST", "/api/orders", (422, {"message": "Invalid order"}))
        with self.assertRaises(ApiError):
            self.store.orders.create_order(ORDER)
        self.assertEqual(len(self.adapter.calls_to("POST", "/api/orders")), 1)

    def test_paging_params_sent(self):
        self.adapter.add("GET", "/api/products", ok({"content": [], "totalElements": 0}))
        self.store.products.get_products()
        (call,) = self.adapter.calls_to("GET", "/api/products")
        self.assertEqual(
            query_of(call),
            {"page": "0", "size": "12", "sortBy": "createdAt", "sortDir": "desc"},
        )


if __name__ == "__main__":
    unittest.main()
