import json
import threading
import time
import unittest

import requests
from fakes import auth_result

from storefront.data.storage import MemoryStorage
from storefront.domain.errors import (
    AccessDeniedError,
    ApiError,
    AuthenticationError,
    SessionExpiredError,
)
from storefront.domain.schemas import Role
from storefront.repos.session_repo import SessionRepo
from storefront.services.notification_service import NotificationService
from storefront.services.session_manager import SessionState, SessionTokenManager
from storefront.utils.settings import SESSION_STORAGE_KEY


class SessionTokenManagerTestCase(unittest.TestCase):
    def setUp(self):
        self.storage = MemoryStorage()
        self.notifier = NotificationService()
        self.http = requests.Session()
        self.expired_calls = 0
        self.manager = self.make_manager()

    def make_manager(self):
        def on_expired():
            self.expired_calls += 1

        return SessionTokenManager(
            SessionRepo(self.storage),
            self.notifier,
            http=self.http,
            on_expired=on_expired,
        )

    # ---------- Start / rehydrate ----------

    def test_start_persists_session(self):
        self.manager.start(auth_result("t-1"))

        self.assertTrue(self.manager.is_authenticated)
        self.assertEqual(self.manager.state, SessionState.AUTHENTICATED)
        self.assertEqual(self.manager.auth_header(), {"Authorization": "Bearer t-1"})
        self.assertEqual(self.http.headers["Authorization"], "Bearer t-1")

        record = json.loads(self.storage.get(SESSION_STORAGE_KEY))
        self.assertEqual(record["token"], "t-1")
        self.assertTrue(record["isAuthenticated"])
        self.assertEqual(record["user"]["fullName"], "Jan Kowalski")

    def test_rehydrates_from_storage(self):
        self.manager.start(auth_result("t-1"))

        restored = self.make_manager()
        self.assertTrue(restored.is_authenticated)
        self.assertEqual(restored.token, "t-1")
        self.assertEqual(restored.user.email, "jan@example.com")

    def test_corrupt_record_is_anonymous(self):
        for raw in ("{{{", json.dumps({"isAuthenticated": True, "token": None})):
            self.storage.set(SESSION_STORAGE_KEY, raw)
            manager = self.make_manager()
            self.assertFalse(manager.is_authenticated)
            self.assertEqual(manager.state, SessionState.ANONYMOUS)

    # ---------- Logout ----------

    def test_logout_clears_everything(self):
        self.manager.start(auth_result("t-1"))
        self.manager.logout()

        self.assertIsNone(self.manager.token)
        self.assertIsNone(self.manager.user)
        self.assertEqual(self.manager.state, SessionState.ANONYMOUS)
        self.assertIsNone(self.storage.get(SESSION_STORAGE_KEY))
        self.assertNotIn("Authorization", self.http.headers)
        self.assertEqual(self.expired_calls, 0)

    def test_forced_logout_notifies_and_redirects(self):
        self.manager.start(auth_result("t-1"))
        self.manager.logout(forced=True)

        self.assertEqual(self.manager.state, SessionState.EXPIRED)
        self.assertEqual(self.expired_calls, 1)
        self.assertEqual(
            self.notifier.history[-1].message,
            "Session expired. Please login again.",
        )

    # ---------- Renewal ----------

    def test_renew_applies_new_token(self):
        self.manager.start(auth_result("old"))
        self.manager.refresher = lambda token: auth_result("new")

        self.assertEqual(self.manager.renew("old"), "new")
        self.assertEqual(self.manager.token, "new")
        self.assertEqual(self.http.headers["Authorization"], "Bearer new")
        self.assertEqual(json.loads(self.storage.get(SESSION_STORAGE_KEY))["token"], "new")

    def test_renew_after_token_changed_skips_refresh(self):
        self.manager.start(auth_result("new"))
        calls = []
        self.manager.refresher = lambda token: calls.append(token)

        self.assertEqual(self.manager.renew("old"), "new")
        self.assertEqual(calls, [])

    def test_concurrent_renewals_share_one_refresh(self):
        self.manager.start(auth_result("old"))
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_refresh(token):
            calls.append(token)
            started.set()
            release.wait(5)
            return auth_result("new")

        self.manager.refresher = slow_refresh
        results = []

        def worker():
            results.append(self.manager.renew("old"))

        first = threading.Thread(target=worker)
        first.start()
        self.assertTrue(started.wait(5))
        self.assertEqual(self.manager.state, SessionState.REFRESHING)

        others = [threading.Thread(target=worker) for _ in range(3)]
        for t in others:
            t.start()
        time.sleep(0.05)
        release.set()
        for t in [first, *others]:
            t.join(5)

        self.assertEqual(results, ["new"] * 4)
        self.assertEqual(calls, ["old"])

    def test_failed_refresh_expires_session(self):
        self.manager.start(auth_result("old"))

        def rejected(token):
            raise AuthenticationError("Invalid or expired token")

        self.manager.refresher = rejected

        with self.assertRaises(SessionExpiredError):
            self.manager.renew("old")

        self.assertEqual(self.manager.state, SessionState.EXPIRED)
        self.assertIsNone(self.manager.token)
        self.assertIsNone(self.storage.get(SESSION_STORAGE_KEY))
        self.assertEqual(self.expired_calls, 1)

    def test_renew_during_failed_refresh_teardown(self):
        self.manager.start(auth_result("old"))
        calls = []

        def rejected(token):
            calls.append(token)
            raise AuthenticationError("Invalid or expired token")

        self.manager.refresher = rejected
        late_results = []
        late_threads = []

        def late_renew():
            try:
                late_results.append(self.manager.renew("old"))
            except SessionExpiredError:
                late_results.append("expired")

        clear_record = self.storage.delete

        def delete_while_second_401_arrives(key):
            # drugie 401 przychodzi w trakcie czyszczenia sesji
            t = threading.Thread(target=late_renew)
            t.start()
            late_threads.append(t)
            time.sleep(0.05)
            clear_record(key)

        self.storage.delete = delete_while_second_401_arrives

        with self.assertRaises(SessionExpiredError):
            self.manager.renew("old")
        for t in late_threads:
            t.join(5)

        self.assertEqual(calls, ["old"])
        self.assertEqual(late_results, ["expired"])
        self.assertEqual(self.expired_calls, 1)
        self.assertEqual(
            [n.message for n in self.notifier.history],
            ["Session expired. Please login again."],
        )

    def test_concurrent_waiters_share_failed_refresh(self):
        self.manager.start(auth_result("old"))
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_rejection(token):
            calls.append(token)
            started.set()
            release.wait(5)
            raise AuthenticationError("Invalid or expired token")

        self.manager.refresher = slow_rejection
        results = []

        def worker():
            try:
                results.append(self.manager.renew("old"))
            except SessionExpiredError:
                results.append("expired")

        threads = [threading.Thread(target=worker) for _ in range(3)]
        threads[0].start()
        self.assertTrue(started.wait(5))
        for t in threads[1:]:
            t.start()
        time.sleep(0.05)
        release.set()
        for t in threads:
            t.join(5)

        self.assertEqual(results, ["expired"] * 3)
        self.assertEqual(calls, ["old"])
        self.assertEqual(self.expired_calls, 1)

    def test_expire_runs_once(self):
        self.manager.start(auth_result("old"))

        self.assertTrue(self.manager.expire())
        self.assertFalse(self.manager.expire())
        self.manager.logout(forced=True)

        self.assertEqual(self.expired_calls, 1)
        self.assertEqual(len(self.notifier.history), 1)

    def test_auth_header_for_given_token(self):
        self.assertEqual(self.manager.auth_header(), {})
        self.manager.start(auth_result("t-1"))
        self.assertEqual(self.manager.auth_header("t-2"), {"Authorization": "Bearer t-2"})

    def test_renew_without_session(self):
        with self.assertRaises(SessionExpiredError):
            self.manager.renew(None)

    def test_unexpected_refresh_error_keeps_session(self):
        self.manager.start(auth_result("old"))

        def broken(token):
            raise RuntimeError("bug")

        self.manager.refresher = broken

        with self.assertRaises(RuntimeError):
            self.manager.renew("old")
        self.assertEqual(self.manager.token, "old")
        self.assertEqual(self.manager.state, SessionState.AUTHENTICATED)

    def test_refresh_api_error_is_session_expiry(self):
        self.manager.start(auth_result("old"))

        def server_down(token):
            raise ApiError("Service unavailable", 503)

        self.manager.refresher = server_down
        with self.assertRaises(SessionExpiredError):
            self.manager.renew("old")

    # ---------- Roles ----------

    def test_role_gating(self):
        with self.assertRaises(AuthenticationError):
            self.manager.require_authenticated()

        self.manager.start(auth_result(role=Role.CUSTOMER))
        self.assertTrue(self.manager.is_customer())
        self.manager.require_authenticated()
        with self.assertRaises(AccessDeniedError):
            self.manager.require_admin()

        self.manager.start(auth_result(role=Role.ADMIN))
        self.assertTrue(self.manager.is_admin())
        self.manager.require_admin()


if __name__ == "__main__":
    unittest.main()
