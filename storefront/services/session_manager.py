# storefront/services/session_manager.py
import threading
from concurrent.futures import Future
from enum import Enum
from typing import Callable, Optional

import requests

from storefront.domain.errors import (
    AccessDeniedError,
    AuthenticationError,
    SessionExpiredError,
    StorefrontError,
)
from storefront.domain.schemas import AuthResult, Role, SessionRecord, UserSummary
from storefront.repos.session_repo import SessionRepo
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class SessionState(str, Enum):
    ANONYMOUS = "ANONYMOUS"
    AUTHENTICATED = "AUTHENTICATED"
    REFRESHING = "REFRESHING"
    EXPIRED = "EXPIRED"


class SessionTokenManager:
    """
    Wlasciciel tokenu sesji.

    - dolacza token do zapytan (auth_header, domyslny naglowek http)
    - odnawia token po 401: jedno odswiezenie w locie wspoldzielone
      przez wszystkie rownolegle zapytania (Future)
    - nieudane odswiezenie = wymuszone wylogowanie + on_expired (przejscie do logowania)
    """

    def __init__(
        self,
        repo: SessionRepo,
        notifier: NotificationService,
        http: requests.Session | None = None,
        on_expired: Callable[[], None] | None = None,
    ):
        self.repo = repo
        self.notifier = notifier
        self.http = http
        self.on_expired = on_expired
        # ustawiany przez AuthService: token -> AuthResult
        self.refresher: Callable[[str], AuthResult] | None = None

        self._lock = threading.Lock()
        self._inflight: Future | None = None
        self._token: Optional[str] = None
        self._user: Optional[UserSummary] = None
        self.state = SessionState.ANONYMOUS

        record = self.repo.load()
        if record.is_authenticated:
            self._token = record.token
            self._user = record.user
            self.state = SessionState.AUTHENTICATED
            self._set_default_header(record.token)
            logger.info(f"Przywrocono sesje uzytkownika {record.user.email}")

    # =====================================================
    # QUERY
    # =====================================================
    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[UserSummary]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None and self.state in (
            SessionState.AUTHENTICATED,
            SessionState.REFRESHING,
        )

    def auth_header(self, token: Optional[str] = None) -> dict:
        """Naglowek Authorization dla podanego tokenu, domyslnie biezacego."""
        token = token or self._token
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def has_role(self, role: Role) -> bool:
        return self._user is not None and self._user.role == role

    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)

    def is_customer(self) -> bool:
        return self.has_role(Role.CUSTOMER)

    def require_authenticated(self) -> None:
        if not self.is_authenticated:
            raise AuthenticationError("Please log in to continue")

    def require_admin(self) -> None:
        self.require_authenticated()
        if not self.is_admin():
            raise AccessDeniedError()

    # =====================================================
    # COMMANDS
    # =====================================================
    def start(self, auth: AuthResult) -> None:
        """Nowa sesja po login/register."""
        with self._lock:
            self._apply(auth)
        logger.info(f"Sesja rozpoczeta dla {auth.email} ({auth.role.value})")

    def renew(self, failed_token: Optional[str]) -> str:
        """
        Zwraca token do ponowienia zapytania, ktore dostalo 401 z failed_token.
        Rzuca SessionExpiredError gdy odnowienie sie nie udalo.
        """
        with self._lock:
            if self._token is None:
                raise SessionExpiredError()

            # ktos juz odnowil token w miedzyczasie
            if self.state == SessionState.AUTHENTICATED and self._token != failed_token:
                logger.debug("Token juz odnowiony - ponawiam z aktualnym")
                return self._token

            if self._inflight is None:
                future: Future = Future()
                self._inflight = future
                self.state = SessionState.REFRESHING
                owner = True
            else:
                future = self._inflight
                owner = False

        if owner:
            self._refresh(future)
        else:
            logger.debug("Czekam na odswiezenie tokenu w toku")

        return future.result()

    def _refresh(self, future: Future) -> None:
        current = self._token
        logger.info("Odswiezanie tokenu sesji")
        try:
            if self.refresher is None:
                raise SessionExpiredError()
            result = self.refresher(current)
        except StorefrontError as e:
            logger.warning(f"Odswiezenie tokenu nieudane: {e.message}")
            # _inflight czyszczony razem z tokenem - po tym renew() widzi juz EXPIRED
            self.expire()
            future.set_exception(SessionExpiredError())
            return
        except BaseException as e:
            with self._lock:
                self._inflight = None
                self.state = SessionState.AUTHENTICATED
            future.set_exception(e)
            raise

        with self._lock:
            self._apply(result)
            self._inflight = None
        logger.info("Token sesji odswiezony")
        future.set_result(result.token)

    def expire(self) -> bool:
        """
        Wymuszone wylogowanie po nieudanym odnowieniu.
        Tylko pierwsze wywolanie dla danej sesji powiadamia i wola on_expired.
        """
        with self._lock:
            if self._token is None:
                return False
            self._clear(SessionState.EXPIRED)

        logger.warning("Sesja wygasla - wymuszone wylogowanie")
        self.notifier.error("Session expired. Please login again.")
        if self.on_expired is not None:
            self.on_expired()
        return True

    def logout(self, forced: bool = False) -> None:
        """Czysci token w pamieci, w storage i domyslny naglowek Authorization."""
        if forced:
            self.expire()
            return

        with self._lock:
            self._clear(SessionState.ANONYMOUS)
        logger.info("Wylogowano")

    # wywolywane pod lockiem
    def _clear(self, state: SessionState) -> None:
        self._token = None
        self._user = None
        self._inflight = None
        self.state = state
        self.repo.clear()
        self._set_default_header(None)

    def _apply(self, auth: AuthResult) -> None:
        self._token = auth.token
        self._user = auth.user
        self.state = SessionState.AUTHENTICATED
        self.repo.save(
            SessionRecord(user=auth.user, token=auth.token, is_authenticated=True)
        )
        self._set_default_header(auth.token)

    def _set_default_header(self, token: Optional[str]) -> None:
        if self.http is None:
            return
        if token:
            self.http.headers.update(self.auth_header(token))
        else:
            self.http.headers.pop("Authorization", None)
