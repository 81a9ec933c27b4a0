# storefront/services/auth_service.py
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import AuthResult, RegisterRequest
from storefront.services.api_client import ApiClient, parse
from storefront.services.notification_service import NotificationService
from storefront.services.session_manager import SessionTokenManager
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

AUTH_PREFIX = "/api/auth"
UNEXPECTED_AUTH_RESPONSE = "Unexpected authentication response"


class AuthService:
    """
    Use case'y uwierzytelniania: login, rejestracja, odswiezenie, walidacja, wylogowanie.
    Rejestruje sie w SessionTokenManager jako refresher tokenu.
    """

    def __init__(
        self,
        api: ApiClient,
        session_manager: SessionTokenManager,
        notifier: NotificationService,
    ):
        self.api = api
        self.session_manager = session_manager
        self.notifier = notifier
        self.session_manager.refresher = self._refresh_call

    def login(self, email: str, password: str) -> AuthResult:
        try:
            data = self.api.post(
                f"{AUTH_PREFIX}/login",
                json={"email": email, "password": password},
                authenticated=False,
            )
            result = parse(AuthResult, data, UNEXPECTED_AUTH_RESPONSE)
        except StorefrontError as e:
            message = e.message or "Login failed"
            self.notifier.error(message)
            raise

        self.session_manager.start(result)
        self.notifier.success("Login successful!")
        return result

    def register(self, profile: RegisterRequest) -> AuthResult:
        try:
            data = self.api.post(
                f"{AUTH_PREFIX}/register",
                json=profile.to_wire(),
                authenticated=False,
            )
            result = parse(AuthResult, data, UNEXPECTED_AUTH_RESPONSE)
        except StorefrontError as e:
            message = e.message or "Registration failed"
            self.notifier.error(message)
            raise

        self.session_manager.start(result)
        self.notifier.success("Registration successful!")
        return result

    def refresh(self) -> bool:
        """Jawne odswiezenie tokenu, False gdy brak sesji lub odnowienie nieudane."""
        token = self.session_manager.token
        if not token:
            return False
        try:
            self.session_manager.renew(token)
        except StorefrontError:
            return False
        return True

    def validate(self) -> bool:
        if not self.session_manager.token:
            return False
        try:
            data = self.api.post(f"{AUTH_PREFIX}/validate", renew_on_401=False)
        except StorefrontError as e:
            logger.info(f"Walidacja tokenu nieudana: {e.message}")
            return False
        return data is True

    def initialize(self) -> bool:
        """Przy starcie: sprawdz przywrocony token, nieprawidlowy = wylogowanie."""
        if not self.session_manager.token:
            return False
        if self.validate():
            return True
        logger.info("Przywrocony token jest nieprawidlowy - wylogowuje")
        self.session_manager.logout()
        return False

    def logout(self) -> None:
        if self.session_manager.token:
            try:
                self.api.post(f"{AUTH_PREFIX}/logout", renew_on_401=False)
            except StorefrontError as e:
                # serwer i tak jest bezstanowy - token czyscimy lokalnie
                logger.warning(f"Logout na serwerze nieudany: {e.message}")
        self.session_manager.logout()
        self.notifier.success("Logged out successfully!")

    # wywolywane przez SessionTokenManager.renew
    def _refresh_call(self, token: str) -> AuthResult:
        data = self.api.post(f"{AUTH_PREFIX}/refresh", renew_on_401=False)
        return parse(AuthResult, data, UNEXPECTED_AUTH_RESPONSE)
