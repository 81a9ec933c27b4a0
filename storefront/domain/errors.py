# storefront/domain/errors.py
from typing import Dict


class StorefrontError(Exception):
    """Bazowy wyjatek klienta - message jest czytelny dla uzytkownika."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# walidacja (do naprawienia przez uzytkownika, nie rusza sesji)
class CartValidationError(StorefrontError):
    pass


class CheckoutFormError(StorefrontError):
    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(errors.values()))
        self.errors = errors


# autoryzacja
class AuthenticationError(StorefrontError):
    pass


class SessionExpiredError(AuthenticationError):
    def __init__(self, message: str = "Session expired. Please login again."):
        super().__init__(message)


class AccessDeniedError(StorefrontError):
    def __init__(
        self,
        message: str = "Access denied. You do not have permission to perform this action.",
    ):
        super().__init__(message)


# odpowiedzi HTTP
class ApiError(StorefrontError):
    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class NotFoundError(ApiError):
    def __init__(self, message: str = "Resource not found."):
        super().__init__(message, status=404)


class NetworkError(ApiError):
    def __init__(self, message: str = "Network error. Please check your connection."):
        super().__init__(message, status=None)


class RequestTimeoutError(ApiError):
    def __init__(self, message: str = "Request timeout. Please try again."):
        super().__init__(message, status=408)


class RateLimitedError(ApiError):
    def __init__(self, message: str = "Too many requests. Please try again later."):
        super().__init__(message, status=429)


class ServerError(ApiError):
    def __init__(
        self,
        message: str = "Internal server error. Please try again later.",
        status: int = 500,
    ):
        super().__init__(message, status=status)
