# storefront/services/api_client.py
from dataclasses import dataclass
from typing import Any, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from storefront.domain.errors import (
    AccessDeniedError,
    ApiError,
    AuthenticationError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    RequestTimeoutError,
    ServerError,
    SessionExpiredError,
)
from storefront.services.session_manager import SessionTokenManager
from storefront.utils.retry import mutation_retry, query_retry
from storefront.utils.settings import API_BASE_URL, API_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def parse(model: Type[M], data: Any, message: str = "Unexpected response from server") -> M:
    """Rekord z odpowiedzi API, nieprawidlowy ksztalt = ApiError zamiast ValidationError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Nieprawidlowa odpowiedz ({model.__name__}): {e.error_count()} bledow")
        raise ApiError(message)


@dataclass
class RequestSpec:
    method: str
    path: str
    params: Optional[dict] = None
    json: Any = None
    authenticated: bool = True
    renew_on_401: bool = True
    # licznik odnowien tokenu dla tego zapytania, max MAX_RENEWALS
    renewals: int = 0


class ApiClient:
    """
    Klient REST API sklepu.

    Odczyty (get) i zapisy (post/put/delete) maja osobne polityki retry.
    401 na zapytaniu z tokenem -> jedno odnowienie i jedno ponowienie.
    """

    MAX_RENEWALS = 1

    def __init__(
        self,
        session_manager: SessionTokenManager | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        http: requests.Session | None = None,
        retry_wait=None,
    ):
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.timeout = timeout or API_TIMEOUT_SECONDS
        self.http = http or requests.Session()
        self.http.headers.update(
            {"Content-Type": "application/json", "Accept": "application/json"}
        )
        self.session_manager = session_manager
        self.retry_wait = retry_wait

    # =====================================================
    # QUERY
    # =====================================================
    def get(self, path: str, params: dict | None = None, authenticated: bool = True) -> Any:
        spec = RequestSpec("GET", path, params=params, authenticated=authenticated)
        return query_retry(self.retry_wait)(self._execute)(spec)

    # =====================================================
    # COMMANDS
    # =====================================================
    def post(
        self,
        path: str,
        json: Any = None,
        params: dict | None = None,
        authenticated: bool = True,
        renew_on_401: bool = True,
    ) -> Any:
        spec = RequestSpec(
            "POST",
            path,
            params=params,
            json=json,
            authenticated=authenticated,
            renew_on_401=renew_on_401,
        )
        return mutation_retry(self.retry_wait)(self._execute)(spec)

    def put(self, path: str, json: Any = None, params: dict | None = None) -> Any:
        spec = RequestSpec("PUT", path, params=params, json=json)
        return mutation_retry(self.retry_wait)(self._execute)(spec)

    def delete(self, path: str, params: dict | None = None) -> Any:
        spec = RequestSpec("DELETE", path, params=params)
        return mutation_retry(self.retry_wait)(self._execute)(spec)

    # =====================================================
    # INTERNALS
    # =====================================================
    def _execute(self, spec: RequestSpec) -> Any:
        token = None
        if spec.authenticated and self.session_manager is not None:
            token = self.session_manager.token

        while True:
            resp = self._send(spec, token)

            if resp.status_code == 401 and token and spec.renew_on_401:
                if spec.renewals >= self.MAX_RENEWALS:
                    # odnowiony token tez odrzucony
                    logger.warning(f"401 po odnowieniu tokenu: {spec.method} {spec.path}")
                    # rownolegle zapytania moga tu trafic kilka razy, expire() dziala raz
                    self.session_manager.expire()
                    raise SessionExpiredError()

                spec.renewals += 1
                token = self.session_manager.renew(token)
                logger.info(f"Ponawiam {spec.method} {spec.path} z odnowionym tokenem")
                continue

            return self._handle(resp)

    def _send(self, spec: RequestSpec, token: str | None) -> requests.Response:
        url = f"{self.base_url}{spec.path}"
        headers = self.session_manager.auth_header(token) if token else {}
        logger.info(f"ApiClient {spec.method} {url}")

        try:
            return self.http.request(
                spec.method,
                url,
                params=spec.params,
                json=spec.json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.warning(f"Timeout {spec.method} {url}: {e}")
            raise RequestTimeoutError()
        except requests.RequestException as e:
            logger.warning(f"Blad sieci {spec.method} {url}: {e}")
            raise NetworkError()

    def _handle(self, resp: requests.Response) -> Any:
        status = resp.status_code
        body = self._json(resp)

        if 200 <= status < 300:
            if isinstance(body, dict) and body.get("success") is False:
                raise ApiError(body.get("message") or "Request failed", status)
            return self._unwrap(body)

        message = self._message(body)
        logger.warning(f"HTTP {status}: {message}")

        if status == 401:
            raise AuthenticationError(message or "Please log in to continue")
        if status == 403:
            raise AccessDeniedError()
        if status == 404:
            raise NotFoundError()
        if status == 408:
            raise RequestTimeoutError()
        if status == 429:
            raise RateLimitedError()
        if status >= 500:
            raise ServerError(status=status)
        raise ApiError(message or "An unexpected error occurred", status)

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    @staticmethod
    def _unwrap(body: Any) -> Any:
        # koperta {success, message, data}
        if isinstance(body, dict) and "data" in body and ("success" in body or "message" in body):
            return body["data"]
        return body

    @staticmethod
    def _message(body: Any) -> Optional[str]:
        if isinstance(body, dict):
            return body.get("message") or body.get("error")
        return None
