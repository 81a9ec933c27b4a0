# storefront/utils/retry.py
from tenacity import retry, retry_base, stop_after_attempt, wait_exponential, retry_if_exception_type
import redis

from storefront.domain.errors import (
    NetworkError,
    RateLimitedError,
    RequestTimeoutError,
    ServerError,
)
from storefront.utils.settings import RETRY_WAIT_MULTIPLIER, RETRY_WAIT_MAX


class retry_if_retryable(retry_base):
    """
    Decyzja o ponowieniu na podstawie typu bledu i numeru proby.
    Bledy 4xx (poza 408/429) nigdy nie sa ponawiane.
    """

    def __init__(self, transient_retries: int, throttled_retries: int):
        self.transient_retries = transient_retries
        self.throttled_retries = throttled_retries

    def __call__(self, retry_state) -> bool:
        if not retry_state.outcome.failed:
            return False

        exc = retry_state.outcome.exception()
        attempt = retry_state.attempt_number

        # 408 / 429
        if isinstance(exc, (RequestTimeoutError, RateLimitedError)):
            return attempt <= self.throttled_retries
        # brak sieci / 5xx
        if isinstance(exc, (NetworkError, ServerError)):
            return attempt <= self.transient_retries
        return False


def default_wait():
    return wait_exponential(
        multiplier=RETRY_WAIT_MULTIPLIER,
        min=RETRY_WAIT_MULTIPLIER,
        max=RETRY_WAIT_MAX,
    )


def query_retry(wait=None):
    # odczyty: 3 ponowienia dla sieci/5xx, 2 dla 408/429
    return retry(
        reraise=True,
        stop=stop_after_attempt(4),
        wait=wait or default_wait(),
        retry=retry_if_retryable(transient_retries=3, throttled_retries=2),
    )


def mutation_retry(wait=None):
    # zapisy: maksymalnie 2 dodatkowe proby
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait or default_wait(),
        retry=retry_if_retryable(transient_retries=2, throttled_retries=2),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )
