# storefront/data/redis_storage.py
from typing import Optional

import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class RedisStorage:
    """
    Rekordy jako zwykle klucze redis (bez TTL).
    Prefiks oddziela klucze klienta od innych danych w tej samej bazie.
    """

    def __init__(self, url: str | None = None, prefix: str = "storefront:", client=None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    @redis_retry()
    def get(self, key: str) -> Optional[str]:
        return self.redis.get(self._key(key))

    @redis_retry()
    def set(self, key: str, value: str) -> None:
        logger.debug(f"Redis SET {self._key(key)}")
        self.redis.set(name=self._key(key), value=value)

    @redis_retry()
    def delete(self, key: str) -> None:
        logger.debug(f"Redis DEL {self._key(key)}")
        self.redis.delete(self._key(key))
