# storefront/services/product_client.py
from decimal import Decimal
from typing import List

from storefront.domain.errors import NotFoundError
from storefront.domain.schemas import Page, PageParams, Product
from storefront.services.api_client import ApiClient, parse
from storefront.utils.settings import DEFAULT_PAGE_SIZE
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = "/api/products"


class ProductClient:
    """Odczyty katalogu - wszystkie stronicowane (page, size, sortBy, sortDir)."""

    def __init__(self, api: ApiClient):
        self.api = api

    def get_products(self, params: PageParams | None = None) -> Page[Product]:
        params = params or PageParams(
            size=DEFAULT_PAGE_SIZE, sort_by="createdAt", sort_dir="desc"
        )
        return self._page(PRODUCTS, params)

    def get_product(self, product_id: str) -> Product:
        logger.info(f"Pobieranie produktu {product_id}")
        data = self.api.get(f"{PRODUCTS}/{product_id}")
        return parse(Product, data)

    def search_products(self, search_term: str, params: PageParams | None = None) -> Page[Product]:
        return self._page(f"{PRODUCTS}/search", params, searchTerm=search_term)

    def get_products_by_price_range(
        self,
        min_price: Decimal,
        max_price: Decimal,
        params: PageParams | None = None,
    ) -> Page[Product]:
        if min_price > max_price:
            raise ValueError("min_price nie moze byc wieksze niz max_price")
        return self._page(
            f"{PRODUCTS}/price-range",
            params,
            minPrice=str(min_price),
            maxPrice=str(max_price),
        )

    def get_top_rated_products(self, params: PageParams | None = None) -> Page[Product]:
        return self._page(f"{PRODUCTS}/top-rated", params)

    def get_recent_products(self, params: PageParams | None = None) -> Page[Product]:
        return self._page(f"{PRODUCTS}/recent", params)

    def get_most_reviewed_products(self, params: PageParams | None = None) -> Page[Product]:
        return self._page(f"{PRODUCTS}/most-reviewed", params)

    def get_in_stock_products(self, params: PageParams | None = None) -> Page[Product]:
        return self._page(f"{PRODUCTS}/in-stock", params)

    def fetch_catalog(self, product_ids: List[str]) -> List[Product]:
        """
        Snapshot produktow z koszyka do rekoncyliacji stanu.
        Produkt ktorego juz nie ma (404) po prostu nie trafia do snapshotu.
        """
        catalog: List[Product] = []
        for product_id in product_ids:
            try:
                catalog.append(self.get_product(product_id))
            except NotFoundError:
                logger.info(f"Produkt {product_id} nie istnieje w katalogu")
        return catalog

    def _page(self, path: str, params: PageParams | None, **extra) -> Page[Product]:
        params = params or PageParams(size=DEFAULT_PAGE_SIZE)
        query = {**params.to_query(), **extra}
        data = self.api.get(path, params=query)
        return parse(Page[Product], data)
