"""
Storefront product queries.
"""
import logging
from typing import List, Optional

from catalog.logger import logger as default_logger
from catalog.models.entities import Product
from catalog.storage.repository import BaseProductRepository


def best_active_rank(product: Product) -> int:
    ranks = [ranking.sales_rank for ranking in product.active_rankings()]
    return min(ranks) if ranks else 0


class ProductQueryService:
    """Selects active, complete products ordered by best sales rank."""

    def __init__(self, repository: BaseProductRepository, logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.logger = logger or default_logger

    async def get_products_by_category(self, category_name: str, limit: Optional[int] = None) -> List[Product]:
        needle = category_name.casefold()
        products = [
            product for product in await self._ranked_products()
            if any(needle in ranking.category_name.casefold() for ranking in product.active_rankings())
        ]
        return self._finish(products, limit, category=category_name)

    async def get_top_ranked_products(self, limit: Optional[int] = None) -> List[Product]:
        return self._finish(await self._ranked_products(), limit)

    async def get_all_products_by_category(self, category_name: str) -> List[Product]:
        return await self.get_products_by_category(category_name, None)

    async def get_all_top_ranked_products(self) -> List[Product]:
        return await self.get_top_ranked_products(None)

    def has_complete_data(self, product: Product) -> bool:
        """Active image with URL, active price above zero, active ranking and basic fields."""
        has_image = any(image.url for image in product.active_images())
        has_price = any(price.amount > 0 for price in product.active_prices())
        has_ranking = bool(product.active_rankings())
        has_basic_data = bool(product.title and product.brand and product.amazon_url)

        return has_image and has_price and has_ranking and has_basic_data

    async def _ranked_products(self) -> List[Product]:
        products = [p for p in await self.repository.find_all(only_active=True) if p.active_rankings()]
        # Best rank first, newest first on ties
        products.sort(key=lambda p: p.created_at, reverse=True)
        products.sort(key=best_active_rank)
        return products

    def _finish(self, products: List[Product], limit: Optional[int], category: Optional[str] = None) -> List[Product]:
        complete = [p for p in products if self.has_complete_data(p)]

        unique = []
        seen = set()
        for product in complete:
            if product.asin not in seen:
                unique.append(product)
                seen.add(product.asin)

        self.logger.info(
            "Storefront products selected",
            extra={"context": {
                "category": category,
                "total_found": len(products),
                "complete_data": len(unique),
                "limit": limit
            }}
        )

        if limit is not None and limit > 0:
            return unique[:limit]
        return unique
