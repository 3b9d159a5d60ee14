"""
Storefront ranking facade: query, rate, format.
"""
import logging
import time
from typing import Dict, Any, List, Optional

from catalog.config import config
from catalog.errors import PersistenceError
from catalog.logger import logger as default_logger
from catalog.ranking.formatter import ProductFormatter
from catalog.ranking.query import ProductQueryService
from catalog.ranking.scoring import ScoreGenerator


class RankingFacade:

    def __init__(self, query_service: ProductQueryService,
                 score_generator: Optional[ScoreGenerator] = None,
                 formatter: Optional[ProductFormatter] = None,
                 logger: Optional[logging.Logger] = None):
        self.query_service = query_service
        self.score_generator = score_generator or ScoreGenerator()
        self.formatter = formatter or ProductFormatter()
        self.logger = logger or default_logger
        self.stats = {
            "products_queried": 0,
            "products_processed": 0,
            "products_with_complete_data": 0,
            "processing_time": 0
        }

    async def get_top_products_for_display(self, category: Optional[str] = None,
                                           limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Ranked, formatted products for the storefront.

        Positions are 1-based and contiguous over the products that were
        formatted successfully.
        """
        started = time.perf_counter()
        self.stats["products_processed"] = 0

        if category:
            products = await self.query_service.get_products_by_category(category, limit)
        else:
            products = await self.query_service.get_top_ranked_products(limit)
        self.stats["products_queried"] = len(products)

        formatted = []
        for product in products:
            position = len(formatted) + 1
            try:
                rating = self.score_generator.generate_product_rating(position, product)
                badge = self.score_generator.generate_special_badge(position)
                if badge:
                    rating["special_badge"] = badge

                formatted.append(self.formatter.format_product_for_display(product, position, rating))
                self.stats["products_processed"] += 1
            except (ValueError, TypeError, AttributeError, ArithmeticError) as e:
                self.logger.error(
                    "Error formatting storefront product",
                    extra={"context": {"asin": product.asin, "position": position, "error": str(e)}}
                )

        self.stats["products_with_complete_data"] = len(formatted)
        self.stats["processing_time"] = round((time.perf_counter() - started) * 1000, 2)

        self.logger.info("Ranking generated", extra={"context": {"stats": self.stats, "category": category}})
        return formatted

    async def get_all_products_for_display(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.get_top_products_for_display(category, None)

    async def get_soundbar_ranking(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return await self.get_top_products_for_display(config.RANKING_CATEGORY, limit)

    async def get_all_soundbar_products(self) -> List[Dict[str, Any]]:
        return await self.get_soundbar_ranking(None)

    def get_ranking_stats(self) -> Dict[str, Any]:
        return dict(self.stats)

    async def has_available_products(self, category: Optional[str] = None) -> bool:
        try:
            if category:
                products = await self.query_service.get_products_by_category(category, 1)
            else:
                products = await self.query_service.get_top_ranked_products(1)
        except PersistenceError as e:
            self.logger.error("Error checking available products", extra={"context": {"error": str(e)}})
            return False
        return bool(products)

    async def get_product_count(self, category: Optional[str] = None) -> int:
        try:
            if category:
                products = await self.query_service.get_all_products_by_category(category)
            else:
                products = await self.query_service.get_all_top_ranked_products()
        except PersistenceError as e:
            self.logger.error("Error counting products", extra={"context": {"error": str(e)}})
            return 0
        return len(products)
