"""
Imports an Amazon search-result document into product storage.
"""
import json
import logging
from typing import Dict, Any, Optional, List

from catalog.errors import AmazonImportError, DataValidationError
from catalog.logger import logger as default_logger
from catalog.models.entities import Product, ProductImage, ProductPrice, ProductRanking
from catalog.models.product import ProductData, ImageData, PriceData, RankingData
from catalog.models.results import ImportResult
from catalog.processors.amazon import AmazonDataProcessor
from catalog.sentry import capture_validation_error
from catalog.storage.repository import BaseProductRepository
from catalog.transformers.amazon import item_asin
from catalog.utils.slug import generate_slug

CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"


def _reject_constant(name: str):
    raise ValueError(f"Non-standard JSON constant: {name}")


class AmazonProductImporter:
    """
    Creates or updates one Product per valid item.

    Per-item failures are collected in the ImportResult. Envelope errors
    raise AmazonImportError before storage is touched. Storage errors
    propagate as PersistenceError. Everything is flushed once, at the end.
    """

    def __init__(self, repository: BaseProductRepository,
                 processor: Optional[AmazonDataProcessor] = None,
                 logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.logger = logger or default_logger
        self.processor = processor or AmazonDataProcessor(logger=self.logger)

    async def import_products(self, json_data: str, force_update: bool = True,
                              limit: Optional[int] = None) -> ImportResult:
        """
        Import every item of SearchResult.Items.

        Args:
            json_data: Raw JSON document
            force_update: Overwrite products whose ASIN already exists
            limit: Only import the first N items

        Returns:
            ImportResult with counters and per-item errors

        Raises:
            AmazonImportError: If the document is not valid JSON or lacks
                a SearchResult.Items list
            PersistenceError: If storage fails
        """
        if limit is not None and limit < 0:
            raise AmazonImportError(f"Limit must be zero or positive, got {limit}")

        data = self.validate_json(json_data)
        items = data["SearchResult"]["Items"]
        if limit is not None:
            items = items[:limit]

        self.logger.info(
            "Starting Amazon product import",
            extra={"context": {"total_items": len(items), "force_update": force_update, "limit": limit}}
        )

        result = ImportResult()
        for item in items:
            result = result.increment_processed()
            asin = item_asin(item)

            try:
                product_data = self.processor.process_item(item)
            except DataValidationError as e:
                result = result.add_error(asin, str(e))
                capture_validation_error(asin, "import", str(e))
                self.logger.error("Error importing product", extra={"context": {"asin": asin, "error": str(e)}})
                continue

            outcome = await self._process_product(product_data, force_update)
            if outcome == SKIPPED:
                result = result.increment_skipped()
                self.logger.debug("Existing product skipped", extra={"context": {"asin": asin}})
                continue

            result = result.increment_imported()
            if outcome == UPDATED:
                result = result.increment_updated()
            self.logger.debug("Product imported", extra={"context": {"asin": asin, "outcome": outcome}})

        await self.repository.flush()

        self.logger.info(
            "Import completed",
            extra={"context": {
                "total_processed": result.total_processed,
                "imported": result.successfully_imported,
                "updated": result.updated,
                "skipped": result.skipped,
                "errors": result.failed
            }}
        )
        return result

    def validate_json(self, json_data: str) -> Dict[str, Any]:
        """
        Parse the document and check the envelope.

        Returns:
            The parsed document

        Raises:
            AmazonImportError: On invalid JSON or a malformed envelope
        """
        try:
            data = json.loads(json_data, parse_constant=_reject_constant)
        except (ValueError, TypeError) as e:
            self.logger.error("Invalid JSON in import", extra={"context": {"error": str(e)}})
            raise AmazonImportError(f"Invalid JSON: {e}") from e

        search_result = data.get("SearchResult") if isinstance(data, dict) else None
        if not isinstance(search_result, dict) or search_result.get("Items") is None:
            raise AmazonImportError("Invalid JSON structure: missing SearchResult.Items")

        if not isinstance(search_result["Items"], list):
            raise AmazonImportError("SearchResult.Items must be a list")

        return data

    async def _process_product(self, product_data: ProductData, force_update: bool) -> str:
        product = await self.repository.find_by_asin(product_data.asin)

        if product is not None and not force_update:
            return SKIPPED

        outcome = UPDATED
        if product is None:
            product = Product(asin=product_data.asin)
            outcome = CREATED

        product.title = product_data.title
        product.brand = product_data.brand
        product.manufacturer = product_data.manufacturer
        product.amazon_url = product_data.detail_page_url
        product.features = list(product_data.features)
        product.source_data = product_data.raw_document

        if not product.slug:
            product.slug = generate_slug(product_data.title)

        self._replace_images(product, product_data.images)
        self._replace_prices(product, product_data.prices)
        self._replace_rankings(product, product_data.rankings)
        product.touch()

        self.repository.persist(product)
        return outcome

    def _replace_images(self, product: Product, images: List[ImageData]):
        for image in product.images:
            self.repository.remove(image)

        product.images = [
            ProductImage(
                url=image.url,
                width=image.width,
                height=image.height,
                type=image.type,
                is_primary=image.is_primary,
                order_position=position,
            )
            for position, image in enumerate(images)
        ]

    def _replace_prices(self, product: Product, prices: List[PriceData]):
        for price in product.prices:
            self.repository.remove(price)

        product.prices = [
            ProductPrice(
                listing_id=price.listing_id,
                amount=price.amount,
                currency=price.currency,
                display_amount=price.display_amount,
                savings_amount=price.savings_amount,
                savings_display=price.savings_display,
                savings_percentage=price.savings_percentage,
                is_free_shipping=price.is_free_shipping,
                violates_map=price.violates_map,
            )
            for price in prices
        ]

    def _replace_rankings(self, product: Product, rankings: List[RankingData]):
        for ranking in product.rankings:
            self.repository.remove(ranking)

        product.rankings = [
            ProductRanking(
                category_id=ranking.category_id,
                category_name=ranking.category_name,
                context_free_name=ranking.context_free_name,
                sales_rank=ranking.sales_rank,
                is_root=ranking.is_root,
            )
            for ranking in rankings
        ]
