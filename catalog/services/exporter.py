"""
Exports stored products as an Amazon search-result document.
"""
import fcntl
import json
import logging
import os
from typing import Dict, Any, Optional, List, Tuple

from catalog.config import config
from catalog.errors import AmazonExportError, ExportPathError, DataValidationError
from catalog.logger import logger as default_logger
from catalog.models.entities import Product
from catalog.models.product import ProductData, ImageData, PriceData, RankingData
from catalog.models.results import ExportResult, ItemError
from catalog.processors.amazon import AmazonDataProcessor
from catalog.sentry import capture_validation_error
from catalog.storage.repository import BaseProductRepository
from catalog.utils.nested import get_nested

SKELETON_CATEGORY_ID = "1000000000"
SKELETON_CATEGORY_NAME = "Electrónica"


class AmazonProductExporter:
    """
    Reads products from storage and writes them back in Amazon shape.

    Products that were never imported get a synthesized skeleton document
    as merge base.
    """

    def __init__(self, repository: BaseProductRepository,
                 processor: Optional[AmazonDataProcessor] = None,
                 logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.logger = logger or default_logger
        self.processor = processor or AmazonDataProcessor(logger=self.logger)

    async def export_products(self, file_path: str, only_active: bool = True) -> ExportResult:
        """
        Export products to file_path.

        Args:
            file_path: Destination JSON file; parent directories are created
            only_active: Skip products flagged inactive

        Returns:
            ExportResult with counters, per-item errors, statistics and path

        Raises:
            ExportPathError: If the destination is not writable
            AmazonExportError: If the document cannot be serialized or written
        """
        self.validate_export_path(file_path)

        self.logger.info(
            "Starting Amazon product export",
            extra={"context": {"file_path": file_path, "only_active": only_active}}
        )

        document, result = await self._build_document(only_active)

        try:
            content = json.dumps(document, indent=4, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise AmazonExportError(f"Error generating JSON: {e}", file_path=file_path) from e

        self._write(file_path, content)

        items = document["SearchResult"]["Items"]
        with_images, with_prices, with_rankings = self.calculate_statistics(items)
        result = result.with_statistics(with_images, with_prices, with_rankings).with_file_path(file_path)

        self.logger.info(
            "Export completed",
            extra={"context": {
                "total_exported": result.total_exported,
                "failed": result.failed,
                "file_path": file_path,
                "file_size": os.path.getsize(file_path)
            }}
        )
        return result

    async def generate_document(self, only_active: bool = True) -> Dict[str, Any]:
        """Build the export envelope without writing it."""
        document, _ = await self._build_document(only_active)
        return document

    def validate_export_path(self, file_path: str) -> bool:
        directory = os.path.dirname(os.path.abspath(file_path))

        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise ExportPathError(f"Could not create directory {directory}: {e}", file_path=file_path) from e

        if not os.access(directory, os.W_OK):
            raise ExportPathError(f"Directory is not writable: {directory}", file_path=file_path)

        if os.path.exists(file_path) and not os.access(file_path, os.W_OK):
            raise ExportPathError(f"File cannot be overwritten: {file_path}", file_path=file_path)

        return True

    def build_envelope(self, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "SearchResult": {
                "Items": items,
                "SearchURL": config.EXPORT_SEARCH_URL,
                "TotalResultCount": len(items)
            }
        }

    def calculate_statistics(self, items: List[Dict[str, Any]]) -> Tuple[int, int, int]:
        """Count items with a primary image URL, a positive price and a sales rank."""
        with_images = 0
        with_prices = 0
        with_rankings = 0

        for item in items:
            if get_nested(item, "Images.Primary.Large.URL"):
                with_images += 1

            amount = get_nested(item, "Offers.Listings.0.Price.Amount")
            if isinstance(amount, (int, float)) and not isinstance(amount, bool) and amount > 0:
                with_prices += 1

            if get_nested(item, "BrowseNodeInfo.BrowseNodes.0.SalesRank") is not None:
                with_rankings += 1

        return with_images, with_prices, with_rankings

    def to_product_data(self, product: Product) -> ProductData:
        """
        Convert an entity to ProductData using only its active children.

        Raises:
            DataValidationError: If the entity lacks required fields
        """
        images = [
            ImageData(
                url=image.url,
                width=image.width,
                height=image.height,
                type=image.type,
                is_primary=image.is_primary,
            )
            for image in product.active_images()
        ]
        prices = [
            PriceData(
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
            for price in product.active_prices()
        ]
        rankings = [
            RankingData(
                category_id=ranking.category_id,
                category_name=ranking.category_name,
                context_free_name=ranking.context_free_name,
                sales_rank=ranking.sales_rank,
                is_root=ranking.is_root,
            )
            for ranking in product.active_rankings()
        ]

        try:
            return ProductData(
                asin=product.asin,
                title=product.title,
                brand=product.brand,
                manufacturer=product.manufacturer,
                detail_page_url=product.amazon_url,
                features=list(product.features),
                images=images,
                prices=prices,
                rankings=rankings,
                raw_document=product.source_data or self.build_skeleton(product),
            )
        except ValueError as e:
            raise DataValidationError(str(e), asin=product.asin) from e

    def build_skeleton(self, product: Product) -> Dict[str, Any]:
        """Minimal source document for products that were never imported."""
        locale = config.CONTENT_LOCALE
        currency = config.DEFAULT_CURRENCY

        return {
            "ASIN": product.asin,
            "DetailPageURL": product.amazon_url,
            "ItemInfo": {
                "Title": {"DisplayValue": product.title, "Label": "Title", "Locale": locale},
                "ByLineInfo": {
                    "Brand": {"DisplayValue": product.brand, "Label": "Brand", "Locale": locale},
                    "Manufacturer": {
                        "DisplayValue": product.manufacturer or product.brand,
                        "Label": "Manufacturer",
                        "Locale": locale
                    }
                },
                "Features": {"DisplayValues": list(product.features), "Label": "Features", "Locale": locale}
            },
            "Images": {
                "Primary": {
                    "Large": {"Height": 500, "URL": "", "Width": 500}
                }
            },
            "Offers": {
                "Listings": [
                    {
                        "Id": "default_listing",
                        "DeliveryInfo": {"IsFreeShippingEligible": True},
                        "Price": {
                            "Amount": 0,
                            "Currency": currency,
                            "DisplayAmount": "0,00 €",
                            "Savings": {
                                "Amount": 0,
                                "Currency": currency,
                                "DisplayAmount": "0,00 € (0%)",
                                "Percentage": 0
                            }
                        },
                        "ViolatesMAP": False
                    }
                ]
            },
            "BrowseNodeInfo": {
                "BrowseNodes": [
                    {
                        "ContextFreeName": SKELETON_CATEGORY_NAME,
                        "DisplayName": SKELETON_CATEGORY_NAME,
                        "Id": SKELETON_CATEGORY_ID,
                        "IsRoot": False,
                        "SalesRank": 1
                    }
                ]
            }
        }

    async def _build_document(self, only_active: bool) -> Tuple[Dict[str, Any], ExportResult]:
        products = await self.repository.find_all(only_active=only_active)
        if not products:
            self.logger.warning("No products found for export", extra={"context": {"only_active": only_active}})

        result = ExportResult()
        records: List[ProductData] = []

        for product in products:
            result = result.increment_processed()
            try:
                records.append(self.to_product_data(product))
            except DataValidationError as e:
                result = self._record_error(result, ItemError(product.asin, str(e)))

        batch = self.processor.reverse_process_items(records)
        for error in batch.errors:
            result = self._record_error(result, error)

        for _ in batch.items:
            result = result.increment_exported()

        return self.build_envelope(list(batch.items)), result

    def _record_error(self, result: ExportResult, error: ItemError) -> ExportResult:
        capture_validation_error(error.identifier, "export", error.message)
        self.logger.error(
            "Error converting product",
            extra={"context": {"asin": error.identifier, "error": error.message}}
        )
        return result.add_error(error.identifier, error.message)

    def _write(self, file_path: str, content: str):
        try:
            with open(file_path, "w", encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                try:
                    f.write(content)
                    f.flush()
                finally:
                    fcntl.flock(f, fcntl.LOCK_UN)
        except OSError as e:
            raise AmazonExportError(f"Could not write file {file_path}: {e}", file_path=file_path) from e
