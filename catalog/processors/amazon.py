"""
Batch orchestration over the Amazon transformer.
A malformed item never aborts a batch; failures come back next to the results.
"""
import logging
from typing import List, Dict, Any, Optional, Sequence

from catalog.errors import DataValidationError
from catalog.logger import logger as default_logger
from catalog.models.product import ProductData
from catalog.models.results import BatchResult, ItemError
from catalog.transformers.amazon import AmazonProductTransformer, item_asin


class AmazonDataProcessor:
    """Drives the transformer in both directions, one item or many."""

    def __init__(self, transformer: Optional[AmazonProductTransformer] = None,
                 logger: Optional[logging.Logger] = None):
        self.logger = logger or default_logger
        self.transformer = transformer or AmazonProductTransformer(logger=self.logger)

    def process_item(self, item: Dict[str, Any]) -> ProductData:
        """
        Transform one raw item.

        Raises:
            DataValidationError: For validation failures and for any
                unexpected error raised while transforming
        """
        asin = item_asin(item)
        self.logger.debug("Processing Amazon item", extra={"context": {"asin": asin}})

        try:
            return self.transformer.transform(item)
        except DataValidationError as e:
            self.logger.warning(
                "Amazon item failed validation",
                extra={"context": {"asin": asin, "error": str(e)}}
            )
            raise
        except Exception as e:
            self.logger.error(
                "Unexpected error processing Amazon item",
                extra={"context": {"asin": asin, "error": str(e)}}
            )
            raise DataValidationError(f"Error processing item: {e}", asin=asin) from e

    def process_items(self, items: Sequence[Dict[str, Any]]) -> BatchResult[ProductData]:
        """
        Transform a batch of raw items.

        Returns:
            BatchResult with the successful records in input order and one
            ItemError (index, asin, message) per failed item
        """
        processed: List[ProductData] = []
        errors: List[ItemError] = []

        for index, item in enumerate(items):
            try:
                processed.append(self.process_item(item))
            except DataValidationError as e:
                errors.append(ItemError(identifier=e.asin, message=str(e), index=index))

        self._log_batch_errors("Errors during batch processing", errors, len(items))
        return BatchResult(items=tuple(processed), errors=tuple(errors))

    def reverse_process_item(self, product: ProductData) -> Dict[str, Any]:
        """
        Merge current values into the product's source document.

        Raises:
            DataValidationError: If the merge fails
        """
        self.logger.debug("Converting product to Amazon format", extra={"context": {"asin": product.asin}})

        try:
            return self.transformer.reverse_transform(product)
        except DataValidationError as e:
            self.logger.warning(
                "Product failed export validation",
                extra={"context": {"asin": product.asin, "error": str(e)}}
            )
            raise
        except Exception as e:
            self.logger.error(
                "Unexpected error converting product to Amazon format",
                extra={"context": {"asin": product.asin, "error": str(e)}}
            )
            raise DataValidationError(f"Error converting product: {e}", asin=product.asin) from e

    def reverse_process_items(self, products: Sequence[ProductData]) -> BatchResult[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        errors: List[ItemError] = []

        for index, product in enumerate(products):
            try:
                items.append(self.reverse_process_item(product))
            except DataValidationError as e:
                errors.append(ItemError(identifier=product.asin, message=str(e), index=index))

        self._log_batch_errors("Errors during batch reverse processing", errors, len(products))
        return BatchResult(items=tuple(items), errors=tuple(errors))

    def _log_batch_errors(self, message: str, errors: List[ItemError], total: int):
        if errors:
            self.logger.warning(
                message,
                extra={"context": {"total_errors": len(errors), "total_items": total}}
            )
