"""
Applies back-office edits to a product's child collections.
"""
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, Optional, List

from catalog.config import config
from catalog.errors import DataValidationError
from catalog.models.entities import Product, ProductImage, ProductPrice, ProductRanking
from catalog.storage.repository import BaseProductRepository
from catalog.transformers.amazon import to_decimal


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip()) or value == 0


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return to_decimal(value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


class ProductCollectionEditor:
    """
    Edit payloads mirror the admin form:

        {
            "images": [{"url", "width", "height", "type", "orderPosition", "altText"}, ...],
            "primaryImageIndex": 0,
            "prices": [{"listingId", "amount", "currency", "displayAmount",
                        "savingsAmount", "savingsDisplay", "savingsPercentage",
                        "isFreeShipping"}, ...],
            "rankings": [{"categoryId", "categoryName", "contextFreeName",
                          "salesRank", "isRoot"}, ...],
            "features": ["...", ...]
        }

    Each collection present in the payload replaces the existing one.
    Incomplete rows are dropped.
    """

    def __init__(self, repository: BaseProductRepository):
        self.repository = repository

    async def apply_edits(self, product: Product, payload: Dict[str, Any]) -> Product:
        """
        Validate every collection in the payload, then replace them.

        Raises:
            DataValidationError: If any row cannot be converted; the product
                and the repository are left untouched
        """
        try:
            images = prices = rankings = features = None
            if "images" in payload:
                images = self.build_images(payload["images"] or [], payload.get("primaryImageIndex"))
            if "prices" in payload:
                prices = self.build_prices(payload["prices"] or [])
            if "rankings" in payload:
                rankings = self.build_rankings(payload["rankings"] or [])
            if "features" in payload:
                features = self.build_features(payload["features"] or [])
        except (ValueError, TypeError, InvalidOperation) as e:
            raise DataValidationError(f"Invalid edit payload: {e}", asin=product.asin) from e

        if images is not None:
            self._replace_children(product, "images", images)
        if prices is not None:
            self._replace_children(product, "prices", prices)
        if rankings is not None:
            self._replace_children(product, "rankings", rankings)
        if features is not None:
            product.features = features

        product.touch()
        self.repository.persist(product)
        await self.repository.flush()
        return product

    def process_images(self, product: Product, rows: List[Dict[str, Any]], primary_index: Any = None):
        self._replace_children(product, "images", self.build_images(rows, primary_index))

    def process_prices(self, product: Product, rows: List[Dict[str, Any]]):
        self._replace_children(product, "prices", self.build_prices(rows))

    def process_rankings(self, product: Product, rows: List[Dict[str, Any]]):
        self._replace_children(product, "rankings", self.build_rankings(rows))

    def process_features(self, product: Product, features: List[str]):
        product.features = self.build_features(features)

    def build_images(self, rows: List[Dict[str, Any]], primary_index: Any = None) -> List[ProductImage]:
        images = []
        for index, row in enumerate(rows):
            if _blank(row.get("url")):
                continue
            images.append(ProductImage(
                url=row["url"],
                width=int(row.get("width") or 500),
                height=int(row.get("height") or 500),
                type=row.get("type") or "large",
                order_position=int(row.get("orderPosition") or 0),
                alt_text=row.get("altText"),
                is_primary=primary_index is not None and str(primary_index) == str(index),
            ))
        return images

    def build_prices(self, rows: List[Dict[str, Any]]) -> List[ProductPrice]:
        prices = []
        for row in rows:
            if _blank(row.get("listingId")) or _blank(row.get("amount")):
                continue
            prices.append(ProductPrice(
                listing_id=str(row["listingId"]),
                amount=to_decimal(row["amount"]),
                currency=row.get("currency") or config.DEFAULT_CURRENCY,
                display_amount=row.get("displayAmount") or "",
                savings_amount=_optional_decimal(row.get("savingsAmount")),
                savings_display=row.get("savingsDisplay"),
                savings_percentage=_optional_int(row.get("savingsPercentage")),
                is_free_shipping=bool(row.get("isFreeShipping")),
                violates_map=False,
            ))
        return prices

    def build_rankings(self, rows: List[Dict[str, Any]]) -> List[ProductRanking]:
        rankings = []
        for row in rows:
            if _blank(row.get("categoryId")) or _blank(row.get("salesRank")):
                continue
            rankings.append(ProductRanking(
                category_id=str(row["categoryId"]),
                category_name=row.get("categoryName") or "",
                context_free_name=row.get("contextFreeName"),
                sales_rank=int(row["salesRank"]),
                is_root=bool(row.get("isRoot")),
            ))
        return rankings

    def build_features(self, features: List[str]) -> List[str]:
        return [feature for feature in features if isinstance(feature, str) and feature.strip()]

    def _replace_children(self, product: Product, attribute: str, children: List[Any]):
        for child in getattr(product, attribute):
            self.repository.remove(child)
        setattr(product, attribute, children)

    @staticmethod
    def get_primary_image(product: Product) -> Optional[ProductImage]:
        for image in product.images:
            if image.is_primary:
                return image
        return product.images[0] if product.images else None

    @staticmethod
    def get_first_price(product: Product) -> Optional[ProductPrice]:
        return product.prices[0] if product.prices else None

    @staticmethod
    def get_best_ranking(product: Product) -> Optional[ProductRanking]:
        return min(product.rankings, key=lambda ranking: ranking.sales_rank, default=None)
