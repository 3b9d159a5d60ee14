"""
Bidirectional mapping between Amazon PA-API items and ProductData.

Import direction extracts the normalized fields; export direction overlays
the current field values on a copy of the stored source document so that
everything the catalog does not model survives the round trip.
"""
import copy
import logging
from decimal import Decimal, InvalidOperation
from typing import List, Dict, Any, Optional, Union

from catalog.config import config
from catalog.errors import DataValidationError
from catalog.logger import logger as default_logger
from catalog.models.product import ProductData, ImageData, PriceData, RankingData
from catalog.utils.nested import get_nested, has_nested, set_nested

REQUIRED_FIELDS = (
    "ASIN",
    "ItemInfo.Title.DisplayValue",
    "ItemInfo.ByLineInfo.Brand.DisplayValue",
    "DetailPageURL",
)

# Paths every exported item must carry, with the value used when absent
REQUIRED_EXPORT_DEFAULTS = {
    "ASIN": "",
    "DetailPageURL": "",
    "ItemInfo.Title.DisplayValue": "",
    "ItemInfo.ByLineInfo.Brand.DisplayValue": "",
    "Offers.Listings.0.Price.Amount": 0,
}

DEFAULT_CATEGORY_ID = "1384102031"
DEFAULT_CATEGORY_NAME = "Barras de sonido"
DEFAULT_SALES_RANK = 1


def item_asin(item: Any) -> str:
    """ASIN of a raw item for diagnostics, "unknown" when unavailable."""
    if isinstance(item, dict) and item.get("ASIN"):
        return str(item["ASIN"])
    return "unknown"


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount


def to_json_number(value: Decimal) -> Union[int, float]:
    """Integral amounts stay integers, everything else becomes float."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


class AmazonProductTransformer:
    """
    Converts one raw Amazon item to ProductData and back.
    Every failure surfaces as DataValidationError tagged with the ASIN.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or default_logger

    # Import direction

    def transform(self, item: Dict[str, Any]) -> ProductData:
        """
        Convert one item of SearchResult.Items to ProductData.

        Args:
            item: Raw Amazon item

        Returns:
            Normalized ProductData with raw_document set to the item itself

        Raises:
            DataValidationError: If a required field is missing or a
                nested block cannot be extracted
        """
        self.validate_product_data(item)
        asin = item_asin(item)

        try:
            manufacturer = get_nested(item, "ItemInfo.ByLineInfo.Manufacturer.DisplayValue")
            features = get_nested(item, "ItemInfo.Features.DisplayValues", [])

            return ProductData(
                asin=str(item["ASIN"]).strip(),
                title=str(get_nested(item, "ItemInfo.Title.DisplayValue")),
                brand=str(get_nested(item, "ItemInfo.ByLineInfo.Brand.DisplayValue")),
                manufacturer=None if manufacturer is None else str(manufacturer),
                detail_page_url=str(item["DetailPageURL"]).strip(),
                features=[str(feature) for feature in features] if isinstance(features, list) else [],
                images=self._extract_images(item),
                prices=self._extract_prices(item),
                rankings=self._extract_rankings(item),
                raw_document=item,
            )
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise DataValidationError(str(e), asin=asin) from e

    def validate_product_data(self, item: Dict[str, Any]) -> bool:
        """
        Check that every required dotted path holds a non-empty value.

        Raises:
            DataValidationError: Naming the first missing path
        """
        if not isinstance(item, dict):
            raise DataValidationError(f"Item must be an object, got {type(item).__name__}")

        for path in REQUIRED_FIELDS:
            if _is_blank(get_nested(item, path)):
                raise DataValidationError(
                    f"Missing required field: {path}",
                    asin=item_asin(item),
                    path=path
                )

        return True

    def _extract_images(self, item: Dict[str, Any]) -> List[ImageData]:
        # Only the primary large image is modeled
        large = get_nested(item, "Images.Primary.Large")
        if not isinstance(large, dict):
            return []

        return [
            ImageData(
                url=str(large.get("URL") or ""),
                width=int(large.get("Width") or 0),
                height=int(large.get("Height") or 0),
                type="large",
                is_primary=True,
            )
        ]

    def _extract_prices(self, item: Dict[str, Any]) -> List[PriceData]:
        listing = get_nested(item, "Offers.Listings.0")
        if not isinstance(listing, dict):
            return []

        price = listing.get("Price") or {}
        savings = price.get("Savings") or {}
        savings_amount = savings.get("Amount")
        savings_percentage = savings.get("Percentage")

        return [
            PriceData(
                listing_id=str(listing.get("Id") or ""),
                amount=to_decimal(price.get("Amount", 0)),
                currency=price.get("Currency") or config.DEFAULT_CURRENCY,
                display_amount=str(price.get("DisplayAmount") or ""),
                savings_amount=None if savings_amount is None else to_decimal(savings_amount),
                savings_display=savings.get("DisplayAmount"),
                savings_percentage=None if savings_percentage is None else int(savings_percentage),
                is_free_shipping=bool(get_nested(listing, "DeliveryInfo.IsFreeShippingEligible", False)),
                violates_map=bool(listing.get("ViolatesMAP", False)),
            )
        ]

    def _extract_rankings(self, item: Dict[str, Any]) -> List[RankingData]:
        node = get_nested(item, "BrowseNodeInfo.BrowseNodes.0")
        if not isinstance(node, dict):
            return []

        if node.get("SalesRank") is None:
            self.logger.debug(
                "Browse node without sales rank ignored",
                extra={"context": {"asin": item_asin(item), "node_id": node.get("Id")}}
            )
            return []

        sales_rank = int(node["SalesRank"])
        if sales_rank < 1:
            raise ValueError(f"Sales rank must be positive, got {sales_rank}")

        return [
            RankingData(
                category_id=str(node.get("Id") or ""),
                category_name=str(node.get("DisplayName") or ""),
                context_free_name=node.get("ContextFreeName"),
                sales_rank=sales_rank,
                is_root=bool(node.get("IsRoot", False)),
            )
        ]

    # Export direction

    def reverse_transform(self, product: ProductData) -> Dict[str, Any]:
        """
        Rebuild an Amazon item from ProductData.

        Starts from a deep copy of product.raw_document and overlays the
        current values. Empty image, price or ranking lists leave the
        corresponding source block untouched.

        Raises:
            DataValidationError: If the product cannot be exported
        """
        self.validate_for_export(product)

        try:
            document = copy.deepcopy(product.raw_document)
            self._overlay_item_info(document, product)

            if product.prices:
                original = get_nested(document, "Offers.Listings.0", {})
                set_nested(document, "Offers.Listings.0", self._build_listing(product.prices[0], original))

            primary = product.primary_image
            if primary is not None:
                set_nested(document, "Images.Primary.Large", {
                    "Height": primary.height,
                    "URL": primary.url,
                    "Width": primary.width,
                })

            if product.rankings:
                original = get_nested(document, "BrowseNodeInfo.BrowseNodes.0", {})
                set_nested(
                    document,
                    "BrowseNodeInfo.BrowseNodes.0",
                    self._build_browse_node(product.rankings[0], original)
                )

            return self._ensure_required_fields(document)

        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise DataValidationError(f"Reverse transformation failed: {e}", asin=product.asin) from e

    def validate_for_export(self, product: ProductData) -> bool:
        for name in ("asin", "title", "brand", "detail_page_url"):
            if _is_blank(getattr(product, name, None)):
                raise DataValidationError(
                    f"Missing required field for export: {name}",
                    asin=getattr(product, "asin", None)
                )

        if not isinstance(product.raw_document, dict) or not product.raw_document:
            raise DataValidationError("Source document not available for export", asin=product.asin)

        return True

    def _overlay_item_info(self, document: Dict[str, Any], product: ProductData):
        document["ASIN"] = product.asin
        document["DetailPageURL"] = product.detail_page_url

        self._set_display_value(document, "ItemInfo.Title", "Title", product.title)
        self._set_display_value(document, "ItemInfo.ByLineInfo.Brand", "Brand", product.brand)

        if product.manufacturer is not None or has_nested(document, "ItemInfo.ByLineInfo.Manufacturer"):
            self._set_display_value(
                document, "ItemInfo.ByLineInfo.Manufacturer", "Manufacturer", product.manufacturer or ""
            )

        if product.features or has_nested(document, "ItemInfo.Features"):
            self._set_display_value(
                document, "ItemInfo.Features", "Features", list(product.features), key="DisplayValues"
            )

    def _set_display_value(self, document: Dict[str, Any], path: str, label: str,
                           value: Any, key: str = "DisplayValue"):
        node = get_nested(document, path)
        if not isinstance(node, dict):
            node = {}
            set_nested(document, path, node)
        node[key] = value
        # Source labels and locales are kept
        node.setdefault("Label", label)
        node.setdefault("Locale", config.CONTENT_LOCALE)

    def _build_listing(self, price: PriceData, original: Dict[str, Any]) -> Dict[str, Any]:
        original_id = original.get("Id") if isinstance(original, dict) else None

        price_block = {
            "Amount": to_json_number(price.amount),
            "Currency": price.currency,
            "DisplayAmount": price.display_amount,
        }
        if price.savings_amount is not None:
            price_block["Savings"] = {
                "Amount": to_json_number(price.savings_amount),
                "Currency": price.currency,
                "DisplayAmount": price.savings_display or "",
                "Percentage": price.savings_percentage or 0,
            }

        return {
            "Id": original_id or price.listing_id,
            "DeliveryInfo": {"IsFreeShippingEligible": price.is_free_shipping},
            "Price": price_block,
            "ViolatesMAP": price.violates_map,
        }

    def _build_browse_node(self, ranking: RankingData, original: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(original, dict):
            original = {}

        return {
            "ContextFreeName": ranking.context_free_name or original.get("ContextFreeName") or DEFAULT_CATEGORY_NAME,
            "DisplayName": ranking.category_name or original.get("DisplayName") or DEFAULT_CATEGORY_NAME,
            "Id": ranking.category_id or original.get("Id") or DEFAULT_CATEGORY_ID,
            "IsRoot": ranking.is_root,
            "SalesRank": ranking.sales_rank or original.get("SalesRank") or DEFAULT_SALES_RANK,
        }

    def _ensure_required_fields(self, document: Dict[str, Any]) -> Dict[str, Any]:
        for path, default in REQUIRED_EXPORT_DEFAULTS.items():
            if get_nested(document, path) is None:
                set_nested(document, path, default)
        return document
