"""
Canonical internal data contract.
Everything between the Amazon document and the storage layer uses this shape.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, List, Dict, Any
from urllib.parse import urlparse


@dataclass(frozen=True)
class ImageData:
    """One product image."""
    url: str
    width: int
    height: int
    type: str = "large"
    is_primary: bool = False


@dataclass(frozen=True)
class PriceData:
    """One offer listing price."""
    listing_id: str
    amount: Decimal
    currency: str
    display_amount: str
    savings_amount: Optional[Decimal] = None
    savings_display: Optional[str] = None
    savings_percentage: Optional[int] = None
    is_free_shipping: bool = False
    violates_map: bool = False

    @property
    def has_savings(self) -> bool:
        return self.savings_amount is not None and self.savings_amount > 0


@dataclass(frozen=True)
class RankingData:
    """Sales rank inside one browse node."""
    category_id: str
    category_name: str
    sales_rank: int
    context_free_name: Optional[str] = None
    is_root: bool = False


def is_well_formed_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class ProductData:
    """
    Normalized Amazon product.

    Construction fails with ValueError when asin, title, brand or
    detail_page_url is empty, or when the URL is malformed. This is the
    only validation gate before persistence.

    raw_document keeps the source item verbatim so that fields which are
    not normalized survive an export.
    """
    asin: str
    title: str
    brand: str
    detail_page_url: str
    manufacturer: Optional[str] = None
    features: List[str] = field(default_factory=list)
    images: List[ImageData] = field(default_factory=list)
    prices: List[PriceData] = field(default_factory=list)
    rankings: List[RankingData] = field(default_factory=list)
    raw_document: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("asin", "title", "brand", "detail_page_url"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} cannot be empty")

        if not is_well_formed_url(self.detail_page_url):
            raise ValueError(f"detail_page_url is not a valid URL: {self.detail_page_url}")

    @property
    def primary_image(self) -> Optional[ImageData]:
        """First image marked primary, else the first image."""
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None

    @property
    def has_price(self) -> bool:
        return any(price.amount > 0 for price in self.prices)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "asin": self.asin,
            "title": self.title,
            "brand": self.brand,
            "manufacturer": self.manufacturer,
            "detail_page_url": self.detail_page_url,
            "features": list(self.features),
            "images": [vars(image).copy() for image in self.images],
            "prices": [
                {
                    **vars(price),
                    "amount": str(price.amount),
                    "savings_amount": None if price.savings_amount is None else str(price.savings_amount),
                }
                for price in self.prices
            ],
            "rankings": [vars(ranking).copy() for ranking in self.rankings],
        }
