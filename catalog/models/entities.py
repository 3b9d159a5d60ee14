"""
Persisted entity shapes.
A Product owns its images, prices and rankings exclusively.
"""
from dataclasses import dataclass, field
from datetime import datetime, date, timezone
from decimal import Decimal
from typing import Optional, List, Dict, Any


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class ProductImage:
    url: str
    width: int = 500
    height: int = 500
    type: str = "large"
    is_primary: bool = False
    order_position: int = 0
    alt_text: Optional[str] = None
    is_active: bool = True
    id: Optional[int] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False)
class ProductPrice:
    listing_id: str
    amount: Decimal
    currency: str = "EUR"
    display_amount: str = ""
    savings_amount: Optional[Decimal] = None
    savings_display: Optional[str] = None
    savings_percentage: Optional[int] = None
    is_free_shipping: bool = False
    violates_map: bool = False
    is_active: bool = True
    id: Optional[int] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False)
class ProductRanking:
    category_id: str
    category_name: str
    sales_rank: int
    context_free_name: Optional[str] = None
    is_root: bool = False
    ranking_date: date = field(default_factory=lambda: utcnow().date())
    is_active: bool = True
    id: Optional[int] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False)
class Product:
    asin: str
    title: str = ""
    slug: Optional[str] = None
    brand: str = ""
    manufacturer: Optional[str] = None
    amazon_url: str = ""
    features: List[str] = field(default_factory=list)
    source_data: Optional[Dict[str, Any]] = None
    is_active: bool = True
    id: Optional[int] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    images: List[ProductImage] = field(default_factory=list)
    prices: List[ProductPrice] = field(default_factory=list)
    rankings: List[ProductRanking] = field(default_factory=list)

    def touch(self):
        self.updated_at = utcnow()

    def active_images(self) -> List[ProductImage]:
        return [image for image in self.images if image.is_active]

    def active_prices(self) -> List[ProductPrice]:
        return [price for price in self.prices if price.is_active]

    def active_rankings(self) -> List[ProductRanking]:
        return [ranking for ranking in self.rankings if ranking.is_active]
