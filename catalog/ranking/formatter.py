"""
View models for the storefront ranking.
"""
from decimal import Decimal
from typing import Dict, Any, List, Optional

from catalog.config import config
from catalog.models.entities import Product

PLACEHOLDER_IMAGE = {
    "url": "/assets/images/no-product-image.jpg",
    "alt": "Imagen no disponible",
    "width": 500,
    "height": 500
}


def format_amount(amount: Decimal, currency: str) -> str:
    if currency == "USD":
        return f"${amount:,.2f}"

    # 1.234,56 style
    text = f"{amount:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    if currency == "EUR":
        return f"{text} €"
    return f"{text} {currency}"


class ProductFormatter:

    def format_price_info(self, product: Product) -> Dict[str, Any]:
        info = {
            "current_price": None,
            "display_price": "Precio no disponible",
            "original_price": None,
            "discount_amount": None,
            "discount_percentage": None,
            "discount_display": None,
            "free_shipping": False,
            "currency": config.DEFAULT_CURRENCY
        }

        price = next((p for p in product.active_prices() if p.amount > 0), None)
        if price is None:
            return info

        info["current_price"] = price.amount
        info["display_price"] = price.display_amount or format_amount(price.amount, price.currency)
        info["currency"] = price.currency
        info["free_shipping"] = price.is_free_shipping

        if price.savings_amount and price.savings_amount > 0:
            info["discount_amount"] = price.savings_amount
            info["discount_percentage"] = price.savings_percentage
            info["discount_display"] = price.savings_display
            info["original_price"] = price.amount + price.savings_amount

        return info

    def format_features(self, features: List[str], max_visible: int = 3) -> Dict[str, Any]:
        clean = [feature for feature in features if feature and feature.strip()]
        return {
            "visible": clean[:max_visible],
            "hidden": clean[max_visible:],
            "total_count": len(clean),
            "has_more": len(clean) > max_visible
        }

    def get_primary_image(self, product: Product) -> Dict[str, Any]:
        candidates = [image for image in product.active_images() if image.url]
        image = next((i for i in candidates if i.is_primary), None) or (candidates[0] if candidates else None)
        if image is None:
            return dict(PLACEHOLDER_IMAGE)

        return {
            "url": image.url,
            "alt": image.alt_text or product.title,
            "width": image.width,
            "height": image.height
        }

    def format_title(self, title: str, max_length: int = 80) -> str:
        clean = title.strip()
        if len(clean) <= max_length:
            return clean
        return clean[:max_length - 3] + "..."

    def format_amazon_url(self, amazon_url: str) -> str:
        """Append the affiliate tag unless the link already carries one."""
        if "tag=" in amazon_url:
            return amazon_url
        separator = "&" if "?" in amazon_url else "?"
        return f"{amazon_url}{separator}tag={config.AFFILIATE_TAG}&linkCode=osi"

    def format_ranking_info(self, product: Product) -> Dict[str, Any]:
        rankings = product.active_rankings()
        if not rankings:
            return {"category": "General", "sales_rank": None, "category_display": "General"}

        ranking = rankings[0]
        return {
            "category": ranking.category_name,
            "sales_rank": ranking.sales_rank,
            "category_display": ranking.context_free_name or ranking.category_name
        }

    def format_product_for_display(self, product: Product, position: int,
                                   rating: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "position": position,
            "asin": product.asin,
            "slug": product.slug,
            "title": self.format_title(product.title),
            "full_title": product.title,
            "brand": product.brand,
            "amazon_url": self.format_amazon_url(product.amazon_url),
            "image": self.get_primary_image(product),
            "price": self.format_price_info(product),
            "features": self.format_features(product.features),
            "rating": rating,
            "special_badge": rating.get("special_badge"),
            "ranking_info": self.format_ranking_info(product)
        }
