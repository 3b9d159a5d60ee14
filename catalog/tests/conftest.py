"""
Shared fixtures for catalog tests.
"""
import copy
from decimal import Decimal

import pytest

from catalog.models.entities import Product, ProductImage, ProductPrice, ProductRanking

FULL_ITEM = {
    "ASIN": "B08J4F8CJG",
    "DetailPageURL": "https://www.amazon.es/dp/B08J4F8CJG?tag=shop-21",
    "Images": {
        "Primary": {
            "Large": {"Height": 500, "URL": "https://m.media-amazon.com/images/I/41Xy.jpg", "Width": 460},
            "Medium": {"Height": 160, "URL": "https://m.media-amazon.com/images/I/41Xy._SL160_.jpg", "Width": 147}
        }
    },
    "ItemInfo": {
        "ByLineInfo": {
            "Brand": {"DisplayValue": "Sonos", "Label": "Brand", "Locale": "es_ES"},
            "Manufacturer": {"DisplayValue": "Sonos Inc.", "Label": "Manufacturer", "Locale": "es_ES"}
        },
        "Features": {
            "DisplayValues": ["Dolby Atmos", "Control por voz", "Wi-Fi"],
            "Label": "Features",
            "Locale": "es_ES"
        },
        "Title": {"DisplayValue": "Sonos Arc Barra de sonido", "Label": "Title", "Locale": "es_ES"}
    },
    "Offers": {
        "Listings": [
            {
                "Id": "LISTING-ORIGINAL",
                "DeliveryInfo": {"IsFreeShippingEligible": True},
                "Price": {
                    "Amount": 899.99,
                    "Currency": "EUR",
                    "DisplayAmount": "899,99 €",
                    "Savings": {"Amount": 100, "Currency": "EUR", "DisplayAmount": "100,00 € (10%)", "Percentage": 10}
                },
                "ViolatesMAP": False
            }
        ]
    },
    "BrowseNodeInfo": {
        "BrowseNodes": [
            {
                "ContextFreeName": "Barras de sonido",
                "DisplayName": "Barras de sonido",
                "Id": "1384102031",
                "IsRoot": False,
                "SalesRank": 12
            }
        ]
    },
    "CustomerReviews": {"Count": 1520, "StarRating": {"Value": 4.6}}
}


@pytest.fixture
def full_item():
    return copy.deepcopy(FULL_ITEM)


@pytest.fixture
def minimal_item():
    return {
        "ASIN": "B0X",
        "ItemInfo": {
            "Title": {"DisplayValue": "Test Soundbar"},
            "ByLineInfo": {"Brand": {"DisplayValue": "Acme"}}
        },
        "DetailPageURL": "https://amazon.es/dp/B0X"
    }


def build_product(asin="B000000001", title="Barra de sonido", brand="Acme", amount="99.99",
                  image_url="https://example.com/a.jpg", sales_rank=10, category="Barras de sonido",
                  **kwargs) -> Product:
    """Build a stored product with one image, price and ranking unless disabled with None."""
    product = Product(
        asin=asin,
        title=title,
        brand=brand,
        amazon_url=kwargs.pop("amazon_url", f"https://www.amazon.es/dp/{asin}"),
        **kwargs
    )
    if image_url is not None:
        product.images = [ProductImage(url=image_url, is_primary=True)]
    if amount is not None:
        product.prices = [
            ProductPrice(listing_id=f"L-{asin}", amount=Decimal(amount), display_amount=f"{amount} €")
        ]
    if sales_rank is not None:
        product.rankings = [ProductRanking(category_id="1384102031", category_name=category, sales_rank=sales_rank)]
    return product


@pytest.fixture
def make_product():
    return build_product
