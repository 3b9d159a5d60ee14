"""
Test the Amazon item transformer in both directions.
"""
from decimal import Decimal

import pytest

from catalog.errors import DataValidationError
from catalog.models.product import ProductData, PriceData, ImageData, RankingData
from catalog.transformers.amazon import (
    AmazonProductTransformer,
    DEFAULT_CATEGORY_ID,
    DEFAULT_CATEGORY_NAME,
    to_json_number,
)
from catalog.utils.nested import get_nested


@pytest.fixture
def transformer():
    return AmazonProductTransformer()


def test_transform_full_item(transformer, full_item):
    """Test extraction of every modeled field."""
    product = transformer.transform(full_item)

    assert product.asin == "B08J4F8CJG"
    assert product.title == "Sonos Arc Barra de sonido"
    assert product.brand == "Sonos"
    assert product.manufacturer == "Sonos Inc."
    assert product.features == ["Dolby Atmos", "Control por voz", "Wi-Fi"]

    assert len(product.images) == 1
    image = product.images[0]
    assert image.url == "https://m.media-amazon.com/images/I/41Xy.jpg"
    assert (image.width, image.height) == (460, 500)
    assert image.type == "large"
    assert image.is_primary

    price = product.prices[0]
    assert price.listing_id == "LISTING-ORIGINAL"
    assert price.amount == Decimal("899.99")
    assert price.currency == "EUR"
    assert price.savings_amount == Decimal("100")
    assert price.savings_percentage == 10
    assert price.is_free_shipping is True
    assert price.violates_map is False

    ranking = product.rankings[0]
    assert ranking.category_id == "1384102031"
    assert ranking.sales_rank == 12
    assert ranking.is_root is False

    assert product.raw_document is full_item


def test_transform_minimal_item(transformer, minimal_item):
    """Optional blocks default instead of failing."""
    product = transformer.transform(minimal_item)

    assert product.manufacturer is None
    assert product.features == []
    assert product.images == []
    assert product.prices == []
    assert product.rankings == []


@pytest.mark.parametrize("path", [
    "ASIN",
    "ItemInfo.Title.DisplayValue",
    "ItemInfo.ByLineInfo.Brand.DisplayValue",
    "DetailPageURL",
])
def test_required_field_missing(transformer, minimal_item, path):
    keys = path.split(".")
    parent = minimal_item
    for key in keys[:-1]:
        parent = parent[key]
    del parent[keys[-1]]

    with pytest.raises(DataValidationError) as exc_info:
        transformer.transform(minimal_item)

    assert path in str(exc_info.value)
    assert exc_info.value.path == path


def test_required_field_blank(transformer, minimal_item):
    minimal_item["ItemInfo"]["Title"]["DisplayValue"] = "   "

    with pytest.raises(DataValidationError) as exc_info:
        transformer.transform(minimal_item)

    assert exc_info.value.asin == "B0X"


def test_invalid_url_wrapped(transformer, minimal_item):
    minimal_item["DetailPageURL"] = "not a url"

    with pytest.raises(DataValidationError) as exc_info:
        transformer.transform(minimal_item)

    assert exc_info.value.asin == "B0X"
    assert "detail_page_url" in str(exc_info.value)


def test_non_numeric_price_wrapped(transformer, full_item):
    full_item["Offers"]["Listings"][0]["Price"]["Amount"] = "gratis"

    with pytest.raises(DataValidationError) as exc_info:
        transformer.transform(full_item)

    assert exc_info.value.asin == "B08J4F8CJG"


def test_ranking_without_sales_rank_ignored(transformer, full_item):
    del full_item["BrowseNodeInfo"]["BrowseNodes"][0]["SalesRank"]

    assert transformer.transform(full_item).rankings == []


def test_non_positive_sales_rank_rejected(transformer, full_item):
    full_item["BrowseNodeInfo"]["BrowseNodes"][0]["SalesRank"] = 0

    with pytest.raises(DataValidationError):
        transformer.transform(full_item)


def test_non_dict_item_rejected(transformer):
    with pytest.raises(DataValidationError) as exc_info:
        transformer.transform(["B0X"])

    assert exc_info.value.asin == "unknown"


def test_round_trip_preserves_fields(transformer, full_item):
    """Reverse transform of an untouched record reproduces the source values."""
    document = transformer.reverse_transform(transformer.transform(full_item))

    assert document["ASIN"] == full_item["ASIN"]
    assert document["DetailPageURL"] == full_item["DetailPageURL"]
    assert get_nested(document, "ItemInfo.Title.DisplayValue") == "Sonos Arc Barra de sonido"
    assert get_nested(document, "ItemInfo.ByLineInfo.Brand.DisplayValue") == "Sonos"
    assert get_nested(document, "Offers.Listings.0.Price.Amount") == 899.99
    assert get_nested(document, "Offers.Listings.0.Price.Currency") == "EUR"
    assert get_nested(document, "Offers.Listings.0.Id") == "LISTING-ORIGINAL"
    assert document["Images"]["Primary"]["Large"] == full_item["Images"]["Primary"]["Large"]
    assert get_nested(document, "BrowseNodeInfo.BrowseNodes.0.Id") == "1384102031"
    assert get_nested(document, "BrowseNodeInfo.BrowseNodes.0.SalesRank") == 12

    # Unmodeled blocks survive
    assert document["CustomerReviews"] == full_item["CustomerReviews"]
    assert document["Images"]["Primary"]["Medium"] == full_item["Images"]["Primary"]["Medium"]


def test_reverse_transform_does_not_mutate_source(transformer, full_item):
    product = transformer.transform(full_item)

    transformer.reverse_transform(ProductData(
        asin=product.asin,
        title="Nuevo título",
        brand=product.brand,
        detail_page_url=product.detail_page_url,
        raw_document=product.raw_document,
    ))

    assert full_item["ItemInfo"]["Title"]["DisplayValue"] == "Sonos Arc Barra de sonido"


def test_reverse_transform_overlays_edits(transformer, full_item):
    record = ProductData(
        asin="B08J4F8CJG",
        title="Sonos Arc (Negro)",
        brand="Sonos",
        detail_page_url="https://www.amazon.es/dp/B08J4F8CJG",
        features=["Nuevo"],
        images=[
            ImageData(url="https://example.com/secondary.jpg", width=100, height=100),
            ImageData(url="https://example.com/primary.jpg", width=800, height=600, is_primary=True),
        ],
        prices=[PriceData(listing_id="NEW", amount=Decimal("799.00"), currency="EUR", display_amount="799,00 €")],
        rankings=[RankingData(category_id="", category_name="", sales_rank=3)],
        raw_document=full_item,
    )

    document = transformer.reverse_transform(record)

    assert document["ItemInfo"]["Title"] == {
        "DisplayValue": "Sonos Arc (Negro)", "Label": "Title", "Locale": "es_ES"
    }
    assert get_nested(document, "ItemInfo.Features.DisplayValues") == ["Nuevo"]

    listing = document["Offers"]["Listings"][0]
    assert listing["Id"] == "LISTING-ORIGINAL"
    assert listing["Price"]["Amount"] == 799
    assert "Savings" not in listing["Price"]

    assert document["Images"]["Primary"]["Large"] == {
        "Height": 600, "URL": "https://example.com/primary.jpg", "Width": 800
    }

    # Blank ranking fields fall back to the source node
    node = document["BrowseNodeInfo"]["BrowseNodes"][0]
    assert node["Id"] == "1384102031"
    assert node["DisplayName"] == "Barras de sonido"
    assert node["SalesRank"] == 3


def test_reverse_transform_empty_lists_keep_source(transformer, full_item):
    record = ProductData(
        asin="B08J4F8CJG",
        title="Sonos Arc",
        brand="Sonos",
        detail_page_url="https://www.amazon.es/dp/B08J4F8CJG",
        raw_document=full_item,
    )

    document = transformer.reverse_transform(record)

    assert document["Offers"] == full_item["Offers"]
    assert document["Images"] == full_item["Images"]
    assert document["BrowseNodeInfo"] == full_item["BrowseNodeInfo"]


def test_reverse_transform_fills_required_paths(transformer):
    record = ProductData(
        asin="B0NEW",
        title="Nueva barra",
        brand="Acme",
        detail_page_url="https://www.amazon.es/dp/B0NEW",
        rankings=[RankingData(category_id="", category_name="", sales_rank=5)],
        raw_document={"Extra": True},
    )

    document = transformer.reverse_transform(record)

    assert get_nested(document, "Offers.Listings.0.Price.Amount") == 0
    assert document["Extra"] is True
    node = document["BrowseNodeInfo"]["BrowseNodes"][0]
    assert node["Id"] == DEFAULT_CATEGORY_ID
    assert node["DisplayName"] == DEFAULT_CATEGORY_NAME
    assert node["ContextFreeName"] == DEFAULT_CATEGORY_NAME
    assert node["IsRoot"] is False


def test_reverse_transform_uses_listing_id_without_source_id(transformer, minimal_item):
    record = ProductData(
        asin="B0X",
        title="Test Soundbar",
        brand="Acme",
        detail_page_url="https://amazon.es/dp/B0X",
        prices=[PriceData(
            listing_id="L1",
            amount=Decimal("49.50"),
            currency="EUR",
            display_amount="49,50 €",
            savings_amount=Decimal("5.5"),
            savings_display="5,50 €",
            savings_percentage=10,
            is_free_shipping=True,
        )],
        raw_document=minimal_item,
    )

    listing = transformer.reverse_transform(record)["Offers"]["Listings"][0]

    assert listing["Id"] == "L1"
    assert listing["DeliveryInfo"] == {"IsFreeShippingEligible": True}
    assert listing["Price"]["Amount"] == 49.5
    assert listing["Price"]["Savings"] == {
        "Amount": 5.5, "Currency": "EUR", "DisplayAmount": "5,50 €", "Percentage": 10
    }
    assert listing["ViolatesMAP"] is False


def test_reverse_transform_without_source_document(transformer):
    record = ProductData(asin="B0X", title="T", brand="B", detail_page_url="https://amazon.es/dp/B0X")

    with pytest.raises(DataValidationError) as exc_info:
        transformer.reverse_transform(record)

    assert exc_info.value.asin == "B0X"


def test_source_labels_and_locales_preserved(transformer, full_item):
    full_item["ItemInfo"]["Title"]["Locale"] = "en_US"
    full_item["ItemInfo"]["ByLineInfo"]["Brand"]["Label"] = "Marca"

    document = transformer.reverse_transform(transformer.transform(full_item))

    assert document["ItemInfo"]["Title"] == {
        "DisplayValue": "Sonos Arc Barra de sonido", "Label": "Title", "Locale": "en_US"
    }
    assert document["ItemInfo"]["ByLineInfo"]["Brand"] == {
        "DisplayValue": "Sonos", "Label": "Marca", "Locale": "es_ES"
    }


def test_created_display_nodes_get_label_and_locale(transformer, minimal_item):
    record = ProductData(
        asin="B0X",
        title="Test Soundbar",
        brand="Acme",
        manufacturer="Acme Corp",
        detail_page_url="https://amazon.es/dp/B0X",
        raw_document=minimal_item,
    )

    document = transformer.reverse_transform(record)

    assert document["ItemInfo"]["ByLineInfo"]["Manufacturer"] == {
        "DisplayValue": "Acme Corp", "Label": "Manufacturer", "Locale": "es_ES"
    }
    assert document["ItemInfo"]["Title"] == {"DisplayValue": "Test Soundbar", "Label": "Title", "Locale": "es_ES"}


def test_non_finite_price_rejected(transformer, full_item):
    full_item["Offers"]["Listings"][0]["Price"]["Amount"] = float("nan")

    with pytest.raises(DataValidationError) as exc_info:
        transformer.transform(full_item)

    assert "Invalid amount" in str(exc_info.value)


def test_to_json_number():
    assert to_json_number(Decimal("100.00")) == 100
    assert isinstance(to_json_number(Decimal("100.00")), int)
    assert to_json_number(Decimal("99.99")) == 99.99
