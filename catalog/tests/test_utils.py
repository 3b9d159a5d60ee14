import pytest

from catalog.utils.nested import get_nested, has_nested, set_nested
from catalog.utils.slug import generate_slug


def test_get_nested_dicts_and_lists():
    tree = {"Offers": {"Listings": [{"Price": {"Amount": 10}}]}}

    assert get_nested(tree, "Offers.Listings.0.Price.Amount") == 10
    assert get_nested(tree, "Offers.Listings.1.Price.Amount") is None
    assert get_nested(tree, "Offers.Missing", "x") == "x"
    assert get_nested(tree, "Offers.Listings.first") is None


def test_get_nested_treats_null_as_missing():
    tree = {"ItemInfo": {"Title": None}}

    assert get_nested(tree, "ItemInfo.Title", "default") == "default"
    assert not has_nested(tree, "ItemInfo.Title")


def test_get_nested_keeps_falsy_values():
    assert get_nested({"Amount": 0}, "Amount") == 0
    assert get_nested({"Flag": False}, "Flag") is False


def test_set_nested_creates_containers():
    tree = {}
    set_nested(tree, "Offers.Listings.0.Price.Amount", 0)

    assert tree == {"Offers": {"Listings": [{"Price": {"Amount": 0}}]}}


def test_set_nested_pads_lists():
    tree = {"Nodes": []}
    set_nested(tree, "Nodes.2.Id", "x")

    assert tree["Nodes"] == [{}, {}, {"Id": "x"}]


def test_set_nested_replaces_scalars():
    tree = {"Images": "none"}
    set_nested(tree, "Images.Primary.Large.URL", "https://example.com/a.jpg")

    assert tree["Images"]["Primary"]["Large"]["URL"] == "https://example.com/a.jpg"


def test_set_nested_rejects_named_list_segment():
    with pytest.raises(KeyError):
        set_nested({"Items": []}, "Items.first", 1)


def test_slug_from_title():
    assert generate_slug("Test Soundbar") == "test-soundbar"


def test_slug_collapses_separators():
    slug = generate_slug("Sonos Arc — Barra de Sonido (Negro)")

    assert slug == "sonos-arc-barra-de-sonido-negro"
    assert "--" not in slug
    assert not slug.startswith("-") and not slug.endswith("-")


def test_slug_keeps_spanish_letters():
    assert generate_slug("Altavoz Bluetooth: Diseño Único") == "altavoz-bluetooth-diseño-único"


def test_slug_is_bounded():
    slug = generate_slug("barra " * 100)

    assert len(slug) <= 255
    assert not slug.endswith("-")


def test_slug_is_deterministic():
    assert generate_slug("Barra de sonido") == generate_slug("Barra de sonido")


def test_slug_of_symbols_only_is_empty():
    assert generate_slug("!!! ???") == ""
