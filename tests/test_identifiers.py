import re

from catalog.identifiers import generate_sku, slugify, to_base36


def test_sku_format_and_uniqueness():
    first = generate_sku("WIG")
    second = generate_sku("WIG")

    assert first != second
    assert first.startswith("WIG-") and second.startswith("WIG-")
    assert re.fullmatch(r"WIG-[0-9A-Z]{4}-[0-9A-Z]{4}", first)


def test_sku_prefix_from_environment(monkeypatch):
    monkeypatch.setenv("SKU_PREFIX", "hair")
    assert generate_sku().startswith("HAIR-")


def test_sku_default_prefix(monkeypatch):
    monkeypatch.delenv("SKU_PREFIX", raising=False)
    assert generate_sku().startswith("SKU-")


def test_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"


def test_slugify():
    assert slugify('Deep Wave 14" Wig!') == "deep-wave-14-wig"
    assert slugify("  --Body Wave--  ") == "body-wave"
    assert slugify("Crème Brûlée") == "cr-me-br-l-e"
    assert slugify("") == ""
