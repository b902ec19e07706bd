import pytest

from catalog.overrides import OverrideStore, VariantOverride

RED = (("Color", "Red"),)
BLUE = (("Color", "Blue"),)


def test_missing_override_falls_back_to_base_price():
    store = OverrideStore(base_price="25.00")
    assert store.get_override(RED) == VariantOverride(price="25.00", stock="0", sku="")
    assert RED not in store


def test_set_field_creates_record_with_defaults():
    store = OverrideStore(base_price="25.00")
    store.set_field(RED, "stock", "7")

    assert store.get_override(RED) == VariantOverride(price="25.00", stock="7", sku="")
    store.set_field(RED, "sku", "WIG-RED")
    assert store.get_override(RED).sku == "WIG-RED"
    assert store.get_override(RED).stock == "7"


def test_get_override_returns_a_copy():
    store = OverrideStore()
    store.set_field(RED, "stock", "1")
    store.get_override(RED).stock = "99"
    assert store.get_override(RED).stock == "1"


def test_unknown_field():
    store = OverrideStore()
    with pytest.raises(ValueError):
        store.set_field(RED, "weight", "1")
    with pytest.raises(ValueError):
        store.bulk_set("sku", "X", [RED])


def test_resolve_uses_per_field_fallback():
    store = OverrideStore(base_price="10")
    store.set_field(RED, "price", "")
    store.set_field(RED, "stock", "")

    resolved = store.resolve(RED)
    assert resolved.price == "10"
    assert resolved.stock == "0"


def test_bulk_set_touches_only_given_keys():
    store = OverrideStore(base_price="10")
    store.set_field(BLUE, "stock", "3")

    assert store.bulk_set("stock", "50", [RED]) == 1
    assert store.get_override(RED).stock == "50"
    assert store.get_override(BLUE).stock == "3"


def test_total_stock_treats_garbage_as_zero():
    store = OverrideStore()
    store.set_field(RED, "stock", "12abc")
    store.set_field(BLUE, "stock", "lots")
    green = (("Color", "Green"),)

    assert store.total_stock([RED, BLUE, green]) == 12


def test_total_stock_ignores_keys_not_given():
    store = OverrideStore()
    store.set_field(RED, "stock", "5")
    store.set_field(BLUE, "stock", "5")
    assert store.total_stock([RED]) == 5


def test_orphans_and_prune():
    store = OverrideStore()
    store.set_field(RED, "stock", "5")
    store.set_field(BLUE, "stock", "6")

    assert list(store.orphaned([RED])) == [BLUE]
    assert store.prune([RED]) == 1
    assert BLUE not in store
    assert RED in store


def test_discard_group():
    store = OverrideStore()
    store.set_field((("Color", "Red"), ("Cap", "Glueless")), "stock", "1")
    store.set_field(RED, "stock", "2")

    assert store.discard_group("Cap") == 1
    assert len(store) == 1
