import json

import pytest

from catalog.defaults import OptionGroupDef
from catalog.editor import VariantEditor
from catalog.media import MediaItem
from catalog.options import OptionGroupRegistry, Swatch
from catalog.product import ProductDraft
from catalog.projection import (
    build_product_record,
    image_records,
    load_product,
    overrides_from_variants,
    registry_from_metadata,
    to_options_metadata,
    to_variant_records,
)


@pytest.fixture
def draft():
    return ProductDraft(
        name="Deep Wave 14\" Wig!",
        category_id="cat-1",
        price="150",
        compare_at_price="180",
        sku="WIG-AB12-CD34",
        stock="3",
        moq="2",
        low_stock_threshold="4",
        description="Soft deep wave",
        status="Draft",
        featured=True,
        preorder_shipping="  Ships in 2 weeks ",
        seo_title="Deep wave wig",
        seo_description="Our best seller",
        keywords="wig, deep wave, , lace",
        images=[
            MediaItem("https://cdn/a.jpg", 0, False),
            MediaItem("https://cdn/b.mp4", 1, True),
        ],
    )


@pytest.fixture
def editor():
    registry = OptionGroupRegistry()
    registry.toggle_group("color")
    registry.set_generates_variants("color", True)
    registry.add_color("color", "#111111", "Jet | Black")
    registry.add_color("color", "#8b4513", "Brown")
    registry.toggle_group("length")
    registry.groups["length"].values = ['10"', '12"']
    registry.toggle_group("density")
    registry.remove_value("density", "250")
    # Disabled but edited: still has to survive a save
    registry.add_value("wig_size", "Petite")
    registry.create_group("Cap")
    registry.add_value("Cap", "Glueless")
    registry.create_group("Unused")

    editor = VariantEditor(registry)
    editor.base_price = "150"
    editor.bulk_set("stock", "5")
    editor.set_field(editor.rows()[0].key, "price", "165.5")
    editor.set_field(editor.rows()[0].key, "sku", "JB-10")
    return editor


def test_variant_records(editor):
    records = to_variant_records(editor, "p1")

    assert len(records) == 4
    assert records[0] == {
        "product_id": "p1",
        "name": 'Jet | Black / 10"',
        "sku": "JB-10",
        "price": 165.5,
        "quantity": 5,
        "option1": "Jet | Black",
        "option2": '10"',
        "option3": None,
        "metadata": {"options": ["Jet | Black", '10"']},
    }
    assert records[1]["sku"] is None
    assert records[1]["price"] == 150.0


def test_variant_records_beyond_three_options():
    registry = OptionGroupRegistry(catalogue=())
    for name in ("A", "B", "C", "D"):
        registry.create_group(name)
        registry.add_value(name, name.lower())
        registry.set_generates_variants(name, True)
    editor = VariantEditor(registry)

    record = to_variant_records(editor, "p1")[0]
    assert [record["option1"], record["option2"], record["option3"]] == ["a", "b", "c"]
    assert record["metadata"]["options"] == ["a", "b", "c", "d"]

    store = overrides_from_variants([record], ["A", "B", "C", "D"])
    assert (("A", "a"), ("B", "b"), ("C", "c"), ("D", "d")) in store


def test_options_metadata(editor):
    metadata = to_options_metadata(editor.registry)

    assert metadata["option_names"] == ["Color", "Length"]
    assert metadata["product_options"]["color"] == {
        "values": ["Jet | Black|#111111", "Brown|#8b4513"],
        "generatesVariants": True,
        "enabled": True,
    }
    assert metadata["product_options"]["wig_size"]["enabled"] is False
    assert "lace_type" not in metadata["product_options"]
    assert metadata["custom_option_groups"] == [
        {"name": "Cap", "values": ["Glueless"], "generatesVariants": False},
        {"name": "Unused", "values": [], "generatesVariants": False},
    ]


def test_options_metadata_with_color_defaults():
    catalogue = (OptionGroupDef("color", "Color", "color", ("Black|#000000",), True),)
    registry = OptionGroupRegistry(catalogue)
    registry.toggle_group("color")
    editor = VariantEditor(registry)

    metadata = to_options_metadata(registry)

    assert [row.name for row in editor.rows()] == ["Black"]
    assert metadata["product_options"]["color"]["values"] == ["Black|#000000"]
    json.dumps(metadata)

    restored = registry_from_metadata(metadata, catalogue)
    assert restored.get("color").values == [Swatch("Black", "#000000")]


def test_untouched_color_defaults_are_not_stored():
    catalogue = (OptionGroupDef("color", "Color", "color", ("Black|#000000",)),)

    metadata = to_options_metadata(OptionGroupRegistry(catalogue))

    assert metadata["product_options"] == {}


def test_product_record(draft, editor):
    record = build_product_record(draft, editor)

    assert record["slug"] == "deep-wave-14-wig"
    assert record["quantity"] == 20
    assert record["price"] == 150.0
    assert record["compare_at_price"] == 180.0
    assert record["sku"] == "WIG-AB12-CD34"
    assert record["moq"] == 2
    assert record["status"] == "draft"
    assert record["tags"] == ["wig", "deep wave", "lace"]
    assert record["metadata"]["low_stock_threshold"] == 4
    assert record["metadata"]["preorder_shipping"] == "Ships in 2 weeks"
    assert record["metadata"]["option_names"] == ["Color", "Length"]


def test_product_record_without_variants_uses_base_stock():
    draft = ProductDraft(name="Edge brush", price="abc", stock="8", moq="", sku="")
    record = build_product_record(draft, VariantEditor(), sku_prefix="ACC")

    assert record["quantity"] == 8
    assert record["price"] == 0.0
    assert record["compare_at_price"] is None
    assert record["moq"] == 1
    assert record["sku"].startswith("ACC-")
    assert record["category_id"] is None
    assert record["metadata"]["preorder_shipping"] is None
    assert record["metadata"]["low_stock_threshold"] == 5


def test_image_records(draft):
    assert image_records(draft, "p1") == [
        {"product_id": "p1", "url": "https://cdn/a.jpg", "position": 0, "alt_text": draft.name},
        {"product_id": "p1", "url": "https://cdn/b.mp4", "position": 1, "alt_text": draft.name},
    ]


def _group_state(registry):
    predefined = {
        key: (g.enabled, g.generates_variants, list(g.values))
        for key, g in registry.groups.items()
    }
    custom = [(g.name, g.generates_variants, list(g.values)) for g in registry.custom_groups]
    return predefined, custom


def test_round_trip(draft, editor):
    record = build_product_record(draft, editor)
    images = image_records(draft, "p1")
    variants = to_variant_records(editor, "p1")

    loaded_draft, loaded_editor = load_product(
        {**record, "id": "p1"}, images, variants
    )

    assert _group_state(loaded_editor.registry) == _group_state(editor.registry)
    assert loaded_editor.rows() == editor.rows()
    assert loaded_editor.total_stock() == 20

    assert loaded_draft.name == draft.name
    assert loaded_draft.price == "150"
    assert loaded_draft.compare_at_price == "180"
    assert loaded_draft.status == "Draft"
    assert loaded_draft.keywords == "wig, deep wave, lace"
    assert loaded_draft.low_stock_threshold == "4"
    assert loaded_draft.slug == "deep-wave-14-wig"
    assert [i.is_video for i in loaded_draft.images] == [False, True]


def test_load_legacy_metadata():
    metadata = {
        "option_names": ["Color", "Length"],
        "product_options": {
            "color": {"values": ["Red|#ff0000"], "generatesVariants": True},
            "length": {"values": ['10"']},
        },
        "custom_option_groups": [{"name": "Cap", "values": ["Glueless"]}],
    }
    registry = registry_from_metadata(metadata)

    assert registry.groups["color"].enabled
    assert registry.groups["color"].values == [Swatch("Red", "#ff0000")]
    assert registry.groups["length"].generates_variants
    assert not registry.groups["lace_type"].enabled
    assert not registry.custom_groups[0].generates_variants

    overrides = overrides_from_variants(
        [{"name": 'Red / 10"', "option1": "Red", "option2": '10"', "price": 99, "quantity": 4, "sku": None}],
        metadata["option_names"],
    )
    stored = overrides.get_override((("Color", "Red"), ("Length", '10"')))
    assert (stored.price, stored.stock, stored.sku) == ("99", "4", "")


def test_variants_not_matching_option_names_are_skipped():
    overrides = overrides_from_variants(
        [{"name": "Red", "option1": "Red", "price": 1, "quantity": 1}], ["Color", "Length"]
    )
    assert len(overrides) == 0
