import pytest

from utils.db_utils import PostgresClient


def _product(**overrides):
    record = {
        "name": "Body Wave Wig",
        "slug": "body-wave-wig",
        "description": "",
        "category_id": None,
        "price": 120.0,
        "compare_at_price": None,
        "sku": "SKU-AAAA-BBBB",
        "quantity": 0,
        "moq": 1,
        "status": "active",
        "featured": True,
        "seo_title": "",
        "seo_description": "",
        "tags": ["wig"],
        "metadata": {"option_names": []},
    }
    record.update(overrides)
    return record


def test_postgres_client_requires_url(monkeypatch):
    monkeypatch.delenv("POSTGRES_URL", raising=False)
    monkeypatch.setattr("utils.db_utils.load_dotenv", lambda: None)
    with pytest.raises(ValueError):
        PostgresClient()


def test_active_categories(store):
    store.add_category("Wigs")
    store.add_category("Archived", status="inactive")
    bundles = store.add_category("Bundles")

    categories = store.list_active_categories()

    assert [c["name"] for c in categories] == ["Bundles", "Wigs"]
    assert categories[0]["id"] == bundles
    assert set(categories[0]) == {"id", "name"}


def test_insert_and_get_product(store):
    product_id = store.insert_product(_product())
    row = store.get_product(product_id)

    assert row["name"] == "Body Wave Wig"
    assert row["tags"] == ["wig"]
    assert row["metadata"] == {"option_names": []}
    assert row["featured"] is True
    assert store.get_product("missing") is None


def test_update_product(store):
    product_id = store.insert_product(_product())

    assert store.update_product(product_id, {"name": "Renamed", "quantity": 4})
    row = store.get_product(product_id)
    assert row["name"] == "Renamed"
    assert row["quantity"] == 4
    assert row["sku"] == "SKU-AAAA-BBBB"
    assert not store.update_product("missing", {"name": "x"})


def test_replace_variants_is_full_replace(store):
    product_id = store.insert_product(_product())
    store.replace_variants(
        product_id,
        [
            {"name": "Red", "price": 1, "quantity": 1, "option1": "Red", "metadata": {"options": ["Red"]}},
            {"name": "Blue", "price": 1, "quantity": 1, "option1": "Blue", "metadata": {"options": ["Blue"]}},
        ],
    )
    store.replace_variants(
        product_id,
        [{"name": "Green", "price": 2, "quantity": 3, "option1": "Green", "metadata": {"options": ["Green"]}}],
    )

    variants = store.get_variants(product_id)
    assert [v["name"] for v in variants] == ["Green"]
    assert variants[0]["metadata"] == {"options": ["Green"]}
    assert variants[0]["product_id"] == product_id


def test_replace_images_keeps_position_order(store):
    product_id = store.insert_product(_product())
    store.replace_images(
        product_id,
        [
            {"url": "https://cdn/b.jpg", "position": 1, "alt_text": "Wig"},
            {"url": "https://cdn/a.jpg", "position": 0, "alt_text": "Wig"},
        ],
    )

    assert [i["url"] for i in store.get_images(product_id)] == [
        "https://cdn/a.jpg",
        "https://cdn/b.jpg",
    ]


def test_delete_product_removes_children(store):
    product_id = store.insert_product(_product())
    store.replace_images(product_id, [{"url": "u", "position": 0, "alt_text": ""}])
    store.replace_variants(product_id, [{"name": "Default", "price": 1, "quantity": 1}])

    assert store.delete_product(product_id)
    assert store.get_product(product_id) is None
    assert store.get_images(product_id) == []
    assert store.get_variants(product_id) == []
    assert not store.delete_product(product_id)


def test_list_products(store):
    store.insert_product(_product(name="B"))
    store.insert_product(_product(name="A"))
    assert [p["name"] for p in store.list_products()] == ["A", "B"]


def test_health_check(store):
    assert store.health_check()
