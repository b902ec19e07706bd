"""
Conversion between the in-memory form state and stored records.

A save produces one product row, one row per image and one row per producible
variant; option group state travels in the product's metadata so that a load
rebuilds the same registry. Overrides for combinations that are not producible
at save time are not written.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from catalog.combinations import make_key
from catalog.defaults import COLOR, DEFAULT_OPTION_GROUPS, OptionGroupDef
from catalog.editor import VariantEditor
from catalog.identifiers import generate_sku
from catalog.media import MediaItem, is_video_file
from catalog.options import OptionGroup, OptionGroupRegistry, Swatch, initial_values
from catalog.overrides import OverrideStore, VariantOverride
from catalog.parsing import parse_float, parse_int, to_text
from catalog.product import ProductDraft

logger = logging.getLogger(__name__)

# Number of positional option columns on a variant row
SUPPORTED_ARITY = 3


def _encode_values(group: OptionGroup) -> List[str]:
    if group.type == COLOR:
        return [swatch.encode() for swatch in group.values]
    return list(group.values)


def _decode_values(group_type: str, values: Sequence[str]) -> list:
    if group_type == COLOR:
        return [Swatch.decode(v) for v in values]
    return list(values)


def option_names(registry: OptionGroupRegistry) -> List[str]:
    return [
        g.name or f"Option {i + 1}"
        for i, g in enumerate(registry.variant_generating_groups())
    ]


def to_variant_records(editor: VariantEditor, product_id: Any) -> List[Dict[str, Any]]:
    """
    Project the producible combinations onto variant rows.

    Args:
        editor (VariantEditor): Form state.
        product_id (Any): Owning product id.

    Returns:
        List[Dict[str, Any]]: Rows ready for ProductStore.replace_variants.
    """
    records = []
    for row in editor.rows():
        values = list(row.values)
        if len(values) > SUPPORTED_ARITY:
            logger.warning(
                f"Variant {row.name} has {len(values)} options, "
                f"only {SUPPORTED_ARITY} fit the option columns"
            )
        positional = values[:SUPPORTED_ARITY] + [None] * (SUPPORTED_ARITY - len(values))
        records.append(
            {
                "product_id": product_id,
                "name": row.name,
                "sku": row.sku or None,
                "price": parse_float(row.price),
                "quantity": parse_int(row.stock),
                "option1": positional[0],
                "option2": positional[1],
                "option3": positional[2],
                "metadata": {"options": values},
            }
        )
    return records


def to_options_metadata(registry: OptionGroupRegistry) -> Dict[str, Any]:
    product_options = {}
    for definition in registry.catalogue:
        group = registry.groups[definition.key]
        changed = (
            group.values != initial_values(definition)
            or group.generates_variants != definition.generates_variants
        )
        if not (group.enabled or changed):
            continue
        product_options[definition.key] = {
            "values": _encode_values(group),
            "generatesVariants": group.generates_variants,
            "enabled": group.enabled,
        }

    return {
        "option_names": option_names(registry),
        "product_options": product_options,
        "custom_option_groups": [
            {
                "name": g.name,
                "values": list(g.values),
                "generatesVariants": g.generates_variants,
            }
            for g in registry.custom_groups
        ],
    }


def image_records(draft: ProductDraft, product_id: Any) -> List[Dict[str, Any]]:
    return [
        {
            "product_id": product_id,
            "url": image.url,
            "position": idx,
            "alt_text": draft.name,
        }
        for idx, image in enumerate(draft.images)
    ]


def build_product_record(
    draft: ProductDraft, editor: VariantEditor, sku_prefix: Optional[str] = None
) -> Dict[str, Any]:
    """Product row for a save. Stock is the variant total when variants exist."""
    quantity = editor.total_stock() if editor.has_variants() else parse_int(draft.stock)

    metadata = {
        "low_stock_threshold": parse_int(draft.low_stock_threshold) or 5,
        "preorder_shipping": draft.preorder_shipping.strip() or None,
    }
    metadata.update(to_options_metadata(editor.registry))

    return {
        "name": draft.name,
        "slug": draft.effective_slug(),
        "description": draft.description,
        "category_id": draft.category_id or None,
        "price": parse_float(draft.price),
        "compare_at_price": (
            parse_float(draft.compare_at_price, None) if draft.compare_at_price else None
        ),
        "sku": draft.sku or generate_sku(sku_prefix),
        "quantity": quantity,
        "moq": parse_int(draft.moq) or 1,
        "status": draft.status.lower(),
        "featured": bool(draft.featured),
        "seo_title": draft.seo_title,
        "seo_description": draft.seo_description,
        "tags": draft.keyword_tags(),
        "metadata": metadata,
    }


def registry_from_metadata(
    metadata: Dict[str, Any],
    catalogue: Sequence[OptionGroupDef] = DEFAULT_OPTION_GROUPS,
) -> OptionGroupRegistry:
    registry = OptionGroupRegistry(catalogue)
    stored = metadata.get("product_options") or {}

    for definition in registry.catalogue:
        entry = stored.get(definition.key)
        if entry is None:
            continue
        group = registry.groups[definition.key]
        group.enabled = entry.get("enabled", True)
        if "values" in entry and entry["values"] is not None:
            group.values = _decode_values(definition.type, entry["values"])
        group.generates_variants = entry.get(
            "generatesVariants", definition.generates_variants
        )

    for entry in metadata.get("custom_option_groups") or []:
        group = registry.create_group(entry.get("name", ""))
        if group is None:
            logger.warning(f"Skipping stored option group {entry.get('name')!r}")
            continue
        group.values = list(entry.get("values") or [])
        group.generates_variants = bool(entry.get("generatesVariants", False))

    return registry


def overrides_from_variants(
    variants: Sequence[Dict[str, Any]], names: Sequence[str], base_price: str = ""
) -> OverrideStore:
    store = OverrideStore(base_price)
    for variant in variants:
        values = (variant.get("metadata") or {}).get("options")
        if not values:
            values = [
                variant.get(f"option{idx + 1}")
                for idx in range(min(len(names), SUPPORTED_ARITY))
            ]
            values = [v for v in values if v]
        if not values or len(values) != len(names):
            logger.warning(f"Variant {variant.get('name')!r} does not match option names")
            continue

        stock = variant.get("stock")
        if stock is None:
            stock = variant.get("quantity")
        store.put(
            make_key(names, values),
            VariantOverride(
                price=to_text(variant.get("price")),
                stock=to_text(stock if stock is not None else 0),
                sku=variant.get("sku") or "",
            ),
        )
    return store


def load_product(
    row: Dict[str, Any],
    images: Sequence[Dict[str, Any]] = (),
    variants: Sequence[Dict[str, Any]] = (),
    catalogue: Sequence[OptionGroupDef] = DEFAULT_OPTION_GROUPS,
) -> Tuple[ProductDraft, VariantEditor]:
    """
    Rebuild the form state from stored rows.

    Args:
        row (Dict[str, Any]): Product row with decoded metadata and tags.
        images (Sequence[Dict[str, Any]]): Image rows ordered by position.
        variants (Sequence[Dict[str, Any]]): Variant rows.
        catalogue (Sequence[OptionGroupDef]): Predefined option groups.

    Returns:
        Tuple[ProductDraft, VariantEditor]: Draft and variant editor.
    """
    metadata = row.get("metadata") or {}
    status = row.get("status") or "active"

    draft = ProductDraft(
        name=row.get("name") or "",
        category_id=row.get("category_id") or "",
        price=to_text(row.get("price")),
        compare_at_price=to_text(row.get("compare_at_price")),
        sku=row.get("sku") or "",
        stock=to_text(row.get("quantity")),
        moq=to_text(row.get("moq")) or "1",
        low_stock_threshold=to_text(metadata.get("low_stock_threshold")) or "5",
        description=row.get("description") or "",
        status=status.capitalize(),
        featured=bool(row.get("featured")),
        preorder_shipping=metadata.get("preorder_shipping") or "",
        seo_title=row.get("seo_title") or "",
        seo_description=row.get("seo_description") or "",
        slug=row.get("slug") or "",
        keywords=", ".join(row.get("tags") or []),
        images=[
            MediaItem(url=img["url"], position=idx, is_video=is_video_file(img["url"]))
            for idx, img in enumerate(images)
        ],
    )

    registry = registry_from_metadata(metadata, catalogue)
    overrides = overrides_from_variants(
        variants, metadata.get("option_names") or [], draft.price
    )
    return draft, VariantEditor(registry, overrides)
