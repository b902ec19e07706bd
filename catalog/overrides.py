from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional

from catalog.combinations import CombinationKey
from catalog.parsing import parse_int

FIELDS = ("price", "stock", "sku")
BULK_FIELDS = ("price", "stock")


@dataclass
class VariantOverride:
    price: Optional[str] = None
    stock: Optional[str] = None
    sku: Optional[str] = None


class OverrideStore:
    """
    Per-combination price/stock/SKU data keyed by combination content.

    Overrides whose combination can no longer be produced (group switched off,
    value removed) are kept and come back if the combination does. Callers
    pass the live keys to anything that reads or writes in bulk, and call
    prune() to drop the rest.
    """

    def __init__(self, base_price: str = ""):
        self.base_price = base_price
        self._overrides: Dict[CombinationKey, VariantOverride] = {}

    def __contains__(self, key: CombinationKey) -> bool:
        return key in self._overrides

    def __len__(self) -> int:
        return len(self._overrides)

    def fallback(self) -> VariantOverride:
        return VariantOverride(price=self.base_price, stock="0", sku="")

    def get_override(self, key: CombinationKey) -> VariantOverride:
        stored = self._overrides.get(key)
        return replace(stored) if stored is not None else self.fallback()

    def resolve(self, key: CombinationKey) -> VariantOverride:
        """The values shown in the grid: empty fields fall back per field."""
        override = self.get_override(key)
        return VariantOverride(
            price=override.price or self.base_price,
            stock=override.stock or "0",
            sku=override.sku or "",
        )

    def put(self, key: CombinationKey, override: VariantOverride) -> None:
        self._overrides[key] = replace(override)

    def set_field(self, key: CombinationKey, field: str, value: str) -> None:
        if field not in FIELDS:
            raise ValueError(f"Unknown variant field: {field}")
        record = self._overrides.get(key) or self.fallback()
        self._overrides[key] = replace(record, **{field: value})

    def bulk_set(self, field: str, value: str, keys: Iterable[CombinationKey]) -> int:
        if field not in BULK_FIELDS:
            raise ValueError(f"Bulk edit is not supported for field: {field}")
        count = 0
        for key in keys:
            self.set_field(key, field, value)
            count += 1
        return count

    def total_stock(self, keys: Iterable[CombinationKey]) -> int:
        return sum(parse_int(self.resolve(key).stock) for key in keys)

    def orphaned(self, keys: Iterable[CombinationKey]) -> Dict[CombinationKey, VariantOverride]:
        live = set(keys)
        return {k: v for k, v in self._overrides.items() if k not in live}

    def prune(self, keys: Iterable[CombinationKey]) -> int:
        stale = self.orphaned(keys)
        for key in stale:
            del self._overrides[key]
        return len(stale)

    def discard_group(self, name: str) -> int:
        stale = [k for k in self._overrides if any(g == name for g, _ in k)]
        for key in stale:
            del self._overrides[key]
        return len(stale)
