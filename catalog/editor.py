from dataclasses import dataclass
from typing import List, Optional, Tuple

from catalog.combinations import CombinationKey, VariantCombination, generate_combinations
from catalog.options import OptionGroupRegistry
from catalog.overrides import OverrideStore


@dataclass
class VariantRow:
    """One line of the editable price/stock grid."""

    key: CombinationKey
    values: Tuple[str, ...]
    name: str
    price: str
    stock: str
    sku: str


class VariantEditor:
    """Option groups plus per-combination overrides for one product."""

    def __init__(
        self,
        registry: Optional[OptionGroupRegistry] = None,
        overrides: Optional[OverrideStore] = None,
    ):
        self.registry = registry or OptionGroupRegistry()
        self.overrides = overrides or OverrideStore()

    @property
    def base_price(self) -> str:
        return self.overrides.base_price

    @base_price.setter
    def base_price(self, value: str) -> None:
        self.overrides.base_price = value or ""

    def combinations(self) -> List[VariantCombination]:
        return generate_combinations(self.registry.variant_generating_groups())

    def keys(self) -> List[CombinationKey]:
        return [combo.key for combo in self.combinations()]

    def has_variants(self) -> bool:
        return bool(self.registry.variant_generating_groups())

    def rows(self) -> List[VariantRow]:
        rows = []
        for combo in self.combinations():
            resolved = self.overrides.resolve(combo.key)
            rows.append(
                VariantRow(
                    key=combo.key,
                    values=combo.values,
                    name=combo.name,
                    price=resolved.price,
                    stock=resolved.stock,
                    sku=resolved.sku,
                )
            )
        return rows

    def set_field(self, key: CombinationKey, field: str, value: str) -> None:
        self.overrides.set_field(key, field, value)

    def bulk_set(self, field: str, value: str) -> int:
        return self.overrides.bulk_set(field, value, self.keys())

    def total_stock(self) -> int:
        return self.overrides.total_stock(self.keys())

    def delete_group(self, name: str) -> bool:
        if not self.registry.delete_group(name):
            return False
        self.overrides.discard_group(name)
        return True

    def orphaned(self):
        return self.overrides.orphaned(self.keys())

    def prune_orphans(self) -> int:
        return self.overrides.prune(self.keys())
