import itertools
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from catalog.options import VariantGroup

# ((group name, value), ...) -- one pair per variant-generating group
CombinationKey = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class VariantCombination:
    groups: Tuple[str, ...]
    values: Tuple[str, ...]

    @property
    def key(self) -> CombinationKey:
        return tuple(zip(self.groups, self.values))

    @property
    def name(self) -> str:
        return " / ".join(self.values) or "Default"


def generate_combinations(groups: Sequence[VariantGroup]) -> List[VariantCombination]:
    """
    Build every sellable combination of the given option groups.

    Order follows itertools.product: the last group varies fastest. With no
    groups there are no variants at all (the product sells as a simple item),
    not a single empty combination.

    Args:
        groups (Sequence[VariantGroup]): Variant-generating groups, in order.

    Returns:
        List[VariantCombination]: One entry per element of the product.
    """
    if not groups:
        return []

    names = tuple(g.name for g in groups)
    return [
        VariantCombination(names, tuple(values))
        for values in itertools.product(*(g.values for g in groups))
    ]


def make_key(names: Sequence[str], values: Sequence[str]) -> CombinationKey:
    return tuple(zip(names, values))
