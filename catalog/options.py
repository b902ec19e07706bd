from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Sequence, Union

from catalog.defaults import COLOR, DEFAULT_OPTION_GROUPS, VALUES, OptionGroupDef


class Swatch(NamedTuple):
    """A color value: display label plus the color identifier (hex)."""

    label: str
    hex: str

    def encode(self) -> str:
        return f"{self.label}|{self.hex}"

    @classmethod
    def decode(cls, raw: str) -> "Swatch":
        # The hex never contains "|", so split from the right
        label, sep, hex_code = raw.rpartition("|")
        if not sep:
            return cls(raw, raw)
        return cls(label or hex_code, hex_code)


class VariantGroup(NamedTuple):
    """The normalized shape fed to the combination engine."""

    name: str
    values: List[str]


@dataclass
class OptionGroup:
    name: str
    values: list = field(default_factory=list)
    generates_variants: bool = False
    enabled: bool = True
    type: str = VALUES
    key: Optional[str] = None

    @property
    def is_custom(self) -> bool:
        return self.key is None

    def labels(self) -> List[str]:
        if self.type == COLOR:
            return [swatch.label for swatch in self.values]
        return list(self.values)


def initial_values(definition: OptionGroupDef) -> list:
    """Default values of a catalogue entry; color defaults are "label|hex" strings."""
    if definition.type == COLOR:
        return [Swatch.decode(v) for v in definition.default_values]
    return list(definition.default_values)


class OptionGroupRegistry:
    """
    Holds the predefined option groups of a product plus any custom groups.

    Predefined groups are addressed by their catalogue key, custom groups by
    their name. Duplicate additions are ignored and reported by returning
    False.
    """

    def __init__(self, catalogue: Sequence[OptionGroupDef] = DEFAULT_OPTION_GROUPS):
        self.catalogue = tuple(catalogue)
        self.groups: Dict[str, OptionGroup] = {
            d.key: OptionGroup(
                name=d.label,
                values=initial_values(d),
                generates_variants=d.generates_variants,
                enabled=False,
                type=d.type,
                key=d.key,
            )
            for d in self.catalogue
        }
        self.custom_groups: List[OptionGroup] = []

    def definition(self, key: str) -> Optional[OptionGroupDef]:
        return next((d for d in self.catalogue if d.key == key), None)

    def get(self, key: str) -> OptionGroup:
        if key in self.groups:
            return self.groups[key]
        for group in self.custom_groups:
            if group.name == key:
                return group
        raise KeyError(f"Unknown option group: {key}")

    def _predefined(self, key: str) -> OptionGroup:
        if key not in self.groups:
            raise KeyError(f"Unknown predefined option group: {key}")
        return self.groups[key]

    def toggle_group(self, key: str) -> bool:
        """Flip a predefined group on or off. Its values are kept either way."""
        group = self._predefined(key)
        group.enabled = not group.enabled
        return group.enabled

    def set_generates_variants(self, key: str, generates: bool) -> None:
        self.get(key).generates_variants = bool(generates)

    def toggle_generates_variants(self, key: str) -> bool:
        group = self.get(key)
        group.generates_variants = not group.generates_variants
        return group.generates_variants

    def add_value(self, key: str, value: str) -> bool:
        group = self.get(key)
        if group.type == COLOR:
            raise ValueError(f"Use add_color for color group {key}")

        value = (value or "").strip()
        if not value or value in group.values:
            return False
        group.values.append(value)
        return True

    def add_color(self, key: str, hex_code: str, label: str = "") -> bool:
        """
        Add a swatch to a color group.

        Args:
            key (str): Color group key.
            hex_code (str): Color identifier, e.g. "#1a2b3c".
            label (str): Display name. Falls back to the hex code.

        Returns:
            bool: False when the hex is already present. A label already in
                use is refused as well, stricter than hex-only uniqueness,
                so that variant names and combination keys stay distinct.
        """
        group = self.get(key)
        if group.type != COLOR:
            raise ValueError(f"Option group {key} is not a color group")

        hex_code = (hex_code or "").strip().lower()
        if not hex_code:
            return False
        label = (label or "").strip() or hex_code

        for swatch in group.values:
            if swatch.hex == hex_code or swatch.label == label:
                return False
        group.values.append(Swatch(label, hex_code))
        return True

    def remove_value(self, key: str, value: Union[str, Swatch]) -> bool:
        group = self.get(key)
        if group.type == COLOR:
            if isinstance(value, Swatch):
                remaining = [s for s in group.values if s != value]
            else:
                hex_code = (value or "").strip().lower()
                remaining = [s for s in group.values if s.hex != hex_code]
        else:
            remaining = [v for v in group.values if v != value]

        if len(remaining) == len(group.values):
            return False
        group.values = remaining
        return True

    def reset_to_defaults(self, key: str) -> bool:
        definition = self.definition(key)
        if definition is None or not definition.default_values:
            return False
        self.groups[key].values = initial_values(definition)
        return True

    def create_group(self, name: str) -> Optional[OptionGroup]:
        name = (name or "").strip()
        if not name:
            return None
        if any(g.name == name for g in self.custom_groups):
            return None
        if any(name in (d.key, d.label) for d in self.catalogue):
            return None

        group = OptionGroup(name=name)
        self.custom_groups.append(group)
        return group

    def delete_group(self, name: str) -> bool:
        remaining = [g for g in self.custom_groups if g.name != name]
        if len(remaining) == len(self.custom_groups):
            return False
        self.custom_groups = remaining
        return True

    def enabled_groups(self) -> List[OptionGroup]:
        return [self.groups[d.key] for d in self.catalogue if self.groups[d.key].enabled]

    def variant_generating_groups(self) -> List[VariantGroup]:
        """Enabled, flagged, non-empty groups in catalogue then creation order."""
        selected = [
            g for g in self.enabled_groups() if g.generates_variants and g.values
        ]
        selected += [g for g in self.custom_groups if g.generates_variants and g.values]
        return [VariantGroup(g.name, g.labels()) for g in selected]
