import json
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

VALUES = "values"
COLOR = "color"


@dataclass(frozen=True)
class OptionGroupDef:
    """A predefined option group that can be switched on per product."""

    key: str
    label: str
    type: str = VALUES
    default_values: Tuple[str, ...] = ()
    generates_variants: bool = False


DEFAULT_OPTION_GROUPS: Tuple[OptionGroupDef, ...] = (
    OptionGroupDef("color", "Color", COLOR),
    OptionGroupDef("lace_type", "Lace Type", VALUES, ("HD Lace", "Transparent Lace")),
    OptionGroupDef(
        "lace_length",
        "Lace Length",
        VALUES,
        ("2x6", "4x4", "5x5", "6x6", "7x7", "13x4", "13x6"),
    ),
    OptionGroupDef(
        "length",
        "Length",
        VALUES,
        ('10"', '12"', '14"', '16"', '18"', '20"', '22"', '24"', '26"', '28"', '30"'),
        generates_variants=True,
    ),
    OptionGroupDef(
        "wig_size", "Wig Size", VALUES, ("Small", "Medium", "Large", "Extra Large")
    ),
    OptionGroupDef("density", "Density", VALUES, ("250", "300", "350")),
)


def load_option_catalogue(path: Optional[str] = None) -> Tuple[OptionGroupDef, ...]:
    """
    Load the predefined option groups.

    Args:
        path (Optional[str]): JSON file holding a list of group definitions.
            Defaults to the OPTION_CATALOGUE_PATH environment variable.

    Returns:
        Tuple[OptionGroupDef, ...]: The catalogue, or DEFAULT_OPTION_GROUPS
            when no file is configured.
    """
    load_dotenv()
    path = path or os.getenv("OPTION_CATALOGUE_PATH")
    if not path:
        return DEFAULT_OPTION_GROUPS

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    catalogue = []
    for entry in raw:
        group_type = entry.get("type", VALUES)
        if group_type not in (VALUES, COLOR):
            raise ValueError(f"Unknown option group type: {group_type}")
        catalogue.append(
            OptionGroupDef(
                key=entry["key"],
                label=entry.get("label") or entry["key"],
                type=group_type,
                default_values=tuple(entry.get("default_values", [])),
                generates_variants=bool(entry.get("generates_variants", False)),
            )
        )

    keys = [d.key for d in catalogue]
    if len(set(keys)) != len(keys):
        raise ValueError(f"Duplicate option group keys in {path}")

    logger.info(f"Loaded {len(catalogue)} option groups from {path}")
    return tuple(catalogue)
