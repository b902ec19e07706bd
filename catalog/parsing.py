import re
from typing import Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_int(value, default: int = 0) -> int:
    """Lenient integer parse: "12abc" -> 12, "3.7" -> 3, "" or "x" -> default."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else default


def parse_float(value, default: Optional[float] = 0.0) -> Optional[float]:
    """Lenient decimal parse: "19.99usd" -> 19.99, "" or "x" -> default."""
    if value is None:
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    match = _LEADING_FLOAT.match(str(value))
    return float(match.group(1)) if match else default


def to_text(value) -> str:
    """Render a stored number the way the form shows it: 20.0 -> "20"."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
