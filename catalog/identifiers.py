import os
import re
import secrets
import string
import time
from typing import Optional

from dotenv import load_dotenv

BASE36 = string.digits + string.ascii_lowercase
DEFAULT_SKU_PREFIX = "SKU"


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(BASE36[rem])
    return "".join(reversed(digits))


def generate_sku(prefix: Optional[str] = None) -> str:
    """
    Generate a product SKU such as "SKU-K3ZQ-8F2A".

    Args:
        prefix (Optional[str]): SKU prefix. Defaults to SKU_PREFIX from the
            environment, then "SKU".

    Returns:
        str: prefix, last 4 base36 digits of the millisecond clock and 4
            random base36 digits, uppercased.
    """
    if prefix is None:
        load_dotenv()
        prefix = os.getenv("SKU_PREFIX", DEFAULT_SKU_PREFIX)

    timestamp = to_base36(int(time.time() * 1000))[-4:]
    random_part = "".join(secrets.choice(BASE36) for _ in range(4))
    return f"{prefix}-{timestamp}-{random_part}".upper()


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower())
    return slug.strip("-")
