from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

from catalog.identifiers import slugify
from catalog.media import MediaItem
from catalog.parsing import parse_float

STATUS_OPTIONS = ["Active", "Draft", "Inactive", "Archived"]
SEO_TITLE_RECOMMENDED = 60
SEO_DESCRIPTION_RECOMMENDED = 160


class Savings(NamedTuple):
    amount: float
    percent_off: int


@dataclass
class ProductDraft:
    """Product fields as typed into the form. Numbers stay as strings."""

    name: str = ""
    category_id: str = ""
    price: str = ""
    compare_at_price: str = ""
    sku: str = ""
    stock: str = ""
    moq: str = "1"
    low_stock_threshold: str = "5"
    description: str = ""
    status: str = "Active"
    featured: bool = False
    preorder_shipping: str = ""
    seo_title: str = ""
    seo_description: str = ""
    slug: str = ""
    keywords: str = ""
    images: List[MediaItem] = field(default_factory=list)

    def effective_slug(self) -> str:
        return self.slug or slugify(self.name)

    def keyword_tags(self) -> List[str]:
        return [k.strip() for k in (self.keywords or "").split(",") if k.strip()]

    def savings(self) -> Optional[Savings]:
        """Discount shown next to the compare-at price, if there is one."""
        if not self.price or not self.compare_at_price:
            return None
        price = parse_float(self.price, None)
        compare = parse_float(self.compare_at_price, None)
        if price is None or compare is None or compare <= max(price, 0):
            return None
        amount = round(compare - price, 2)
        return Savings(amount, round(amount / compare * 100))
