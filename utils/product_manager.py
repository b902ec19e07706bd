import logging
import os
from typing import Any, BinaryIO, Dict, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from catalog.defaults import DEFAULT_OPTION_GROUPS, OptionGroupDef
from catalog.editor import VariantEditor
from catalog.media import MediaItem, is_video_type
from catalog.product import ProductDraft
from catalog.projection import (
    build_product_record,
    image_records,
    load_product,
    to_variant_records,
)
from utils.db_utils import ProductStore
from utils.s3_utils import S3Client

logger = logging.getLogger(__name__)


class ProductManager:
    def __init__(
        self,
        store: ProductStore,
        storage: Optional[S3Client] = None,
        sku_prefix: Optional[str] = None,
        catalogue: Sequence[OptionGroupDef] = DEFAULT_OPTION_GROUPS,
    ):
        load_dotenv()
        self.store = store
        self.storage = storage
        self.sku_prefix = sku_prefix or os.getenv("SKU_PREFIX", "SKU")
        self.catalogue = tuple(catalogue)

    def categories(self) -> List[Dict[str, Any]]:
        return self.store.list_active_categories()

    def upload_media(
        self, content: BinaryIO, filename: str, content_type: str, position: int = 0
    ) -> MediaItem:
        if self.storage is None:
            raise ValueError("No media storage configured")
        url = self.storage.upload_media(content, filename, content_type)
        return MediaItem(url=url, position=position, is_video=is_video_type(content_type))

    def save(
        self, draft: ProductDraft, editor: VariantEditor, product_id: Optional[str] = None
    ) -> str:
        """
        Create or update a product with its images and variants.

        The three writes run one after the other. If a later one fails the
        earlier ones stay committed; images and variants are replaced
        wholesale on the next successful save.

        Args:
            draft (ProductDraft): Product form fields.
            editor (VariantEditor): Option groups and variant overrides.
            product_id (Optional[str]): Existing product to update.

        Returns:
            str: The product id.
        """
        editor.base_price = draft.price
        record = build_product_record(draft, editor, self.sku_prefix)

        if product_id:
            if not self.store.update_product(product_id, record):
                raise ValueError(f"Product {product_id} not found")
            logger.info(f"Updated product {product_id}")
        else:
            product_id = self.store.insert_product(record)

        self.store.replace_images(product_id, image_records(draft, product_id))
        count = self.store.replace_variants(
            product_id, to_variant_records(editor, product_id)
        )
        logger.info(f"Saved product {product_id} with {count} variants")
        return product_id

    def load(self, product_id: str) -> Optional[Tuple[ProductDraft, VariantEditor]]:
        row = self.store.get_product(product_id)
        if row is None:
            return None
        return load_product(
            row,
            self.store.get_images(product_id),
            self.store.get_variants(product_id),
            self.catalogue,
        )

    def delete(self, product_id: str) -> Tuple[bool, str]:
        """
        Delete a product, then its media from storage.

        Returns a tuple of (success: bool, message: str)
        """
        images = self.store.get_images(product_id)
        if not self.store.delete_product(product_id):
            return False, f"Product {product_id} not found"

        if self.storage is not None:
            failed = [img["url"] for img in images if not self.storage.delete_media(img["url"])]
            if failed:
                logger.warning(f"Could not delete {len(failed)} media files of {product_id}")
                return True, f"Product deleted, but {len(failed)} media files remain in storage"

        return True, f"Product {product_id} deleted successfully"
