import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from catalog.editor import VariantEditor
from catalog.options import OptionGroupRegistry
from utils.db_utils import PostgresClient, ProductStore
from utils.product_manager import ProductManager
from utils.s3_utils import S3Client

logger = logging.getLogger(__name__)

app = APIRouter(prefix="", tags=["products"])


@lru_cache
def get_store() -> ProductStore:
    """Product store bound to the POSTGRES_URL database."""
    return ProductStore(PostgresClient().engine)


@lru_cache
def get_storage() -> S3Client:
    return S3Client()


def get_manager(
    store: ProductStore = Depends(get_store),
    storage: S3Client = Depends(get_storage),
) -> ProductManager:
    return ProductManager(store, storage)


class OptionGroupSchema(BaseModel):
    name: str
    values: List[str] = Field(default_factory=list)


class VariantPreviewRequest(BaseModel):
    groups: List[OptionGroupSchema] = Field(default_factory=list)
    base_price: str = ""
    stock: Optional[str] = None


class VariantRowSchema(BaseModel):
    name: str
    values: List[str]
    price: str
    stock: str
    sku: str


class VariantPreviewResponse(BaseModel):
    count: int
    total_stock: int
    variants: List[VariantRowSchema]


@app.get("/categories", status_code=200)
def list_categories(store: ProductStore = Depends(get_store)):
    """
    List active categories.

    Returns:
        dict: A dictionary containing the categories as {id, name} pairs.

    Raises:
        HTTPException: If the category query fails, a 500 error is raised.
    """
    try:
        return {"categories": store.list_active_categories()}
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/products/{product_id}", status_code=200)
def get_product(product_id: str, store: ProductStore = Depends(get_store)):
    """
    Get a product with its images and variants.

    Args:
        product_id (str): Id of the product.

    Returns:
        dict: The product row plus "product_images" and "product_variants".

    Raises:
        HTTPException: 404 if the product does not exist, 500 on database errors.
    """
    try:
        product = store.get_product(product_id)
        if product is None:
            raise HTTPException(
                status_code=404, detail=f"Product {product_id} does not exist"
            )
        product["product_images"] = store.get_images(product_id)
        product["product_variants"] = store.get_variants(product_id)
        return product
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.delete("/products/{product_id}", status_code=200)
def delete_product(product_id: str, manager: ProductManager = Depends(get_manager)):
    """
    Delete a product with its images, variants and stored media.

    Raises:
        HTTPException: 404 if the product does not exist, 500 on database errors.
    """
    try:
        success, message = manager.delete(product_id)
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if not success:
        raise HTTPException(
            status_code=404, detail=f"Product {product_id} does not exist"
        )

    logger.info(f"Deleted product {product_id}")
    return {"message": message, "product_id": product_id}


@app.post("/variants/preview", response_model=VariantPreviewResponse)
def preview_variants(request: VariantPreviewRequest):
    """
    Expand option groups into the variant grid without saving anything.

    Each group given here takes part in variant generation; groups with no
    values are ignored. If "stock" is set it is applied to every variant.
    """
    registry = OptionGroupRegistry(catalogue=())
    for group in request.groups:
        created = registry.create_group(group.name)
        if created is None:
            raise HTTPException(
                status_code=400, detail=f"Invalid or duplicate group name: {group.name!r}"
            )
        for value in group.values:
            registry.add_value(created.name, value)
        created.generates_variants = True

    editor = VariantEditor(registry)
    editor.base_price = request.base_price
    if request.stock is not None:
        editor.bulk_set("stock", request.stock)

    rows = editor.rows()
    return VariantPreviewResponse(
        count=len(rows),
        total_stock=editor.total_stock(),
        variants=[
            VariantRowSchema(
                name=row.name,
                values=list(row.values),
                price=row.price,
                stock=row.stock,
                sku=row.sku,
            )
            for row in rows
        ],
    )
