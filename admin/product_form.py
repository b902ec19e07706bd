import hashlib
import logging
from io import BytesIO

from dotenv import load_dotenv
from PIL import Image, UnidentifiedImageError

import streamlit as st

from catalog.defaults import COLOR, load_option_catalogue
from catalog.editor import VariantEditor
from catalog.identifiers import generate_sku, slugify
from catalog.media import UPLOAD_EXTENSIONS, is_video_type
from catalog.options import OptionGroupRegistry
from catalog.product import (
    SEO_DESCRIPTION_RECOMMENDED,
    SEO_TITLE_RECOMMENDED,
    STATUS_OPTIONS,
    ProductDraft,
)
from utils.db_utils import PostgresClient, ProductStore
from utils.product_manager import ProductManager
from utils.s3_utils import S3Client

# Load environment variables and configure logging
load_dotenv()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PAGES = ["Products", "Edit Product"]
FORM_PREFIX = "form_"

# Page Configuration
st.set_page_config(
    page_title="Product Admin",
    page_icon="🛍️",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_product_manager() -> ProductManager:
    store = ProductStore(PostgresClient().engine)
    return ProductManager(store, S3Client(), catalogue=load_option_catalogue())


def init_session_state():
    if "current_page" not in st.session_state:
        st.session_state.current_page = "Products"
    if "editing_product_id" not in st.session_state:
        st.session_state.editing_product_id = None
    if "draft" not in st.session_state:
        st.session_state.draft = None
    if "editor" not in st.session_state:
        st.session_state.editor = None
    if "save_result" not in st.session_state:
        st.session_state.save_result = None


def go_to(page: str):
    # Applied on the next run, before the page selector is drawn
    st.session_state.next_page = page


def clear_form_widgets():
    for key in list(st.session_state.keys()):
        if str(key).startswith(FORM_PREFIX):
            del st.session_state[key]


def start_new_product(manager: ProductManager):
    clear_form_widgets()
    st.session_state.editing_product_id = None
    st.session_state.draft = ProductDraft(sku=generate_sku(manager.sku_prefix))
    st.session_state.editor = VariantEditor(OptionGroupRegistry(manager.catalogue))
    go_to("Edit Product")


def start_edit(manager: ProductManager, product_id: str) -> bool:
    loaded = manager.load(product_id)
    if loaded is None:
        st.error(f"Product {product_id} not found")
        return False
    clear_form_widgets()
    st.session_state.editing_product_id = product_id
    st.session_state.draft, st.session_state.editor = loaded
    go_to("Edit Product")
    return True


def widget_key(*parts) -> str:
    digest = hashlib.md5(repr(parts).encode("utf-8")).hexdigest()[:12]
    return f"{FORM_PREFIX}{digest}"


# Product list
def products_page(manager: ProductManager):
    st.title("Products")

    if st.session_state.save_result:
        st.success(st.session_state.save_result)
        st.session_state.save_result = None

    if st.button("Add New Product", type="primary"):
        start_new_product(manager)
        st.rerun()

    try:
        products = manager.store.list_products()
    except Exception as e:
        st.error(f"Error loading products: {str(e)}")
        logger.error(f"Error loading products: {str(e)}")
        return

    if not products:
        st.info("No products yet")
        return

    for product in products:
        col1, col2, col3, col4, col5 = st.columns([4, 2, 2, 1, 1])
        col1.markdown(f"**{product['name']}**  \n{product['sku'] or ''}")
        col2.write(f"Price: {product['price']}")
        col3.write(f"Stock: {product['quantity']} ({product['status']})")
        if col4.button("Edit", key=f"edit_{product['id']}"):
            if start_edit(manager, product["id"]):
                st.rerun()
        if col5.button("Delete", key=f"delete_{product['id']}"):
            success, message = manager.delete(product["id"])
            if success:
                st.session_state.save_result = message
                st.rerun()
            else:
                st.error(message)


# Form tabs
def general_tab(manager: ProductManager, draft: ProductDraft, is_edit: bool):
    draft.name = st.text_input(
        "Product Name *",
        key=f"{FORM_PREFIX}name",
        value=draft.name,
        placeholder="Enter product name...",
    )
    # Fill the slug once for new products; after that it is the user's
    if not is_edit and draft.name and not draft.slug:
        draft.slug = slugify(draft.name)

    if "categories" not in st.session_state:
        try:
            st.session_state.categories = manager.categories()
        except Exception as e:
            st.session_state.categories = []
            st.error(f"Error loading categories: {str(e)}")
            logger.error(f"Error loading categories: {str(e)}")

    categories = st.session_state.categories
    if categories:
        ids = [c["id"] for c in categories]
        if draft.category_id not in ids:
            draft.category_id = ids[0]
        names = {c["id"]: c["name"] for c in categories}
        draft.category_id = st.selectbox(
            "Category",
            options=ids,
            index=ids.index(draft.category_id),
            format_func=lambda category_id: names[category_id],
            key=f"{FORM_PREFIX}category",
        )
    else:
        st.caption("No active categories")

    draft.description = st.text_area(
        "Description",
        key=f"{FORM_PREFIX}description",
        value=draft.description,
        height=200,
    )

    col1, col2 = st.columns(2)
    with col1:
        status = draft.status if draft.status in STATUS_OPTIONS else STATUS_OPTIONS[0]
        draft.status = st.selectbox(
            "Status",
            options=STATUS_OPTIONS,
            index=STATUS_OPTIONS.index(status),
            key=f"{FORM_PREFIX}status",
        )
        draft.featured = st.toggle(
            "Featured product", value=draft.featured, key=f"{FORM_PREFIX}featured"
        )
    with col2:
        draft.preorder_shipping = st.text_input(
            "Pre-order shipping note",
            key=f"{FORM_PREFIX}preorder",
            value=draft.preorder_shipping,
            placeholder="e.g. Ships in 2-3 weeks",
        )


def pricing_tab(manager: ProductManager, draft: ProductDraft, editor: VariantEditor):
    col1, col2 = st.columns(2)
    with col1:
        draft.price = st.text_input("Price *", key=f"{FORM_PREFIX}price", value=draft.price)
    with col2:
        draft.compare_at_price = st.text_input(
            "Compare at price", key=f"{FORM_PREFIX}compare", value=draft.compare_at_price
        )
    editor.base_price = draft.price

    savings = draft.savings()
    if savings:
        st.caption(f"Savings: {savings.amount:.2f} ({savings.percent_off}% off)")
    else:
        st.caption("Set a compare-at price above the price to show a discount")

    col1, col2 = st.columns(2)
    with col1:
        st.text_input(
            "SKU (Auto-generated)",
            value=draft.sku,
            disabled=True,
            key=widget_key("sku", draft.sku),
        )
        if st.button("Generate new SKU"):
            draft.sku = generate_sku(manager.sku_prefix)
            st.rerun()
    with col2:
        if editor.has_variants():
            st.text_input(
                "Stock Quantity *",
                value=str(editor.total_stock()),
                disabled=True,
                key=widget_key("total_stock", editor.total_stock()),
            )
            st.caption("Stock is managed per variant. Edit stock in the Variants tab.")
        else:
            draft.stock = st.text_input(
                "Stock Quantity *", key=f"{FORM_PREFIX}stock", value=draft.stock
            )

    col1, col2 = st.columns(2)
    with col1:
        draft.moq = st.text_input(
            "Minimum Order Quantity (MOQ)", key=f"{FORM_PREFIX}moq", value=draft.moq
        )
    with col2:
        draft.low_stock_threshold = st.text_input(
            "Low Stock Threshold",
            key=f"{FORM_PREFIX}low_stock",
            value=draft.low_stock_threshold,
        )


def option_values(editor: VariantEditor, key: str):
    group = editor.registry.get(key)
    if not group.values:
        st.caption("No values yet")
    cols = st.columns(4)
    for idx, value in enumerate(group.values):
        label = f"{value.label} ({value.hex})" if group.type == COLOR else value
        if cols[idx % 4].button(f"✕ {label}", key=widget_key("remove", key, label)):
            editor.registry.remove_value(key, value)
            st.rerun()

    with st.form(widget_key("add_form", key), clear_on_submit=True):
        if group.type == COLOR:
            hex_code = st.color_picker("Color", value="#000000")
            name = st.text_input("Color name", placeholder="e.g. Jet Black")
            if st.form_submit_button("Add color"):
                if not editor.registry.add_color(key, hex_code, name):
                    st.warning("That color is already in the list")
                st.rerun()
        else:
            value = st.text_input(f"Add {group.name} value")
            if st.form_submit_button("Add"):
                editor.registry.add_value(key, value)
                st.rerun()


def variants_tab(editor: VariantEditor):
    registry = editor.registry
    st.subheader("Product Options")

    for definition in registry.catalogue:
        group = registry.groups[definition.key]
        with st.expander(group.name, expanded=group.enabled):
            col1, col2, col3 = st.columns([2, 2, 1])
            enabled = col1.toggle(
                "Enabled", value=group.enabled, key=widget_key("enabled", definition.key)
            )
            if enabled != group.enabled:
                registry.toggle_group(definition.key)
                st.rerun()
            generates = col2.toggle(
                "Creates variants",
                value=group.generates_variants,
                key=widget_key("generates", definition.key),
            )
            if generates != group.generates_variants:
                registry.set_generates_variants(definition.key, generates)
                st.rerun()
            if definition.default_values and col3.button(
                "Reset", key=widget_key("reset", definition.key)
            ):
                registry.reset_to_defaults(definition.key)
                st.rerun()
            if group.enabled:
                option_values(editor, definition.key)

    st.subheader("Custom Options")
    with st.form(widget_key("new_group"), clear_on_submit=True):
        name = st.text_input("Option name", placeholder="e.g. Material")
        if st.form_submit_button("Add option"):
            if registry.create_group(name) is None:
                st.warning("Option names must be new and non-empty")
            st.rerun()

    for group in list(registry.custom_groups):
        with st.expander(group.name, expanded=True):
            col1, col2 = st.columns([3, 1])
            generates = col1.toggle(
                "Creates variants",
                value=group.generates_variants,
                key=widget_key("generates", "custom", group.name),
            )
            if generates != group.generates_variants:
                registry.set_generates_variants(group.name, generates)
                st.rerun()
            if col2.button("Delete option", key=widget_key("delete", group.name)):
                editor.delete_group(group.name)
                st.rerun()
            option_values(editor, group.name)

    variant_grid(editor)


def variant_grid(editor: VariantEditor):
    rows = editor.rows()
    st.subheader(f"Variants ({len(rows)})")
    if not rows:
        st.caption("Turn on 'Creates variants' for an option to sell it in several variants")
        return

    col1, col2 = st.columns(2)
    for field, column in (("price", col1), ("stock", col2)):
        with column.form(widget_key("bulk", field), clear_on_submit=True):
            value = st.text_input(f"Set {field} for all variants")
            if st.form_submit_button("Apply to all"):
                editor.bulk_set(field, value)
                st.rerun()

    for row in rows:
        col1, col2, col3, col4 = st.columns([3, 2, 2, 3])
        col1.write(row.name)
        # Keyed by content and current value so external edits redraw the input
        for field, column in (("price", col2), ("stock", col3), ("sku", col4)):
            current = getattr(row, field)
            new_value = column.text_input(
                field.capitalize(),
                value=current,
                key=widget_key("cell", row.key, field, current),
                label_visibility="collapsed",
            )
            if new_value != current:
                editor.set_field(row.key, field, new_value)

    st.caption(f"Total stock: {editor.total_stock()}")


def images_tab(manager: ProductManager, draft: ProductDraft):
    with st.form(widget_key("upload"), clear_on_submit=True):
        uploaded_file = st.file_uploader(
            "Upload image or video", type=list(UPLOAD_EXTENSIONS)
        )
        if st.form_submit_button("Upload") and uploaded_file:
            try:
                content = BytesIO(uploaded_file.getvalue())
                if not is_video_type(uploaded_file.type):
                    # Reject files Pillow cannot read before they reach storage
                    Image.open(content).verify()
                    content.seek(0)
                media = manager.upload_media(
                    content, uploaded_file.name, uploaded_file.type, len(draft.images)
                )
                draft.images.append(media)
            except UnidentifiedImageError:
                st.error(f"Error uploading file: {uploaded_file.name} is not a readable image")
            except Exception as e:
                st.error(f"Error uploading file: {str(e)}")
                logger.error(f"Error uploading file: {str(e)}")

    cols = st.columns(3)
    for idx, image in enumerate(draft.images):
        with cols[idx % 3]:
            if image.is_video:
                st.video(image.url)
            else:
                st.image(image.url, caption="Main image" if idx == 0 else f"Image {idx + 1}")
            if st.button(f"Remove {idx + 1}", key=widget_key("remove_image", image.url, idx)):
                draft.images.pop(idx)
                st.rerun()


def seo_tab(draft: ProductDraft):
    draft.seo_title = st.text_input(
        "SEO Title", key=f"{FORM_PREFIX}seo_title", value=draft.seo_title
    )
    st.caption(f"{len(draft.seo_title)}/{SEO_TITLE_RECOMMENDED} characters recommended")

    draft.seo_description = st.text_area(
        "Meta Description",
        key=f"{FORM_PREFIX}seo_description",
        value=draft.seo_description,
        height=100,
    )
    st.caption(
        f"{len(draft.seo_description)}/{SEO_DESCRIPTION_RECOMMENDED} characters recommended"
    )

    draft.slug = st.text_input(
        "URL Slug", key=widget_key("slug", draft.slug), value=draft.slug, placeholder="product-slug"
    )
    draft.keywords = st.text_input(
        "Keywords", key=f"{FORM_PREFIX}keywords", value=draft.keywords
    )
    st.caption("Separate keywords with commas")


def handle_save(manager: ProductManager) -> bool:
    draft = st.session_state.draft
    editor = st.session_state.editor
    is_edit = st.session_state.editing_product_id is not None

    if not draft.name.strip():
        st.error("Please enter a product name")
        return False

    try:
        product_id = manager.save(draft, editor, st.session_state.editing_product_id)
    except Exception as e:
        st.error(f"Error: {str(e)}")
        logger.error(f"Error saving product: {str(e)}")
        return False

    st.session_state.save_result = (
        "Product updated successfully!" if is_edit else "Product created successfully!"
    )
    logger.info(f"Saved product {product_id}")
    go_to("Products")
    st.session_state.draft = None
    st.session_state.editor = None
    clear_form_widgets()
    return True


def edit_page(manager: ProductManager):
    if st.session_state.draft is None:
        start_new_product(manager)

    draft = st.session_state.draft
    editor = st.session_state.editor
    is_edit = st.session_state.editing_product_id is not None

    st.title("Edit Product" if is_edit else "Add New Product")
    st.caption(
        "Update product information and settings"
        if is_edit
        else "Create a new product for your catalog"
    )

    tabs = st.tabs(["General", "Pricing & Inventory", "Variants", "Images", "SEO"])
    with tabs[0]:
        general_tab(manager, draft, is_edit)
    with tabs[1]:
        pricing_tab(manager, draft, editor)
    with tabs[2]:
        variants_tab(editor)
    with tabs[3]:
        images_tab(manager, draft)
    with tabs[4]:
        seo_tab(draft)

    st.markdown("---")
    col1, col2 = st.columns([1, 4])
    with col1:
        if st.button("Cancel", type="secondary", use_container_width=True):
            st.session_state.draft = None
            st.session_state.editor = None
            go_to("Products")
            clear_form_widgets()
            st.rerun()
    with col2:
        label = "Save Changes" if is_edit else "Create Product"
        if st.button(label, type="primary", use_container_width=True):
            with st.spinner("Saving..."):
                saved = handle_save(manager)
            if saved:
                st.rerun()


def main():
    init_session_state()

    if st.session_state.get("next_page"):
        st.session_state.current_page = st.session_state.pop("next_page")

    st.sidebar.title("Product Admin")
    st.sidebar.radio("Select Page", PAGES, key="current_page")

    try:
        manager = get_product_manager()
    except Exception as e:
        st.error(f"Application Error: {str(e)}")
        logger.error(f"Application Error: {str(e)}")
        return

    if st.session_state.current_page == "Products":
        products_page(manager)
    else:
        edit_page(manager)


if __name__ == "__main__":
    main()
