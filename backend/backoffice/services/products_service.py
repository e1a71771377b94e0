# backend/backoffice/services/products_service.py
"""
Products Service

Catalog rows plus the product-side views of two link tables:
- product_category_assignments (which categories a product is filed under)
- product_option_skus (which option/variant combinations a product sells)

SKU uniqueness is enforced by the table; IntegrityError is surfaced as
ConflictError so routes can return 409.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    Product,
    ProductCategory,
    ProductCategoryAssignment,
    ProductOptionSKU,
    OrderItem,
    InventoryProduct,
)
from ..validation import ConflictError, NotFoundError, ValidationError, ListParams
from .audit_service import append_audit_log
from .pagination import paginate

PRODUCT_MUTABLE_FIELDS = {
    "sku", "name", "description", "price", "sale_price", "sale_start", "sale_end", "product_media",
}
PRODUCT_ORDER_COLUMNS = {"id", "name", "price", "sale_price", "created_at", "updated_at"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _sku_taken(sku: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def _require_product(product_id: int) -> Product:
    p = db.session.get(Product, product_id)
    if p is None:
        raise NotFoundError("Product not found")
    return p


def list_products(params: ListParams) -> dict:
    return paginate(db.session.query(Product), Product, params, "products")


def get_product(product_id: int) -> dict | None:
    p = db.session.get(Product, product_id)
    return p.to_dict() if p else None


def create_product(*, patch: dict) -> dict:
    """
    Create a product from a validated patch dict.

    Raises:
        ConflictError: If the SKU already exists
    """
    if _sku_taken(patch["sku"]):
        raise ConflictError("A product with this SKU already exists.")

    p = Product()
    apply_product_patch(p, patch)
    db.session.add(p)

    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A product with this SKU already exists.")

    append_audit_log(crud_action="CREATE", details=f"Created product id={p.id} sku={p.sku}")
    db.session.commit()
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict | None:
    """
    Partial update.

    Returns:
        Updated product dict, or None if not found

    Raises:
        ConflictError: If the new SKU belongs to another product
    """
    p = db.session.get(Product, product_id)
    if p is None:
        return None

    if "sku" in patch and patch["sku"] != p.sku and _sku_taken(patch["sku"], exclude_id=p.id):
        raise ConflictError("A product with this SKU already exists.")

    # Sale window is checked against the merged row
    start = patch.get("sale_start", p.sale_start)
    end = patch.get("sale_end", p.sale_end)
    if start is not None and end is not None and end < start:
        raise ValidationError("sale_end must not be before sale_start")

    apply_product_patch(p, patch)

    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A product with this SKU already exists.")

    append_audit_log(
        crud_action="UPDATE",
        details=f"Updated product id={p.id} fields: {', '.join(sorted(patch.keys()))}",
    )
    db.session.commit()
    return p.to_dict()


def delete_product(*, product_id: int) -> bool:
    """
    Delete a product with its category assignments, option SKUs and stock rows.

    Raises:
        ConflictError: If any order line references the product
    """
    p = db.session.get(Product, product_id)
    if p is None:
        return False

    ordered = db.session.query(OrderItem.id).filter(OrderItem.product_id == p.id).first()
    if ordered is not None:
        raise ConflictError("Product is referenced by existing orders and cannot be deleted.")

    for model in (ProductCategoryAssignment, ProductOptionSKU, InventoryProduct):
        db.session.query(model).filter(model.product_id == p.id).delete(synchronize_session=False)

    sku = p.sku
    db.session.delete(p)
    append_audit_log(crud_action="DELETE", details=f"Deleted product id={product_id} sku={sku}")
    db.session.commit()
    return True


# ---------------------------------------------------------------------------
# Category assignments
# ---------------------------------------------------------------------------

def list_product_categories(product_id: int) -> list[dict]:
    """
    Categories a product is filed under, by name.

    Raises:
        NotFoundError: If the product does not exist
    """
    _require_product(product_id)
    rows = (
        db.session.query(ProductCategory)
        .join(ProductCategoryAssignment, ProductCategoryAssignment.category_id == ProductCategory.id)
        .filter(ProductCategoryAssignment.product_id == product_id)
        .order_by(ProductCategory.name.asc(), ProductCategory.id.asc())
        .all()
    )
    return [c.to_dict() for c in rows]


def _require_categories(category_ids: list[int]) -> None:
    if not category_ids:
        return
    found = {
        cid for (cid,) in db.session.query(ProductCategory.id).filter(ProductCategory.id.in_(category_ids))
    }
    missing = [cid for cid in category_ids if cid not in found]
    if missing:
        raise ValidationError(
            f"Unknown category ids: {', '.join(str(m) for m in missing)}",
            errors=[{"field": "category_ids", "message": f"Unknown category ids: {', '.join(str(m) for m in missing)}"}],
        )


def set_product_categories(*, product_id: int, category_ids: list[int], replace: bool) -> list[dict]:
    """
    Assign categories to a product.

    replace=True swaps the whole assignment set (PUT); replace=False adds to it
    and ignores ids already assigned (POST).

    Raises:
        NotFoundError: If the product does not exist
        ValidationError: If any category id is unknown
    """
    _require_product(product_id)
    _require_categories(category_ids)

    existing = {
        cid for (cid,) in db.session.query(ProductCategoryAssignment.category_id).filter(
            ProductCategoryAssignment.product_id == product_id
        )
    }

    if replace:
        stale = existing - set(category_ids)
        if stale:
            db.session.query(ProductCategoryAssignment).filter(
                ProductCategoryAssignment.product_id == product_id,
                ProductCategoryAssignment.category_id.in_(stale),
            ).delete(synchronize_session=False)

    for cid in category_ids:
        if cid in existing:
            continue
        db.session.add(ProductCategoryAssignment(product_id=product_id, category_id=cid))

    append_audit_log(
        crud_action="UPDATE",
        details=(
            f"{'Replaced' if replace else 'Added'} categories of product id={product_id}: "
            f"{', '.join(str(c) for c in category_ids) or '(none)'}"
        ),
    )
    db.session.commit()
    return list_product_categories(product_id)


def remove_product_category(*, product_id: int, category_id: int) -> bool:
    """
    Returns False if the assignment does not exist.

    Raises:
        NotFoundError: If the product does not exist
    """
    _require_product(product_id)
    deleted = db.session.query(ProductCategoryAssignment).filter(
        ProductCategoryAssignment.product_id == product_id,
        ProductCategoryAssignment.category_id == category_id,
    ).delete(synchronize_session=False)
    if not deleted:
        db.session.rollback()
        return False

    append_audit_log(
        crud_action="DELETE",
        details=f"Removed category id={category_id} from product id={product_id}",
    )
    db.session.commit()
    return True


def list_product_options(product_id: int) -> list[dict]:
    """
    Option/variant combinations sold for a product, with the option name and
    variant value resolved.

    Raises:
        NotFoundError: If the product does not exist
    """
    _require_product(product_id)
    skus = (
        db.session.query(ProductOptionSKU)
        .filter(ProductOptionSKU.product_id == product_id)
        .order_by(ProductOptionSKU.option_id.asc(), ProductOptionSKU.variant_id.asc())
        .all()
    )
    result = []
    for s in skus:
        row = s.to_dict()
        row["option_name"] = s.option.option_name if s.option else None
        row["option_value"] = s.variant.option_value if s.variant else None
        result.append(row)
    return result
