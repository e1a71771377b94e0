# backend/backoffice/services/category_service.py
"""
Product Category Service

The category hierarchy is a self-referential tree. Storage only knows the
parent pointer; this service keeps the tree sane:
- a category can never become its own ancestor (checked on update)
- a category with children cannot be deleted (ConflictError)
- parent ids must reference an existing category
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import ProductCategory, ProductCategoryAssignment
from ..validation import ConflictError, ValidationError, ListParams
from ..category_tree import ancestor_names, build_category_tree, would_create_cycle
from .audit_service import append_audit_log
from .pagination import paginate

CATEGORY_MUTABLE_FIELDS = {"name", "description", "parent_category_id", "hero_image"}
CATEGORY_ORDER_COLUMNS = {"id", "name", "parent_category_id", "created_at", "updated_at"}


def apply_category_patch(c: ProductCategory, patch: dict) -> None:
    for k, v in patch.items():
        if k not in CATEGORY_MUTABLE_FIELDS:
            continue
        setattr(c, k, v)


def _all_categories() -> list[ProductCategory]:
    return db.session.query(ProductCategory).all()


def _require_parent(parent_id: int | None) -> None:
    if parent_id is None:
        return
    if db.session.get(ProductCategory, parent_id) is None:
        raise ValidationError(
            "Parent category not found",
            errors=[{"field": "parent_category_id", "message": "Parent category not found"}],
        )


def _name_taken(name: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(ProductCategory.id).filter(ProductCategory.name == name)
    if exclude_id is not None:
        query = query.filter(ProductCategory.id != exclude_id)
    return query.first() is not None


def list_categories(params: ListParams) -> dict:
    """Paged listing; returns {categories, total, page, limit}."""
    return paginate(db.session.query(ProductCategory), ProductCategory, params, "categories")


def get_category(category_id: int) -> dict | None:
    """
    Category row plus its lineage (ancestor names, root first).

    Returns None if not found.
    """
    c = db.session.get(ProductCategory, category_id)
    if c is None:
        return None
    return {
        "category": c.to_dict(),
        "lineage": ancestor_names(c, _all_categories()),
    }


def get_category_tree() -> list[dict]:
    return [node.to_dict() for node in build_category_tree(_all_categories())]


def list_child_categories(category_id: int) -> list[dict] | None:
    if db.session.get(ProductCategory, category_id) is None:
        return None
    children = (
        db.session.query(ProductCategory)
        .filter(ProductCategory.parent_category_id == category_id)
        .order_by(ProductCategory.name.asc(), ProductCategory.id.asc())
        .all()
    )
    return [c.to_dict() for c in children]


def create_category(*, patch: dict) -> dict:
    """
    Create a category from a validated patch dict.

    Raises:
        ValidationError: If the parent does not exist
        ConflictError: If the name is already used
    """
    _require_parent(patch.get("parent_category_id"))

    if _name_taken(patch["name"]):
        raise ConflictError("A category with this name already exists.")

    c = ProductCategory()
    apply_category_patch(c, patch)
    db.session.add(c)

    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A category with this name already exists.")

    append_audit_log(crud_action="CREATE", details=f"Created product category id={c.id} name={c.name}")
    db.session.commit()
    return c.to_dict()


def update_category(*, category_id: int, patch: dict) -> dict | None:
    """
    Partial update: only supplied fields change.

    Returns:
        Updated category dict, or None if not found

    Raises:
        ValidationError: Unknown parent, or parent is the category itself or a descendant
        ConflictError: If the new name is already used
    """
    c = db.session.get(ProductCategory, category_id)
    if c is None:
        return None

    if "parent_category_id" in patch:
        new_parent_id = patch["parent_category_id"]
        _require_parent(new_parent_id)
        if would_create_cycle(_all_categories(), c.id, new_parent_id):
            raise ValidationError(
                "A category cannot be moved beneath itself or one of its descendants",
                errors=[{
                    "field": "parent_category_id",
                    "message": "A category cannot be moved beneath itself or one of its descendants",
                }],
            )

    if "name" in patch and patch["name"] != c.name and _name_taken(patch["name"], exclude_id=c.id):
        raise ConflictError("A category with this name already exists.")

    apply_category_patch(c, patch)

    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A category with this name already exists.")

    append_audit_log(
        crud_action="UPDATE",
        details=f"Updated product category id={c.id} fields: {', '.join(sorted(patch.keys()))}",
    )
    db.session.commit()
    return c.to_dict()


def delete_category(*, category_id: int) -> bool:
    """
    Delete a leaf category and its product assignments.

    Returns:
        True if deleted, False if not found

    Raises:
        ConflictError: If the category still has child categories
    """
    c = db.session.get(ProductCategory, category_id)
    if c is None:
        return False

    child_count = (
        db.session.query(ProductCategory)
        .filter(ProductCategory.parent_category_id == c.id, ProductCategory.id != c.id)
        .count()
    )
    if child_count:
        raise ConflictError(
            f"Category has {child_count} child categor{'y' if child_count == 1 else 'ies'}; "
            "move or delete them first."
        )

    db.session.query(ProductCategoryAssignment).filter(
        ProductCategoryAssignment.category_id == c.id
    ).delete(synchronize_session=False)

    name = c.name
    db.session.delete(c)
    append_audit_log(crud_action="DELETE", details=f"Deleted product category id={category_id} name={name}")
    db.session.commit()
    return True
