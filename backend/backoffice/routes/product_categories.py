# Overview: Flask API routes for the product category hierarchy; parses input and returns the JSON envelope.

# backend/backoffice/routes/product_categories.py
"""
Product category routes.

SECURITY: All routes require an admin bearer token.

The hierarchy rules (no self-ancestry, no orphaning deletes, parent must
exist) live in services.category_service; this module only maps them onto
HTTP statuses:
- ValidationError -> 400
- ConflictError   -> 409
- None / False    -> 404
"""
from flask import Blueprint, request, current_app

from ..extensions import db
from ..models import ProductCategory
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    list_params_from_request,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_admin
from ..responses import success, error, validation_error
from ..services import category_service

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "parent_category_id", "hero_image"},
    required_on_create={"name"},
    non_blank_fields={"name"},
)

product_categories_bp = Blueprint("product_categories", __name__, url_prefix="/v1/product_categories")


@product_categories_bp.get("")
@require_auth
@require_admin
def list_categories():
    """
    Paged category listing.

    Query params:
    - page: int (default 1)
    - limit: int (default 20, max 1000)
    - orderBy: id | name | parent_category_id | created_at | updated_at
    - order: asc | desc
    """
    try:
        params = list_params_from_request(category_service.CATEGORY_ORDER_COLUMNS)
    except ValidationError as e:
        return validation_error(e)

    try:
        result = category_service.list_categories(params)
    except Exception:
        current_app.logger.exception("Failed to list product categories")
        return error()

    return success(result, "Product categories retrieved successfully")


@product_categories_bp.get("/tree")
@require_auth
@require_admin
def category_tree():
    """Whole hierarchy as nested roots, children sorted by name."""
    try:
        tree = category_service.get_category_tree()
    except Exception:
        current_app.logger.exception("Failed to build product category tree")
        return error()

    return success({"categories": tree}, "Product category tree retrieved successfully")


@product_categories_bp.get("/<int:category_id>")
@require_auth
@require_admin
def get_category(category_id: int):
    """Returns {category, lineage} where lineage lists ancestor names root first."""
    try:
        result = category_service.get_category(category_id)
    except Exception:
        current_app.logger.exception("Failed to get product category %s", category_id)
        return error()

    if result is None:
        current_app.logger.warning("Product category not found: %s", category_id)
        return error("Product category not found", 404)

    return success(result, "Product category retrieved successfully")


@product_categories_bp.get("/<int:category_id>/children")
@require_auth
@require_admin
def list_children(category_id: int):
    try:
        children = category_service.list_child_categories(category_id)
    except Exception:
        current_app.logger.exception("Failed to list children of product category %s", category_id)
        return error()

    if children is None:
        return error("Product category not found", 404)

    return success({"categories": children}, "Child categories retrieved successfully")


@product_categories_bp.post("")
@require_auth
@require_admin
def create_category():
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=ProductCategory, payload=payload, policy=CATEGORY_POLICY, partial=False)
    except ValidationError as e:
        return validation_error(e)

    try:
        created = category_service.create_category(patch=patch)
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create product category")
        return error()

    current_app.logger.info("Created product category %s", created["id"])
    return success({"category": created}, "Product category created successfully", 201)


@product_categories_bp.put("/<int:category_id>")
@require_auth
@require_admin
def update_category(category_id: int):
    """
    Partial update. Only supplied fields change; unknown fields are rejected.

    Moving a category beneath itself or one of its descendants is a 400.
    """
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=ProductCategory, payload=payload, policy=CATEGORY_POLICY, partial=True)
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = category_service.update_category(category_id=category_id, patch=patch)
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update product category %s", category_id)
        return error()

    if updated is None:
        current_app.logger.warning("Product category not found: %s", category_id)
        return error("Product category not found", 404)

    return success({"category": updated}, "Product category updated successfully")


@product_categories_bp.delete("/<int:category_id>")
@require_auth
@require_admin
def delete_category(category_id: int):
    """Deletes a leaf category; 409 while it still has children."""
    try:
        deleted = category_service.delete_category(category_id=category_id)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete product category %s", category_id)
        return error()

    if not deleted:
        current_app.logger.warning("Product category not found: %s", category_id)
        return error("Product category not found", 404)

    current_app.logger.info("Deleted product category %s", category_id)
    return success(None, "Product category deleted successfully")
