# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/backoffice/routes/products.py
"""
Product management routes.

SECURITY: All routes require an admin bearer token.

Nested resources:
- /v1/products/<id>/categories  (category assignments)
- /v1/products/<id>/options     (option/variant SKU combinations)
"""
from flask import Blueprint, request, current_app

from ..extensions import db
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    list_params_from_request,
    enforce_rules_money,
    enforce_rules_sale_window,
    enforce_rules_product_media,
    parse_id_list,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_admin
from ..responses import success, error, validation_error
from ..services import products_service

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "name", "description", "price", "sale_price", "sale_start", "sale_end", "product_media",
    },
    required_on_create={"sku", "name"},
    non_blank_fields={"sku", "name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/v1/products")


def _validated_patch(payload, *, partial: bool) -> dict:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_money(patch, "price", "sale_price")
    enforce_rules_product_media(patch)
    if not partial:
        enforce_rules_sale_window(patch)
    return patch


@products_bp.get("")
@require_auth
@require_admin
def list_products():
    """
    Paged product listing.

    Query params:
    - page, limit
    - orderBy: id | name | price | sale_price | created_at | updated_at
    - order: asc | desc
    """
    try:
        params = list_params_from_request(products_service.PRODUCT_ORDER_COLUMNS)
    except ValidationError as e:
        return validation_error(e)

    try:
        result = products_service.list_products(params)
    except Exception:
        current_app.logger.exception("Failed to list products")
        return error()

    return success(result, "Products retrieved successfully")


@products_bp.get("/<int:product_id>")
@require_auth
@require_admin
def get_product(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except Exception:
        current_app.logger.exception("Failed to get product %s", product_id)
        return error()

    if product is None:
        current_app.logger.warning("Product not found: %s", product_id)
        return error("Product not found", 404)

    return success({"product": product}, "Product retrieved successfully")


@products_bp.post("")
@require_auth
@require_admin
def create_product_route():
    """
    Create a new product.

    product_media may be sent as a JSON array of objects or as a string
    containing one.
    """
    payload = request.get_json(silent=True)

    try:
        patch = _validated_patch(payload, partial=False)
    except ValidationError as e:
        return validation_error(e)

    try:
        created = products_service.create_product(patch=patch)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create product")
        return error()

    current_app.logger.info("Created product %s", created["id"])
    return success({"product": created}, "Product created successfully", 201)


@products_bp.put("/<int:product_id>")
@require_auth
@require_admin
def update_product_route(product_id: int):
    payload = request.get_json(silent=True)

    try:
        patch = _validated_patch(payload, partial=True)
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update product %s", product_id)
        return error()

    if updated is None:
        return error("Product not found", 404)

    return success({"product": updated}, "Product updated successfully")


@products_bp.delete("/<int:product_id>")
@require_auth
@require_admin
def delete_product_route(product_id: int):
    try:
        deleted = products_service.delete_product(product_id=product_id)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete product %s", product_id)
        return error()

    if not deleted:
        return error("Product not found", 404)

    current_app.logger.info("Deleted product %s", product_id)
    return success(None, "Product deleted successfully")


@products_bp.get("/<int:product_id>/categories")
@require_auth
@require_admin
def list_product_categories(product_id: int):
    try:
        categories = products_service.list_product_categories(product_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to list categories of product %s", product_id)
        return error()

    return success({"categories": categories}, "Product categories retrieved successfully")


def _assign_categories(product_id: int, *, replace: bool):
    try:
        category_ids = parse_id_list(request.get_json(silent=True), "category_ids")
    except ValidationError as e:
        return validation_error(e)

    try:
        categories = products_service.set_product_categories(
            product_id=product_id, category_ids=category_ids, replace=replace
        )
    except NotFoundError as e:
        return error(str(e), 404)
    except ValidationError as e:
        return validation_error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to assign categories to product %s", product_id)
        return error()

    return success({"categories": categories}, "Product categories updated successfully")


@products_bp.put("/<int:product_id>/categories")
@require_auth
@require_admin
def replace_product_categories(product_id: int):
    """Body: {"category_ids": [...]}. The product ends up in exactly these categories."""
    return _assign_categories(product_id, replace=True)


@products_bp.post("/<int:product_id>/categories")
@require_auth
@require_admin
def add_product_categories(product_id: int):
    """Body: {"category_ids": [...]}. Adds to the existing assignments."""
    return _assign_categories(product_id, replace=False)


@products_bp.delete("/<int:product_id>/categories/<int:category_id>")
@require_auth
@require_admin
def remove_product_category(product_id: int, category_id: int):
    try:
        removed = products_service.remove_product_category(product_id=product_id, category_id=category_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to remove category %s from product %s", category_id, product_id)
        return error()

    if not removed:
        return error("Category assignment not found", 404)

    return success(None, "Category removed from product successfully")


@products_bp.get("/<int:product_id>/options")
@require_auth
@require_admin
def list_product_options(product_id: int):
    try:
        options = products_service.list_product_options(product_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to list options of product %s", product_id)
        return error()

    return success({"options": options}, "Product options retrieved successfully")
