# Overview: Flask API routes for product option SKUs (product x option x variant).

from flask import Blueprint, request, current_app

from ..extensions import db
from ..models import ProductOptionSKU
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_money,
    enforce_rules_sale_window,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_admin
from ..responses import success, error, validation_error
from ..services import option_skus_service

OPTION_SKU_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_id", "option_id", "variant_id", "sku", "price", "sale_price", "sale_start", "sale_end",
    },
    required_on_create={"product_id", "option_id", "variant_id", "sku"},
    non_blank_fields={"sku"},
)

product_option_skus_bp = Blueprint("product_option_skus", __name__, url_prefix="/v1/product_option_skus")


def _validated(payload, *, partial: bool) -> dict:
    patch = validate_payload(model=ProductOptionSKU, payload=payload, policy=OPTION_SKU_POLICY, partial=partial)
    enforce_rules_money(patch, "price", "sale_price")
    if not partial:
        enforce_rules_sale_window(patch)
    return patch


@product_option_skus_bp.get("")
@require_auth
@require_admin
def list_option_skus():
    """Optional ?product_id= filter."""
    product_id = request.args.get("product_id", type=int)
    try:
        skus = option_skus_service.list_option_skus(product_id=product_id)
    except Exception:
        current_app.logger.exception("Failed to list product option SKUs")
        return error()

    return success({"skus": skus}, "Product option SKUs retrieved successfully")


@product_option_skus_bp.get("/<int:sku_id>")
@require_auth
@require_admin
def get_option_sku(sku_id: int):
    try:
        sku = option_skus_service.get_option_sku(sku_id)
    except Exception:
        current_app.logger.exception("Failed to get product option SKU %s", sku_id)
        return error()

    if sku is None:
        return error("Product option SKU not found", 404)

    return success({"sku": sku}, "Product option SKU retrieved successfully")


@product_option_skus_bp.post("")
@require_auth
@require_admin
def create_option_sku():
    try:
        patch = _validated(request.get_json(silent=True), partial=False)
    except ValidationError as e:
        return validation_error(e)

    try:
        created = option_skus_service.create_option_sku(patch=patch)
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create product option SKU")
        return error()

    return success({"sku": created}, "Product option SKU created successfully", 201)


@product_option_skus_bp.put("/<int:sku_id>")
@require_auth
@require_admin
def update_option_sku(sku_id: int):
    try:
        patch = _validated(request.get_json(silent=True), partial=True)
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = option_skus_service.update_option_sku(sku_id=sku_id, patch=patch)
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update product option SKU %s", sku_id)
        return error()

    if updated is None:
        return error("Product option SKU not found", 404)

    return success({"sku": updated}, "Product option SKU updated successfully")


@product_option_skus_bp.delete("/<int:sku_id>")
@require_auth
@require_admin
def delete_option_sku(sku_id: int):
    try:
        deleted = option_skus_service.delete_option_sku(sku_id=sku_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete product option SKU %s", sku_id)
        return error()

    if not deleted:
        return error("Product option SKU not found", 404)

    return success(None, "Product option SKU deleted successfully")
