# Overview: Flask API routes for product options and their variants.

# backend/backoffice/routes/product_options.py
"""
Product option routes.

- /v1/product_options                         option CRUD
- /v1/product_options/<option_id>/variants    variant CRUD scoped to one option

SECURITY: All routes require an admin bearer token.
"""
from flask import Blueprint, request, current_app

from ..extensions import db
from ..models import ProductOption, ProductOptionVariant
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_admin
from ..responses import success, error, validation_error
from ..services import options_service

OPTION_POLICY = ModelValidationPolicy(
    writable_fields={"option_name"},
    required_on_create={"option_name"},
)

VARIANT_POLICY = ModelValidationPolicy(
    writable_fields={"option_value"},
    required_on_create={"option_value"},
)

product_options_bp = Blueprint("product_options", __name__, url_prefix="/v1/product_options")


@product_options_bp.get("")
@require_auth
@require_admin
def list_options():
    try:
        options = options_service.list_options()
    except Exception:
        current_app.logger.exception("Failed to list product options")
        return error()

    return success({"options": options}, "Product options retrieved successfully")


@product_options_bp.get("/<int:option_id>")
@require_auth
@require_admin
def get_option(option_id: int):
    try:
        option = options_service.get_option(option_id)
    except Exception:
        current_app.logger.exception("Failed to get product option %s", option_id)
        return error()

    if option is None:
        return error("Product option not found", 404)

    return success({"option": option}, "Product option retrieved successfully")


@product_options_bp.post("")
@require_auth
@require_admin
def create_option():
    try:
        patch = validate_payload(
            model=ProductOption, payload=request.get_json(silent=True), policy=OPTION_POLICY, partial=False
        )
    except ValidationError as e:
        return validation_error(e)

    try:
        created = options_service.create_option(patch=patch)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create product option")
        return error()

    return success({"option": created}, "Product option created successfully", 201)


@product_options_bp.put("/<int:option_id>")
@require_auth
@require_admin
def update_option(option_id: int):
    try:
        patch = validate_payload(
            model=ProductOption, payload=request.get_json(silent=True), policy=OPTION_POLICY, partial=True
        )
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = options_service.update_option(option_id=option_id, patch=patch)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update product option %s", option_id)
        return error()

    if updated is None:
        return error("Product option not found", 404)

    return success({"option": updated}, "Product option updated successfully")


@product_options_bp.delete("/<int:option_id>")
@require_auth
@require_admin
def delete_option(option_id: int):
    try:
        deleted = options_service.delete_option(option_id=option_id)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete product option %s", option_id)
        return error()

    if not deleted:
        return error("Product option not found", 404)

    return success(None, "Product option deleted successfully")


@product_options_bp.get("/<int:option_id>/variants")
@require_auth
@require_admin
def list_variants(option_id: int):
    try:
        variants = options_service.list_variants(option_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to list variants of product option %s", option_id)
        return error()

    return success({"variants": variants}, "Variants retrieved successfully")


@product_options_bp.get("/<int:option_id>/variants/<int:variant_id>")
@require_auth
@require_admin
def get_variant(option_id: int, variant_id: int):
    try:
        variant = options_service.get_variant(option_id, variant_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to get variant %s of product option %s", variant_id, option_id)
        return error()

    if variant is None:
        return error("Variant not found", 404)

    return success({"variant": variant}, "Variant retrieved successfully")


@product_options_bp.post("/<int:option_id>/variants")
@require_auth
@require_admin
def create_variant(option_id: int):
    try:
        patch = validate_payload(
            model=ProductOptionVariant, payload=request.get_json(silent=True), policy=VARIANT_POLICY, partial=False
        )
    except ValidationError as e:
        return validation_error(e)

    try:
        created = options_service.create_variant(option_id=option_id, patch=patch)
    except NotFoundError as e:
        return error(str(e), 404)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create variant for product option %s", option_id)
        return error()

    return success({"variant": created}, "Variant created successfully", 201)


@product_options_bp.put("/<int:option_id>/variants/<int:variant_id>")
@require_auth
@require_admin
def update_variant(option_id: int, variant_id: int):
    try:
        patch = validate_payload(
            model=ProductOptionVariant, payload=request.get_json(silent=True), policy=VARIANT_POLICY, partial=True
        )
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = options_service.update_variant(option_id=option_id, variant_id=variant_id, patch=patch)
    except NotFoundError as e:
        return error(str(e), 404)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update variant %s of product option %s", variant_id, option_id)
        return error()

    if updated is None:
        return error("Variant not found", 404)

    return success({"variant": updated}, "Variant updated successfully")


@product_options_bp.delete("/<int:option_id>/variants/<int:variant_id>")
@require_auth
@require_admin
def delete_variant(option_id: int, variant_id: int):
    try:
        deleted = options_service.delete_variant(option_id=option_id, variant_id=variant_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete variant %s of product option %s", variant_id, option_id)
        return error()

    if not deleted:
        return error("Variant not found", 404)

    return success(None, "Variant deleted successfully")
