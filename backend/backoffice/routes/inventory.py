# Overview: Flask API routes for inventory locations and per-location stock.

# backend/backoffice/routes/inventory.py
"""
Inventory routes.

- /v1/inventory/locations   location CRUD (location_identifier is unique)
- /v1/inventory/products    stock rows; POST upserts by (product_id, location_id)

SECURITY: All routes require an admin bearer token.
"""
from flask import Blueprint, request, current_app

from ..extensions import db
from ..models import InventoryLocation, InventoryProduct
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_quantity,
    ValidationError,
    ConflictError,
    db_int,
)
from ..decorators import require_auth, require_admin
from ..responses import success, error, validation_error
from ..services import inventory_service

LOCATION_POLICY = ModelValidationPolicy(
    writable_fields={"location_identifier", "description"},
    required_on_create={"location_identifier"},
)

INVENTORY_PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "location_id", "quantity"},
    required_on_create={"product_id", "location_id", "quantity"},
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/v1/inventory")


@inventory_bp.get("/locations")
@require_auth
@require_admin
def list_locations():
    try:
        locations = inventory_service.list_locations()
    except Exception:
        current_app.logger.exception("Failed to list inventory locations")
        return error()

    return success({"locations": locations}, "Inventory locations retrieved successfully")


@inventory_bp.get("/locations/<int:location_id>")
@require_auth
@require_admin
def get_location(location_id: int):
    try:
        location = inventory_service.get_location(location_id)
    except Exception:
        current_app.logger.exception("Failed to get inventory location %s", location_id)
        return error()

    if location is None:
        return error("Inventory location not found", 404)

    return success({"location": location}, "Inventory location retrieved successfully")


@inventory_bp.post("/locations")
@require_auth
@require_admin
def create_location():
    try:
        patch = validate_payload(
            model=InventoryLocation, payload=request.get_json(silent=True), policy=LOCATION_POLICY, partial=False
        )
    except ValidationError as e:
        return validation_error(e)

    try:
        created = inventory_service.create_location(patch=patch)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create inventory location")
        return error()

    return success({"location": created}, "Inventory location created successfully", 201)


@inventory_bp.put("/locations/<int:location_id>")
@require_auth
@require_admin
def update_location(location_id: int):
    try:
        patch = validate_payload(
            model=InventoryLocation, payload=request.get_json(silent=True), policy=LOCATION_POLICY, partial=True
        )
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = inventory_service.update_location(location_id=location_id, patch=patch)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update inventory location %s", location_id)
        return error()

    if updated is None:
        return error("Inventory location not found", 404)

    return success({"location": updated}, "Inventory location updated successfully")


@inventory_bp.delete("/locations/<int:location_id>")
@require_auth
@require_admin
def delete_location(location_id: int):
    try:
        deleted = inventory_service.delete_location(location_id=location_id)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete inventory location %s", location_id)
        return error()

    if not deleted:
        return error("Inventory location not found", 404)

    return success(None, "Inventory location deleted successfully")


@inventory_bp.get("/products")
@require_auth
@require_admin
def list_inventory_products():
    """Optional filters: ?product_id=, ?location_id=."""
    product_id = request.args.get("product_id", type=db_int)
    location_id = request.args.get("location_id", type=db_int)
    try:
        rows = inventory_service.list_inventory_products(product_id=product_id, location_id=location_id)
    except Exception:
        current_app.logger.exception("Failed to list inventory products")
        return error()

    return success({"products": rows}, "Inventory products retrieved successfully")


@inventory_bp.get("/products/<int:inventory_id>")
@require_auth
@require_admin
def get_inventory_product(inventory_id: int):
    try:
        row = inventory_service.get_inventory_product(inventory_id)
    except Exception:
        current_app.logger.exception("Failed to get inventory product %s", inventory_id)
        return error()

    if row is None:
        return error("Inventory product not found", 404)

    return success({"product": row}, "Inventory product retrieved successfully")


@inventory_bp.post("/products")
@require_auth
@require_admin
def upsert_inventory_product():
    """
    Record the stock of a product at a location.

    Idempotent per (product_id, location_id): a repeat POST replaces the
    quantity on the existing row. Always 201.
    """
    try:
        patch = validate_payload(
            model=InventoryProduct,
            payload=request.get_json(silent=True),
            policy=INVENTORY_PRODUCT_POLICY,
            partial=False,
        )
        enforce_rules_quantity(patch, "quantity", allow_zero=True)
    except ValidationError as e:
        return validation_error(e)

    try:
        row = inventory_service.upsert_inventory_product(
            product_id=patch["product_id"],
            location_id=patch["location_id"],
            quantity=patch["quantity"],
        )
    except ValidationError as e:
        return validation_error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception(
            "Failed to upsert inventory for product %s at location %s",
            patch["product_id"], patch["location_id"],
        )
        return error()

    return success({"product": row}, "Inventory product saved successfully", 201)


@inventory_bp.put("/products/<int:inventory_id>")
@require_auth
@require_admin
def update_inventory_product(inventory_id: int):
    try:
        patch = validate_payload(
            model=InventoryProduct,
            payload=request.get_json(silent=True),
            policy=INVENTORY_PRODUCT_POLICY,
            partial=True,
        )
        enforce_rules_quantity(patch, "quantity", allow_zero=True)
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = inventory_service.update_inventory_product(inventory_id=inventory_id, patch=patch)
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update inventory product %s", inventory_id)
        return error()

    if updated is None:
        return error("Inventory product not found", 404)

    return success({"product": updated}, "Inventory product updated successfully")


@inventory_bp.delete("/products/<int:inventory_id>")
@require_auth
@require_admin
def delete_inventory_product(inventory_id: int):
    try:
        deleted = inventory_service.delete_inventory_product(inventory_id=inventory_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete inventory product %s", inventory_id)
        return error()

    if not deleted:
        return error("Inventory product not found", 404)

    return success(None, "Inventory product deleted successfully")
