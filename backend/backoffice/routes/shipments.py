# Overview: Flask API routes for shipments and shipment items.

# backend/backoffice/routes/shipments.py
"""
Shipment routes.

- /v1/shipments                            paged shipment CRUD
- /v1/shipments/<shipment_id>/items        paged item CRUD scoped to one shipment

Over-shipping an order item (more units across all shipments than were
ordered) is a 409; an order item from a different order is a 400.

SECURITY: All routes require an admin bearer token.
"""
from flask import Blueprint, request, current_app

from ..extensions import db
from ..models import Shipment, ShipmentItem
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    list_params_from_request,
    enforce_rules_quantity,
    ValidationError,
    ConflictError,
    NotFoundError,
    db_int,
)
from ..decorators import require_auth, require_admin
from ..responses import success, error, validation_error
from ..services import shipments_service

SHIPMENT_POLICY = ModelValidationPolicy(
    writable_fields={"order_id", "shipment_date", "tracking_number", "shipping_carrier", "status"},
    required_on_create={"order_id", "shipment_date", "tracking_number", "shipping_carrier", "status"},
)

SHIPMENT_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"order_item_id", "quantity_shipped"},
    required_on_create={"order_item_id", "quantity_shipped"},
)

shipments_bp = Blueprint("shipments", __name__, url_prefix="/v1/shipments")


def _validated_item(payload, *, partial: bool) -> dict:
    patch = validate_payload(model=ShipmentItem, payload=payload, policy=SHIPMENT_ITEM_POLICY, partial=partial)
    enforce_rules_quantity(patch, "quantity_shipped", allow_zero=False)
    return patch


@shipments_bp.get("")
@require_auth
@require_admin
def list_shipments():
    try:
        params = list_params_from_request(shipments_service.SHIPMENT_ORDER_COLUMNS)
    except ValidationError as e:
        return validation_error(e)

    order_id = request.args.get("order_id", type=db_int)
    try:
        result = shipments_service.list_shipments(params, order_id=order_id)
    except Exception:
        current_app.logger.exception("Failed to list shipments")
        return error()

    return success(result, "Shipments retrieved successfully")


@shipments_bp.get("/<int:shipment_id>")
@require_auth
@require_admin
def get_shipment(shipment_id: int):
    try:
        shipment = shipments_service.get_shipment(shipment_id)
    except Exception:
        current_app.logger.exception("Failed to get shipment %s", shipment_id)
        return error()

    if shipment is None:
        current_app.logger.warning("Shipment not found: %s", shipment_id)
        return error("Shipment not found", 404)

    return success({"shipment": shipment}, "Shipment retrieved successfully")


@shipments_bp.post("")
@require_auth
@require_admin
def create_shipment():
    try:
        patch = validate_payload(
            model=Shipment, payload=request.get_json(silent=True), policy=SHIPMENT_POLICY, partial=False
        )
    except ValidationError as e:
        return validation_error(e)

    try:
        created = shipments_service.create_shipment(patch=patch)
    except ValidationError as e:
        return validation_error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create shipment")
        return error()

    current_app.logger.info("Created shipment %s", created["id"])
    return success({"shipment": created}, "Shipment created successfully", 201)


@shipments_bp.put("/<int:shipment_id>")
@require_auth
@require_admin
def update_shipment(shipment_id: int):
    try:
        patch = validate_payload(
            model=Shipment, payload=request.get_json(silent=True), policy=SHIPMENT_POLICY, partial=True
        )
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = shipments_service.update_shipment(shipment_id=shipment_id, patch=patch)
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update shipment %s", shipment_id)
        return error()

    if updated is None:
        return error("Shipment not found", 404)

    return success({"shipment": updated}, "Shipment updated successfully")


@shipments_bp.delete("/<int:shipment_id>")
@require_auth
@require_admin
def delete_shipment(shipment_id: int):
    try:
        deleted = shipments_service.delete_shipment(shipment_id=shipment_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete shipment %s", shipment_id)
        return error()

    if not deleted:
        return error("Shipment not found", 404)

    return success(None, "Shipment deleted successfully")


@shipments_bp.get("/<int:shipment_id>/items")
@require_auth
@require_admin
def list_shipment_items(shipment_id: int):
    try:
        params = list_params_from_request(shipments_service.SHIPMENT_ITEM_ORDER_COLUMNS)
    except ValidationError as e:
        return validation_error(e)

    try:
        result = shipments_service.list_shipment_items(shipment_id, params)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to list items of shipment %s", shipment_id)
        return error()

    return success(result, "Shipment items retrieved successfully")


@shipments_bp.get("/<int:shipment_id>/items/<int:item_id>")
@require_auth
@require_admin
def get_shipment_item(shipment_id: int, item_id: int):
    try:
        item = shipments_service.get_shipment_item(shipment_id, item_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to get item %s of shipment %s", item_id, shipment_id)
        return error()

    if item is None:
        return error("Shipment item not found", 404)

    return success({"item": item}, "Shipment item retrieved successfully")


@shipments_bp.post("/<int:shipment_id>/items")
@require_auth
@require_admin
def create_shipment_item(shipment_id: int):
    try:
        patch = _validated_item(request.get_json(silent=True), partial=False)
    except ValidationError as e:
        return validation_error(e)

    try:
        created = shipments_service.create_shipment_item(shipment_id=shipment_id, patch=patch)
    except NotFoundError as e:
        return error(str(e), 404)
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create item for shipment %s", shipment_id)
        return error()

    return success({"item": created}, "Shipment item created successfully", 201)


@shipments_bp.put("/<int:shipment_id>/items/<int:item_id>")
@require_auth
@require_admin
def update_shipment_item(shipment_id: int, item_id: int):
    try:
        patch = _validated_item(request.get_json(silent=True), partial=True)
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = shipments_service.update_shipment_item(shipment_id=shipment_id, item_id=item_id, patch=patch)
    except NotFoundError as e:
        return error(str(e), 404)
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update item %s of shipment %s", item_id, shipment_id)
        return error()

    if updated is None:
        return error("Shipment item not found", 404)

    return success({"item": updated}, "Shipment item updated successfully")


@shipments_bp.delete("/<int:shipment_id>/items/<int:item_id>")
@require_auth
@require_admin
def delete_shipment_item(shipment_id: int, item_id: int):
    try:
        deleted = shipments_service.delete_shipment_item(shipment_id=shipment_id, item_id=item_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete item %s of shipment %s", item_id, shipment_id)
        return error()

    if not deleted:
        return error("Shipment item not found", 404)

    return success(None, "Shipment item deleted successfully")
