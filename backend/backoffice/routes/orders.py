# Overview: Flask API routes for orders and their line items.

# backend/backoffice/routes/orders.py
"""
Order routes.

- /v1/orders                          paged order CRUD
- /v1/orders/<order_id>/items         paged item CRUD scoped to one order

SECURITY: All routes require an admin bearer token.
"""
from flask import Blueprint, request, current_app

from ..extensions import db
from ..models import Order, OrderItem
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    list_params_from_request,
    enforce_rules_money,
    enforce_rules_quantity,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_admin
from ..responses import success, error, validation_error
from ..services import orders_service

ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_id", "order_date", "status", "order_total",
        "refund_total", "refund_date", "refund_status", "refund_reason",
    },
    required_on_create={"customer_id", "order_total"},
)

ORDER_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "price"},
    required_on_create={"product_id", "quantity", "price"},
)

orders_bp = Blueprint("orders", __name__, url_prefix="/v1/orders")


def _validated_order(payload, *, partial: bool) -> dict:
    patch = validate_payload(model=Order, payload=payload, policy=ORDER_POLICY, partial=partial)
    enforce_rules_money(patch, "order_total", "refund_total")
    return patch


def _validated_item(payload, *, partial: bool) -> dict:
    patch = validate_payload(model=OrderItem, payload=payload, policy=ORDER_ITEM_POLICY, partial=partial)
    enforce_rules_quantity(patch, "quantity", allow_zero=False)
    enforce_rules_money(patch, "price")
    return patch


@orders_bp.get("")
@require_auth
@require_admin
def list_orders():
    """
    Paged order listing.

    Query params:
    - page, limit
    - orderBy: id | customer_id | order_total | created_at | updated_at
    - order: asc | desc
    - customer_id: int (optional filter)
    """
    try:
        params = list_params_from_request(orders_service.ORDER_ORDER_COLUMNS)
    except ValidationError as e:
        return validation_error(e)

    customer_id = request.args.get("customer_id", type=int)
    try:
        result = orders_service.list_orders(params, customer_id=customer_id)
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return error()

    return success(result, "Orders retrieved successfully")


@orders_bp.get("/<int:order_id>")
@require_auth
@require_admin
def get_order(order_id: int):
    try:
        order = orders_service.get_order(order_id)
    except Exception:
        current_app.logger.exception("Failed to get order %s", order_id)
        return error()

    if order is None:
        current_app.logger.warning("Order not found: %s", order_id)
        return error("Order not found", 404)

    return success({"order": order}, "Order retrieved successfully")


@orders_bp.post("")
@require_auth
@require_admin
def create_order():
    try:
        patch = _validated_order(request.get_json(silent=True), partial=False)
    except ValidationError as e:
        return validation_error(e)

    try:
        created = orders_service.create_order(patch=patch)
    except ValidationError as e:
        return validation_error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create order")
        return error()

    current_app.logger.info("Created order %s", created["id"])
    return success({"order": created}, "Order created successfully", 201)


@orders_bp.put("/<int:order_id>")
@require_auth
@require_admin
def update_order(order_id: int):
    try:
        patch = _validated_order(request.get_json(silent=True), partial=True)
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = orders_service.update_order(order_id=order_id, patch=patch)
    except ValidationError as e:
        return validation_error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update order %s", order_id)
        return error()

    if updated is None:
        return error("Order not found", 404)

    return success({"order": updated}, "Order updated successfully")


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_admin
def delete_order(order_id: int):
    """Deletes the order and its items; 409 while shipments exist."""
    try:
        deleted = orders_service.delete_order(order_id=order_id)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete order %s", order_id)
        return error()

    if not deleted:
        return error("Order not found", 404)

    current_app.logger.info("Deleted order %s", order_id)
    return success(None, "Order deleted successfully")


@orders_bp.get("/<int:order_id>/items")
@require_auth
@require_admin
def list_order_items(order_id: int):
    try:
        params = list_params_from_request(orders_service.ORDER_ITEM_ORDER_COLUMNS)
    except ValidationError as e:
        return validation_error(e)

    try:
        result = orders_service.list_order_items(order_id, params)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to list items of order %s", order_id)
        return error()

    return success(result, "Order items retrieved successfully")


@orders_bp.get("/<int:order_id>/items/<int:item_id>")
@require_auth
@require_admin
def get_order_item(order_id: int, item_id: int):
    try:
        item = orders_service.get_order_item(order_id, item_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to get item %s of order %s", item_id, order_id)
        return error()

    if item is None:
        return error("Order item not found", 404)

    return success({"item": item}, "Order item retrieved successfully")


@orders_bp.post("/<int:order_id>/items")
@require_auth
@require_admin
def create_order_item(order_id: int):
    try:
        patch = _validated_item(request.get_json(silent=True), partial=False)
    except ValidationError as e:
        return validation_error(e)

    try:
        created = orders_service.create_order_item(order_id=order_id, patch=patch)
    except NotFoundError as e:
        return error(str(e), 404)
    except ValidationError as e:
        return validation_error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create item for order %s", order_id)
        return error()

    return success({"item": created}, "Order item created successfully", 201)


@orders_bp.put("/<int:order_id>/items/<int:item_id>")
@require_auth
@require_admin
def update_order_item(order_id: int, item_id: int):
    try:
        patch = _validated_item(request.get_json(silent=True), partial=True)
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = orders_service.update_order_item(order_id=order_id, item_id=item_id, patch=patch)
    except NotFoundError as e:
        return error(str(e), 404)
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update item %s of order %s", item_id, order_id)
        return error()

    if updated is None:
        return error("Order item not found", 404)

    return success({"item": updated}, "Order item updated successfully")


@orders_bp.delete("/<int:order_id>/items/<int:item_id>")
@require_auth
@require_admin
def delete_order_item(order_id: int, item_id: int):
    try:
        deleted = orders_service.delete_order_item(order_id=order_id, item_id=item_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete item %s of order %s", item_id, order_id)
        return error()

    if not deleted:
        return error("Order item not found", 404)

    return success(None, "Order item deleted successfully")
