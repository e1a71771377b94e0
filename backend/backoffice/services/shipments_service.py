# backend/backoffice/services/shipments_service.py
"""
Shipments Service

A shipment fulfils part (or all) of one order. Shipment items say how many
units of which order item travel in it.

Integrity rules:
- a shipment item's order item must belong to the shipment's order
- across all shipments, units shipped never exceed units ordered
- an order item appears at most once per shipment
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Order, OrderItem, Shipment, ShipmentItem
from ..validation import ConflictError, NotFoundError, ValidationError, ListParams
from .orders_service import shipped_quantity
from .pagination import paginate

SHIPMENT_MUTABLE_FIELDS = {"order_id", "shipment_date", "tracking_number", "shipping_carrier", "status"}
SHIPMENT_ITEM_MUTABLE_FIELDS = {"order_item_id", "quantity_shipped"}

SHIPMENT_ORDER_COLUMNS = {"id", "order_id", "shipment_date", "status", "created_at", "updated_at"}
SHIPMENT_ITEM_ORDER_COLUMNS = {"id", "order_item_id", "quantity_shipped", "created_at", "updated_at"}

DUPLICATE_SHIPMENT_ITEM = "This order item is already on the shipment."


def _apply(row, patch: dict, allowed: set[str]) -> None:
    for k, v in patch.items():
        if k not in allowed:
            continue
        setattr(row, k, v)


def _require_order(order_id: int) -> None:
    if db.session.get(Order, order_id) is None:
        raise ValidationError("Order not found", errors=[{"field": "order_id", "message": "Order not found"}])


def _require_shipment(shipment_id: int) -> Shipment:
    s = db.session.get(Shipment, shipment_id)
    if s is None:
        raise NotFoundError("Shipment not found")
    return s


def list_shipments(params: ListParams, order_id: int | None = None) -> dict:
    query = db.session.query(Shipment)
    if order_id is not None:
        query = query.filter(Shipment.order_id == order_id)
    return paginate(query, Shipment, params, "shipments")


def get_shipment(shipment_id: int) -> dict | None:
    """Shipment with its items."""
    s = db.session.get(Shipment, shipment_id)
    if s is None:
        return None
    result = s.to_dict()
    result["items"] = [i.to_dict() for i in sorted(s.items, key=lambda i: i.id)]
    return result


def create_shipment(*, patch: dict) -> dict:
    _require_order(patch["order_id"])
    s = Shipment()
    _apply(s, patch, SHIPMENT_MUTABLE_FIELDS)
    db.session.add(s)
    db.session.commit()
    return s.to_dict()


def update_shipment(*, shipment_id: int, patch: dict) -> dict | None:
    """
    Raises:
        ValidationError: If the new order does not exist
        ConflictError: If the shipment has items and the order would change
    """
    s = db.session.get(Shipment, shipment_id)
    if s is None:
        return None
    if "order_id" in patch and patch["order_id"] != s.order_id:
        _require_order(patch["order_id"])
        if s.items:
            raise ConflictError("Shipment has items; it cannot be moved to another order.")
    _apply(s, patch, SHIPMENT_MUTABLE_FIELDS)
    db.session.commit()
    return s.to_dict()


def delete_shipment(*, shipment_id: int) -> bool:
    """Deletes the shipment and its items."""
    s = db.session.get(Shipment, shipment_id)
    if s is None:
        return False
    db.session.delete(s)
    db.session.commit()
    return True


def _check_order_item(shipment: Shipment, order_item_id: int) -> OrderItem:
    item = db.session.get(OrderItem, order_item_id)
    if item is None:
        raise ValidationError(
            "Order item not found",
            errors=[{"field": "order_item_id", "message": "Order item not found"}],
        )
    if item.order_id != shipment.order_id:
        raise ValidationError(
            "Order item does not belong to the shipment's order",
            errors=[{"field": "order_item_id", "message": "Order item does not belong to the shipment's order"}],
        )
    return item


def _check_capacity(item: OrderItem, quantity: int, exclude_shipment_item_id: int | None = None) -> None:
    already = shipped_quantity(item.id, exclude_shipment_item_id=exclude_shipment_item_id)
    if already + quantity > item.quantity:
        raise ConflictError(
            f"Cannot ship {quantity} unit(s): {item.quantity} ordered, {already} already shipped."
        )


def _duplicate_exists(shipment_id: int, order_item_id: int, exclude_id: int | None = None) -> bool:
    query = db.session.query(ShipmentItem.id).filter(
        ShipmentItem.shipment_id == shipment_id,
        ShipmentItem.order_item_id == order_item_id,
    )
    if exclude_id is not None:
        query = query.filter(ShipmentItem.id != exclude_id)
    return query.first() is not None


def list_shipment_items(shipment_id: int, params: ListParams) -> dict:
    _require_shipment(shipment_id)
    query = db.session.query(ShipmentItem).filter(ShipmentItem.shipment_id == shipment_id)
    return paginate(query, ShipmentItem, params, "items")


def _get_scoped_item(shipment_id: int, item_id: int) -> ShipmentItem | None:
    item = db.session.get(ShipmentItem, item_id)
    if item is None or item.shipment_id != shipment_id:
        return None
    return item


def get_shipment_item(shipment_id: int, item_id: int) -> dict | None:
    _require_shipment(shipment_id)
    item = _get_scoped_item(shipment_id, item_id)
    return item.to_dict() if item else None


def create_shipment_item(*, shipment_id: int, patch: dict) -> dict:
    """
    Raises:
        NotFoundError: If the shipment does not exist
        ValidationError: Unknown order item, or one from another order
        ConflictError: Over-shipment, or the order item is already on this shipment
    """
    s = _require_shipment(shipment_id)
    order_item = _check_order_item(s, patch["order_item_id"])
    if _duplicate_exists(s.id, order_item.id):
        raise ConflictError(DUPLICATE_SHIPMENT_ITEM)
    _check_capacity(order_item, patch["quantity_shipped"])

    item = ShipmentItem(shipment_id=s.id)
    _apply(item, patch, SHIPMENT_ITEM_MUTABLE_FIELDS)
    db.session.add(item)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(DUPLICATE_SHIPMENT_ITEM)
    return item.to_dict()


def update_shipment_item(*, shipment_id: int, item_id: int, patch: dict) -> dict | None:
    s = _require_shipment(shipment_id)
    item = _get_scoped_item(shipment_id, item_id)
    if item is None:
        return None

    order_item_id = patch.get("order_item_id", item.order_item_id)
    quantity = patch.get("quantity_shipped", item.quantity_shipped)
    order_item = _check_order_item(s, order_item_id)
    if _duplicate_exists(s.id, order_item.id, exclude_id=item.id):
        raise ConflictError(DUPLICATE_SHIPMENT_ITEM)
    _check_capacity(order_item, quantity, exclude_shipment_item_id=item.id)

    _apply(item, patch, SHIPMENT_ITEM_MUTABLE_FIELDS)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(DUPLICATE_SHIPMENT_ITEM)
    return item.to_dict()


def delete_shipment_item(*, shipment_id: int, item_id: int) -> bool:
    _require_shipment(shipment_id)
    item = _get_scoped_item(shipment_id, item_id)
    if item is None:
        return False
    db.session.delete(item)
    db.session.commit()
    return True
