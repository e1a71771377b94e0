# backend/backoffice/services/orders_service.py
"""
Orders Service

Orders and their line items. Items are always addressed through their order
(an item id under the wrong order is "not found").

Integrity rules:
- an order with shipments cannot be deleted
- deleting an order removes its items
- an item's quantity cannot drop below what has already shipped
"""
from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Customer, Order, OrderItem, Product, Shipment, ShipmentItem
from ..validation import ConflictError, NotFoundError, ValidationError, ListParams
from .pagination import paginate

ORDER_MUTABLE_FIELDS = {
    "customer_id", "order_date", "status", "order_total",
    "refund_total", "refund_date", "refund_status", "refund_reason",
}
ORDER_ITEM_MUTABLE_FIELDS = {"product_id", "quantity", "price"}

ORDER_ORDER_COLUMNS = {"id", "customer_id", "order_total", "created_at", "updated_at"}
ORDER_ITEM_ORDER_COLUMNS = {"id", "product_id", "quantity", "price", "created_at", "updated_at"}


def _apply(row, patch: dict, allowed: set[str]) -> None:
    for k, v in patch.items():
        if k not in allowed:
            continue
        setattr(row, k, v)


def _require_customer(customer_id: int) -> None:
    if db.session.get(Customer, customer_id) is None:
        raise ValidationError(
            "Customer not found",
            errors=[{"field": "customer_id", "message": "Customer not found"}],
        )


def _require_product(product_id: int) -> None:
    if db.session.get(Product, product_id) is None:
        raise ValidationError(
            "Product not found",
            errors=[{"field": "product_id", "message": "Product not found"}],
        )


def _require_order(order_id: int) -> Order:
    o = db.session.get(Order, order_id)
    if o is None:
        raise NotFoundError("Order not found")
    return o


def shipped_quantity(order_item_id: int, exclude_shipment_item_id: int | None = None) -> int:
    """Units of an order item already assigned to shipments."""
    query = db.session.query(func.coalesce(func.sum(ShipmentItem.quantity_shipped), 0)).filter(
        ShipmentItem.order_item_id == order_item_id
    )
    if exclude_shipment_item_id is not None:
        query = query.filter(ShipmentItem.id != exclude_shipment_item_id)
    return int(query.scalar() or 0)


def list_orders(params: ListParams, customer_id: int | None = None) -> dict:
    query = db.session.query(Order)
    if customer_id is not None:
        query = query.filter(Order.customer_id == customer_id)
    return paginate(query, Order, params, "orders")


def get_order(order_id: int) -> dict | None:
    """Order with its items."""
    o = db.session.get(Order, order_id)
    if o is None:
        return None
    result = o.to_dict()
    result["items"] = [i.to_dict() for i in sorted(o.items, key=lambda i: i.id)]
    return result


def create_order(*, patch: dict) -> dict:
    """
    Raises:
        ValidationError: If the customer does not exist
    """
    _require_customer(patch["customer_id"])
    o = Order()
    _apply(o, patch, ORDER_MUTABLE_FIELDS)
    db.session.add(o)
    db.session.commit()
    return o.to_dict()


def update_order(*, order_id: int, patch: dict) -> dict | None:
    o = db.session.get(Order, order_id)
    if o is None:
        return None
    if "customer_id" in patch:
        _require_customer(patch["customer_id"])
    _apply(o, patch, ORDER_MUTABLE_FIELDS)
    db.session.commit()
    return o.to_dict()


def delete_order(*, order_id: int) -> bool:
    """
    Delete an order and its items.

    Raises:
        ConflictError: If the order has shipments
    """
    o = db.session.get(Order, order_id)
    if o is None:
        return False
    shipments = db.session.query(Shipment).filter(Shipment.order_id == o.id).count()
    if shipments:
        raise ConflictError("Order has shipments and cannot be deleted.")
    db.session.delete(o)
    db.session.commit()
    return True


def list_order_items(order_id: int, params: ListParams) -> dict:
    """
    Raises:
        NotFoundError: If the order does not exist
    """
    _require_order(order_id)
    query = db.session.query(OrderItem).filter(OrderItem.order_id == order_id)
    return paginate(query, OrderItem, params, "items")


def _get_scoped_item(order_id: int, item_id: int) -> OrderItem | None:
    item = db.session.get(OrderItem, item_id)
    if item is None or item.order_id != order_id:
        return None
    return item


def get_order_item(order_id: int, item_id: int) -> dict | None:
    _require_order(order_id)
    item = _get_scoped_item(order_id, item_id)
    return item.to_dict() if item else None


def create_order_item(*, order_id: int, patch: dict) -> dict:
    """
    Raises:
        NotFoundError: If the order does not exist
        ValidationError: If the product does not exist
    """
    _require_order(order_id)
    _require_product(patch["product_id"])
    item = OrderItem(order_id=order_id)
    _apply(item, patch, ORDER_ITEM_MUTABLE_FIELDS)
    db.session.add(item)
    db.session.commit()
    return item.to_dict()


def update_order_item(*, order_id: int, item_id: int, patch: dict) -> dict | None:
    """
    Raises:
        NotFoundError: If the order does not exist
        ValidationError: If the new product does not exist
        ConflictError: If the new quantity is below the quantity already shipped
    """
    _require_order(order_id)
    item = _get_scoped_item(order_id, item_id)
    if item is None:
        return None
    if "product_id" in patch:
        _require_product(patch["product_id"])
    if "quantity" in patch:
        already = shipped_quantity(item.id)
        if patch["quantity"] < already:
            raise ConflictError(f"Quantity cannot be less than the {already} unit(s) already shipped.")
    _apply(item, patch, ORDER_ITEM_MUTABLE_FIELDS)
    db.session.commit()
    return item.to_dict()


def delete_order_item(*, order_id: int, item_id: int) -> bool:
    """
    Raises:
        NotFoundError: If the order does not exist
        ConflictError: If the item is on a shipment
    """
    _require_order(order_id)
    item = _get_scoped_item(order_id, item_id)
    if item is None:
        return False
    on_shipment = db.session.query(ShipmentItem.id).filter(ShipmentItem.order_item_id == item.id).first()
    if on_shipment is not None:
        raise ConflictError("Order item is on a shipment and cannot be deleted.")
    db.session.delete(item)
    db.session.commit()
    return True
