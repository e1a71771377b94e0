# Overview: Orders with their line items, and shipments fulfilling those items.
from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_money


class Order(db.Model):
    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    order_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    status = db.Column(db.String(32), nullable=True, default="pending")
    order_total = db.Column(db.Numeric(10, 2), nullable=False)

    refund_total = db.Column(db.Numeric(10, 2), nullable=True)
    refund_date = db.Column(db.DateTime(timezone=True), nullable=True)
    refund_status = db.Column(db.String(32), nullable=True, default="none")
    refund_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    items = db.relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", lazy=True)

    def __repr__(self) -> str:
        return f"<Order id={self.id} customer_id={self.customer_id} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "order_date": to_utc_z(self.order_date),
            "status": self.status,
            "order_total": to_money(self.order_total),
            "refund_total": to_money(self.refund_total),
            "refund_date": to_utc_z(self.refund_date),
            "refund_status": self.refund_status,
            "refund_reason": self.refund_reason,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    order = db.relationship("Order", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price": to_money(self.price),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Shipment(db.Model):
    __tablename__ = "shipments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    shipment_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    tracking_number = db.Column(db.String(128), nullable=True)
    shipping_carrier = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    order = db.relationship("Order", backref=db.backref("shipments", lazy=True))
    items = db.relationship("ShipmentItem", back_populates="shipment", cascade="all, delete-orphan", lazy=True)

    def __repr__(self) -> str:
        return f"<Shipment id={self.id} order_id={self.order_id} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "shipment_date": to_utc_z(self.shipment_date),
            "tracking_number": self.tracking_number,
            "shipping_carrier": self.shipping_carrier,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ShipmentItem(db.Model):
    """Quantity of one order item carried by one shipment (partial fulfillment)."""
    __tablename__ = "shipment_items"
    __table_args__ = (
        db.UniqueConstraint("shipment_id", "order_item_id", name="uq_shipment_items_shipment_order_item"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shipment_id = db.Column(db.Integer, db.ForeignKey("shipments.id"), nullable=False, index=True)
    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=False, index=True)
    quantity_shipped = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    shipment = db.relationship("Shipment", back_populates="items")
    order_item = db.relationship("OrderItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shipment_id": self.shipment_id,
            "order_item_id": self.order_item_id,
            "quantity_shipped": self.quantity_shipped,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
