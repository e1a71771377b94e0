# backend/backoffice/services/inventory_service.py
"""
Inventory Service

Stock locations and per-location stock counts.

Stock rows are keyed by (product_id, location_id). Creating one is an upsert:
a second POST for the same pair overwrites the quantity instead of adding a
duplicate row. The upsert is a single INSERT ... ON CONFLICT DO UPDATE, so two
concurrent writers cannot both insert.
"""
from __future__ import annotations

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import InventoryLocation, InventoryProduct, Product
from ..validation import ConflictError, ValidationError

LOCATION_MUTABLE_FIELDS = {"location_identifier", "description"}
INVENTORY_PRODUCT_MUTABLE_FIELDS = {"product_id", "location_id", "quantity"}

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _field_error(field_name: str, message: str) -> ValidationError:
    return ValidationError(message, errors=[{"field": field_name, "message": message}])


def _identifier_taken(identifier: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(InventoryLocation.id).filter(InventoryLocation.location_identifier == identifier)
    if exclude_id is not None:
        query = query.filter(InventoryLocation.id != exclude_id)
    return query.first() is not None


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------

def list_locations() -> list[dict]:
    rows = db.session.query(InventoryLocation).order_by(InventoryLocation.id.asc()).all()
    return [loc.to_dict() for loc in rows]


def get_location(location_id: int) -> dict | None:
    loc = db.session.get(InventoryLocation, location_id)
    return loc.to_dict() if loc else None


def create_location(*, patch: dict) -> dict:
    if _identifier_taken(patch["location_identifier"]):
        raise ConflictError("An inventory location with this identifier already exists.")
    loc = InventoryLocation()
    for k, v in patch.items():
        if k in LOCATION_MUTABLE_FIELDS:
            setattr(loc, k, v)
    db.session.add(loc)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("An inventory location with this identifier already exists.")
    return loc.to_dict()


def update_location(*, location_id: int, patch: dict) -> dict | None:
    loc = db.session.get(InventoryLocation, location_id)
    if loc is None:
        return None
    if "location_identifier" in patch and _identifier_taken(patch["location_identifier"], exclude_id=loc.id):
        raise ConflictError("An inventory location with this identifier already exists.")
    for k, v in patch.items():
        if k in LOCATION_MUTABLE_FIELDS:
            setattr(loc, k, v)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("An inventory location with this identifier already exists.")
    return loc.to_dict()


def delete_location(*, location_id: int) -> bool:
    """
    Raises:
        ConflictError: If stock is still recorded at the location
    """
    loc = db.session.get(InventoryLocation, location_id)
    if loc is None:
        return False
    stocked = db.session.query(InventoryProduct.id).filter(InventoryProduct.location_id == loc.id).first()
    if stocked is not None:
        raise ConflictError("Inventory location still holds stock records and cannot be deleted.")
    db.session.delete(loc)
    db.session.commit()
    return True


# ---------------------------------------------------------------------------
# Stock per product and location
# ---------------------------------------------------------------------------

def _check_references(product_id: int, location_id: int) -> None:
    if db.session.get(Product, product_id) is None:
        raise _field_error("product_id", "Product not found")
    if db.session.get(InventoryLocation, location_id) is None:
        raise _field_error("location_id", "Inventory location not found")


def list_inventory_products(product_id: int | None = None, location_id: int | None = None) -> list[dict]:
    query = db.session.query(InventoryProduct)
    if product_id is not None:
        query = query.filter(InventoryProduct.product_id == product_id)
    if location_id is not None:
        query = query.filter(InventoryProduct.location_id == location_id)
    return [r.to_dict() for r in query.order_by(InventoryProduct.id.asc()).all()]


def get_inventory_product(inventory_id: int) -> dict | None:
    r = db.session.get(InventoryProduct, inventory_id)
    return r.to_dict() if r else None


def upsert_inventory_product(*, product_id: int, location_id: int, quantity: int) -> dict:
    """
    Set the stock count for a (product, location) pair, creating the row if
    needed.

    Raises:
        ValidationError: If the product or location does not exist
    """
    _check_references(product_id, location_id)

    table = InventoryProduct.__table__
    dialect = db.session.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Inventory upsert is not supported on {dialect}")

    stmt = insert(table).values(product_id=product_id, location_id=location_id, quantity=quantity)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.product_id, table.c.location_id],
        set_={"quantity": stmt.excluded.quantity, "updated_at": db.func.now()},
    )
    db.session.execute(stmt)
    db.session.commit()

    row = (
        db.session.query(InventoryProduct)
        .filter(InventoryProduct.product_id == product_id, InventoryProduct.location_id == location_id)
        .populate_existing()
        .one()
    )
    return row.to_dict()


def update_inventory_product(*, inventory_id: int, patch: dict) -> dict | None:
    """
    Raises:
        ValidationError: If a new product or location does not exist
        ConflictError: If the move collides with an existing (product, location) row
    """
    r = db.session.get(InventoryProduct, inventory_id)
    if r is None:
        return None
    product_id = patch.get("product_id", r.product_id)
    location_id = patch.get("location_id", r.location_id)
    if "product_id" in patch or "location_id" in patch:
        _check_references(product_id, location_id)
        clash = db.session.query(InventoryProduct.id).filter(
            InventoryProduct.product_id == product_id,
            InventoryProduct.location_id == location_id,
            InventoryProduct.id != r.id,
        ).first()
        if clash is not None:
            raise ConflictError("Stock for this product at this location is already recorded.")
    for k, v in patch.items():
        if k in INVENTORY_PRODUCT_MUTABLE_FIELDS:
            setattr(r, k, v)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Stock for this product at this location is already recorded.")
    return r.to_dict()


def delete_inventory_product(*, inventory_id: int) -> bool:
    r = db.session.get(InventoryProduct, inventory_id)
    if r is None:
        return False
    db.session.delete(r)
    db.session.commit()
    return True
