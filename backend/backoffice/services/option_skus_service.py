# backend/backoffice/services/option_skus_service.py
"""
Product Option SKU Service

A SKU row binds a product to one option/variant pair, with its own SKU code
and optional pricing. The variant must belong to the option; each
(product, option, variant) combination exists at most once.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, ProductOption, ProductOptionVariant, ProductOptionSKU
from ..validation import ConflictError, ValidationError

OPTION_SKU_MUTABLE_FIELDS = {
    "product_id", "option_id", "variant_id", "sku", "price", "sale_price", "sale_start", "sale_end",
}

DUPLICATE_COMBINATION = "This product already has a SKU for this option and variant."


def _field_error(field_name: str, message: str) -> ValidationError:
    return ValidationError(message, errors=[{"field": field_name, "message": message}])


def _check_references(product_id: int, option_id: int, variant_id: int) -> None:
    if db.session.get(Product, product_id) is None:
        raise _field_error("product_id", "Product not found")
    if db.session.get(ProductOption, option_id) is None:
        raise _field_error("option_id", "Product option not found")
    variant = db.session.get(ProductOptionVariant, variant_id)
    if variant is None:
        raise _field_error("variant_id", "Variant not found")
    if variant.option_id != option_id:
        raise _field_error("variant_id", "Variant does not belong to the option")


def _combination_taken(product_id: int, option_id: int, variant_id: int, exclude_id: int | None = None) -> bool:
    query = db.session.query(ProductOptionSKU.id).filter(
        ProductOptionSKU.product_id == product_id,
        ProductOptionSKU.option_id == option_id,
        ProductOptionSKU.variant_id == variant_id,
    )
    if exclude_id is not None:
        query = query.filter(ProductOptionSKU.id != exclude_id)
    return query.first() is not None


def list_option_skus(product_id: int | None = None) -> list[dict]:
    query = db.session.query(ProductOptionSKU)
    if product_id is not None:
        query = query.filter(ProductOptionSKU.product_id == product_id)
    return [s.to_dict() for s in query.order_by(ProductOptionSKU.id.asc()).all()]


def get_option_sku(sku_id: int) -> dict | None:
    s = db.session.get(ProductOptionSKU, sku_id)
    return s.to_dict() if s else None


def create_option_sku(*, patch: dict) -> dict:
    """
    Raises:
        ValidationError: Unknown product/option/variant, or variant of another option
        ConflictError: If the combination already exists
    """
    _check_references(patch["product_id"], patch["option_id"], patch["variant_id"])
    if _combination_taken(patch["product_id"], patch["option_id"], patch["variant_id"]):
        raise ConflictError(DUPLICATE_COMBINATION)

    s = ProductOptionSKU()
    for k, v in patch.items():
        if k in OPTION_SKU_MUTABLE_FIELDS:
            setattr(s, k, v)
    db.session.add(s)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(DUPLICATE_COMBINATION)
    return s.to_dict()


def update_option_sku(*, sku_id: int, patch: dict) -> dict | None:
    s = db.session.get(ProductOptionSKU, sku_id)
    if s is None:
        return None

    product_id = patch.get("product_id", s.product_id)
    option_id = patch.get("option_id", s.option_id)
    variant_id = patch.get("variant_id", s.variant_id)
    if {"product_id", "option_id", "variant_id"} & set(patch):
        _check_references(product_id, option_id, variant_id)
        if _combination_taken(product_id, option_id, variant_id, exclude_id=s.id):
            raise ConflictError(DUPLICATE_COMBINATION)

    start = patch.get("sale_start", s.sale_start)
    end = patch.get("sale_end", s.sale_end)
    if start is not None and end is not None and end < start:
        raise ValidationError("sale_end must not be before sale_start")

    for k, v in patch.items():
        if k in OPTION_SKU_MUTABLE_FIELDS:
            setattr(s, k, v)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(DUPLICATE_COMBINATION)
    return s.to_dict()


def delete_option_sku(*, sku_id: int) -> bool:
    s = db.session.get(ProductOptionSKU, sku_id)
    if s is None:
        return False
    db.session.delete(s)
    db.session.commit()
    return True
