# backend/backoffice/services/options_service.py
"""
Product Options Service

Options are catalog-wide axes ("Size", "Colour"); variants are the values an
option can take ("S", "M", "L"). Products pick concrete option/variant
combinations through product_option_skus.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import ProductOption, ProductOptionVariant, ProductOptionSKU
from ..validation import ConflictError, NotFoundError

OPTION_MUTABLE_FIELDS = {"option_name"}
VARIANT_MUTABLE_FIELDS = {"option_value"}


def _option_name_taken(name: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(ProductOption.id).filter(ProductOption.option_name == name)
    if exclude_id is not None:
        query = query.filter(ProductOption.id != exclude_id)
    return query.first() is not None


def _variant_value_taken(option_id: int, value: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(ProductOptionVariant.id).filter(
        ProductOptionVariant.option_id == option_id,
        ProductOptionVariant.option_value == value,
    )
    if exclude_id is not None:
        query = query.filter(ProductOptionVariant.id != exclude_id)
    return query.first() is not None


def _require_option(option_id: int) -> ProductOption:
    o = db.session.get(ProductOption, option_id)
    if o is None:
        raise NotFoundError("Product option not found")
    return o


def _commit_or_conflict(message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(message)


def list_options() -> list[dict]:
    return [o.to_dict() for o in db.session.query(ProductOption).order_by(ProductOption.id.asc()).all()]


def get_option(option_id: int) -> dict | None:
    """Option with its variants."""
    o = db.session.get(ProductOption, option_id)
    if o is None:
        return None
    result = o.to_dict()
    result["variants"] = [v.to_dict() for v in sorted(o.variants, key=lambda v: v.id)]
    return result


def create_option(*, patch: dict) -> dict:
    if _option_name_taken(patch["option_name"]):
        raise ConflictError("A product option with this name already exists.")
    o = ProductOption(option_name=patch["option_name"])
    db.session.add(o)
    _commit_or_conflict("A product option with this name already exists.")
    return o.to_dict()


def update_option(*, option_id: int, patch: dict) -> dict | None:
    o = db.session.get(ProductOption, option_id)
    if o is None:
        return None
    if "option_name" in patch and _option_name_taken(patch["option_name"], exclude_id=o.id):
        raise ConflictError("A product option with this name already exists.")
    for k, v in patch.items():
        if k in OPTION_MUTABLE_FIELDS:
            setattr(o, k, v)
    _commit_or_conflict("A product option with this name already exists.")
    return o.to_dict()


def delete_option(*, option_id: int) -> bool:
    """
    Deletes the option and its variants.

    Raises:
        ConflictError: If a product SKU still uses the option
    """
    o = db.session.get(ProductOption, option_id)
    if o is None:
        return False
    in_use = db.session.query(ProductOptionSKU.id).filter(ProductOptionSKU.option_id == o.id).first()
    if in_use is not None:
        raise ConflictError("Product option is used by product SKUs and cannot be deleted.")
    db.session.query(ProductOptionVariant).filter(ProductOptionVariant.option_id == o.id).delete(
        synchronize_session=False
    )
    db.session.delete(o)
    db.session.commit()
    return True


def list_variants(option_id: int) -> list[dict]:
    """
    Raises:
        NotFoundError: If the option does not exist
    """
    _require_option(option_id)
    rows = (
        db.session.query(ProductOptionVariant)
        .filter(ProductOptionVariant.option_id == option_id)
        .order_by(ProductOptionVariant.id.asc())
        .all()
    )
    return [v.to_dict() for v in rows]


def _get_scoped_variant(option_id: int, variant_id: int) -> ProductOptionVariant | None:
    v = db.session.get(ProductOptionVariant, variant_id)
    if v is None or v.option_id != option_id:
        return None
    return v


def get_variant(option_id: int, variant_id: int) -> dict | None:
    _require_option(option_id)
    v = _get_scoped_variant(option_id, variant_id)
    return v.to_dict() if v else None


def create_variant(*, option_id: int, patch: dict) -> dict:
    """
    Raises:
        NotFoundError: If the option does not exist
        ConflictError: If the option already has this value
    """
    _require_option(option_id)
    if _variant_value_taken(option_id, patch["option_value"]):
        raise ConflictError("This option already has a variant with this value.")
    v = ProductOptionVariant(option_id=option_id, option_value=patch["option_value"])
    db.session.add(v)
    _commit_or_conflict("This option already has a variant with this value.")
    return v.to_dict()


def update_variant(*, option_id: int, variant_id: int, patch: dict) -> dict | None:
    _require_option(option_id)
    v = _get_scoped_variant(option_id, variant_id)
    if v is None:
        return None
    if "option_value" in patch and _variant_value_taken(option_id, patch["option_value"], exclude_id=v.id):
        raise ConflictError("This option already has a variant with this value.")
    for k, val in patch.items():
        if k in VARIANT_MUTABLE_FIELDS:
            setattr(v, k, val)
    _commit_or_conflict("This option already has a variant with this value.")
    return v.to_dict()


def delete_variant(*, option_id: int, variant_id: int) -> bool:
    """
    Raises:
        NotFoundError: If the option does not exist
        ConflictError: If a product SKU still uses the variant
    """
    _require_option(option_id)
    v = _get_scoped_variant(option_id, variant_id)
    if v is None:
        return False
    in_use = db.session.query(ProductOptionSKU.id).filter(ProductOptionSKU.variant_id == v.id).first()
    if in_use is not None:
        raise ConflictError("Variant is used by product SKUs and cannot be deleted.")
    db.session.delete(v)
    db.session.commit()
    return True
