from __future__ import annotations
import json
import math
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from backoffice.time_utils import parse_iso_datetime

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime, JSON
from sqlalchemy.orm import DeclarativeMeta
from werkzeug.routing import IntegerConverter


# NUMERIC(10, 2): largest storable amount
MAX_MONEY = Decimal("99999999.99")

# INTEGER columns (ids, quantities): signed 32-bit
MAX_DB_INT = 2**31 - 1
MIN_DB_INT = -(2**31)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """400-level input problem. `errors` carries per-field details when known."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email, category with children)."""


class NotFoundError(LookupError):
    """404-level: a path id (or parent id of a nested resource) has no row."""


class DatabaseIdConverter(IntegerConverter):
    """`<int:...>` URL converter bounded to the INTEGER range; larger ids fall through to 404."""

    def __init__(self, map, *args, **kwargs):
        kwargs.setdefault("max", MAX_DB_INT)
        super().__init__(map, *args, **kwargs)


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - non_blank_fields: strings that may not be sent as "" even on nullable columns
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    non_blank_fields: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class ListParams:
    page: int
    limit: int
    order_by: str
    order: str

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _check_int_range(name: str, value: int) -> int:
    if not MIN_DB_INT <= value <= MAX_DB_INT:
        raise ValidationError(
            f"{name} is out of range",
            errors=[{"field": name, "message": f"{name} must be between {MIN_DB_INT} and {MAX_DB_INT}"}],
        )
    return value


def db_int(value) -> int:
    """`type=` callable for optional integer query filters; out-of-range values are rejected like junk."""
    parsed = int(value)
    if not MIN_DB_INT <= parsed <= MAX_DB_INT:
        raise ValueError(f"{parsed} is outside the INTEGER range")
    return parsed


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return _check_int_range(col.key, value)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                parsed = int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
            return _check_int_range(col.key, parsed)
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Money (NUMERIC(10, 2)) - accept numbers or numeric strings, keep as Decimal
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            raise ValidationError(f"{col.key} must be a finite number")
        if not isinstance(value, (int, float, str, Decimal)):
            raise ValidationError(f"{col.key} must be a number")
        try:
            dec = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{col.key} must be a number")
        if not dec.is_finite():
            raise ValidationError(f"{col.key} must be a finite number")
        if dec.as_tuple().exponent < -2:
            raise ValidationError(f"{col.key} must have at most 2 decimal places")
        return dec

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # JSON columns accept structured values or a JSON-encoded string of one
    if isinstance(coltype, JSON):
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be valid JSON")
        if isinstance(value, (list, dict)):
            return value
        raise ValidationError(f"{col.key} must be a JSON array or object")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)

    All field problems are collected before raising, so clients see every
    failing field at once.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: list[dict] = []

    if not partial:
        for f in sorted(policy.required_on_create):
            if f not in payload:
                errors.append({"field": f, "message": f"{f} is required"})

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields or k not in cols:
            errors.append({"field": k, "message": f"Field not allowed: {k}"})

    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            continue
        col = cols[k]

        if raw is None:
            if not col.nullable or k in policy.required_on_create:
                errors.append({"field": k, "message": f"{k} cannot be null"})
                continue
            patch[k] = None
            continue

        try:
            val = _coerce_value(col, raw)
        except ValidationError as e:
            errors.append({"field": k, "message": str(e)})
            continue

        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable or k in policy.non_blank_fields or k in policy.required_on_create:
                errors.append({"field": k, "message": f"{k} cannot be blank"})
                continue
            # Blank optional text is stored as NULL
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                errors.append({"field": k, "message": f"{k} exceeds max length {col.type.length}"})
                continue

        patch[k] = val

    if errors:
        raise ValidationError(
            "; ".join(e["message"] for e in errors),
            errors=errors,
        )

    return patch


def parse_list_params(
    args,
    *,
    order_columns: set[str],
    default_limit: int = 20,
    max_limit: int = 1000,
    default_order_by: str = "id",
    default_order: str = "asc",
) -> ListParams:
    """
    Query-string parsing for paged listings: page, limit, orderBy, order.

    orderBy is checked against an allowlist before it ever reaches a query.
    """
    errors: list[dict] = []

    def _positive_int(name: str, default: int) -> int:
        raw = args.get(name)
        if raw is None or raw == "":
            return default
        try:
            value = int(raw)
        except (TypeError, ValueError):
            errors.append({"field": name, "message": f"{name} must be an integer"})
            return default
        if value < 1:
            errors.append({"field": name, "message": f"{name} must be >= 1"})
            return default
        if value > MAX_DB_INT:
            errors.append({"field": name, "message": f"{name} cannot exceed {MAX_DB_INT}"})
            return default
        return value

    page = _positive_int("page", 1)
    limit = _positive_int("limit", default_limit)
    if limit > max_limit:
        errors.append({"field": "limit", "message": f"limit cannot exceed {max_limit}"})

    order_by = args.get("orderBy") or default_order_by
    if order_by not in order_columns:
        errors.append({
            "field": "orderBy",
            "message": f"orderBy must be one of: {', '.join(sorted(order_columns))}",
        })

    order = (args.get("order") or default_order).lower()
    if order not in ("asc", "desc"):
        errors.append({"field": "order", "message": "order must be 'asc' or 'desc'"})

    if errors:
        raise ValidationError("; ".join(e["message"] for e in errors), errors=errors)

    return ListParams(page=page, limit=limit, order_by=order_by, order=order)


def enforce_rules_money(patch: dict, *fields: str) -> None:
    """Amounts must be >= 0 and fit NUMERIC(10, 2)."""
    for name in fields:
        amount = patch.get(name)
        if amount is None:
            continue
        if amount < 0:
            raise ValidationError(f"{name} must be >= 0", errors=[{"field": name, "message": f"{name} must be >= 0"}])
        if amount > MAX_MONEY:
            raise ValidationError(f"{name} cannot exceed {MAX_MONEY}")


def enforce_rules_sale_window(patch: dict, current: Any = None) -> None:
    """sale_end may not precede sale_start (either side may come from the stored row)."""
    start = patch.get("sale_start", getattr(current, "sale_start", None))
    end = patch.get("sale_end", getattr(current, "sale_end", None))
    if start is not None and end is not None and end < start:
        raise ValidationError("sale_end must not be before sale_start")


def enforce_rules_quantity(patch: dict, name: str, *, allow_zero: bool) -> None:
    if name not in patch or patch[name] is None:
        return
    qty = patch[name]
    if qty < 0 or (qty == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise ValidationError(f"{name} must be {bound}", errors=[{"field": name, "message": f"{name} must be {bound}"}])


def enforce_rules_email(patch: dict) -> None:
    email = patch.get("email")
    if email is not None and not EMAIL_RE.match(email):
        raise ValidationError("email must be a valid email address", errors=[{"field": "email", "message": "email must be a valid email address"}])


def require_json_object(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def enforce_rules_product_media(patch: dict) -> None:
    """product_media is an array of media objects ({"url": ..., ...})."""
    if "product_media" not in patch or patch["product_media"] is None:
        return
    media = patch["product_media"]
    if not isinstance(media, list) or not all(isinstance(m, dict) for m in media):
        raise ValidationError(
            "product_media must be an array of objects",
            errors=[{"field": "product_media", "message": "product_media must be an array of objects"}],
        )


def parse_id_list(payload: Any, field_name: str) -> list[int]:
    """A required JSON array of positive integer ids, de-duplicated in order."""
    raw = payload.get(field_name) if isinstance(payload, dict) else None
    if not isinstance(raw, list):
        raise ValidationError(
            f"{field_name} must be an array of ids",
            errors=[{"field": field_name, "message": f"{field_name} must be an array of ids"}],
        )
    ids: list[int] = []
    for value in raw:
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= MAX_DB_INT:
            raise ValidationError(
                f"{field_name} must contain positive integers",
                errors=[{"field": field_name, "message": f"{field_name} must contain positive integers"}],
            )
        if value not in ids:
            ids.append(value)
    return ids


def list_params_from_request(order_columns: set[str], **kwargs) -> ListParams:
    """parse_list_params over the current request, with the app's page limits."""
    from flask import current_app, request

    return parse_list_params(
        request.args,
        order_columns=order_columns,
        default_limit=current_app.config.get("DEFAULT_PAGE_LIMIT", 20),
        max_limit=current_app.config.get("MAX_PAGE_LIMIT", 1000),
        **kwargs,
    )


def split_password(payload: Any, *, required: bool) -> tuple[dict, str | None]:
    """
    Separate the plain-text password from the column fields of a user payload.

    Raises ValidationError if it is required and missing, or not a string.
    """
    body = dict(require_json_object(payload))
    password = body.pop("password", None)
    if password is None:
        if required:
            raise ValidationError("password is required", errors=[{"field": "password", "message": "password is required"}])
        return body, None
    if not isinstance(password, str):
        raise ValidationError("password must be a string", errors=[{"field": "password", "message": "password must be a string"}])
    return body, password
