# Overview: Flask API routes for storefront customer accounts.

# backend/backoffice/routes/customers.py
"""
Customer management routes (back-office view of shopper accounts).

SECURITY: All routes require an admin bearer token.
"""
from flask import Blueprint, request, current_app

from ..extensions import db
from ..models import Customer
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    list_params_from_request,
    enforce_rules_email,
    split_password,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_admin
from ..responses import success, error, validation_error
from ..services import customers_service
from ..services.auth_service import PasswordValidationError

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"email", "first_name", "last_name", "phone_number", "avatar_url", "timezone"},
    required_on_create={"email"},
    non_blank_fields={"email"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/v1/customers")


def _validated(payload, *, partial: bool) -> tuple[dict, str | None]:
    body, password = split_password(payload, required=not partial)
    patch = validate_payload(model=Customer, payload=body, policy=CUSTOMER_POLICY, partial=partial)
    enforce_rules_email(patch)
    return patch, password


@customers_bp.get("")
@require_auth
@require_admin
def list_customers():
    """Paged listing: page, limit, orderBy, order."""
    try:
        params = list_params_from_request(customers_service.CUSTOMER_ORDER_COLUMNS)
    except ValidationError as e:
        return validation_error(e)

    try:
        result = customers_service.list_customers(params)
    except Exception:
        current_app.logger.exception("Failed to list customers")
        return error()

    return success(result, "Customers retrieved successfully")


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_admin
def get_customer(customer_id: int):
    try:
        customer = customers_service.get_customer(customer_id)
    except Exception:
        current_app.logger.exception("Failed to get customer %s", customer_id)
        return error()

    if customer is None:
        current_app.logger.warning("Customer not found: %s", customer_id)
        return error("Customer not found", 404)

    return success({"customer": customer}, "Customer retrieved successfully")


@customers_bp.post("")
@require_auth
@require_admin
def create_customer():
    try:
        patch, password = _validated(request.get_json(silent=True), partial=False)
    except ValidationError as e:
        return validation_error(e)

    try:
        created = customers_service.create_customer(patch=patch, password=password)
    except PasswordValidationError as e:
        return error(str(e), 400, errors=[{"field": "password", "message": str(e)}])
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create customer")
        return error()

    current_app.logger.info("Created customer %s", created["id"])
    return success({"customer": created}, "Customer created successfully", 201)


@customers_bp.put("/<int:customer_id>")
@require_auth
@require_admin
def update_customer(customer_id: int):
    try:
        patch, password = _validated(request.get_json(silent=True), partial=True)
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = customers_service.update_customer(customer_id=customer_id, patch=patch, password=password)
    except PasswordValidationError as e:
        return error(str(e), 400, errors=[{"field": "password", "message": str(e)}])
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update customer %s", customer_id)
        return error()

    if updated is None:
        return error("Customer not found", 404)

    return success({"customer": updated}, "Customer updated successfully")


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_admin
def delete_customer(customer_id: int):
    try:
        deleted = customers_service.delete_customer(customer_id=customer_id)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete customer %s", customer_id)
        return error()

    if not deleted:
        return error("Customer not found", 404)

    return success(None, "Customer deleted successfully")


@customers_bp.post("/<int:customer_id>/validatePassword")
@require_auth
@require_admin
def validate_customer_password(customer_id: int):
    payload = request.get_json(silent=True) or {}
    candidate = payload.get("password") if isinstance(payload, dict) else None
    if not candidate:
        return error("password is required", 400, errors=[{"field": "password", "message": "password is required"}])

    try:
        valid = customers_service.validate_customer_password(customer_id, candidate)
    except Exception:
        current_app.logger.exception("Failed to validate password for customer %s", customer_id)
        return error()

    if not valid:
        return success({"result": False}, "Invalid credentials.")

    return success({"result": True}, "Password is valid")
