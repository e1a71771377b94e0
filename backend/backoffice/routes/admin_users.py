# Overview: Flask API routes for back-office operator accounts.

# backend/backoffice/routes/admin_users.py
"""
Admin user management routes.

SECURITY: All routes require an admin bearer token. The password is accepted
on create/update and for validatePassword only; responses never carry the
hash.
"""
from flask import Blueprint, request, current_app

from ..extensions import db
from ..models import AdminUser
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
from ..services import admin_users_service
from ..services.auth_service import PasswordValidationError

ADMIN_USER_POLICY = ModelValidationPolicy(
    writable_fields={
        "email", "first_name", "last_name", "phone_number", "avatar_url", "timezone",
        "role_id", "mfa_enabled", "mfa_method",
    },
    required_on_create={"email", "role_id"},
    non_blank_fields={"email"},
)

admin_users_bp = Blueprint("admin_users", __name__, url_prefix="/v1/adminUsers")


def _validated(payload, *, partial: bool) -> tuple[dict, str | None]:
    body, password = split_password(payload, required=not partial)
    patch = validate_payload(model=AdminUser, payload=body, policy=ADMIN_USER_POLICY, partial=partial)
    enforce_rules_email(patch)
    return patch, password


@admin_users_bp.get("")
@require_auth
@require_admin
def list_admin_users():
    try:
        params = list_params_from_request(admin_users_service.ADMIN_USER_ORDER_COLUMNS)
    except ValidationError as e:
        return validation_error(e)

    try:
        result = admin_users_service.list_admin_users(params)
    except Exception:
        current_app.logger.exception("Failed to list admin users")
        return error()

    return success(result, "Admin users retrieved successfully")


@admin_users_bp.get("/roles")
@require_auth
@require_admin
def list_roles():
    try:
        roles = admin_users_service.list_roles()
    except Exception:
        current_app.logger.exception("Failed to list admin roles")
        return error()

    return success({"roles": roles}, "Admin roles retrieved successfully")


@admin_users_bp.get("/<int:admin_user_id>")
@require_auth
@require_admin
def get_admin_user(admin_user_id: int):
    try:
        admin_user = admin_users_service.get_admin_user(admin_user_id)
    except Exception:
        current_app.logger.exception("Failed to get admin user %s", admin_user_id)
        return error()

    if admin_user is None:
        current_app.logger.warning("Admin user not found: %s", admin_user_id)
        return error("Admin user not found", 404)

    return success({"admin_user": admin_user}, "Admin user retrieved successfully")


@admin_users_bp.post("")
@require_auth
@require_admin
def create_admin_user():
    """
    Create an operator account.

    Required: email, password, role_id.
    """
    try:
        patch, password = _validated(request.get_json(silent=True), partial=False)
    except ValidationError as e:
        return validation_error(e)

    try:
        created = admin_users_service.create_admin_user(patch=patch, password=password)
    except PasswordValidationError as e:
        return error(str(e), 400, errors=[{"field": "password", "message": str(e)}])
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create admin user")
        return error()

    current_app.logger.info("Created admin user %s", created["id"])
    return success({"admin_user": created}, "Admin user created successfully", 201)


@admin_users_bp.put("/<int:admin_user_id>")
@require_auth
@require_admin
def update_admin_user(admin_user_id: int):
    try:
        patch, password = _validated(request.get_json(silent=True), partial=True)
    except ValidationError as e:
        return validation_error(e)

    try:
        updated = admin_users_service.update_admin_user(
            admin_user_id=admin_user_id, patch=patch, password=password
        )
    except PasswordValidationError as e:
        return error(str(e), 400, errors=[{"field": "password", "message": str(e)}])
    except ValidationError as e:
        return validation_error(e)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update admin user %s", admin_user_id)
        return error()

    if updated is None:
        return error("Admin user not found", 404)

    return success({"admin_user": updated}, "Admin user updated successfully")


@admin_users_bp.delete("/<int:admin_user_id>")
@require_auth
@require_admin
def delete_admin_user(admin_user_id: int):
    try:
        deleted = admin_users_service.delete_admin_user(admin_user_id=admin_user_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete admin user %s", admin_user_id)
        return error()

    if not deleted:
        return error("Admin user not found", 404)

    current_app.logger.info("Deleted admin user %s", admin_user_id)
    return success(None, "Admin user deleted successfully")


@admin_users_bp.post("/<int:admin_user_id>/validatePassword")
@require_auth
@require_admin
def validate_admin_user_password(admin_user_id: int):
    """
    Body: {"password": "..."} -> {"result": bool}.

    Unknown id and wrong password give the same answer.
    """
    payload = request.get_json(silent=True) or {}
    candidate = payload.get("password") if isinstance(payload, dict) else None
    if not candidate:
        return error("password is required", 400, errors=[{"field": "password", "message": "password is required"}])

    try:
        valid = admin_users_service.validate_admin_password(admin_user_id, candidate)
    except Exception:
        current_app.logger.exception("Failed to validate password for admin user %s", admin_user_id)
        return error()

    if not valid:
        current_app.logger.warning("Password validation failed for admin user %s", admin_user_id)
        return success({"result": False}, "Invalid credentials.")

    return success({"result": True}, "Password is valid")
