# Overview: Flask API routes for admin authentication; issues and describes bearer tokens.

# backend/backoffice/routes/admin_auth.py
"""
Admin authentication routes.

Tokens are stateless JWTs. Logout only tells the client to drop its token;
nothing is recorded server-side, so a copied token stays valid until it
expires.
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_admin
from ..responses import success, error
from ..services import auth_service
from ..services.token_service import create_admin_token

admin_auth_bp = Blueprint("admin_auth", __name__, url_prefix="/v1/adminAuth")


def read_credentials():
    """
    Returns (email, password, None) from the JSON body, or
    (None, None, error_response) if either is missing.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}
    email = payload.get("email")
    password = payload.get("password")

    errors = []
    if not isinstance(email, str) or not email.strip():
        errors.append({"field": "email", "message": "email is required"})
    if not isinstance(password, str) or not password:
        errors.append({"field": "password", "message": "password is required"})
    if errors:
        return None, None, error("Email and password are required.", 400, errors=errors)
    return email.strip(), password, None


@admin_auth_bp.post("/login")
def login():
    """
    Exchange email + password for a bearer token.

    Unknown email and wrong password are indistinguishable (401
    "Invalid credentials.").
    """
    email, password, failure = read_credentials()
    if failure is not None:
        return failure

    try:
        admin = auth_service.authenticate_admin(email, password)
        if admin is None:
            current_app.logger.warning("Failed admin login for %s", email)
            return error("Invalid credentials.", 401)

        token = create_admin_token(admin)
    except Exception:
        current_app.logger.exception("Failed to login admin")
        return error()

    current_app.logger.info("Admin %s logged in", admin.id)
    return success({"token": token}, "Login successful")


@admin_auth_bp.get("/me")
@require_auth
@require_admin
def me():
    """The principal carried by the token (no database lookup)."""
    return success({"admin": g.principal.to_dict()}, "Admin retrieved successfully")


@admin_auth_bp.post("/logout")
def logout():
    return success(None, "Logout successful")
