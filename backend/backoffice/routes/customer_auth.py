# Overview: Flask API routes for storefront customer authentication.

from flask import Blueprint, g, current_app

from ..decorators import require_auth
from ..responses import success, error
from ..services import auth_service
from ..services.token_service import create_customer_token
from .admin_auth import read_credentials

customer_auth_bp = Blueprint("customer_auth", __name__, url_prefix="/v1/customerAuth")


@customer_auth_bp.post("/login")
def login():
    email, password, failure = read_credentials()
    if failure is not None:
        return failure

    try:
        customer = auth_service.authenticate_customer(email, password)
        if customer is None:
            current_app.logger.warning("Failed customer login for %s", email)
            return error("Invalid credentials.", 401)

        token = create_customer_token(customer)
    except Exception:
        current_app.logger.exception("Failed to login customer")
        return error()

    return success({"token": token}, "Login successful")


@customer_auth_bp.get("/me")
@require_auth
def me():
    if g.principal.is_admin:
        return error("Customer access required", 403)
    return success({"customer": g.principal.to_dict()}, "Customer retrieved successfully")
