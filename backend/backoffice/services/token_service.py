# Overview: Stateless JWT issuance/decoding and the 401 responses for bad tokens.

"""
Token Service

Tokens are signed, time-boxed JWTs (Flask-JWT-Extended). The server keeps no
session state: a token is accepted until it expires, and logout is a client
side discard.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict

from flask import current_app
from flask_jwt_extended import create_access_token

from ..models import AdminUser, Customer
from ..responses import error

PRINCIPAL_ADMIN = "admin"
PRINCIPAL_CUSTOMER = "customer"


@dataclass(frozen=True)
class Principal:
    id: int
    principal_type: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role_name: str | None = None
    avatar_url: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.principal_type == PRINCIPAL_ADMIN

    def to_dict(self) -> dict:
        return asdict(self)


def create_admin_token(admin: AdminUser) -> str:
    return create_access_token(
        identity=str(admin.id),
        additional_claims={
            "principal_type": PRINCIPAL_ADMIN,
            "email": admin.email,
            "first_name": admin.first_name,
            "last_name": admin.last_name,
            "role_name": admin.role.role_name if admin.role else None,
            "avatar_url": admin.avatar_url,
        },
    )


def create_customer_token(customer: Customer) -> str:
    return create_access_token(
        identity=str(customer.id),
        additional_claims={
            "principal_type": PRINCIPAL_CUSTOMER,
            "email": customer.email,
            "first_name": customer.first_name,
            "last_name": customer.last_name,
        },
    )


def principal_from_claims(claims: dict) -> Principal:
    return Principal(
        id=int(claims["sub"]),
        principal_type=claims.get("principal_type", PRINCIPAL_ADMIN),
        email=claims.get("email"),
        first_name=claims.get("first_name"),
        last_name=claims.get("last_name"),
        role_name=claims.get("role_name"),
        avatar_url=claims.get("avatar_url"),
    )


def register_jwt_callbacks(jwt_manager) -> None:
    """Every token failure (missing, malformed, bad signature, expired) is a 401 envelope."""

    @jwt_manager.unauthorized_loader
    def _missing_token(reason: str):
        current_app.logger.warning("Rejected request without token: %s", reason)
        return error("No token provided", 401)

    @jwt_manager.invalid_token_loader
    def _invalid_token(reason: str):
        current_app.logger.warning("JWT verification failed: %s", reason)
        return error("Invalid token", 401)

    @jwt_manager.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        current_app.logger.info("Rejected expired token for sub=%s", jwt_payload.get("sub"))
        return error("Token expired", 401)

    @jwt_manager.token_verification_failed_loader
    def _claims_failed(jwt_header, jwt_payload):
        return error("Invalid token", 401)
