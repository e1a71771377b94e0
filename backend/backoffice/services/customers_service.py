# backend/backoffice/services/customers_service.py
"""
Customer Service

Storefront shopper accounts as seen from the back office. Same password
handling as admin users (bcrypt, never serialized).
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, Order, AuditLog
from ..validation import ConflictError, ListParams
from .auth_service import hash_password, check_stored_password
from .pagination import paginate

CUSTOMER_MUTABLE_FIELDS = {"email", "first_name", "last_name", "phone_number", "avatar_url", "timezone"}
CUSTOMER_ORDER_COLUMNS = {"id", "email", "first_name", "last_name", "created_at", "updated_at"}


def apply_customer_patch(c: Customer, patch: dict) -> None:
    for k, v in patch.items():
        if k not in CUSTOMER_MUTABLE_FIELDS:
            continue
        setattr(c, k, v)


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Customer.id).filter(Customer.email == email)
    if exclude_id is not None:
        query = query.filter(Customer.id != exclude_id)
    return query.first() is not None


def list_customers(params: ListParams) -> dict:
    return paginate(db.session.query(Customer), Customer, params, "customers")


def get_customer(customer_id: int) -> dict | None:
    c = db.session.get(Customer, customer_id)
    return c.to_dict() if c else None


def create_customer(*, patch: dict, password: str) -> dict:
    """
    Raises:
        PasswordValidationError: If the password is too weak
        ConflictError: If the email is already registered
    """
    if _email_taken(patch["email"]):
        raise ConflictError("A customer with this email already exists.")

    c = Customer(password_hash=hash_password(password))
    apply_customer_patch(c, patch)
    db.session.add(c)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A customer with this email already exists.")

    return c.to_dict()


def update_customer(*, customer_id: int, patch: dict, password: str | None = None) -> dict | None:
    c = db.session.get(Customer, customer_id)
    if c is None:
        return None

    if "email" in patch and patch["email"] != c.email and _email_taken(patch["email"], exclude_id=c.id):
        raise ConflictError("A customer with this email already exists.")

    apply_customer_patch(c, patch)
    if password is not None:
        c.password_hash = hash_password(password)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A customer with this email already exists.")

    return c.to_dict()


def delete_customer(*, customer_id: int) -> bool:
    """
    Raises:
        ConflictError: If the customer has orders
    """
    c = db.session.get(Customer, customer_id)
    if c is None:
        return False

    if db.session.query(Order.id).filter(Order.customer_id == c.id).first() is not None:
        raise ConflictError("Customer has orders and cannot be deleted.")

    db.session.query(AuditLog).filter(AuditLog.customer_id == c.id).update(
        {AuditLog.customer_id: None}, synchronize_session=False
    )
    db.session.delete(c)
    db.session.commit()
    return True


def validate_customer_password(customer_id: int, candidate) -> bool:
    return check_stored_password(Customer, customer_id, candidate)
