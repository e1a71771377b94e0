# Overview: Service-layer operations for auth; password hashing and credential checks.

"""
Authentication Service

Uses bcrypt for password hashing. The cost factor is fixed per deployment
(BCRYPT_ROUNDS) so every stored hash is comparable in verification time.

SECURITY NOTES:
- Minimum password length enforced on every write (PASSWORD_MIN_LENGTH)
- Credential checks never reveal whether the email or the password was wrong
- Hashes are never serialized (see AdminUser.to_dict / Customer.to_dict)
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import AdminUser, Customer


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password) -> None:
    """
    Raises PasswordValidationError if the password is not a string of at
    least PASSWORD_MIN_LENGTH characters.
    """
    min_length = current_app.config.get("PASSWORD_MIN_LENGTH", 6)
    if not isinstance(password, str):
        raise PasswordValidationError("Password must be a string")
    if len(password) < min_length:
        raise PasswordValidationError(f"Password must be at least {min_length} characters long")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with the configured cost factor.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is constant-time with respect to the candidate.
    Malformed stored hashes verify as False rather than raising.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def authenticate_admin(email: str, password: str) -> AdminUser | None:
    """Returns the AdminUser for a matching email+password pair, None otherwise."""
    admin = db.session.query(AdminUser).filter(AdminUser.email == email).first()
    if not admin:
        return None
    if verify_password(password, admin.password_hash):
        return admin
    return None


def authenticate_customer(email: str, password: str) -> Customer | None:
    """Returns the Customer for a matching email+password pair, None otherwise."""
    customer = db.session.query(Customer).filter(Customer.email == email).first()
    if not customer:
        return None
    if verify_password(password, customer.password_hash):
        return customer
    return None


def check_stored_password(model, row_id: int, candidate) -> bool:
    """
    validatePassword for password-bearing rows.

    Unknown id and wrong password both yield False so callers cannot tell
    which half of the pair was wrong.
    """
    if not isinstance(candidate, str):
        return False
    row = db.session.get(model, row_id)
    if row is None:
        return False
    return verify_password(candidate, row.password_hash)
