# backend/backoffice/services/admin_users_service.py
"""
Admin User Service

Back-office operator accounts. Passwords arrive in plain text, are checked
against the strength rules and stored as bcrypt hashes; the hash never
leaves this layer.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import AdminRole, AdminUser, AuditLog
from ..validation import ConflictError, ValidationError, ListParams
from .audit_service import append_audit_log
from .auth_service import hash_password, check_stored_password
from .pagination import paginate

ADMIN_USER_MUTABLE_FIELDS = {
    "email", "first_name", "last_name", "phone_number", "avatar_url", "timezone",
    "role_id", "mfa_enabled", "mfa_method",
}
ADMIN_USER_ORDER_COLUMNS = {"id", "email", "first_name", "last_name", "role_id", "created_at", "updated_at"}


def apply_admin_user_patch(u: AdminUser, patch: dict) -> None:
    for k, v in patch.items():
        if k not in ADMIN_USER_MUTABLE_FIELDS:
            continue
        setattr(u, k, v)


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(AdminUser.id).filter(AdminUser.email == email)
    if exclude_id is not None:
        query = query.filter(AdminUser.id != exclude_id)
    return query.first() is not None


def _require_role(role_id: int) -> None:
    if db.session.get(AdminRole, role_id) is None:
        raise ValidationError(
            "Admin role not found",
            errors=[{"field": "role_id", "message": "Admin role not found"}],
        )


def list_roles() -> list[dict]:
    return [r.to_dict() for r in db.session.query(AdminRole).order_by(AdminRole.id.asc()).all()]


def list_admin_users(params: ListParams) -> dict:
    return paginate(db.session.query(AdminUser), AdminUser, params, "admin_users")


def get_admin_user(admin_user_id: int) -> dict | None:
    u = db.session.get(AdminUser, admin_user_id)
    return u.to_dict() if u else None


def create_admin_user(*, patch: dict, password: str) -> dict:
    """
    Raises:
        PasswordValidationError: If the password is too weak
        ValidationError: If the role does not exist
        ConflictError: If the email is already registered
    """
    _require_role(patch["role_id"])
    if _email_taken(patch["email"]):
        raise ConflictError("An admin user with this email already exists.")

    u = AdminUser(password_hash=hash_password(password))
    apply_admin_user_patch(u, patch)
    db.session.add(u)

    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("An admin user with this email already exists.")

    append_audit_log(crud_action="CREATE", details=f"Created admin user id={u.id} email={u.email}")
    db.session.commit()
    return u.to_dict()


def update_admin_user(*, admin_user_id: int, patch: dict, password: str | None = None) -> dict | None:
    """
    Partial update; a supplied password is re-hashed.

    Raises:
        PasswordValidationError: If the new password is too weak
        ValidationError: If the new role does not exist
        ConflictError: If the new email is already registered
    """
    u = db.session.get(AdminUser, admin_user_id)
    if u is None:
        return None

    if "role_id" in patch:
        _require_role(patch["role_id"])
    if "email" in patch and patch["email"] != u.email and _email_taken(patch["email"], exclude_id=u.id):
        raise ConflictError("An admin user with this email already exists.")

    apply_admin_user_patch(u, patch)
    if password is not None:
        u.password_hash = hash_password(password)

    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("An admin user with this email already exists.")

    changed = sorted(set(patch.keys()) | ({"password"} if password is not None else set()))
    append_audit_log(crud_action="UPDATE", details=f"Updated admin user id={u.id} fields: {', '.join(changed)}")
    db.session.commit()
    return u.to_dict()


def delete_admin_user(*, admin_user_id: int) -> bool:
    u = db.session.get(AdminUser, admin_user_id)
    if u is None:
        return False

    # Audit history outlives the account
    db.session.query(AuditLog).filter(AuditLog.admin_user_id == u.id).update(
        {AuditLog.admin_user_id: None}, synchronize_session=False
    )
    email = u.email
    db.session.delete(u)
    db.session.flush()
    append_audit_log(crud_action="DELETE", details=f"Deleted admin user id={admin_user_id} email={email}")
    db.session.commit()
    return True


def validate_admin_password(admin_user_id: int, candidate) -> bool:
    return check_stored_password(AdminUser, admin_user_id, candidate)
