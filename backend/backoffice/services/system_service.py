# backend/backoffice/services/system_service.py
"""
System Service

Site-wide preferences, the audit log reader, the database probe and the
bootstrap seeding used by `flask system init`.
"""
from __future__ import annotations

import time

from sqlalchemy import text

from ..extensions import db
from ..models import AdminRole, AuditLog, SystemPreference
from ..validation import ListParams
from .audit_service import append_audit_log
from .pagination import paginate

DEFAULT_ROLES = ("super_admin", "admin", "editor")

DEFAULT_PREFERENCES = {
    "site_name": ("Storefront", "The name of the site"),
    "default_currency": ("USD", "ISO 4217 code used for prices"),
    "default_timezone": ("UTC", "Timezone used when an admin has none set"),
}

AUDIT_LOG_ORDER_COLUMNS = {"id", "created_at", "crud_action", "admin_user_id"}


def list_preferences() -> list[dict]:
    rows = db.session.query(SystemPreference).order_by(SystemPreference.key.asc()).all()
    return [p.to_dict() for p in rows]


def update_preference(*, key: str, value: str) -> dict | None:
    """
    Set the value of an existing preference. Unknown keys are not created.

    Returns None if the key does not exist.
    """
    pref = db.session.get(SystemPreference, key)
    if pref is None:
        return None
    pref.value = value
    append_audit_log(crud_action="UPDATE", details=f"Updated system preference {key}")
    db.session.commit()
    return pref.to_dict()


def list_audit_logs(params: ListParams) -> dict:
    return paginate(db.session.query(AuditLog), AuditLog, params, "audit_logs")


def database_status() -> dict:
    """
    Round-trip the database once.

    Returns the database's own clock (as text) and the latency in ms.
    Exceptions propagate; the route turns them into a 500.
    """
    started = time.perf_counter()
    now = db.session.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()
    elapsed_ms = (time.perf_counter() - started) * 1000
    return {
        "status": "ok",
        "database_time": str(now),
        "latency_ms": round(elapsed_ms, 2),
        "dialect": db.session.get_bind().dialect.name,
    }


def seed_defaults() -> dict:
    """
    Create the default admin roles and preferences that are missing.

    Existing rows are left alone, so this is safe to run repeatedly.
    Returns the names of what was created.
    """
    created_roles = []
    for role_name in DEFAULT_ROLES:
        exists = db.session.query(AdminRole.id).filter(AdminRole.role_name == role_name).first()
        if exists is None:
            db.session.add(AdminRole(role_name=role_name))
            created_roles.append(role_name)

    created_prefs = []
    for key, (value, description) in DEFAULT_PREFERENCES.items():
        if db.session.get(SystemPreference, key) is None:
            db.session.add(SystemPreference(key=key, value=value, description=description))
            created_prefs.append(key)

    db.session.commit()
    return {"roles": created_roles, "preferences": created_prefs}
