# Overview: Append-only audit trail written alongside back-office mutations.
from __future__ import annotations

from flask import g, has_request_context, request

from ..extensions import db
from ..models import AdminUser, AuditLog


def _request_actor() -> tuple[int | None, int | None, str | None]:
    if not has_request_context():
        return None, None, None
    principal = getattr(g, "principal", None)
    admin_user_id = principal.id if principal is not None and principal.is_admin else None
    customer_id = principal.id if principal is not None and not principal.is_admin else None
    return admin_user_id, customer_id, request.remote_addr


def append_audit_log(*, crud_action: str, details: str) -> AuditLog:
    """
    Stage an audit row in the current session.

    The acting principal and client IP are taken from the request context
    (g.principal, set by @require_auth) when there is one; CLI calls record
    neither. The caller commits, so the row lands in the same commit as the
    mutation it describes.
    """
    admin_user_id, customer_id, ip_address = _request_actor()
    # Tokens outlive deleted accounts; keep the FK valid
    if admin_user_id is not None and db.session.get(AdminUser, admin_user_id) is None:
        admin_user_id = None
    entry = AuditLog(
        crud_action=crud_action,
        details=details,
        admin_user_id=admin_user_id,
        customer_id=customer_id,
        ip_address=ip_address,
    )
    db.session.add(entry)
    return entry
