# backend/backoffice/routes/system.py
"""
System endpoints: preferences, audit log, database probe.

Access:
- GET /v1/system/preferences        public
- PUT /v1/system/preferences/<key>  admin
- GET /v1/system/audit_logs         admin
- GET /v1/system/database_status    public
"""
from flask import Blueprint, request, current_app

from ..extensions import db
from ..validation import list_params_from_request, require_json_object, ValidationError
from ..decorators import require_auth, require_admin
from ..responses import success, error, validation_error
from ..services import system_service

system_bp = Blueprint("system", __name__, url_prefix="/v1/system")


@system_bp.get("/preferences")
def list_preferences():
    try:
        preferences = system_service.list_preferences()
    except Exception:
        current_app.logger.exception("Failed to list system preferences")
        return error()

    return success({"preferences": preferences}, "System preferences retrieved successfully")


@system_bp.put("/preferences/<string:key>")
@require_auth
@require_admin
def update_preference(key: str):
    """Body: {"value": "<string>"}."""
    try:
        payload = require_json_object(request.get_json(silent=True))
    except ValidationError as e:
        return validation_error(e)

    value = payload.get("value")
    if not isinstance(value, str):
        return error("value is required", 400, errors=[{"field": "value", "message": "value must be a string"}])

    try:
        preference = system_service.update_preference(key=key, value=value)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update system preference %s", key)
        return error()

    if preference is None:
        current_app.logger.warning("System preference not found: %s", key)
        return error("System preference not found", 404)

    return success({"preference": preference}, "Preference updated successfully")


@system_bp.get("/audit_logs")
@require_auth
@require_admin
def list_audit_logs():
    """Paged, newest first unless orderBy/order say otherwise."""
    try:
        params = list_params_from_request(
            system_service.AUDIT_LOG_ORDER_COLUMNS,
            default_order_by="created_at",
            default_order="desc",
        )
    except ValidationError as e:
        return validation_error(e)

    try:
        result = system_service.list_audit_logs(params)
    except Exception:
        current_app.logger.exception("Failed to list audit logs")
        return error()

    return success(result, "Audit logs retrieved successfully")


@system_bp.get("/database_status")
def database_status():
    try:
        status = system_service.database_status()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Database status check failed")
        return error()

    return success(status, "Database status retrieved successfully")
