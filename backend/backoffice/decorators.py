# Overview: Request decorators for API routes (bearer-token auth, admin gate).

from functools import wraps
from flask import g
from flask_jwt_extended import verify_jwt_in_request, get_jwt

from .responses import error
from .services.token_service import principal_from_claims


def require_auth(f):
    """
    Require a valid bearer token and attach the principal.

    Sets g.principal (services.token_service.Principal).

    Returns 401 (via the JWT callbacks) if:
    - No Authorization header
    - Malformed token or invalid signature
    - Expired token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        g.principal = principal_from_claims(get_jwt())
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """
    Require an admin principal. Must be stacked under @require_auth.

    Any admin role is accepted; the role name travels in the token but no
    route branches on it.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = getattr(g, "principal", None)
        if principal is None:
            return error("Authentication required", 401)
        if not principal.is_admin:
            return error("Admin access required", 403)
        return f(*args, **kwargs)

    return decorated_function
