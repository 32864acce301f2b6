# Overview: Request guards for API routes; authentication, MHC-admin and subsidiary scoping.

from functools import wraps
from flask import current_app, request, jsonify, g

from .permissions import Action, Role, parse_role, role_allows
from .services import session_service
from .validation import ValidationError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'role')


def get_request_token() -> str | None:
    """Session token from the auth cookie, or from an Authorization: Bearer header."""
    token = request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])
    if token:
        return token

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def get_json_object() -> dict:
    """
    The request body as a JSON object. A missing or unparseable body reads
    as {}; any other JSON value raises ValidationError.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def require_auth(f):
    """
    Require a valid session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.role: The user's Role (closed enum)
    - g.subsidiary_id: The user's subsidiary (None for mhc_admin)
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No session cookie or bearer token
    - Invalid or expired token
    - Stored role is outside the known role set
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = get_request_token()
        if not token:
            return jsonify({"message": "Unauthorized"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"message": "Unauthorized"}), 401

        role = parse_role(context.user.role)
        if role is None:
            current_app.logger.warning("Rejected session for user %s with unknown role %r",
                                       context.user.id, context.user.role)
            return jsonify({"message": "Unauthorized"}), 401

        g.current_user = context.user
        g.role = role
        g.subsidiary_id = context.user.subsidiary_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_mhc_admin(f):
    """Require an authenticated mhc_admin (401 when not authenticated, 403 otherwise)."""
    @require_auth
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.role is not Role.MHC_ADMIN:
            return jsonify({"message": "Forbidden"}), 403
        return f(*args, **kwargs)

    return decorated_function


def require_subsidiary_access(f):
    """
    Require access to the subsidiary named in the route path.

    MULTI-TENANT: mhc_admin may reach any subsidiary; everyone else only
    the subsidiary_id they belong to. The path parameter must be called
    subsidiary_id.
    """
    @require_auth
    @wraps(f)
    def decorated_function(*args, **kwargs):
        subsidiary_id = kwargs.get("subsidiary_id")
        if role_allows(g.role, Action.ACCESS_ANY_SUBSIDIARY):
            return f(*args, **kwargs)
        if subsidiary_id is None or g.subsidiary_id != subsidiary_id:
            return jsonify({"message": "Forbidden"}), 403
        return f(*args, **kwargs)

    return decorated_function


def require_permission(action: Action, message: str = "Forbidden"):
    """
    Require the caller's role to allow action (see permissions.ROLE_PERMISSIONS).

    Must be applied after one of the authentication guards.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"message": "Unauthorized"}), 401

            if not role_allows(g.role, action):
                return jsonify({
                    "message": message,
                    "requiredPermission": action.value,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
