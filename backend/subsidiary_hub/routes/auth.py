# Overview: Flask API routes for auth operations; login, logout, current user and MHC user registration.

from flask import Blueprint, current_app, g, jsonify

from ..decorators import get_json_object, get_request_token, require_auth, require_mhc_admin, require_permission
from ..permissions import Action
from ..services import auth_service, session_service, user_service
from ..time_utils import to_utc_z
from ..validation import ConflictError, NotFoundError, ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api")


@auth_bp.post("/login")
def login():
    """
    Authenticate and open a session.

    The session token is set as an HttpOnly cookie and also returned in
    the body for clients that send it as a Bearer token.
    """
    data = get_json_object()
    username = data.get("username")
    password = data.get("password")

    if not isinstance(username, str) or not isinstance(password, str) or not username.strip() or not password:
        return jsonify({"message": "Username and password are required"}), 400
    username = username.strip()

    user = auth_service.authenticate(username, password)
    if not user:
        current_app.logger.info("Failed login for username %r", username)
        return jsonify({"message": "Invalid username or password"}), 401

    token, expires_at = session_service.create_session(user.id)

    response = jsonify({
        "user": user.to_dict(),
        "token": token,
        "expiresAt": to_utc_z(expires_at),
    })
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        token,
        max_age=int(session_service.SESSION_ABSOLUTE_TIMEOUT.total_seconds()),
        httponly=True,
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        samesite="Lax",
    )
    return response, 200


@auth_bp.post("/logout")
def logout():
    """Revoke the current session, if any, and clear the cookie."""
    token = get_request_token()
    if token:
        session_service.revoke_session(token, reason="User logout")

    response = jsonify({"message": "Logged out"})
    response.delete_cookie(current_app.config["AUTH_COOKIE_NAME"])
    return response, 200


@auth_bp.get("/user")
@require_auth
def current_user():
    return jsonify(g.current_user.to_dict()), 200


@auth_bp.post("/register")
@require_mhc_admin
@require_permission(Action.REGISTER_USERS)
def register():
    """
    Create a user with any role.

    Body: username, password, role, subsidiaryId (required unless role is
    mhc_admin).
    """
    data = get_json_object()

    try:
        user = user_service.create_user(
            username=data.get("username"),
            password=data.get("password"),
            role=data.get("role"),
            subsidiary_id=data.get("subsidiaryId"),
            actor_id=g.current_user.id,
        )
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409

    return jsonify(user.to_dict()), 201
