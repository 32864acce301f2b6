# Overview: Service-layer operations for users; role/subsidiary invariant, hashing and audit entries.

"""
User storage.

Invariants enforced here (the schema alone cannot express them):
- usernames are globally unique
- role is one of the closed Role set
- mhc_admin users have no subsidiary; subsidiary_admin and staff always
  reference an existing subsidiary
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import ActivityLog, Sale, Subsidiary, User
from ..permissions import Role, parse_role, requires_subsidiary
from ..persistence import execute_query, get_adapter
from ..validation import ConflictError, NotFoundError, ValidationError
from . import activity_service
from .auth_service import PasswordValidationError, hash_password, validate_password
from . import session_service
from .session_service import get_store


MAX_USERNAME_LENGTH = 64


def _clean_username(username) -> str:
    if not isinstance(username, str) or not username.strip():
        raise ValidationError("Username is required")
    username = username.strip()
    if len(username) > MAX_USERNAME_LENGTH:
        raise ValidationError(f"username exceeds max length {MAX_USERNAME_LENGTH}")
    return username


def _hash_checked(password) -> str:
    try:
        validate_password(password)
    except PasswordValidationError as e:
        raise ValidationError(str(e))
    return hash_password(password)


def _check_role_scope(role: Role, subsidiary_id: int | None) -> None:
    if requires_subsidiary(role):
        if subsidiary_id is None:
            raise ValidationError(f"subsidiaryId is required for role {role.value}")
        if db.session.get(Subsidiary, subsidiary_id) is None:
            raise NotFoundError("Subsidiary not found")
    elif subsidiary_id is not None:
        raise ValidationError(f"Role {role.value} cannot belong to a subsidiary")


def _coerce_subsidiary_id(value) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("subsidiaryId must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("subsidiaryId must be an integer")


def _require_role(value) -> Role:
    role = parse_role(value)
    if role is None:
        raise ValidationError(f"Invalid role: {value}")
    return role


def get_user(user_id: int) -> User | None:
    return execute_query(lambda: db.session.get(User, user_id), "Get user")


def get_user_by_username(username: str) -> User | None:
    return execute_query(
        lambda: db.session.query(User).filter_by(username=username).first(),
        "Get user by username",
    )


def list_users() -> list[User]:
    return execute_query(
        lambda: db.session.query(User).order_by(User.id.asc()).all(),
        "List users",
    )


def list_users_by_subsidiary(subsidiary_id: int) -> list[User]:
    return execute_query(
        lambda: db.session.query(User)
        .filter(User.subsidiary_id == subsidiary_id)
        .order_by(User.id.asc())
        .all(),
        "List users by subsidiary",
    )


def create_user(
    *,
    username,
    password,
    role,
    subsidiary_id: int | None = None,
    actor_id: int | None = None,
) -> User:
    """
    Create a user and, when actor_id is given, its CREATE_USER activity entry.

    Raises:
        ValidationError: bad username/password/role or role/subsidiary mismatch
        NotFoundError: subsidiary_id does not exist
        ConflictError: username taken
    """
    username = _clean_username(username)
    parsed_role = _require_role(role)
    subsidiary_id = _coerce_subsidiary_id(subsidiary_id)
    password_hash = _hash_checked(password)

    def _op():
        _check_role_scope(parsed_role, subsidiary_id)

        if db.session.query(User.id).filter_by(username=username).first():
            raise ConflictError("Username already exists")

        try:
            user = get_adapter().insert_row(User, {
                "username": username,
                "password": password_hash,
                "role": parsed_role.value,
                "subsidiary_id": subsidiary_id,
            })
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("Username already exists")

        if actor_id is not None:
            activity_service.record_activity(
                user_id=actor_id,
                action=activity_service.CREATE_USER,
                details=f"Created user: {user.username}",
                subsidiary_id=subsidiary_id,
            )
        db.session.commit()
        return user

    return execute_query(_op, "Create user")


def update_user(
    user_id: int,
    patch: dict,
    *,
    actor_id: int,
    subsidiary_id: int | None = None,
) -> User:
    """
    Apply username/password/role changes.

    subsidiary_id scopes the lookup: a user outside that subsidiary is
    reported as not found. Role changes keep the user's subsidiary, so
    they are limited to roles that carry one (and vice versa).
    """
    allowed = {"username", "password", "role"}
    unknown = set(patch) - allowed
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    values: dict = {}
    if "username" in patch:
        values["username"] = _clean_username(patch["username"])
    if patch.get("password"):
        values["password"] = _hash_checked(patch["password"])
    new_role = _require_role(patch["role"]) if "role" in patch else None

    def _op():
        user = db.session.get(User, user_id)
        if user is None or (subsidiary_id is not None and user.subsidiary_id != subsidiary_id):
            raise NotFoundError("User not found")

        if new_role is not None:
            _check_role_scope(new_role, user.subsidiary_id)
            values["role"] = new_role.value

        if "username" in values and values["username"] != user.username:
            taken = db.session.query(User.id).filter(
                User.username == values["username"], User.id != user_id
            ).first()
            if taken:
                raise ConflictError("Username already exists")

        updated = get_adapter().update_row(User, user_id, values)
        if updated is None:
            raise NotFoundError("User not found")
        if "password" in values:
            session_service.revoke_all_user_sessions(user_id, "Password changed")

        activity_service.record_activity(
            user_id=actor_id,
            action=activity_service.UPDATE_USER,
            details=f"Updated user: {updated.username}",
            subsidiary_id=updated.subsidiary_id,
        )
        db.session.commit()
        return updated

    return execute_query(_op, "Update user")


def delete_user(user_id: int, *, actor_id: int, subsidiary_id: int | None = None) -> None:
    """
    Delete a user and end their sessions.

    Users referenced by sales or activity entries are kept for attribution
    (ConflictError).
    """
    def _op():
        user = db.session.get(User, user_id)
        if user is None or (subsidiary_id is not None and user.subsidiary_id != subsidiary_id):
            raise NotFoundError("User not found")
        if user.id == actor_id:
            raise ConflictError("Users cannot delete themselves")

        has_sales = db.session.query(Sale.id).filter(Sale.user_id == user_id).first()
        has_activity = db.session.query(ActivityLog.id).filter(ActivityLog.user_id == user_id).first()
        if has_sales or has_activity:
            raise ConflictError("User has recorded sales or activity and cannot be deleted")

        username, owner = user.username, user.subsidiary_id
        get_store().purge_user(user_id)
        db.session.delete(user)
        db.session.flush()

        activity_service.record_activity(
            user_id=actor_id,
            action=activity_service.DELETE_USER,
            details=f"Deleted user: {username}",
            subsidiary_id=owner,
        )
        db.session.commit()

    execute_query(_op, "Delete user")
