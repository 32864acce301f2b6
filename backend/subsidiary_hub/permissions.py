# Overview: Closed role set and the role x action permission table consulted by the route guards.

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    MHC_ADMIN = "mhc_admin"
    SUBSIDIARY_ADMIN = "subsidiary_admin"
    STAFF = "staff"


class Action(str, Enum):
    # -- MHC level --
    MANAGE_SUBSIDIARIES = "MANAGE_SUBSIDIARIES"
    VIEW_ALL_SUBSIDIARIES = "VIEW_ALL_SUBSIDIARIES"
    VIEW_ALL_SALES = "VIEW_ALL_SALES"
    VIEW_ALL_USERS = "VIEW_ALL_USERS"
    VIEW_INVENTORY_TOTALS = "VIEW_INVENTORY_TOTALS"
    VIEW_REPORTS = "VIEW_REPORTS"
    REGISTER_USERS = "REGISTER_USERS"
    MANAGE_DATABASE_CONFIG = "MANAGE_DATABASE_CONFIG"
    VIEW_ALL_ACTIVITY = "VIEW_ALL_ACTIVITY"
    ACCESS_ANY_SUBSIDIARY = "ACCESS_ANY_SUBSIDIARY"

    # -- subsidiary level (tenant scope still applies) --
    VIEW_SUBSIDIARY = "VIEW_SUBSIDIARY"
    MANAGE_INVENTORY = "MANAGE_INVENTORY"
    RECORD_SALES = "RECORD_SALES"
    VIEW_SUBSIDIARY_USERS = "VIEW_SUBSIDIARY_USERS"
    MANAGE_SUBSIDIARY_USERS = "MANAGE_SUBSIDIARY_USERS"
    VIEW_SUBSIDIARY_REPORTS = "VIEW_SUBSIDIARY_REPORTS"


_SUBSIDIARY_MEMBER_ACTIONS = frozenset({
    Action.VIEW_SUBSIDIARY,
    Action.MANAGE_INVENTORY,
    Action.RECORD_SALES,
    Action.VIEW_SUBSIDIARY_USERS,
    Action.VIEW_SUBSIDIARY_REPORTS,
})


ROLE_PERMISSIONS: dict[Role, frozenset[Action]] = {
    Role.MHC_ADMIN: frozenset({
        Action.MANAGE_SUBSIDIARIES,
        Action.VIEW_ALL_SUBSIDIARIES,
        Action.VIEW_ALL_SALES,
        Action.VIEW_ALL_USERS,
        Action.VIEW_INVENTORY_TOTALS,
        Action.VIEW_REPORTS,
        Action.REGISTER_USERS,
        Action.MANAGE_DATABASE_CONFIG,
        Action.VIEW_ALL_ACTIVITY,
        Action.ACCESS_ANY_SUBSIDIARY,
    }) | _SUBSIDIARY_MEMBER_ACTIONS,
    Role.SUBSIDIARY_ADMIN: _SUBSIDIARY_MEMBER_ACTIONS | {Action.MANAGE_SUBSIDIARY_USERS},
    Role.STAFF: _SUBSIDIARY_MEMBER_ACTIONS,
}

# Every role must be listed; a role without an entry would silently deny or admit.
_missing = set(Role) - set(ROLE_PERMISSIONS)
if _missing:
    raise RuntimeError(f"ROLE_PERMISSIONS missing roles: {sorted(r.value for r in _missing)}")


def parse_role(value) -> Role | None:
    """Return the Role for value, or None for anything outside the closed set."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def role_allows(role, action: Action) -> bool:
    parsed = parse_role(role)
    if parsed is None:
        return False
    return action in ROLE_PERMISSIONS[parsed]


def requires_subsidiary(role: Role) -> bool:
    """subsidiary_admin and staff always carry a subsidiary_id; mhc_admin never does."""
    if role is Role.MHC_ADMIN:
        return False
    if role in (Role.SUBSIDIARY_ADMIN, Role.STAFF):
        return True
    raise ValueError(f"Unhandled role: {role}")
