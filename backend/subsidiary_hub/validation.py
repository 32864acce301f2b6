from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_datetime


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PHONE_LENGTH = 10
# Maximum price accepted for cost/sale prices
MAX_PRICE = 999_999_999.99


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate tax id)."""


class NotFoundError(LookupError):
    """404-level missing row."""


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: attributes clients are allowed to set (security boundary)
    - required_on_create: attributes required for POST

    Payload keys may use the attribute name (tax_id) or its camelCase wire
    name (taxId).
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = field(default_factory=frozenset)

    def resolve(self, key: str) -> str | None:
        if key in self.writable_fields:
            return key
        for name in self.writable_fields:
            if to_camel(name) == key:
                return name
        return None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any, label: str):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{label} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{label} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{label} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{label} must be an integer")
        if isinstance(value, float):
            if value.is_integer():
                return int(value)
            raise ValidationError(f"{label} must be an integer, not a decimal")
        raise ValidationError(f"{label} must be an integer")

    # Floating point prices
    if isinstance(coltype, Float):
        if isinstance(value, bool):
            raise ValidationError(f"{label} must be a number")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                raise ValidationError(f"{label} must be a number")
        raise ValidationError(f"{label} must be a number")

    # Booleans (multipart forms send "true"/"false")
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {"true", "1", "yes", "on"}:
                return True
            if lowered in {"false", "0", "no", "off", ""}:
                return False
        if isinstance(value, int):
            return bool(value)
        raise ValidationError(f"{label} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{label} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{label} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{label} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{label} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by attribute name.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    cols = _columns_by_key(model)

    resolved: dict[str, Any] = {}
    for key, raw in payload.items():
        name = policy.resolve(key)
        if name is None:
            raise ValidationError(f"Field not allowed: {key}")
        if name not in cols:
            raise ValidationError(f"Unknown field: {key}")
        resolved[name] = raw

    if not partial:
        missing = [
            to_camel(f) for f in sorted(policy.required_on_create)
            if resolved.get(f) is None or (isinstance(resolved.get(f), str) and not resolved[f].strip())
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    patch: dict = {}

    for name, raw in resolved.items():
        col = cols[name]
        label = to_camel(name)

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{label} cannot be null")
            patch[name] = None
            continue

        val = _coerce_value(col, raw, label)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{label} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{label} exceeds max length {col.type.length}")

        patch[name] = val

    return patch


def enforce_rules_subsidiary(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    email = patch.get("email")
    if email is not None and not EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")

    phone = patch.get("phone_number")
    if phone is not None and len(phone) < MIN_PHONE_LENGTH:
        raise ValidationError(f"Phone number must be at least {MIN_PHONE_LENGTH} digits")


def enforce_rules_inventory(patch: dict) -> None:
    for key in ("cost_price", "sale_price"):
        if key in patch and patch[key] is not None:
            if patch[key] < 0:
                raise ValidationError(f"{to_camel(key)} must be >= 0")
            if patch[key] > MAX_PRICE:
                raise ValidationError(f"{to_camel(key)} cannot exceed {MAX_PRICE:,.2f}")

    if "quantity" in patch and patch["quantity"] is not None and patch["quantity"] < 0:
        raise ValidationError("quantity must be >= 0")


def enforce_rules_sale(patch: dict) -> None:
    if patch.get("quantity") is None or patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0")

    if "sale_price" in patch and patch["sale_price"] is not None and patch["sale_price"] < 0:
        raise ValidationError("salePrice must be >= 0")
