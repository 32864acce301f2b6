# Overview: Service-layer operations for subsidiaries; tenant records created and edited by MHC admins.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Subsidiary
from ..persistence import execute_query, get_adapter
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, ValidationError
from . import activity_service


SUBSIDIARY_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "name", "tax_id", "email", "phone_number", "address", "city", "country", "status",
    }),
    required_on_create=frozenset({"name", "tax_id", "email", "phone_number"}),
)


def get_subsidiary(subsidiary_id: int) -> Subsidiary | None:
    return execute_query(lambda: db.session.get(Subsidiary, subsidiary_id), "Get subsidiary")


def list_subsidiaries() -> list[Subsidiary]:
    return execute_query(
        lambda: db.session.query(Subsidiary).order_by(Subsidiary.id.asc()).all(),
        "List subsidiaries",
    )


def _ensure_tax_id_free(tax_id: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Subsidiary.id).filter(Subsidiary.tax_id == tax_id)
    if exclude_id is not None:
        query = query.filter(Subsidiary.id != exclude_id)
    if query.first():
        raise ConflictError("A subsidiary with this tax ID already exists")


def create_subsidiary(*, patch: dict, actor_id: int, logo: str | None = None) -> Subsidiary:
    """
    Insert a subsidiary from a validated patch and log CREATE_SUBSIDIARY.

    status defaults to active.
    """
    missing = [f for f in ("name", "tax_id", "email", "phone_number") if not patch.get(f)]
    if missing:
        raise ValidationError("Missing required fields")

    values = dict(patch)
    values.setdefault("status", True)
    if logo:
        values["logo"] = logo

    def _op():
        _ensure_tax_id_free(values["tax_id"])
        try:
            subsidiary = get_adapter().insert_row(Subsidiary, values)
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("A subsidiary with this tax ID already exists")

        activity_service.record_activity(
            user_id=actor_id,
            action=activity_service.CREATE_SUBSIDIARY,
            details=f"Created subsidiary: {subsidiary.name}",
            subsidiary_id=subsidiary.id,
        )
        db.session.commit()
        return subsidiary

    return execute_query(_op, "Create subsidiary")


def update_subsidiary(subsidiary_id: int, *, patch: dict, actor_id: int, logo: str | None = None) -> Subsidiary:
    values = dict(patch)
    if logo:
        values["logo"] = logo

    def _op():
        if db.session.get(Subsidiary, subsidiary_id) is None:
            raise NotFoundError("Subsidiary not found")
        if values.get("tax_id"):
            _ensure_tax_id_free(values["tax_id"], exclude_id=subsidiary_id)

        subsidiary = get_adapter().update_row(Subsidiary, subsidiary_id, values)
        if subsidiary is None:
            raise NotFoundError("Subsidiary not found")

        changed = ", ".join(sorted(values)) or "no fields"
        activity_service.record_activity(
            user_id=actor_id,
            action=activity_service.UPDATE_SUBSIDIARY,
            details=f"Updated subsidiary: {subsidiary.name} ({changed})",
            subsidiary_id=subsidiary.id,
        )
        db.session.commit()
        return subsidiary

    return execute_query(_op, "Update subsidiary")
