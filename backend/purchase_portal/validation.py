from __future__ import annotations
from datetime import datetime
from purchase_portal.time_utils import parse_iso_datetime

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeMeta


class ValidationError(ValueError):
    """400-level input problem."""
    reason = "validation_error"


class ConflictError(ValueError):
    """Business rule conflict (e.g., duplicate product name)."""
    reason = "conflict"


class NotFoundError(LookupError):
    """Identifier or token does not resolve to an existing record."""
    reason = "not_found"


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: JSON keys clients are allowed to set (security boundary)
    - required_on_create: JSON keys required for POST
    - ignored_fields: JSON keys silently dropped (read-only echoes from the UI)
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    ignored_fields: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, key: str, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Datetimes (accept ISO-8601 strings and plain dates; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{key} must be an ISO-8601 date")
            if dt is None:
                raise ValidationError(f"{key} is required")
            return dt
        raise ValidationError(f"{key} must be a date")

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{key} must be a string")
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
    - the model's API_FIELDS map (camelCase JSON key -> column attribute)
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column attribute.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(
            f for f in policy.required_on_create
            if payload.get(f) is None or (isinstance(payload.get(f), str) and not payload[f].strip())
        )
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    api_fields = getattr(model, "API_FIELDS", {})

    patch: dict = {}

    for key, raw in payload.items():
        if key in policy.ignored_fields:
            continue
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        attr = api_fields.get(key, key)
        col = cols.get(attr)
        if col is None:
            raise ValidationError(f"Unknown field: {key}")

        if raw is None:
            if not col.nullable and col.default is None:
                raise ValidationError(f"{key} cannot be null")
            patch[attr] = None if col.nullable else ""
            continue

        val = _coerce_value(col, key, raw)

        # Blank string check for required text fields
        if key in policy.required_on_create and isinstance(val, str) and val == "":
            raise ValidationError(f"{key} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{key} exceeds max length {col.type.length}")

        patch[attr] = val

    return patch
