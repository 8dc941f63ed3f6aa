# backend/shoppos/validation.py
"""
Input validation shared by routes and services.

Error classes map one-to-one onto HTTP statuses in the routes:
- ValidationError -> 400
- NotFoundError   -> 404
- ConflictError   -> 409

validate_payload checks a JSON body against the SQLAlchemy columns of a
model plus an allowlist policy. Money is integer cents everywhere; a
float or "12.5" is rejected rather than rounded.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# 9,999,999.99 in cents; keeps sums well inside a 32-bit column
MAX_PRICE_CENTS = 999_999_999

PRODUCT_CATEGORIES = ("general", "snacks", "beauty", "tools", "other")
DEFAULT_PRODUCT_CATEGORY = "other"

PRODUCT_PRICE_FIELDS = (
    "cost_price_cents",
    "market_price_cents",
    "sale_price_cents",
    "wholesale_price_cents",
)


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., second cash cut for the same day)."""


class NotFoundError(LookupError):
    """404-level: the referenced record does not exist (or was deleted)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    writable_fields: what clients may set at all
    required_on_create: must be present on POST (partial=False)
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str):
        text = value.strip()
        # Plain digits only: "12.5", "1e3" and " 1_000" are rejected
        digits = text[1:] if text.startswith("-") else text
        if not digits.isdecimal():
            raise ValidationError(f"{key} must be a plain integer")
        return int(text)
    raise ValidationError(f"{key} must be an integer")


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no", ""):
            return False
    if isinstance(value, int):
        return bool(value)
    raise ValidationError(f"{key} must be a boolean")


def _as_text(key: str, value: Any, column) -> str:
    text = str(value).strip()
    if not column.nullable and text == "":
        raise ValidationError(f"{key} cannot be blank")
    limit = getattr(column.type, "length", None)
    if limit and len(text) > limit:
        raise ValidationError(f"{key} exceeds max length {limit}")
    return text


def _coerce(key: str, value: Any, column) -> Any:
    if value is None:
        if not column.nullable:
            raise ValidationError(f"{key} cannot be null")
        return None
    coltype = column.type
    if isinstance(coltype, Boolean):
        return _as_bool(key, value)
    if isinstance(coltype, Integer):
        return _as_int(key, value)
    if isinstance(coltype, (String, Text)):
        return _as_text(key, value, column)
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Clean a JSON body into a patch dict of writable columns.

    partial=False: create semantics, every required_on_create key present
    partial=True: update semantics, only the provided keys are checked

    Raises ValidationError on unknown/non-writable keys, nulls in NOT NULL
    columns, wrong types, blank required text and over-long strings.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(policy.required_on_create - payload.keys())
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}

    patch: dict = {}
    for key, raw in payload.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")
        patch[key] = _coerce(key, raw, columns[key])
    return patch


def enforce_rules_product(patch: dict) -> None:
    """Catalog rules the column metadata can't express."""
    for price_field in PRODUCT_PRICE_FIELDS:
        price = patch.get(price_field)
        if price is None:
            continue
        if price < 0:
            raise ValidationError(f"{price_field} must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"{price_field} cannot exceed {MAX_PRICE_CENTS}")

    if "sale_price_cents" in patch and (patch["sale_price_cents"] or 0) <= 0:
        raise ValidationError("sale_price_cents must be > 0")

    if "name" in patch and not (patch["name"] or "").strip():
        raise ValidationError("name cannot be blank")

    if patch.get("category") is not None and patch["category"] not in PRODUCT_CATEGORIES:
        raise ValidationError(f"category must be one of: {', '.join(PRODUCT_CATEGORIES)}")

    if (patch.get("min_stock") or 0) < 0:
        raise ValidationError("min_stock must be >= 0")


def require_positive_cents(value: Any, field_name: str) -> int:
    """Amounts entered at the counter: strict positive integer cents."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer amount in cents")
    if value <= 0:
        raise ValidationError(f"{field_name} must be > 0")
    if value > MAX_PRICE_CENTS:
        raise ValidationError(f"{field_name} cannot exceed {MAX_PRICE_CENTS}")
    return value
