# Overview: Input validation shared by routes and services: errors, payload policies, money and quantity bounds.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Upper bounds keep every stored amount inside its column type.
# Prices: 9,999,999.99 (999,999,999 cents), fits a 32-bit INTEGER
MAX_PRICE_CENTS = 999_999_999
# Stock on hand and per-line quantities, also 32-bit columns
MAX_STOCK_QUANTITY = 1_000_000_000
MAX_LINE_QUANTITY = 1_000_000
# Transaction totals live in a BIGINT; cap well below its range
MAX_TOTAL_CENTS = 999_999_999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which columns of a model a client may write.

    - writable_fields: the allowlist (anything else is rejected, never ignored)
    - required_on_create: fields that must be present on POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def coerce_int(key: str, value: Any) -> int:
    """
    Strict integer coercion: ints and plain digit strings only.

    Rejects bools, floats, decimals ("12.5") and scientific notation ("1e3").
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def amount_to_cents(key: str, value: Any) -> int:
    """
    Convert a major-unit amount (15, "15.5", 15.25) to integer cents.

    At most two decimal places; bools and non-numeric strings are rejected.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(f"{key} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a number")
    if amount.as_tuple().exponent < -2:
        raise ValidationError(f"{key} cannot have more than 2 decimal places")
    return int(amount * 100)


def check_range(key: str, value: int, *, minimum: int, maximum: int) -> int:
    if value < minimum:
        raise ValidationError(f"{key} must be >= {minimum}")
    if value > maximum:
        raise ValidationError(f"{key} cannot exceed {maximum}")
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validate and normalize a JSON body against the model's columns.

    Integer columns go through coerce_int; String/Text columns are stripped,
    must not be blank and must fit the column length. Every writable column
    here is NOT NULL, so null values are rejected.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in (policy.required_on_create or set()) if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}

    patch: dict = {}
    for key, raw in payload.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        col = columns.get(key)
        if col is None:
            raise ValidationError(f"Unknown field: {key}")
        if raw is None:
            raise ValidationError(f"{key} cannot be null")

        if isinstance(col.type, Integer):
            patch[key] = coerce_int(key, raw)
            continue

        if isinstance(col.type, (String, Text)):
            if isinstance(raw, (dict, list)):
                raise ValidationError(f"{key} must be a string")
            text = str(raw).strip()
            if not text:
                raise ValidationError(f"{key} cannot be blank")
            if isinstance(col.type, String) and col.type.length and len(text) > col.type.length:
                raise ValidationError(f"{key} exceeds max length {col.type.length}")
            patch[key] = text
            continue

        patch[key] = raw

    return patch


def enforce_rules_product(patch: dict) -> None:
    """Price and stock bounds for a validated product patch."""
    if "price_cents" in patch:
        check_range("price_cents", patch["price_cents"], minimum=0, maximum=MAX_PRICE_CENTS)

    # Stock can drift negative through overselling, but clients may not set it there
    if "quantity" in patch:
        check_range("quantity", patch["quantity"], minimum=0, maximum=MAX_STOCK_QUANTITY)
