"""Validation helpers shared across finance tracker services and the API."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional

from .exceptions import ValidationError
from .models import Category, Expense, Income

NAME_MAX_LENGTH = 100
LABEL_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 500
COLOR_MAX_LENGTH = 30

# Keeps the cent count of any amount well inside a signed 64-bit integer.
MAX_AMOUNT = Decimal("9999999999999999.99")
DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


def _quantize_two_decimals(amount: Decimal) -> Decimal:
    """Round the amount to two decimal places using HALF_UP rounding."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_decimal(raw: object, field: str) -> Decimal:
    """Convert a JSON number or numeric string into an exact Decimal."""
    if raw is None or isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value")
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError) as exc:  # type: ignore[arg-type]
        raise ValidationError(f"{field} must be a numeric value") from exc
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return amount


def parse_amount(raw: object, field: str = "amount") -> Decimal:
    """Convert raw input to a positive Decimal with exactly two fraction digits."""
    amount = parse_decimal(raw, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} must be at most {MAX_AMOUNT}")
    return _quantize_two_decimals(amount)


def parse_date(raw: object, field: str) -> date:
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        raise ValidationError(f"{field} must be an ISO 8601 date (YYYY-MM-DD)")
    candidate = raw.strip()
    if not DATE_PATTERN.fullmatch(candidate):
        raise ValidationError(f"{field} must be an ISO 8601 date (YYYY-MM-DD)")
    try:
        return date.fromisoformat(candidate)
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO 8601 date (YYYY-MM-DD)") from exc


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_optional_str(value: object, field: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return validate_required_str(value, field, max_length)


def optional_query_str(args: Mapping[str, Any], key: str) -> Optional[str]:
    """Return a query parameter, or None when it is absent or blank."""
    value = args.get(key)
    if value is None or not str(value).strip():
        return None
    return str(value)


def optional_query_date(args: Mapping[str, Any], key: str) -> Optional[date]:
    value = optional_query_str(args, key)
    return parse_date(value, key) if value is not None else None


def optional_query_decimal(args: Mapping[str, Any], key: str) -> Optional[Decimal]:
    value = optional_query_str(args, key)
    return parse_decimal(value, key) if value is not None else None


def _require_mapping(payload: object) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


# Identity, timestamps and the nested category reference are never read from
# the payload; only the writable fields are picked out below.


def expense_from_payload(payload: object) -> Expense:
    data = _require_mapping(payload)
    return Expense(
        id=None,
        amount=parse_amount(data.get("amount")),
        date=parse_date(data.get("date"), "date"),
        category_id=validate_required_str(data.get("categoryId"), "categoryId", LABEL_MAX_LENGTH),
        description=validate_optional_str(
            data.get("description"), "description", DESCRIPTION_MAX_LENGTH
        ),
    )


def income_from_payload(payload: object) -> Income:
    data = _require_mapping(payload)
    return Income(
        id=None,
        amount=parse_amount(data.get("amount")),
        date=parse_date(data.get("date"), "date"),
        source=validate_required_str(data.get("source"), "source", LABEL_MAX_LENGTH),
        description=validate_optional_str(
            data.get("description"), "description", DESCRIPTION_MAX_LENGTH
        ),
    )


def category_from_payload(payload: object) -> Category:
    data = _require_mapping(payload)
    return Category(
        id=None,
        name=validate_required_str(data.get("name"), "name", NAME_MAX_LENGTH),
        color=validate_optional_str(data.get("color"), "color", COLOR_MAX_LENGTH),
    )
