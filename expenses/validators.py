"""Validation helpers shared by the expense store and the command line."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .exceptions import ValidationError

DESCRIPTION_MAX_LENGTH = 200

TWO_PLACES = Decimal("0.01")


def quantize_two_decimals(amount: Decimal) -> Decimal:
    """Round the amount to two decimal places using HALF_UP rounding."""
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def coerce_amount(raw: object, field: str = "amount") -> Decimal:
    """Convert raw input to a finite Decimal with exactly two fraction digits.

    Any sign is accepted; refunds and corrections are recorded as entered.
    """
    if raw is None:
        raise ValidationError(f"{field} is required")
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value")
    try:
        amount = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a numeric value") from exc

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")

    try:
        return quantize_two_decimals(amount)
    except InvalidOperation as exc:
        raise ValidationError(f"{field} is too large") from exc


def validate_required_str(value: object, field: str, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    if value is None:
        raise ValidationError(f"{field} is required")
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_expense_id(raw: object) -> int:
    """Return ``raw`` as a positive integer id."""
    if isinstance(raw, bool):
        raise ValidationError("id must be a positive integer")
    try:
        expense_id = int(str(raw).strip())
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"id must be a positive integer, got {raw!r}") from exc
    if expense_id <= 0:
        raise ValidationError(f"id must be a positive integer, got {raw!r}")
    return expense_id
