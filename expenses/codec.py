"""Reading and writing the flat JSON-like format of the expense file.

The format is a list of flat objects, one key per line::

    [
    {
    "id": 1,
    "description": "Coffee",
    "amount": "3.50",
    "category": "FOOD",
    "date": "2026-10-19T09:30:00"
    }
    ]

Decoding goes through a small tokenizer (:func:`split_top_level`) that only
splits on separators outside string literals and nested braces, so the key
and value extraction (:func:`parse_object`) stays separate from quote
handling (:func:`unquote`).
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from .exceptions import ParseError, ValidationError
from .models import Category, Expense
from .validators import quantize_two_decimals, validate_expense_id

__all__ = [
    "decode_collection",
    "decode_expense",
    "encode_collection",
    "encode_expense",
    "next_id_after",
    "parse_amount",
    "parse_object",
    "quote",
    "split_top_level",
    "unquote",
]

logger = logging.getLogger(__name__)

QUOTE = '"'
ESCAPE = "\\"
OPENERS = "{["
CLOSERS = "}]"

_WHITESPACE = re.compile(r"\s+")
_DIGITS = re.compile(r"[0-9]+")
_GROUPED = {
    sep: re.compile(r"[0-9]{1,3}(?:" + re.escape(sep) + r"[0-9]{3})+") for sep in ",."
}


# Tokenizer ----------------------------------------------------------------
def split_top_level(text: str, separator: str = ",", maxsplit: int = -1) -> List[str]:
    """Split ``text`` on ``separator`` occurrences outside strings and nesting.

    String literals are delimited by double quotes and may contain backslash
    escapes. ``{}`` and ``[]`` open and close nesting levels.
    """
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    in_string = False
    escaped = False

    for char in text:
        if in_string:
            current.append(char)
            if escaped:
                escaped = False
            elif char == ESCAPE:
                escaped = True
            elif char == QUOTE:
                in_string = False
            continue

        if char == QUOTE:
            in_string = True
        elif char in OPENERS:
            depth += 1
        elif char in CLOSERS:
            depth -= 1
            if depth < 0:
                raise ValidationError(f"Unbalanced '{char}' in: {_preview(text)}")
        elif char == separator and depth == 0 and (maxsplit < 0 or len(parts) < maxsplit):
            parts.append("".join(current))
            current = []
            continue
        current.append(char)

    if in_string:
        raise ValidationError(f"Unterminated string in: {_preview(text)}")
    if depth != 0:
        raise ValidationError(f"Unbalanced braces in: {_preview(text)}")
    parts.append("".join(current))
    return parts


def parse_object(text: str) -> Dict[str, str]:
    """Map each key of a flat object to its raw (still quoted) value text."""
    body = text.strip()
    if len(body) < 2 or not (body.startswith("{") and body.endswith("}")):
        raise ValidationError(f"Malformed expense record: {_preview(body)}")

    fields: Dict[str, str] = {}
    for pair in split_top_level(body[1:-1], ","):
        if not pair.strip():
            continue
        key_value = split_top_level(pair, ":", maxsplit=1)
        if len(key_value) != 2:
            continue
        fields[unquote(key_value[0])] = key_value[1].strip()
    return fields


def quote(value: str) -> str:
    escaped = value.replace(ESCAPE, ESCAPE * 2).replace(QUOTE, ESCAPE + QUOTE)
    return f"{QUOTE}{escaped}{QUOTE}"


def unquote(raw: str) -> str:
    """Strip surrounding quotes and resolve ``\\"`` and ``\\\\`` escapes."""
    raw = raw.strip()
    if len(raw) < 2 or raw[0] != QUOTE or raw[-1] != QUOTE:
        return raw

    chars: List[str] = []
    inner = iter(raw[1:-1])
    for char in inner:
        if char == ESCAPE:
            following = next(inner, "")
            if following not in (QUOTE, ESCAPE):
                chars.append(char)
            chars.append(following)
        else:
            chars.append(char)
    return "".join(chars)


# Numbers ------------------------------------------------------------------
def parse_amount(text: Optional[str]) -> Decimal:
    """Parse an amount written with either ``.`` or ``,`` as decimal separator.

    When both separators appear the last one is the decimal separator and the
    other groups thousands (``1.234,56`` and ``1,234.56``). A single separator
    kind is decimal when it occurs once (``3,50``) and grouping when repeated
    (``1.234.567``).
    """
    cleaned = _WHITESPACE.sub("", text or "")
    sign = ""
    if cleaned and cleaned[0] in "+-":
        sign, cleaned = cleaned[0], cleaned[1:]
    if not cleaned:
        raise ParseError(f"Couldn't parse the amount {text!r}")

    commas, dots = cleaned.count(","), cleaned.count(".")
    if commas and dots:
        decimal_sep: Optional[str] = "," if cleaned.rfind(",") > cleaned.rfind(".") else "."
    elif commas == 1 or dots == 1:
        decimal_sep = "," if commas else "."
    else:
        decimal_sep = None

    if decimal_sep:
        integer, _, fraction = cleaned.rpartition(decimal_sep)
        group_sep = "." if decimal_sep == "," else ","
    else:
        integer, fraction = cleaned, ""
        group_sep = "," if commas else "."

    if decimal_sep and decimal_sep in integer:
        raise ParseError(f"Couldn't parse the amount {text!r}")
    if group_sep in integer:
        if not _GROUPED[group_sep].fullmatch(integer):
            raise ParseError(f"Couldn't parse the amount {text!r}")
        integer = integer.replace(group_sep, "")

    if decimal_sep:
        if not _DIGITS.fullmatch(fraction) or not (integer == "" or _DIGITS.fullmatch(integer)):
            raise ParseError(f"Couldn't parse the amount {text!r}")
        return Decimal(f"{sign}{integer or '0'}.{fraction}")
    if not _DIGITS.fullmatch(integer):
        raise ParseError(f"Couldn't parse the amount {text!r}")
    return Decimal(f"{sign}{integer}")


# Records ------------------------------------------------------------------
def encode_expense(expense: Expense) -> str:
    category = Category.parse(expense.category)
    return (
        "{\n"
        f'"id": {expense.id},\n'
        f'"description": {quote(expense.description)},\n'
        f'"amount": "{expense.amount:.2f}",\n'
        f'"category": "{category.value}",\n'
        f'"date": {quote(expense.date)}\n'
        "}"
    )


def decode_expense(text: str) -> Expense:
    """Rebuild an expense from one object; raises ``ValidationError`` if malformed."""
    fields = parse_object(text)

    raw_id = fields.get("id")
    if raw_id is None:
        raise ValidationError(f"Expense record has no id: {_preview(text)}")
    expense_id = validate_expense_id(unquote(raw_id))

    return Expense(
        id=expense_id,
        description=unquote(fields.get("description", "")),
        amount=_decode_amount(expense_id, fields.get("amount")),
        category=_decode_category(expense_id, fields.get("category")),
        date=unquote(fields.get("date", "")),
    )


def _decode_amount(expense_id: int, raw: Optional[str]) -> Decimal:
    try:
        return quantize_two_decimals(parse_amount(unquote(raw or "")))
    except ParseError as exc:
        logger.warning("Expense %s: %s; defaulting to 0.00", expense_id, exc)
        return Decimal("0.00")
    except InvalidOperation:
        logger.warning("Expense %s: amount %r is too large; defaulting to 0.00", expense_id, raw)
        return Decimal("0.00")


def _decode_category(expense_id: int, raw: Optional[str]) -> Category:
    if raw is None:
        return Category.GENERAL
    value = unquote(raw)
    if not Category.is_known(value):
        logger.warning("Expense %s: unknown category %r, using GENERAL", expense_id, value)
    return Category.parse(value)


# Collections --------------------------------------------------------------
def encode_collection(expenses: Iterable[Expense]) -> str:
    return "[\n" + ",\n".join(encode_expense(expense) for expense in expenses) + "\n]"


def decode_collection(text: str) -> List[Expense]:
    """Decode a whole file; any malformed object aborts with ``ValidationError``."""
    body = text.strip()
    if not body:
        return []
    if not (body.startswith("[") and body.endswith("]")):
        raise ValidationError(f"Expected a bracketed list of expenses: {_preview(body)}")

    body = body[1:-1].strip()
    if not body:
        return []
    return [decode_expense(chunk) for chunk in split_top_level(body, ",") if chunk.strip()]


def next_id_after(expenses: Iterable[Expense]) -> int:
    """Return the first id greater than every id in ``expenses``."""
    return max((expense.id for expense in expenses), default=0) + 1


def _preview(text: str, limit: int = 60) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."
