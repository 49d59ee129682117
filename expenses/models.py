"""Data models for the expense tracker domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union

from .exceptions import ValidationError
from .validators import coerce_amount, validate_required_str

__all__ = ["Category", "Expense", "DATETIME_FORMAT", "timestamp"]

DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def timestamp(now: Optional[datetime] = None) -> str:
    """Render a local timestamp in the fixed format stored with each expense."""
    return (now or datetime.now()).strftime(DATETIME_FORMAT)


class Category(str, Enum):
    GENERAL = "GENERAL"
    FOOD = "FOOD"
    ENTERTAINMENT = "ENTERTAINMENT"
    HEALTH = "HEALTH"
    SHOPPING = "SHOPPING"
    BILLS = "BILLS"

    @classmethod
    def parse(cls, raw: Union["Category", str, None]) -> "Category":
        """Normalise free text to a category; unknown values fall back to GENERAL."""
        if isinstance(raw, Category):
            return raw
        if raw is None:
            return cls.GENERAL
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return cls.GENERAL

    @classmethod
    def is_known(cls, raw: str) -> bool:
        return raw.strip().upper() in cls.__members__

    @property
    def label(self) -> str:
        return self.value.capitalize()

    def __str__(self) -> str:
        return self.value


@dataclass
class Expense:
    """A single recorded expense.

    Constructing an ``Expense`` directly takes every field verbatim; use
    :meth:`create` for new records so the category is normalised and the date
    is stamped.
    """

    id: int
    description: str
    amount: Decimal
    category: Category
    date: str

    def __post_init__(self) -> None:
        if self.description is None or self.amount is None:
            raise ValidationError("Description or amount argument is missing.")

    @classmethod
    def create(
        cls,
        expense_id: int,
        description: Optional[str],
        amount: object,
        category: Union[Category, str, None] = None,
        *,
        now: Optional[datetime] = None,
    ) -> "Expense":
        if description is None or amount is None:
            raise ValidationError("Description or amount argument is missing.")
        return cls(
            id=expense_id,
            description=validate_required_str(description, "description"),
            amount=coerce_amount(amount),
            category=Category.parse(category),
            date=timestamp(now),
        )

    def set_category(self, raw: Union[Category, str]) -> None:
        self.category = Category.parse(raw)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "amount": f"{self.amount:.2f}",
            "category": self.category.value,
            "date": self.date,
        }
