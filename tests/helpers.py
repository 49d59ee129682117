"""Helpers shared by test modules."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

FIXED_NOW = datetime(2026, 10, 19, 9, 30, 0)
FIXED_DATE = "2026-10-19T09:30:00"


def expense_object(expense_id: int, description: str, amount: str, category: str = "GENERAL",
                   date: str = FIXED_DATE) -> str:
    return (
        "{\n"
        f'"id": {expense_id},\n'
        f'"description": "{description}",\n'
        f'"amount": "{amount}",\n'
        f'"category": "{category}",\n'
        f'"date": "{date}"\n'
        "}"
    )


def write_expenses(path: Path, *objects: str) -> None:
    """Write raw object texts as an expense file."""
    path.write_text("[\n" + ",\n".join(objects) + "\n]", encoding="utf-8")
