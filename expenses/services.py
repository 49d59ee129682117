"""The expense store: the in-memory collection and its mutations."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Union

from .codec import next_id_after
from .exceptions import NotFoundError, PersistenceError, ValidationError
from .models import Category, Expense
from .storage import ExpenseFile
from .validators import coerce_amount, validate_required_str

logger = logging.getLogger(__name__)


class ExpenseStore:
    """Manages expense records and mediates persistence."""

    def __init__(
        self,
        storage: ExpenseFile,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._expenses: List[Expense] = []
        self._next_id = 1
        self._unsaved = False
        self.load()  # Hydrate in-memory collection from persistence on construction.

    # Public API -----------------------------------------------------------
    def add(
        self,
        description: Optional[str],
        amount: object,
        category: Union[Category, str, None] = None,
    ) -> Expense:
        expense = Expense.create(self._next_id, description, amount, category, now=self._clock())
        self._next_id += 1
        self._expenses.append(expense)
        logger.info("%s added with the amount: %s", expense.description, expense.amount)
        self._persist()
        return expense

    def delete(self, expense_id: int) -> Optional[Expense]:
        """Remove and return the expense, or return ``None`` if the id is unknown."""
        expense = self.find_by_id(expense_id)
        if expense is None:
            logger.info("Expense %s doesn't exist; nothing deleted", expense_id)
            return None
        self._expenses.remove(expense)
        logger.info("Expense %s deleted", expense_id)
        self._persist()
        return expense

    def update(
        self,
        expense_id: int,
        description: Optional[str] = None,
        amount: object = None,
        category: Union[Category, str, None] = None,
    ) -> Expense:
        """Change only the supplied fields; ``None`` leaves a field as it is."""
        if description is None and amount is None and category is None:
            raise ValidationError("At least one of description, amount or category must be given.")

        expense = self.find_by_id(expense_id)
        if expense is None:
            raise NotFoundError(f"The expense with id {expense_id} couldn't be found.")

        # Validate everything before touching the record so a bad value changes nothing.
        new_description = (
            validate_required_str(description, "description") if description is not None else None
        )
        new_amount = coerce_amount(amount) if amount is not None else None

        if new_description is not None:
            expense.description = new_description
        if new_amount is not None:
            expense.amount = new_amount
        if category is not None:
            expense.set_category(category)

        logger.info("Expense %s updated", expense_id)
        self._persist()
        return expense

    def list_all(self) -> List[Expense]:
        return list(self._expenses)

    def list_by_category(self, category: Union[Category, str]) -> List[Expense]:
        wanted = Category.parse(category)
        return [expense for expense in self._expenses if expense.category == wanted]

    def find_by_id(self, expense_id: int) -> Optional[Expense]:
        for expense in self._expenses:
            if expense.id == expense_id:
                return expense
        return None

    def total(self, category: Union[Category, str, None] = None) -> Decimal:
        expenses = self.list_all() if category is None else self.list_by_category(category)
        return sum((expense.amount for expense in expenses), Decimal("0.00"))

    def load(self) -> None:
        """Replace the collection with the stored one and move the id counter past it."""
        self._expenses = self._storage.load()
        counts = Counter(expense.id for expense in self._expenses)
        duplicates = sorted(expense_id for expense_id, count in counts.items() if count > 1)
        if duplicates:
            logger.warning("Stored expenses share ids %s; only the first of each is reachable", duplicates)
        self._next_id = next_id_after(self._expenses)
        self._unsaved = False

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def has_unsaved_changes(self) -> bool:
        return self._unsaved

    @property
    def storage(self) -> ExpenseFile:
        return self._storage

    # Internal helpers -----------------------------------------------------
    def _persist(self) -> None:
        try:
            self._storage.save(self._expenses)
        except PersistenceError as exc:
            # The in-memory collection stays authoritative for the rest of the process.
            logger.error("Expenses couldn't be saved: %s", exc)
            self._unsaved = True
        else:
            self._unsaved = False

    def __len__(self) -> int:
        return len(self._expenses)
