"""Core logic of the expense tracker: records, file format, store and persistence."""

from .models import Category, Expense
from .services import ExpenseStore
from .storage import ExpenseFile
from .exceptions import NotFoundError, ParseError, PersistenceError, ValidationError

__all__ = [
    "Category",
    "Expense",
    "ExpenseStore",
    "ExpenseFile",
    "NotFoundError",
    "ParseError",
    "PersistenceError",
    "ValidationError",
]
