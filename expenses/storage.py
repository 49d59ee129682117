"""Persistence of the expense collection as a single text file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Union

from .codec import decode_collection, encode_collection
from .exceptions import ParseError, PersistenceError, ValidationError
from .models import Expense

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = "expenses.json"


class ExpenseFile:
    """Whole-file load and save of the expense collection."""

    def __init__(self, path: Union[str, Path] = DEFAULT_FILE_NAME) -> None:
        self._path = Path(path)

    def load(self) -> List[Expense]:
        """Return the stored expenses, or an empty list if they cannot be read."""
        if not self._path.exists():
            logger.debug("No expense file at %s; starting empty", self._path)
            return []
        try:
            content = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("The file %s couldn't be read: %s", self._path, exc)
            return []

        try:
            expenses = decode_collection(content)
        except (ValidationError, ParseError) as exc:
            logger.error("Corrupted expense data in %s: %s", self._path, exc)
            return []

        logger.debug("Loaded %d expenses from %s", len(expenses), self._path)
        return expenses

    def save(self, expenses: Iterable[Expense]) -> None:
        """Overwrite the file with the full collection."""
        content = encode_collection(expenses)
        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open("w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
            # Path.replace is atomic on POSIX.
            temp_path.replace(self._path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write expenses to {self._path}") from exc

    @property
    def path(self) -> Path:
        return self._path
