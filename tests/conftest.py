"""Shared fixtures for the expense tracker tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from expenses.services import ExpenseStore
from expenses.storage import ExpenseFile
from tests.helpers import FIXED_NOW


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    """Location of a not-yet-existing expense file."""
    return tmp_path / "expenses.json"


@pytest.fixture
def storage(data_file: Path) -> ExpenseFile:
    return ExpenseFile(data_file)


@pytest.fixture
def store(storage: ExpenseFile) -> ExpenseStore:
    return ExpenseStore(storage, clock=lambda: FIXED_NOW)
