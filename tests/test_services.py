"""Tests for the expense store."""

import logging
from decimal import Decimal

import pytest

from expenses.exceptions import NotFoundError, PersistenceError, ValidationError
from expenses.models import Category
from expenses.services import ExpenseStore
from expenses.storage import ExpenseFile
from tests.helpers import FIXED_DATE, FIXED_NOW, expense_object, write_expenses


class TestAddAndDelete:
    """Ids are sequential and never reused."""

    def test_add_delete_scenario(self, store):
        coffee = store.add("Coffee", 3.50, "Food")
        assert (coffee.id, coffee.category) == (1, Category.FOOD)

        rent = store.add("Rent", 1200.0)
        assert (rent.id, rent.category) == (2, Category.GENERAL)

        assert store.delete(1) == coffee
        assert [expense.id for expense in store.list_all()] == [2]

        movie = store.add("Movie", 15.0, "Entertainment")
        assert movie.id == 3
        assert movie.category is Category.ENTERTAINMENT

    def test_ids_stay_above_deleted_maximum(self, store):
        for description in ("a", "b", "c"):
            store.add(description, 1)
        store.delete(3)
        store.delete(2)
        assert store.add("d", 1).id == 4

    def test_add_persists(self, store, storage):
        store.add("Coffee", "3.50", "food")
        [reloaded] = storage.load()
        assert reloaded == store.find_by_id(1)
        assert reloaded.date == FIXED_DATE

    def test_invalid_add_does_not_consume_an_id(self, store):
        with pytest.raises(ValidationError):
            store.add(None, 1)
        assert store.add("Coffee", 1).id == 1

    def test_delete_unknown_is_reported_no_op(self, store, data_file, caplog):
        store.add("Coffee", 1)
        before = data_file.read_text(encoding="utf-8")
        with caplog.at_level(logging.INFO, logger="expenses.services"):
            assert store.delete(42) is None
        assert "42" in caplog.text
        assert len(store) == 1
        assert data_file.read_text(encoding="utf-8") == before


class TestUpdate:
    """Partial updates change only supplied fields."""

    def test_all_fields_absent_raises_without_mutation(self, store):
        expense = store.add("Coffee", 3.5, "Food")
        snapshot = expense.to_dict()
        with pytest.raises(ValidationError):
            store.update(expense.id)
        assert store.find_by_id(expense.id).to_dict() == snapshot

    def test_unknown_id_raises_not_found(self, store):
        store.add("Coffee", 3.5, "Food")
        before = [expense.to_dict() for expense in store.list_all()]
        with pytest.raises(NotFoundError):
            store.update(99, description="Tea")
        assert [expense.to_dict() for expense in store.list_all()] == before

    def test_partial_update(self, store, storage):
        store.add("Coffee", 3.5, "Food")

        updated = store.update(1, amount=Decimal("4"))
        assert updated.amount == Decimal("4.00")
        assert updated.description == "Coffee"
        assert updated.category is Category.FOOD
        assert updated.date == FIXED_DATE

        store.update(1, description="Latte", category="unknown")
        assert store.find_by_id(1).description == "Latte"
        assert store.find_by_id(1).category is Category.GENERAL
        assert storage.load() == store.list_all()

    def test_invalid_value_changes_nothing(self, store):
        store.add("Coffee", 3.5, "Food")
        with pytest.raises(ValidationError):
            store.update(1, description="Tea", amount="lots")
        assert store.find_by_id(1).description == "Coffee"


class TestQueries:
    def test_list_by_category_preserves_order(self, store):
        store.add("Lunch", 10, "Food")
        store.add("Rent", 900, "Bills")
        store.add("Dinner", 20, "food")

        food = store.list_by_category(Category.FOOD)
        assert [expense.description for expense in food] == ["Lunch", "Dinner"]
        assert store.list_by_category("FOOD") == food

    def test_list_all_returns_a_copy(self, store):
        store.add("Coffee", 1)
        store.list_all().clear()
        assert len(store.list_all()) == 1

    def test_find_by_id_never_raises(self, store):
        assert store.find_by_id(1) is None

    def test_total(self, store):
        store.add("Lunch", "10.25", "Food")
        store.add("Rent", 900, "Bills")
        store.add("Refund", -0.25, "Food")
        assert store.total() == Decimal("910.00")
        assert store.total(Category.FOOD) == Decimal("10.00")
        assert store.total("Health") == Decimal("0.00")


class TestLoading:
    def test_next_id_follows_maximum_loaded(self, data_file):
        write_expenses(
            data_file,
            expense_object(5, "Five", "5.00"),
            expense_object(2, "Two", "2.00"),
        )
        store = ExpenseStore(ExpenseFile(data_file), clock=lambda: FIXED_NOW)
        assert store.next_id == 6
        assert store.add("Six", 6).id == 6
        assert [expense.id for expense in store.list_all()] == [5, 2, 6]

    def test_stores_do_not_share_id_state(self, tmp_path):
        first = ExpenseStore(ExpenseFile(tmp_path / "a.json"))
        second = ExpenseStore(ExpenseFile(tmp_path / "b.json"))
        first.add("x", 1)
        first.add("y", 1)
        assert second.add("z", 1).id == 1

    def test_corrupted_file_starts_empty(self, data_file):
        data_file.write_text("[{\"id\": }]", encoding="utf-8")
        store = ExpenseStore(ExpenseFile(data_file))
        assert store.list_all() == []
        assert store.next_id == 1

    def test_duplicate_ids_are_reported(self, data_file, caplog):
        write_expenses(
            data_file,
            expense_object(4, "First", "1.00"),
            expense_object(4, "Second", "2.00"),
            expense_object(1, "Other", "3.00"),
        )
        with caplog.at_level(logging.WARNING, logger="expenses.services"):
            store = ExpenseStore(ExpenseFile(data_file))
        assert "share ids [4]" in caplog.text
        assert store.find_by_id(4).description == "First"
        assert store.next_id == 5

    def test_oversized_amount_does_not_consume_an_id(self, store):
        with pytest.raises(ValidationError):
            store.add("Big", "1" + "0" * 27)
        assert len(store) == 0
        assert store.add("Coffee", 1).id == 1


class _FailingFile(ExpenseFile):
    def save(self, expenses):
        raise PersistenceError("disk full")


class TestSaveFailures:
    def test_failed_save_keeps_memory_state(self, tmp_path, caplog):
        store = ExpenseStore(_FailingFile(tmp_path / "expenses.json"))
        with caplog.at_level(logging.ERROR, logger="expenses.services"):
            expense = store.add("Coffee", 3)
        assert store.has_unsaved_changes
        assert store.find_by_id(expense.id) == expense
        assert "couldn't be saved" in caplog.text
