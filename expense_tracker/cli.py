"""Console interface for the expense tracker."""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from expenses.codec import parse_amount
from expenses.config import configure_logging, load_settings
from expenses.exceptions import NotFoundError, ParseError, ValidationError
from expenses.models import Category, Expense
from expenses.services import ExpenseStore
from expenses.storage import ExpenseFile
from expenses.validators import validate_expense_id

UPDATABLE_FIELDS = ("description", "amount", "category")
NULL_VALUE = "null"
LIST_PREFIX = "list-"


def _parse_amount(value: str) -> Decimal:
    try:
        return parse_amount(value)
    except ParseError as exc:
        raise argparse.ArgumentTypeError(f"Amount must be numeric. Received: {value}") from exc


def _parse_id(value: str) -> int:
    try:
        return validate_expense_id(value)
    except ValidationError as exc:
        raise argparse.ArgumentTypeError(f"ID must be a positive integer. Received: {value}") from exc


def _shield_negative_amounts(argv: Sequence[str]) -> List[str]:
    """Rewrite amounts like ``-3,50`` to ``-3.50`` so argparse keeps them positional.

    Only tokens in an amount position are touched: the one after ``add <description>``
    and the value following an ``amount`` field of ``update``.
    """
    tokens = list(argv)
    for index, token in enumerate(tokens):
        if len(token) < 2 or token[0] != "-" or token[1] not in "0123456789.,":
            continue
        after_field = index >= 1 and tokens[index - 1].lower() == "amount"
        after_add = index >= 2 and tokens[index - 2] == "add"
        if not (after_field or after_add):
            continue
        try:
            tokens[index] = f"{parse_amount(token):f}"
        except ParseError:
            continue
    return tokens


def _format_expense(expense: Expense) -> str:
    data = expense.to_dict()
    return (
        f"[{data['id']}] {data['date']} {data['amount']}\n"
        f"  Category: {data['category']}\n"
        f"  Description: {data['description']}\n"
    )


def _print_expenses(expenses: List[Expense], total: Decimal) -> None:
    if not expenses:
        print("No expenses found.")
        return
    print(f"Found {len(expenses)} expenses (total {total:.2f}):")
    for expense in expenses:
        print(_format_expense(expense))


def parse_update_pairs(pairs: Sequence[str]) -> Dict[str, Optional[object]]:
    """Turn ``field value`` pairs into update keyword arguments.

    A value of ``null`` leaves the field unchanged. Raises ``ValidationError``
    for an odd number of tokens, an unknown field or a non-numeric amount.
    """
    if len(pairs) % 2 != 0:
        raise ValidationError("You must pass pairs <field> <value>.")

    changes: Dict[str, Optional[object]] = {field: None for field in UPDATABLE_FIELDS}
    for index in range(0, len(pairs), 2):
        field, value = pairs[index].lower(), pairs[index + 1]
        if field not in UPDATABLE_FIELDS:
            raise ValidationError(f"Invalid field: {field}. Use: {' | '.join(UPDATABLE_FIELDS)}")
        if value.lower() == NULL_VALUE:
            changes[field] = None
        elif field == "amount":
            try:
                changes[field] = parse_amount(value)
            except ParseError as exc:
                raise ValidationError(f"'amount' must be numeric. Received: {value}") from exc
        else:
            changes[field] = value
    return changes


def handle_command(args: argparse.Namespace, store: ExpenseStore) -> int:
    command = args.command
    if command == "add":
        expense = store.add(args.description, args.amount, args.category)
        print("Expense added:\n" + _format_expense(expense))
    elif command == "update":
        changes = parse_update_pairs(args.pairs)
        expense = store.update(args.id, **changes)
        print("Expense updated:\n" + _format_expense(expense))
    elif command == "delete":
        if store.delete(args.id) is None:
            print(f"Expense {args.id} not found.")
            return 0
        print(f"Expense {args.id} deleted.")
    elif command == "list-all":
        _print_expenses(store.list_all(), store.total())
    else:
        category = Category.parse(command[len(LIST_PREFIX):])
        _print_expenses(store.list_by_category(category), store.total(category))

    if store.has_unsaved_changes:
        print(f"Storage error: changes could not be saved to {store.storage.path}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Expense Tracker CLI")
    parser.add_argument(
        "--file",
        type=Path,
        help="Expense file to read and write (default: $EXPENSE_TRACKER_FILE or ./expenses.json)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")

    subparsers = parser.add_subparsers(dest="command", required=True)

    add_parser = subparsers.add_parser("add", help="Add a new expense")
    add_parser.add_argument("description")
    add_parser.add_argument("amount", type=_parse_amount)
    add_parser.add_argument("category", nargs="?", help="General, Food, Entertainment, Health, Shopping or Bills")

    update_parser = subparsers.add_parser(
        "update",
        help="Update fields of an expense",
        description="Valid fields: description | amount | category. Use 'null' to keep a field.",
    )
    update_parser.add_argument("id", type=_parse_id)
    update_parser.add_argument("pairs", nargs="+", metavar="FIELD VALUE")

    delete_parser = subparsers.add_parser("delete", help="Delete an expense")
    delete_parser.add_argument("id", type=_parse_id)

    subparsers.add_parser("list-all", help="List all expenses")
    for category in Category:
        subparsers.add_parser(
            f"{LIST_PREFIX}{category.value.lower()}", help=f"List {category.label} expenses"
        )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(_shield_negative_amounts(sys.argv[1:] if argv is None else argv))

    settings = load_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)
    store = ExpenseStore(ExpenseFile(args.file or settings.data_file))

    try:
        return handle_command(args, store)
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except NotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
