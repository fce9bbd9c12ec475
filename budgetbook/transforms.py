import json
from typing import Tuple

from budgetbook.domain import Budget, Category, Transaction
from budgetbook.functional import Either, Left, Right
from budgetbook.storage import decode_budget, decode_category, decode_many, decode_transaction


def load_seed(
    path: str,
) -> Tuple[
    Tuple[Category, ...],
    Tuple[Transaction, ...],
    Tuple[Budget, ...],
]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    categories = decode_many(decode_category)(data["categories"])
    transactions = decode_many(decode_transaction)(data["transactions"])
    budgets = decode_many(decode_budget)(data["budgets"])

    return categories, transactions, budgets


def add_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    # newest first, as the dashboard lists them
    return (t,) + trans


def delete_transaction(
    trans: Tuple[Transaction, ...], tid: str
) -> Tuple[Transaction, ...]:
    return tuple(t for t in trans if t.id != tid)


def add_category(
    cats: Tuple[Category, ...], c: Category
) -> Tuple[Category, ...]:
    return cats + (c,)


def update_category(
    cats: Tuple[Category, ...], updated: Category
) -> Tuple[Category, ...]:
    return tuple(updated if c.id == updated.id else c for c in cats)


def delete_category(
    cats: Tuple[Category, ...], cid: str
) -> Tuple[Category, ...]:
    return tuple(c for c in cats if c.id != cid)


def add_budget(
    budgets: Tuple[Budget, ...], b: Budget
) -> Either[dict, Tuple[Budget, ...]]:
    if any(existing.category == b.category for existing in budgets):
        return Left({
            "error": "duplicate_category",
            "message": f"A budget for category {b.category} already exists",
            "category": b.category,
        })
    return Right(budgets + (b,))


def delete_budget(
    budgets: Tuple[Budget, ...], bid: str
) -> Tuple[Budget, ...]:
    return tuple(b for b in budgets if b.id != bid)
