from datetime import datetime
from decimal import Decimal
from pathlib import Path

from budgetbook.domain import Budget, Category, Transaction
from budgetbook.transforms import (
    add_budget,
    add_category,
    add_transaction,
    delete_budget,
    delete_category,
    delete_transaction,
    load_seed,
    update_category,
)

SEED = Path(__file__).resolve().parent.parent / "data" / "seed.json"


def make_tx(id, amount, type="expense", category="Food", ts="2024-03-10"):
    return Transaction(id, f"tx {id}", Decimal(amount), type, category, datetime.fromisoformat(ts))


def test_add_transaction_prepends():
    t1 = make_tx("t1", "100", "income", "Salary")
    t2 = make_tx("t2", "50")

    transactions = (t1,)
    new_transactions = add_transaction(transactions, t2)

    assert len(new_transactions) == 2
    assert new_transactions[0].id == "t2"
    assert transactions == (t1,)


def test_delete_transaction():
    trans = (make_tx("t1", "10"), make_tx("t2", "20"))
    result = delete_transaction(trans, "t1")
    assert [t.id for t in result] == ["t2"]
    assert delete_transaction(trans, "missing") == trans


def test_category_crud_keeps_order():
    cats = (
        Category("c1", "Food", "expense"),
        Category("c2", "Salary", "income"),
    )
    cats = add_category(cats, Category("c3", "Gifts", "both"))
    assert [c.id for c in cats] == ["c1", "c2", "c3"]

    cats = update_category(cats, Category("c1", "Groceries", "expense", "ShoppingBag", "bg-lime-500"))
    assert cats[0].name == "Groceries"
    assert cats[0].icon == "ShoppingBag"

    cats = delete_category(cats, "c2")
    assert [c.id for c in cats] == ["c1", "c3"]


def test_update_unknown_category_is_noop():
    cats = (Category("c1", "Food", "expense"),)
    assert update_category(cats, Category("zz", "Other", "both")) == cats


def test_add_budget_rejects_duplicate_category():
    budgets = (Budget("b1", "Food", Decimal("300")),)

    result = add_budget(budgets, Budget("b2", "Food", Decimal("500")))

    assert result.is_left()
    assert result.get_error()["error"] == "duplicate_category"
    assert len(budgets) == 1


def test_add_budget_twice_keeps_count():
    first = add_budget((), Budget("b1", "Food", Decimal("300"))).get_or_else(())
    second = add_budget(first, Budget("b2", "Food", Decimal("300")))
    assert len(second.get_or_else(first)) == 1


def test_delete_budget():
    budgets = (Budget("b1", "Food", Decimal("300")), Budget("b2", "Leisure", Decimal("100")))
    assert [b.id for b in delete_budget(budgets, "b1")] == ["b2"]


def test_load_seed():
    categories, transactions, budgets = load_seed(str(SEED))

    assert len(categories) >= 5
    assert len(transactions) >= 5
    assert len(budgets) >= 3
    assert all(isinstance(t.amount, Decimal) for t in transactions)
    assert all(isinstance(t.date, datetime) for t in transactions)
