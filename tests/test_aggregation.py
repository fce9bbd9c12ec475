from datetime import datetime
from decimal import Decimal

from budgetbook.aggregation import (
    bucket_by_category,
    bucket_by_month,
    evaluate_budgets,
    newest_first,
    running_balance,
    summarize,
)
from budgetbook.domain import THIS_MONTH, Budget, FilterSpec, Transaction

NOW = datetime(2024, 3, 15)


def make_tx(id, amount, type="expense", category="Food", ts="2024-03-10"):
    return Transaction(id, f"tx {id}", Decimal(amount), type, category, datetime.fromisoformat(ts))


def make_sample():
    return (
        make_tx("t1", "100", "income", "Salary", "2024-03-05"),
        make_tx("t2", "40", "expense", "Food", "2024-03-10"),
        make_tx("t3", "20", "expense", "Food", "2024-02-01"),
    )


def test_summarize_this_month_scenario():
    summary = summarize(make_sample(), FilterSpec(period=THIS_MONTH), NOW)

    assert summary.income == 100
    assert summary.expense == 40
    assert summary.balance == 60


def test_bucket_by_category_scenario():
    result = bucket_by_category(make_sample(), "expense")
    assert [(c.name, c.total) for c in result] == [("Food", Decimal("60"))]


def test_summarize_balance_is_exact_and_order_independent():
    trans = [
        make_tx("a", "0.10", "income"),
        make_tx("b", "0.20", "income"),
        make_tx("c", "0.30", "expense"),
        make_tx("d", "1000000.01", "income"),
    ]
    forward = summarize(trans, FilterSpec(), NOW)
    backward = summarize(list(reversed(trans)), FilterSpec(), NOW)

    assert forward.balance == Decimal("1000000.01")
    assert forward == backward


def test_summarize_type_partition():
    trans = make_sample() + (make_tx("t4", "7.5", "income", "Gifts", "2023-01-01"),)
    income = summarize(trans, FilterSpec(type="income"), NOW)
    expense = summarize(trans, FilterSpec(type="expense"), NOW)
    both = summarize(trans, FilterSpec(type="all"), NOW)

    assert income.income + expense.income == both.income
    assert income.expense + expense.expense == both.expense
    assert income.expense == 0
    assert expense.income == 0


def test_summarize_empty_is_zero():
    summary = summarize((), FilterSpec(), NOW)
    assert (summary.income, summary.expense, summary.balance) == (0, 0, 0)


def test_summarize_negative_balance():
    summary = summarize([make_tx("t1", "30", "expense")], FilterSpec(), NOW)
    assert summary.balance == Decimal("-30")


def test_bucket_by_category_orders_and_breaks_ties_by_first_seen():
    trans = [
        make_tx("t1", "10", category="Transport"),
        make_tx("t2", "50", category="Food"),
        make_tx("t3", "10", category="Leisure"),
        make_tx("t4", "500", "income", category="Salary"),
    ]
    result = bucket_by_category(trans, "expense")
    assert [c.name for c in result] == ["Food", "Transport", "Leisure"]
    assert [c.name for c in bucket_by_category(trans, "income")] == ["Salary"]
    assert bucket_by_category((), "expense") == []


def test_bucket_by_category_uses_stored_names():
    # dangling names are grouped like any other
    result = bucket_by_category([make_tx("t1", "5", category="Deleted category")])
    assert result[0].name == "Deleted category"


def test_bucket_by_month_across_year_boundary():
    trans = [
        make_tx("jan", "10", "expense", ts="2024-01-10"),
        make_tx("dec", "20", "income", ts="2023-12-15"),
        make_tx("jan2", "5", "income", ts="2024-01-20"),
        make_tx("oct", "1", "expense", ts="2023-10-01"),
    ]
    buckets = bucket_by_month(trans)

    assert [b.key for b in buckets] == ["10/2023", "12/2023", "1/2024"]
    assert buckets[1].income == 20
    assert buckets[1].expense == 0
    assert buckets[2].income == 5
    assert buckets[2].expense == 10


def test_evaluate_budgets_under_and_over():
    budgets = [Budget("b1", "Food", Decimal("200"))]
    under = evaluate_budgets(budgets, [make_tx("t1", "150")], 3, 2024)[0]

    assert under.spent == 150
    assert under.percentage == 75
    assert under.remaining == 50
    assert under.is_over_budget is False

    over = evaluate_budgets(budgets, [make_tx("t1", "250")], 3, 2024)[0]
    assert over.percentage == 100
    assert over.is_over_budget is True
    assert over.remaining == 0


def test_evaluate_budgets_exactly_at_limit_is_not_over():
    status = evaluate_budgets([Budget("b1", "Food", Decimal("100"))], [make_tx("t1", "100")], 3, 2024)[0]
    assert status.percentage == 100
    assert status.is_over_budget is False


def test_evaluate_budgets_zero_limit():
    budgets = [Budget("b1", "Food", Decimal("0"))]

    idle = evaluate_budgets(budgets, [], 3, 2024)[0]
    assert idle.percentage == 0
    assert idle.is_over_budget is False

    spent = evaluate_budgets(budgets, [make_tx("t1", "50")], 3, 2024)[0]
    assert spent.percentage == 100
    assert spent.is_over_budget is True
    assert spent.remaining == 0


def test_evaluate_budgets_only_counts_matching_month_category_and_expenses():
    budgets = [Budget("b1", "Food", Decimal("100")), Budget("b2", "Leisure", Decimal("50"))]
    trans = [
        make_tx("t1", "30", "expense", "Food", "2024-03-01"),
        make_tx("t2", "30", "expense", "Food", "2024-02-29"),
        make_tx("t3", "30", "expense", "Food", "2023-03-01"),
        make_tx("t4", "30", "income", "Food", "2024-03-02"),
        make_tx("t5", "30", "expense", "Transport", "2024-03-02"),
    ]
    statuses = evaluate_budgets(budgets, trans, 3, 2024)

    assert [s.budget.id for s in statuses] == ["b1", "b2"]
    assert statuses[0].spent == 30
    assert statuses[1].spent == 0


def test_newest_first_and_limit():
    trans = [
        make_tx("old", "1", ts="2024-01-01"),
        make_tx("new", "1", ts="2024-03-01"),
        make_tx("mid", "1", ts="2024-02-01"),
    ]
    assert [t.id for t in newest_first(trans)] == ["new", "mid", "old"]
    assert [t.id for t in newest_first(trans, 2)] == ["new", "mid"]


def test_running_balance_is_chronological():
    trans = [
        make_tx("e", "30", "expense", ts="2024-03-02"),
        make_tx("i", "100", "income", ts="2024-03-01"),
        make_tx("e2", "80", "expense", ts="2024-03-03"),
    ]
    rows = running_balance(trans)
    assert [(t.id, balance) for t, balance in rows] == [
        ("i", Decimal("100")),
        ("e", Decimal("70")),
        ("e2", Decimal("-10")),
    ]
