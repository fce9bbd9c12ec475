"""Derived views over the transaction store.

Every function here is pure and total: empty input, filters that match
nothing and categories missing from the registry all produce empty or zero
results rather than errors.
"""
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from budgetbook.domain import (
    EXPENSE,
    INCOME,
    Budget,
    BudgetStatus,
    CategoryTotal,
    FilterSpec,
    MonthBucket,
    Summary,
    Transaction,
)
from budgetbook.filters import by_month, by_type, filter_transactions, iter_transactions

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def total(trans: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in trans), ZERO)


def totals(trans: Iterable[Transaction]) -> Summary:
    income = ZERO
    expense = ZERO
    for t in trans:
        if t.type == INCOME:
            income += t.amount
        elif t.type == EXPENSE:
            expense += t.amount
    return Summary(income=income, expense=expense, balance=income - expense)


def summarize(
    trans: Iterable[Transaction], spec: Optional[FilterSpec] = None, now: Optional[datetime] = None
) -> Summary:
    spec = spec or FilterSpec()
    return totals(filter_transactions(trans, spec, now or datetime.now()))


def bucket_by_category(
    trans: Iterable[Transaction], kind: str = EXPENSE
) -> List[CategoryTotal]:
    # dicts keep first-seen order and sorted() is stable, so ties stay put
    by_name: Dict[str, Decimal] = {}
    for t in iter_transactions(trans, by_type(kind)):
        by_name[t.category] = by_name.get(t.category, ZERO) + t.amount

    ordered = sorted(by_name.items(), key=lambda item: item[1], reverse=True)
    return [CategoryTotal(name=name, total=amount) for name, amount in ordered]


def bucket_by_month(trans: Iterable[Transaction]) -> List[MonthBucket]:
    income: Dict[Tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
    expense: Dict[Tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
    keys = set()

    for t in trans:
        key = (t.date.year, t.date.month)
        keys.add(key)
        if t.type == INCOME:
            income[key] += t.amount
        else:
            expense[key] += t.amount

    return [
        MonthBucket(year=year, month=month, income=income[(year, month)], expense=expense[(year, month)])
        for year, month in sorted(keys)
    ]


def budget_percentage(spent: Decimal, limit: Decimal) -> Decimal:
    if limit == 0:
        return HUNDRED if spent > 0 else ZERO
    return min(spent / limit * HUNDRED, HUNDRED)


def evaluate_budget(
    b: Budget, trans: Iterable[Transaction], month: int, year: int
) -> BudgetStatus:
    in_month = by_month(year, month)
    spent = total(
        t for t in trans
        if t.type == EXPENSE and t.category == b.category and in_month(t)
    )
    return BudgetStatus(
        budget=b,
        spent=spent,
        percentage=budget_percentage(spent, b.limit),
        remaining=max(b.limit - spent, ZERO),
        is_over_budget=spent > b.limit,
    )


def evaluate_budgets(
    budgets: Iterable[Budget],
    trans: Sequence[Transaction],
    month: int,
    year: int,
) -> List[BudgetStatus]:
    trans = tuple(trans)
    return [evaluate_budget(b, trans, month, year) for b in budgets]


def newest_first(
    trans: Iterable[Transaction], limit: Optional[int] = None
) -> List[Transaction]:
    ordered = sorted(trans, key=lambda t: t.date, reverse=True)
    if limit is not None:
        return ordered[: max(0, limit)]
    return ordered


def running_balance(trans: Iterable[Transaction]) -> List[Tuple[Transaction, Decimal]]:
    balance = ZERO
    rows = []
    for t in sorted(trans, key=lambda t: t.date):
        balance += t.amount if t.type == INCOME else -t.amount
        rows.append((t, balance))
    return rows
