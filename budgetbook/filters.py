from datetime import datetime, time
from typing import Callable, Iterable, Iterator, Optional, Tuple

from budgetbook.domain import (
    ALL,
    CUSTOM,
    LAST_MONTH,
    THIS_MONTH,
    THIS_YEAR,
    FilterSpec,
    Transaction,
)

Predicate = Callable[[Transaction], bool]


def _everything(t: Transaction) -> bool:
    return True


def previous_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def by_search(text: str) -> Predicate:
    needle = (text or "").strip().lower()
    if not needle:
        return _everything

    def _filter(t: Transaction) -> bool:
        return needle in t.description.lower() or needle in t.category.lower()

    return _filter


def by_type(kind: str) -> Predicate:
    if not kind or kind == ALL:
        return _everything

    def _filter(t: Transaction) -> bool:
        return t.type == kind

    return _filter


def by_category(name: Optional[str]) -> Predicate:
    if not name:
        return _everything

    def _filter(t: Transaction) -> bool:
        return t.category == name

    return _filter


def by_month(year: int, month: int) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.date.year == year and t.date.month == month

    return _filter


def by_year(year: int) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.date.year == year

    return _filter


def by_date_range(start: datetime, end: datetime) -> Predicate:
    """Inclusive on whole days: start day from midnight, end day to its last instant."""
    lower = datetime.combine(start.date(), time.min)
    upper = datetime.combine(end.date(), time.max)

    def _filter(t: Transaction) -> bool:
        return lower <= t.date <= upper

    return _filter


def by_period(
    period: str,
    now: datetime,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Predicate:
    if period == THIS_MONTH:
        return by_month(now.year, now.month)
    if period == LAST_MONTH:
        return by_month(*previous_month(now.year, now.month))
    if period == THIS_YEAR:
        return by_year(now.year)
    if period == CUSTOM and start is not None and end is not None:
        return by_date_range(start, end)
    # "all", unknown periods and half-open custom ranges are unrestricted
    return _everything


def all_of(*preds: Predicate) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return all(p(t) for p in preds)

    return _filter


def spec_predicate(spec: FilterSpec, now: datetime) -> Predicate:
    return all_of(
        by_search(spec.search),
        by_type(spec.type),
        by_category(spec.category),
        by_period(spec.period, now, spec.start, spec.end),
    )


def iter_transactions(
    trans: Iterable[Transaction], pred: Predicate
) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def filter_transactions(
    trans: Iterable[Transaction], spec: FilterSpec, now: datetime
) -> Tuple[Transaction, ...]:
    return tuple(iter_transactions(trans, spec_predicate(spec, now)))
