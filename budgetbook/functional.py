from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Optional, TypeVar
from uuid import uuid4

from budgetbook.domain import (
    AVAILABLE_COLORS,
    AVAILABLE_ICONS,
    CATEGORY_TYPES,
    CURRENCIES,
    DEFAULT_COLOR,
    DEFAULT_ICON,
    LANGUAGES,
    MAX_AMOUNT,
    THEMES,
    TRANSACTION_TYPES,
    Budget,
    Category,
    Transaction,
    as_datetime,
    as_decimal,
)

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    @abstractmethod
    def get_error(self) -> E:
        pass

    def is_left(self) -> bool:
        return not self.is_right()


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Left(self._error)

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def compose(*funcs):
    """Return a function that's the composition of the given functions.

    compose(f, g, h)(x) == f(g(h(x)))
    """
    def _composed(x):
        res = x
        for f in reversed(funcs):
            res = f(res)
        return res
    return _composed


def safe_category(cats: tuple[Category, ...], name: str) -> Maybe[Category]:
    """Resolve a stored category name to its registry entry, if any.

    Transactions and budgets keep the name only, so renamed or deleted
    categories simply resolve to Nothing.
    """
    for cat in cats:
        if cat.name == name:
            return Some(cat)
    return Nothing()


def _error(code: str, message: str, **extra: Any) -> Left:
    return Left({"error": code, "message": message, **extra})


def validate_transaction(
    description: str,
    amount: Any,
    type: str,
    category: str,
    date: Any,
    is_recurring: bool = False,
    id: Optional[str] = None,
) -> Either[dict, Transaction]:
    if not description or not str(description).strip():
        return _error("missing_description", "Transaction description is required")

    if not category or not str(category).strip():
        return _error("missing_category", "Transaction category is required")

    try:
        value = as_decimal(amount)
    except ValueError:
        return _error("invalid_amount", f"Amount {amount!r} is not a number", amount=amount)
    if value < 0:
        return _error("invalid_amount", "Amount cannot be negative", amount=amount)
    if value > MAX_AMOUNT:
        return _error("invalid_amount", f"Amount cannot exceed {MAX_AMOUNT}", amount=amount)

    if type not in TRANSACTION_TYPES:
        return _error("invalid_type", f"Unknown transaction type {type!r}", type=type)

    try:
        when = as_datetime(date)
    except ValueError:
        return _error("invalid_date", f"Date {date!r} is not a valid date", date=date)

    return Right(Transaction(
        id=id or str(uuid4()),
        description=str(description).strip(),
        amount=value,
        type=type,
        category=str(category).strip(),
        date=when,
        is_recurring=bool(is_recurring),
    ))


def validate_category(
    name: str,
    type: str,
    icon: str = DEFAULT_ICON,
    color: str = DEFAULT_COLOR,
    id: Optional[str] = None,
) -> Either[dict, Category]:
    if not name or not str(name).strip():
        return _error("missing_name", "Category name is required")
    if type not in CATEGORY_TYPES:
        return _error("invalid_type", f"Unknown category type {type!r}", type=type)
    if icon not in AVAILABLE_ICONS:
        return _error("invalid_icon", f"Unknown icon {icon!r}", icon=icon)
    if color not in AVAILABLE_COLORS:
        return _error("invalid_color", f"Unknown color {color!r}", color=color)

    return Right(Category(
        id=id or str(uuid4()),
        name=str(name).strip(),
        type=type,
        icon=icon,
        color=color,
    ))


def validate_budget(category: str, limit: Any, id: Optional[str] = None) -> Either[dict, Budget]:
    if not category or not str(category).strip():
        return _error("missing_category", "Budget category is required")
    try:
        value = as_decimal(limit)
    except ValueError:
        return _error("invalid_limit", f"Limit {limit!r} is not a number", limit=limit)
    if value < 0:
        return _error("invalid_limit", "Limit cannot be negative", limit=limit)
    if value > MAX_AMOUNT:
        return _error("invalid_limit", f"Limit cannot exceed {MAX_AMOUNT}", limit=limit)

    return Right(Budget(id=id or str(uuid4()), category=str(category).strip(), limit=value))


SETTING_CHOICES = {"language": LANGUAGES, "currency": CURRENCIES, "theme": THEMES}


def validate_setting_choices(values: dict) -> Either[dict, dict]:
    """Check the enumerated settings present in ``values``."""
    for key, choices in SETTING_CHOICES.items():
        if key in values and values[key] not in choices:
            return _error(f"invalid_{key}", f"Unsupported {key} {values[key]!r}", **{key: values[key]})
    return Right(values)
