from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

INCOME = "income"
EXPENSE = "expense"
BOTH = "both"

TRANSACTION_TYPES = (INCOME, EXPENSE)
CATEGORY_TYPES = (INCOME, EXPENSE, BOTH)

# period filters
ALL = "all"
THIS_MONTH = "thisMonth"
LAST_MONTH = "lastMonth"
THIS_YEAR = "thisYear"
CUSTOM = "custom"

PERIODS = (ALL, THIS_MONTH, LAST_MONTH, THIS_YEAR, CUSTOM)

LANGUAGES = ("pt", "en", "es", "fr")
CURRENCIES = ("BRL", "USD", "EUR")
THEMES = ("light", "dark")

# largest amount or limit accepted; keeps sums well inside Decimal precision
MAX_AMOUNT = Decimal("999999999999.99")

AVAILABLE_ICONS = (
    "Briefcase", "Laptop", "TrendingUp", "Gift", "Utensils", "Home", "Car",
    "Smile", "Heart", "GraduationCap", "ShoppingBag", "MoreHorizontal",
    "Zap", "Wifi", "Smartphone", "Coffee", "Music", "Plane", "Gamepad",
    "Dumbbell", "Stethoscope", "Book", "Hammer", "Dog",
)

AVAILABLE_COLORS = (
    "bg-emerald-500", "bg-blue-500", "bg-purple-500", "bg-pink-500",
    "bg-orange-500", "bg-red-500", "bg-yellow-500", "bg-teal-500",
    "bg-indigo-500", "bg-cyan-500", "bg-lime-500", "bg-gray-500",
)

DEFAULT_ICON = "MoreHorizontal"
DEFAULT_COLOR = "bg-gray-500"


@dataclass(frozen=True)
class Transaction:
    id: str
    description: str
    amount: Decimal      # always >= 0, sign comes from type
    type: str            # "income" or "expense"
    category: str        # category name, not id
    date: datetime
    is_recurring: bool = False


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    type: str            # "income", "expense" or "both"
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR


# A budget (monthly limit for a category name)
@dataclass(frozen=True)
class Budget:
    id: str
    category: str
    limit: Decimal


@dataclass(frozen=True)
class Settings:
    language: str = "pt"
    currency: str = "BRL"
    is_pro: bool = False
    has_password_protection: bool = False
    password_pin: str = ""
    theme: str = "light"
    last_backup_date: Optional[str] = None


@dataclass(frozen=True)
class FilterSpec:
    search: str = ""
    type: str = ALL
    category: Optional[str] = None
    period: str = ALL
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass(frozen=True)
class Summary:
    income: Decimal
    expense: Decimal
    balance: Decimal


@dataclass(frozen=True)
class CategoryTotal:
    name: str
    total: Decimal


@dataclass(frozen=True)
class MonthBucket:
    year: int
    month: int
    income: Decimal
    expense: Decimal

    @property
    def key(self) -> str:
        return f"{self.month}/{self.year}"


@dataclass(frozen=True)
class BudgetStatus:
    budget: Budget
    spent: Decimal
    percentage: Decimal  # capped at 100 for display
    remaining: Decimal   # never negative
    is_over_budget: bool


DEFAULT_CATEGORIES = (
    Category("salary", "Salary", INCOME, "Briefcase", "bg-emerald-500"),
    Category("freelance", "Freelance", INCOME, "Laptop", "bg-blue-500"),
    Category("investments", "Investments", INCOME, "TrendingUp", "bg-purple-500"),
    Category("gifts", "Gifts", BOTH, "Gift", "bg-pink-500"),
    Category("food", "Food", EXPENSE, "Utensils", "bg-orange-500"),
    Category("housing", "Housing", EXPENSE, "Home", "bg-indigo-500"),
    Category("transport", "Transport", EXPENSE, "Car", "bg-cyan-500"),
    Category("leisure", "Leisure", EXPENSE, "Smile", "bg-yellow-500"),
    Category("health", "Health", EXPENSE, "Heart", "bg-red-500"),
    Category("education", "Education", EXPENSE, "GraduationCap", "bg-teal-500"),
    Category("shopping", "Shopping", EXPENSE, "ShoppingBag", "bg-lime-500"),
    Category("other", "Other", BOTH, "MoreHorizontal", "bg-gray-500"),
)

DEFAULT_SETTINGS = Settings()


def as_decimal(value) -> Decimal:
    """Coerce JSON numbers, strings and Decimals to Decimal.

    Floats go through ``str`` so 0.1 stays 0.1. Raises ValueError for
    anything that is not a finite number.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (ArithmeticError, TypeError, ValueError) as e:
        raise ValueError(f"not a number: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def as_datetime(value) -> datetime:
    """Parse ISO strings / dates into a naive local datetime."""
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        result = datetime.fromisoformat(text)
    else:
        raise ValueError(f"not a date: {value!r}")
    if result.tzinfo is not None:
        result = result.astimezone().replace(tzinfo=None)
    return result
