"""Key-value persistence for the four collections.

A backend only knows how to read and write text under a key, the way a
browser's local storage does. ``Slot`` adds the typed layer on top: reads
fall back to a default on any failure and writes never raise, so the
in-memory session keeps working when the disk does not.
"""
import json
import logging
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from budgetbook.domain import (
    DEFAULT_CATEGORIES,
    DEFAULT_COLOR,
    DEFAULT_ICON,
    DEFAULT_SETTINGS,
    Budget,
    Category,
    Settings,
    Transaction,
)
from budgetbook.exceptions import InvalidRecordError
from budgetbook.functional import (
    Either,
    compose,
    validate_budget,
    validate_category,
    validate_setting_choices,
    validate_transaction,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSACTIONS_KEY = "budgetbook_transactions"
BUDGETS_KEY = "budgetbook_budgets"
CATEGORIES_KEY = "budgetbook_categories"
SETTINGS_KEY = "budgetbook_settings"


class MemoryStorage:
    """Dict-backed backend, used for tests and throwaway sessions"""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


class JsonFileStorage:
    """One ``<key>.json`` file per key inside ``directory``"""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        # a torn write only ever damages the temp file
        tmp = path.with_name(f"{path.name}.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)


# --- record codecs
#
# Decoders validate like user input and raise InvalidRecordError (a
# ValueError) on the first bad record.

def _unwrap(result: Either) -> Any:
    if result.is_left():
        error = result.get_error()
        raise InvalidRecordError(error["message"], error)
    return result.get_or_else(None)


def encode_transaction(t: Transaction) -> dict:
    return {
        "id": t.id,
        "description": t.description,
        "amount": str(t.amount),
        "type": t.type,
        "category": t.category,
        "date": t.date.isoformat(),
        "is_recurring": t.is_recurring,
    }


def _transaction_record(d: dict) -> Either[dict, Transaction]:
    return validate_transaction(
        d["description"], d["amount"], d["type"], d["category"], d["date"],
        bool(d.get("is_recurring", False)),
        id=str(d["id"]),
    )


decode_transaction = compose(_unwrap, _transaction_record)


def encode_budget(b: Budget) -> dict:
    return {"id": b.id, "category": b.category, "limit": str(b.limit)}


def _budget_record(d: dict) -> Either[dict, Budget]:
    return validate_budget(d["category"], d["limit"], id=str(d["id"]))


decode_budget = compose(_unwrap, _budget_record)


def encode_category(c: Category) -> dict:
    return asdict(c)


def _category_record(d: dict) -> Either[dict, Category]:
    return validate_category(
        d["name"], d["type"],
        d.get("icon", DEFAULT_ICON), d.get("color", DEFAULT_COLOR),
        id=str(d["id"]),
    )


decode_category = compose(_unwrap, _category_record)


def encode_settings(s: Settings) -> dict:
    return asdict(s)


def _settings_record(d: dict) -> Either[dict, Settings]:
    if not isinstance(d, dict):
        raise TypeError(f"settings must be an object, got {type(d).__name__}")
    known = {f.name for f in fields(Settings)}
    merged = {**asdict(DEFAULT_SETTINGS), **{k: v for k, v in d.items() if k in known}}
    return validate_setting_choices(merged).map(lambda values: Settings(**values))


decode_settings = compose(_unwrap, _settings_record)

def encode_many(encode: Callable[[Any], dict]) -> Callable[[Tuple], List[dict]]:
    def _encode(items: Tuple) -> List[dict]:
        return [encode(item) for item in items]
    return _encode


def decode_many(decode: Callable[[dict], T]) -> Callable[[Any], Tuple[T, ...]]:
    def _decode(data: Any) -> Tuple[T, ...]:
        if not isinstance(data, list):
            raise TypeError(f"expected a list, got {type(data).__name__}")
        return tuple(decode(item) for item in data)
    return _decode


class Slot(Generic[T]):
    """A typed view over one backend key."""

    def __init__(
        self,
        backend,
        key: str,
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
        default: T,
    ):
        self.backend = backend
        self.key = key
        self.encode = encode
        self.decode = decode
        self.default = default

    def get(self) -> T:
        try:
            raw = self.backend.get_item(self.key)
            if raw is None:
                return self.default
            return self.decode(json.loads(raw))
        except (OSError, ValueError, KeyError, TypeError):
            logger.exception("Error loading storage slot", extra={"slot": self.key})
            return self.default

    def put(self, value: T) -> None:
        try:
            self.backend.set_item(self.key, json.dumps(self.encode(value)))
        except (OSError, ValueError, TypeError):
            logger.exception("Error saving storage slot", extra={"slot": self.key})


class FinanceStore:
    """The four independent slots the application persists."""

    def __init__(self, backend):
        self.backend = backend
        self.transactions: Slot[Tuple[Transaction, ...]] = Slot(
            backend, TRANSACTIONS_KEY,
            encode_many(encode_transaction), decode_many(decode_transaction), (),
        )
        self.budgets: Slot[Tuple[Budget, ...]] = Slot(
            backend, BUDGETS_KEY,
            encode_many(encode_budget), decode_many(decode_budget), (),
        )
        self.categories: Slot[Tuple[Category, ...]] = Slot(
            backend, CATEGORIES_KEY,
            encode_many(encode_category), decode_many(decode_category), DEFAULT_CATEGORIES,
        )
        self.settings: Slot[Settings] = Slot(
            backend, SETTINGS_KEY,
            encode_settings, decode_settings, DEFAULT_SETTINGS,
        )
