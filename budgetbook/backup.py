import json
from datetime import datetime
from typing import Any, Tuple

from budgetbook.domain import Budget, Category, Settings, Transaction
from budgetbook.exceptions import RestoreError
from budgetbook.storage import (
    decode_budget,
    decode_category,
    decode_many,
    decode_settings,
    decode_transaction,
    encode_budget,
    encode_category,
    encode_many,
    encode_settings,
    encode_transaction,
)

SNAPSHOT_KEYS = ("transactions", "budgets", "categories", "settings")


def export_snapshot(
    transactions: Tuple[Transaction, ...],
    budgets: Tuple[Budget, ...],
    categories: Tuple[Category, ...],
    settings: Settings,
    now: datetime,
) -> dict:
    return {
        "transactions": encode_many(encode_transaction)(transactions),
        "budgets": encode_many(encode_budget)(budgets),
        "categories": encode_many(encode_category)(categories),
        "settings": encode_settings(settings),
        "timestamp": now.isoformat(),
    }


def dumps_snapshot(snapshot: dict) -> str:
    return json.dumps(snapshot, indent=2, ensure_ascii=False)


def restore_snapshot(
    payload: Any,
) -> Tuple[Tuple[Transaction, ...], Tuple[Budget, ...], Tuple[Category, ...], Settings]:
    """Decode a whole snapshot, or raise RestoreError without returning any part of it.

    ``payload`` may be the exported dict or its JSON text (str or bytes).
    """
    if isinstance(payload, (bytes, str)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise RestoreError("Backup file is not valid JSON") from e

    if not isinstance(payload, dict):
        raise RestoreError("Backup must be a JSON object")

    missing = [k for k in SNAPSHOT_KEYS if k not in payload]
    if missing:
        raise RestoreError(f"Backup is missing: {', '.join(missing)}")

    try:
        transactions = decode_many(decode_transaction)(payload["transactions"])
        budgets = decode_many(decode_budget)(payload["budgets"])
        categories = decode_many(decode_category)(payload["categories"])
        settings = decode_settings(payload["settings"])
    except (KeyError, TypeError, ValueError) as e:
        raise RestoreError(f"Backup contains invalid records: {e}") from e

    return transactions, budgets, categories, settings
