from typing import Callable, Dict, List, NamedTuple
from datetime import datetime

__all__ = [
    'TRANSACTION_ADDED', 'TRANSACTION_DELETED', 'BUDGET_ADDED', 'BUDGET_DELETED',
    'CATEGORY_CHANGED', 'SETTINGS_CHANGED', 'STATE_RESTORED', 'BUDGET_ALERT',
    'Event', 'EventBus', 'check_budget_handler', 'register_default_handlers',
]

TRANSACTION_ADDED = "TRANSACTION_ADDED"
TRANSACTION_DELETED = "TRANSACTION_DELETED"
BUDGET_ADDED = "BUDGET_ADDED"
BUDGET_DELETED = "BUDGET_DELETED"
CATEGORY_CHANGED = "CATEGORY_CHANGED"
SETTINGS_CHANGED = "SETTINGS_CHANGED"
STATE_RESTORED = "STATE_RESTORED"
BUDGET_ALERT = "BUDGET_ALERT"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = self._subscribers.get(name)
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in list(handlers)]

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


def check_budget_handler(event: Event, payload: dict) -> dict:
    """Flag an expense that takes its category past the monthly budget.

    Payload carries ``type``, ``category``, ``spent`` (month total including
    the new transaction), ``limit`` (None when no budget exists or the
    transaction falls outside the current month) and optionally ``previous``,
    the month total before it. A category that was already over its limit
    does not alert again.
    """
    if payload.get("type") != "expense" or payload.get("limit") is None:
        return {}

    spent = payload["spent"]
    limit = payload["limit"]
    previous = payload.get("previous")
    category = payload.get("category", "")
    if spent > limit and (previous is None or previous <= limit):
        return {
            "alert": f"Budget exceeded for category {category}: {spent} / {limit}",
            "category": category,
            "spent": spent,
            "limit": limit,
        }
    return {"spent": spent}


def register_default_handlers(bus: EventBus) -> EventBus:
    bus.subscribe(TRANSACTION_ADDED, check_budget_handler)
    return bus
