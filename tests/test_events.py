from datetime import datetime
from decimal import Decimal

from budgetbook.events import (
    BUDGET_ALERT,
    TRANSACTION_ADDED,
    Event,
    EventBus,
    check_budget_handler,
    register_default_handlers,
)


def make_event(payload):
    return Event(name=TRANSACTION_ADDED, ts=datetime.now().isoformat(), payload=payload)


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    seen = []

    def handler(event: Event, payload: dict) -> dict:
        seen.append(event.name)
        return {"processed": True}

    bus.subscribe(TRANSACTION_ADDED, handler)
    results = bus.publish(TRANSACTION_ADDED, {"amount": Decimal("5")})

    assert results == [{"processed": True}]
    assert seen == [TRANSACTION_ADDED]
    assert bus.publish(BUDGET_ALERT, {}) == []


def test_event_bus_unsubscribe():
    bus = EventBus()
    calls = []

    def handler(event, payload):
        calls.append(payload)
        return {}

    bus.subscribe(TRANSACTION_ADDED, handler)
    bus.publish(TRANSACTION_ADDED, {})
    bus.unsubscribe(TRANSACTION_ADDED, handler)
    bus.unsubscribe(TRANSACTION_ADDED, handler)
    bus.publish(TRANSACTION_ADDED, {})

    assert len(calls) == 1


def test_check_budget_handler_exceeds_limit():
    payload = {"type": "expense", "category": "Food", "spent": Decimal("250"), "limit": Decimal("200")}
    result = check_budget_handler(make_event(payload), payload)

    assert "Budget exceeded" in result["alert"]
    assert result["category"] == "Food"
    assert result["spent"] == 250


def test_check_budget_handler_within_limit_and_pure():
    payload = {"type": "expense", "category": "Food", "spent": Decimal("200"), "limit": Decimal("200")}
    first = check_budget_handler(make_event(payload), payload)
    second = check_budget_handler(make_event(payload), payload)

    assert first == second == {"spent": Decimal("200")}


def test_check_budget_handler_ignores_income_and_unbudgeted():
    income = {"type": "income", "category": "Food", "spent": Decimal("999"), "limit": Decimal("1")}
    no_budget = {"type": "expense", "category": "Food", "spent": None, "limit": None}

    assert check_budget_handler(make_event(income), income) == {}
    assert check_budget_handler(make_event(no_budget), no_budget) == {}


def test_register_default_handlers():
    bus = register_default_handlers(EventBus())
    payload = {"type": "expense", "category": "Food", "spent": Decimal("2"), "limit": Decimal("1")}
    assert "alert" in bus.publish(TRANSACTION_ADDED, payload)[0]


def test_check_budget_handler_only_alerts_on_crossing():
    already_over = {
        "type": "expense", "category": "Food",
        "previous": Decimal("110"), "spent": Decimal("111"), "limit": Decimal("100"),
    }
    crossing = {**already_over, "previous": Decimal("100")}

    assert check_budget_handler(make_event(already_over), already_over) == {"spent": Decimal("111")}
    assert "alert" in check_budget_handler(make_event(crossing), crossing)
