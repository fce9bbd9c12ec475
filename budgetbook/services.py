import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from budgetbook import backup, security
from budgetbook.aggregation import (
    bucket_by_category,
    bucket_by_month,
    evaluate_budget,
    evaluate_budgets,
    summarize,
)
from budgetbook.domain import (
    EXPENSE,
    INCOME,
    Budget,
    BudgetStatus,
    Category,
    FilterSpec,
    Settings,
    Summary,
    Transaction,
)
from budgetbook.events import (
    BUDGET_ADDED,
    BUDGET_ALERT,
    BUDGET_DELETED,
    CATEGORY_CHANGED,
    SETTINGS_CHANGED,
    STATE_RESTORED,
    TRANSACTION_ADDED,
    TRANSACTION_DELETED,
    EventBus,
    register_default_handlers,
)
from budgetbook.filters import by_month, filter_transactions
from budgetbook.functional import (
    Either,
    Left,
    Maybe,
    Right,
    safe_category,
    validate_budget,
    validate_category,
    validate_setting_choices,
    validate_transaction,
)
from budgetbook.storage import FinanceStore
from budgetbook import transforms

logger = logging.getLogger(__name__)


class FinanceService:
    """Session state for one user: the collections, their slots and the event bus.

    Every mutation updates memory first, then writes the affected slot
    (failures there are logged by the slot and otherwise ignored), then
    publishes an event. Reads always recompute from the full collections.
    """

    def __init__(
        self,
        store: FinanceStore,
        bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.bus = bus if bus is not None else register_default_handlers(EventBus())
        self.clock = clock
        self.alerts: List[dict] = []

        self.transactions = store.transactions.get()
        self.budgets = store.budgets.get()
        self.categories = store.categories.get()
        self.settings = store.settings.get()

    def _publish(self, name: str, payload: dict) -> List[dict]:
        results = self.bus.publish(name, payload)
        for result in results:
            if isinstance(result, dict) and "alert" in result:
                logger.warning(result["alert"], extra={"category": result.get("category")})
                self.alerts.append({**result, "timestamp": self.clock().isoformat()})
                self.bus.publish(BUDGET_ALERT, result)
        return results

    # --- transactions

    def add_transaction(
        self,
        description: str,
        amount: Any,
        type: str,
        category: str,
        date: Any = None,
        is_recurring: bool = False,
    ) -> Either[dict, Transaction]:
        result = validate_transaction(
            description, amount, type, category,
            date if date is not None else self.clock(),
            is_recurring,
        )
        if result.is_left():
            return result

        tx = result.get_or_else(None)
        self.transactions = transforms.add_transaction(self.transactions, tx)
        self.store.transactions.put(self.transactions)
        self._publish(TRANSACTION_ADDED, self._budget_payload(tx))
        return result

    def _budget_payload(self, tx: Transaction) -> dict:
        payload = {
            "id": tx.id,
            "type": tx.type,
            "category": tx.category,
            "amount": tx.amount,
            "spent": None,
            "previous": None,
            "limit": None,
        }
        budget = next((b for b in self.budgets if b.category == tx.category), None)
        now = self.clock()
        if budget is not None and by_month(now.year, now.month)(tx):
            status = evaluate_budget(budget, self.transactions, now.month, now.year)
            previous = status.spent - tx.amount if tx.type == EXPENSE else status.spent
            payload.update(spent=status.spent, previous=previous, limit=budget.limit)
        return payload

    def delete_transaction(self, tid: str) -> None:
        self.transactions = transforms.delete_transaction(self.transactions, tid)
        self.store.transactions.put(self.transactions)
        self._publish(TRANSACTION_DELETED, {"id": tid})

    # --- categories

    def add_category(self, name: str, type: str, icon: Optional[str] = None, color: Optional[str] = None) -> Either[dict, Category]:
        fields = {k: v for k, v in (("icon", icon), ("color", color)) if v is not None}
        result = validate_category(name, type, **fields)
        if result.is_left():
            return result

        category = result.get_or_else(None)
        self.categories = transforms.add_category(self.categories, category)
        self.store.categories.put(self.categories)
        self._publish(CATEGORY_CHANGED, {"id": category.id, "action": "added"})
        return result

    def update_category(self, cid: str, **changes: Any) -> Either[dict, Category]:
        current = next((c for c in self.categories if c.id == cid), None)
        if current is None:
            return Left({"error": "category_not_found", "message": f"Category with ID {cid} does not exist", "category_id": cid})

        merged = {
            "name": current.name, "type": current.type,
            "icon": current.icon, "color": current.color,
            **{k: v for k, v in changes.items() if k in ("name", "type", "icon", "color")},
        }
        result = validate_category(id=cid, **merged)
        if result.is_left():
            return result

        self.categories = transforms.update_category(self.categories, result.get_or_else(None))
        self.store.categories.put(self.categories)
        self._publish(CATEGORY_CHANGED, {"id": cid, "action": "updated"})
        return result

    def delete_category(self, cid: str) -> None:
        self.categories = transforms.delete_category(self.categories, cid)
        self.store.categories.put(self.categories)
        self._publish(CATEGORY_CHANGED, {"id": cid, "action": "deleted"})

    def category_for(self, name: str) -> Maybe[Category]:
        return safe_category(self.categories, name)

    def categories_for(self, kind: str) -> List[Category]:
        return [c for c in self.categories if c.type == kind or c.type == "both"]

    # --- budgets

    def add_budget(self, category: str, limit: Any) -> Either[dict, Budget]:
        result = validate_budget(category, limit)
        if result.is_left():
            return result

        budget = result.get_or_else(None)
        added = transforms.add_budget(self.budgets, budget)
        if added.is_left():
            return added

        self.budgets = added.get_or_else(self.budgets)
        self.store.budgets.put(self.budgets)
        self._publish(BUDGET_ADDED, {"id": budget.id, "category": budget.category})
        return result

    def delete_budget(self, bid: str) -> None:
        self.budgets = transforms.delete_budget(self.budgets, bid)
        self.store.budgets.put(self.budgets)
        self._publish(BUDGET_DELETED, {"id": bid})

    def budget_statuses(self, now: Optional[datetime] = None) -> List[BudgetStatus]:
        now = now or self.clock()
        return evaluate_budgets(self.budgets, self.transactions, now.month, now.year)

    # --- reads

    def summary(self, spec: Optional[FilterSpec] = None) -> Summary:
        return summarize(self.transactions, spec, self.clock())

    def filtered(self, spec: FilterSpec) -> tuple:
        return filter_transactions(self.transactions, spec, self.clock())

    # --- settings

    def update_settings(self, **changes: Any) -> Either[dict, Settings]:
        checked = validate_setting_choices(changes)
        if checked.is_left():
            return checked
        if "has_password_protection" in changes or "password_pin" in changes:
            return Left({"error": "use_pin_methods", "message": "PIN settings change through enable_pin / disable_pin"})

        try:
            settings = replace(self.settings, **changes)
        except TypeError as e:
            return Left({"error": "unknown_setting", "message": str(e)})
        return Right(self._save_settings(settings))

    def enable_pin(self, pin: str) -> Either[dict, Settings]:
        return security.set_pin(self.settings, pin).map(self._save_settings)

    def disable_pin(self) -> Settings:
        return self._save_settings(security.disable_pin(self.settings))

    def _save_settings(self, settings: Settings) -> Settings:
        self.settings = settings
        self.store.settings.put(settings)
        self._publish(SETTINGS_CHANGED, {})
        return settings

    # --- backup

    def export_backup(self) -> dict:
        now = self.clock()
        self._save_settings(replace(self.settings, last_backup_date=now.isoformat()))
        return backup.export_snapshot(self.transactions, self.budgets, self.categories, self.settings, now)

    def restore_backup(self, payload: Any) -> None:
        """Replace the whole state from a snapshot.

        Raises RestoreError and leaves everything untouched if the payload is malformed.
        """
        transactions, budgets, categories, settings = backup.restore_snapshot(payload)

        self.transactions = transactions
        self.budgets = budgets
        self.categories = categories
        self.settings = settings
        self.store.transactions.put(transactions)
        self.store.budgets.put(budgets)
        self.store.categories.put(categories)
        self.store.settings.put(settings)
        logger.info("State restored from backup", extra={"transactions": len(transactions)})
        self._publish(STATE_RESTORED, {"transactions": len(transactions)})


Aggregator = Callable[[Sequence[Transaction], Dict[str, Any], Dict[str, Any]], Dict[str, Any]]


def summary_step(transactions, context, acc=None) -> Dict[str, Any]:
    return {"summary": summarize(transactions, context.get("spec"), context["now"])}


def expense_breakdown_step(transactions, context, acc=None) -> Dict[str, Any]:
    return {"expense_by_category": bucket_by_category(transactions, EXPENSE)}


def income_breakdown_step(transactions, context, acc=None) -> Dict[str, Any]:
    return {"income_by_category": bucket_by_category(transactions, INCOME)}


def monthly_step(transactions, context, acc=None) -> Dict[str, Any]:
    return {"monthly": bucket_by_month(transactions)}


def budget_step(transactions, context, acc=None) -> Dict[str, Any]:
    now = context["now"]
    return {"budgets": evaluate_budgets(context.get("budgets", ()), transactions, now.month, now.year)}


class ReportService:
    """Runs injected aggregators in order and keeps each intermediate output."""

    def __init__(self, aggregators: Sequence[Aggregator]):
        self.aggregators = aggregators

    def build(self, transactions: Iterable[Transaction], context: Dict[str, Any]) -> Dict[str, Any]:
        transactions = tuple(transactions)
        report = {"steps": [], "result": {}}
        acc: Dict[str, Any] = {}
        for agg in self.aggregators:
            out = agg(transactions, context, acc)
            report["steps"].append({"aggregator": getattr(agg, "__name__", str(agg)), "output": out})
            if isinstance(out, dict):
                acc.update(out)
        report["result"] = acc
        return report


def default_report_service() -> ReportService:
    return ReportService([summary_step, expense_breakdown_step, income_breakdown_step, monthly_step, budget_step])
