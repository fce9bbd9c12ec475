import logging
from decimal import Decimal

from budgetbook.config import load_config
from budgetbook.domain import Settings
from budgetbook.formatting import budget_level, format_amount, format_money
from budgetbook.log import BudgetBookJsonFormatter, setup_logging
from budgetbook.security import check_pin, disable_pin, is_locked, set_pin


def test_set_pin_requires_four_digits():
    settings = Settings()
    for bad in ("123", "12345", "12a4", ""):
        assert set_pin(settings, bad).get_error()["error"] == "invalid_pin"

    locked = set_pin(settings, "0420").get_or_else(None)
    assert locked.has_password_protection is True
    assert locked.password_pin == "0420"


def test_pin_gate():
    locked = set_pin(Settings(), "1234").get_or_else(None)

    assert is_locked(locked)
    assert check_pin(locked, "1234")
    assert not check_pin(locked, "4321")
    assert not check_pin(locked, None)


def test_disable_pin_unlocks():
    settings = disable_pin(set_pin(Settings(), "1234").get_or_else(None))
    assert not is_locked(settings)
    assert check_pin(settings, "anything")


def test_protection_without_pin_is_not_locked():
    assert not is_locked(Settings(has_password_protection=True, password_pin=""))


def test_format_money_by_language():
    assert format_money(Decimal("1234.5"), "en") == "1,234.50"
    assert format_money(Decimal("1234.5"), "pt") == "1.234,50"
    assert format_money(Decimal("-0.005"), "en") == "-0.01"


def test_format_amount_uses_currency_symbol():
    assert format_amount(Decimal("10"), Settings(language="pt", currency="BRL")) == "R$ 10,00"
    assert format_amount(Decimal("10"), Settings(language="en", currency="EUR")) == "€ 10.00"


def test_budget_level():
    assert budget_level(Decimal("100")) == "over"
    assert budget_level(Decimal("80")) == "warning"
    assert budget_level(Decimal("79.99")) == "ok"


def test_load_config_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("BUDGETBOOK_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    monkeypatch.setenv("ADVICE_TIMEOUT_SECONDS", "5")
    monkeypatch.delenv("GEMINI_MODEL", raising=False)

    config = load_config(str(tmp_path / "missing.env"))

    assert config.data_dir == str(tmp_path)
    assert config.advice_enabled
    assert config.advice_timeout_seconds == 5.0
    assert config.gemini_model == "gemini-2.0-flash"


def test_setup_logging_installs_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("debug")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, BudgetBookJsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
