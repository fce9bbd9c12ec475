from decimal import ROUND_HALF_UP, Decimal

from budgetbook.domain import Settings

CURRENCY_SYMBOLS = {
    "BRL": "R$",
    "USD": "$",
    "EUR": "€",
}

WARNING_PERCENTAGE = Decimal("80")
OVER_PERCENTAGE = Decimal("100")


def format_money(value, language: str = "en") -> str:
    """Two decimals with grouping; Portuguese swaps the separators (1.234,56)."""
    amount = Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    text = f"{amount:,.2f}"
    if language == "pt":
        text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return text


def format_amount(value, settings: Settings) -> str:
    symbol = CURRENCY_SYMBOLS.get(settings.currency, settings.currency)
    return f"{symbol} {format_money(value, settings.language)}"


def budget_level(percentage) -> str:
    percentage = Decimal(percentage)
    if percentage >= OVER_PERCENTAGE:
        return "over"
    if percentage >= WARNING_PERCENTAGE:
        return "warning"
    return "ok"
