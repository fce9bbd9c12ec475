import hmac
from dataclasses import replace

from budgetbook.domain import Settings
from budgetbook.functional import Either, Left, Right

PIN_LENGTH = 4


def set_pin(settings: Settings, pin: str) -> Either[dict, Settings]:
    if not isinstance(pin, str) or len(pin) != PIN_LENGTH or not pin.isdigit():
        return Left({
            "error": "invalid_pin",
            "message": f"PIN must be exactly {PIN_LENGTH} digits",
        })
    return Right(replace(settings, has_password_protection=True, password_pin=pin))


def disable_pin(settings: Settings) -> Settings:
    return replace(settings, has_password_protection=False, password_pin="")


def is_locked(settings: Settings) -> bool:
    """A session starts locked only when protection is on and a PIN is stored."""
    return settings.has_password_protection and bool(settings.password_pin)


def check_pin(settings: Settings, attempt: str) -> bool:
    if not is_locked(settings):
        return True
    return hmac.compare_digest(str(attempt or ""), settings.password_pin)
