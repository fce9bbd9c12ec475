"""Exceptions for infrastructure failures.

Input validation does not raise; it returns ``Left`` results (see
``budgetbook.functional``).
"""


class BudgetBookError(Exception):
    """Base exception for the application"""

    pass


class AdviceUnavailableError(BudgetBookError):
    """Advice service is not configured, timed out or returned nothing usable"""

    pass


class RestoreError(BudgetBookError):
    """Backup payload is malformed; nothing was restored"""

    pass


class InvalidRecordError(BudgetBookError, ValueError):
    """A stored or restored record fails the same validation as user input"""

    def __init__(self, message: str, error: dict):
        super().__init__(message)
        self.error = error
