"""
Exceptions raised around the validation core
"""

from typing import List


class InvoiceInputError(ValueError):
    """Raised when an invoice payload is structurally malformed"""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid invoice payload")


class ValidationFailedError(RuntimeError):
    """Raised when a validation run cannot produce a complete result"""
