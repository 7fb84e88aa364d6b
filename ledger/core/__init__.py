"""
Core module - error kinds shared by the service and API layers.
"""

from ledger.core.exceptions import (
    LedgerError,
    ValidationError,
    NotFoundError,
    StorageError,
)

__all__ = [
    "LedgerError",
    "ValidationError",
    "NotFoundError",
    "StorageError",
]
