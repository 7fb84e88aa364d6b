"""
Ledger error kinds.

Each error carries the HTTP status the API layer answers with.
"""


class LedgerError(Exception):
    """Base class for errors raised by the ledger service."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Missing or invalid input, or a sell the circle cannot accept."""

    status_code = 400


class NotFoundError(LedgerError):
    """Referenced circle does not exist."""

    status_code = 404


class StorageError(LedgerError):
    """Any failure of the relational store. Details stay in the server log."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
