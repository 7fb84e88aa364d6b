"""
Services package
"""

from ledger.services.ledger_service import LedgerService

__all__ = ["LedgerService"]
