"""
Database layer: models, store client and query functions
"""

from ledger.database.engine import Database
from ledger.database.models import Base, User, Circle, Sell

__all__ = ["Database", "Base", "User", "Circle", "Sell"]
