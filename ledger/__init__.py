"""
Circle Ledger - bookkeeping backend for currency trading circles
"""

__version__ = "1.0.0"
