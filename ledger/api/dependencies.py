"""
FastAPI dependencies
"""

from fastapi import Request

from ledger.services.ledger_service import LedgerService


def get_ledger_service(request: Request) -> LedgerService:
    """
    Ledger service attached to the application at startup

    Usage in handlers:
        async def handler(ledger: LedgerService = Depends(get_ledger_service)):
            ...
    """
    return request.app.state.ledger
