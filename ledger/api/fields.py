"""
Shared request field validators
"""

from typing import Any


def reject_bool(value: Any) -> Any:
    """
    Refuse JSON booleans for numeric fields

    Pydantic's lax mode turns ``true`` into ``1``, which would silently
    address user/circle 1 or record a quantity of 1.
    """
    if isinstance(value, bool):
        raise ValueError("must be a number, not a boolean")
    return value
