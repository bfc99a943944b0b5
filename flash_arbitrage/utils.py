"""
Common helpers for output formatting.

Amounts are integers in atomic units everywhere inside the bot; these helpers
only exist for presenting them.
"""

import json
from enum import Enum
from typing import Any


# JSON utilities
def safe_json_dump(data: Any, **kwargs) -> str:
    """
    Safely serialize data to JSON with sensible defaults.

    Args:
        data: Data to serialize
        **kwargs: Additional arguments to json.dumps

    Returns:
        JSON string
    """
    defaults = {"ensure_ascii": False, "indent": 2, "default": _json_default_handler}
    defaults.update(kwargs)
    return json.dumps(data, **defaults)


def _json_default_handler(obj: Any) -> Any:
    """Default JSON serialization handler for custom types."""
    if isinstance(obj, Enum):
        return obj.value
    elif hasattr(obj, "to_dict"):
        return obj.to_dict()
    elif hasattr(obj, "__dict__"):
        return obj.__dict__
    else:
        return str(obj)


# Amount utilities
def format_units(amount: int, decimals: int = 18) -> str:
    """Format an atomic amount as a decimal string, e.g. 1500000 (6) -> '1.5'."""
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative: {decimals}")
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), 10**decimals)
    if not fraction:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{str(fraction).rjust(decimals, '0').rstrip('0')}"


def format_signed_units(amount: int, decimals: int = 18) -> str:
    """Like format_units with an explicit sign, e.g. '+0.25' or '-3'."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}{format_units(abs(amount), decimals)}"
