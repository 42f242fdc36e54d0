"""
Result records shared by all calculation modules.

A calculation returns exactly one of:

    {"results": {...}, "derivation_steps": [...], "warnings": [...], "notes": [...]}
    {"errors": [...], "kind": "InvalidInput"}
"""

import math
from typing import Optional


INVALID_INPUT = "InvalidInput"


def success_result(
    results: dict,
    steps: list,
    warnings: Optional[list] = None,
    notes: Optional[list] = None
) -> dict:
    """Build a successful calculation record."""
    return {
        "results": results,
        "derivation_steps": list(steps),
        "warnings": list(warnings or []),
        "notes": list(notes or []),
    }


def error_result(errors: list) -> dict:
    """Build a failed calculation record (no numeric fields)."""
    return {
        "errors": list(errors),
        "kind": INVALID_INPUT,
    }


def is_error(result: dict) -> bool:
    return "errors" in result


def format_value(value: float, unit: str = "") -> str:
    """
    Format a number for derivation text: up to 3 decimals, thousands separators.

    >>> format_value(2280.796, "mm²")
    '2,280.796 mm²'
    >>> format_value(6.0)
    '6'
    """
    if value is None:
        text = "N/A"
    elif isinstance(value, float) and not math.isfinite(value):
        text = str(value)
    else:
        text = f"{value:,.3f}".rstrip("0").rstrip(".")
        if text == "-0":
            text = "0"
    return f"{text} {unit}" if unit else text
