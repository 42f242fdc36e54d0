#!/usr/bin/env python3
"""
Input Validation Module
Parse raw calculation inputs and batch-check required fields.

Inputs arrive as form values: numeric strings, numbers, enum strings,
booleans. Every module checks its whole required-field set up front and
reports all violations together, e.g.:

    >>> collect_violations([
    ...     validate_positive("", "Voltage"),
    ...     validate_positive("400", "Length"),
    ...     validate_positive("-2", "Conductor size"),
    ... ])
    ['Voltage must be greater than 0.', 'Conductor size must be greater than 0.']

Author: EE Toolbox
"""

import math
from typing import Iterable, Optional

def is_blank(value) -> bool:
    """True for None, empty and whitespace-only strings."""
    return value is None or (isinstance(value, str) and not value.strip())

def parse_number(value) -> Optional[float]:
    """
    Parse a raw input value as a float.

    Returns None when the value is absent, non-numeric or a boolean.
    Non-finite values (inf, nan) are returned as parsed; callers decide.
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        return float(str(value).strip())
    except (ValueError, TypeError):
        return None

def number_or_default(value, default: float = 0.0) -> float:
    """Parse a number, falling back to default when absent, invalid or non-finite."""
    number = parse_number(value)
    if number is None or not math.isfinite(number):
        return default
    return number

def validate_positive(value, label: str) -> Optional[str]:
    """
    Check that value parses to a finite number > 0.

    Args:
        value: Raw input value
        label: Field label used in the message

    Returns:
        Violation message, or None when the value is valid
    """
    number = parse_number(value)
    if number is None or not math.isfinite(number) or number <= 0:
        return f"{label} must be greater than 0."
    return None

def validate_percent(value, label: str) -> Optional[str]:
    """Check an optional percentage limit: absent is allowed, otherwise in (0, 100]."""
    if is_blank(value):
        return None
    number = parse_number(value)
    if number is None or not math.isfinite(number) or not 0 < number <= 100:
        return f"{label} must be between 0 and 100."
    return None

def validate_count(value, label: str) -> Optional[str]:
    """Check an optional conductor/device count: absent is 0, otherwise a whole number >= 0."""
    if is_blank(value):
        return None
    number = parse_number(value)
    if number is None or not math.isfinite(number) or number < 0 or number != int(number):
        return f"{label} must be a whole number 0 or greater."
    return None

def validate_range(value, label: str, low: float, high: float) -> Optional[str]:
    """Check an optional number against an inclusive range (absent is allowed)."""
    if is_blank(value):
        return None
    number = parse_number(value)
    if number is None or not math.isfinite(number) or not low <= number <= high:
        return f"{label} must be between {low:g} and {high:g}."
    return None

def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)

def normalize_choice(value, default: str) -> str:
    """Lower-cased enum value, or default when absent."""
    if is_blank(value):
        return default
    return str(value).strip().lower()

def validate_choice(value, label: str, choices: Iterable[str], default: str) -> Optional[str]:
    """Check an enum field against its recognized values (absent takes the default)."""
    choices = tuple(choices)
    if normalize_choice(value, default) not in choices:
        return f"{label} must be one of: {', '.join(choices)}."
    return None

def collect_violations(checks: Iterable[Optional[str]]) -> list:
    """Keep the violation messages, dropping the passed (None) checks, in order."""
    return [message for message in checks if message]
