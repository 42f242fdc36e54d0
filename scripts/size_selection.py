"""
Size Selection Module
Pick the first catalog entry that satisfies a required value.

Used for conduit diameter (projected to circular area), wireway size
(projected to w × h) and capacitor bank rating (identity).
"""

from typing import Callable, Optional, Sequence


def select_size(
    catalog: Sequence,
    required: float,
    projection: Optional[Callable] = None
):
    """
    First entry of an ascending catalog whose projection is >= required.

    Args:
        catalog: Catalog entries in ascending order
        required: Required value in projected units
        projection: Maps an entry to a comparable number (identity if None)

    Returns:
        The matching entry, or None when no entry qualifies
    """
    for entry in catalog:
        value = projection(entry) if projection else entry
        if value >= required:
            return entry
    return None


def select_size_or_largest(
    catalog: Sequence,
    required: float,
    projection: Optional[Callable] = None
) -> tuple:
    """
    Like select_size, falling back to the largest entry.

    Returns:
        (entry, matched) - entry is None only for an empty catalog;
        matched is False when the fallback was used
    """
    entry = select_size(catalog, required, projection)
    if entry is not None:
        return entry, True
    if not catalog:
        return None, False
    return catalog[-1], False
