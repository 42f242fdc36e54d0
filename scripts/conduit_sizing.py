#!/usr/bin/env python3
"""
Conduit & Wireway Sizing Module
Raceway fill check and size recommendation from conductor count and cable OD.

Implements:
- Total conductor cross-section from a single assumed cable OD
- Actual fill of the installed conduit and wireway
- Smallest catalog conduit / wireway meeting the fill limit

Fill % = Σ cable area / raceway internal area × 100
Required raceway area = Σ cable area / (fill limit / 100)

Author: EE Toolbox
Standards: NEC Chapter 9 Table 1 (40% fill, 3+ conductors), NEC 376.22 (20% wireway fill)
"""

import logging
from typing import Optional

from calc_results import error_result, format_value, success_result
from input_validation import (
    collect_violations,
    normalize_choice,
    number_or_default,
    validate_count,
    validate_percent,
    validate_positive,
)
from property_library import circle_area, conduit_catalog, resolve_library
from size_selection import select_size_or_largest


logger = logging.getLogger(__name__)

DEFAULT_CONDUIT_TYPE = "pvc"

# (input field, role label)
CONDUCTOR_ROLES = [
    ("phase_count", "Phase"),
    ("neutral_count", "Neutral"),
    ("ground_count", "Ground"),
    ("spare_count", "Spares"),
]

NOTES = [
    "Uses user-defined cable OD for all conductors.",
    "Conduit and wireway libraries are editable in the property library.",
]


def size_conduit(inputs: dict, library=None) -> dict:
    """
    Size conduit and wireway for a group of identical cables.

    Args:
        inputs: Raw field values
            - phase_count, neutral_count, ground_count, spare_count: conductor counts (>= 0)
            - conductor_size: Conductor size (mm²)
            - cable_od: Cable outer diameter (mm)
            - conduit_type: Library conduit type (pvc, emt, rmc, hdpe)
            - conduit_id: Installed conduit internal diameter (mm)
            - fill_limit: Conduit fill limit (%), default from library
            - wireway_fill: Wireway fill limit (%), default from library
            - wireway_w, wireway_h: Installed wireway width/height (mm)
        library: LibrarySnapshot (default library if None)

    Returns:
        Calculation record (results or errors)
    """
    lib = resolve_library(library)

    errors = collect_violations(
        [validate_count(inputs.get(field), f"{label} conductors")
         for field, label in CONDUCTOR_ROLES]
        + [
            validate_positive(inputs.get("conductor_size"), "Conductor size"),
            validate_positive(inputs.get("cable_od"), "Cable OD"),
            validate_positive(inputs.get("conduit_id"), "Conduit internal diameter"),
            validate_percent(inputs.get("fill_limit"), "Conduit fill limit"),
            validate_percent(inputs.get("wireway_fill"), "Wireway fill limit"),
        ]
    )
    if errors:
        return error_result(errors)

    counts = [int(number_or_default(inputs.get(field))) for field, _ in CONDUCTOR_ROLES]
    total_conductors = sum(counts)
    cable_od = number_or_default(inputs.get("cable_od"))
    conduit_id = number_or_default(inputs.get("conduit_id"))
    conduit_type = normalize_choice(inputs.get("conduit_type"), DEFAULT_CONDUIT_TYPE)

    conduit_limit_pct = number_or_default(
        inputs.get("fill_limit"), lib.fill_limits["conduit_percent"])
    wireway_limit_pct = number_or_default(
        inputs.get("wireway_fill"), lib.fill_limits["wireway_percent"])

    # Conductor area
    cable_area = circle_area(cable_od)
    total_area = cable_area * total_conductors

    # Required raceway area at the fill limit
    required_conduit_area = total_area / (conduit_limit_pct / 100)
    required_wireway_area = total_area / (wireway_limit_pct / 100)

    # Actual fill of the installed raceways
    installed_conduit_area = circle_area(conduit_id)
    if installed_conduit_area <= 0:
        return error_result(["Conduit internal diameter is too small to size against."])
    fill_pct = total_area / installed_conduit_area * 100

    wireway_w = number_or_default(inputs.get("wireway_w"))
    wireway_h = number_or_default(inputs.get("wireway_h"))
    installed_wireway_area = wireway_w * wireway_h
    wireway_fill_pct: Optional[float] = None
    if installed_wireway_area > 0:
        wireway_fill_pct = total_area / installed_wireway_area * 100

    warnings = []

    # Recommended sizes
    catalog = conduit_catalog(lib, conduit_type)
    recommended_conduit, conduit_matched = select_size_or_largest(
        catalog, required_conduit_area, circle_area)
    if recommended_conduit is None:
        warnings.append(
            f"Conduit type '{conduit_type}' is not in the library; no conduit recommended.")
    elif not conduit_matched:
        warnings.append(
            f"No {conduit_type.upper()} size reaches the required area; "
            f"largest size ({format_value(recommended_conduit)} mm) shown.")

    wireway, wireway_matched = select_size_or_largest(
        lib.fill_limits["wireway_sizes"], required_wireway_area,
        lambda size: size["w"] * size["h"])
    recommended_wireway = None
    if wireway is not None:
        recommended_wireway = {"w": wireway["w"], "h": wireway["h"]}
        if not wireway_matched:
            warnings.append(
                "No library wireway reaches the required area; largest size "
                f"({format_value(wireway['w'])} × {format_value(wireway['h'])} mm) shown.")

    if fill_pct > conduit_limit_pct:
        warnings.append("Conduit fill exceeds selected limit.")
    if wireway_fill_pct is None:
        warnings.append("Installed wireway dimensions not given; wireway fill not checked.")
    elif wireway_fill_pct > wireway_limit_pct:
        warnings.append("Wireway fill exceeds selected limit.")

    conductor_summary = [
        {"role": label, "count": count, "od_mm": cable_od}
        for (_, label), count in zip(CONDUCTOR_ROLES, counts)
    ]

    steps = [
        f"Total conductors = {format_value(total_conductors)} conductors",
        f"Cable area = π × (OD/2)^2 = {format_value(cable_area, 'mm²')}",
        f"Total conductor area = {format_value(total_area, 'mm²')}",
        f"Required conduit area = Total area / fill limit = {format_value(required_conduit_area, 'mm²')}",
        f"Required wireway area = Total area / wireway fill = {format_value(required_wireway_area, 'mm²')}",
        f"Conduit fill = Total area / (π × (ID/2)^2) × 100 = {format_value(fill_pct, '%')}",
    ]
    if wireway_fill_pct is not None:
        steps.append(
            f"Wireway fill = Total area / (W × H) × 100 = {format_value(wireway_fill_pct, '%')}")

    logger.debug(
        "Conduit sizing: %s conductors, fill %.2f%%, recommended %s %s",
        total_conductors, fill_pct, conduit_type, recommended_conduit)

    return success_result(
        {
            "total_conductors": total_conductors,
            "cable_area_mm2": cable_area,
            "total_area_mm2": total_area,
            "required_conduit_area_mm2": required_conduit_area,
            "required_wireway_area_mm2": required_wireway_area,
            "installed_conduit_area_mm2": installed_conduit_area,
            "installed_wireway_area_mm2": installed_wireway_area,
            "conduit_fill_pct": fill_pct,
            "wireway_fill_pct": wireway_fill_pct,
            "conduit_fill_limit_pct": conduit_limit_pct,
            "wireway_fill_limit_pct": wireway_limit_pct,
            "conduit_type": conduit_type,
            "recommended_conduit_mm": recommended_conduit,
            "recommended_wireway": recommended_wireway,
            "conductor_summary": conductor_summary,
        },
        steps,
        warnings,
        NOTES,
    )


if __name__ == "__main__":
    print("Testing conduit_sizing module...")
    print("=" * 60)

    result = size_conduit({
        "phase_count": 3, "neutral_count": 1, "ground_count": 1, "spare_count": 1,
        "conductor_size": 70, "cable_od": 22, "conduit_type": "emt", "conduit_id": 63,
        "fill_limit": 40, "wireway_fill": 20, "wireway_w": 200, "wireway_h": 100,
    })
    res = result["results"]
    print(f"\n6 × 22mm OD in 63mm EMT:")
    print(f"  Conduit fill: {res['conduit_fill_pct']:.1f}%")
    print(f"  Recommended conduit: {res['recommended_conduit_mm']:.0f} mm")
    print(f"  Recommended wireway: {res['recommended_wireway']}")
    print(f"  Warnings: {result['warnings']}")

    print("\n" + "=" * 60)
    print("All tests completed!")
