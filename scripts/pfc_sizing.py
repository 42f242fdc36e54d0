#!/usr/bin/env python3
"""
Power Factor Correction Module
Size a capacitor bank to raise the power factor from existing to target.

kvar = kW × (tan φ1 − tan φ2),  φ = arccos(PF)

The bank is rounded up to the next standard rating. Line current before and
after correction shows the feeder relief.

Author: EE Toolbox
Standards: IEEE 18 (shunt power capacitors), IEC 60831
"""

import logging
import math

from calc_results import error_result, format_value, success_result
from input_validation import (
    clamp,
    collect_violations,
    normalize_choice,
    number_or_default,
    validate_choice,
    validate_positive,
)
from size_selection import select_size


logger = logging.getLogger(__name__)

# Standard capacitor bank ratings (kvar)
STANDARD_BANKS_KVAR = [5, 10, 15, 20, 25, 30, 40, 50, 75, 100, 150, 200, 300, 400, 500]

SYSTEMS = ("3ph", "1ph")

# Power factor range used for the load angle
PF_MIN = 0.1
PF_MAX = 1.0

NOTES = [
    "Capacitor bank rounded up to the next standard size.",
    "Annual savings use the utility penalty rate if provided.",
]


def line_current(kw: float, voltage: float, power_factor: float, system: str = "3ph") -> float:
    """Line current (A) for a real power load at a given power factor."""
    if system == "3ph":
        return kw * 1000 / (math.sqrt(3) * voltage * power_factor)
    return kw * 1000 / (voltage * power_factor)


def size_capacitor_bank(inputs: dict, library=None) -> dict:
    """
    Size a capacitor bank for power factor correction.

    Args:
        inputs: Raw field values
            - kw: Real power (kW)
            - pf_existing: Existing power factor (clamped to 0.1-1)
            - pf_target: Target power factor (clamped to existing-1)
            - voltage: System voltage (V)
            - system: "3ph" (default) or "1ph"
            - penalty: Utility penalty rate per kvar per year (optional)
        library: Unused; accepted for a uniform calculation signature

    Returns:
        Calculation record (results or errors)
    """
    errors = collect_violations([
        validate_positive(inputs.get("kw"), "Real power"),
        validate_positive(inputs.get("pf_existing"), "Existing PF"),
        validate_positive(inputs.get("pf_target"), "Target PF"),
        validate_positive(inputs.get("voltage"), "Voltage"),
        validate_choice(inputs.get("system"), "System", SYSTEMS, "3ph"),
    ])
    if errors:
        return error_result(errors)

    kw = number_or_default(inputs.get("kw"))
    voltage = number_or_default(inputs.get("voltage"))
    system = normalize_choice(inputs.get("system"), "3ph")
    raw_target = number_or_default(inputs.get("pf_target"))

    pf_existing = clamp(number_or_default(inputs.get("pf_existing")), PF_MIN, PF_MAX)
    pf_target = clamp(raw_target, pf_existing, PF_MAX)

    warnings = []
    if raw_target < pf_existing:
        warnings.append(
            f"Target PF {format_value(raw_target)} is below the existing PF; "
            f"no correction applied.")

    phi1 = math.acos(pf_existing)
    phi2 = math.acos(pf_target)
    kvar = kw * (math.tan(phi1) - math.tan(phi2))

    recommended = select_size(STANDARD_BANKS_KVAR, kvar)
    if recommended is None:
        recommended = kvar
        warnings.append(
            f"Required {format_value(kvar, 'kvar')} exceeds the largest standard bank "
            f"({STANDARD_BANKS_KVAR[-1]} kvar); consider multiple banks.")

    current_before = line_current(kw, voltage, pf_existing, system)
    current_after = line_current(kw, voltage, pf_target, system)
    current_reduction_pct = (1 - current_after / current_before) * 100

    penalty = number_or_default(inputs.get("penalty"))
    annual_savings = kvar * penalty if penalty > 0 else None

    steps = [
        f"φ1 = arccos(PF₁) = {format_value(phi1, 'rad')}",
        f"φ2 = arccos(PF₂) = {format_value(phi2, 'rad')}",
        f"kvar = kW × (tanφ1 - tanφ2) = {format_value(kvar, 'kvar')}",
        f"Recommended bank = {format_value(recommended, 'kvar')}",
        f"Line current {format_value(current_before, 'A')} → {format_value(current_after, 'A')}",
    ]

    logger.debug(
        "PFC: %.1f kW, PF %.3f -> %.3f, %.1f kvar (bank %s)",
        kw, pf_existing, pf_target, kvar, recommended)

    return success_result(
        {
            "pf_existing": pf_existing,
            "pf_target": pf_target,
            "phi1_rad": phi1,
            "phi2_rad": phi2,
            "kvar_required": kvar,
            "recommended_kvar": recommended,
            "current_before_a": current_before,
            "current_after_a": current_after,
            "current_reduction_pct": current_reduction_pct,
            "annual_savings": annual_savings,
        },
        steps,
        warnings,
        NOTES,
    )


if __name__ == "__main__":
    print("Testing pfc_sizing module...")
    print("=" * 60)

    result = size_capacitor_bank({
        "kw": 500, "pf_existing": 0.75, "pf_target": 0.95, "voltage": 400, "penalty": 2,
    })
    res = result["results"]
    print(f"\n500 kW, PF 0.75 → 0.95 @ 400V:")
    print(f"  Required: {res['kvar_required']:.1f} kvar")
    print(f"  Recommended bank: {res['recommended_kvar']} kvar")
    print(f"  Current: {res['current_before_a']:.0f}A → {res['current_after_a']:.0f}A")
    print(f"  Annual savings: {res['annual_savings']:.0f}")

    print("\n" + "=" * 60)
    print("All tests completed!")
