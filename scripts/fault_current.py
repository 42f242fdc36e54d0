#!/usr/bin/env python3
"""
Fault Current Calculation Module
Estimate available short-circuit current from transformer data, with an
optional feeder run to the fault point.

Calculation:
- Z_base = V² / (kVA × 1000)
- Z_source = (%Z / 100) × Z_base
- Z_cable = √(r² + x²) for the feeder (library Ω/km × length / parallel runs)
- Z_total = Z_source + Z_cable     (magnitude sum, not phasor addition)
- I_sc = V / Z_total
- I_peak ≈ I_sc × (1 + 0.2 × X/R) when X/R is given

Transformer contribution only: utility source impedance is ignored, which
gives a HIGHER (conservative) value. Adding impedance magnitudes instead of
R and X components slightly overstates the total impedance at the feeder end.

Author: EE Toolbox
Standards:
- IEEE 141 (Red Book) - Industrial power systems
- IEC 60909 - Short-circuit currents in three-phase AC systems
"""

import logging
import math

from calc_results import error_result, format_value, success_result
from input_validation import (
    collect_violations,
    normalize_choice,
    number_or_default,
    validate_choice,
    validate_positive,
)
from property_library import cable_impedance_per_km, resolve_library


logger = logging.getLogger(__name__)

FAULT_LOCATIONS = ("terminal", "feeder")

# Peak factor slope per unit X/R
PEAK_XR_FACTOR = 0.2

NOTES = [
    "Transformer contribution only. Upstream utility impedance not included.",
    "Source and cable impedances are added as magnitudes (not phasors).",
    "Cable impedance based on editable library values.",
    "PRELIMINARY - validate with a detailed short-circuit study.",
]


def estimate_fault_current(inputs: dict, library=None) -> dict:
    """
    Estimate symmetrical fault current at the transformer terminals or feeder end.

    Args:
        inputs: Raw field values
            - kva: Transformer kVA rating
            - secondary_v: Transformer secondary voltage (V)
            - percent_z: Transformer impedance (%)
            - fault_location: "terminal" (default) or "feeder"
            - feeder_length: Feeder length (m)
            - conductor_size: Feeder conductor size (mm²)
            - parallels: Parallel feeder runs (default 1)
            - xr: X/R ratio for the peak estimate (optional)
        library: LibrarySnapshot (default library if None)

    Returns:
        Calculation record (results or errors)

    Example:
        >>> r = estimate_fault_current({"kva": 1000, "secondary_v": 400, "percent_z": 5})
        >>> round(r["results"]["fault_current_ka"], 1)
        50.0
    """
    lib = resolve_library(library)

    errors = collect_violations([
        validate_positive(inputs.get("kva"), "Transformer kVA"),
        validate_positive(inputs.get("secondary_v"), "Secondary voltage"),
        validate_positive(inputs.get("percent_z"), "%Z"),
        validate_choice(inputs.get("fault_location"), "Fault location",
                        FAULT_LOCATIONS, "terminal"),
    ])
    if errors:
        return error_result(errors)

    kva = number_or_default(inputs.get("kva"))
    secondary_v = number_or_default(inputs.get("secondary_v"))
    percent_z = number_or_default(inputs.get("percent_z"))
    location = normalize_choice(inputs.get("fault_location"), "terminal")

    # Transformer impedance in ohms
    z_base = secondary_v * secondary_v / (kva * 1000)
    z_source = (percent_z / 100) * z_base

    warnings = []
    cable_r = 0.0
    cable_x = 0.0
    z_cable = 0.0
    z_total = z_source

    if location == "feeder":
        length = number_or_default(inputs.get("feeder_length"))
        parallels = max(1.0, number_or_default(inputs.get("parallels"), 1.0))
        size = number_or_default(inputs.get("conductor_size"))
        per_km, found = cable_impedance_per_km(lib, size)
        if not found:
            warnings.append(
                f"Conductor size {format_value(size)} mm² not in the reactance library; "
                f"default r={per_km['r']} Ω/km, x={per_km['x']} Ω/km used.")
        if length <= 0:
            warnings.append("Feeder length not given; cable impedance is zero.")

        cable_r = (per_km["r"] / 1000) * length / parallels
        cable_x = (per_km["x"] / 1000) * length / parallels
        z_cable = math.hypot(cable_r, cable_x)
        z_total = z_source + z_cable

    if not 0 < z_total < math.inf:
        return error_result(["Fault impedance is out of range; no fault current estimated."])
    fault_current = secondary_v / z_total

    xr = number_or_default(inputs.get("xr"))
    peak = fault_current * (1 + PEAK_XR_FACTOR * xr) if xr > 0 else None

    steps = [
        f"Zbase = V² / S = {format_value(z_base, 'Ω')}",
        f"Zsource = %Z × Zbase = {format_value(z_source, 'Ω')}",
        f"Zcable = √(R² + X²) = {format_value(z_cable, 'Ω')}",
        f"Ztotal = Zsource + Zcable = {format_value(z_total, 'Ω')}",
        f"Isc = V / Ztotal = {format_value(fault_current, 'A')}",
    ]
    if peak is not None:
        steps.append(f"Ipeak ≈ Isc × (1 + 0.2 × X/R) = {format_value(peak, 'A')}")

    logger.debug(
        "Fault current: %.0f kVA, %.2f%%Z, %s -> %.0f A", kva, percent_z, location, fault_current)

    return success_result(
        {
            "fault_location": location,
            "z_base_ohm": z_base,
            "z_source_ohm": z_source,
            "cable_r_ohm": cable_r,
            "cable_x_ohm": cable_x,
            "z_cable_ohm": z_cable,
            "z_total_ohm": z_total,
            "fault_current_a": fault_current,
            "fault_current_ka": fault_current / 1000,
            "peak_current_a": peak,
        },
        steps,
        warnings,
        NOTES,
    )


if __name__ == "__main__":
    print("Testing fault_current module...")
    print("=" * 60)

    result = estimate_fault_current({"kva": 2000, "secondary_v": 400, "percent_z": 6})
    print(f"\n2000 kVA, 6% Z @ 400V, transformer terminals:")
    print(f"  Available fault: {result['results']['fault_current_ka']:.1f} kA")

    result = estimate_fault_current({
        "kva": 2000, "secondary_v": 400, "percent_z": 6, "xr": 8,
        "fault_location": "feeder", "feeder_length": 80, "conductor_size": 95, "parallels": 2,
    })
    res = result["results"]
    print(f"\nAfter 80m of 2 × 95mm²:")
    print(f"  Available fault: {res['fault_current_ka']:.1f} kA")
    print(f"  Peak (X/R 8): {res['peak_current_a'] / 1000:.1f} kA")
    print(f"  Zcable: {res['z_cable_ohm']:.5f} Ω")

    print("\n" + "=" * 60)
    print("All tests completed!")
