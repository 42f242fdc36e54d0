#!/usr/bin/env python3
"""
Voltage Drop Calculation Module
Calculate AC voltage drop for a cable run with resistive or R+X method.

Implements:
- Load current from kW and power factor when current is not given
- Temperature-corrected conductor resistance from the property library
- One-way or loop length convention, parallel runs
- Pass/fail against an allowed drop percentage

Formula:
Vd = k × I × (R × cos(φ) + X × sin(φ))      k = √3 (3-phase), 2 (1-phase)
Vd% = (Vd / V) × 100

Author: EE Toolbox
Standards: IEC 60364-5-52 Annex G, NEC 210.19 Informational Note
"""

import logging
import math
from typing import Optional

from calc_results import error_result, format_value, success_result
from input_validation import (
    clamp,
    collect_violations,
    normalize_choice,
    number_or_default,
    parse_number,
    validate_choice,
    validate_positive,
)
from property_library import conductor_resistance, resolve_library


logger = logging.getLogger(__name__)

DEFAULT_MATERIAL = "cu"
DEFAULT_TEMPERATURE_C = 75
DEFAULT_DROP_LIMIT_PCT = 3.0

SYSTEMS = ("3ph", "1ph")
LENGTH_TYPES = ("oneway", "loop")
METHODS = ("r", "rx")

# Power factor range used for the load angle
PF_MIN = 0.1
PF_MAX = 1.0

NOTES = [
    "R calculated from resistivity and temperature coefficient library.",
    "Select R+X method to include reactance and power factor angle.",
]


def resolve_load_current(
    current: Optional[float],
    power_kw: Optional[float],
    power_factor: float,
    voltage: float,
    system: str = "3ph"
) -> tuple:
    """
    Load current as given, or derived from real power.

    S = P / PF
    I = S / (√3 × V)   (3-phase)
    I = S / V          (1-phase)

    Args:
        current: Load current (A), None/0 if not given
        power_kw: Real power (kW)
        power_factor: Load power factor
        voltage: System voltage (line-to-line for 3-phase)
        system: "3ph" or "1ph"

    Returns:
        (current_a or None, "input" | "derived" | None)
    """
    if current:
        return current, "input"
    if power_kw and power_kw > 0:
        kva = power_kw / power_factor
        if system == "3ph":
            return kva * 1000 / (math.sqrt(3) * voltage), "derived"
        return kva * 1000 / voltage, "derived"
    return None, None


def calc_voltage_drop(inputs: dict, library=None) -> dict:
    """
    Calculate voltage drop for a cable run.

    Args:
        inputs: Raw field values
            - system: "3ph" (default) or "1ph"
            - voltage: System voltage (V)
            - current: Load current (A); if absent, derived from power_kw and pf
            - power_kw: Real power (kW)
            - pf: Load power factor (default 1.0, clamped to 0.1-1)
            - length: Cable length (m)
            - length_type: "oneway" (default) or "loop" (loop length is halved)
            - conductor_size: Conductor cross-section (mm²)
            - material: Library conductor material (default "cu")
            - temperature: Conductor temperature (°C, default 75)
            - parallels: Parallel runs (default 1)
            - method: "r" (resistive only, default) or "rx" (R + X)
            - reactance: Cable reactance (Ω/km)
            - limit: Allowed drop (%, default 3)
        library: LibrarySnapshot (default library if None)

    Returns:
        Calculation record (results or errors)
    """
    lib = resolve_library(library)

    errors = collect_violations([
        validate_positive(inputs.get("voltage"), "Voltage"),
        validate_positive(inputs.get("length"), "Length"),
        validate_positive(inputs.get("conductor_size"), "Conductor size"),
        validate_choice(inputs.get("system"), "System", SYSTEMS, "3ph"),
        validate_choice(inputs.get("length_type"), "Length type", LENGTH_TYPES, "oneway"),
        validate_choice(inputs.get("method"), "Method", METHODS, "r"),
        validate_choice(inputs.get("material"), "Conductor material",
                        sorted(lib.conductors), DEFAULT_MATERIAL),
    ])
    if errors:
        return error_result(errors)

    system = normalize_choice(inputs.get("system"), "3ph")
    length_type = normalize_choice(inputs.get("length_type"), "oneway")
    method = normalize_choice(inputs.get("method"), "r")
    material = normalize_choice(inputs.get("material"), DEFAULT_MATERIAL)

    voltage = number_or_default(inputs.get("voltage"))
    length = number_or_default(inputs.get("length"))
    conductor_size = number_or_default(inputs.get("conductor_size"))
    temperature = number_or_default(inputs.get("temperature"), DEFAULT_TEMPERATURE_C)
    parallels = max(1.0, number_or_default(inputs.get("parallels"), 1.0))
    x_per_km = number_or_default(inputs.get("reactance"))
    limit_pct = number_or_default(inputs.get("limit"), DEFAULT_DROP_LIMIT_PCT)

    pf = clamp(number_or_default(inputs.get("pf"), 1.0), PF_MIN, PF_MAX)
    phi = math.acos(pf)
    cos_phi = math.cos(phi)
    sin_phi = math.sin(phi)

    current, current_source = resolve_load_current(
        parse_number(inputs.get("current")),
        number_or_default(inputs.get("power_kw")),
        pf,
        voltage,
        system,
    )
    # Deferred check: only known once the current is resolved
    current_error = validate_positive(current, "Load current")
    if current_error:
        return error_result([current_error])

    length_factor = math.sqrt(3) if system == "3ph" else 2
    length_multiplier = 0.5 if length_type == "loop" else 1

    # Cable resistance / reactance for the run
    r_per_m = conductor_resistance(lib, material, conductor_size, temperature)
    r_total = r_per_m * length * length_multiplier / parallels
    x_total = (x_per_km / 1000) * length * length_multiplier / parallels

    if method == "rx":
        impedance_term = r_total * cos_phi + x_total * sin_phi
    else:
        impedance_term = r_total * cos_phi

    drop = length_factor * current * impedance_term
    drop_pct = drop / voltage * 100
    receiving = voltage - drop
    passed = drop_pct <= limit_pct

    steps = []
    if current_source == "derived":
        steps.append(
            f"I = kW / PF / ({'√3 × ' if system == '3ph' else ''}V) = {format_value(current, 'A')}")
    steps += [
        f"R (Ω) = ρ/area × (1 + α(T − 20)) × length = {format_value(r_total, 'Ω')}",
        f"X (Ω) = {format_value(x_total, 'Ω')}",
        f"ΔV = {length_factor:.2f} × I × "
        + ("(R·cosφ + X·sinφ)" if method == "rx" else "R·cosφ"),
        f"ΔV = {format_value(drop, 'V')} ({format_value(drop_pct, '%')})",
    ]

    warnings = []
    if not passed:
        warnings.append(
            f"Voltage drop {format_value(drop_pct, '%')} exceeds the "
            f"{format_value(limit_pct, '%')} limit.")

    logger.debug(
        "Voltage drop: I=%.2f A, L=%.1f m, S=%.1f mm² -> %.3f V (%.3f%%)",
        current, length, conductor_size, drop, drop_pct)

    return success_result(
        {
            "current_a": current,
            "current_source": current_source,
            "pf": pf,
            "resistance_ohm_per_m": r_per_m,
            "total_resistance_ohm": r_total,
            "total_reactance_ohm": x_total,
            "length_factor": length_factor,
            "drop_v": drop,
            "drop_pct": drop_pct,
            "receiving_v": receiving,
            "limit_pct": limit_pct,
            "pass": passed,
        },
        steps,
        warnings,
        NOTES,
    )


if __name__ == "__main__":
    print("Testing voltage_drop module...")
    print("=" * 60)

    # 150A, 120m, 70mm² Cu @ 400V, R+X method
    result = calc_voltage_drop({
        "system": "3ph", "voltage": 400, "current": 150, "pf": 0.9,
        "length": 120, "length_type": "oneway", "conductor_size": 70,
        "material": "cu", "temperature": 75, "parallels": 1,
        "method": "rx", "reactance": 0.08, "limit": 3,
    })
    res = result["results"]
    print(f"\n150A, 120m, 70mm² Cu @ 400V")
    print(f"   Voltage drop: {res['drop_v']:.2f}V ({res['drop_pct']:.2f}%)")
    print(f"   Voltage at load: {res['receiving_v']:.1f}V")
    print(f"   Pass (≤3%): {res['pass']}")

    # Current derived from kW
    result = calc_voltage_drop({
        "voltage": 400, "power_kw": 80, "pf": 0.9, "length": 120, "conductor_size": 70,
    })
    print(f"\n80 kW @ PF 0.9, 400V")
    print(f"   Derived current: {result['results']['current_a']:.1f}A")

    print("\n" + "=" * 60)
    print("All tests completed!")
