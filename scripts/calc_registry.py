#!/usr/bin/env python3
"""
Calculation Registry
Maps module ids to calculation functions, with worked examples and the
one-line scenario summaries shown alongside saved scenarios.

Usage:
    from calc_registry import run_calculation

    result = run_calculation("vdrop", {"voltage": 400, "current": 150, ...})
    if "errors" in result:
        ...

Every calculation has the signature fn(inputs, library=None) -> record and
is a pure function of its inputs and the library snapshot it is given.
"""

import logging
from typing import Callable

from calc_results import format_value, is_error
from conduit_sizing import size_conduit
from fault_current import estimate_fault_current
from pfc_sizing import size_capacitor_bank
from power_quality import advise_power_quality
from property_library import resolve_library
from pv_sizing import size_pv_system
from voltage_drop import calc_voltage_drop


logger = logging.getLogger(__name__)

MODULES = [
    {
        "id": "conduit",
        "title": "Conduit & Wireway Sizing",
        "description": "Conduit/wireway fill sizing with conductor OD library support.",
    },
    {
        "id": "vdrop",
        "title": "Voltage Drop Calculation",
        "description": "AC drop with resistive or impedance method.",
    },
    {
        "id": "shortcircuit",
        "title": "Short Circuit Calculation",
        "description": "Transformer-based fault current estimate with cable impedance.",
    },
    {
        "id": "pfc",
        "title": "Power Factor Correction",
        "description": "Capacitor bank sizing and penalty savings estimate.",
    },
    {
        "id": "powerquality",
        "title": "Power Quality Improvement",
        "description": "Rules-based diagnostics and recommendations.",
    },
    {
        "id": "pv",
        "title": "PV System Design",
        "description": "PV sizing and 25-year cashflow overview.",
    },
]

CALCULATION_REGISTRY: dict = {
    "conduit": size_conduit,
    "vdrop": calc_voltage_drop,
    "shortcircuit": estimate_fault_current,
    "pfc": size_capacitor_bank,
    "powerquality": advise_power_quality,
    "pv": size_pv_system,
}

# Worked example per module
EXAMPLE_INPUTS = {
    "conduit": {
        "system": "3ph",
        "material": "cu",
        "conductor_size": 70,
        "insulation": "xlpe",
        "phase_count": 3,
        "neutral_count": 1,
        "ground_count": 1,
        "spare_count": 1,
        "cable_od": 22,
        "conduit_type": "emt",
        "conduit_id": 63,
        "fill_limit": 40,
        "wireway_fill": 20,
        "wireway_w": 200,
        "wireway_h": 100,
    },
    "vdrop": {
        "system": "3ph",
        "voltage": 400,
        "current": 150,
        "power_kw": 80,
        "pf": 0.9,
        "length": 120,
        "length_type": "oneway",
        "conductor_size": 70,
        "material": "cu",
        "temperature": 75,
        "parallels": 1,
        "method": "rx",
        "reactance": 0.08,
        "limit": 3,
    },
    "shortcircuit": {
        "system": "3ph",
        "kva": 2000,
        "primary_kv": 22,
        "secondary_v": 400,
        "percent_z": 6,
        "xr": 8,
        "fault_location": "feeder",
        "feeder_length": 80,
        "conductor_size": 95,
        "material": "cu",
        "parallels": 2,
    },
    "pfc": {
        "kw": 500,
        "pf_existing": 0.75,
        "pf_target": 0.95,
        "voltage": 400,
        "system": "3ph",
        "penalty": 2,
    },
    "powerquality": {
        "thdv": 6,
        "thdi": 22,
        "unbalance": 2.5,
        "sags": 3,
        "pf": 0.82,
        "vfd": 40,
        "ups": 20,
        "symptoms": [],
    },
    "pv": {
        "area": 800,
        "panel_power": 550,
        "panel_area": 2.4,
        "pr": 0.8,
        "irradiation": 4.8,
        "annual_yield": 1500,
        "dcac": 1.2,
        "price": 0.12,
        "escalation": 2,
        "cost_per_kw": 900,
        "om": 1.5,
        "incentives": 0,
    },
}


def get_calculation(module_id: str) -> Callable:
    """Returns the calculation function for a module id, or raises ValueError."""
    if module_id not in CALCULATION_REGISTRY:
        raise ValueError(
            f"No calculation registered for module: {module_id}. "
            f"Available: {list(CALCULATION_REGISTRY.keys())}"
        )
    return CALCULATION_REGISTRY[module_id]


def has_calculation(module_id: str) -> bool:
    return module_id in CALCULATION_REGISTRY


def list_calculations() -> list:
    """List all registered module ids in display order."""
    return list(CALCULATION_REGISTRY.keys())


def run_calculation(module_id: str, inputs: dict, library=None) -> dict:
    """
    Run one calculation against a single library snapshot.

    Args:
        module_id: Registered module id
        inputs: Raw field values for the module
        library: LibrarySnapshot or library mapping (default library if None)

    Returns:
        Calculation record (results or errors)
    """
    calculation = get_calculation(module_id)
    snapshot = resolve_library(library)
    result = calculation(inputs, snapshot)
    if is_error(result):
        logger.warning("%s calculation rejected: %s", module_id, "; ".join(result["errors"]))
    else:
        logger.debug("%s calculation complete, %d warning(s)", module_id, len(result["warnings"]))
    return result


def summarize_result(module_id: str, result: dict) -> tuple:
    """
    One-line summary and result snapshot for a saved scenario.

    Returns:
        (summary, snapshot) strings

    Raises:
        ValueError: unknown module id, or a failed calculation record
    """
    get_calculation(module_id)
    if is_error(result):
        raise ValueError(f"Cannot summarize a failed {module_id} calculation")
    res = result["results"]

    if module_id == "conduit":
        wireway_fill = res["wireway_fill_pct"]
        summary = (
            f"Conduit fill {format_value(res['conduit_fill_pct'], '%')}, wireway fill "
            + (format_value(wireway_fill, "%") if wireway_fill is not None else "N/A"))
        conduit = res["recommended_conduit_mm"]
        wireway = res["recommended_wireway"]
        snapshot = (
            f"Conduit {format_value(conduit) if conduit is not None else 'custom'} mm, wireway "
            + (f"{format_value(wireway['w'])}x{format_value(wireway['h'])} mm"
               if wireway else "custom"))
    elif module_id == "vdrop":
        summary = f"ΔV {format_value(res['drop_v'], 'V')} ({format_value(res['drop_pct'], '%')})"
        snapshot = f"Receiving voltage {format_value(res['receiving_v'], 'V')}"
    elif module_id == "shortcircuit":
        summary = f"Fault current {format_value(res['fault_current_a'], 'A')}"
        snapshot = f"Ztotal {format_value(res['z_total_ohm'], 'Ω')}"
    elif module_id == "pfc":
        summary = f"Required kvar {format_value(res['kvar_required'], 'kvar')}"
        snapshot = f"Recommended bank {format_value(res['recommended_kvar'], 'kvar')}"
    elif module_id == "powerquality":
        summary = f"Recommendations {len(res['recommendations'])}"
        snapshot = res["top_recommendation"] or "No issues detected"
    else:
        summary = f"PV size {format_value(res['system_size_kwp'], 'kWp')}"
        payback = res["payback_years"]
        snapshot = f"Payback {payback} yrs" if payback is not None else "Payback N/A"

    return summary, snapshot


if __name__ == "__main__":
    print("Testing calc_registry module...")
    print("=" * 60)

    for module in MODULES:
        result = run_calculation(module["id"], EXAMPLE_INPUTS[module["id"]])
        summary, snapshot = summarize_result(module["id"], result)
        print(f"\n{module['title']}:")
        print(f"  {summary}")
        print(f"  {snapshot}")
        for warning in result["warnings"]:
            print(f"  Warning: {warning}")

    print("\n" + "=" * 60)
    print("All tests completed!")
