#!/usr/bin/env python3
"""
PV System Design Module
Size a rooftop/ground PV array from available area and project a 25-year
simple cashflow.

Sizing:
- Panels = floor(area / panel area)
- kWp = panels × panel W / 1000
- Inverter kW = kWp / DC:AC ratio
- Annual kWh = kWp × specific yield × PR  (or kWp × daily irradiation × 365 × PR)

Cashflow (simplified - no tax, financing or degradation):
- Capex = kWp × cost per kW − incentive
- Revenue(y) = kWh × price × (1 + escalation)^(y−1)
- O&M = capex × O&M %  (flat, not escalated)
- Payback = first year the cumulative cashflow reaches 0

Author: EE Toolbox
"""

import logging
import math
from typing import Optional

from calc_results import error_result, format_value, success_result
from input_validation import (
    collect_violations,
    number_or_default,
    validate_positive,
    validate_range,
)


logger = logging.getLogger(__name__)

PROJECTION_YEARS = 25

NOTES = [
    "Energy estimate uses PR and user-supplied yield or irradiation.",
    "Financials are simplified and do not include tax or financing.",
]


def project_cashflow(
    annual_energy_kwh: float,
    price: float,
    escalation: float,
    capex: float,
    om_fraction: float,
    years: int = PROJECTION_YEARS
) -> tuple:
    """
    Project yearly cashflow and simple payback.

    Args:
        annual_energy_kwh: Annual energy production (kWh)
        price: Energy price per kWh in year 1
        escalation: Annual price escalation (fraction, 0.02 = 2%)
        capex: Net capital cost (after incentive)
        om_fraction: Yearly O&M cost as a fraction of capex
        years: Projection horizon

    Returns:
        (rows, payback_year) - rows of {year, revenue, om_cost, net, cumulative};
        payback_year is None when the cumulative never reaches 0
    """
    cumulative = -capex
    payback: Optional[int] = None
    rows = []
    for year in range(1, years + 1):
        revenue = annual_energy_kwh * price * (1 + escalation) ** (year - 1)
        om_cost = capex * om_fraction
        net = revenue - om_cost
        cumulative += net
        if cumulative >= 0 and payback is None:
            payback = year
        rows.append({
            "year": year,
            "revenue": revenue,
            "om_cost": om_cost,
            "net": net,
            "cumulative": cumulative,
        })
    return rows, payback


def size_pv_system(inputs: dict, library=None) -> dict:
    """
    Size a PV system and project its cashflow.

    Args:
        inputs: Raw field values
            - area: Available area (m²)
            - panel_power: Panel rating (W)
            - panel_area: Panel area (m²)
            - pr: Performance ratio (0-1)
            - annual_yield: Specific yield (kWh/kWp/yr); takes precedence if > 0
            - irradiation: Daily irradiation (kWh/m²/day)
            - dcac: DC:AC ratio
            - price: Energy price per kWh
            - escalation: Annual price escalation (%, -100 to 100)
            - cost_per_kw: Installed cost per kWp
            - om: Yearly O&M (% of capex)
            - incentives: Upfront incentive
        library: Unused; accepted for a uniform calculation signature

    Returns:
        Calculation record (results or errors)
    """
    errors = collect_violations([
        validate_positive(inputs.get("area"), "Available area"),
        validate_positive(inputs.get("panel_power"), "Panel power"),
        validate_positive(inputs.get("panel_area"), "Panel area"),
        validate_positive(inputs.get("pr"), "Performance ratio"),
        validate_positive(inputs.get("dcac"), "DC/AC ratio"),
        validate_range(inputs.get("escalation"), "Escalation", -100, 100),
    ])
    if errors:
        return error_result(errors)

    area = number_or_default(inputs.get("area"))
    panel_power = number_or_default(inputs.get("panel_power"))
    panel_area = number_or_default(inputs.get("panel_area"))
    pr = number_or_default(inputs.get("pr"))
    dcac = number_or_default(inputs.get("dcac"))
    annual_yield = number_or_default(inputs.get("annual_yield"))
    irradiation = number_or_default(inputs.get("irradiation"))
    price = number_or_default(inputs.get("price"))
    escalation = number_or_default(inputs.get("escalation")) / 100
    cost_per_kw = number_or_default(inputs.get("cost_per_kw"))
    om_fraction = number_or_default(inputs.get("om")) / 100
    incentives = number_or_default(inputs.get("incentives"))

    panels_that_fit = area / panel_area
    if not math.isfinite(panels_that_fit):
        return error_result(["Panel area is too small for the available area."])
    panel_count = math.floor(panels_that_fit)
    system_size = panel_count * panel_power / 1000
    inverter_size = system_size / dcac

    if annual_yield > 0:
        energy_basis = "yield"
        annual_energy = system_size * annual_yield * pr
    else:
        energy_basis = "irradiation"
        annual_energy = system_size * irradiation * 365 * pr

    capex = system_size * cost_per_kw - incentives
    cashflow, payback = project_cashflow(annual_energy, price, escalation, capex, om_fraction)

    warnings = []
    if panel_count == 0:
        warnings.append("Available area is smaller than one panel; no panels fit.")
    if annual_yield <= 0 and irradiation <= 0:
        warnings.append("Neither annual yield nor irradiation given; annual energy is 0.")
    if payback is None:
        warnings.append(f"Payback not reached within {PROJECTION_YEARS} years.")

    if energy_basis == "yield":
        energy_step = f"Annual energy = size × yield × PR = {format_value(annual_energy, 'kWh/yr')}"
    else:
        energy_step = (
            f"Annual energy = size × irradiation × 365 × PR = {format_value(annual_energy, 'kWh/yr')}")
    steps = [
        f"Panel count = floor(area / panelArea) = {panel_count}",
        f"System size = panels × W / 1000 = {format_value(system_size, 'kWp')}",
        f"Inverter size = size / DC:AC = {format_value(inverter_size, 'kW')}",
        energy_step,
        f"Capex = size × cost/kW − incentives = {format_value(capex)}",
    ]

    logger.debug(
        "PV sizing: %d panels, %.2f kWp, %.0f kWh/yr, payback %s",
        panel_count, system_size, annual_energy, payback)

    return success_result(
        {
            "panel_count": panel_count,
            "system_size_kwp": system_size,
            "inverter_size_kw": inverter_size,
            "annual_energy_kwh": annual_energy,
            "energy_basis": energy_basis,
            "capex": capex,
            "payback_years": payback,
            "cashflow": cashflow,
            "cumulative_25yr": cashflow[-1]["cumulative"],
        },
        steps,
        warnings,
        NOTES,
    )
