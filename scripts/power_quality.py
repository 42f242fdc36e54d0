#!/usr/bin/env python3
"""
Power Quality Improvement Module
Rule-based diagnostics: map measurements and observed symptoms to
mitigation recommendations.

The rules are a fixed, ordered list evaluated in sequence; every rule whose
predicate holds appends its message. Output order is rule order (no
re-ranking), so the first recommendation is the first rule that fired.

Thresholds:
- Current THD > 15% (or VFD load > 30%, UPS load > 10%) - harmonic filtering
- Voltage THD > 5% - line reactors / isolation transformer (IEEE 519 limit)
- Voltage unbalance > 2% - phase balancing (IEC 61000-2-4 class 2)
- More than 2 sag events - ride-through evaluation

Author: EE Toolbox
Standards: IEEE 519-2022, IEEE 1159, IEC 61000-2-4
"""

import logging

from calc_results import success_result
from input_validation import number_or_default


logger = logging.getLogger(__name__)

# Recognized symptom tags
SYMPTOMS = ("neutral", "capacitor", "flicker", "trips", "vfdnoise")

# Descriptive spellings accepted for the symptom tags
SYMPTOM_ALIASES = {
    "neutral-overheat": "neutral",
    "neutral-overheating": "neutral",
    "capacitor-resonance": "capacitor",
    "nuisance-trips": "trips",
    "vfd-noise": "vfdnoise",
}

MEASUREMENT_FIELDS = ("thdv", "thdi", "unbalance", "pf", "sags", "vfd", "ups")

# (rule id, predicate(measurements, symptoms), recommendation) - order matters
PQ_RULES = (
    (
        "harmonic_filter",
        lambda m, s: m["thdi"] > 15 or m["vfd"] > 30 or m["ups"] > 10,
        "Install passive or active harmonic filters to reduce current distortion.",
    ),
    (
        "voltage_thd",
        lambda m, s: m["thdv"] > 5,
        "Consider line reactors or isolation transformers to mitigate voltage THD.",
    ),
    (
        "k_rated_transformer",
        lambda m, s: "neutral" in s or m["thdi"] > 20,
        "Specify K-rated transformer or oversized neutral conductors.",
    ),
    (
        "detuning_reactors",
        lambda m, s: "capacitor" in s or m["pf"] < 0.9,
        "Use capacitor bank detuning reactors to avoid resonance.",
    ),
    (
        "phase_balancing",
        lambda m, s: m["unbalance"] > 2,
        "Perform phase balancing and check single-phase load distribution.",
    ),
    (
        "ride_through",
        lambda m, s: m["sags"] > 2 or "flicker" in s,
        "Evaluate UPS ride-through or dynamic voltage restorer (DVR) options.",
    ),
    (
        "protection_review",
        lambda m, s: "trips" in s,
        "Review protective device settings and nuisance trip coordination.",
    ),
    (
        "vfd_grounding",
        lambda m, s: "vfdnoise" in s,
        "Add line reactors and proper grounding for VFD installations.",
    ),
)

NEXT_MEASURES = [
    "Capture 7-day PQ analyzer trend with THD, sags, swells.",
    "Measure neutral current and harmonic spectrum.",
    "Verify transformer loading and temperature rise.",
]

# (metric, input field, improvement in points, floor %) - flat heuristic,
# applied whichever rules fired
EXPECTED_IMPROVEMENT = [
    ("THD-I", "thdi", 8.0, 5.0),
    ("THD-V", "thdv", 2.0, 3.0),
    ("Unbalance", "unbalance", 0.5, 1.0),
]

METHOD_STEPS = [
    "Assess symptoms, THD, unbalance, and load mix.",
    "Match symptoms to mitigation options in fixed rule order.",
    "List recommendations in rule order; the first fired rule is the top recommendation.",
]

NOTES = [
    "Recommendations are rule-based and explainable.",
    "Validate with site measurements and PQ logging.",
]


def normalize_symptoms(raw) -> tuple:
    """
    Map raw symptom tags onto the fixed vocabulary.

    Returns:
        (recognized tags in input order without duplicates, unrecognized raw tags)
    """
    if raw is None:
        return [], []
    if isinstance(raw, str):
        raw = [raw]

    recognized = []
    unknown = []
    for tag in raw:
        key = str(tag).strip().lower().replace("_", "-")
        if not key:
            continue
        key = SYMPTOM_ALIASES.get(key, key)
        if key in SYMPTOMS:
            if key not in recognized:
                recognized.append(key)
        else:
            unknown.append(str(tag))
    return recognized, unknown


def advise_power_quality(inputs: dict, library=None) -> dict:
    """
    Recommend power quality mitigations.

    Blank or non-numeric measurements are treated as 0; this module never
    returns an error record.

    Args:
        inputs: Raw field values
            - thdv, thdi: Voltage / current THD (%)
            - unbalance: Voltage unbalance (%)
            - pf: Power factor
            - sags: Sag events in the observation period
            - vfd, ups: VFD / UPS share of the load (%)
            - symptoms: Symptom tags (list or single string)
        library: Unused; accepted for a uniform calculation signature

    Returns:
        Calculation record
    """
    measurements = {field: number_or_default(inputs.get(field)) for field in MEASUREMENT_FIELDS}
    symptoms, unknown = normalize_symptoms(inputs.get("symptoms"))

    recommendations = []
    rules_fired = []
    for rule_id, predicate, message in PQ_RULES:
        if predicate(measurements, symptoms):
            rules_fired.append(rule_id)
            recommendations.append(message)

    expectations = [
        {
            "metric": metric,
            "before": measurements[field],
            "after": max(floor, measurements[field] - delta),
        }
        for metric, field, delta, floor in EXPECTED_IMPROVEMENT
    ]

    warnings = [f"Unrecognized symptom '{tag}' ignored." for tag in unknown]

    logger.debug("Power quality: %d of %d rules fired %s", len(rules_fired), len(PQ_RULES), rules_fired)

    return success_result(
        {
            "recommendations": recommendations,
            "rules_fired": rules_fired,
            "top_recommendation": recommendations[0] if recommendations else None,
            "symptoms": symptoms,
            "next_measures": list(NEXT_MEASURES),
            "expectations": expectations,
        },
        METHOD_STEPS,
        warnings,
        NOTES,
    )


if __name__ == "__main__":
    print("Testing power_quality module...")
    print("=" * 60)

    result = advise_power_quality({
        "thdv": 6, "thdi": 22, "unbalance": 2.5, "sags": 3, "pf": 0.82,
        "vfd": 40, "ups": 20, "symptoms": ["neutral", "trips"],
    })
    print("\nRecommendations:")
    for rec in result["results"]["recommendations"]:
        print(f"  - {rec}")
    print("\nExpected after mitigation:")
    for row in result["results"]["expectations"]:
        print(f"  {row['metric']}: {row['before']}% → {row['after']}%")

    print("\n" + "=" * 60)
    print("All tests completed!")
