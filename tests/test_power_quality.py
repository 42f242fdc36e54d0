import pytest

from power_quality import PQ_RULES, advise_power_quality, normalize_symptoms


SITE = {
    "thdv": 6,
    "thdi": 22,
    "unbalance": 2.5,
    "sags": 3,
    "pf": 0.82,
    "vfd": 40,
    "ups": 20,
    "symptoms": [],
}

CLEAN = {"thdv": 2, "thdi": 5, "unbalance": 0.5, "sags": 0, "pf": 0.98, "vfd": 10, "ups": 0}


def test_reference_example_rule_order() -> None:
    res = advise_power_quality(SITE)["results"]
    assert res["rules_fired"] == [
        "harmonic_filter",
        "voltage_thd",
        "k_rated_transformer",
        "detuning_reactors",
        "phase_balancing",
        "ride_through",
    ]
    assert len(res["recommendations"]) == 6
    assert res["top_recommendation"] == res["recommendations"][0]
    assert "harmonic filters" in res["top_recommendation"]


def test_recommendations_follow_rule_table_order() -> None:
    res = advise_power_quality(dict(SITE, symptoms=["vfdnoise", "trips", "flicker"]))["results"]
    order = [rule_id for rule_id, _, _ in PQ_RULES]
    assert res["rules_fired"] == order
    assert res["recommendations"] == [message for _, _, message in PQ_RULES]


def test_expected_improvement() -> None:
    expectations = advise_power_quality(SITE)["results"]["expectations"]
    assert expectations == [
        {"metric": "THD-I", "before": 22.0, "after": 14.0},
        {"metric": "THD-V", "before": 6.0, "after": 4.0},
        {"metric": "Unbalance", "before": 2.5, "after": pytest.approx(2.0)},
    ]


def test_expected_improvement_floors() -> None:
    expectations = advise_power_quality(CLEAN)["results"]["expectations"]
    assert [row["after"] for row in expectations] == [5.0, 3.0, 1.0]


def test_clean_site_has_no_recommendations() -> None:
    res = advise_power_quality(CLEAN)["results"]
    assert res["recommendations"] == []
    assert res["top_recommendation"] is None
    assert len(res["next_measures"]) == 3


def test_blank_inputs_never_error() -> None:
    result = advise_power_quality({})
    assert "errors" not in result
    # Blank power factor reads as 0 and trips the resonance check
    assert result["results"]["rules_fired"] == ["detuning_reactors"]


def test_symptoms_drive_rules() -> None:
    res = advise_power_quality(dict(CLEAN, symptoms=["neutral", "capacitor"]))["results"]
    assert res["rules_fired"] == ["k_rated_transformer", "detuning_reactors"]


def test_symptom_aliases_and_single_string() -> None:
    assert normalize_symptoms(["Neutral-Overheat", "nuisance_trips", "trips"]) == (
        ["neutral", "trips"], [])
    assert normalize_symptoms("flicker") == (["flicker"], [])
    assert normalize_symptoms(None) == ([], [])


def test_unknown_symptom_warns() -> None:
    result = advise_power_quality(dict(CLEAN, symptoms=["smoke", "flicker"]))
    assert result["results"]["symptoms"] == ["flicker"]
    assert result["results"]["rules_fired"] == ["ride_through"]
    assert result["warnings"] == ["Unrecognized symptom 'smoke' ignored."]


def test_load_mix_alone_triggers_filtering() -> None:
    res = advise_power_quality(dict(CLEAN, ups=15))["results"]
    assert res["rules_fired"] == ["harmonic_filter"]
