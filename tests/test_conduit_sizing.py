import math

import pytest

from conduit_sizing import size_conduit
from property_library import build_snapshot


def _emt_example(**overrides):
    fields = {
        "phase_count": 3,
        "neutral_count": 1,
        "ground_count": 1,
        "spare_count": 1,
        "conductor_size": 70,
        "cable_od": 22,
        "conduit_type": "emt",
        "conduit_id": 63,
        "fill_limit": 40,
        "wireway_fill": 20,
        "wireway_w": 200,
        "wireway_h": 100,
    }
    fields.update(overrides)
    return fields


def test_emt_example() -> None:
    result = size_conduit(_emt_example())
    res = result["results"]
    assert res["total_conductors"] == 6
    assert res["cable_area_mm2"] == pytest.approx(380.13, abs=0.01)
    assert res["total_area_mm2"] == pytest.approx(2280.8, abs=0.1)
    assert res["required_conduit_area_mm2"] == pytest.approx(5702.0, abs=0.1)
    assert res["installed_conduit_area_mm2"] == pytest.approx(3117.2, abs=0.1)
    assert res["conduit_fill_pct"] == pytest.approx(73.2, abs=0.05)
    # 78 mm EMT is too small (≈4778 mm²), 91 mm is the first to reach 5702 mm²
    assert res["recommended_conduit_mm"] == 91
    assert res["recommended_wireway"] == {"w": 150, "h": 100}
    assert res["wireway_fill_pct"] == pytest.approx(11.40, abs=0.01)
    assert result["warnings"] == ["Conduit fill exceeds selected limit."]
    assert len(result["derivation_steps"]) == 7
    assert result["derivation_steps"][0] == "Total conductors = 6 conductors"


def test_fill_percent_formula_is_exact() -> None:
    for od, conduit_id, count in [(22, 63, 6), (12, 27, 4), (34, 110, 9)]:
        res = size_conduit(_emt_example(
            cable_od=od, conduit_id=conduit_id, phase_count=count,
            neutral_count=0, ground_count=0, spare_count=0))["results"]
        expected = (math.pi * (od / 2) ** 2 * count) / (math.pi * (conduit_id / 2) ** 2) * 100
        assert res["conduit_fill_pct"] == pytest.approx(expected, rel=1e-12)


def test_required_area_non_decreasing_in_count() -> None:
    previous = -1.0
    for count in range(0, 15):
        res = size_conduit(_emt_example(
            phase_count=count, neutral_count=0, ground_count=0, spare_count=0))["results"]
        assert res["required_conduit_area_mm2"] >= previous
        previous = res["required_conduit_area_mm2"]


def test_largest_conduit_fallback_warns() -> None:
    result = size_conduit(_emt_example(phase_count=12))
    assert result["results"]["recommended_conduit_mm"] == 91
    assert any("No EMT size reaches" in w for w in result["warnings"])


def test_largest_wireway_fallback() -> None:
    result = size_conduit(_emt_example(cable_od=34, phase_count=20, conduit_type="pvc"))
    assert result["results"]["recommended_wireway"] == {"w": 400, "h": 200}
    assert any("No library wireway" in w for w in result["warnings"])


def test_default_limits_from_library() -> None:
    res = size_conduit(_emt_example(fill_limit="", wireway_fill=None))["results"]
    assert res["conduit_fill_limit_pct"] == 40
    assert res["wireway_fill_limit_pct"] == 20

    lib = build_snapshot({"fill_limits": {
        "conduit_percent": 50,
        "wireway_percent": 25,
        "conduit_sizes": {"emt": [16, 21, 27, 35, 41, 53, 63, 78, 91]},
        "wireway_sizes": [{"w": 100, "h": 50}, {"w": 150, "h": 100}],
    }})
    res = size_conduit(_emt_example(fill_limit="", wireway_fill=""), lib)["results"]
    assert res["conduit_fill_limit_pct"] == 50
    assert res["required_conduit_area_mm2"] == pytest.approx(res["total_area_mm2"] / 0.5)


def test_wireway_warning_independent_of_conduit() -> None:
    result = size_conduit(_emt_example(conduit_id=110, wireway_w=100, wireway_h=50))
    assert result["warnings"] == ["Wireway fill exceeds selected limit."]


def test_missing_wireway_dimensions() -> None:
    result = size_conduit(_emt_example(wireway_w="", wireway_h=""))
    assert result["results"]["wireway_fill_pct"] is None
    assert any("wireway fill not checked" in w for w in result["warnings"])


def test_unknown_conduit_type() -> None:
    result = size_conduit(_emt_example(conduit_type="imc"))
    assert result["results"]["recommended_conduit_mm"] is None
    assert any("'imc' is not in the library" in w for w in result["warnings"])


def test_zero_counts_allowed() -> None:
    res = size_conduit(_emt_example(
        phase_count=0, neutral_count="", ground_count=None, spare_count=0))["results"]
    assert res["total_conductors"] == 0
    assert res["conduit_fill_pct"] == 0
    assert res["recommended_conduit_mm"] == 16


def test_errors_collected_together() -> None:
    result = size_conduit(_emt_example(conductor_size="", cable_od="0", conduit_id="abc"))
    assert result == {
        "errors": [
            "Conductor size must be greater than 0.",
            "Cable OD must be greater than 0.",
            "Conduit internal diameter must be greater than 0.",
        ],
        "kind": "InvalidInput",
    }


def test_negative_count_and_bad_limit_rejected() -> None:
    result = size_conduit(_emt_example(spare_count=-1, fill_limit=120))
    assert result["errors"] == [
        "Spares conductors must be a whole number 0 or greater.",
        "Conduit fill limit must be between 0 and 100.",
    ]


def test_conductor_summary_rows() -> None:
    rows = size_conduit(_emt_example())["results"]["conductor_summary"]
    assert [r["role"] for r in rows] == ["Phase", "Neutral", "Ground", "Spares"]
    assert [r["count"] for r in rows] == [3, 1, 1, 1]
    assert all(r["od_mm"] == 22 for r in rows)


def test_fractional_counts_rejected() -> None:
    result = size_conduit(_emt_example(phase_count="2.9", neutral_count="0.9"))
    assert result["errors"] == [
        "Phase conductors must be a whole number 0 or greater.",
        "Neutral conductors must be a whole number 0 or greater.",
    ]


def test_whole_number_counts_as_text() -> None:
    res = size_conduit(_emt_example(phase_count="3.0", neutral_count="1"))["results"]
    assert res["total_conductors"] == 6


def test_vanishing_conduit_diameter_rejected() -> None:
    result = size_conduit(_emt_example(conduit_id="1e-200"))
    assert result["errors"] == ["Conduit internal diameter is too small to size against."]
