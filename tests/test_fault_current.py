import math

import pytest

from fault_current import estimate_fault_current
from property_library import build_snapshot


def _transformer(**overrides):
    fields = {"kva": 2000, "secondary_v": 400, "percent_z": 6}
    fields.update(overrides)
    return fields


def test_terminal_fault_uses_source_impedance_only() -> None:
    result = estimate_fault_current(_transformer(fault_location="terminal"))
    res = result["results"]
    z_base = 400 ** 2 / (2000 * 1000)
    assert res["z_base_ohm"] == pytest.approx(z_base)
    assert res["z_source_ohm"] == pytest.approx(0.06 * z_base)
    assert res["z_cable_ohm"] == 0
    assert res["z_total_ohm"] == res["z_source_ohm"]
    assert res["fault_current_a"] == pytest.approx(400 / (0.06 * z_base))
    assert res["fault_current_ka"] == pytest.approx(83.333, abs=0.001)
    assert res["peak_current_a"] is None
    assert result["warnings"] == []


def test_feeder_fault_magnitude_sum() -> None:
    res = estimate_fault_current(_transformer(
        fault_location="feeder", feeder_length=80, conductor_size=95, parallels=2, xr=8))["results"]
    r = 0.2 / 1000 * 80 / 2
    x = 0.065 / 1000 * 80 / 2
    z_cable = math.sqrt(r ** 2 + x ** 2)
    assert res["cable_r_ohm"] == pytest.approx(r)
    assert res["cable_x_ohm"] == pytest.approx(x)
    assert res["z_cable_ohm"] == pytest.approx(z_cable)
    assert res["z_total_ohm"] == pytest.approx(0.0048 + z_cable)
    assert res["fault_current_a"] == pytest.approx(400 / res["z_total_ohm"])
    assert res["peak_current_a"] == pytest.approx(res["fault_current_a"] * (1 + 0.2 * 8))


def test_fault_current_identity() -> None:
    for fields in [
        _transformer(),
        _transformer(fault_location="feeder", feeder_length=150, conductor_size=25),
        _transformer(kva=500, secondary_v=480, percent_z=5.75,
                     fault_location="feeder", feeder_length=30, conductor_size=150),
    ]:
        res = estimate_fault_current(fields)["results"]
        assert res["fault_current_a"] == pytest.approx(
            float(fields["secondary_v"]) / res["z_total_ohm"])


def test_feeder_reduces_fault_current() -> None:
    terminal = estimate_fault_current(_transformer())["results"]
    feeder = estimate_fault_current(_transformer(
        fault_location="feeder", feeder_length=50, conductor_size=70))["results"]
    assert feeder["fault_current_a"] < terminal["fault_current_a"]


def test_unknown_size_uses_default_impedance() -> None:
    result = estimate_fault_current(_transformer(
        fault_location="feeder", feeder_length=100, conductor_size=240))
    res = result["results"]
    assert res["cable_r_ohm"] == pytest.approx(0.3 / 1000 * 100)
    assert res["cable_x_ohm"] == pytest.approx(0.08 / 1000 * 100)
    assert "not in the reactance library" in result["warnings"][0]


def test_size_lookup_rounds_to_library_key() -> None:
    res = estimate_fault_current(_transformer(
        fault_location="feeder", feeder_length=100, conductor_size="95.4"))
    assert res["warnings"] == []
    assert res["results"]["cable_r_ohm"] == pytest.approx(0.2 / 1000 * 100)


def test_feeder_without_length_warns() -> None:
    result = estimate_fault_current(_transformer(fault_location="feeder", conductor_size=95))
    assert result["results"]["z_cable_ohm"] == 0
    assert any("Feeder length" in w for w in result["warnings"])


def test_uses_library_reactance_table() -> None:
    lib = build_snapshot({"reactance": {"95": {"r": 0.4, "x": 0.13}}})
    default = estimate_fault_current(_transformer(
        fault_location="feeder", feeder_length=80, conductor_size=95))["results"]
    edited = estimate_fault_current(_transformer(
        fault_location="feeder", feeder_length=80, conductor_size=95), lib)["results"]
    assert edited["z_cable_ohm"] == pytest.approx(default["z_cable_ohm"] * 2)


def test_required_fields() -> None:
    result = estimate_fault_current({"kva": "", "secondary_v": "-400", "percent_z": "z"})
    assert result["errors"] == [
        "Transformer kVA must be greater than 0.",
        "Secondary voltage must be greater than 0.",
        "%Z must be greater than 0.",
    ]


def test_caveat_always_noted() -> None:
    notes = estimate_fault_current(_transformer())["notes"]
    assert any("utility impedance not included" in n for n in notes)
    assert any("magnitudes" in n for n in notes)


def test_huge_ratings_return_error_record() -> None:
    result = estimate_fault_current(_transformer(kva="1e306", secondary_v="1e-200"))
    assert result["errors"] == ["Fault impedance is out of range; no fault current estimated."]


def test_very_high_voltage_returns_error_record() -> None:
    result = estimate_fault_current(_transformer(secondary_v="1e200"))
    assert result["kind"] == "InvalidInput"
