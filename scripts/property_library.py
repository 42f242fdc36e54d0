#!/usr/bin/env python3
"""
Property Library Module
Shared physical-property tables and raceway catalogs for the calculation modules.

Includes:
- Conductor resistivity and temperature coefficients (Cu, Al)
- Per-size cable resistance/reactance (Ω/km) for fault calculations
- Cable outer diameters per conductor size
- Conduit catalogs per conduit type and the wireway catalog
- Default conduit/wireway fill limits

Every calculation reads one immutable LibrarySnapshot for its whole run.
Operator edits produce a new snapshot (build_snapshot / load_library);
a snapshot is never modified in place.

Author: EE Toolbox
Standards: IEC 60228 (conductor resistance), IEC 61386 / NEC Chapter 9 (raceway fill)
"""

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

import yaml


logger = logging.getLogger(__name__)


# Default library - preliminary design values, editable by the operator
DEFAULT_LIBRARY = {
    "conductors": {
        # resistivity in Ω·mm²/m at 20°C, temp_coeff in 1/°C
        "cu": {"resistivity": 0.01724, "temp_coeff": 0.00393},
        "al": {"resistivity": 0.02826, "temp_coeff": 0.00403},
    },
    # Ω/km per conductor, keyed by size in mm²
    "reactance": {
        "25": {"r": 0.78, "x": 0.08},
        "50": {"r": 0.39, "x": 0.075},
        "70": {"r": 0.27, "x": 0.07},
        "95": {"r": 0.2, "x": 0.065},
        "120": {"r": 0.16, "x": 0.062},
        "150": {"r": 0.13, "x": 0.06},
    },
    # Cable outer diameter (mm), keyed by size in mm²
    "cable_od": {
        "25": 12,
        "50": 18,
        "70": 22,
        "95": 26,
        "120": 30,
        "150": 34,
    },
    "fill_limits": {
        "conduit_percent": 40,
        "wireway_percent": 20,
        # Internal diameters (mm), ascending
        "conduit_sizes": {
            "pvc": [20, 25, 32, 40, 50, 63, 75, 90, 110],
            "emt": [16, 21, 27, 35, 41, 53, 63, 78, 91],
            "rmc": [21, 27, 35, 41, 53, 63, 78, 91, 103],
            "hdpe": [32, 40, 50, 63, 75, 90, 110, 125],
        },
        # Width x height (mm), ascending by area
        "wireway_sizes": [
            {"w": 100, "h": 50},
            {"w": 150, "h": 100},
            {"w": 200, "h": 100},
            {"w": 300, "h": 150},
            {"w": 400, "h": 200},
        ],
    },
}

# Used when a feeder size is missing from the reactance table (Ω/km)
DEFAULT_CABLE_IMPEDANCE = {"r": 0.3, "x": 0.08}

# Original catalog spelling -> library key
_KEY_ALIASES = {
    "tempCoeff": "temp_coeff",
    "cableOd": "cable_od",
    "fillLimits": "fill_limits",
    "conduitPercent": "conduit_percent",
    "wirewayPercent": "wireway_percent",
    "conduitSizes": "conduit_sizes",
    "wirewaySizes": "wireway_sizes",
}

LIBRARY_SECTIONS = ("conductors", "reactance", "cable_od", "fill_limits")


@dataclass(frozen=True)
class LibrarySnapshot:
    conductors: Mapping[str, Mapping[str, float]]
    reactance: Mapping[str, Mapping[str, float]]
    cable_od: Mapping[str, float]
    fill_limits: Mapping[str, object]

    def to_dict(self) -> dict:
        """Plain (mutable, YAML-safe) copy of the snapshot."""
        return {
            "conductors": {k: dict(v) for k, v in self.conductors.items()},
            "reactance": {k: dict(v) for k, v in self.reactance.items()},
            "cable_od": dict(self.cable_od),
            "fill_limits": {
                "conduit_percent": self.fill_limits["conduit_percent"],
                "wireway_percent": self.fill_limits["wireway_percent"],
                "conduit_sizes": {
                    k: list(v) for k, v in self.fill_limits["conduit_sizes"].items()
                },
                "wireway_sizes": [dict(s) for s in self.fill_limits["wireway_sizes"]],
            },
        }


def size_key(size) -> str:
    """Library key for a conductor size: the rounded mm² value as a string."""
    return str(int(round(float(size))))


def _normalize_keys(value):
    if isinstance(value, Mapping):
        return {_KEY_ALIASES.get(str(k), str(k)): _normalize_keys(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_keys(v) for v in value]
    return value


def build_snapshot(data: Optional[Mapping] = None) -> LibrarySnapshot:
    """
    Freeze a library mapping into an immutable snapshot.

    Sections missing from data fall back to DEFAULT_LIBRARY, so an edit of
    the reactance table alone is a complete library. Structure is not
    validated here; use check_library() for that.

    Args:
        data: Library mapping (snake_case or original camelCase keys)

    Returns:
        LibrarySnapshot
    """
    merged = _normalize_keys(DEFAULT_LIBRARY)
    if data:
        for section, content in _normalize_keys(data).items():
            if section in LIBRARY_SECTIONS:
                merged[section] = content

    fill = dict(merged["fill_limits"])
    defaults = DEFAULT_LIBRARY["fill_limits"]
    conduit_sizes = fill.get("conduit_sizes", defaults["conduit_sizes"])
    wireway_sizes = fill.get("wireway_sizes", defaults["wireway_sizes"])

    frozen_fill = MappingProxyType({
        "conduit_percent": fill.get("conduit_percent", defaults["conduit_percent"]),
        "wireway_percent": fill.get("wireway_percent", defaults["wireway_percent"]),
        "conduit_sizes": MappingProxyType({
            str(kind).lower(): tuple(float(d) for d in sizes)
            for kind, sizes in conduit_sizes.items()
        }),
        "wireway_sizes": tuple(
            MappingProxyType({"w": float(s["w"]), "h": float(s["h"])})
            for s in wireway_sizes
        ),
    })

    return LibrarySnapshot(
        conductors=MappingProxyType({
            str(material).lower(): MappingProxyType(dict(props))
            for material, props in merged["conductors"].items()
        }),
        reactance=MappingProxyType({
            str(size): MappingProxyType(dict(rx)) for size, rx in merged["reactance"].items()
        }),
        cable_od=MappingProxyType({str(size): od for size, od in merged["cable_od"].items()}),
        fill_limits=frozen_fill,
    )


_DEFAULT_SNAPSHOT = build_snapshot()


def default_snapshot() -> LibrarySnapshot:
    """Snapshot of DEFAULT_LIBRARY (shared, immutable)."""
    return _DEFAULT_SNAPSHOT


def resolve_library(library=None) -> LibrarySnapshot:
    """Snapshot to use for one call: the given one, a frozen mapping, or the default."""
    if library is None:
        return _DEFAULT_SNAPSHOT
    if isinstance(library, LibrarySnapshot):
        return library
    return build_snapshot(library)


def _is_ascending(values) -> bool:
    return all(a < b for a, b in zip(values, values[1:]))


def _shape_problems(data: Mapping) -> list:
    """Sections build_snapshot() cannot read: a table or catalog of the wrong kind."""
    problems = []
    data = _normalize_keys(data)

    for section in ("conductors", "reactance"):
        if section not in data:
            continue
        table = data[section]
        if not isinstance(table, Mapping):
            problems.append(f"{section}: expected a mapping")
            continue
        for key, entry in table.items():
            if not isinstance(entry, Mapping):
                problems.append(f"{section}.{key}: expected a mapping")

    if "cable_od" in data and not isinstance(data["cable_od"], Mapping):
        problems.append("cable_od: expected a mapping")

    if "fill_limits" not in data:
        return problems
    fill = data["fill_limits"]
    if not isinstance(fill, Mapping):
        problems.append("fill_limits: expected a mapping")
        return problems

    conduit_sizes = fill.get("conduit_sizes", {})
    if not isinstance(conduit_sizes, Mapping):
        problems.append("fill_limits.conduit_sizes: expected a mapping of conduit type to diameters")
    else:
        for kind, sizes in conduit_sizes.items():
            if not isinstance(sizes, list):
                problems.append(f"fill_limits.conduit_sizes.{kind}: expected a list of diameters")

    wireway_sizes = fill.get("wireway_sizes", [])
    if not isinstance(wireway_sizes, list) or not all(
            isinstance(s, Mapping) and "w" in s and "h" in s for s in wireway_sizes):
        problems.append("fill_limits.wireway_sizes: expected a list of {w, h} sizes")

    return problems


def check_library(data: Mapping) -> list:
    """
    Check a library mapping against the catalog invariants.

    - every section has the expected shape (tables are mappings, catalogs lists)
    - conductor resistivity > 0
    - every conduit catalog non-empty and strictly ascending
    - wireway catalog non-empty and ascending by area
    - fill percentages in (0, 100]

    Args:
        data: Library mapping (partial mappings are checked after merging defaults)

    Returns:
        List of problem descriptions (empty when the library is usable)
    """
    problems = _shape_problems(data)
    if problems:
        return problems
    library = build_snapshot(data).to_dict()

    if not library["conductors"]:
        problems.append("conductors: table is empty")
    for material, props in library["conductors"].items():
        resistivity = props.get("resistivity")
        if not isinstance(resistivity, (int, float)) or resistivity <= 0:
            problems.append(f"conductors.{material}: resistivity must be > 0")
        if not isinstance(props.get("temp_coeff"), (int, float)):
            problems.append(f"conductors.{material}: temp_coeff must be a number")

    for size, rx in library["reactance"].items():
        if not all(isinstance(rx.get(k), (int, float)) and rx.get(k) >= 0 for k in ("r", "x")):
            problems.append(f"reactance.{size}: r and x must be numbers >= 0")

    fill = library["fill_limits"]
    for key in ("conduit_percent", "wireway_percent"):
        pct = fill[key]
        if not isinstance(pct, (int, float)) or not 0 < pct <= 100:
            problems.append(f"fill_limits.{key}: must be in (0, 100]")

    if not fill["conduit_sizes"]:
        problems.append("fill_limits.conduit_sizes: no conduit types")
    for kind, sizes in fill["conduit_sizes"].items():
        if not sizes:
            problems.append(f"fill_limits.conduit_sizes.{kind}: catalog is empty")
        elif not _is_ascending(sizes):
            problems.append(f"fill_limits.conduit_sizes.{kind}: diameters must be ascending")

    areas = [s["w"] * s["h"] for s in fill["wireway_sizes"]]
    if not areas:
        problems.append("fill_limits.wireway_sizes: catalog is empty")
    elif not _is_ascending(areas):
        problems.append("fill_limits.wireway_sizes: sizes must be ascending by area")

    return problems


def load_library(path) -> LibrarySnapshot:
    """
    Load an operator-edited library catalog (YAML or JSON).

    Args:
        path: Catalog file path

    Returns:
        New LibrarySnapshot

    Raises:
        FileNotFoundError: path does not exist
        ValueError: file is not a mapping or breaks the catalog invariants
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Library catalog not found: {path}")
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid library catalog {path}: {e}") from e

    if not isinstance(data, Mapping):
        raise ValueError(f"Invalid library catalog {path}: expected a mapping at top level")

    try:
        problems = check_library(data)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid library catalog {path}: {e}") from e
    if problems:
        raise ValueError(f"Invalid library catalog {path}: " + "; ".join(problems))

    logger.info("Loaded property library from %s", path)
    return build_snapshot(data)


def save_library(snapshot: LibrarySnapshot, path) -> Path:
    """Write a snapshot as a YAML catalog (or JSON when the suffix is .json)."""
    path = Path(path)
    data = snapshot.to_dict()
    with open(path, "w", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            json.dump(data, f, indent=2)
        else:
            yaml.safe_dump(data, f, sort_keys=False)
    logger.info("Saved property library to %s", path)
    return path


def conductor_resistance(
    library: LibrarySnapshot,
    material: str,
    area_mm2: float,
    temperature_c: float
) -> float:
    """
    Conductor resistance per metre at operating temperature.

    R_T = (ρ20 / A) × (1 + α × (T − 20))

    Args:
        library: Library snapshot
        material: Conductor material key ("cu", "al")
        area_mm2: Conductor cross-section (mm²)
        temperature_c: Conductor temperature (°C)

    Returns:
        Resistance in Ω/m
    """
    ref = library.conductors[material]
    r20 = ref["resistivity"] / area_mm2
    return r20 * (1 + ref["temp_coeff"] * (temperature_c - 20))


def cable_impedance_per_km(library: LibrarySnapshot, size) -> Tuple[dict, bool]:
    """
    Per-km r/x for a conductor size.

    Returns:
        ({"r", "x"} in Ω/km, True if found in the table else False for the default)
    """
    entry = library.reactance.get(size_key(size))
    if entry is None:
        return dict(DEFAULT_CABLE_IMPEDANCE), False
    return {"r": entry["r"], "x": entry["x"]}, True


def conduit_catalog(library: LibrarySnapshot, conduit_type: str) -> tuple:
    """Ascending internal diameters for a conduit type (empty if unknown)."""
    return library.fill_limits["conduit_sizes"].get(str(conduit_type).lower(), ())


def circle_area(diameter: float) -> float:
    """Area of a circle from its diameter."""
    radius = diameter / 2
    return math.pi * radius * radius


if __name__ == "__main__":
    print("Testing property_library module...")
    print("=" * 60)

    lib = default_snapshot()
    r75 = conductor_resistance(lib, "cu", 70, 75)
    print(f"\n70mm² Cu @ 75°C: {r75 * 1000:.4f} Ω/km")
    rx, found = cable_impedance_per_km(lib, 95)
    print(f"95mm² cable: r={rx['r']} x={rx['x']} Ω/km (library: {found})")
    print(f"EMT catalog: {conduit_catalog(lib, 'emt')}")
    print(f"Library problems: {check_library(lib.to_dict()) or 'none'}")

    print("\n" + "=" * 60)
    print("All tests completed!")
