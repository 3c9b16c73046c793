from __future__ import annotations

import json
import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from unitwire.catalog import get_catalog, load_catalog
from unitwire.errors import (
    AmbiguousAbbreviationError,
    ConversionKindMismatchError,
    DerivedKindError,
    UnknownUnitError,
)
from unitwire.units import OpenQuantity, Quantity, convert, from_pint, quantity, unwrap

CATALOG = get_catalog()
ALL_UNITS = [(kind, unit) for kind in CATALOG for unit in kind.units]

magnitudes = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)


def test_mass_and_volume_conversions() -> None:
    assert quantity("Mass", "Kilogram", 1).to("Gram").value == 1000.0
    assert quantity("Mass", "Kilogram", 1).to("g").value == 1000.0
    assert quantity("Volume", "Liter", 1).to("ml").value == 1000.0
    assert quantity("Volume", "Milliliter", 250).to("Liter").value == 0.25
    assert quantity("Mass", "Pound", 1).to("Kilogram").value == 0.45359237
    assert quantity("Length", "Mile", 1).to("Foot").value == 5280.0


def test_temperature_conversions_are_affine() -> None:
    assert quantity("Temperature", "Kelvin", 300.0).to("DegreeCelsius").value == pytest.approx(26.85)
    assert quantity("Temperature", "DegreeCelsius", 100).to("DegreeFahrenheit").value == 212.0
    assert quantity("Temperature", "DegreeFahrenheit", 32).to("K").value == pytest.approx(273.15)
    assert quantity("Temperature", "DegreeFahrenheit", 212).to("DegreeCelsius").value == pytest.approx(100.0)


def test_conversion_identity_returns_same_value() -> None:
    mass = quantity("Mass", "Gram", 12.5)
    assert convert(mass, "Gram") is mass
    assert convert(mass, mass.unit) is mass


def test_cross_kind_conversion_is_rejected() -> None:
    mass = quantity("Mass", "Kilogram", 1)
    meter = CATALOG.kind("Length").unit("Meter")
    with pytest.raises(ConversionKindMismatchError) as info:
        convert(mass, meter)
    assert info.value.code == "CNV_001"
    assert info.value.details["target_kind"] == "Length"


def test_textual_target_must_name_a_unit_of_the_kind() -> None:
    with pytest.raises(UnknownUnitError):
        quantity("Mass", "Kilogram", 1).to("m")


def test_unit_of_another_kind_cannot_build_quantity() -> None:
    with pytest.raises(UnknownUnitError):
        Quantity(CATALOG.kind("Mass"), CATALOG.kind("Length").unit("Meter"), 1)


def test_same_kind_arithmetic_keeps_left_unit() -> None:
    total = quantity("Mass", "Kilogram", 1) + quantity("Mass", "Gram", 500)
    assert total.unit.name == "Kilogram"
    assert total.value == pytest.approx(1.5)
    assert (quantity("Mass", "Gram", 500) - quantity("Mass", "Kilogram", 1)).value == pytest.approx(-500.0)
    assert (-quantity("Mass", "Gram", 2)).value == -2.0
    assert (3 * quantity("Mass", "Gram", 2)).value == 6.0
    assert (quantity("Mass", "Gram", 2) / 4).value == 0.5


def test_adding_different_kinds_is_rejected() -> None:
    with pytest.raises(ConversionKindMismatchError):
        quantity("Mass", "Kilogram", 1) + quantity("Length", "Meter", 1)


def test_ordering_compares_base_values() -> None:
    assert quantity("Mass", "Gram", 999) < quantity("Mass", "Kilogram", 1)
    assert quantity("Mass", "Tonne", 1) > quantity("Mass", "Kilogram", 999)
    assert quantity("Mass", "Kilogram", 1).is_close(quantity("Mass", "Gram", 1000))


def test_ordering_is_consistent_for_equal_amounts_in_different_units() -> None:
    kilogram = quantity("Mass", "Kilogram", 1)
    grams = quantity("Mass", "Gram", 1000)
    assert kilogram <= grams
    assert kilogram >= grams
    assert not kilogram < grams
    assert not kilogram > grams
    assert kilogram != grams
    assert sorted([quantity("Mass", "Kilogram", 2), grams, quantity("Mass", "Gram", 1)]) == [
        quantity("Mass", "Gram", 1),
        grams,
        quantity("Mass", "Kilogram", 2),
    ]


def test_ordering_across_kinds_is_rejected() -> None:
    with pytest.raises(ConversionKindMismatchError):
        quantity("Mass", "Kilogram", 1) <= quantity("Length", "Meter", 1)
    with pytest.raises(TypeError):
        quantity("Mass", "Kilogram", 1) >= 1.0


def test_mass_over_volume_is_density() -> None:
    density = quantity("Mass", "Kilogram", 1) / quantity("Volume", "Liter", 1)
    assert isinstance(density, Quantity)
    assert density.kind.name == "Density"
    assert density.to("GramPerMilliliter").value == 1.0


def test_same_kind_ratio_is_dimensionless() -> None:
    assert quantity("Length", "Kilometer", 1) / quantity("Length", "Meter", 250) == pytest.approx(4.0)


def test_derived_kinds_follow_dimensions() -> None:
    speed = quantity("Length", "Meter", 10) / quantity("Duration", "Second", 2)
    assert speed.kind.name == "Speed"
    assert speed.value == pytest.approx(5.0)
    force = quantity("Mass", "Kilogram", 2) * quantity("Acceleration", "MeterPerSecondSquared", 3)
    assert force.kind.name == "Force"
    assert force.value == pytest.approx(6.0)


def test_ambiguous_derived_kind_is_rejected() -> None:
    force = quantity("Force", "Newton", 2)
    with pytest.raises(DerivedKindError) as info:
        force * quantity("Length", "Meter", 3)
    assert info.value.details["candidates"] == ["Energy", "Torque"]


def test_kinds_outside_arithmetic_do_not_compete_for_results() -> None:
    irradiance = quantity("Power", "Kilowatt", 3) / quantity("Area", "SquareMeter", 2)
    assert irradiance.kind.name == "Irradiance"
    assert irradiance.value == pytest.approx(1500.0)
    power = quantity("ElectricPotential", "Volt", 230) * quantity("ElectricCurrent", "Ampere", 2)
    assert power.kind.name == "Power"
    names = [kind.name for kind in CATALOG.kinds_with_dimensionality(power.kind.dimensionality)]
    assert names == ["Power", "ApparentPower", "ReactivePower"]


def test_derived_results_reach_added_kinds() -> None:
    jerk = quantity("Acceleration", "MeterPerSecondSquared", 3) / quantity("Duration", "Second", 2)
    assert jerk.kind.name == "Jerk"
    assert jerk.value == pytest.approx(1.5)
    impulse = quantity("Force", "Newton", 4) * quantity("Duration", "Millisecond", 500)
    assert impulse.kind.name == "Impulse"
    assert impulse.value == pytest.approx(2.0)
    rate = quantity("Information", "Megabyte", 1) / quantity("Duration", "Second", 1)
    assert rate.kind.name == "BitRate"
    assert rate.to("MegabitPerSecond").value == 8.0


def test_from_pint_without_kind() -> None:
    result = quantity("Mass", "Kilogram", 1).to_pint() * quantity("Duration", "Second", 1).to_pint()
    with pytest.raises(DerivedKindError) as info:
        from_pint(result)
    assert info.value.details["candidates"] == []


def test_conversion_by_abbreviation_reports_ambiguity_inside_kind() -> None:
    document = {
        "catalog_version": "test",
        "kinds": [
            {
                "name": "Length",
                "base_unit": "Meter",
                "units": [
                    {"name": "Meter", "plural": "Meters", "pint": "meter", "scale": "1", "abbreviations": ["m"]},
                    {"name": "Mile", "plural": "Miles", "pint": "mile", "scale": "1609.344", "abbreviations": ["mi", "m"]},
                ],
            }
        ],
    }
    length = load_catalog(json.dumps(document)).kind("Length")
    with pytest.raises(AmbiguousAbbreviationError):
        Quantity(length, length.unit("Mile"), 1).to("m")


def test_open_quantity_exposes_wrapped_value() -> None:
    mass = quantity("Mass", "Kilogram", 2)
    handle = OpenQuantity(mass)
    assert handle.kind.name == "Mass"
    assert handle.value == 2.0
    assert unwrap(handle) is mass
    assert str(handle) == "2 kg"
    assert handle.to("Gram").value == pytest.approx(2000.0)
    with pytest.raises(TypeError):
        unwrap(2.0)


def test_zero_is_in_base_unit() -> None:
    zero = Quantity.zero(CATALOG.kind("Mass"))
    assert zero.unit.name == "Kilogram"
    assert zero.value == 0.0


@given(index=st.integers(min_value=0, max_value=len(ALL_UNITS) - 1), value=magnitudes)
@settings(max_examples=200, deadline=None)
def test_conversion_round_trip_through_base(index: int, value: float) -> None:
    kind, unit = ALL_UNITS[index]
    original = Quantity(kind, unit, value)
    back = original.as_base().to(unit)
    assert math.isclose(back.value, value, rel_tol=1e-9, abs_tol=1e-6)


@given(
    kind_index=st.integers(min_value=0, max_value=len(CATALOG) - 1),
    picks=st.tuples(st.integers(min_value=0), st.integers(min_value=0), st.integers(min_value=0)),
    value=magnitudes,
)
@settings(max_examples=200, deadline=None)
def test_conversion_composes(kind_index: int, picks: tuple[int, int, int], value: float) -> None:
    kind = CATALOG.kinds[kind_index]
    source, middle, target = (kind.units[pick % len(kind.units)] for pick in picks)
    original = Quantity(kind, source, value)
    direct = original.to(target)
    chained = original.to(middle).to(target)
    assert math.isclose(direct.value, chained.value, rel_tol=1e-9, abs_tol=1e-6)
