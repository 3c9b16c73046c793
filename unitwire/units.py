"""Typed quantity primitives and deterministic unit conversions.

Example:
    >>> mass = quantity("Mass", "Kilogram", 1)
    >>> mass.to("g").value
    1000.0
    >>> str(mass / quantity("Volume", "Liter", 1))
    '1000 kg/m³'
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Union

from .catalog import Q_, Catalog, Kind, Unit, get_catalog
from .errors import (
    AmbiguousAbbreviationError,
    ConversionKindMismatchError,
    DerivedKindError,
    UnknownUnitError,
)


@dataclass(frozen=True)
class Quantity:
    """An immutable ``(kind, unit, value)`` measurement."""

    kind: Kind
    unit: Unit
    value: float

    def __post_init__(self) -> None:
        if self.unit.kind_name != self.kind.name:
            raise UnknownUnitError(self.kind.name, self.unit.name)
        object.__setattr__(self, "value", float(self.value))

    @classmethod
    def zero(cls, kind: Kind) -> "Quantity":
        return cls(kind, kind.base_unit, 0.0)

    def to(self, target_unit: Union[Unit, str]) -> "Quantity":
        """Convert this quantity into another unit of the same kind."""
        return convert(self, target_unit)

    def as_base(self) -> "Quantity":
        return convert(self, self.kind.base_unit)

    def is_close(self, other: "Quantity", *, rel_tol: float = 1e-9, abs_tol: float = 0.0) -> bool:
        """Compare two same-kind quantities by their base-unit values."""
        _require_same_kind(self, other)
        return math.isclose(
            self.unit.to_base(self.value),
            other.unit.to_base(other.value),
            rel_tol=rel_tol,
            abs_tol=abs_tol,
        )

    def to_pint(self) -> Any:
        """Return the value as a pint quantity in the kind's base unit."""
        base = self.kind.base_unit
        return Q_(self.unit.to_base(self.value), base.pint_expression)

    def __str__(self) -> str:
        return f"{self.value:g} {self.unit.abbreviations[0]}"

    def __neg__(self) -> "Quantity":
        return Quantity(self.kind, self.unit, -self.value)

    def __add__(self, other: object) -> "Quantity":
        if not isinstance(other, Quantity):
            return NotImplemented
        return Quantity(self.kind, self.unit, self.value + _same_unit_value(self, other))

    def __sub__(self, other: object) -> "Quantity":
        if not isinstance(other, Quantity):
            return NotImplemented
        return Quantity(self.kind, self.unit, self.value - _same_unit_value(self, other))

    def __mul__(self, other: object) -> Union["Quantity", float]:
        if isinstance(other, (int, float)):
            return Quantity(self.kind, self.unit, self.value * other)
        if isinstance(other, Quantity):
            return from_pint(self.to_pint() * other.to_pint())
        return NotImplemented

    def __rmul__(self, other: object) -> Union["Quantity", float]:
        if isinstance(other, (int, float)):
            return Quantity(self.kind, self.unit, other * self.value)
        return NotImplemented

    def __truediv__(self, other: object) -> Union["Quantity", float]:
        if isinstance(other, (int, float)):
            return Quantity(self.kind, self.unit, self.value / other)
        if isinstance(other, Quantity):
            if other.kind == self.kind:
                return self.unit.to_base(self.value) / other.unit.to_base(other.value)
            return from_pint(self.to_pint() / other.to_pint())
        return NotImplemented

    # Ordering uses base values; ``==`` stays the dataclass field comparison,
    # so 1 kg <= 1000 g holds while 1 kg == 1000 g does not.
    def _base_pair(self, other: object) -> tuple[float, float] | None:
        if not isinstance(other, Quantity):
            return None
        _require_same_kind(self, other)
        return self.unit.to_base(self.value), other.unit.to_base(other.value)

    def __lt__(self, other: object) -> bool:
        pair = self._base_pair(other)
        if pair is None:
            return NotImplemented
        return pair[0] < pair[1]

    def __le__(self, other: object) -> bool:
        pair = self._base_pair(other)
        if pair is None:
            return NotImplemented
        return pair[0] <= pair[1]

    def __gt__(self, other: object) -> bool:
        pair = self._base_pair(other)
        if pair is None:
            return NotImplemented
        return pair[0] > pair[1]

    def __ge__(self, other: object) -> bool:
        pair = self._base_pair(other)
        if pair is None:
            return NotImplemented
        return pair[0] >= pair[1]


@dataclass(frozen=True)
class OpenQuantity:
    """Type-erased handle around a quantity of any kind.

    The class itself is the "open" key when decoding and in schema mappings.
    """

    quantity: Quantity

    @property
    def kind(self) -> Kind:
        return self.quantity.kind

    @property
    def unit(self) -> Unit:
        return self.quantity.unit

    @property
    def value(self) -> float:
        return self.quantity.value

    def to(self, target_unit: Union[Unit, str]) -> "OpenQuantity":
        return OpenQuantity(convert(self.quantity, target_unit))

    def __str__(self) -> str:
        return str(self.quantity)


QuantityLike = Union[Quantity, OpenQuantity]


def unwrap(value: QuantityLike) -> Quantity:
    """Return the concrete quantity behind an open handle."""
    if isinstance(value, OpenQuantity):
        return value.quantity
    if isinstance(value, Quantity):
        return value
    raise TypeError(f"Expected Quantity or OpenQuantity, got {type(value).__name__}.")


def _require_same_kind(left: Quantity, right: Quantity) -> None:
    if left.kind != right.kind:
        raise ConversionKindMismatchError(left.kind.name, right.kind.name, right.unit.name)


def _same_unit_value(left: Quantity, right: Quantity) -> float:
    _require_same_kind(left, right)
    return convert(right, left.unit).value


def _resolve_target(kind: Kind, target_unit: Union[Unit, str]) -> Unit:
    if isinstance(target_unit, Unit):
        if target_unit.kind_name != kind.name:
            raise ConversionKindMismatchError(kind.name, target_unit.kind_name, target_unit.name)
        return kind.unit(target_unit.name)

    by_name = kind.find_unit(target_unit)
    if by_name is not None:
        return by_name
    units = kind.units_for_abbreviation(target_unit)
    if len(units) > 1:
        raise AmbiguousAbbreviationError(target_unit, [unit.name for unit in units], kind.name)
    if not units:
        raise UnknownUnitError(kind.name, target_unit)
    return units[0]


def convert(value: Quantity, target_unit: Union[Unit, str]) -> Quantity:
    """Convert a quantity to another unit of its kind.

    ``target_unit`` is a ``Unit``, a canonical unit name, or an abbreviation.

    Raises:
        ConversionKindMismatchError: If the target unit belongs to another kind.
        UnknownUnitError: If a textual target names no unit of the kind.
    """
    unit = _resolve_target(value.kind, target_unit)
    if unit == value.unit:
        return value
    ratio, shift = value.unit.conversion_to(unit)
    converted = value.value * ratio
    if shift:
        converted += shift
    return Quantity(value.kind, unit, converted)


def from_pint(result: Any, catalog: Catalog | None = None) -> Union[Quantity, float]:
    """Map a pint arithmetic result back onto the unique catalog kind.

    Dimensionless results are returned as plain floats. Kinds flagged
    ``arithmetic_result: false`` never take part, so W/m² stays Irradiance
    although HeatFlux shares its dimension.

    Raises:
        DerivedKindError: If no kind, or more than one kind, has the result's dimension.
    """
    if result.dimensionless:
        return float(result.to("dimensionless").magnitude)
    catalog = catalog or get_catalog()
    kinds = catalog.kinds_with_dimensionality(result.dimensionality, arithmetic_only=True)
    if len(kinds) != 1:
        raise DerivedKindError(str(result.dimensionality), [kind.name for kind in kinds])
    kind = kinds[0]
    base = kind.base_unit
    return Quantity(kind, base, float(result.to(base.pint_expression).magnitude))


def quantity(
    kind: Union[Kind, str],
    unit: Union[Unit, str],
    value: float,
    *,
    catalog: Catalog | None = None,
) -> Quantity:
    """Build a quantity from names or catalog objects.

    Example:
        >>> quantity("Mass", "Kilogram", 1).unit.name
        'Kilogram'
    """
    if isinstance(kind, str):
        kind = (catalog or get_catalog()).kind(kind)
    if isinstance(unit, str):
        unit = kind.unit(unit)
    return Quantity(kind, unit, value)


__all__ = [
    "OpenQuantity",
    "Quantity",
    "QuantityLike",
    "convert",
    "from_pint",
    "quantity",
    "unwrap",
]
