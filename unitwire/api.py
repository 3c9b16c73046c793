"""Stable public API for building and converting quantities by name."""

from __future__ import annotations

from typing import Union

from .abbreviations import default_registry
from .catalog import Kind, Unit, get_catalog
from .errors import AmbiguousAbbreviationError, UnknownAbbreviationError
from .units import OpenQuantity, Quantity, QuantityLike, convert, quantity, unwrap


def _unit_in(kind: Kind, token: str) -> Unit:
    # Canonical names take precedence over abbreviations.
    found = kind.find_unit(token)
    if found is not None:
        return found
    return default_registry().lookup(kind, token)


def zero_mass() -> Quantity:
    """Return zero in the base mass unit.

    Example:
        >>> str(zero_mass())
        '0 kg'
    """
    return Quantity.zero(get_catalog().kind("Mass"))


def construct_quantity(kind_name: str, unit_name: str, value: float) -> Quantity:
    """Build a quantity from a kind name and a canonical unit name."""
    return quantity(kind_name, unit_name, value)


def quantity_from_abbreviation(abbreviation: str, value: float, culture: str | None = None) -> OpenQuantity:
    """Build a quantity from an abbreviation that only one kind defines.

    Example:
        >>> quantity_from_abbreviation("kg", 2).kind.name
        'Mass'

    Raises:
        UnknownAbbreviationError: If no kind defines the token.
        AmbiguousAbbreviationError: If several kinds define it, like ``g``.
    """
    registry = default_registry()
    owners = registry.kinds_for_abbreviation(abbreviation, culture)
    if not owners:
        raise UnknownAbbreviationError(abbreviation, culture=culture)
    if len(owners) > 1:
        raise AmbiguousAbbreviationError(abbreviation, owners)
    kind = get_catalog().kind(owners[0])
    return OpenQuantity(Quantity(kind, registry.lookup(kind, abbreviation, culture), value))


def convert_by_abbreviation(value: QuantityLike, abbreviation: str) -> Quantity:
    """Convert to the unit of the same kind that uses ``abbreviation``."""
    resolved = unwrap(value)
    return convert(resolved, default_registry().lookup(resolved.kind, abbreviation))


def density_from_mass_and_volume(
    mass_unit: str,
    mass_value: float,
    volume_unit: str,
    volume_value: float,
) -> Quantity:
    """Divide a mass by a volume; units are canonical names or abbreviations.

    Example:
        >>> density = density_from_mass_and_volume("kg", 1, "Liter", 1)
        >>> density.kind.name, density.value
        ('Density', 1000.0)

    Raises:
        ValueError: If the volume is zero.
    """
    catalog = get_catalog()
    mass_kind = catalog.kind("Mass")
    volume_kind = catalog.kind("Volume")
    mass = Quantity(mass_kind, _unit_in(mass_kind, mass_unit), mass_value)
    volume = Quantity(volume_kind, _unit_in(volume_kind, volume_unit), volume_value)
    if volume.as_base().value == 0.0:
        raise ValueError("Volume must be non-zero to compute a density.")
    return mass / volume


def convert_density(density: QuantityLike, unit: Union[Unit, str]) -> Quantity:
    """Convert a density to another density unit (name or abbreviation)."""
    resolved = unwrap(density)
    catalog = get_catalog()
    expected = catalog.kind("Density")
    if resolved.kind != expected:
        raise ValueError(f"Expected a Density quantity, got {resolved.kind.name}.")
    return convert(resolved, unit)


__all__ = [
    "construct_quantity",
    "convert_by_abbreviation",
    "convert_density",
    "density_from_mass_and_volume",
    "quantity_from_abbreviation",
    "zero_mass",
]
