"""Closed catalog of quantity kinds, their units, and abbreviations.

The catalog table lives at ``unitwire/data/catalog.json`` and is loaded via
``importlib.resources``. Each unit row carries its affine rule
``value_base = scale * value + offset`` as exact decimal text such as
``"0.45359237"`` or ``"5/9"``. A conversion combines the exact factors of both
units and rounds once. The row also names a pint expression, which pint checks
against the base unit at load time and which carries cross-kind arithmetic.

Example:
    >>> catalog = get_catalog()
    >>> catalog.kind("Mass").base_unit.name
    'Kilogram'
    >>> catalog.kind("length").unit("kilometer").scale
    1000.0
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from fractions import Fraction
from functools import lru_cache
from importlib import resources
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from pint import UnitRegistry
from pint.errors import PintError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import CatalogError, UnknownKindError, UnknownUnitError

logger = logging.getLogger(__name__)

CATALOG_PACKAGE = "unitwire.data"
CATALOG_FILENAME = "catalog.json"
INVARIANT_CULTURE = ""

ureg = UnitRegistry()
Q_ = ureg.Quantity


def normalize_culture(culture: str | None) -> str:
    """Map ``None`` and blank culture names to the invariant culture."""
    if culture is None:
        return INVARIANT_CULTURE
    return culture.strip()


_FACTOR_OPERATOR = re.compile(r"\s*([*/])\s*")


def parse_factor(text: str) -> Fraction:
    """Evaluate exact factor text: decimals joined by ``*`` and ``/``, left to right.

    Example:
        >>> parse_factor("459.67*5/9")
        Fraction(45967, 180)
    """
    parts = _FACTOR_OPERATOR.split(text.strip())
    try:
        result = Fraction(parts[0])
        for operator, operand in zip(parts[1::2], parts[2::2]):
            result = result * Fraction(operand) if operator == "*" else result / Fraction(operand)
    except (ValueError, ZeroDivisionError) as exc:
        raise ValueError(f"'{text}' is not an exact factor: {exc}") from exc
    return result


def _check_tokens(tokens: list[str]) -> list[str]:
    if any(not token.strip() for token in tokens):
        raise ValueError("abbreviations must be non-empty strings")
    if len(set(tokens)) != len(tokens):
        raise ValueError("abbreviations must not repeat within a unit")
    return tokens


class UnitRecord(BaseModel):
    """One unit row of the catalog table."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    plural: str = Field(min_length=1)
    pint: str = Field(min_length=1)
    scale: str = Field(min_length=1)
    offset: str = "0"
    abbreviations: list[str] = Field(min_length=1)
    localized: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("scale")
    @classmethod
    def _validate_scale(cls, value: str) -> str:
        if parse_factor(value) == 0:
            raise ValueError("scale must be non-zero")
        return value

    @field_validator("offset")
    @classmethod
    def _validate_offset(cls, value: str) -> str:
        parse_factor(value)
        return value

    @field_validator("abbreviations")
    @classmethod
    def _validate_abbreviations(cls, value: list[str]) -> list[str]:
        return _check_tokens(value)

    @field_validator("localized")
    @classmethod
    def _validate_localized(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for culture, tokens in value.items():
            if not culture.strip():
                raise ValueError("localized abbreviations need a culture name")
            if not tokens:
                raise ValueError(f"culture '{culture}' lists no abbreviations")
            _check_tokens(tokens)
        return value


class KindRecord(BaseModel):
    """One quantity kind of the catalog table."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    description: str = ""
    base_unit: str = Field(min_length=1)
    # False for kinds that share a dimension with a kind arithmetic should produce.
    arithmetic_result: bool = True
    units: list[UnitRecord] = Field(min_length=1)

    @model_validator(mode="after")
    def _validate_units(self) -> "KindRecord":
        names = [unit.name.lower() for unit in self.units]
        if len(set(names)) != len(names):
            raise ValueError(f"kind '{self.name}' repeats a unit name")
        if self.base_unit.lower() not in names:
            raise ValueError(f"kind '{self.name}' base unit '{self.base_unit}' is not one of its units")
        return self


class CatalogRecord(BaseModel):
    """Top-level catalog document."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    catalog_version: str
    kinds: list[KindRecord] = Field(min_length=1)

    @model_validator(mode="after")
    def _validate_kinds(self) -> "CatalogRecord":
        names = [kind.name.lower() for kind in self.kinds]
        if len(set(names)) != len(names):
            raise ValueError("catalog repeats a kind name")
        return self


@dataclass(frozen=True)
class Unit:
    """A measurement scale within one kind.

    Units compare equal by ``(kind_name, name)``.
    """

    kind_name: str
    name: str
    plural: str = field(compare=False)
    pint_expression: str = field(compare=False, repr=False)
    abbreviations: tuple[str, ...] = field(compare=False)
    localized: Mapping[str, tuple[str, ...]] = field(compare=False, repr=False)
    exact_scale: Fraction = field(compare=False, repr=False)
    exact_offset: Fraction = field(compare=False, repr=False)

    @property
    def scale(self) -> float:
        return float(self.exact_scale)

    @property
    def offset(self) -> float:
        return float(self.exact_offset)

    @property
    def qualified_name(self) -> str:
        """Return the ``<Kind>Unit.<Name>`` spelling, e.g. ``MassUnit.Kilogram``."""
        return f"{self.kind_name}Unit.{self.name}"

    def abbreviations_for(self, culture: str | None = None) -> tuple[str, ...]:
        """Return the culture's abbreviations, falling back to the invariant list."""
        key = normalize_culture(culture)
        if key and key in self.localized:
            return self.localized[key]
        return self.abbreviations

    def to_base(self, value: float) -> float:
        return self.scale * value + self.offset

    def conversion_to(self, target: "Unit") -> tuple[float, float]:
        """Return ``(ratio, shift)`` with ``target_value = ratio * value + shift``.

        Both terms are computed exactly and rounded once, so decimal-related
        units convert without drift (1 L is exactly 1000.0 mL).

        Example:
            >>> temperature = get_catalog().kind("Temperature")
            >>> temperature.unit("DegreeCelsius").conversion_to(temperature.unit("DegreeFahrenheit"))
            (1.8, 32.0)
        """
        ratio = self.exact_scale / target.exact_scale
        shift = (self.exact_offset - target.exact_offset) / target.exact_scale
        return float(ratio), float(shift)


@dataclass(frozen=True)
class Kind:
    """A physical quantity kind with its ordered units.

    Kinds compare equal (and hash) by name, so they can key schema mappings.
    """

    name: str
    description: str = field(compare=False, repr=False)
    base_unit_name: str = field(compare=False, repr=False)
    units: tuple[Unit, ...] = field(compare=False, repr=False)
    dimensionality: Any = field(compare=False, repr=False)
    arithmetic_result: bool = field(compare=False, repr=False)
    _by_name: Mapping[str, Unit] = field(init=False, compare=False, repr=False)
    _by_abbreviation: Mapping[str, Mapping[str, tuple[Unit, ...]]] = field(
        init=False, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_by_name", MappingProxyType({unit.name.lower(): unit for unit in self.units})
        )
        tables: dict[str, dict[str, list[Unit]]] = defaultdict(lambda: defaultdict(list))
        for unit in self.units:
            for token in unit.abbreviations:
                tables[INVARIANT_CULTURE][token].append(unit)
            for culture, tokens in unit.localized.items():
                for token in tokens:
                    tables[culture][token].append(unit)
        frozen = {
            culture: MappingProxyType({token: tuple(units) for token, units in table.items()})
            for culture, table in tables.items()
        }
        object.__setattr__(self, "_by_abbreviation", MappingProxyType(frozen))

    @property
    def base_unit(self) -> Unit:
        return self._by_name[self.base_unit_name.lower()]

    @property
    def unit_names(self) -> tuple[str, ...]:
        return tuple(unit.name for unit in self.units)

    @property
    def cultures(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_abbreviation))

    def find_unit(self, name: str) -> Unit | None:
        """Return the unit with this canonical name (case-insensitive), if any."""
        return self._by_name.get(name.strip().lower())

    def unit(self, name: str) -> Unit:
        """Return the unit with this canonical name or raise ``UnknownUnitError``."""
        found = self.find_unit(name)
        if found is None:
            raise UnknownUnitError(self.name, name)
        return found

    def units_for_abbreviation(self, abbreviation: str, culture: str | None = None) -> tuple[Unit, ...]:
        """Return every unit of this kind that uses the abbreviation.

        A named culture is searched first; the invariant table is the fallback.
        """
        key = normalize_culture(culture)
        if key:
            localized = self._by_abbreviation.get(key, {}).get(abbreviation)
            if localized:
                return localized
        return self._by_abbreviation.get(INVARIANT_CULTURE, {}).get(abbreviation, ())

    def ambiguous_abbreviations(self) -> dict[tuple[str, str], tuple[str, ...]]:
        """Return ``(culture, token) -> unit names`` for tokens shared by several units."""
        return {
            (culture, token): tuple(unit.name for unit in units)
            for culture, table in self._by_abbreviation.items()
            for token, units in table.items()
            if len(units) > 1
        }


@dataclass(frozen=True, eq=False)
class Catalog:
    """Immutable, ordered collection of kinds.

    Example:
        >>> catalog = get_catalog()
        >>> "Density" in catalog
        True
    """

    version: str
    kinds: tuple[Kind, ...]
    _by_name: Mapping[str, Kind] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_by_name", MappingProxyType({kind.name.lower(): kind for kind in self.kinds})
        )

    def __iter__(self) -> Iterator[Kind]:
        return iter(self.kinds)

    def __len__(self) -> int:
        return len(self.kinds)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Kind):
            return self._by_name.get(item.name.lower()) == item
        if isinstance(item, str):
            return item.strip().lower() in self._by_name
        return False

    @property
    def kind_names(self) -> tuple[str, ...]:
        return tuple(kind.name for kind in self.kinds)

    def find_kind(self, name: str) -> Kind | None:
        return self._by_name.get(name.strip().lower())

    def kind(self, name: str) -> Kind:
        """Return the kind with this name (case-insensitive) or raise ``UnknownKindError``."""
        found = self.find_kind(name)
        if found is None:
            raise UnknownKindError(name)
        return found

    def kind_of(self, unit: Unit) -> Kind:
        return self.kind(unit.kind_name)

    def units(self) -> Iterator[Unit]:
        for kind in self.kinds:
            yield from kind.units

    def kinds_with_dimensionality(
        self, dimensionality: Any, *, arithmetic_only: bool = False
    ) -> tuple[Kind, ...]:
        """Return the kinds measuring this pint dimensionality, in catalog order.

        With ``arithmetic_only`` the kinds flagged ``arithmetic_result: false``
        (HeatFlux, ApparentPower, ...) are left out.
        """
        return tuple(
            kind
            for kind in self.kinds
            if kind.dimensionality == dimensionality and (kind.arithmetic_result or not arithmetic_only)
        )


def _check_pint_expression(kind: str, record: UnitRecord, base_expression: str) -> None:
    try:
        Q_(1.0, record.pint).to(base_expression)
    except (PintError, AttributeError, TypeError, ValueError) as exc:
        raise CatalogError(
            f"Unit '{kind}.{record.name}' has no pint conversion to '{base_expression}': {exc}",
            kind=kind,
            unit=record.name,
        ) from exc


def _build_kind(record: KindRecord) -> Kind:
    base_record = next(unit for unit in record.units if unit.name.lower() == record.base_unit.lower())
    units = []
    for unit_record in record.units:
        _check_pint_expression(record.name, unit_record, base_record.pint)
        units.append(
            Unit(
                kind_name=record.name,
                name=unit_record.name,
                plural=unit_record.plural,
                pint_expression=unit_record.pint,
                abbreviations=tuple(unit_record.abbreviations),
                localized=MappingProxyType(
                    {culture: tuple(tokens) for culture, tokens in unit_record.localized.items()}
                ),
                exact_scale=parse_factor(unit_record.scale),
                exact_offset=parse_factor(unit_record.offset),
            )
        )
    base = units[record.units.index(base_record)]
    if base.exact_scale != 1 or base.exact_offset != 0:
        raise CatalogError(f"Base unit of '{record.name}' must have scale 1 and offset 0.", kind=record.name)
    return Kind(
        name=record.name,
        description=record.description,
        base_unit_name=base.name,
        units=tuple(units),
        dimensionality=Q_(1.0, base.pint_expression).dimensionality,
        arithmetic_result=record.arithmetic_result,
    )


def load_catalog(raw: str | None = None) -> Catalog:
    """Parse and validate a catalog document.

    Args:
        raw: JSON text; the packaged catalog is used when omitted.

    Raises:
        CatalogError: If the document is not a valid catalog.
    """
    if raw is None:
        raw = resources.files(CATALOG_PACKAGE).joinpath(CATALOG_FILENAME).read_text(encoding="utf-8")
    try:
        record = CatalogRecord.model_validate_json(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise CatalogError(f"Catalog is invalid at {location}: {first['msg']}", location=location) from exc

    catalog = Catalog(version=record.catalog_version, kinds=tuple(_build_kind(kind) for kind in record.kinds))
    for kind in catalog:
        for (culture, token), names in kind.ambiguous_abbreviations().items():
            logger.warning(
                "Abbreviation %r (culture %r) is shared by %s units: %s",
                token,
                culture or "invariant",
                kind.name,
                ", ".join(names),
            )
    logger.info(
        "Loaded unit catalog %s: %d kinds, %d units",
        catalog.version,
        len(catalog),
        sum(len(kind.units) for kind in catalog),
    )
    return catalog


@lru_cache(maxsize=None)
def get_catalog() -> Catalog:
    """Return the process-wide packaged catalog, loading it on first use."""
    return load_catalog()


def catalog_summary(catalog: Catalog) -> list[dict[str, Any]]:
    """Return a JSON-ready listing of kinds and their units."""
    return [
        {
            "kind": kind.name,
            "base_unit": kind.base_unit.name,
            "units": [
                {"name": unit.name, "abbreviations": list(unit.abbreviations)} for unit in kind.units
            ],
        }
        for kind in catalog
    ]


__all__ = [
    "CATALOG_FILENAME",
    "CATALOG_PACKAGE",
    "Catalog",
    "INVARIANT_CULTURE",
    "Kind",
    "Q_",
    "Unit",
    "catalog_summary",
    "get_catalog",
    "load_catalog",
    "normalize_culture",
    "parse_factor",
    "ureg",
]
