"""JSON wire codecs for quantities.

Two shapes are supported:

* ``Abbreviated``: ``{"value": 1, "unit": "kg"}``
* ``ExplicitUnitAndKind``: ``{"value": 1, "unit": "Kilogram", "type": "Mass"}``

Example:
    >>> from unitwire.units import OpenQuantity, quantity
    >>> codec = AbbreviatedCodec()
    >>> codec.encode(quantity("Mass", "Kilogram", 1))
    '{"value":1,"unit":"kg"}'
    >>> codec.decode('{"value": 1, "unit": "kg"}', OpenQuantity).kind.name
    'Mass'
"""

from __future__ import annotations

import json
import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from .abbreviations import registry_for
from .catalog import Catalog, Kind, Unit, get_catalog
from .errors import (
    AmbiguousAbbreviationError,
    ConfigurationError,
    KindMismatchError,
    MalformedInputError,
    NonFiniteValueError,
    QuantityDecodeError,
    UnknownAbbreviationError,
    UnknownUnitError,
)
from .units import OpenQuantity, Quantity, QuantityLike, unwrap

logger = logging.getLogger(__name__)

# Largest magnitude below which every integral float is exactly an int.
_EXACT_INT_LIMIT = 2.0**53

Expected = Union[Kind, str, type[OpenQuantity]]


class SerializationSchema(str, Enum):
    """Wire shape selected once per running service."""

    ABBREVIATED = "Abbreviated"
    EXPLICIT = "ExplicitUnitAndKind"


class AbbreviatedRecord(BaseModel):
    """``{value, unit}`` with ``unit`` an abbreviation."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True, allow_inf_nan=False)

    value: float
    unit: str


class ExplicitRecord(BaseModel):
    """``{value, unit, type}`` with canonical unit and kind names."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True, allow_inf_nan=False)

    value: float
    unit: str
    type: str


def _reject_constant(token: str) -> float:
    raise ValueError(f"JSON constant {token} is not a valid quantity value")


def _unique_pairs(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in pairs:
        if key in payload:
            raise ValueError(f"duplicate property '{key}'")
        payload[key] = value
    return payload


def parse_object(text: Union[str, bytes]) -> dict[str, Any]:
    """Parse JSON text that must hold exactly one object.

    Raises:
        MalformedInputError: On invalid or too deeply nested JSON, NaN/Infinity
            tokens, duplicate keys, or non-objects.
    """
    try:
        payload = json.loads(text, parse_constant=_reject_constant, object_pairs_hook=_unique_pairs)
    except (TypeError, ValueError, RecursionError) as exc:
        raise MalformedInputError(f"Quantity payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedInputError("Quantity payload must be a JSON object.", found=type(payload).__name__)
    return payload


def json_number(value: float) -> Union[int, float]:
    """Return the JSON number to emit, keeping the exact bits on re-parse.

    Example:
        >>> json_number(1.0), json_number(0.5), json_number(-0.0)
        (1, 0.5, -0.0)
    """
    if not math.isfinite(value):
        raise NonFiniteValueError(value)
    negative_zero = value == 0.0 and math.copysign(1.0, value) < 0
    if value.is_integer() and abs(value) < _EXACT_INT_LIMIT and not negative_zero:
        return int(value)
    return value


class QuantityCodec(ABC):
    """Encode/decode quantities for one wire shape."""

    schema: ClassVar[SerializationSchema]
    record_model: ClassVar[type[BaseModel]]

    def __init__(self, catalog: Catalog | None = None, *, culture: str | None = None):
        self.catalog = catalog or get_catalog()
        self.registry = registry_for(self.catalog)
        self.culture = culture

    def encode(self, value: QuantityLike) -> str:
        """Serialize a quantity or open handle to compact JSON text."""
        return json.dumps(self.to_payload(value), ensure_ascii=False, separators=(",", ":"))

    def decode(self, text: Union[str, bytes], expected: Expected = OpenQuantity) -> QuantityLike:
        """Parse JSON text into a ``Quantity`` (known kind) or ``OpenQuantity``."""
        try:
            return self.from_payload(parse_object(text), expected)
        except QuantityDecodeError as exc:
            logger.debug("Rejected %s quantity payload: %s", self.schema.value, exc)
            raise

    def to_payload(self, value: QuantityLike) -> dict[str, Any]:
        resolved = unwrap(value)
        return self._payload(resolved, json_number(resolved.value))

    def from_payload(self, payload: dict[str, Any], expected: Expected = OpenQuantity) -> QuantityLike:
        """Decode an already-parsed JSON object."""
        record = self._validate(payload)
        if expected is OpenQuantity:
            return OpenQuantity(self._resolve_open(record))
        kind = self.catalog.kind(expected) if isinstance(expected, str) else expected
        if not isinstance(kind, Kind):
            raise TypeError(f"Expected a Kind, kind name, or OpenQuantity, got {expected!r}.")
        return self._resolve_kind(record, kind)

    def _validate(self, payload: dict[str, Any]) -> Any:
        if not isinstance(payload, dict):
            raise MalformedInputError("Quantity payload must be a JSON object.", found=type(payload).__name__)
        normalized: dict[str, Any] = {}
        for key, item in payload.items():
            folded = str(key).lower()
            if folded in normalized:
                raise MalformedInputError(f"Property '{key}' is given more than once.", property=key)
            normalized[folded] = item
        try:
            return self.record_model.model_validate(normalized)
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "<root>"
            raise MalformedInputError(
                f"Quantity payload is invalid at {location}: {first['msg']}", location=location
            ) from exc

    @abstractmethod
    def _payload(self, value: Quantity, number: Union[int, float]) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def _resolve_kind(self, record: Any, kind: Kind) -> Quantity:
        raise NotImplementedError

    @abstractmethod
    def _resolve_open(self, record: Any) -> Quantity:
        raise NotImplementedError

    @abstractmethod
    def legal_tokens(self, kind: Kind) -> tuple[str, ...]:
        """Return the ``unit`` strings this codec accepts for the kind."""
        raise NotImplementedError


class AbbreviatedCodec(QuantityCodec):
    """``{value, unit}`` keyed by unit abbreviation.

    The open-handle decoder picks the single kind that defines the token and
    rejects tokens defined by several kinds.
    """

    schema = SerializationSchema.ABBREVIATED
    record_model = AbbreviatedRecord

    def _payload(self, value: Quantity, number: Union[int, float]) -> dict[str, Any]:
        return {"value": number, "unit": self.registry.default_abbreviation(value.unit, self.culture)}

    def _resolve_kind(self, record: AbbreviatedRecord, kind: Kind) -> Quantity:
        unit = self.registry.lookup(kind, record.unit, self.culture)
        return Quantity(kind, unit, record.value)

    def _resolve_open(self, record: AbbreviatedRecord) -> Quantity:
        owners = self.registry.kinds_for_abbreviation(record.unit, self.culture)
        if not owners:
            raise UnknownAbbreviationError(record.unit, culture=self.culture)
        if len(owners) > 1:
            raise AmbiguousAbbreviationError(record.unit, owners)
        return self._resolve_kind(record, self.catalog.kind(owners[0]))

    def legal_tokens(self, kind: Kind) -> tuple[str, ...]:
        return self.registry.all_abbreviations(kind, self.culture)


class ExplicitCodec(QuantityCodec):
    """``{value, unit, type}`` keyed by canonical unit and kind names."""

    schema = SerializationSchema.EXPLICIT
    record_model = ExplicitRecord

    def _payload(self, value: Quantity, number: Union[int, float]) -> dict[str, Any]:
        return {"value": number, "unit": value.unit.name, "type": value.kind.name}

    def _unit(self, kind: Kind, name: str) -> Unit:
        prefix, dot, rest = name.partition(".")
        if dot and prefix.strip().lower() == f"{kind.name}unit".lower():
            name = rest
        unit = kind.find_unit(name)
        if unit is None:
            raise UnknownUnitError(kind.name, name)
        return unit

    def _resolve_kind(self, record: ExplicitRecord, kind: Kind) -> Quantity:
        named = self.catalog.kind(record.type)
        if named != kind:
            raise KindMismatchError(kind.name, named.name)
        return Quantity(named, self._unit(named, record.unit), record.value)

    def _resolve_open(self, record: ExplicitRecord) -> Quantity:
        kind = self.catalog.kind(record.type)
        return Quantity(kind, self._unit(kind, record.unit), record.value)

    def legal_tokens(self, kind: Kind) -> tuple[str, ...]:
        return kind.unit_names


_CODECS: dict[SerializationSchema, type[QuantityCodec]] = {
    SerializationSchema.ABBREVIATED: AbbreviatedCodec,
    SerializationSchema.EXPLICIT: ExplicitCodec,
}


def codec_for(
    schema: SerializationSchema,
    catalog: Catalog | None = None,
    *,
    culture: str | None = None,
) -> QuantityCodec:
    """Return the codec implementing a serialization schema."""
    try:
        codec_type = _CODECS[SerializationSchema(schema)]
    except (KeyError, ValueError) as exc:
        raise ConfigurationError(f"Unsupported serialization schema '{schema}'.", schema) from exc
    return codec_type(catalog, culture=culture)


__all__ = [
    "AbbreviatedCodec",
    "AbbreviatedRecord",
    "ExplicitCodec",
    "ExplicitRecord",
    "QuantityCodec",
    "SerializationSchema",
    "codec_for",
    "json_number",
    "parse_object",
]
