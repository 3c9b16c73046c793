"""Error taxonomy for quantity decoding, conversion, and service startup.

Example:
    >>> from unitwire.errors import UnknownUnitError
    >>> err = UnknownUnitError("Mass", "Bogus")
    >>> err.code
    'DEC_004'
"""

from __future__ import annotations

import json
from typing import Any, Iterable


class UnitWireError(ValueError):
    """Base unitwire error.

    Attributes:
        code: Stable error identifier.
        details: Machine-readable context for the rejection.

    Example:
        >>> UnitWireError("X_1", "bad", {"field": "unit"}).to_dict()["code"]
        'X_1'
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        """Return serializable error details."""
        return {
            "code": self.code,
            "error_type": type(self).__name__,
            "message": str(self),
            "details": self.details,
        }

    def to_payload(self) -> str:
        """Serialize the error for a rejected request body.

        Example:
            >>> payload = UnitWireError("X_1", "bad").to_payload()
            >>> '"code":"X_1"' in payload
            True
        """
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))


class ConfigurationError(UnitWireError):
    """Raised at startup when the codec selection is missing or unsupported."""

    def __init__(self, message: str, value: Any = None):
        super().__init__("CFG_001", message, {"value": value})


class CatalogError(UnitWireError):
    """Raised when the packaged unit catalog is inconsistent."""

    def __init__(self, message: str, **details: Any):
        super().__init__("CAT_001", message, details)


class QuantityDecodeError(UnitWireError):
    """Base class for recoverable decode-time rejections."""


class MalformedInputError(QuantityDecodeError):
    """Raised when the token stream or record shape is invalid."""

    def __init__(self, message: str, **details: Any):
        super().__init__("DEC_001", message, details)


class UnknownAbbreviationError(QuantityDecodeError):
    """Raised when no unit defines the abbreviation."""

    def __init__(self, abbreviation: str, kind: str | None = None, culture: str | None = None):
        scope = f"kind '{kind}'" if kind else "any kind"
        super().__init__(
            "DEC_002",
            f"Abbreviation '{abbreviation}' is not defined for {scope}.",
            {"abbreviation": abbreviation, "kind": kind, "culture": culture or ""},
        )


class AmbiguousAbbreviationError(QuantityDecodeError):
    """Raised when an abbreviation matches more than one kind or unit."""

    def __init__(self, abbreviation: str, candidates: Iterable[str], kind: str | None = None):
        names = sorted(candidates)
        where = f" within kind '{kind}'" if kind else ""
        super().__init__(
            "DEC_003",
            f"Abbreviation '{abbreviation}' is ambiguous{where}: {', '.join(names)}.",
            {"abbreviation": abbreviation, "candidates": names, "kind": kind},
        )


class UnknownUnitError(QuantityDecodeError):
    """Raised when a canonical unit name is not part of the kind."""

    def __init__(self, kind: str, unit: str):
        super().__init__(
            "DEC_004",
            f"Unit '{unit}' is not a unit of kind '{kind}'.",
            {"kind": kind, "unit": unit},
        )


class UnknownKindError(QuantityDecodeError):
    """Raised when a kind name is not in the catalog."""

    def __init__(self, kind: str):
        super().__init__("DEC_005", f"Unknown quantity kind '{kind}'.", {"kind": kind})


class KindMismatchError(QuantityDecodeError):
    """Raised when a payload names a different kind than the caller expects."""

    def __init__(self, expected: str, actual: str):
        super().__init__(
            "DEC_006",
            f"Expected a quantity of kind '{expected}', got '{actual}'.",
            {"expected": expected, "actual": actual},
        )


class ConversionKindMismatchError(UnitWireError):
    """Raised when converting between units of different kinds."""

    def __init__(self, source_kind: str, target_kind: str, target_unit: str):
        super().__init__(
            "CNV_001",
            f"Cannot convert {source_kind} to {target_unit} ({target_kind}).",
            {"source_kind": source_kind, "target_kind": target_kind, "target_unit": target_unit},
        )


class DerivedKindError(UnitWireError):
    """Raised when cross-kind arithmetic has no unique catalog kind."""

    def __init__(self, dimensionality: str, candidates: Iterable[str] = ()):
        names = sorted(candidates)
        if names:
            message = f"Result dimension {dimensionality} matches several kinds: {', '.join(names)}."
        else:
            message = f"No quantity kind has dimension {dimensionality}."
        super().__init__(
            "CNV_002", message, {"dimensionality": dimensionality, "candidates": names}
        )


class NonFiniteValueError(UnitWireError):
    """Raised when encoding a NaN or infinite magnitude."""

    def __init__(self, value: float):
        super().__init__(
            "ENC_001",
            f"Quantity magnitude {value!r} cannot be represented in JSON.",
            {"value": repr(value)},
        )


class SchemaValidationError(UnitWireError):
    """Raised when a payload does not satisfy a generated schema."""

    def __init__(self, schema: str, location: str, message: str):
        super().__init__(
            "SCH_001",
            f"Schema '{schema}' validation failed at {location}: {message}",
            {"schema": schema, "location": location},
        )


__all__ = [
    "AmbiguousAbbreviationError",
    "CatalogError",
    "ConfigurationError",
    "ConversionKindMismatchError",
    "DerivedKindError",
    "KindMismatchError",
    "MalformedInputError",
    "NonFiniteValueError",
    "QuantityDecodeError",
    "SchemaValidationError",
    "UnitWireError",
    "UnknownAbbreviationError",
    "UnknownKindError",
    "UnknownUnitError",
]
