"""OpenAPI-style schema documents for the quantity wire shapes.

Example:
    >>> from unitwire.codecs import SerializationSchema
    >>> schemas = build_schemas(SerializationSchema.ABBREVIATED)
    >>> mass = schemas[get_catalog().kind("Mass")].document
    >>> mass["properties"]["unit"]["example"]
    'kg'
    >>> schemas[OpenQuantity].name
    'Quantity'
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Union

import jsonschema

from .catalog import Catalog, Kind, get_catalog
from .codecs import QuantityCodec, SerializationSchema, codec_for
from .errors import CatalogError, SchemaValidationError
from .units import OpenQuantity, Quantity

DOCUMENTATION_URL = "https://pint.readthedocs.io/en/stable/"
GENERIC_SCHEMA_NAME = "Quantity"

SchemaKey = Union[Kind, type[OpenQuantity]]


def canonical_json(payload: Any) -> str:
    """Return canonical JSON (sorted keys, compact separators).

    Example:
        >>> canonical_json({"b": 1, "a": 2})
        '{"a":2,"b":1}'
    """
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


@dataclass(frozen=True)
class SchemaDescriptor:
    """A schema name plus a factory for its document.

    ``document`` builds a fresh dict on each access, so callers may mutate
    what they receive without touching the shared mapping.
    """

    key: SchemaKey
    name: str
    factory: Callable[[], dict[str, Any]] = field(repr=False, compare=False)

    @property
    def document(self) -> dict[str, Any]:
        return self.factory()


def _external_docs(kind: Kind, url: str) -> dict[str, str]:
    return {"description": f"Units of {kind.name} and their conversions", "url": url}


def _base_example(codec: QuantityCodec, kind: Kind) -> dict[str, Any]:
    return codec.to_payload(Quantity(kind, kind.base_unit, 1.0))


def _properties(codec: QuantityCodec, kind: Kind, *, constrained: bool) -> dict[str, Any]:
    example = _base_example(codec, kind)
    unit: dict[str, Any] = {"type": "string", "example": example["unit"]}
    if constrained:
        unit["enum"] = list(codec.legal_tokens(kind))
    properties: dict[str, Any] = {
        "value": {"type": "number", "example": 1},
        "unit": unit,
    }
    if codec.schema is SerializationSchema.EXPLICIT:
        kind_property: dict[str, Any] = {"type": "string", "example": kind.name}
        if constrained:
            kind_property.update({"enum": [kind.name], "default": kind.name})
        properties["type"] = kind_property
    return properties


def kind_document(codec: QuantityCodec, kind: Kind, documentation_url: str = DOCUMENTATION_URL) -> dict[str, Any]:
    """Return the schema document describing one kind on the wire.

    The ``unit`` enum lists only the spellings the encoder writes. The decoder
    is more lenient: ``ExplicitCodec`` also accepts case-folded names and the
    ``<Kind>Unit.<Name>`` form, and property names match case-insensitively.
    A payload the schema rejects can therefore still decode.
    """
    properties = _properties(codec, kind, constrained=True)
    return {
        "type": "object",
        "title": kind.name,
        "description": kind.description or f"A {kind.name} quantity.",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
        "example": _base_example(codec, kind),
        "externalDocs": _external_docs(kind, documentation_url),
    }


def generic_document(
    codec: QuantityCodec, example_kind: Kind, documentation_url: str = DOCUMENTATION_URL
) -> dict[str, Any]:
    """Return the document shared by every open-handle quantity.

    It is shaped like ``example_kind`` but leaves ``unit`` (and ``type``)
    unconstrained, since the real kind is only known per instance.
    """
    properties = _properties(codec, example_kind, constrained=False)
    return {
        "type": "object",
        "title": GENERIC_SCHEMA_NAME,
        "description": (
            f"A generic quantity such as [{example_kind.name}]. "
            "The actual unit and kind vary per instance."
        ),
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
        "example": _base_example(codec, example_kind),
        "externalDocs": _external_docs(example_kind, documentation_url),
    }


def build_schemas(
    variant: SerializationSchema,
    catalog: Catalog | None = None,
    *,
    example_kind: str = "Mass",
    documentation_url: str = DOCUMENTATION_URL,
) -> Mapping[SchemaKey, SchemaDescriptor]:
    """Build one descriptor per kind plus one for the open handle.

    Raises:
        CatalogError: If two descriptors would share a name.
        UnknownKindError: If ``example_kind`` is not in the catalog.
    """
    catalog = catalog or get_catalog()
    codec = codec_for(variant, catalog)
    example = catalog.kind(example_kind)

    mapping: dict[SchemaKey, SchemaDescriptor] = {}
    names: set[str] = set()
    for kind in catalog:
        if kind.name in names:
            raise CatalogError(f"Schema name '{kind.name}' is registered twice.", schema=kind.name)
        names.add(kind.name)
        mapping[kind] = SchemaDescriptor(
            key=kind,
            name=kind.name,
            factory=lambda kind=kind: kind_document(codec, kind, documentation_url),
        )
    if GENERIC_SCHEMA_NAME in names:
        raise CatalogError(f"Schema name '{GENERIC_SCHEMA_NAME}' is registered twice.", schema=GENERIC_SCHEMA_NAME)
    mapping[OpenQuantity] = SchemaDescriptor(
        key=OpenQuantity,
        name=GENERIC_SCHEMA_NAME,
        factory=lambda: generic_document(codec, example, documentation_url),
    )
    return MappingProxyType(mapping)


def openapi_components(schemas: Mapping[SchemaKey, SchemaDescriptor]) -> dict[str, Any]:
    """Return the documents in the ``components.schemas`` layout of OpenAPI."""
    return {"components": {"schemas": {item.name: item.document for item in schemas.values()}}}


def validate_instance(document: dict[str, Any], payload: Any) -> Any:
    """Validate a wire payload against a generated document.

    Raises:
        SchemaValidationError: With the first failing location.
    """
    validator = jsonschema.Draft7Validator(document)
    errors = sorted(validator.iter_errors(payload), key=lambda item: list(item.path))
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.path) or "<root>"
        raise SchemaValidationError(document.get("title", "<untitled>"), location, first.message)
    return payload


__all__ = [
    "DOCUMENTATION_URL",
    "GENERIC_SCHEMA_NAME",
    "SchemaDescriptor",
    "build_schemas",
    "canonical_json",
    "generic_document",
    "kind_document",
    "openapi_components",
    "validate_instance",
]
