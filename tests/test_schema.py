from __future__ import annotations

import json

import jsonschema
import pytest

from unitwire.catalog import get_catalog
from unitwire.codecs import SerializationSchema, codec_for
from unitwire.errors import SchemaValidationError, UnknownKindError
from unitwire.schema import (
    DOCUMENTATION_URL,
    GENERIC_SCHEMA_NAME,
    build_schemas,
    canonical_json,
    openapi_components,
    validate_instance,
)
from unitwire.units import OpenQuantity, Quantity, quantity

CATALOG = get_catalog()
MASS = CATALOG.kind("Mass")
VARIANTS = list(SerializationSchema)


@pytest.mark.parametrize("variant", VARIANTS)
def test_one_descriptor_per_kind_plus_generic(variant: SerializationSchema) -> None:
    schemas = build_schemas(variant)
    assert len(schemas) == len(CATALOG) + 1
    for kind in CATALOG:
        assert schemas[kind].name == kind.name
    assert schemas[OpenQuantity].name == GENERIC_SCHEMA_NAME
    names = [item.name for item in schemas.values()]
    assert len(names) == len(set(names))


def test_abbreviated_mass_document() -> None:
    document = build_schemas(SerializationSchema.ABBREVIATED)[MASS].document
    assert document["type"] == "object"
    assert document["title"] == "Mass"
    assert document["description"] == MASS.description
    assert document["required"] == ["value", "unit"]
    assert document["additionalProperties"] is False
    assert document["properties"]["value"] == {"type": "number", "example": 1}
    unit = document["properties"]["unit"]
    assert unit["example"] == "kg"
    assert {"kg", "g", "mg", "lb", "t"} <= set(unit["enum"])
    assert "type" not in document["properties"]
    assert document["example"] == {"value": 1, "unit": "kg"}
    assert document["externalDocs"]["url"] == DOCUMENTATION_URL


def test_explicit_mass_document() -> None:
    document = build_schemas(SerializationSchema.EXPLICIT)[MASS].document
    assert document["required"] == ["value", "unit", "type"]
    assert document["properties"]["unit"]["enum"] == list(MASS.unit_names)
    assert document["properties"]["type"] == {
        "type": "string",
        "example": "Mass",
        "enum": ["Mass"],
        "default": "Mass",
    }
    assert document["example"] == {"value": 1, "unit": "Kilogram", "type": "Mass"}


@pytest.mark.parametrize("spelling", ["kilogram", "MassUnit.Kilogram"])
def test_explicit_schema_is_stricter_than_decoder(spelling: str) -> None:
    document = build_schemas(SerializationSchema.EXPLICIT)[MASS].document
    payload = {"value": 1, "unit": spelling, "type": "Mass"}
    assert spelling not in document["properties"]["unit"]["enum"]
    with pytest.raises(SchemaValidationError) as info:
        validate_instance(document, payload)
    assert info.value.details["location"] == "unit"
    decoded = codec_for(SerializationSchema.EXPLICIT).decode(json.dumps(payload), MASS)
    assert decoded == quantity("Mass", "Kilogram", 1)


@pytest.mark.parametrize("variant", VARIANTS)
def test_generic_document_is_unconstrained(variant: SerializationSchema) -> None:
    document = build_schemas(variant)[OpenQuantity].document
    assert document["description"] == (
        "A generic quantity such as [Mass]. The actual unit and kind vary per instance."
    )
    assert "enum" not in document["properties"]["unit"]
    assert "externalDocs" in document


def test_generic_document_uses_configured_example_kind() -> None:
    document = build_schemas(SerializationSchema.EXPLICIT, example_kind="Density")[OpenQuantity].document
    assert document["description"].startswith("A generic quantity such as [Density].")
    assert document["example"] == {"value": 1, "unit": "KilogramPerCubicMeter", "type": "Density"}


def test_unknown_example_kind() -> None:
    with pytest.raises(UnknownKindError):
        build_schemas(SerializationSchema.ABBREVIATED, example_kind="Heft")


def test_documents_are_fresh_copies() -> None:
    schemas = build_schemas(SerializationSchema.ABBREVIATED)
    schemas[MASS].document["title"] = "changed"
    assert schemas[MASS].document["title"] == "Mass"
    with pytest.raises(TypeError):
        schemas[MASS] = schemas[OpenQuantity]  # type: ignore[index]


def test_building_is_idempotent() -> None:
    first = build_schemas(SerializationSchema.EXPLICIT)
    second = build_schemas(SerializationSchema.EXPLICIT)
    assert canonical_json(openapi_components(first)) == canonical_json(openapi_components(second))


def test_custom_documentation_url() -> None:
    schemas = build_schemas(SerializationSchema.ABBREVIATED, documentation_url="https://example.org/units")
    assert all(item.document["externalDocs"]["url"] == "https://example.org/units" for item in schemas.values())


@pytest.mark.parametrize("variant", VARIANTS)
def test_documents_are_valid_draft7_and_accept_encoded_base_units(variant: SerializationSchema) -> None:
    codec = codec_for(variant)
    schemas = build_schemas(variant)
    for kind in CATALOG:
        document = schemas[kind].document
        jsonschema.Draft7Validator.check_schema(document)
        for unit in kind.units:
            payload = json.loads(codec.encode(Quantity(kind, unit, 2.5)))
            validate_instance(document, payload)
        validate_instance(schemas[OpenQuantity].document, json.loads(codec.encode(quantity(kind.name, kind.base_unit, 1))))


def test_validate_instance_reports_location() -> None:
    document = build_schemas(SerializationSchema.ABBREVIATED)[MASS].document
    with pytest.raises(SchemaValidationError) as info:
        validate_instance(document, {"value": 1, "unit": "m"})
    assert info.value.code == "SCH_001"
    assert info.value.details == {"schema": "Mass", "location": "unit"}

    with pytest.raises(SchemaValidationError):
        validate_instance(document, {"value": 1, "unit": "kg", "extra": True})


def test_openapi_components_layout() -> None:
    components = openapi_components(build_schemas(SerializationSchema.ABBREVIATED))
    schemas = components["components"]["schemas"]
    assert set(schemas) == set(CATALOG.kind_names) | {GENERIC_SCHEMA_NAME}
