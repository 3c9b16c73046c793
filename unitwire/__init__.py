"""unitwire package exports."""

from .abbreviations import AbbreviationRegistry, default_registry, registry_for
from .api import (
    construct_quantity,
    convert_by_abbreviation,
    convert_density,
    density_from_mass_and_volume,
    quantity_from_abbreviation,
    zero_mass,
)
from .catalog import Q_, Catalog, Kind, Unit, get_catalog, load_catalog, ureg
from .codecs import AbbreviatedCodec, ExplicitCodec, QuantityCodec, SerializationSchema, codec_for
from .config import ServiceConfig, load_config
from .errors import (
    AmbiguousAbbreviationError,
    CatalogError,
    ConfigurationError,
    ConversionKindMismatchError,
    DerivedKindError,
    KindMismatchError,
    MalformedInputError,
    NonFiniteValueError,
    QuantityDecodeError,
    SchemaValidationError,
    UnitWireError,
    UnknownAbbreviationError,
    UnknownKindError,
    UnknownUnitError,
)
from .schema import SchemaDescriptor, build_schemas, openapi_components, validate_instance
from .service import QuantityService, build_service
from .units import OpenQuantity, Quantity, convert, quantity

__all__ = [
    "AbbreviatedCodec",
    "AbbreviationRegistry",
    "AmbiguousAbbreviationError",
    "Catalog",
    "CatalogError",
    "ConfigurationError",
    "ConversionKindMismatchError",
    "DerivedKindError",
    "ExplicitCodec",
    "Kind",
    "KindMismatchError",
    "MalformedInputError",
    "NonFiniteValueError",
    "OpenQuantity",
    "Q_",
    "Quantity",
    "QuantityCodec",
    "QuantityDecodeError",
    "QuantityService",
    "SchemaDescriptor",
    "SchemaValidationError",
    "SerializationSchema",
    "ServiceConfig",
    "Unit",
    "UnitWireError",
    "UnknownAbbreviationError",
    "UnknownKindError",
    "UnknownUnitError",
    "build_schemas",
    "build_service",
    "codec_for",
    "construct_quantity",
    "convert",
    "convert_by_abbreviation",
    "convert_density",
    "default_registry",
    "density_from_mass_and_volume",
    "get_catalog",
    "load_catalog",
    "load_config",
    "openapi_components",
    "quantity",
    "quantity_from_abbreviation",
    "registry_for",
    "ureg",
    "validate_instance",
    "zero_mass",
]
