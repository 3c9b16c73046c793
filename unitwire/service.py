"""The one-time startup step that fixes a codec and its schema family."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Union

from .catalog import Catalog, Kind, get_catalog
from .codecs import QuantityCodec, codec_for
from .config import ServiceConfig, load_config
from .errors import ConfigurationError
from .schema import SchemaDescriptor, SchemaKey, build_schemas, openapi_components
from .units import OpenQuantity, QuantityLike

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuantityService:
    """Immutable bundle of the configured codec and its schema mapping.

    A different selection needs a new service; this one never changes.
    """

    config: ServiceConfig
    catalog: Catalog
    codec: QuantityCodec
    schemas: Mapping[SchemaKey, SchemaDescriptor]

    def encode(self, value: QuantityLike) -> str:
        return self.codec.encode(value)

    def decode(self, text: Union[str, bytes], expected: Union[Kind, str, type[OpenQuantity]] = OpenQuantity) -> QuantityLike:
        return self.codec.decode(text, expected)

    def schema_for(self, key: Union[SchemaKey, str]) -> SchemaDescriptor:
        """Return the descriptor for a kind, a kind name, or the open handle."""
        if isinstance(key, str):
            key = self.catalog.kind(key)
        return self.schemas[key]

    def openapi_components(self) -> dict[str, Any]:
        return openapi_components(self.schemas)


def build_service(config: ServiceConfig | None = None, *, catalog: Catalog | None = None) -> QuantityService:
    """Load the catalog, pick the codec, and build the schema mapping.

    Either every piece is built or ``ConfigurationError`` is raised.

    Example:
        >>> service = build_service(load_config({"UNITWIRE_SERIALIZATION_SCHEMA": "Abbreviated"}))
        >>> len(service.schemas) == len(service.catalog) + 1
        True
    """
    config = config or load_config()
    catalog = catalog or get_catalog()
    if config.example_kind not in catalog:
        raise ConfigurationError(
            f"Example kind '{config.example_kind}' is not in the unit catalog.", config.example_kind
        )
    codec = codec_for(config.serialization, catalog)
    schemas = build_schemas(
        config.serialization,
        catalog,
        example_kind=config.example_kind,
        documentation_url=config.documentation_url,
    )
    logger.info(
        "Quantity service ready: schema=%s, %d schema descriptors",
        config.serialization.value,
        len(schemas),
    )
    return QuantityService(config=config, catalog=catalog, codec=codec, schemas=schemas)


__all__ = ["QuantityService", "build_service"]
