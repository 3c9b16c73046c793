"""Startup configuration: which wire codec and schema family to serve.

The serialization schema has no default; a service refuses to start until one
is chosen explicitly.

Example:
    >>> load_config({"UNITWIRE_SERIALIZATION_SCHEMA": "abbreviated"}).serialization.value
    'Abbreviated'
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .codecs import SerializationSchema
from .errors import ConfigurationError
from .schema import DOCUMENTATION_URL

ENV_SERIALIZATION_SCHEMA = "UNITWIRE_SERIALIZATION_SCHEMA"
ENV_EXAMPLE_KIND = "UNITWIRE_EXAMPLE_KIND"
ENV_DOCUMENTATION_URL = "UNITWIRE_DOCUMENTATION_URL"
SETTINGS_SECTION = "Serialization"
SETTINGS_KEY = "Schema"

# Placeholder value meaning "no implementation chosen".
_UNSET_MARKER = "default"


def parse_serialization_schema(raw: Any) -> SerializationSchema:
    """Match a configured value against the supported schemas, ignoring case.

    Raises:
        ConfigurationError: If the value is missing, empty, ``Default`` or unknown.
    """
    if isinstance(raw, SerializationSchema):
        return raw
    if raw is None:
        raise ConfigurationError(
            f"Serialization schema is not configured; set {ENV_SERIALIZATION_SCHEMA}.", raw
        )
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigurationError("Serialization schema must be a non-empty string.", raw)
    text = raw.strip()
    if text.lower() == _UNSET_MARKER:
        raise ConfigurationError(
            f"Serialization schema '{text}' has no implementation; "
            f"choose one of {', '.join(item.value for item in SerializationSchema)}.",
            raw,
        )
    for item in SerializationSchema:
        if item.value.lower() == text.lower():
            return item
    raise ConfigurationError(
        f"Unsupported serialization schema '{text}'; "
        f"choose one of {', '.join(item.value for item in SerializationSchema)}.",
        raw,
    )


class ServiceConfig(BaseModel):
    """Validated startup settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    serialization: SerializationSchema
    example_kind: str = Field(default="Mass", min_length=1)
    documentation_url: str = Field(default=DOCUMENTATION_URL, min_length=1)

    @field_validator("serialization", mode="before")
    @classmethod
    def _parse_serialization(cls, value: Any) -> SerializationSchema:
        return parse_serialization_schema(value)


def _read_settings(path: Union[str, Path]) -> Optional[Any]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Settings file '{path}' cannot be read: {exc}", str(path)) from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Settings file '{path}' must contain valid JSON.", str(path)) from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file '{path}' must contain a JSON object.", str(path))
    section = data.get(SETTINGS_SECTION)
    if not isinstance(section, dict):
        return None
    return section.get(SETTINGS_KEY)


def load_config(
    environ: Mapping[str, str] | None = None,
    path: Union[str, Path, None] = None,
) -> ServiceConfig:
    """Read settings from the environment, then from an optional JSON file.

    The environment wins when both supply the serialization schema.

    Raises:
        ConfigurationError: If the selection is missing or unsupported, or the file is unusable.
    """
    env = os.environ if environ is None else environ
    raw = env.get(ENV_SERIALIZATION_SCHEMA)
    if raw is None and path is not None:
        raw = _read_settings(path)

    values: dict[str, Any] = {"serialization": parse_serialization_schema(raw)}
    if env.get(ENV_EXAMPLE_KIND):
        values["example_kind"] = env[ENV_EXAMPLE_KIND].strip()
    if env.get(ENV_DOCUMENTATION_URL):
        values["documentation_url"] = env[ENV_DOCUMENTATION_URL].strip()
    try:
        return ServiceConfig(**values)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise ConfigurationError(f"Invalid setting {location}: {first['msg']}", location) from exc


__all__ = [
    "ENV_DOCUMENTATION_URL",
    "ENV_EXAMPLE_KIND",
    "ENV_SERIALIZATION_SCHEMA",
    "ServiceConfig",
    "load_config",
    "parse_serialization_schema",
]
