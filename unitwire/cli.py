"""unitwire command line interface."""

from __future__ import annotations

import argparse
import json
import logging
import os
from typing import Any

from .catalog import catalog_summary, get_catalog
from .config import ENV_SERIALIZATION_SCHEMA, load_config
from .errors import UnitWireError
from .service import QuantityService, build_service
from .units import OpenQuantity, quantity, unwrap


def _print_output(payload: dict[str, Any], *, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, sort_keys=True, ensure_ascii=False))
        return

    if "ok" in payload and not payload["ok"]:
        print("ok: False")
    if "wire" in payload:
        print(payload["wire"])
    if "quantity" in payload:
        print(payload["quantity"])
    if "kinds" in payload:
        for item in payload["kinds"]:
            tokens = ", ".join(
                f"{unit['name']} ({'/'.join(unit['abbreviations'])})" for unit in item["units"]
            )
            print(f"{item['kind']} [base {item['base_unit']}]: {tokens}")
    if "schemas" in payload:
        print(json.dumps(payload["schemas"], indent=2, sort_keys=True, ensure_ascii=False))

    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        print("errors:")
        for item in errors:
            print(f"  - {item.get('code', '<unknown>')}: {item.get('message', '')}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="unitwire")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--schema", help=f"Serialization schema (overrides {ENV_SERIALIZATION_SCHEMA})")
    parser.add_argument("--settings", help="Optional JSON settings file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    schemas_parser = subparsers.add_parser("schemas", help="Print the generated schema documents")
    schemas_parser.add_argument("--kind", help="Only print the document for this kind")
    schemas_parser.add_argument("--json", action="store_true", help="Emit JSON output")

    encode_parser = subparsers.add_parser("encode", help="Encode a quantity to its wire form")
    encode_parser.add_argument("--kind", required=True, help="Kind name, e.g. Mass")
    encode_parser.add_argument("--unit", required=True, help="Canonical unit name, e.g. Kilogram")
    encode_parser.add_argument("--value", required=True, type=float, help="Magnitude")
    encode_parser.add_argument("--json", action="store_true", help="Emit JSON output")

    decode_parser = subparsers.add_parser("decode", help="Decode a wire payload")
    decode_parser.add_argument("payload", help="JSON text of the quantity")
    decode_parser.add_argument("--kind", help="Expected kind; any kind when omitted")
    decode_parser.add_argument("--json", action="store_true", help="Emit JSON output")

    convert_parser = subparsers.add_parser("convert", help="Convert a quantity between units")
    convert_parser.add_argument("--kind", required=True, help="Kind name")
    convert_parser.add_argument("--value", required=True, type=float, help="Magnitude")
    convert_parser.add_argument("--from", dest="source", required=True, help="Source unit name")
    convert_parser.add_argument("--to", dest="target", required=True, help="Target unit name or abbreviation")
    convert_parser.add_argument("--json", action="store_true", help="Emit JSON output")

    kinds_parser = subparsers.add_parser("kinds", help="List kinds, units and abbreviations")
    kinds_parser.add_argument("--json", action="store_true", help="Emit JSON output")

    return parser


def _service(args: argparse.Namespace) -> QuantityService:
    environ = dict(os.environ)
    if args.schema:
        environ[ENV_SERIALIZATION_SCHEMA] = args.schema
    return build_service(load_config(environ, args.settings))


def _describe(value: Any) -> dict[str, Any]:
    resolved = unwrap(value)
    return {
        "kind": resolved.kind.name,
        "unit": resolved.unit.name,
        "value": resolved.value,
        "quantity": str(resolved),
    }


def _run(args: argparse.Namespace) -> int:
    as_json = bool(args.json)

    if args.command == "kinds":
        _print_output({"ok": True, "kinds": catalog_summary(get_catalog())}, as_json=as_json)
        return 0

    if args.command == "convert":
        converted = quantity(args.kind, args.source, args.value).to(args.target)
        _print_output({"ok": True, **_describe(converted)}, as_json=as_json)
        return 0

    service = _service(args)

    if args.command == "schemas":
        if args.kind:
            descriptor = service.schema_for(args.kind)
            schemas = {descriptor.name: descriptor.document}
        else:
            schemas = service.openapi_components()["components"]["schemas"]
        _print_output({"ok": True, "schemas": schemas}, as_json=as_json)
        return 0

    if args.command == "encode":
        wire = service.encode(quantity(args.kind, args.unit, args.value, catalog=service.catalog))
        _print_output({"ok": True, "wire": wire}, as_json=as_json)
        return 0

    if args.command == "decode":
        decoded = service.decode(args.payload, args.kind or OpenQuantity)
        _print_output({"ok": True, **_describe(decoded)}, as_json=as_json)
        return 0

    raise UnitWireError("CLI_001", f"Unsupported command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return _run(args)
    except UnitWireError as exc:
        payload = {"ok": False, "errors": [exc.to_dict()]}
        _print_output(payload, as_json=bool(getattr(args, "json", False)))
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
