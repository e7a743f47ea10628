#!/usr/bin/env python3
"""
Generate JSON Schemas, YAML variants, and OpenAPI from Pydantic models.

Outputs under src/specs/:
 - schemas/*.json (and *.yaml)
 - openapi.yaml and openapi.json
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

try:
    import yaml  # type: ignore
except Exception as exc:  # pragma: no cover
    print("PyYAML is required: pip install pyyaml", file=sys.stderr)
    raise


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SPECS = SRC / "specs"
SCHEMAS_DIR = SPECS / "schemas"

sys.path.insert(0, str(ROOT))

from src.specs.models import (  # noqa: E402
    SCHEMA_MODELS,
    TransformImageRequest,
    ErrorResponse,
)

_IMAGE_TYPES = ("image/png", "image/jpeg", "image/gif")


def write_json_yaml(obj: dict, json_path: Path) -> None:
    json_path.parent.mkdir(parents=True, exist_ok=True)
    with json_path.open("w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
    yaml_path = json_path.with_suffix(".yaml")
    with yaml_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(obj, f, sort_keys=False)


def generate_model_schemas(out_dir: Path = SCHEMAS_DIR) -> None:
    for filename, model in SCHEMA_MODELS.items():
        schema = model.model_json_schema()
        write_json_yaml(schema, out_dir / filename)


def _image_response() -> dict:
    return {
        "description": "Transformed image; Content-Type follows the output format",
        "content": {mime: {"schema": {"type": "string", "format": "binary"}} for mime in _IMAGE_TYPES},
    }


def _error(description: str) -> dict:
    return {
        "description": description,
        "content": {
            "application/json": {"schema": {"$ref": "#/components/schemas/ErrorResponse"}}
        },
    }


def build_openapi() -> dict:
    # Pydantic nests sub-models under $defs; OpenAPI wants them as components.
    request_schema = TransformImageRequest.model_json_schema(ref_template="#/components/schemas/{model}")
    schemas = dict(request_schema.pop("$defs", {}))
    schemas["TransformImageRequest"] = request_schema
    schemas["ErrorResponse"] = ErrorResponse.model_json_schema()

    errors = {
        "400": _error("Invalid request, unknown format or filter, bad color, or impossible geometry"),
        "422": _error("Source bytes could not be decoded"),
        "500": _error("Encoding failed"),
        "502": _error("Source image could not be fetched"),
    }
    spec = {
        "openapi": "3.0.3",
        "info": {
            "title": "Image Pipeline Functions API",
            "version": "0.1.0",
            "description": "On-the-fly image editing exposed by the Azure Functions app.",
        },
        "servers": [
            {"url": "http://localhost:7071/api", "description": "Local Functions host"}
        ],
        "paths": {
            "/transform_image": {
                "get": {
                    "summary": "Fetch an image and re-encode it",
                    "operationId": "convertImage",
                    "parameters": [
                        {"in": "query", "name": "url", "schema": {"type": "string"}, "required": True},
                        {"in": "query", "name": "format", "schema": {"type": "string", "enum": ["PNG", "JPEG", "GIF"]}, "required": False},
                        {"in": "query", "name": "output", "schema": {"type": "string", "enum": ["PNG", "JPEG", "GIF"]}, "required": False},
                    ],
                    "responses": {"200": _image_response(), **errors},
                },
                "post": {
                    "summary": "Run an ordered list of transformations on a source image",
                    "operationId": "transformImage",
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/TransformImageRequest"}
                            }
                        },
                    },
                    "responses": {"200": _image_response(), **errors},
                },
            }
        },
        "components": {"schemas": schemas},
    }
    return spec


def generate_openapi(out_dir: Path = SPECS) -> None:
    spec = build_openapi()
    write_json_yaml(spec, out_dir / "openapi.json")


def main() -> None:
    generate_model_schemas()
    generate_openapi()
    print("Specs generated under src/specs/")


if __name__ == "__main__":
    main()
