"""Validates dereferenced documents against the OpenAPI 3.0 structural rules.

Two passes, both collecting every finding:
  1. the document skeleton against a draft-04 JSON Schema (jsonschema);
  2. every Schema Object, walked with an identity-keyed visited set so
     cyclic schema graphs terminate.
"""

import logging
from typing import Any, Iterator

from jsonschema import Draft4Validator

from openapi_meta.errors import ValidationError

from .base import HTTP_METHODS, JsonKind, ValidationFinding, ValidationReport, kind_of

logger = logging.getLogger(__name__)

SCHEMA_TYPES = frozenset({"string", "number", "integer", "boolean", "array", "object"})
PARAMETER_LOCATIONS = ["query", "header", "path", "cookie"]

_STRING = {"type": "string"}
_EXTENSION = {"^x-": {}}

OPENAPI_30_STRUCTURE = {
    "type": "object",
    "required": ["openapi", "info", "paths"],
    "properties": {
        "openapi": {"type": "string", "pattern": r"^3\.0\.\d+"},
        "info": {"$ref": "#/definitions/info"},
        "paths": {"$ref": "#/definitions/paths"},
        "components": {
            "type": "object",
            "properties": {
                "schemas": {"type": "object"},
                "parameters": {"type": "object", "additionalProperties": {"$ref": "#/definitions/parameter"}},
                "responses": {"type": "object", "additionalProperties": {"$ref": "#/definitions/response"}},
                "requestBodies": {"type": "object", "additionalProperties": {"$ref": "#/definitions/requestBody"}},
                "securitySchemes": {"type": "object"},
            },
        },
        "security": {"type": "array", "items": {"type": "object"}},
        "tags": {"type": "array", "items": {"type": "object", "required": ["name"]}},
    },
    "definitions": {
        "info": {
            "type": "object",
            "required": ["title", "version"],
            "properties": {"title": _STRING, "version": _STRING, "description": _STRING},
        },
        "paths": {
            "type": "object",
            "patternProperties": {"^/": {"$ref": "#/definitions/pathItem"}, **_EXTENSION},
            "additionalProperties": False,
        },
        "pathItem": {
            "type": "object",
            "properties": {
                **{method: {"$ref": "#/definitions/operation"} for method in HTTP_METHODS},
                "parameters": {"$ref": "#/definitions/parameters"},
                "summary": _STRING,
                "description": _STRING,
            },
        },
        "operation": {
            "type": "object",
            "required": ["responses"],
            "properties": {
                "responses": {"$ref": "#/definitions/responses"},
                "parameters": {"$ref": "#/definitions/parameters"},
                "requestBody": {"$ref": "#/definitions/requestBody"},
                "operationId": _STRING,
                "summary": _STRING,
                "description": _STRING,
                "tags": {"type": "array", "items": _STRING},
                "deprecated": {"type": "boolean"},
                "security": {"type": "array", "items": {"type": "object"}},
            },
        },
        "parameters": {"type": "array", "items": {"$ref": "#/definitions/parameter"}},
        "parameter": {
            "type": "object",
            "required": ["name", "in"],
            "properties": {
                "name": _STRING,
                "in": {"enum": PARAMETER_LOCATIONS},
                "required": {"type": "boolean"},
                "description": _STRING,
                "schema": {"type": "object"},
            },
            # path parameters must be marked required: true
            "anyOf": [
                {"properties": {"in": {"not": {"enum": ["path"]}}}},
                {"required": ["required"], "properties": {"required": {"enum": [True]}}},
            ],
        },
        "requestBody": {
            "type": "object",
            "required": ["content"],
            "properties": {
                "content": {"$ref": "#/definitions/content"},
                "required": {"type": "boolean"},
                "description": _STRING,
            },
        },
        "responses": {
            "type": "object",
            "minProperties": 1,
            "patternProperties": {"^([1-5][0-9X]{2}|default)$": {"$ref": "#/definitions/response"}, **_EXTENSION},
            "additionalProperties": False,
        },
        "response": {
            "type": "object",
            "required": ["description"],
            "properties": {"description": _STRING, "content": {"$ref": "#/definitions/content"}},
        },
        "content": {"type": "object", "additionalProperties": {"type": "object"}},
    },
}

_structure_validator = Draft4Validator(OPENAPI_30_STRUCTURE)


def validate(document: Any) -> ValidationReport:
    """Check a dereferenced document; report all findings, not just the first."""
    if not isinstance(document, dict):
        finding = ValidationFinding(message="Document must be a JSON object", details={"validator": "type"})
        return ValidationReport(valid=False, errors=[finding])

    findings = validate_structure(document)
    findings.extend(validate_schemas(document))
    logger.debug("Validation finished with %d finding(s)", len(findings))
    return ValidationReport(valid=not findings, errors=findings)


def ensure_valid(document: Any) -> None:
    """Raise ValidationError carrying every finding if the document is invalid."""
    report = validate(document)
    if not report.valid:
        raise ValidationError("Invalid OpenAPI schema", findings=report.errors)


def validate_structure(document: dict) -> list[ValidationFinding]:
    """Check the document skeleton (never descends into Schema Objects)."""
    findings = []
    for error in _structure_validator.iter_errors(document):
        findings.append(
            ValidationFinding(
                message=error.message,
                path=_dotted(error.absolute_path),
                schema_path="/".join(str(p) for p in error.absolute_schema_path),
                details={"validator": error.validator, "expected": error.validator_value},
            )
        )
    return findings


def validate_schemas(document: dict) -> list[ValidationFinding]:
    """Check every Schema Object reachable from the document."""
    findings: list[ValidationFinding] = []
    visited: set[int] = set()
    for path, schema in _schema_roots(document):
        _check_schema(schema, path, visited, findings)
    return findings


def _schema_roots(document: dict) -> Iterator[tuple[str, Any]]:
    components = _mapping(document.get("components"))
    for name, schema in _mapping(components.get("schemas")).items():
        yield f"components.schemas.{name}", schema
    for name, param in _mapping(components.get("parameters")).items():
        if isinstance(param, dict) and "schema" in param:
            yield f"components.parameters.{name}.schema", param["schema"]

    for path, item in _mapping(document.get("paths")).items():
        item = _mapping(item)
        yield from _parameter_schemas(item.get("parameters"), f"paths.{path}.parameters")
        for method in HTTP_METHODS:
            operation = item.get(method)
            if not isinstance(operation, dict):
                continue
            base = f"paths.{path}.{method}"
            yield from _parameter_schemas(operation.get("parameters"), f"{base}.parameters")
            body = _mapping(operation.get("requestBody"))
            yield from _content_schemas(body.get("content"), f"{base}.requestBody.content")
            for code, response in _mapping(operation.get("responses")).items():
                yield from _content_schemas(_mapping(response).get("content"), f"{base}.responses.{code}.content")


def _parameter_schemas(parameters: Any, base: str) -> Iterator[tuple[str, Any]]:
    if not isinstance(parameters, list):
        return
    for index, param in enumerate(parameters):
        if isinstance(param, dict) and "schema" in param:
            yield f"{base}.{index}.schema", param["schema"]


def _content_schemas(content: Any, base: str) -> Iterator[tuple[str, Any]]:
    for media_type, media in _mapping(content).items():
        if isinstance(media, dict) and "schema" in media:
            yield f"{base}.{media_type}.schema", media["schema"]


def _check_schema(schema: Any, path: str, visited: set[int], findings: list[ValidationFinding]) -> None:
    kind = kind_of(schema)
    if kind is JsonKind.REFERENCE:
        findings.append(
            ValidationFinding(message=f"Unresolved reference {schema['$ref']}", path=path, details={"validator": "$ref"})
        )
        return
    if kind is not JsonKind.OBJECT:
        findings.append(
            ValidationFinding(message="Schema must be an object", path=path, details={"validator": "type"})
        )
        return
    if id(schema) in visited:
        return
    visited.add(id(schema))

    declared = schema.get("type")
    if declared is not None and not (isinstance(declared, str) and declared in SCHEMA_TYPES):
        findings.append(
            ValidationFinding(
                message=f"{declared!r} is not a valid schema type",
                path=f"{path}.type",
                schema_path="schema/type",
                details={"validator": "enum", "expected": sorted(SCHEMA_TYPES)},
            )
        )
    if declared == "array" and "items" not in schema:
        findings.append(
            ValidationFinding(
                message="'items' must be present when type is 'array'",
                path=path,
                schema_path="schema/items",
                details={"validator": "required"},
            )
        )

    for name, sub in _mapping(schema.get("properties")).items():
        _check_schema(sub, f"{path}.properties.{name}", visited, findings)
    for keyword in ("items", "not"):
        if keyword in schema:
            _check_schema(schema[keyword], f"{path}.{keyword}", visited, findings)
    if isinstance(schema.get("additionalProperties"), dict):
        _check_schema(schema["additionalProperties"], f"{path}.additionalProperties", visited, findings)
    for keyword in ("allOf", "anyOf", "oneOf"):
        subs = schema.get(keyword)
        if isinstance(subs, list):
            for index, sub in enumerate(subs):
                _check_schema(sub, f"{path}.{keyword}.{index}", visited, findings)


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _dotted(path) -> str:
    return ".".join(str(p) for p in path)
