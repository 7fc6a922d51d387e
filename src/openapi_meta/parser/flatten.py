"""Path/method flattener.

Walks a dereferenced OpenAPI 3.0 document and extracts one OperationRecord
per path and method, preserving declaration order. Documentation data is
best-effort display content: malformed-but-present pieces degrade to empty
collections and warnings, never to exceptions.
"""

import logging
from typing import Any

import pydantic

from .base import HTTP_METHODS, OperationRecord, ParameterEntry, PathEntry, ResponseEntry
from .resolver import detach_cycles

logger = logging.getLogger(__name__)

PARAMETER_FIELDS = ("name", "in", "required", "description", "schema")


def flatten(document: dict, warnings: list[str] | None = None) -> list[PathEntry]:
    """Extract canonical metadata for every declared path, in document order.

    Non-fatal problems are logged and, when `warnings` is given, appended to it.
    """
    entries = []
    for path, item in document.get("paths", {}).items():
        entry = PathEntry(path=path)
        if not isinstance(item, dict):
            _warn(warnings, f"Path item for {path} is not an object")
            entries.append(entry)
            continue

        for method in item:
            if method.lower() not in HTTP_METHODS:
                continue
            operation = item[method]
            if not isinstance(operation, dict):
                _warn(warnings, f"Method {method} not found for path {path}")
                continue
            entry.operations[method.lower()] = _parse_operation(operation, path, method, warnings)
        entries.append(entry)
    return entries


def _parse_operation(operation: dict, path: str, method: str, warnings: list[str] | None) -> OperationRecord:
    output, errors = _partition_responses(operation.get("responses"), path, method, warnings)

    body = operation.get("requestBody")
    content = body.get("content") if isinstance(body, dict) else None

    # absent stays absent; only odd-typed values are dropped
    fields = {}
    for key in ("operationId", "summary", "description"):
        if key not in operation:
            continue
        if isinstance(operation[key], str):
            fields[key] = operation[key]
        else:
            _warn(warnings, f"Ignoring non-string {key} on {method.upper()} {path}")

    return OperationRecord(
        output=output,
        input=content if isinstance(content, dict) else {},
        parameters=_parse_parameters(operation.get("parameters"), path, method, warnings),
        errorResponses=errors,
        **fields,
    )


def _partition_responses(
    responses: Any, path: str, method: str, warnings: list[str] | None
) -> tuple[list[ResponseEntry], list[ResponseEntry]]:
    """Split responses into 2xx output and 4xx/5xx errors by first digit."""
    output, errors = [], []
    if not isinstance(responses, dict):
        return output, errors

    for code, response in responses.items():
        code = str(code)
        if code.startswith("2"):
            output.append(_response_entry(code, response))
        elif code.startswith(("4", "5")):
            errors.append(_response_entry(code, response))
        else:
            # 1xx, 3xx and "default" are not carried over
            _warn(warnings, f"Dropping response {code} on {method.upper()} {path}: not a 2xx, 4xx or 5xx code")
    return output, errors


def _response_entry(code: str, response: Any) -> ResponseEntry:
    response = response if isinstance(response, dict) else {}
    content = response.get("content")
    description = response.get("description")
    return ResponseEntry(
        code=code,
        content=content if isinstance(content, dict) else {},
        description=description if isinstance(description, str) else "",
    )


def _parse_parameters(params: Any, path: str, method: str, warnings: list[str] | None) -> list[ParameterEntry]:
    result = []
    if not isinstance(params, list):
        return result

    for index, param in enumerate(params):
        if not isinstance(param, dict):
            _warn(warnings, f"Skipping parameter {index} on {method.upper()} {path}: not an object")
            continue
        present = {key: param[key] for key in PARAMETER_FIELDS if key in param}
        try:
            entry = ParameterEntry.model_validate(present, strict=True)
        except pydantic.ValidationError as e:
            # keep the parameter, drop only the mistyped fields
            bad = sorted({str(error["loc"][0]) for error in e.errors() if error["loc"]})
            _warn(warnings, f"Ignoring mistyped {', '.join(bad)} on parameter {index} of {method.upper()} {path}")
            entry = ParameterEntry.model_validate({k: v for k, v in present.items() if k not in bad}, strict=True)
        result.append(entry)
    return result


def to_path_mapping(entries: list[PathEntry]) -> dict[str, dict[str, OperationRecord]]:
    """Collapse flattened entries into {path: {METHOD: OperationRecord}}."""
    mapping = {}
    for entry in entries:
        mapping[entry.path] = {method.upper(): record for method, record in entry.operations.items()}
    return mapping


def dump_path_mapping(mapping: dict[str, dict[str, OperationRecord]]) -> dict:
    """JSON form of a path mapping; schema cycles become local $ref pointers."""
    plain = {
        path: {method: record.to_dict() for method, record in methods.items()}
        for path, methods in mapping.items()
    }
    return detach_cycles(plain)


def flatten_raw(document: dict) -> dict[str, dict[str, dict]]:
    """Return {path: {METHOD: raw operation object}} for storage."""
    mapping = {}
    for path, item in document.get("paths", {}).items():
        item = item if isinstance(item, dict) else {}
        mapping[path] = {
            method.upper(): operation
            for method, operation in item.items()
            if method.lower() in HTTP_METHODS and isinstance(operation, dict)
        }
    return mapping


def method_index(document: dict) -> dict[str, list[str]]:
    """Return the methods declared under each path, in order."""
    return {
        path: [m for m in item if m.lower() in HTTP_METHODS] if isinstance(item, dict) else []
        for path, item in document.get("paths", {}).items()
    }


def _warn(warnings: list[str] | None, message: str) -> None:
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)
