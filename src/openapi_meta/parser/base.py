"""Unified data models for dereferenced OpenAPI documents.

The flattener turns every documented operation into these records; the
validator reports its findings with them. Schema payloads inside the records
are kept as plain (possibly cyclic) JSON values, so records are serialised
with `to_dict()` rather than `model_dump()`.
"""

from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field

# Path-item keys that denote operations, in OpenAPI 3.0 declaration order.
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")


class JsonKind(str, Enum):
    """The closed set of shapes a JSON value can take."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    REFERENCE = "reference"


def kind_of(value: Any) -> JsonKind:
    """Classify an in-memory JSON value."""
    if value is None:
        return JsonKind.NULL
    if isinstance(value, bool):
        return JsonKind.BOOLEAN
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, (list, tuple)):
        return JsonKind.ARRAY
    if isinstance(value, dict):
        if isinstance(value.get("$ref"), str):
            return JsonKind.REFERENCE
        return JsonKind.OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict:
        """Serialise explicitly set fields under their wire names."""
        fields = type(self).model_fields
        return {
            fields[name].alias or name: _plain(getattr(self, name))
            for name in fields
            if name in self.model_fields_set
        }


def _plain(value: Any) -> Any:
    if isinstance(value, _Record):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict) and any(isinstance(v, _Record) for v in value.values()):
        return {k: _plain(v) for k, v in value.items()}
    return value


class ParameterEntry(_Record):
    """A single operation parameter.

    Fields missing on the source parameter stay unset, so `required` keeps
    three states: absent, False and True.
    """

    name: str | None = None
    location: str | None = Field(default=None, alias="in")  # query / path / header / cookie
    required: bool | None = None
    description: str | None = None
    schema_: Any = Field(default=None, alias="schema")

    @property
    def identity(self) -> tuple[str | None, str | None]:
        return (self.name, self.location)


class ResponseEntry(_Record):
    """One documented response, keyed by its status code string."""

    code: str
    content: dict = Field(default_factory=dict)
    description: str = ""

    def to_dict(self) -> dict:
        return {"code": self.code, "content": self.content, "description": self.description}


class ParameterMap:
    """Ordered map of parameters keyed by (name, location).

    Adding a parameter whose identity is already present replaces the earlier
    entry (last write wins); the key keeps its first insertion position.
    """

    def __init__(self, entries=()):
        self._entries: dict[tuple, ParameterEntry] = {}
        for entry in entries:
            self.add(entry)

    def add(self, entry: ParameterEntry) -> None:
        self._entries[entry.identity] = entry

    def get(self, name: str, location: str) -> ParameterEntry | None:
        return self._entries.get((name, location))

    def __getitem__(self, key: tuple) -> ParameterEntry:
        return self._entries[key]

    def __contains__(self, key: tuple) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[tuple]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def values(self) -> list[ParameterEntry]:
        return list(self._entries.values())


class OperationRecord(_Record):
    """Canonical metadata for one HTTP method on one path."""

    output: list[ResponseEntry] = Field(default_factory=list)  # 2xx
    input: dict = Field(default_factory=dict)  # media type -> media type object
    parameters: list[ParameterEntry] = Field(default_factory=list)
    error_responses: list[ResponseEntry] = Field(default_factory=list, alias="errorResponses")  # 4xx / 5xx
    operation_id: str | None = Field(default=None, alias="operationId")
    summary: str | None = None
    description: str | None = None

    def parameter_map(self) -> ParameterMap:
        return ParameterMap(self.parameters)


class PathEntry(BaseModel):
    """A declared path and its operations, keyed by method as declared."""

    path: str
    operations: dict[str, OperationRecord] = Field(default_factory=dict)


class ValidationFinding(_Record):
    """A single structural violation located by a dotted path."""

    message: str
    path: str = ""
    schema_path: str = Field(default="", alias="schemaPath")
    details: Any = None

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class ValidationReport(BaseModel):
    valid: bool
    errors: list[ValidationFinding] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": [e.to_dict() for e in self.errors]}
