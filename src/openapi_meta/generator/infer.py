"""Schema inferencer — derives a JSON Schema fragment from an example value.

There is no semantic information in a sample, so property descriptions are
placeholders for the author to fill in later and every observed key is
treated as required.
"""

from typing import Any

from openapi_meta.parser.base import JsonKind, kind_of


def infer(sample: Any, name: str | None = None) -> dict:
    """Infer the schema of `sample`.

    When `name` is given the schema describes a named property and carries a
    placeholder description plus the sample itself as its example.
    """
    kind = kind_of(sample)
    schema: dict = {}

    if kind is JsonKind.ARRAY:
        schema["type"] = "array"
        # only the first element is inspected; an empty array leaves items open
        schema["items"] = infer(sample[0]) if sample else {}
    elif kind in (JsonKind.OBJECT, JsonKind.REFERENCE):
        schema["type"] = "object"
        schema["properties"] = {key: infer(value, key) for key, value in sample.items()}
        if sample:
            schema["required"] = list(sample)
    elif kind is JsonKind.NULL:
        schema["nullable"] = True
    elif kind is JsonKind.NUMBER:
        schema["type"] = "integer" if isinstance(sample, int) else "number"
    else:
        schema["type"] = kind.value

    if name is not None:
        schema["description"] = f"Description for {name}"
        schema["example"] = sample
    return schema
