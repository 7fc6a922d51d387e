"""Document synthesizer.

Wraps two inferred schemas and a parameter list into a single-operation
OpenAPI 3.0 document.
"""

import copy
import logging
from typing import Any

from openapi_meta.config import Settings
from openapi_meta.errors import InferenceDegenerate, ValidationError

from .infer import infer

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.0"
JSON_MEDIA_TYPE = "application/json"
WRAPPED_SAMPLE_KEY = "value"


def synthesize(
    input_sample: Any,
    output_sample: Any,
    parameters: list | None = None,
    settings: Settings | None = None,
) -> dict:
    """Build an OpenAPI document from a request sample and a response sample.

    Raises InferenceDegenerate if either sample is empty.
    """
    settings = settings or Settings()
    if parameters is None:
        parameters = []
    if not isinstance(parameters, list):
        raise ValidationError("Parameters must be an array", details=type(parameters).__name__)

    request_schema = infer(_as_object(input_sample, "input"))
    response_schema = infer(_as_object(output_sample, "output"))
    logger.debug(
        "Synthesised request with %d and response with %d top-level field(s)",
        len(request_schema["properties"]),
        len(response_schema["properties"]),
    )

    return {
        "openapi": OPENAPI_VERSION,
        "info": {
            "title": "API Documentation",
            "version": "1.0.0",
            "description": "Automatically generated OpenAPI 3.0 schema",
        },
        "paths": {
            settings.placeholder_path: {
                "post": {
                    "summary": "Example endpoint",
                    "description": "This is an example endpoint",
                    "parameters": copy.deepcopy(parameters),
                    "requestBody": {
                        "description": "Input payload",
                        "content": {JSON_MEDIA_TYPE: {"schema": request_schema}},
                        "required": True,
                    },
                    "responses": {
                        "200": {
                            "description": "Successful response",
                            "content": {JSON_MEDIA_TYPE: {"schema": response_schema}},
                        },
                    },
                },
            },
        },
    }


def is_empty_sample(sample: Any) -> bool:
    return sample is None or (isinstance(sample, (dict, list, str)) and len(sample) == 0)


def _as_object(sample: Any, label: str) -> dict:
    if is_empty_sample(sample):
        raise InferenceDegenerate(f"No data provided for {label}")
    if not isinstance(sample, dict):
        return {WRAPPED_SAMPLE_KEY: copy.deepcopy(sample)}
    return copy.deepcopy(sample)
