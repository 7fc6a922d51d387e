"""Documentation service — wires the schema engine to its collaborators.

The auth verifier and the document store are external; only the interfaces
they expose are defined here. The HTTP layer calls `respond()` to turn an
outcome into a status code and a JSON body.
"""

import copy
import logging
from typing import Any, Callable, Protocol

from openapi_meta.config import Settings
from openapi_meta.errors import (
    AuthenticationError,
    DocumentNotFound,
    OpenApiMetaError,
    PermissionDenied,
    ResolutionError,
    ValidationError,
)
from openapi_meta.generator.synthesize import synthesize
from openapi_meta.parser.flatten import dump_path_mapping, flatten, to_path_mapping
from openapi_meta.parser.resolver import resolve
from openapi_meta.parser.validator import ensure_valid

logger = logging.getLogger(__name__)


class AuthVerifier(Protocol):
    def verify(self, token: str) -> str:
        """Return the verified subject id, or raise AuthenticationError."""


class DocumentStore(Protocol):
    def get(self, project_id: str, doc_id: str) -> dict | None:
        ...

    def put(self, project_id: str, doc_id: str, document: dict) -> None:
        ...


class InMemoryDocumentStore:
    """Document store kept in a dict; stores and returns copies."""

    def __init__(self):
        self._documents: dict[tuple[str, str], dict] = {}

    def get(self, project_id: str, doc_id: str) -> dict | None:
        document = self._documents.get((project_id, doc_id))
        return copy.deepcopy(document) if document is not None else None

    def put(self, project_id: str, doc_id: str, document: dict) -> None:
        self._documents[(project_id, doc_id)] = copy.deepcopy(document)


class DocumentationService:
    """Converts, generates and stores OpenAPI documentation."""

    def __init__(self, store: DocumentStore, verifier: AuthVerifier, settings: Settings | None = None):
        self.store = store
        self.verifier = verifier
        self.settings = settings or Settings()

    def convert(self, document: Any, base_uri: str | None = None, warnings: list[str] | None = None) -> dict:
        """Resolve, validate and flatten a document into its JSON path mapping."""
        if not document:
            raise ValidationError("No data provided")
        resolved = resolve(document, base_uri=base_uri, settings=self.settings)
        ensure_valid(resolved)
        entries = flatten(resolved, warnings=warnings)
        return dump_path_mapping(to_path_mapping(entries))

    def generate(self, payload: Any) -> dict:
        """Synthesise a document from `{input, output, parameters}`."""
        if not isinstance(payload, dict):
            raise ValidationError("No data provided")
        return synthesize(payload.get("input"), payload.get("output"), payload.get("parameters"), settings=self.settings)

    def save_schema(self, token: str, user_id: str, project_id: str, doc_id: str, document: Any) -> dict:
        """Convert a document and persist it with its canonical metadata."""
        self._authorize(token, user_id)
        metadata = self.convert(document)
        record = {"openapi_schema": document, "metadata": metadata}
        self.store.put(project_id, doc_id, record)
        logger.info("Stored schema %s/%s with %d path(s)", project_id, doc_id, len(metadata))
        return record

    def load_schema(self, token: str, user_id: str, project_id: str, doc_id: str) -> dict:
        self._authorize(token, user_id)
        record = self.store.get(project_id, doc_id)
        if record is None:
            raise DocumentNotFound("Documentation not found")
        return record

    def _authorize(self, token: str, user_id: str) -> str:
        if not token:
            raise AuthenticationError("No authorization token provided")
        if token.startswith("Bearer "):
            token = token[len("Bearer "):]
        subject = self.verifier.verify(token)
        if subject != user_id:
            raise PermissionDenied("You are not authorized to access these projects")
        return subject


_STATUS = (
    (ResolutionError, 400),
    (ValidationError, 400),
    (AuthenticationError, 401),
    (PermissionDenied, 403),
    (DocumentNotFound, 404),
)


def respond(fn: Callable, *args, **kwargs) -> tuple[int, dict]:
    """Run a service call and map its outcome to (status, body)."""
    try:
        return 200, fn(*args, **kwargs)
    except OpenApiMetaError as e:
        for error_type, status in _STATUS:
            if isinstance(e, error_type):
                return status, e.to_body()
        logger.exception("Unmapped service error")
        return 500, {"error": f"Error processing request: {e}"}
    except Exception as e:
        logger.exception("Error processing request")
        return 500, {"error": f"Error processing request: {e}"}
