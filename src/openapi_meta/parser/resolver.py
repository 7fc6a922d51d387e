"""Reference resolver for OpenAPI 3.0 documents.

Replaces every `$ref` node with its target. Each raw node is resolved once
and memoised by identity, so a reference back to an ancestor yields the same
(still being filled) object: cycles become shared back-references instead of
infinite recursion.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urljoin, urlparse

import requests

from openapi_meta.config import Settings
from openapi_meta.errors import ResolutionError

from .base import JsonKind, kind_of

logger = logging.getLogger(__name__)

# Structural positions of a node; they decide which keys hold literal data.
NODE = "node"
SCHEMA = "schema"
SCHEMA_MAP = "schema_map"  # properties, components.schemas: name -> schema
RESPONSES = "responses"  # code -> response, "default" included
EXAMPLES = "examples"  # name -> Example Object
EXAMPLE = "example"

# Keys whose values are literal data, never schema graph.
LITERAL_KEYS = {
    NODE: frozenset({"example"}),
    SCHEMA: frozenset({"example", "default", "enum"}),
    EXAMPLE: frozenset({"value"}),
}


def resolve(document: Any, base_uri: str | None = None, settings: Settings | None = None) -> dict:
    """Return a dereferenced clone of `document`.

    Raises ResolutionError when a reference cannot be located or when the
    result declares no paths.
    """
    return Resolver(document, base_uri=base_uri, settings=settings).resolve()


class Resolver:
    """Dereferences one document; holds per-call state only."""

    def __init__(self, document: Any, base_uri: str | None = None, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.base_uri = _normalise_uri(base_uri)
        self.back_references: list[tuple[str, str]] = []  # (ref site, target)
        self._root = copy.deepcopy(document)
        self._documents: dict[str, Any] = {self.base_uri: self._root}
        self._memo: dict[int, Any] = {}
        self._building: set[int] = set()

    def resolve(self) -> dict:
        if kind_of(self._root) not in (JsonKind.OBJECT, JsonKind.REFERENCE):
            raise ResolutionError("Invalid schema: document must be a JSON object")

        resolved = self._walk(self._root, self.base_uri, "", NODE)
        if not isinstance(resolved, dict):
            raise ResolutionError("Invalid schema: document must be a JSON object")
        paths = resolved.get("paths")
        if not isinstance(paths, dict) or not paths:
            raise ResolutionError("Invalid schema: No paths found")
        return resolved

    def _walk(self, node: Any, uri: str, pointer: str, position: str) -> Any:
        kind = kind_of(node)
        if kind is JsonKind.REFERENCE:
            return self._follow(node, uri, pointer, position)
        if kind not in (JsonKind.OBJECT, JsonKind.ARRAY):
            return node

        memo_key = id(node)
        if memo_key in self._memo:
            return self._memo[memo_key]

        if kind is JsonKind.OBJECT:
            out: Any = {}
            self._memo[memo_key] = out
            self._building.add(id(out))
            literal = LITERAL_KEYS.get(position, frozenset())
            for key, value in node.items():
                if key in literal:
                    out[key] = value
                else:
                    child = f"{pointer}/{escape_token(str(key))}"
                    out[key] = self._walk(value, uri, child, child_position(position, key))
        else:
            out = []
            self._memo[memo_key] = out
            self._building.add(id(out))
            for index, value in enumerate(node):
                out.append(self._walk(value, uri, f"{pointer}/{index}", position))

        self._building.discard(id(out))
        return out

    def _follow(self, node: dict, uri: str, pointer: str, position: str) -> Any:
        """Follow a chain of references until a concrete node is reached."""
        chain: list[str] = []
        current, current_uri = node, uri
        target_uri, target_pointer = uri, pointer
        while kind_of(current) is JsonKind.REFERENCE:
            ref = current["$ref"]
            target_uri, target_pointer = self._split(ref, current_uri)
            target_key = f"{target_uri}#{target_pointer}"
            if target_key in chain:
                raise ResolutionError(
                    "Reference cycle without a concrete target",
                    details=" -> ".join(chain + [target_key]),
                )
            chain.append(target_key)
            current = self._lookup(target_uri, target_pointer, ref)
            current_uri = target_uri

        resolved = self._walk(current, target_uri, target_pointer, position)
        if id(resolved) in self._building:
            site = f"{uri}#{pointer}"
            logger.debug("Back-reference at %s to %s", site, chain[-1])
            self.back_references.append((site, chain[-1]))
        return resolved

    def _split(self, ref: str, current_uri: str) -> tuple[str, str]:
        location, _, fragment = ref.partition("#")
        pointer = unquote(fragment)
        if not location:
            return current_uri, pointer
        return self._join(current_uri, location, ref), pointer

    def _join(self, current_uri: str, location: str, ref: str) -> str:
        if urlparse(location).scheme in ("http", "https"):
            return location
        if urlparse(current_uri).scheme in ("http", "https"):
            return urljoin(current_uri, location)
        location = _normalise_uri(location)
        if os.path.isabs(location):
            return location
        if not current_uri:
            raise ResolutionError(f"Cannot resolve reference {ref}: relative reference without a base location")
        return os.path.normpath(os.path.join(os.path.dirname(current_uri), location))

    def _lookup(self, uri: str, pointer: str, ref: str) -> Any:
        document = self._load(uri)
        try:
            return json_pointer_get(document, pointer)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ResolutionError(f"Cannot resolve reference {ref}", details=str(e)) from e

    def _load(self, uri: str) -> Any:
        if uri in self._documents:
            return self._documents[uri]
        if urlparse(uri).scheme in ("http", "https"):
            document = self._fetch(uri)
        else:
            document = self._read(uri)
        self._documents[uri] = document
        return document

    def _fetch(self, uri: str) -> Any:
        if not self.settings.allow_remote_refs:
            raise ResolutionError(f"Cannot resolve reference to {uri}: remote references are disabled")
        logger.info("Fetching remote reference %s", uri)
        try:
            response = requests.get(uri, timeout=self.settings.remote_timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise ResolutionError(f"Cannot fetch remote reference {uri}", details=str(e)) from e

    def _read(self, uri: str) -> Any:
        logger.debug("Loading external reference %s", uri)
        try:
            return json.loads(Path(uri).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ResolutionError(f"Cannot load external reference {uri}", details=str(e)) from e


def child_position(position: str, key: str) -> str:
    """Position of the value stored under `key` in a node at `position`."""
    if position == SCHEMA_MAP:
        return SCHEMA
    if position == RESPONSES:
        return NODE
    if position == EXAMPLES:
        return EXAMPLE
    if position == SCHEMA:
        return SCHEMA_MAP if key == "properties" else SCHEMA
    return {
        "schema": SCHEMA,
        "schemas": SCHEMA_MAP,
        "responses": RESPONSES,
        "examples": EXAMPLES,
    }.get(key, NODE)


def _normalise_uri(uri: str | None) -> str:
    if not uri:
        return ""
    uri = str(uri)
    if uri.startswith("file://"):
        return unquote(urlparse(uri).path)
    return uri


def escape_token(token: str) -> str:
    """Escape a single RFC 6901 reference token."""
    return token.replace("~", "~0").replace("/", "~1")


def unescape_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def json_pointer_get(document: Any, pointer: str) -> Any:
    """Resolve an RFC 6901 JSON pointer (without the leading '#')."""
    if pointer == "":
        return document
    if not pointer.startswith("/"):
        raise ValueError(f"Invalid JSON pointer: {pointer!r}")

    node = document
    for raw in pointer.split("/")[1:]:
        token = unescape_token(raw)
        if isinstance(node, list):
            node = node[int(token)]
        elif isinstance(node, dict):
            node = node[token]
        else:
            raise TypeError(f"Cannot descend into {type(node).__name__} at {token!r}")
    return node


def detach_cycles(value: Any) -> Any:
    """Return a JSON-serialisable copy of a resolved graph.

    A back-edge to an ancestor becomes `{"$ref": "#/<pointer to ancestor>"}`;
    shared but acyclic nodes are copied by value.
    """
    return _detach(value, "", {})


def _detach(value: Any, pointer: str, ancestors: dict[int, str]) -> Any:
    if not isinstance(value, (dict, list)):
        return value
    key = id(value)
    if key in ancestors:
        return {"$ref": f"#{ancestors[key]}"}

    ancestors[key] = pointer
    try:
        if isinstance(value, dict):
            return {k: _detach(v, f"{pointer}/{escape_token(str(k))}", ancestors) for k, v in value.items()}
        return [_detach(v, f"{pointer}/{i}", ancestors) for i, v in enumerate(value)]
    finally:
        del ancestors[key]
