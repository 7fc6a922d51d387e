import json
from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str):
    return json.loads((FIXTURES / name).read_text(encoding="utf-8"))


@pytest.fixture
def petstore_raw():
    return load_fixture("petstore.json")


def make_document(paths: dict, **extra) -> dict:
    """Minimal OpenAPI 3.0 document around the given paths."""
    return {"openapi": "3.0.0", "info": {"title": "Test", "version": "1.0.0"}, "paths": paths, **extra}
