import pytest

from openapi_meta.errors import ValidationError
from openapi_meta.parser.resolver import resolve
from openapi_meta.parser.validator import ensure_valid, validate

from conftest import make_document

JSON = "application/json"


def _with_response_schema(schema) -> dict:
    return make_document(
        {"/a": {"get": {"responses": {"200": {"description": "ok", "content": {JSON: {"schema": schema}}}}}}}
    )


class TestValidate:
    def test_petstore_is_valid(self, petstore_raw):
        report = validate(resolve(petstore_raw))
        assert report.valid, report.to_dict()
        assert report.errors == []

    def test_reports_every_finding(self):
        doc = {
            "openapi": "2.0",
            "paths": {
                "/a": {"get": {"responses": {}}},
                "/b": {"post": {"summary": "no responses"}},
            },
        }
        report = validate(doc)

        assert report.valid is False
        paths = {f.path for f in report.errors}
        assert {"", "openapi", "paths./a.get.responses", "paths./b.post"} <= paths
        assert any("'info' is a required property" in f.message for f in report.errors)

    def test_unknown_schema_type(self):
        report = validate(_with_response_schema({"type": "strng"}))
        assert not report.valid
        finding = report.errors[0]
        assert finding.path == "paths./a.get.responses.200.content.application/json.schema.type"
        assert "strng" in finding.message

    def test_null_type_is_not_openapi_30(self):
        assert not validate(_with_response_schema({"type": "null"})).valid

    def test_array_requires_items(self):
        report = validate(_with_response_schema({"type": "array"}))
        assert [f.message for f in report.errors] == ["'items' must be present when type is 'array'"]

    def test_nested_schema_findings_are_located(self):
        schema = {"type": "object", "properties": {"tags": {"type": "array", "items": {"type": "text"}}}}
        report = validate(_with_response_schema(schema))
        assert report.errors[0].path.endswith("schema.properties.tags.items.type")

    def test_leftover_reference_is_reported(self):
        report = validate(_with_response_schema({"$ref": "#/components/schemas/Pet"}))
        assert not report.valid
        assert report.errors[0].message == "Unresolved reference #/components/schemas/Pet"

    def test_cyclic_schema_terminates(self):
        node = {"type": "object", "properties": {}}
        node["properties"]["self"] = node
        assert validate(_with_response_schema(node)).valid

    def test_path_parameter_must_be_required(self):
        doc = make_document(
            {"/a/{id}": {"get": {"parameters": [{"name": "id", "in": "path"}], "responses": {"200": {"description": "ok"}}}}}
        )
        report = validate(doc)
        assert not report.valid
        assert report.errors[0].path == "paths./a/{id}.get.parameters.0"

    def test_parameter_location_must_be_known(self):
        doc = make_document(
            {"/a": {"get": {"parameters": [{"name": "b", "in": "body"}], "responses": {"200": {"description": "ok"}}}}}
        )
        report = validate(doc)
        assert [f.path for f in report.errors] == ["paths./a.get.parameters.0.in"]

    def test_response_codes_are_checked(self):
        doc = make_document({"/a": {"get": {"responses": {"OK": {"description": "ok"}}}}})
        assert not validate(doc).valid

    def test_non_object_document(self):
        report = validate(["nope"])
        assert not report.valid
        assert len(report.errors) == 1

    def test_finding_wire_format(self):
        report = validate({"openapi": "3.0.0", "info": {"title": "t", "version": "1"}})
        finding = report.to_dict()["errors"][0]
        assert set(finding) == {"message", "path", "schemaPath", "details"}
        assert finding["details"]["validator"] == "required"
        assert finding["schemaPath"] == "required"


class TestEnsureValid:
    def test_valid_document_passes(self, petstore_raw):
        ensure_valid(resolve(petstore_raw))

    def test_raises_with_all_findings(self):
        doc = {"openapi": "3.0.0", "paths": {"/a": {"get": {"responses": {}}}}}
        with pytest.raises(ValidationError) as excinfo:
            ensure_valid(doc)

        error = excinfo.value
        assert len(error.findings) == 2
        body = error.to_body()
        assert body["error"] == "Invalid OpenAPI schema"
        assert [d["path"] for d in body["details"]] == ["", "paths./a.get.responses"]
