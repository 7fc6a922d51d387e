import pytest

from openapi_meta.parser.base import (
    JsonKind,
    OperationRecord,
    ParameterEntry,
    ParameterMap,
    ResponseEntry,
    ValidationFinding,
    kind_of,
)


class TestKindOf:
    def test_scalars(self):
        assert kind_of(None) is JsonKind.NULL
        assert kind_of("x") is JsonKind.STRING
        assert kind_of(3) is JsonKind.NUMBER
        assert kind_of(2.5) is JsonKind.NUMBER

    def test_bool_is_not_a_number(self):
        assert kind_of(True) is JsonKind.BOOLEAN
        assert kind_of(False) is JsonKind.BOOLEAN

    def test_containers(self):
        assert kind_of([]) is JsonKind.ARRAY
        assert kind_of((1, 2)) is JsonKind.ARRAY
        assert kind_of({}) is JsonKind.OBJECT

    def test_reference_needs_string_target(self):
        assert kind_of({"$ref": "#/components/schemas/Pet"}) is JsonKind.REFERENCE
        assert kind_of({"$ref": {"type": "string"}}) is JsonKind.OBJECT

    def test_rejects_non_json_values(self):
        with pytest.raises(TypeError):
            kind_of({1, 2})


class TestParameterEntry:
    def test_required_keeps_three_states(self):
        absent = ParameterEntry.model_validate({"name": "q", "in": "query"})
        false = ParameterEntry.model_validate({"name": "q", "in": "query", "required": False})
        true = ParameterEntry.model_validate({"name": "q", "in": "query", "required": True})

        assert absent.required is None
        assert false.required is False
        assert true.required is True
        assert "required" not in absent.to_dict()
        assert false.to_dict()["required"] is False

    def test_serialises_under_wire_names(self):
        p = ParameterEntry.model_validate({"name": "id", "in": "path", "schema": {"type": "string"}})
        assert p.to_dict() == {"name": "id", "in": "path", "schema": {"type": "string"}}
        assert p.identity == ("id", "path")


class TestParameterMap:
    def test_last_write_wins_and_keeps_first_position(self):
        first = ParameterEntry(name="q", location="query", description="first")
        header = ParameterEntry(name="q", location="header")
        second = ParameterEntry(name="q", location="query", description="second")

        params = ParameterMap([first, header, second])

        assert len(params) == 2
        assert list(params) == [("q", "query"), ("q", "header")]
        assert params.get("q", "query").description == "second"
        assert params[("q", "header")] is header
        assert ("q", "cookie") not in params

    def test_built_from_operation_record(self):
        record = OperationRecord(
            parameters=[
                ParameterEntry(name="limit", location="query"),
                ParameterEntry(name="limit", location="query", required=True),
            ]
        )
        params = record.parameter_map()
        assert len(params) == 1
        assert params.get("limit", "query").required is True


class TestOperationRecord:
    def test_to_dict_uses_camel_case_and_omits_unset(self):
        record = OperationRecord(
            output=[ResponseEntry(code="200")],
            input={},
            parameters=[],
            errorResponses=[ResponseEntry(code="404", description="Not found")],
            summary="List",
        )
        assert record.to_dict() == {
            "output": [{"code": "200", "content": {}, "description": ""}],
            "input": {},
            "parameters": [],
            "errorResponses": [{"code": "404", "content": {}, "description": "Not found"}],
            "summary": "List",
        }

    def test_operation_id_alias(self):
        record = OperationRecord(operationId="listPets")
        assert record.operation_id == "listPets"
        assert record.to_dict() == {"operationId": "listPets"}


class TestValidationFinding:
    def test_to_dict_always_has_all_keys(self):
        finding = ValidationFinding(message="boom")
        assert finding.to_dict() == {"message": "boom", "path": "", "schemaPath": "", "details": None}
