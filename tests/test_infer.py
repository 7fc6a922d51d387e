import pytest

from openapi_meta.generator.infer import infer


class TestInferObject:
    def test_required_lists_every_key(self):
        sample = {"name": "Alice", "age": 30, "tags": ["a"], "address": {"city": "Oslo"}}
        schema = infer(sample)

        assert schema["type"] == "object"
        assert schema["required"] == ["name", "age", "tags", "address"]
        assert list(schema["properties"]) == ["name", "age", "tags", "address"]

    def test_property_has_placeholder_description_and_example(self):
        schema = infer({"name": "Alice"})
        assert schema["properties"]["name"] == {
            "type": "string",
            "description": "Description for name",
            "example": "Alice",
        }

    def test_root_has_no_description(self):
        schema = infer({"name": "Alice"})
        assert "description" not in schema
        assert "example" not in schema

    def test_nested_objects_recurse(self):
        schema = infer({"address": {"city": "Oslo", "geo": {"lat": 59.9}}})
        address = schema["properties"]["address"]

        assert address["type"] == "object"
        assert address["required"] == ["city", "geo"]
        assert address["properties"]["geo"]["properties"]["lat"]["type"] == "number"
        assert address["example"] == {"city": "Oslo", "geo": {"lat": 59.9}}

    def test_empty_object_omits_required(self):
        assert infer({}) == {"type": "object", "properties": {}}

    def test_reference_shaped_sample_is_plain_data(self):
        schema = infer({"$ref": "#/components/schemas/Pet"})
        assert schema["type"] == "object"
        assert schema["properties"]["$ref"]["type"] == "string"

    def test_deep_nesting_terminates(self):
        sample = {}
        for _ in range(200):
            sample = {"next": sample}

        schema = infer(sample)
        depth = 0
        while schema["properties"]:
            schema = schema["properties"]["next"]
            depth += 1
        assert depth == 200


class TestInferScalars:
    @pytest.mark.parametrize(
        "value, expected",
        [("x", "string"), (3, "integer"), (2.5, "number"), (True, "boolean"), (False, "boolean")],
    )
    def test_primitive_types(self, value, expected):
        assert infer(value)["type"] == expected

    def test_null_is_nullable_without_type(self):
        assert infer(None) == {"nullable": True}
        assert infer({"x": None})["properties"]["x"] == {
            "nullable": True,
            "description": "Description for x",
            "example": None,
        }


class TestInferArray:
    @pytest.mark.parametrize("length", [1, 2, 5])
    def test_type_is_array_for_any_length(self, length):
        assert infer(["x"] * length)["type"] == "array"

    def test_items_inferred_from_first_element_only(self):
        schema = infer([{"id": 1}, "not an object"])
        assert schema["items"]["type"] == "object"
        assert schema["items"]["required"] == ["id"]

    def test_empty_array_leaves_items_unresolved(self):
        assert infer([]) == {"type": "array", "items": {}}

    def test_array_property(self):
        prop = infer({"tags": ["a", "b"]})["properties"]["tags"]
        assert prop == {
            "type": "array",
            "items": {"type": "string"},
            "description": "Description for tags",
            "example": ["a", "b"],
        }
