from __future__ import annotations

import pytest

from capdir.core.errors import DataFormatError, SchemaError
from capdir.fs.entry import FileEntry
from capdir.utils.data import parse
from capdir.utils.jsonschema import (
    get_validator,
    report_validation_errors,
    validate_jsonschema,
    validator_from_file,
)

SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "pattern": "^[a-z]+$"},
        "color": {"enum": ["red", "green", "blue"]},
        "size": {"type": "integer"},
    },
    "required": ["name", "size"],
    "additionalProperties": False,
}


def test_parse_json_yaml_and_any() -> None:
    assert parse('{"a": 1}', "json") == {"a": 1}
    assert parse("a: 1", "yaml") == {"a": 1}
    assert parse("a: 1", "YML") == {"a": 1}
    assert parse('{"a": 1}') == {"a": 1}
    assert parse("- x\n- y\n") == ["x", "y"]


def test_parse_errors_name_the_source() -> None:
    with pytest.raises(DataFormatError, match="not valid JSON: 'cfg.json'"):
        parse("a: [1", "json", source="cfg.json")
    with pytest.raises(DataFormatError, match="neither valid JSON nor valid YAML"):
        parse("a: [1")
    with pytest.raises(DataFormatError, match="Unsupported data type"):
        parse("{}", "xml")


def test_valid_data_passes() -> None:
    validate_jsonschema(SCHEMA, {"name": "box", "size": 2, "color": "red"})


def test_report_lists_each_problem() -> None:
    with pytest.raises(SchemaError) as excinfo:
        validate_jsonschema(SCHEMA, {"name": "Box", "color": "gren", "extra": 1})

    report = excinfo.value.report
    assert '- "(root)"' in report
    assert "Missing required field: size" in report
    assert "Unexpected property: extra" in report
    assert '- "/color"' in report
    assert 'Allowed values: "red", "green", "blue"' in report
    assert 'Received value: "gren"' in report
    assert 'Did you mean: "green"?' in report
    assert '- "/name"' in report
    assert "Expected pattern: ^[a-z]+$" in report


def test_report_type_mismatch() -> None:
    validator = get_validator(SCHEMA)
    errors = list(validator.iter_errors({"name": "box", "size": "two"}))
    report = report_validation_errors(errors)
    assert '- "/size"' in report
    assert "Expected type: integer" in report
    assert report_validation_errors([]) == ""


def test_invalid_schema_is_rejected() -> None:
    with pytest.raises(SchemaError, match="Invalid schema"):
        get_validator({"type": 12})
    with pytest.raises(SchemaError):
        get_validator(["not", "a", "schema"])  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_validator_from_yaml_file(tmp_path) -> None:
    (tmp_path / "schema.yaml").write_text(
        "type: object\nrequired: [id]\nproperties:\n  id:\n    type: integer\n"
    )
    validator = await validator_from_file(FileEntry(str(tmp_path / "schema.yaml")))
    assert validator.is_valid({"id": 1})
    assert not validator.is_valid({"id": "one"})
