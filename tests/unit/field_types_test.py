"""Tests for the field type registry and per-type configuration."""

import pytest
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from reverso.core.field_types import (
    FIELD_TYPES,
    ChoiceFieldConfig,
    DateFieldConfig,
    FieldConfig,
    FieldOption,
    GenericFieldConfig,
    MediaFieldConfig,
    NumberFieldConfig,
    TextFieldConfig,
    build_field_config,
    coerce_bool,
    coerce_number,
    coerce_width,
    is_valid_field_type,
    parse_options,
)


def test_registry_has_forty_unique_types() -> None:
    assert len(FIELD_TYPES) == 40
    assert len(set(FIELD_TYPES)) == 40


@pytest.mark.parametrize("field_type", ["text", "wysiwyg", "buttongroup", "accordion", "datetime"])
def test_known_types_are_valid(field_type: str) -> None:
    assert is_valid_field_type(field_type)


def test_unknown_type_is_invalid() -> None:
    assert not is_valid_field_type("slider")


class TestCoercion:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("3", 3), (" 2.5 ", 2.5), ("1e2", 100), ("-4", -4), ("abc", None), ("inf", None), ("nan", None), (None, None)],
    )
    def test_coerce_number(self, raw: str | None, expected: float | None) -> None:
        assert coerce_number(raw) == expected

    def test_integral_numbers_become_ints(self) -> None:
        assert isinstance(coerce_number("4.0"), int)

    @pytest.mark.parametrize(
        ("raw", "expected"), [("", True), ("true", True), ("TRUE", True), ("false", False), ("yes", None)]
    )
    def test_coerce_bool(self, raw: str, expected: bool | None) -> None:
        assert coerce_bool(raw) is expected

    @pytest.mark.parametrize(("raw", "expected"), [("1", 1), ("12", 12), ("0", None), ("13", None), ("6.5", None)])
    def test_coerce_width(self, raw: str, expected: int | None) -> None:
        assert coerce_width(raw) == expected


class TestParseOptions:
    def test_json_strings(self) -> None:
        assert parse_options('["a", "b"]') == [FieldOption(label="a", value="a"), FieldOption(label="b", value="b")]

    def test_json_objects(self) -> None:
        options = parse_options('[{"label": "Red", "value": "r"}, {"value": "g"}]')
        assert options == [FieldOption(label="Red", value="r"), FieldOption(label="g", value="g")]

    def test_label_value_pairs(self) -> None:
        options = parse_options("Small:s, Large : l, Medium")
        assert options == [
            FieldOption(label="Small", value="s"),
            FieldOption(label="Large", value="l"),
            FieldOption(label="Medium", value="Medium"),
        ]

    def test_empty_items_are_skipped(self) -> None:
        assert parse_options("a,,b,") == [FieldOption(label="a", value="a"), FieldOption(label="b", value="b")]


class TestBuildFieldConfig:
    def test_text_family(self) -> None:
        config = build_field_config("textarea", {"min": "10", "max": "200", "rows": "4", "width": "6"})
        assert config == TextFieldConfig(type="textarea", min_length=10, max_length=200, rows=4, width=6)
        assert config.problems() == []

    def test_number_family(self) -> None:
        config = build_field_config("number", {"min": "0", "max": "10", "step": "0.5"})
        assert isinstance(config, NumberFieldConfig)
        assert (config.min, config.max, config.step) == (0, 10, 0.5)

    def test_media_family(self) -> None:
        config = build_field_config("gallery", {"accept": "image/*", "multiple": ""})
        assert config == MediaFieldConfig(type="gallery", accept="image/*", multiple=True)

    @pytest.mark.parametrize("field_type", ["multiselect", "checkboxgroup"])
    def test_multi_choice_types_are_always_multiple(self, field_type: str) -> None:
        config = build_field_config(field_type, {})
        assert isinstance(config, ChoiceFieldConfig)
        assert config.multiple is True

    def test_date_family_keeps_bounds_as_strings(self) -> None:
        config = build_field_config("date", {"min": "2024-01-01", "max": "2024-12-31"})
        assert config == DateFieldConfig(type="date", min="2024-01-01", max="2024-12-31")

    def test_generic_family_keeps_common_settings(self) -> None:
        config = build_field_config("color", {"readonly": "true", "hidden": "false", "min": "3"})
        assert config == GenericFieldConfig(type="color", readonly=True, hidden=False)

    def test_malformed_values_are_dropped(self) -> None:
        config = build_field_config("number", {"min": "low", "width": "20", "readonly": "maybe"})
        assert config == NumberFieldConfig(type="number")

    def test_problems_report_inconsistencies(self) -> None:
        (bounds,) = build_field_config("number", {"min": "5", "max": "1"}).problems()
        assert "greater than" in bounds
        (step,) = build_field_config("range", {"step": "-1"}).problems()
        assert step.startswith("step must be positive")
        assert build_field_config("text", {"rows": "3"}).problems() == [
            "rows only applies to textarea fields, not text"
        ]
        assert build_field_config("radio", {"multiple": "true"}).problems() == [
            "radio fields cannot allow multiple values"
        ]


class TestDiscriminatedUnion:
    def test_round_trips_through_json_by_type(self) -> None:
        adapter: TypeAdapter[FieldConfig] = TypeAdapter(FieldConfig)
        config = build_field_config("textarea", {"max": "50"})
        restored = adapter.validate_json(adapter.dump_json(config, by_alias=True))
        assert restored == config
        assert adapter.dump_python(config, by_alias=True)["maxLength"] == 50

    def test_variant_rejects_foreign_settings(self) -> None:
        with pytest.raises(PydanticValidationError):
            TypeAdapter(FieldConfig).validate_python({"type": "image", "rows": 3})
