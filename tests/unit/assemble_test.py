"""Tests for assembling extracted markers into a project schema."""

import random

import pytest

from reverso.core.assemble import assemble_schema
from reverso.errors import SchemaConflictError
from reverso.models import SchemaMeta
from tests.conftest import FIXED_TIME, detected


def _assemble(fields, **kwargs):
    return assemble_schema(fields, generated_at=FIXED_TIME, **kwargs)


class TestStructure:
    def test_two_files_two_pages(self) -> None:
        schema, warnings = _assemble(
            [
                detected("home.hero.title", file="src/Home.tsx", type="text"),
                detected("about.intro.text", file="src/About.tsx", type="wysiwyg"),
            ]
        )
        assert warnings == []
        assert schema.page_count == 2
        assert schema.total_fields == 2
        assert [page.slug for page in schema.pages] == ["about", "home"]
        assert schema.pages[1].source_files == ["src/Home.tsx"]
        assert schema.generated_at == FIXED_TIME

    def test_sections_keep_first_occurrence_order(self) -> None:
        schema, _ = _assemble(
            [
                detected("home.hero.title", line=1),
                detected("home.features.title", line=5),
                detected("home.hero.subtitle", line=9),
            ]
        )
        (page,) = schema.pages
        assert [(section.slug, section.sort_order) for section in page.sections] == [("hero", 0), ("features", 1)]
        assert [field.path for field in page.sections[0].fields] == ["home.hero.title", "home.hero.subtitle"]
        assert [field.sort_order for field in page.sections[0].fields] == [0, 1]
        assert page.field_count == 3

    def test_labels_are_derived_from_segments(self) -> None:
        schema, _ = _assemble([detected("landingPage.heroBanner.mainTitle")])
        page = schema.pages[0]
        assert page.name == "Landing Page"
        assert page.sections[0].name == "Hero Banner"
        assert page.sections[0].fields[0].label == "Main Title"

    def test_section_marker_names_section_and_is_not_a_field(self) -> None:
        schema, _ = _assemble(
            [
                detected("home.hero", line=1, label="Hero area"),
                detected("home.hero.title", line=2),
            ]
        )
        section = schema.pages[0].sections[0]
        assert section.name == "Hero area"
        assert [field.path for field in section.fields] == ["home.hero.title"]
        assert schema.total_fields == 1

    def test_field_attributes(self) -> None:
        schema, warnings = _assemble(
            [
                detected(
                    "shop.filters.size",
                    text_content="Medium",
                    type="select",
                    options="Small:s, Medium:m",
                    required="true",
                    help="Pick one",
                    placeholder="Size",
                    width="6",
                )
            ]
        )
        assert warnings == []
        (field,) = schema.iter_fields()
        assert field.type == "select"
        assert [(option.label, option.value) for option in field.options] == [("Small", "s"), ("Medium", "m")]
        assert field.required is True
        assert field.help == "Pick one"
        assert field.placeholder == "Size"
        assert field.default_value == "Medium"
        assert field.config.width == 6
        assert field.element_tag == "h1"

    def test_default_modifier_wins_over_text_content(self) -> None:
        schema, _ = _assemble([detected("home.hero.title", text_content="Hello", default="Welcome")])
        assert schema.iter_fields()[0].default_value == "Welcome"

    def test_unknown_type_falls_back_to_text(self) -> None:
        schema, warnings = _assemble([detected("home.hero.title", type="hologram")])
        assert schema.iter_fields()[0].type == "text"
        assert len(warnings) == 1
        assert "unknown field type 'hologram'" in warnings[0].message

    def test_config_problems_become_warnings(self) -> None:
        _, warnings = _assemble([detected("home.stats.count", type="number", min="10", max="1")])
        assert [warning.path for warning in warnings] == ["home.stats.count"]

    def test_invalid_paths_are_skipped_with_warning(self) -> None:
        schema, warnings = _assemble([detected("orphan"), detected("home.hero.title", line=2)])
        assert schema.total_fields == 1
        assert len(warnings) == 1
        assert warnings[0].path == "orphan"


class TestDuplicates:
    def test_identical_declarations_merge_source_files(self) -> None:
        schema, warnings = _assemble(
            [
                detected("global.footer.copyright", file="src/Home.tsx"),
                detected("global.footer.copyright", file="src/About.tsx"),
            ]
        )
        assert warnings == []
        (field,) = schema.iter_fields()
        assert field.source_files == ["src/About.tsx", "src/Home.tsx"]
        assert schema.total_fields == 1

    def test_first_wins_keeps_earliest_declaration(self) -> None:
        schema, warnings = _assemble(
            [
                detected("home.hero.title", file="src/b.tsx", type="textarea"),
                detected("home.hero.title", file="src/a.tsx", type="text"),
            ]
        )
        (field,) = schema.iter_fields()
        assert field.type == "text"
        assert field.source_files == ["src/a.tsx", "src/b.tsx"]
        assert len(warnings) == 1
        assert "conflicting modifiers (type)" in warnings[0].message
        assert "src/a.tsx:1:0" in warnings[0].message

    def test_error_policy_raises(self) -> None:
        fields = [
            detected("home.hero.title", file="src/a.tsx", type="text"),
            detected("home.hero.title", file="src/b.tsx", type="textarea", label="Title"),
        ]
        with pytest.raises(SchemaConflictError) as exc_info:
            _assemble(fields, conflict_policy="error")
        assert exc_info.value.differing == ["label", "type"]
        assert exc_info.value.path == "home.hero.title"


class TestRepeaters:
    def test_repeater_fields_mark_section(self) -> None:
        schema, _ = _assemble(
            [
                detected("home.features.$.title", line=1),
                detected("home.features.$.body", line=2),
            ]
        )
        section = schema.pages[0].sections[0]
        assert section.is_repeater is True
        assert section.repeater_config is None
        assert [field.path for field in section.fields] == ["home.features.$.title", "home.features.$.body"]

    def test_repeater_root_carries_config(self) -> None:
        schema, warnings = _assemble(
            [
                detected("home.features.$", line=1, min="1", max="6", label="Feature"),
                detected("home.features.$.title", line=2),
            ]
        )
        assert warnings == []
        section = schema.pages[0].sections[0]
        assert section.is_repeater is True
        assert section.repeater_config is not None
        assert (section.repeater_config.min, section.repeater_config.max) == (1, 6)
        assert section.repeater_config.item_label == "Feature"
        assert schema.total_fields == 1

    def test_fractional_repeater_bounds_are_truncated_with_warning(self) -> None:
        schema, warnings = _assemble(
            [
                detected("home.features.$", line=1, min="1.5", max="4.0"),
                detected("home.features.$.title", line=2),
            ]
        )
        config = schema.pages[0].sections[0].repeater_config
        assert config is not None
        assert (config.min, config.max) == (1, 4)
        (warning,) = warnings
        assert warning.kind == "validation"
        assert warning.path == "home.features.$"
        assert warning.message == "repeater min '1.5' is not an integer, using 1"

    def test_nested_repeater_prefix_is_root(self) -> None:
        schema, _ = _assemble(
            [
                detected("home.featured.posts", line=1, max="3"),
                detected("home.featured.posts.$.image", line=2, type="image"),
            ]
        )
        section = schema.pages[0].sections[0]
        assert section.repeater_config is not None
        assert section.repeater_config.max == 3
        assert [field.path for field in section.fields] == ["home.featured.posts.$.image"]
        assert section.fields[0].label == "Image"

    def test_second_root_is_ignored_with_warning(self) -> None:
        schema, warnings = _assemble(
            [
                detected("home.lists.$", line=1, max="2"),
                detected("home.lists.other.$", line=3, max="9"),
                detected("home.lists.other.$.name", line=4),
            ]
        )
        section = schema.pages[0].sections[0]
        assert section.repeater_config.max == 2
        assert len(warnings) == 1
        assert "already has repeater" in warnings[0].message


class TestOrdering:
    def test_field_order_overrides_traversal(self) -> None:
        fields = [detected("home.hero.title", line=1), detected("home.hero.cta", line=2)]
        schema, _ = _assemble(fields, field_order=["home.hero.cta"])
        assert [field.path for field in schema.iter_fields()] == ["home.hero.cta", "home.hero.title"]

    def test_result_does_not_depend_on_input_order(self) -> None:
        fields = [
            detected("home.hero.title", file="src/Home.tsx", line=3),
            detected("home.hero.title", file="src/Other.tsx", line=1, type="textarea"),
            detected("home.features.$.title", file="src/Home.tsx", line=8),
            detected("about.team.lead", file="src/About.tsx", line=2),
            detected("home.hero", file="src/Home.tsx", line=1, label="Top"),
        ]
        expected, expected_warnings = _assemble(fields, meta=SchemaMeta(src_dir="src"))
        shuffled = list(fields)
        random.Random(7).shuffle(shuffled)
        schema, warnings = _assemble(shuffled, meta=SchemaMeta(src_dir="src"))
        assert schema == expected
        assert warnings == expected_warnings
